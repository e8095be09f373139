from __future__ import annotations

import logging
import sys
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, MutableMapping, cast

import structlog

from coworking_scheduler.config import LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

SERVICE_NAME = "coworking-scheduler"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = (
    "urllib3",
    "requests",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic.runtime.migration",
    "uvicorn.access",
)


def stringify_domain_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """
    Render prices, dates and status enums as plain strings.

    ``Decimal`` is not JSON serializable and ``str(Decimal)`` keeps the
    two-place precision that ``float`` would lose.
    """
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, date):
            event_dict[key] = value.isoformat()
    return event_dict


def add_service_name(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    renderer: Processor = cast(
        Processor,
        (
            structlog.processors.JSONRenderer()
            if json_output
            else structlog.dev.ConsoleRenderer(colors=True)
        ),
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_service_name,
        stringify_domain_values,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        renderer,
    ]


def setup_logging() -> None:
    """
    Configure structlog on top of standard library logging.

    JSON lines at INFO and above (log aggregation), colored console output at
    DEBUG. Values bound with ``structlog.contextvars`` (``request_id`` from
    the request middleware) are merged into every event.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(json_output=LOG_LEVEL != "DEBUG"),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
