import json
from typing import Any

import structlog
from sqlalchemy.engine import Engine

from coworking_scheduler.config import DEBUG
from coworking_scheduler.db.writers._upsert import upsert_with_distinct_check
from coworking_scheduler.errors import ValidationError
from coworking_scheduler.models.resources import Resource
from coworking_scheduler.scheduling.entities import WEEKDAYS, OpeningHours
from coworking_scheduler.scheduling.pricing import RateTable
from coworking_scheduler.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

UPDATE_COLUMNS = [
    "name",
    "capacity",
    "price_per_hour",
    "price_per_day",
    "price_per_week",
    "price_per_month",
    "available",
    "opening_hours",
]


def insert_resources(engine: Engine, data: list[dict[str, Any]], dry_run: bool = False) -> int:
    """
    Upsert resources (admin side), only updating rows whose values changed.

    Each input dict carries ``id``, ``name``, ``capacity``, a ``pricing`` dict
    (``hour``/``day``/``week``/``month``), optional ``available`` and
    optional ``opening_hours``. Entries with invalid rates or hours are skipped.

    Args:
        engine (Engine): SQLAlchemy engine to open a transaction.
        data (list[dict[str, Any]]): Resource definitions.
        dry_run (bool): If True, skip DB writes and log only.

    Returns:
        int: Number of rows sent to the database.
    """
    now = utc_now()
    rows: list[dict[str, Any]] = []

    for item in data:
        resource_id = item.get("id")
        if resource_id is None or not item.get("name") or not item.get("capacity"):
            logger.warning("resource_skipped_missing_fields", resource_id=resource_id)
            continue

        try:
            rates = RateTable(**item.get("pricing", {}))
            hours = item.get("opening_hours")
            if hours:
                for day in WEEKDAYS:
                    OpeningHours.from_dict(hours.get(day))
        except (ValidationError, TypeError) as e:
            logger.warning("resource_skipped_invalid", resource_id=resource_id, error=str(e))
            continue

        rows.append(
            {
                "id": resource_id,
                "name": item["name"],
                "capacity": item["capacity"],
                "price_per_hour": rates.hour,
                "price_per_day": rates.day,
                "price_per_week": rates.week,
                "price_per_month": rates.month,
                "available": item.get("available", True),
                "opening_hours": item.get("opening_hours"),
                "created_at": now,
                "updated_at": now,
            }
        )

    if dry_run:
        logger.info("resources_dry_run", count=len(rows))
        return len(rows)

    if not rows:
        logger.info("resources_nothing_to_upsert")
        return 0

    if DEBUG:
        logger.debug("resource_upsert_sample", row=json.dumps(rows[0], default=str))

    with engine.begin() as conn:
        upsert_with_distinct_check(
            conn=conn,
            table=Resource,
            rows=rows,
            conflict_column="id",
            update_columns=UPDATE_COLUMNS,
        )

    logger.info("resources_upserted", count=len(rows))
    return len(rows)
