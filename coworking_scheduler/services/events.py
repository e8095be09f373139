"""
Reservation transition events for the notification/audit collaborator.

The lifecycle emits one ``TransitionEvent`` per successful status change
(creation included, with ``from_status=None``). Delivery is best effort: a
publisher failure never undoes the transition that produced the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

import requests
import structlog

from coworking_scheduler.scheduling.lifecycle import ReservationStatus

logger = structlog.get_logger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class TransitionEvent:
    reservation_id: int
    from_status: Optional[ReservationStatus]
    to_status: ReservationStatus
    at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "at": self.at.isoformat(),
        }


class EventPublisher(Protocol):
    def publish(self, event: TransitionEvent) -> None: ...


class LoggingEventPublisher:
    """Writes every transition to the structured log."""

    def publish(self, event: TransitionEvent) -> None:
        logger.info("reservation_transition", **event.to_dict())


class WebhookEventPublisher:
    """
    POSTs each transition as JSON to an external endpoint.

    Fire-and-forget: the response body is ignored and HTTP or network errors
    are logged, not raised.

    Args:
        url (str): Receiver endpoint.
        timeout (float): Per-request timeout in seconds.
    """

    def __init__(self, url: str, timeout: float = WEBHOOK_TIMEOUT_SECONDS) -> None:
        self.url = url
        self.timeout = timeout

    def publish(self, event: TransitionEvent) -> None:
        try:
            response = requests.post(self.url, json=event.to_dict(), timeout=self.timeout)
            response.raise_for_status()
            logger.debug(
                "transition_event_delivered",
                reservation_id=event.reservation_id,
                to_status=event.to_status.value,
            )
        except requests.HTTPError as e:
            logger.error(
                "transition_event_rejected",
                reservation_id=event.reservation_id,
                status_code=e.response.status_code if e.response is not None else None,
            )
        except requests.RequestException as e:
            logger.error(
                "transition_event_delivery_failed",
                reservation_id=event.reservation_id,
                error=str(e),
            )


def publish_safely(publisher: EventPublisher, event: TransitionEvent) -> None:
    """Publish ``event``, logging instead of propagating any publisher failure."""
    try:
        publisher.publish(event)
    except Exception:
        logger.exception(
            "transition_event_publish_failed",
            reservation_id=event.reservation_id,
            to_status=event.to_status.value,
        )
