"""
Unit tests for transition event publishers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from coworking_scheduler.scheduling.lifecycle import ReservationStatus
from coworking_scheduler.services.events import (
    LoggingEventPublisher,
    TransitionEvent,
    WebhookEventPublisher,
    publish_safely,
)

EVENT = TransitionEvent(
    reservation_id=7,
    from_status=ReservationStatus.PAYMENT_PENDING,
    to_status=ReservationStatus.CONFIRMED,
    at=datetime(2024, 12, 25, 13, 0, tzinfo=timezone.utc),
)


@pytest.mark.unit
def test_event_serializes_statuses_and_timestamp() -> None:
    assert EVENT.to_dict() == {
        "reservation_id": 7,
        "from_status": "payment_pending",
        "to_status": "confirmed",
        "at": "2024-12-25T13:00:00+00:00",
    }


@pytest.mark.unit
def test_creation_event_has_null_from_status() -> None:
    created = TransitionEvent(7, None, ReservationStatus.PENDING, EVENT.at)

    assert created.to_dict()["from_status"] is None


@pytest.mark.unit
@patch("coworking_scheduler.services.events.requests.post")
def test_webhook_publisher_posts_json_with_timeout(mock_post: Mock) -> None:
    mock_post.return_value.raise_for_status.return_value = None

    WebhookEventPublisher("https://audit.example.com/events").publish(EVENT)

    mock_post.assert_called_once_with(
        "https://audit.example.com/events", json=EVENT.to_dict(), timeout=5
    )


@pytest.mark.unit
@patch("coworking_scheduler.services.events.requests.post")
def test_webhook_publisher_swallows_network_errors(mock_post: Mock) -> None:
    mock_post.side_effect = requests.ConnectionError("refused")

    WebhookEventPublisher("https://audit.example.com/events").publish(EVENT)

    mock_post.assert_called_once()


@pytest.mark.unit
@patch("coworking_scheduler.services.events.requests.post")
def test_webhook_publisher_swallows_http_errors(mock_post: Mock) -> None:
    response = Mock(status_code=500)
    mock_post.return_value.raise_for_status.side_effect = requests.HTTPError(response=response)

    WebhookEventPublisher("https://audit.example.com/events").publish(EVENT)


@pytest.mark.unit
def test_publish_safely_logs_unexpected_publisher_errors() -> None:
    publisher = Mock()
    publisher.publish.side_effect = ValueError("boom")

    publish_safely(publisher, EVENT)

    publisher.publish.assert_called_once_with(EVENT)


@pytest.mark.unit
def test_logging_publisher_does_not_raise() -> None:
    LoggingEventPublisher().publish(EVENT)
