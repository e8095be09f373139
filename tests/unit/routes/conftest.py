"""
Shared fixtures for route tests: the real app wired to the in-memory store.
"""

from __future__ import annotations

import base64
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from coworking_scheduler.dependencies import get_reservation_service
from coworking_scheduler.main import app
from coworking_scheduler.services.reservations import ReservationService


def _basic(username: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def client(service: ReservationService) -> Generator[TestClient, None, None]:
    """FastAPI test client whose reservation service uses the in-memory store."""
    app.dependency_overrides[get_reservation_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def payment_credentials(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Configure the payment collaborator's credentials; returns its auth header."""
    monkeypatch.setattr("coworking_scheduler.routes._auth.WEBHOOK_USERNAME", "provider")
    monkeypatch.setattr("coworking_scheduler.routes._auth.WEBHOOK_PASSWORD", "s3cret")
    return _basic("provider", "s3cret")


@pytest.fixture
def staff_credentials(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Configure staff credentials; returns the staff auth header."""
    monkeypatch.setattr("coworking_scheduler.routes._auth.STAFF_USERNAME", "front-desk")
    monkeypatch.setattr("coworking_scheduler.routes._auth.STAFF_PASSWORD", "desk-pass")
    return _basic("front-desk", "desk-pass")
