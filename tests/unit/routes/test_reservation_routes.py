"""
Unit tests for the reservation routes.
"""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


def payload(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "resource_id": 1,
        "date": "2024-12-25",
        "start_time": "14:00",
        "end_time": "16:00",
        "duration_type": "hour",
        "duration": 2,
        "guests": 2,
        "payment_method": "onsite",
    }
    body.update(overrides)
    return body


@pytest.mark.unit
def test_create_reservation_returns_201(client: TestClient) -> None:
    response = client.post("/reservations", json=payload(), headers=ALICE)

    assert response.status_code == 201
    data = response.json()
    assert data["total_price"] == "20.00"
    assert data["status"] == "pending"
    assert data["requester_id"] == "alice"


@pytest.mark.unit
def test_create_without_identity_is_401(client: TestClient) -> None:
    response = client.post("/reservations", json=payload())

    assert response.status_code == 401


@pytest.mark.unit
def test_conflict_is_409_with_ranges_only(client: TestClient) -> None:
    client.post("/reservations", json=payload(), headers=ALICE)

    response = client.post(
        "/reservations", json=payload(start_time="15:00", end_time="17:00"), headers=BOB
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "SLOT_CONFLICT"
    assert detail["conflicts"] == [{"start_time": "14:00", "end_time": "16:00"}]
    assert "alice" not in response.text


@pytest.mark.unit
def test_validation_error_is_400_with_details(client: TestClient) -> None:
    response = client.post(
        "/reservations", json=payload(end_time="13:00", guests=0), headers=ALICE
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert {d["field"] for d in detail["details"]} == {"end_time", "guests"}


@pytest.mark.unit
def test_unknown_resource_is_404(client: TestClient) -> None:
    response = client.post("/reservations", json=payload(resource_id=42), headers=ALICE)

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.unit
def test_get_reservation_is_owner_only(client: TestClient) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    assert client.get(f"/reservations/{reservation_id}", headers=ALICE).status_code == 200
    assert client.get(f"/reservations/{reservation_id}", headers=BOB).status_code == 403
    assert client.get("/reservations/999", headers=ALICE).status_code == 404


@pytest.mark.unit
def test_list_reservations_for_caller(client: TestClient) -> None:
    client.post("/reservations", json=payload(), headers=ALICE)
    client.post("/reservations", json=payload(start_time="09:00", end_time="11:00"), headers=BOB)

    response = client.get("/reservations", headers=ALICE)

    assert response.status_code == 200
    assert [r["requester_id"] for r in response.json()] == ["alice"]
    assert client.get("/reservations?requester_id=bob", headers=ALICE).status_code == 403


@pytest.mark.unit
def test_patch_moves_reservation(client: TestClient) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    response = client.patch(
        f"/reservations/{reservation_id}",
        json={"start_time": "15:00", "end_time": "17:00"},
        headers=ALICE,
    )

    assert response.status_code == 200
    assert (response.json()["start_time"], response.json()["end_time"]) == ("15:00", "17:00")


@pytest.mark.unit
def test_patch_to_full_day_reprices_by_the_hour(client: TestClient) -> None:
    body = payload(start_time="14:00", end_time="15:00", duration=1)
    reservation_id = client.post("/reservations", json=body, headers=ALICE).json()["id"]

    response = client.patch(
        f"/reservations/{reservation_id}",
        json={"start_time": "08:00", "end_time": "20:00"},
        headers=ALICE,
    )

    assert response.status_code == 200
    assert response.json()["duration"] == 12
    assert response.json()["total_price"] == "120.00"


@pytest.mark.unit
def test_patch_without_fields_is_400(client: TestClient) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    response = client.patch(f"/reservations/{reservation_id}", json={}, headers=ALICE)

    assert response.status_code == 400


@pytest.mark.unit
def test_cancel_then_cancel_again_is_409(client: TestClient) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    assert client.post(f"/reservations/{reservation_id}/cancel", headers=BOB).status_code == 403

    first = client.post(f"/reservations/{reservation_id}/cancel", headers=ALICE)
    second = client.post(f"/reservations/{reservation_id}/cancel", headers=ALICE)

    assert first.status_code == 200
    assert first.json()["status"] == "cancelled"
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "ILLEGAL_TRANSITION"


@pytest.mark.unit
def test_confirm_and_complete(client: TestClient, staff_credentials: dict[str, str]) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    confirmed = client.post(f"/reservations/{reservation_id}/confirm", headers=staff_credentials)
    completed = client.post(f"/reservations/{reservation_id}/complete", headers=staff_credentials)

    assert confirmed.json()["status"] == "confirmed"
    assert completed.json()["status"] == "completed"


@pytest.mark.unit
@pytest.mark.parametrize("action", ["confirm", "complete"])
def test_staff_actions_require_staff_credentials(
    client: TestClient, staff_credentials: dict[str, str], action: str
) -> None:
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    anonymous = client.post(f"/reservations/{reservation_id}/{action}")
    as_requester = client.post(f"/reservations/{reservation_id}/{action}", headers=ALICE)

    assert anonymous.status_code == 401
    assert anonymous.headers["WWW-Authenticate"].startswith("Basic")
    assert as_requester.status_code == 401
    assert client.get(f"/reservations/{reservation_id}", headers=ALICE).json()["status"] == "pending"


@pytest.mark.unit
def test_staff_actions_refused_without_configured_staff(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("coworking_scheduler.routes._auth.STAFF_USERNAME", "")
    reservation_id = client.post("/reservations", json=payload(), headers=ALICE).json()["id"]

    response = client.post(f"/reservations/{reservation_id}/confirm")

    assert response.status_code == 401

@pytest.mark.unit
def test_request_id_header_is_returned(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
