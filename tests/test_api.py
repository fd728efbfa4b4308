from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from booking_assistant.application.exceptions import SessionBusyError, StoreUnavailableError, UpstreamTimeoutError
from booking_assistant.application.utils.rate_limiter import BOOKING_SCOPE, CHAT_SCOPE, RateLimit, RateLimiter
from booking_assistant.core.config import settings
from booking_assistant.main import app
from booking_assistant.wiring.dependencies import (
    get_handle_chat_use_case,
    get_manage_bookings_use_case,
    get_rate_limiter,
    get_rules,
    rate_limits_from_settings,
)

BOOKING_PAYLOAD = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "company": "Acme Ltd",
    "inquiry": "A new website",
    "dateTime": "2026-10-20T14:00:00+01:00",
    "duration": 30,
}


@pytest.fixture
def client(chat_handler, manage_bookings, rules):
    app.dependency_overrides[get_handle_chat_use_case] = lambda: chat_handler
    app.dependency_overrides[get_manage_bookings_use_case] = lambda: manage_bookings
    app.dependency_overrides[get_rules] = lambda: rules
    limiter = RateLimiter(rate_limits_from_settings())
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_chat_starts_booking_flow(client):
    response = client.post("/api/chat", json={"sessionId": "web-1", "message": "I'd like to book a meeting"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["response"]["type"] == "booking_flow"
    assert body["response"]["step"] == "AWAIT_NAME"
    assert body["response"]["isComplete"] is False
    assert "timestamp" in body


def test_chat_rejects_empty_message(client):
    response = client.post("/api/chat", json={"sessionId": "web-1", "message": "   "})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["retryable"] is False


def test_context_snapshot_and_clear(client):
    client.post("/api/chat", json={"sessionId": "web-1", "message": "book a consultation"})
    client.post("/api/chat", json={"sessionId": "web-1", "message": "Jane Doe"})

    snapshot = client.get("/api/chat/context/web-1").json()["data"]
    assert snapshot["step"] == "AWAIT_EMAIL"
    assert snapshot["fields"]["name"] == "Jane Doe"
    assert snapshot["hasActiveBooking"] is True

    cleared = client.post("/api/chat/context/clear", json={"sessionId": "web-1"})
    assert cleared.status_code == 200

    snapshot = client.get("/api/chat/context/web-1").json()["data"]
    assert snapshot["step"] == "START"
    assert snapshot["hasActiveBooking"] is False


def test_context_rejects_long_session_id(client):
    response = client.get("/api/chat/context/" + "x" * 101)

    assert response.status_code == 400


def test_booking_crud(client):
    created = client.post("/api/booking", json=BOOKING_PAYLOAD)
    assert created.status_code == 201
    booking = created.json()["data"]["booking"]
    assert booking["status"] == "pending"

    fetched = client.get(f"/api/booking/{booking['id']}")
    assert fetched.status_code == 200
    fetched_booking = fetched.json()["data"]["booking"]
    assert datetime.fromisoformat(fetched_booking["dateTime"]) == datetime.fromisoformat(BOOKING_PAYLOAD["dateTime"])
    assert fetched_booking["duration"] == 30

    cancelled = client.put(f"/api/booking/{booking['id']}/status", json={"status": "cancelled"})
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["booking"]["status"] == "cancelled"

    reopened = client.put(f"/api/booking/{booking['id']}/status", json={"status": "confirmed"})
    assert reopened.status_code == 409
    assert reopened.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"


def test_booking_conflict(client):
    assert client.post("/api/booking", json=BOOKING_PAYLOAD).status_code == 201

    response = client.post("/api/booking", json=BOOKING_PAYLOAD)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "BOOKING_CONFLICT"


def test_booking_validation_lists_every_problem(client):
    payload = {**BOOKING_PAYLOAD, "email": "nope", "dateTime": "2026-10-24T10:00:00+01:00"}
    response = client.post("/api/booking", json=payload)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "Invalid email format" in error["details"]
    assert any("Monday to Friday" in d for d in error["details"])


def test_unknown_booking_is_404(client):
    response = client.get("/api/booking/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"


def test_invalid_status_value_is_400(client):
    created = client.post("/api/booking", json=BOOKING_PAYLOAD).json()["data"]["booking"]

    response = client.put(f"/api/booking/{created['id']}/status", json={"status": "archived"})

    assert response.status_code == 400


def test_availability(client):
    response = client.get("/api/booking/availability", params={"date": "2026-10-20", "duration": 30})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalSlots"] == 18
    assert data["availableSlots"][0]["duration"] == 30


def test_availability_rejects_bad_date(client):
    response = client.get("/api/booking/availability", params={"date": "20-10-2026"})

    assert response.status_code == 400


def test_short_api_key_is_rejected(client):
    response = client.post(
        "/api/chat",
        json={"sessionId": "web-1", "message": "hi"},
        headers={"x-api-key": "short"},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_API_KEY"


def test_unknown_api_key_is_rejected_in_production(client, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")
    monkeypatch.setattr(settings, "WIDGET_API_KEYS", ["widget-key-0001"])

    rejected = client.post("/api/chat?apiKey=widget-key-9999", json={"message": "hi"})
    accepted = client.post("/api/chat", json={"message": "hi"}, headers={"x-api-key": "widget-key-0001"})
    public = client.post("/api/chat", json={"message": "hi"})

    assert rejected.status_code == 401
    assert rejected.json()["error"]["code"] == "UNAUTHORIZED"
    assert accepted.status_code == 200
    assert public.status_code == 200


def test_unknown_api_key_is_accepted_in_dev(client, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "dev")
    monkeypatch.setattr(settings, "WIDGET_API_KEYS", [])

    response = client.post("/api/chat", json={"message": "hi"}, headers={"x-api-key": "any-long-key-123"})

    assert response.status_code == 200


class RaisingChatUseCase:
    def __init__(self, error: Exception) -> None:
        self._error = error

    def handle(self, session_id: str, message: str):
        raise self._error


@pytest.mark.parametrize(
    "error,status,retryable",
    [
        (SessionBusyError("busy"), 429, True),
        (UpstreamTimeoutError("slow"), 504, True),
        (StoreUnavailableError("disk"), 503, False),
    ],
)
def test_errors_map_to_status_codes(client, error, status, retryable):
    app.dependency_overrides[get_handle_chat_use_case] = lambda: RaisingChatUseCase(error)

    response = client.post("/api/chat", json={"sessionId": "web-1", "message": "hello"})

    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == error.code
    assert body["error"]["retryable"] is retryable


def test_chat_rate_limit_returns_429(client):
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(2, 300, "Too many chat requests, please slow down")})
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    statuses = [client.post("/api/chat", json={"message": "hi"}).status_code for _ in range(2)]
    limited = client.post("/api/chat", json={"message": "hi"})

    assert statuses == [200, 200]
    assert limited.status_code == 429
    error = limited.json()["error"]
    assert error["code"] == "RATE_LIMIT_EXCEEDED"
    assert error["message"] == "Too many chat requests, please slow down"
    assert error["retryable"] is True
    assert 0 < error["retryAfter"] <= 300
    assert limited.headers["Retry-After"] == str(error["retryAfter"])


def test_booking_rate_limit_only_counts_creations(client):
    limiter = RateLimiter({BOOKING_SCOPE: RateLimit(1, 3600)})
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    assert client.post("/api/booking", json=BOOKING_PAYLOAD).status_code == 201
    assert client.get("/api/booking/availability", params={"date": "2026-10-20"}).status_code == 200

    second = client.post("/api/booking", json={**BOOKING_PAYLOAD, "dateTime": "2026-10-20T15:00:00+01:00"})
    assert second.status_code == 429
    assert second.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


def test_health_is_not_rate_limited(client):
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter({CHAT_SCOPE: RateLimit(1, 300)})

    assert all(client.get("/health").status_code == 200 for _ in range(3))
