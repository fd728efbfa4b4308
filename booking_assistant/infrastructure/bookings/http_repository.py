from __future__ import annotations

import logging
from typing import Any

from booking_assistant.application.exceptions import UpstreamError
from booking_assistant.application.ports.booking_repository import BookingRepositoryPort
from booking_assistant.domain.entities.booking import Booking, BookingRequest, BookingStatus
from booking_assistant.infrastructure.bookings.backend_client import BookingBackendClient


class HttpBookingRepository(BookingRepositoryPort):
    """Bookings owned by a remote backend exposing the /api/booking routes."""

    def __init__(self, backend: BookingBackendClient) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    def create(self, request: BookingRequest) -> Booking:
        payload: dict[str, Any] = {
            "name": request.name,
            "email": request.email,
            "company": request.company,
            "inquiry": request.inquiry,
            "dateTime": request.date_time.isoformat(),
            "duration": request.duration,
        }
        if request.phone:
            payload["phone"] = request.phone

        data = self._backend.request("POST", "/api/booking", json=payload)
        booking = _booking_from(data)
        self._logger.info("Remote booking created", extra={"booking_id": booking.id, "status": booking.status.value})
        return booking

    def get(self, booking_id: str) -> Booking:
        data = self._backend.request("GET", f"/api/booking/{booking_id}")
        return _booking_from(data)

    def set_status(self, booking_id: str, status: BookingStatus) -> Booking:
        data = self._backend.request("PUT", f"/api/booking/{booking_id}/status", json={"status": status.value})
        return _booking_from(data)


def _booking_from(data: dict[str, Any]) -> Booking:
    raw = data.get("booking")
    if not isinstance(raw, dict):
        raise UpstreamError("Booking backend response is missing the booking object")
    try:
        return Booking.from_dict(raw)
    except (KeyError, ValueError, TypeError) as e:
        raise UpstreamError(f"Booking backend returned a malformed booking: {e}") from e
