from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta

from booking_assistant.application.exceptions import (
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    UpstreamTimeoutError,
    ValidationError,
)
from booking_assistant.application.ports.booking_repository import BookingLedgerPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.domain.entities.booking import (
    STATUS_TRANSITIONS,
    Booking,
    BookingRequest,
    BookingStatus,
)


class MemoryBookingRepository(BookingLedgerPort):
    """
    Process-local booking storage.

    The overlap check and the insert happen under one lock, so of two
    overlapping creations racing for the same slot exactly one is stored and
    the other gets ConflictError.
    """

    def __init__(self, rules: BookingRules, clock: ClockPort, lock_timeout: float = 10.0) -> None:
        self._rules = rules
        self._clock = clock
        self._lock_timeout = lock_timeout
        self._bookings: dict[str, Booking] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise UpstreamTimeoutError("Booking storage is busy, retry shortly")
        try:
            yield
        finally:
            self._lock.release()

    def create(self, request: BookingRequest) -> Booking:
        now = self._clock.now()
        errors = self._rules.validate(request, now)
        if errors:
            raise ValidationError(errors)

        start = request.date_time
        end = start + timedelta(minutes=request.duration)
        with self._locked():
            clashes = self._overlapping(start, end)
            if clashes:
                self._logger.info(
                    "Booking conflict",
                    extra={"booking_id": clashes[0].id, "reason": "slot already booked"},
                )
                raise ConflictError("This time slot is already booked. Please choose a different time.")

            booking = Booking(
                id=str(uuid.uuid4()),
                name=request.name.strip(),
                email=request.email.strip().lower(),
                company=request.company.strip(),
                inquiry=request.inquiry.strip(),
                phone=request.phone.strip() if request.phone else None,
                date_time=start,
                duration=request.duration,
                status=BookingStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self._bookings[booking.id] = booking

        self._logger.info("Booking stored", extra={"booking_id": booking.id, "status": booking.status.value})
        return booking

    def get(self, booking_id: str) -> Booking:
        with self._locked():
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def set_status(self, booking_id: str, status: BookingStatus) -> Booking:
        with self._locked():
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if booking.status is status:
                return booking
            if status not in STATUS_TRANSITIONS[booking.status]:
                raise InvalidStatusTransitionError(
                    f"Cannot change booking status from {booking.status.value} to {status.value}"
                )
            updated = replace(booking, status=status, updated_at=self._clock.now())
            self._bookings[booking_id] = updated
        return updated

    def list_bookings(self) -> list[Booking]:
        with self._locked():
            bookings = list(self._bookings.values())
        return sorted(bookings, key=lambda b: b.date_time)

    def find_overlapping(self, start: datetime, end: datetime) -> list[Booking]:
        with self._locked():
            return self._overlapping(start, end)

    def _overlapping(self, start: datetime, end: datetime) -> list[Booking]:
        return [
            b
            for b in self._bookings.values()
            if b.status is not BookingStatus.CANCELLED and b.overlaps(start, end)
        ]
