from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from booking_assistant.application.exceptions import ValidationError
from booking_assistant.application.ports.availability import AvailabilityPort
from booking_assistant.application.ports.booking_repository import BookingRepositoryPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.domain.entities.booking import Booking, BookingRequest, BookingStatus, Slot


class ManageBookingsUseCase:
    """Direct booking entry points that bypass the chat flow."""

    def __init__(
        self,
        repository: BookingRepositoryPort,
        availability: AvailabilityPort,
        rules: BookingRules,
        clock: ClockPort,
    ) -> None:
        self._repository = repository
        self._availability = availability
        self._rules = rules
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def create(self, request: BookingRequest) -> Booking:
        if request.date_time.tzinfo is None:
            request = replace(request, date_time=request.date_time.replace(tzinfo=self._rules.timezone))
        errors = self._rules.validate(request, self._clock.now())
        if errors:
            self._logger.warning("Booking validation failed", extra={"reason": "; ".join(errors)})
            raise ValidationError(errors)

        booking = self._repository.create(request)
        self._logger.info(
            "Booking created",
            extra={"booking_id": booking.id, "status": booking.status.value},
        )
        return booking

    def get(self, booking_id: str) -> Booking:
        return self._repository.get(booking_id)

    def set_status(self, booking_id: str, status: BookingStatus) -> Booking:
        booking = self._repository.set_status(booking_id, status)
        self._logger.info("Booking status updated", extra={"booking_id": booking_id, "status": status.value})
        return booking

    def availability(self, day: date, duration_minutes: int | None = None) -> list[Slot]:
        duration = duration_minutes or self._rules.default_duration
        errors: list[str] = []
        duration_error = self._rules.check_duration(duration)
        if duration_error:
            errors.append(duration_error)
        if day < self._clock.now().astimezone(self._rules.timezone).date():
            errors.append("Cannot check availability for past dates")
        if errors:
            raise ValidationError(errors)

        if not self._rules.is_business_day(day):
            return []
        return self._availability.get_slots(day, duration)
