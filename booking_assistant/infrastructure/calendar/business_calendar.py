from __future__ import annotations

from datetime import date, datetime, timedelta

from booking_assistant.application.ports.availability import AvailabilityPort
from booking_assistant.application.ports.booking_repository import BookingLedgerPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.domain.entities.booking import Slot


class BusinessCalendarAvailability(AvailabilityPort):
    """Slots on a fixed grid inside business hours, minus what the repository already holds."""

    def __init__(self, repository: BookingLedgerPort, rules: BookingRules, clock: ClockPort) -> None:
        self._repository = repository
        self._rules = rules
        self._clock = clock

    def get_slots(self, day: date, duration_minutes: int) -> list[Slot]:
        now = self._clock.now()
        if not self._rules.is_business_day(day) or day < now.astimezone(self._rules.timezone).date():
            return []

        opening, closing = self._rules.day_bounds(day)
        length = timedelta(minutes=duration_minutes)
        booked = self._repository.find_overlapping(opening, closing)

        slots: list[Slot] = []
        current = opening
        while current + length <= closing:
            slot_end = current + length
            if current > now and not any(b.overlaps(current, slot_end) for b in booked):
                slots.append(Slot(start=current, end=slot_end, duration=duration_minutes))
            current += timedelta(minutes=self._rules.slot_interval)

        return slots

    def is_open(self, start: datetime, duration_minutes: int) -> bool:
        if self._rules.check_start(start, self._clock.now()):
            return False
        if self._rules.check_window(start, duration_minutes):
            return False
        end = start + timedelta(minutes=duration_minutes)
        return not self._repository.find_overlapping(start, end)
