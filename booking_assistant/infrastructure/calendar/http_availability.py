from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from booking_assistant.application.exceptions import UpstreamError
from booking_assistant.application.ports.availability import AvailabilityPort
from booking_assistant.domain.entities.booking import Slot
from booking_assistant.infrastructure.bookings.backend_client import BookingBackendClient


class HttpAvailabilityService(AvailabilityPort):
    def __init__(self, backend: BookingBackendClient, timezone: ZoneInfo) -> None:
        self._backend = backend
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def get_slots(self, day: date, duration_minutes: int) -> list[Slot]:
        data = self._backend.request(
            "GET",
            "/api/booking/availability",
            params={"date": day.isoformat(), "duration": duration_minutes},
        )

        slots: list[Slot] = []
        for raw in data.get("availableSlots") or []:
            try:
                start = datetime.fromisoformat(str(raw["startTime"]).replace("Z", "+00:00"))
                end = datetime.fromisoformat(str(raw["endTime"]).replace("Z", "+00:00"))
                duration = int(raw.get("duration", duration_minutes))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise UpstreamError(f"Availability response contains a malformed slot: {e}") from e
            slots.append(Slot(start=start, end=end, duration=duration))

        return sorted(slots, key=lambda s: s.start)

    def is_open(self, start: datetime, duration_minutes: int) -> bool:
        # The backend answers per business-local day; the requested start must line up with one of its free slots.
        end = start + timedelta(minutes=duration_minutes)
        day = start.astimezone(self._timezone).date()
        for slot in self.get_slots(day, duration_minutes):
            if slot.start <= start and end <= slot.end:
                return True
        return False
