from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime

from booking_assistant.domain.entities.booking import Slot


class AvailabilityPort(ABC):
    @abstractmethod
    def get_slots(self, day: date, duration_minutes: int) -> list[Slot]:
        """Ordered bookable slots for a day. Empty on non-business days."""
        raise NotImplementedError

    @abstractmethod
    def is_open(self, start: datetime, duration_minutes: int) -> bool:
        """Check if the slot starting at `start` is still free."""
        raise NotImplementedError
