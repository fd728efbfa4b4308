from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from booking_assistant.domain.entities.booking import Booking, BookingRequest, BookingStatus


class BookingRepositoryPort(ABC):
    @abstractmethod
    def create(self, request: BookingRequest) -> Booking:
        """
        Persist a new pending booking.

        Raises:
            ValidationError: fields are missing or malformed, or the time is
                outside business hours / in the past.
            ConflictError: the slot overlaps an active booking. Of two
                overlapping concurrent creations at most one succeeds.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, booking_id: str) -> Booking:
        """Raises NotFoundError for unknown ids."""
        raise NotImplementedError

    @abstractmethod
    def set_status(self, booking_id: str, status: BookingStatus) -> Booking:
        """
        Raises:
            NotFoundError: unknown id.
            InvalidStatusTransitionError: change not allowed (cancelled is terminal).
        """
        raise NotImplementedError


class BookingLedgerPort(BookingRepositoryPort):
    """A repository that holds the bookings itself and can be queried by time."""

    @abstractmethod
    def list_bookings(self) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    def find_overlapping(self, start: datetime, end: datetime) -> list[Booking]:
        """Active (non-cancelled) bookings overlapping [start, end)."""
        raise NotImplementedError
