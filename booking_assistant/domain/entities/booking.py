from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Allowed status changes; cancelled is terminal.
STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class BookingRequest:
    name: str
    email: str
    company: str
    inquiry: str
    date_time: datetime
    duration: int
    phone: str | None = None


@dataclass(frozen=True)
class Booking:
    id: str
    name: str
    email: str
    company: str
    inquiry: str
    date_time: datetime
    duration: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime
    phone: str | None = None

    @property
    def end_time(self) -> datetime:
        return self.date_time + timedelta(minutes=self.duration)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end_time and end > self.date_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "inquiry": self.inquiry,
            "phone": self.phone,
            "dateTime": self.date_time.isoformat(),
            "duration": self.duration,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Booking:
        created_at = _parse_instant(data.get("createdAt") or data["dateTime"])
        return cls(
            id=str(data["id"]),
            name=data["name"],
            email=data["email"],
            company=data["company"],
            inquiry=data["inquiry"],
            phone=data.get("phone"),
            date_time=_parse_instant(data["dateTime"]),
            duration=int(data["duration"]),
            status=BookingStatus(data.get("status", BookingStatus.PENDING.value)),
            created_at=created_at,
            updated_at=_parse_instant(data["updatedAt"]) if data.get("updatedAt") else created_at,
        )


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "startTime": self.start.isoformat(),
            "endTime": self.end.isoformat(),
            "duration": self.duration,
        }


def _parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
