from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class BookingStep(str, Enum):
    START = "START"
    AWAIT_NAME = "AWAIT_NAME"
    AWAIT_EMAIL = "AWAIT_EMAIL"
    AWAIT_COMPANY = "AWAIT_COMPANY"
    AWAIT_INQUIRY = "AWAIT_INQUIRY"
    AWAIT_DATETIME = "AWAIT_DATETIME"
    AWAIT_DURATION = "AWAIT_DURATION"
    AWAIT_CONFIRMATION = "AWAIT_CONFIRMATION"
    COMPLETE = "COMPLETE"


STEP_ORDER: tuple[BookingStep, ...] = tuple(BookingStep)

# Field written when a step is passed.
STEP_FIELDS: dict[BookingStep, str] = {
    BookingStep.AWAIT_NAME: "name",
    BookingStep.AWAIT_EMAIL: "email",
    BookingStep.AWAIT_COMPANY: "company",
    BookingStep.AWAIT_INQUIRY: "inquiry",
    BookingStep.AWAIT_DATETIME: "date_time",
    BookingStep.AWAIT_DURATION: "duration",
}


def next_step(step: BookingStep) -> BookingStep:
    if step is BookingStep.COMPLETE:
        return step
    return STEP_ORDER[STEP_ORDER.index(step) + 1]


@dataclass(frozen=True)
class BookingFields:
    name: str | None = None
    email: str | None = None
    company: str | None = None
    inquiry: str | None = None
    date_time: datetime | None = None
    duration: int | None = None
    phone: str | None = None

    def without_schedule(self) -> BookingFields:
        """Drop date/time and duration, keeping the identity fields."""
        return replace(self, date_time=None, duration=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "inquiry": self.inquiry,
            "dateTime": self.date_time.isoformat() if self.date_time else None,
            "duration": self.duration,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookingFields:
        date_time = None
        if data.get("dateTime"):
            date_time = datetime.fromisoformat(data["dateTime"])
        return cls(
            name=data.get("name"),
            email=data.get("email"),
            company=data.get("company"),
            inquiry=data.get("inquiry"),
            date_time=date_time,
            duration=data.get("duration"),
            phone=data.get("phone"),
        )


@dataclass(frozen=True)
class Session:
    session_id: str
    created_at: datetime
    updated_at: datetime
    step: BookingStep = BookingStep.START
    fields: BookingFields = field(default_factory=BookingFields)
    booking_id: str | None = None

    @property
    def in_booking_flow(self) -> bool:
        return self.step not in (BookingStep.START, BookingStep.COMPLETE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "step": self.step.value,
            "fields": self.fields.to_dict(),
            "bookingId": self.booking_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(
            session_id=data["sessionId"],
            step=BookingStep(data.get("step", BookingStep.START.value)),
            fields=BookingFields.from_dict(data.get("fields") or {}),
            booking_id=data.get("bookingId"),
            created_at=datetime.fromisoformat(data["createdAt"]),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )
