from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from booking_assistant.domain.entities.booking import BookingRequest

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

MAX_NAME_LENGTH = 100
MAX_COMPANY_LENGTH = 200
MAX_INQUIRY_LENGTH = 1000
MAX_PHONE_LENGTH = 20

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class BookingRules:
    """Business calendar constraints shared by the chat flow, the repository and availability."""

    timezone: ZoneInfo
    open_hour: int = 9
    close_hour: int = 18
    business_days: tuple[int, ...] = (0, 1, 2, 3, 4)
    allowed_durations: tuple[int, ...] = (15, 30, 45, 60)
    default_duration: int = 30
    slot_interval: int = 30

    @property
    def max_duration(self) -> int:
        return max(self.allowed_durations)

    @property
    def days_label(self) -> str:
        days = sorted(self.business_days)
        if days and days == list(range(days[0], days[-1] + 1)) and len(days) > 2:
            return f"{_WEEKDAY_NAMES[days[0]]} to {_WEEKDAY_NAMES[days[-1]]}"
        return ", ".join(_WEEKDAY_NAMES[d] for d in days)

    @property
    def hours_label(self) -> str:
        return f"{self.open_hour:02d}:00 to {self.close_hour:02d}:00 ({self.timezone.key} time)"

    def is_business_day(self, day: date) -> bool:
        return day.weekday() in self.business_days

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        return (
            datetime.combine(day, time(self.open_hour), tzinfo=self.timezone),
            datetime.combine(day, time(self.close_hour), tzinfo=self.timezone),
        )

    def check_start(self, start: datetime, now: datetime) -> str | None:
        if start <= now:
            return "Booking time must be in the future"
        local = start.astimezone(self.timezone)
        if not self.is_business_day(local.date()):
            return f"Bookings are only available {self.days_label}"
        if not (self.open_hour <= local.hour < self.close_hour):
            return f"Bookings are only available between {self.hours_label}"
        return None

    def check_duration(self, minutes: int) -> str | None:
        if minutes <= 0 or minutes > self.max_duration or minutes not in self.allowed_durations:
            options = ", ".join(str(d) for d in self.allowed_durations)
            return f"Duration must be one of: {options} minutes"
        return None

    def check_window(self, start: datetime, minutes: int) -> str | None:
        local = start.astimezone(self.timezone)
        _, closing = self.day_bounds(local.date())
        if local + timedelta(minutes=minutes) > closing:
            return f"Meeting would extend beyond business hours ({self.close_hour:02d}:00 {self.timezone.key} time)"
        return None

    def validate(self, request: BookingRequest, now: datetime) -> list[str]:
        """Return every problem with the request; an empty list means it can be booked."""
        errors: list[str] = []

        for field_name, value, limit in (
            ("name", request.name, MAX_NAME_LENGTH),
            ("email", request.email, None),
            ("company", request.company, MAX_COMPANY_LENGTH),
            ("inquiry", request.inquiry, MAX_INQUIRY_LENGTH),
        ):
            if not value or not str(value).strip():
                errors.append(f"{field_name} is required")
            elif limit is not None and len(value.strip()) > limit:
                errors.append(f"{field_name} must be at most {limit} characters")

        if request.email and request.email.strip() and not EMAIL_PATTERN.match(request.email.strip()):
            errors.append("Invalid email format")

        if request.phone is not None and len(request.phone.strip()) > MAX_PHONE_LENGTH:
            errors.append(f"phone must be at most {MAX_PHONE_LENGTH} characters")

        if request.date_time.tzinfo is None:
            errors.append("dateTime must include a timezone")
            return errors

        duration_error = self.check_duration(request.duration)
        if duration_error:
            errors.append(duration_error)

        start_error = self.check_start(request.date_time, now)
        if start_error:
            errors.append(start_error)
        elif not duration_error:
            window_error = self.check_window(request.date_time, request.duration)
            if window_error:
                errors.append(window_error)

        return errors
