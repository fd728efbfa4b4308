from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any

from booking_assistant.domain.entities.booking import BookingStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequestSchema(CamelModel):
    message: str = Field(min_length=1, max_length=1000)
    session_id: str = Field("default", alias="sessionId", min_length=1, max_length=100)

    @field_validator("message", "session_id", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class ChatReplySchema(CamelModel):
    type: str
    message: str
    step: str | None = None
    is_complete: bool | None = Field(None, alias="isComplete")
    booking_id: str | None = Field(None, alias="bookingId")
    data: dict[str, Any] | None = None


class ChatResponseSchema(CamelModel):
    success: bool = True
    response: ChatReplySchema
    timestamp: datetime = Field(default_factory=utc_now)


class ClearContextRequestSchema(CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1, max_length=100)


class MessageResponseSchema(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=utc_now)


class SessionContextSchema(CamelModel):
    session_id: str = Field(alias="sessionId")
    step: str
    collected: dict[str, Any] = Field(alias="fields")
    booking_id: str | None = Field(None, alias="bookingId")
    has_active_booking: bool = Field(alias="hasActiveBooking")
    updated_at: datetime = Field(alias="updatedAt")


class SessionContextResponseSchema(CamelModel):
    success: bool = True
    data: SessionContextSchema
    timestamp: datetime = Field(default_factory=utc_now)


class BookingCreateSchema(CamelModel):
    # Lengths and business rules are checked by the booking rules so callers get the full error list.
    name: str
    email: str
    company: str
    inquiry: str
    date_time: datetime = Field(alias="dateTime")
    duration: int
    phone: str | None = None


class StatusUpdateSchema(CamelModel):
    status: BookingStatus


class BookingSchema(CamelModel):
    id: str
    name: str
    email: str
    company: str
    inquiry: str
    phone: str | None = None
    date_time: datetime = Field(alias="dateTime")
    duration: int
    status: BookingStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class BookingDataSchema(CamelModel):
    booking: BookingSchema


class BookingResponseSchema(CamelModel):
    success: bool = True
    data: BookingDataSchema
    message: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class SlotSchema(CamelModel):
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    duration: int


class AvailabilityDataSchema(CamelModel):
    date: str
    duration: int
    available_slots: list[SlotSchema] = Field(alias="availableSlots")
    total_slots: int = Field(alias="totalSlots")
    business_hours: str = Field(alias="businessHours")


class AvailabilityResponseSchema(CamelModel):
    success: bool = True
    data: AvailabilityDataSchema
    timestamp: datetime = Field(default_factory=utc_now)
