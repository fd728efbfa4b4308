from datetime import date

from fastapi import APIRouter, Depends, Query

from booking_assistant.api.dependencies import rate_limited, require_api_key
from booking_assistant.api.v1.schemas import (
    AvailabilityDataSchema,
    AvailabilityResponseSchema,
    BookingCreateSchema,
    BookingDataSchema,
    BookingResponseSchema,
    BookingSchema,
    SlotSchema,
    StatusUpdateSchema,
)
from booking_assistant.application.exceptions import ValidationError
from booking_assistant.application.use_cases.manage_bookings import ManageBookingsUseCase
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.application.utils.rate_limiter import AVAILABILITY_SCOPE, BOOKING_SCOPE, GENERAL_SCOPE
from booking_assistant.domain.entities.booking import Booking, BookingRequest
from booking_assistant.wiring.dependencies import get_manage_bookings_use_case, get_rules

router = APIRouter(prefix="/api/booking", dependencies=[Depends(require_api_key)])


def _booking_response(booking: Booking, message: str | None = None) -> BookingResponseSchema:
    return BookingResponseSchema(
        data=BookingDataSchema(booking=BookingSchema.model_validate(booking.to_dict())),
        message=message,
    )


@router.post(
    "",
    response_model=BookingResponseSchema,
    status_code=201,
    dependencies=[Depends(rate_limited(BOOKING_SCOPE))],
)
def create_booking(
    req: BookingCreateSchema,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
):
    booking = uc.create(
        BookingRequest(
            name=req.name,
            email=req.email,
            company=req.company,
            inquiry=req.inquiry,
            date_time=req.date_time,
            duration=req.duration,
            phone=req.phone,
        )
    )
    return _booking_response(booking, "Booking created successfully")


# Declared before /{booking_id} so "availability" is not taken for an id.
@router.get(
    "/availability",
    response_model=AvailabilityResponseSchema,
    dependencies=[Depends(rate_limited(AVAILABILITY_SCOPE))],
)
def availability(
    day: str = Query(alias="date"),
    duration: int | None = Query(None),
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
    rules: BookingRules = Depends(get_rules),
):
    try:
        requested = date.fromisoformat(day)
    except ValueError:
        raise ValidationError(["Date must be in YYYY-MM-DD format"])

    minutes = duration or rules.default_duration
    slots = uc.availability(requested, minutes)
    return AvailabilityResponseSchema(
        data=AvailabilityDataSchema(
            date=requested.isoformat(),
            duration=minutes,
            available_slots=[SlotSchema(start_time=s.start, end_time=s.end, duration=s.duration) for s in slots],
            total_slots=len(slots),
            business_hours=f"{rules.hours_label}, {rules.days_label}",
        )
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponseSchema,
    dependencies=[Depends(rate_limited(GENERAL_SCOPE))],
)
def get_booking(
    booking_id: str,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
):
    return _booking_response(uc.get(booking_id))


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponseSchema,
    dependencies=[Depends(rate_limited(GENERAL_SCOPE))],
)
def update_status(
    booking_id: str,
    req: StatusUpdateSchema,
    uc: ManageBookingsUseCase = Depends(get_manage_bookings_use_case),
):
    booking = uc.set_status(booking_id, req.status)
    return _booking_response(booking, f"Booking status updated to {booking.status.value}")
