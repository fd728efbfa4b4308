from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime

from booking_assistant.application.exceptions import ConflictError, ValidationError
from booking_assistant.application.ports.availability import AvailabilityPort
from booking_assistant.application.ports.booking_repository import BookingRepositoryPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.ports.field_extractor import FieldExtractorPort
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.application.utils.message_rules import is_affirmative, is_negative, is_restart_request
from booking_assistant.domain.entities.booking import Booking, BookingRequest
from booking_assistant.domain.entities.chat_reply import (
    BOOKING_CONFIRMED,
    BOOKING_FLOW,
    CHAT,
    ChatReply,
    TurnResult,
)
from booking_assistant.domain.entities.session import (
    STEP_FIELDS,
    BookingFields,
    BookingStep,
    Session,
    next_step,
)

MAX_SUGGESTED_SLOTS = 3


class BookingFlowUseCase:
    """
    Drives a session through the fixed collection order:

        START -> AWAIT_NAME -> AWAIT_EMAIL -> AWAIT_COMPANY -> AWAIT_INQUIRY
              -> AWAIT_DATETIME -> AWAIT_DURATION -> AWAIT_CONFIRMATION -> COMPLETE

    Every call returns the reply together with the session to persist; the
    input session is never mutated, so a turn that raises leaves the stored
    state untouched. Bad values and taken slots come back as prompts, never as
    exceptions. Only upstream failures propagate.
    """

    def __init__(
        self,
        extractor: FieldExtractorPort,
        availability: AvailabilityPort,
        repository: BookingRepositoryPort,
        rules: BookingRules,
        clock: ClockPort,
        contact_email: str = "hello@metalogics.io",
    ) -> None:
        self._extractor = extractor
        self._availability = availability
        self._repository = repository
        self._rules = rules
        self._clock = clock
        self._contact_email = contact_email
        self._logger = logging.getLogger(__name__)

    def start(self, session: Session) -> TurnResult:
        now = self._clock.now()
        started = replace(session, step=BookingStep.AWAIT_NAME, fields=BookingFields(), updated_at=now)
        self._log_transition(session, started)
        return self._prompt(started)

    def advance(self, session: Session, message: str) -> TurnResult:
        if session.step is BookingStep.COMPLETE:
            return TurnResult(reply=self._completed_reply(session), session=session)

        if session.step is BookingStep.START:
            return self.start(session)

        if is_restart_request(message):
            self._logger.info("Booking flow restarted", extra={"session_id": session.session_id})
            return self.start(session)

        if session.step is BookingStep.AWAIT_CONFIRMATION:
            return self._process_confirmation(session, message)

        if session.step is BookingStep.AWAIT_DURATION:
            if is_negative(message):
                return self._reschedule(session, "No problem, let's find another time.")
            shortest = min(self._rules.allowed_durations)
            if not self._availability.is_open(session.fields.date_time, shortest):
                self._logger.info("Chosen start closed before duration", extra={"session_id": session.session_id})
                return self._reschedule(session, "Sorry, that slot has just been taken.")

        now = self._clock.now()
        step = session.step
        extraction = self._extractor.extract(step, message, now)
        if not extraction.valid:
            return self._reprompt(session, extraction.reason or "")

        rule_error = self._check_rules(session, step, extraction.value, now)
        if rule_error:
            return self._reprompt(session, rule_error)

        fields = replace(session.fields, **{STEP_FIELDS[step]: extraction.value})
        updated = replace(session, step=next_step(step), fields=fields, updated_at=now)
        self._log_transition(session, updated)
        return self._prompt(updated)

    def _check_rules(self, session: Session, step: BookingStep, value, now: datetime) -> str | None:
        if step is BookingStep.AWAIT_DATETIME:
            error = self._rules.check_start(value, now)
            if error:
                return error
            shortest = min(self._rules.allowed_durations)
            error = self._rules.check_window(value, shortest)
            if error:
                return error
            if not self._availability.is_open(value, shortest):
                return "That time is already taken. " + self._suggest_slots(self._local_day(value), shortest)
            return None

        if step is BookingStep.AWAIT_DURATION:
            error = self._rules.check_duration(value)
            if error:
                return error
            start = session.fields.date_time
            error = self._rules.check_window(start, value)
            if error:
                return error
            if not self._availability.is_open(start, value):
                return (
                    f"A {value}-minute meeting at that time overlaps another booking. "
                    + self._suggest_slots(self._local_day(start), value)
                    + ' Choose a shorter meeting, or say "no" to pick another time.'
                )
        return None

    def _process_confirmation(self, session: Session, message: str) -> TurnResult:
        if is_affirmative(message):
            return self._confirm_booking(session)

        if is_negative(message):
            return self._reschedule(session, "No problem, let's find another time.")

        return TurnResult(
            reply=self._reply(
                session,
                "Please reply \"yes\" to confirm the booking or \"no\" to choose another time.\n\n"
                + self._summary(session.fields),
            ),
            session=session,
        )

    def _confirm_booking(self, session: Session) -> TurnResult:
        fields = session.fields
        request = BookingRequest(
            name=fields.name or "",
            email=fields.email or "",
            company=fields.company or "",
            inquiry=fields.inquiry or "",
            date_time=fields.date_time,
            duration=fields.duration or self._rules.default_duration,
            phone=fields.phone,
        )

        if not self._availability.is_open(request.date_time, request.duration):
            self._logger.info("Slot closed before confirmation", extra={"session_id": session.session_id})
            return self._reschedule(session, "Sorry, that slot has just been taken.")

        try:
            booking = self._repository.create(request)
        except ConflictError as e:
            self._logger.info(
                "Booking conflict at confirmation",
                extra={"session_id": session.session_id, "reason": str(e)},
            )
            return self._reschedule(session, "Sorry, that slot has just been taken.")
        except ValidationError as e:
            self._logger.warning(
                "Booking rejected at confirmation",
                extra={"session_id": session.session_id, "reason": str(e)},
            )
            return self._reschedule(session, f"I couldn't book that time: {'; '.join(e.errors)}.")

        completed = replace(
            session,
            step=BookingStep.COMPLETE,
            booking_id=booking.id,
            updated_at=self._clock.now(),
        )
        self._log_transition(session, completed)
        self._logger.info(
            "Booking confirmed",
            extra={"session_id": session.session_id, "booking_id": booking.id, "status": booking.status.value},
        )
        return TurnResult(
            reply=ChatReply(
                type=BOOKING_CONFIRMED,
                message=self._confirmation_message(booking),
                step=completed.step.value,
                is_complete=True,
                booking_id=booking.id,
                data={**completed.fields.to_dict(), "status": booking.status.value},
            ),
            session=completed,
        )

    def _reschedule(self, session: Session, lead: str) -> TurnResult:
        """Back to AWAIT_DATETIME keeping name, email, company and inquiry."""
        updated = replace(
            session,
            step=BookingStep.AWAIT_DATETIME,
            fields=session.fields.without_schedule(),
            updated_at=self._clock.now(),
        )
        self._log_transition(session, updated)
        return TurnResult(reply=self._reply(updated, f"{lead} {self._step_prompt(updated)}"), session=updated)

    def _reprompt(self, session: Session, reason: str) -> TurnResult:
        self._logger.info(
            "Field rejected",
            extra={"session_id": session.session_id, "step": session.step.value, "reason": reason},
        )
        return TurnResult(reply=self._reply(session, f"{reason} {self._retry_prompt(session)}"), session=session)

    def _prompt(self, session: Session) -> TurnResult:
        return TurnResult(reply=self._reply(session, self._step_prompt(session)), session=session)

    def _reply(self, session: Session, message: str) -> ChatReply:
        return ChatReply(
            type=BOOKING_FLOW,
            message=message.strip(),
            step=session.step.value,
            is_complete=False,
            data=session.fields.to_dict(),
        )

    def _completed_reply(self, session: Session) -> ChatReply:
        return ChatReply(
            type=CHAT,
            message=(
                f"Your booking ({session.booking_id}) is already confirmed. "
                f"To change it, please contact us at {self._contact_email}."
            ),
            step=session.step.value,
            is_complete=True,
            booking_id=session.booking_id,
        )

    def _step_prompt(self, session: Session) -> str:
        fields = session.fields
        step = session.step
        if step is BookingStep.AWAIT_NAME:
            return "I'd be happy to help you schedule a consultation! To get started, could you please tell me your full name?"
        if step is BookingStep.AWAIT_EMAIL:
            return f"Thank you, {fields.name}! What's the best email address to reach you at?"
        if step is BookingStep.AWAIT_COMPANY:
            return "Great! What's the name of your company or organization?"
        if step is BookingStep.AWAIT_INQUIRY:
            return (
                "Perfect! Could you tell me a bit about your project or what service you're interested in? "
                "This will help us prepare for our conversation."
            )
        if step is BookingStep.AWAIT_DATETIME:
            return (
                "When would you prefer to have this consultation? Please let me know your preferred date and time. "
                f"We're available {self._rules.days_label}, {self._rules.hours_label}."
            )
        if step is BookingStep.AWAIT_DURATION:
            return f"How long would you like the meeting to be? We offer {self._durations_label()}-minute consultations."
        if step is BookingStep.AWAIT_CONFIRMATION:
            return self._summary(fields) + "\n\nDoes this look correct? Reply \"yes\" to confirm or \"no\" to pick another time."
        return ""

    def _retry_prompt(self, session: Session) -> str:
        step = session.step
        if step is BookingStep.AWAIT_NAME:
            return "Could you please provide your first and last name?"
        if step is BookingStep.AWAIT_EMAIL:
            return "Could you please provide a valid email address?"
        if step is BookingStep.AWAIT_COMPANY:
            return "What's the name of your company? If you're an individual, just say 'Personal'."
        if step is BookingStep.AWAIT_INQUIRY:
            return "Could you tell me more about your project? For example: website development, mobile app or SEO."
        if step is BookingStep.AWAIT_DATETIME:
            return f"Please choose a date and time {self._rules.days_label}, {self._rules.hours_label}."
        if step is BookingStep.AWAIT_DURATION:
            return f"Please choose from: {self._durations_label()} minutes."
        return ""

    def _summary(self, fields: BookingFields) -> str:
        local = fields.date_time.astimezone(self._rules.timezone) if fields.date_time else None
        lines = [
            "Let me confirm your booking details:",
            f"- Name: {fields.name}",
            f"- Email: {fields.email}",
            f"- Company: {fields.company}",
            f"- Project/Inquiry: {fields.inquiry}",
        ]
        if local is not None:
            lines.append(f"- Date: {local.strftime('%A, %d %B %Y')}")
            lines.append(f"- Time: {local.strftime('%H:%M')} ({self._rules.timezone.key})")
        lines.append(f"- Duration: {fields.duration} minutes")
        return "\n".join(lines)

    def _confirmation_message(self, booking: Booking) -> str:
        local = booking.date_time.astimezone(self._rules.timezone)
        return (
            "Booking confirmed! Your consultation has been scheduled.\n\n"
            f"Booking ID: {booking.id}\n"
            f"Date & Time: {local.strftime('%A, %d %B %Y %H:%M')} ({self._rules.timezone.key})\n"
            f"Duration: {booking.duration} minutes\n\n"
            f"You'll receive a calendar invitation at {booking.email}. "
            f"If you need to make any changes, contact us at {self._contact_email}."
        )

    def _suggest_slots(self, day: date, duration: int) -> str:
        slots = self._availability.get_slots(day, duration)[:MAX_SUGGESTED_SLOTS]
        if not slots:
            return "There are no free slots left that day."
        times = ", ".join(slot.start.astimezone(self._rules.timezone).strftime("%H:%M") for slot in slots)
        return f"Free times that day: {times}."

    def _durations_label(self) -> str:
        durations = [str(d) for d in self._rules.allowed_durations]
        if len(durations) == 1:
            return durations[0]
        return ", ".join(durations[:-1]) + f" or {durations[-1]}"

    def _local_day(self, value: datetime) -> date:
        return value.astimezone(self._rules.timezone).date()

    def _log_transition(self, before: Session, after: Session) -> None:
        self._logger.info(
            "Booking step %s -> %s",
            before.step.value,
            after.step.value,
            extra={"session_id": after.session_id, "step": after.step.value},
        )
