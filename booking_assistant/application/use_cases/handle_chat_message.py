from __future__ import annotations

import logging

from booking_assistant.application.exceptions import LLMUpstreamError
from booking_assistant.application.ports.chat_responder import ChatResponderPort
from booking_assistant.application.ports.session_store import SessionStorePort
from booking_assistant.application.use_cases.booking_flow import BookingFlowUseCase
from booking_assistant.application.utils.message_rules import is_booking_request
from booking_assistant.application.utils.session_locks import SessionLocks
from booking_assistant.domain.entities.chat_reply import CHAT, ChatReply, TurnResult
from booking_assistant.domain.entities.session import BookingStep, Session

FALLBACK_REPLY = (
    "I'm here to help you learn about our services and book a consultation with our team. "
    "Just say \"I'd like to book a meeting\" to get started."
)


class HandleChatMessageUseCase:
    """
    Entry point for one chat turn. Serialises turns per session, routes the
    message to the booking flow or the general responder, and saves the
    resulting session only after the turn fully succeeded.
    """

    def __init__(
        self,
        store: SessionStorePort,
        booking_flow: BookingFlowUseCase,
        responder: ChatResponderPort,
        locks: SessionLocks,
    ) -> None:
        self._store = store
        self._booking_flow = booking_flow
        self._responder = responder
        self._locks = locks
        self._logger = logging.getLogger(__name__)

    def handle(self, session_id: str, message: str) -> ChatReply:
        with self._locks.hold(session_id):
            session = self._store.get(session_id)
            result = self._route(session, message)
            self._store.save(result.session)
            self._logger.info(
                "Chat turn handled",
                extra={"session_id": session_id, "step": result.session.step.value, "reason": result.reply.type},
            )
            return result.reply

    def get_session(self, session_id: str) -> Session:
        with self._locks.hold(session_id):
            return self._store.get(session_id)

    def clear(self, session_id: str) -> Session:
        """Explicit restart requested by the caller."""
        with self._locks.hold(session_id):
            session = self._store.reset(session_id)
            self._logger.info("Session context cleared", extra={"session_id": session_id})
            return session

    def _route(self, session: Session, message: str) -> TurnResult:
        if session.in_booking_flow:
            return self._booking_flow.advance(session, message)

        if session.step is BookingStep.START and is_booking_request(message):
            return self._booking_flow.start(session)

        # START without booking intent, or COMPLETE: a general inquiry that
        # never touches the booking flow.
        reply = ChatReply(
            type=CHAT,
            message=self._general_reply(session, message),
            step=session.step.value,
            is_complete=session.step is BookingStep.COMPLETE,
            booking_id=session.booking_id,
        )
        return TurnResult(reply=reply, session=session)

    def _general_reply(self, session: Session, message: str) -> str:
        try:
            text = self._responder.respond(message, session.session_id)
        except LLMUpstreamError as e:
            self._logger.warning("Chat responder failed, using fallback", extra={"error": str(e)})
            return FALLBACK_REPLY
        return text.strip() or FALLBACK_REPLY
