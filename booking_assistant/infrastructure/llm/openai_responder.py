from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import datetime, timedelta

from openai import OpenAI

from booking_assistant.application.exceptions import LLMUpstreamError
from booking_assistant.application.ports.chat_responder import ChatResponderPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.core.config import settings
from booking_assistant.infrastructure.clock.system_clock import SystemClock
from booking_assistant.infrastructure.llm.prompts import build_chat_system_prompt

MAX_HISTORY_MESSAGES = 10
MAX_TRACKED_SESSIONS = 1000


class OpenAIChatResponder(ChatResponderPort):
    """
    OpenAI-backed adapter implementing ChatResponderPort.

    Keeps the last few exchanges per session so follow-up questions have
    context. Histories idle longer than the session TTL are dropped, and at
    most `max_sessions` are kept (least recently used go first). Raises:
        LLMUpstreamError: networking/provider failures or an empty completion
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        clock: ClockPort | None = None,
        ttl_seconds: int | None = None,
        max_sessions: int = MAX_TRACKED_SESSIONS,
    ) -> None:
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
        self._clock = clock or SystemClock()
        ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._ttl = timedelta(seconds=ttl) if ttl > 0 else None
        self._max_sessions = max_sessions
        self._system_prompt = build_chat_system_prompt(settings.BUSINESS_NAME, settings.CONTACT_EMAIL)
        self._history: OrderedDict[str, tuple[datetime, list[dict[str, str]]]] = OrderedDict()
        self._history_lock = threading.Lock()

    def respond(self, message: str, session_id: str) -> str:
        now = self._clock.now()
        with self._history_lock:
            self._drop_stale(now)
            _, history = self._history.get(session_id, (now, []))
            history = list(history)

        messages = [{"role": "system", "content": self._system_prompt}, *history, {"role": "user", "content": message}]
        try:
            resp = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL_CHAT,
                messages=messages,
                temperature=settings.OPENAI_TEMPERATURE_CHAT,
                max_tokens=400,
            )
        except Exception as e:
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMUpstreamError("LLM returned empty response text.")

        history.extend(
            [
                {"role": "user", "content": message},
                {"role": "assistant", "content": content},
            ]
        )
        with self._history_lock:
            self._history[session_id] = (now, history[-MAX_HISTORY_MESSAGES:])
            self._history.move_to_end(session_id)
            while len(self._history) > self._max_sessions:
                self._history.popitem(last=False)
        return content

    def tracked_sessions(self) -> int:
        with self._history_lock:
            return len(self._history)

    def _drop_stale(self, now: datetime) -> None:
        # Oldest first, so the scan stops at the first history still in use.
        if self._ttl is None:
            return
        while self._history:
            oldest_id, (touched_at, _) = next(iter(self._history.items()))
            if now - touched_at <= self._ttl:
                return
            del self._history[oldest_id]
