from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta

from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.ports.session_store import SessionStorePort
from booking_assistant.domain.entities.session import Session


class MemorySessionStore(SessionStorePort):
    """
    Sessions held in a dict. With a TTL, idle sessions are swept on save at
    most once per TTL period, so ids that never come back do not pile up.
    """

    def __init__(self, clock: ClockPort, ttl_seconds: int = 0) -> None:
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds > 0 else None
        self._sessions: dict[str, Session] = {}
        self._touched: dict[str, datetime] = {}
        self._last_purge = clock.now()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def get(self, session_id: str) -> Session:
        now = self._clock.now()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and self._is_expired(session_id, now):
                self._logger.info("Session expired", extra={"session_id": session_id, "step": session.step.value})
                del self._sessions[session_id]
                del self._touched[session_id]
                session = None
        if session is None:
            return Session(session_id=session_id, created_at=now, updated_at=now)
        return session

    def save(self, session: Session) -> None:
        now = self._clock.now()
        with self._lock:
            self._sessions[session.session_id] = session
            self._touched[session.session_id] = now
            if self._ttl is not None and now - self._last_purge >= self._ttl:
                removed = self._purge_locked(now)
                if removed:
                    self._logger.info("Purged %d idle sessions", removed)

    def reset(self, session_id: str) -> Session:
        now = self._clock.now()
        session = Session(session_id=session_id, created_at=now, updated_at=now)
        self.save(session)
        return session

    def purge_expired(self) -> int:
        """Drop idle sessions. Returns how many were removed."""
        if self._ttl is None:
            return 0
        with self._lock:
            return self._purge_locked(self._clock.now())

    def _purge_locked(self, now: datetime) -> int:
        self._last_purge = now
        expired = [sid for sid in self._sessions if self._is_expired(sid, now)]
        for sid in expired:
            del self._sessions[sid]
            del self._touched[sid]
        return len(expired)

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _is_expired(self, session_id: str, now: datetime) -> bool:
        if self._ttl is None:
            return False
        return now - self._touched[session_id] > self._ttl
