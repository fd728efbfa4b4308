from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from booking_assistant.application.exceptions import SessionBusyError


class SessionLocks:
    """
    One lock per session id so turns for the same session never interleave,
    while different sessions proceed in parallel. Entries are dropped once no
    request holds or waits on them.
    """

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self._timeout = timeout_seconds
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _acquire_entry(self, session_id: str) -> threading.Lock:
        with self._lock_lock:
            lock, users = self._locks.get(session_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[session_id] = (lock, users + 1)
            return lock

    def _release_entry(self, session_id: str) -> None:
        with self._lock_lock:
            lock, users = self._locks[session_id]
            if users <= 1:
                del self._locks[session_id]
            else:
                self._locks[session_id] = (lock, users - 1)

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        lock = self._acquire_entry(session_id)
        try:
            if not lock.acquire(timeout=self._timeout):
                self._logger.warning("Session lock wait timed out", extra={"session_id": session_id})
                raise SessionBusyError(f"Session {session_id} is busy, retry shortly")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_entry(session_id)

    def active_count(self) -> int:
        with self._lock_lock:
            return len(self._locks)
