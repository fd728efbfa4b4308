from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from booking_assistant.application.exceptions import StoreUnavailableError
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.ports.session_store import SessionStorePort
from booking_assistant.domain.entities.session import Session

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")
LOCK_STRIPES = 64


class JsonSessionStore(SessionStorePort):
    """One JSON document per session, written atomically through a temp file."""

    def __init__(self, clock: ClockPort, data_dir: str = "./data/sessions", ttl_seconds: int = 0) -> None:
        self._clock = clock
        self._data_dir = Path(data_dir)
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds > 0 else None
        # Fixed pool of locks shared by hash, so the table never grows with the number of sessions.
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]
        self._logger = logging.getLogger(__name__)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot create session directory {self._data_dir}: {e}") from e

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get the lock guarding a session file."""
        return self._locks[hash(session_id) % LOCK_STRIPES]

    def _get_file_path(self, session_id: str) -> Path:
        if _SAFE_ID.match(session_id) and session_id not in (".", ".."):
            name = session_id
        else:
            name = hashlib.sha256(session_id.encode("utf-8")).hexdigest()
        return self._data_dir / f"{name}.json"

    def _load(self, session_id: str) -> dict[str, Any] | None:
        """Load the session document, None if missing. Corrupt files are an error, not an empty session."""
        file_path = self._get_file_path(session_id)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.error("Session file unreadable", extra={"session_id": session_id, "error": str(e)})
            raise StoreUnavailableError(f"Session {session_id} could not be read") from e

    def _write(self, session_id: str, data: dict[str, Any]) -> None:
        file_path = self._get_file_path(session_id)
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            self._logger.error("Session file write failed", extra={"session_id": session_id, "error": str(e)})
            raise StoreUnavailableError(f"Session {session_id} could not be saved") from e

    def get(self, session_id: str) -> Session:
        now = self._clock.now()
        with self._get_lock(session_id):
            data = self._load(session_id)
            if data is None:
                return Session(session_id=session_id, created_at=now, updated_at=now)

            try:
                session = Session.from_dict(data["session"])
                touched_at = datetime.fromisoformat(data["touchedAt"])
            except (KeyError, ValueError, TypeError) as e:
                raise StoreUnavailableError(f"Session {session_id} is corrupted") from e

            if self._ttl is not None and now - touched_at > self._ttl:
                self._logger.info("Session expired", extra={"session_id": session_id, "step": session.step.value})
                self._remove(session_id)
                return Session(session_id=session_id, created_at=now, updated_at=now)
        return session

    def _remove(self, session_id: str) -> None:
        try:
            self._get_file_path(session_id).unlink(missing_ok=True)
        except OSError as e:
            # The document is already treated as expired; a leftover file is read as expired again.
            self._logger.warning("Expired session file not removed", extra={"session_id": session_id, "error": str(e)})

    def save(self, session: Session) -> None:
        data = {
            "session": session.to_dict(),
            "touchedAt": self._clock.now().isoformat(),
            "version": 1,
        }
        with self._get_lock(session.session_id):
            self._write(session.session_id, data)

    def reset(self, session_id: str) -> Session:
        now = self._clock.now()
        session = Session(session_id=session_id, created_at=now, updated_at=now)
        self.save(session)
        return session
