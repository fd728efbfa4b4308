"""
Tests for session persistence in the memory and JSON stores.
"""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime

import pytest

from booking_assistant.application.exceptions import StoreUnavailableError
from booking_assistant.domain.entities.session import BookingFields, BookingStep, Session
from booking_assistant.infrastructure.store.json_store import JsonSessionStore
from booking_assistant.infrastructure.store.memory_store import MemorySessionStore
from conftest import LONDON, NOW


def _in_progress(session_id: str) -> Session:
    return Session(
        session_id=session_id,
        created_at=NOW,
        updated_at=NOW,
        step=BookingStep.AWAIT_DURATION,
        fields=BookingFields(
            name="Jane Doe",
            email="jane@example.com",
            company="Acme Ltd",
            inquiry="New website",
            date_time=datetime(2026, 10, 20, 14, 0, tzinfo=LONDON),
        ),
    )


def test_unknown_session_starts_fresh(session_store):
    session = session_store.get("new-visitor")

    assert session.session_id == "new-visitor"
    assert session.step is BookingStep.START
    assert session.fields == BookingFields()


def test_memory_store_round_trip(session_store):
    session_store.save(_in_progress("s1"))

    assert session_store.get("s1") == _in_progress("s1")


def test_memory_store_expires_idle_sessions(clock):
    store = MemorySessionStore(clock=clock, ttl_seconds=60)
    store.save(_in_progress("s1"))

    clock.advance(seconds=30)
    assert store.get("s1").step is BookingStep.AWAIT_DURATION

    clock.advance(seconds=61)
    assert store.get("s1").step is BookingStep.START


def test_memory_store_without_ttl_keeps_sessions(clock):
    store = MemorySessionStore(clock=clock, ttl_seconds=0)
    store.save(_in_progress("s1"))

    clock.advance(days=30)
    assert store.get("s1").step is BookingStep.AWAIT_DURATION
    assert store.purge_expired() == 0


def test_memory_store_purges_expired(clock):
    store = MemorySessionStore(clock=clock, ttl_seconds=60)
    store.save(_in_progress("old"))
    clock.advance(seconds=30)
    store.save(_in_progress("fresh"))
    clock.advance(seconds=45)

    assert store.purge_expired() == 1
    assert store.get("fresh").step is BookingStep.AWAIT_DURATION


def test_memory_store_sweeps_idle_sessions_on_save(clock):
    store = MemorySessionStore(clock=clock, ttl_seconds=60)
    for n in range(5):
        store.save(_in_progress(f"visitor-{n}"))

    clock.advance(seconds=120)
    store.save(_in_progress("latest"))

    assert store.active_count() == 1
    assert store.get("latest").step is BookingStep.AWAIT_DURATION


def test_reset_replaces_progress(session_store):
    session_store.save(_in_progress("s1"))
    session_store.reset("s1")

    assert session_store.get("s1").step is BookingStep.START


def test_json_store_persistence(tmp_path, clock):
    """State written by one store instance is visible to a new one on the same directory."""
    JsonSessionStore(clock=clock, data_dir=str(tmp_path)).save(_in_progress("s1"))

    retrieved = JsonSessionStore(clock=clock, data_dir=str(tmp_path)).get("s1")

    assert retrieved == _in_progress("s1")
    assert retrieved.fields.date_time.utcoffset() == _in_progress("s1").fields.date_time.utcoffset()


def test_json_store_keeps_booking_id(tmp_path, clock):
    store = JsonSessionStore(clock=clock, data_dir=str(tmp_path))
    completed = replace(_in_progress("s1"), step=BookingStep.COMPLETE, booking_id="b-123")
    store.save(completed)

    assert store.get("s1").booking_id == "b-123"


def test_json_store_expires_idle_sessions(tmp_path, clock):
    store = JsonSessionStore(clock=clock, data_dir=str(tmp_path), ttl_seconds=60)
    store.save(_in_progress("s1"))

    clock.advance(seconds=61)
    assert store.get("s1").step is BookingStep.START
    assert not (tmp_path / "s1.json").exists()


def test_json_store_corrupted_file_raises(tmp_path, clock):
    store = JsonSessionStore(clock=clock, data_dir=str(tmp_path))
    (tmp_path / "s1.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreUnavailableError):
        store.get("s1")


def test_json_store_missing_keys_raise(tmp_path, clock):
    store = JsonSessionStore(clock=clock, data_dir=str(tmp_path))
    (tmp_path / "s1.json").write_text(json.dumps({"session": {}}), encoding="utf-8")

    with pytest.raises(StoreUnavailableError):
        store.get("s1")


def test_json_store_unsafe_ids_stay_inside_data_dir(tmp_path, clock):
    data_dir = tmp_path / "sessions"
    store = JsonSessionStore(clock=clock, data_dir=str(data_dir))
    store.save(_in_progress("../escape"))

    assert not (tmp_path / "escape.json").exists()
    assert len(list(data_dir.glob("*.json"))) == 1
    assert store.get("../escape").step is BookingStep.AWAIT_DURATION


def test_json_store_leaves_no_temp_files(tmp_path, clock):
    store = JsonSessionStore(clock=clock, data_dir=str(tmp_path))
    store.save(_in_progress("s1"))
    store.save(_in_progress("s1"))

    assert [p.name for p in tmp_path.iterdir()] == ["s1.json"]
