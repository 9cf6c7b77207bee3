import asyncio
from datetime import timedelta

import pytest

from models.user_session import utc_now
from services.session_cleanup_service import SessionCleanupService


def test_new_session_starts_at_first_node(session_db):
    session = session_db.get_or_create("user-1")

    assert session.sender_id == "user-1"
    assert session.current_node_id == "A"
    assert session.message_count == 0
    assert session.context == {}
    assert utc_now() - session.last_interaction < timedelta(seconds=5)


def test_get_or_create_returns_same_session(session_db):
    first = session_db.get_or_create("user-1")
    first.current_node_id = "B"

    assert session_db.get_or_create("user-1") is first
    assert session_db.count() == 1


def test_sessions_are_independent_per_sender(session_db):
    session_db.get_or_create("user-1").current_node_id = "B"
    assert session_db.get_or_create("user-2").current_node_id == "A"


def test_touch_updates_timestamp_and_count(session_db):
    session = session_db.get_or_create("user-1")
    session.last_interaction = utc_now() - timedelta(minutes=10)

    session_db.touch(session)

    assert session.message_count == 1
    assert utc_now() - session.last_interaction < timedelta(seconds=5)


def test_sweep_removes_session_idle_past_timeout(session_db):
    session = session_db.get_or_create("stale")
    session.last_interaction = utc_now() - timedelta(minutes=31)

    removed = session_db.remove_expired()

    assert removed == 1
    assert session_db.get("stale") is None


def test_sweep_keeps_session_touched_at_29_minutes(session_db):
    session = session_db.get_or_create("recent")
    session.last_interaction = utc_now() - timedelta(minutes=29)

    assert session_db.remove_expired() == 0
    assert session_db.get("recent") is session


def test_sweep_only_removes_expired_entries(session_db):
    session_db.get_or_create("stale").last_interaction = utc_now() - timedelta(hours=2)
    session_db.get_or_create("fresh")

    session_db.remove_expired()

    assert session_db.get("stale") is None
    assert session_db.get("fresh") is not None


def test_removed_session_object_stays_usable(session_db):
    session = session_db.get_or_create("user-1")
    session.last_interaction = utc_now() - timedelta(hours=1)
    session_db.remove_expired()

    # A request that already holds the session keeps working on it
    session_db.touch(session)
    assert session.message_count == 1

    # The next event starts over at the first node
    assert session_db.get_or_create("user-1") is not session


def test_sender_lock_is_stable_per_sender(session_db):
    assert session_db.sender_lock("user-1") is session_db.sender_lock("user-1")
    assert session_db.sender_lock("user-1") is not session_db.sender_lock("user-2")


def test_delete_and_clear(session_db):
    session_db.get_or_create("user-1")
    session_db.get_or_create("user-2")

    assert session_db.delete("user-1") is True
    assert session_db.delete("user-1") is False

    session_db.clear()
    assert session_db.count() == 0


def test_cleanup_service_sweep(log_util, session_db):
    session_db.get_or_create("stale").last_interaction = utc_now() - timedelta(minutes=45)
    cleanup = SessionCleanupService(log_util=log_util, session_db=session_db)

    assert cleanup.sweep() == 1
    assert session_db.count() == 0


@pytest.mark.asyncio
async def test_cleanup_service_runs_in_background(log_util, session_db):
    session_db.get_or_create("stale").last_interaction = utc_now() - timedelta(minutes=45)
    cleanup = SessionCleanupService(log_util=log_util, session_db=session_db, check_interval_seconds=0)

    await cleanup.start()
    assert cleanup.is_running
    for _ in range(10):
        await asyncio.sleep(0)
        if session_db.count() == 0:
            break
    await cleanup.stop()

    assert session_db.count() == 0
    assert not cleanup.is_running


@pytest.mark.asyncio
async def test_sweep_skips_session_with_event_in_flight(session_db):
    session = session_db.get_or_create("busy")
    session.last_interaction = utc_now() - timedelta(minutes=45)
    lock = session_db.sender_lock("busy")

    async with lock:
        assert session_db.remove_expired() == 0
        assert session_db.get("busy") is session
        assert session_db.sender_lock("busy") is lock

    # Once the event is done the next sweep evicts it along with its lock
    assert session_db.remove_expired() == 1
    assert session_db.get("busy") is None
    assert session_db.sender_lock("busy") is not lock
