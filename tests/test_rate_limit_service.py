from datetime import timedelta

from models.user_session import UserSession, utc_now
from services.rate_limit_service import RateLimitService


def _session(message_count, seconds_ago=0):
    return UserSession(
        sender_id="user-1",
        current_node_id="A",
        last_interaction=utc_now() - timedelta(seconds=seconds_ago),
        message_count=message_count
    )


def test_allows_below_limit(log_util):
    limiter = RateLimitService(log_util=log_util)
    assert limiter.allow(_session(19)) is True


def test_rejects_at_limit(log_util):
    limiter = RateLimitService(log_util=log_util)
    assert limiter.allow(_session(20)) is False


def test_does_not_change_count_inside_window(log_util):
    limiter = RateLimitService(log_util=log_util)
    session = _session(7, seconds_ago=30)

    limiter.allow(session)

    assert session.message_count == 7


def test_resets_count_after_window(log_util):
    limiter = RateLimitService(log_util=log_util)
    session = _session(500, seconds_ago=61)

    assert limiter.allow(session) is True
    assert session.message_count == 0


def test_custom_limits(log_util):
    limiter = RateLimitService(log_util=log_util, window_seconds=10, max_messages_per_window=2)

    assert limiter.allow(_session(1)) is True
    assert limiter.allow(_session(2)) is False
    assert limiter.allow(_session(2, seconds_ago=11)) is True
