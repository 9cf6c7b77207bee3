from datetime import datetime, timedelta
from typing import Optional

# Utils
from utils.log_utils import LogUtil

# Models
from models.user_session import UserSession, utc_now


class RateLimitService:
    """
    Per-user message limit over a fixed window, evaluated against the
    session state before the current event is recorded.
    """

    def __init__(
        self,
        log_util: LogUtil,
        window_seconds: int = 60,
        max_messages_per_window: int = 20
    ):
        self.log_util = log_util
        self.window = timedelta(seconds=window_seconds)
        self.max_messages_per_window = max_messages_per_window

    def allow(self, session: UserSession, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()

        # Window elapsed since the last routed event, start counting again
        if session.last_interaction < now - self.window:
            session.message_count = 0

        allowed = session.message_count < self.max_messages_per_window
        if not allowed:
            self.log_util.warning(
                service_name="RateLimitService",
                message=f"Sender {session.sender_id} exceeded {self.max_messages_per_window} messages per {int(self.window.total_seconds())}s"
            )
        return allowed
