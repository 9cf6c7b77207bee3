import asyncio
import threading
from typing import Optional, Dict
from datetime import datetime, timedelta

# Utils
from utils.log_utils import LogUtil

# Database
from database.flow_db import FlowDB

# Models
from models.user_session import UserSession, utc_now

"""
In-memory store for user sessions
"""
class SessionDB:
    def __init__(self, log_util: LogUtil, flow_db: FlowDB, session_timeout_seconds: int = 30 * 60):

        # Initialize logger
        self.log_util = log_util

        # Sessions start at the flow's first node
        self.flow_db = flow_db

        self.session_timeout = timedelta(seconds=session_timeout_seconds)

        self._sessions: Dict[str, UserSession] = {}
        self._sender_locks: Dict[str, asyncio.Lock] = {}

        # Thread-safe access to the mappings
        self._lock = threading.Lock()

    def get_or_create(self, sender_id: str) -> UserSession:
        with self._lock:
            session = self._sessions.get(sender_id)
            if session is None:
                session = UserSession(
                    sender_id=sender_id,
                    current_node_id=self.flow_db.first_node_id,
                    last_interaction=utc_now(),
                    message_count=0
                )
                self._sessions[sender_id] = session
                self.log_util.info(service_name="SessionDB", message=f"Created session for sender {sender_id} at node {session.current_node_id}")
            return session

    def get(self, sender_id: str) -> Optional[UserSession]:
        with self._lock:
            return self._sessions.get(sender_id)

    def touch(self, session: UserSession) -> None:
        """
        Record one routed event for the session.
        """
        session.last_interaction = utc_now()
        session.message_count += 1

    def delete(self, sender_id: str) -> bool:
        with self._lock:
            self._sender_locks.pop(sender_id, None)
            return self._sessions.pop(sender_id, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._sender_locks.clear()

    def sender_lock(self, sender_id: str) -> asyncio.Lock:
        """
        Lock serializing event handling for one sender.
        """
        with self._lock:
            lock = self._sender_locks.get(sender_id)
            if lock is None:
                lock = asyncio.Lock()
                self._sender_locks[sender_id] = lock
            return lock

    def remove_expired(self, now: Optional[datetime] = None) -> int:
        """
        Drop sessions idle for longer than the session timeout. Sessions whose
        sender has an event in flight are left for the next sweep.
        Returns the number of sessions removed.
        """
        now = now or utc_now()
        removed = 0
        with self._lock:
            for sender_id, session in list(self._sessions.items()):
                if now - session.last_interaction <= self.session_timeout:
                    continue
                lock = self._sender_locks.get(sender_id)
                if lock is not None and lock.locked():
                    continue
                del self._sessions[sender_id]
                self._sender_locks.pop(sender_id, None)
                removed += 1
        if removed:
            self.log_util.info(service_name="SessionDB", message=f"Removed {removed} expired session(s), {self.count()} active")
        return removed
