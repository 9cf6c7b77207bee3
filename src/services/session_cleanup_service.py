"""
Session Cleanup Service
Background service that periodically evicts idle user sessions.
"""
import asyncio
import traceback
from typing import Optional
from utils.log_utils import LogUtil
from database.session_db import SessionDB


class SessionCleanupService:
    """
    Background service that sweeps the session store on a fixed interval.
    """

    def __init__(
        self,
        log_util: LogUtil,
        session_db: SessionDB,
        check_interval_seconds: int = 5 * 60
    ):
        self.log_util = log_util
        self.session_db = session_db
        self.check_interval_seconds = check_interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self):
        """
        Start the background sweep task.
        """
        if self._running:
            self.log_util.warning(
                service_name="SessionCleanupService",
                message="Session cleanup is already running"
            )
            return

        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        self.log_util.info(
            service_name="SessionCleanupService",
            message=f"Session cleanup started, sweeping every {self.check_interval_seconds} seconds"
        )

    async def stop(self):
        """
        Stop the background sweep task.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.log_util.info(
            service_name="SessionCleanupService",
            message="Session cleanup stopped"
        )

    async def _cleanup_loop(self):
        while self._running:
            try:
                await asyncio.sleep(self.check_interval_seconds)
                self.sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.log_util.error(
                    service_name="SessionCleanupService",
                    message=f"Error in cleanup loop: {str(e)}"
                )
                self.log_util.error(
                    service_name="SessionCleanupService",
                    message=f"Traceback: {traceback.format_exc()}"
                )

    def sweep(self) -> int:
        """
        Run one eviction pass. Returns the number of sessions removed.
        """
        return self.session_db.remove_expired()
