"""
Attempt deadline timers

Each timed attempt has an explicit deadline timestamp stored with the attempt
and at most one scheduled expiry callback in this process. The callback is a
convenience that submits expired attempts promptly; the authoritative check is
the deadline comparison the session service makes on every mutation.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC timestamp, matching what the database stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AttemptTimerRegistry:
    """Keeps one expiry callback per attempt id"""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now
        self._handles: Dict[str, asyncio.TimerHandle] = {}

    def seconds_until(self, deadline: datetime) -> float:
        return max((deadline - self.clock()).total_seconds(), 0.0)

    def schedule(self, attempt_id: str, deadline: datetime, callback: Callable[[str], None]) -> bool:
        """
        Schedule callback(attempt_id) at the deadline, replacing any earlier timer

        Returns:
            False when no event loop is running in this thread, in which case
            expiry is left to the server-side deadline check
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; timer for attempt {attempt_id} not scheduled")
            return False

        self.cancel(attempt_id)
        delay = self.seconds_until(deadline)
        self._handles[attempt_id] = loop.call_later(delay, self._fire, loop, attempt_id, callback)

        logger.info(
            f"Attempt timer scheduled - Attempt {attempt_id}, fires in {delay:.1f}s",
            extra={
                'event_type': 'attempt_timer_scheduled',
                'attempt_id': attempt_id,
                'delay': delay,
            }
        )
        return True

    def cancel(self, attempt_id: str) -> bool:
        """Cancel the attempt's timer; returns whether one was pending"""
        handle = self._handles.pop(attempt_id, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug(f"Attempt timer cancelled - Attempt {attempt_id}")
        return True

    def cancel_all(self) -> int:
        """Cancel every pending timer (application shutdown)"""
        count = 0
        for attempt_id in list(self._handles):
            if self.cancel(attempt_id):
                count += 1
        return count

    def is_scheduled(self, attempt_id: str) -> bool:
        return attempt_id in self._handles

    def pending_count(self) -> int:
        return len(self._handles)

    def _fire(self, loop: asyncio.AbstractEventLoop, attempt_id: str, callback: Callable[[str], None]) -> None:
        self._handles.pop(attempt_id, None)
        logger.info(
            f"Attempt timer expired - Attempt {attempt_id}",
            extra={'event_type': 'attempt_timer_expired', 'attempt_id': attempt_id}
        )
        # Expiry does blocking database work (row lock, commit); keep it off the loop
        loop.run_in_executor(None, self._run_callback, attempt_id, callback)

    def _run_callback(self, attempt_id: str, callback: Callable[[str], None]) -> None:
        try:
            callback(attempt_id)
        except Exception as e:
            # Runs in a worker thread; there is no caller to propagate to
            logger.error(f"Expiry callback failed for attempt {attempt_id}: {str(e)}", exc_info=True)


# Global instance
attempt_timers = AttemptTimerRegistry()
