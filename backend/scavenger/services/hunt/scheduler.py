import logging
import threading
import time
from typing import Callable, List, Optional, Set


class RoundTimers:
    """Delayed round transitions, at most one per round id.

    With a ``spawn`` function (``socketio.start_background_task``) each timer
    sleeps in its own background task. Without one, timers queue up and only
    fire on ``run_pending()``; tests use that to step through intermissions.

    ``cancel_all()`` invalidates every timer scheduled so far: a cancelled
    timer that wakes up later logs ``[timer-abort]`` and does nothing.
    """

    def __init__(self, spawn: Optional[Callable] = None, sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self._spawn = spawn
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._scheduled: Set[int] = set()
        self._queued: List[Callable[[], None]] = []
        self._generation = 0

    def schedule(self, round_id: int, reason: str, delay: float, callback: Callable[[int], None]) -> bool:
        """Call ``callback(round_id)`` after ``delay`` seconds.

        Returns False if a timer for this round is already pending.
        """
        with self._lock:
            if round_id in self._scheduled:
                self.logger.info(f"[timer-skip] round={round_id} reason={reason} already scheduled")
                return False
            self._scheduled.add(round_id)
            generation = self._generation

        self.logger.info(f"[timer-set] round={round_id} reason={reason} delay={delay}s")

        def _worker(sleep_first=True):
            if sleep_first and delay > 0:
                self._sleep(delay)
            with self._lock:
                self._scheduled.discard(round_id)
                stale = generation != self._generation
            if stale:
                self.logger.info(f"[timer-abort] round={round_id} reason={reason} cancelled")
                return
            self.logger.info(f"[timer-fire] round={round_id} reason={reason}")
            callback(round_id)

        if self._spawn is None:
            with self._lock:
                self._queued.append(lambda: _worker(sleep_first=False))
        else:
            self._spawn(_worker)
        return True

    def run_pending(self) -> int:
        """Fire queued timers immediately, ignoring their delay."""
        with self._lock:
            queued, self._queued = self._queued, []
        for fire in queued:
            fire()
        return len(queued)

    def pending(self) -> int:
        with self._lock:
            return len(self._scheduled)

    def cancel_all(self) -> None:
        with self._lock:
            self._generation += 1
            self._scheduled.clear()
            self._queued.clear()
