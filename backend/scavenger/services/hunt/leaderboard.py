import logging
import threading
import time
from collections import Counter
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from scavenger import db
from scavenger.models import LeaderboardEntry


class LeaderboardStore:
    """Durable username -> score mapping backed by the leaderboard table.

    Only the round coordinator writes here, from the post-win path; HTTP
    readers may call ``read_sorted`` concurrently, so the pending deltas
    and the flush are guarded by the store's own lock. Must be used inside
    an app context.

    A write that keeps failing after ``write_attempts`` tries is not lost:
    the increment stays in ``_pending``, is merged into every board read,
    and is flushed again with the next write. Each username is committed
    on its own, so one unwritable entry never holds back the others.
    """

    def __init__(self, write_attempts: int = 3, retry_delay: float = 0.05,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.write_attempts = max(1, int(write_attempts))
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._pending: Counter = Counter()

    def increment(self, username: str) -> List[Dict]:
        """Add one point for ``username`` and return the updated, sorted board."""
        with self._lock:
            self._pending[username] += 1
            for attempt in range(1, self.write_attempts + 1):
                if not self._flush():
                    break
                if attempt < self.write_attempts:
                    self._sleep(self.retry_delay * attempt)
            if self._pending:
                self.logger.error(
                    f"[leaderboard-fail] pending={dict(self._pending)} kept in memory"
                )
            return self._read_sorted()

    def read_sorted(self) -> List[Dict]:
        """Board sorted by score descending; ties keep arrival order."""
        with self._lock:
            return self._read_sorted()

    def score_of(self, username: str) -> int:
        with self._lock:
            entry = LeaderboardEntry.query.filter_by(username=username).first()
            return (entry.score if entry else 0) + self._pending.get(username, 0)

    def reset(self) -> None:
        with self._lock:
            LeaderboardEntry.query.delete()
            db.session.commit()
            self._pending.clear()

    def _read_sorted(self) -> List[Dict]:
        try:
            entries = LeaderboardEntry.query.order_by(LeaderboardEntry.id).all()
            board = [e.to_dict() for e in entries]
        except SQLAlchemyError as exc:
            db.session.rollback()
            self.logger.error(f"[leaderboard-read-error] {exc}")
            board = []
        if self._pending:
            by_name = {row['username']: row for row in board}
            for username, delta in self._pending.items():
                row = by_name.get(username)
                if row is None:
                    row = {'username': username, 'score': 0}
                    by_name[username] = row
                    board.append(row)
                row['score'] += delta
        return sorted(board, key=lambda row: -row['score'])

    def _flush(self) -> int:
        """Commit each pending delta separately; return how many are left."""
        for username, delta in list(self._pending.items()):
            try:
                entry = LeaderboardEntry.query.filter_by(username=username).first()
                if entry is None:
                    entry = LeaderboardEntry(username=username, score=0)
                entry.score += delta
                db.session.add(entry)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.logger.warning(f"[leaderboard-retry] user={username} delta={delta} error={exc}")
                continue
            del self._pending[username]
        return len(self._pending)
