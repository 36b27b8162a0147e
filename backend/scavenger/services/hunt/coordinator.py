"""Round lifecycle for the shared scavenger hunt.

One coordinator owns the current round, the skip votes and the presence
map. Every mutation goes through its methods and happens under a single
lock; the only thing done outside the lock is the classification call,
which can take seconds. A matching photo therefore re-checks the round
under the lock before it may flip ``active`` off, and only the caller
that performs the flip is the winner.

Lifecycle: start_round -> active -> won | skipped -> timer -> start_round.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from scavenger.items import Item, get_random_item
from . import broadcast as events
from .presence import PresenceRegistry
from .scheduler import RoundTimers
from .votes import VoteTracker

ROUND_NOT_ACTIVE = 'round_not_active'
NOT_MATCHED_MESSAGE = (
    "Not quite right - try a different photo, or angle of it. "
    "The vision service isn't confident that your uploaded item matches {label}."
)


@dataclass
class Round:
    round_id: int
    item: Item
    started_at: int  # epoch ms
    active: bool = True

    def to_dict(self):
        return {
            'item': self.item.to_dict(),
            'roundId': self.round_id,
            'startedAt': self.started_at,
        }


@dataclass
class SubmissionOutcome:
    matched: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    confidence: Optional[float] = None
    winner: Optional[str] = None
    duration_ms: Optional[int] = None
    round_id: Optional[int] = None

    def to_dict(self):
        payload = {'success': True, 'matched': self.matched}
        optional = (
            ('reason', self.reason),
            ('message', self.message),
            ('confidence', self.confidence),
            ('winner', self.winner),
            ('durationMs', self.duration_ms),
        )
        for key, value in optional:
            if value is not None:
                payload[key] = value
        return payload


class RoundCoordinator:
    def __init__(self, gateway, leaderboard, channel, timers: Optional[RoundTimers] = None,
                 presence=None, votes=None, items: Optional[Sequence[Item]] = None,
                 intermission_sec: float = 10, skip_grace_sec: float = 3,
                 clock: Callable[[], float] = time.time, rng=None,
                 logger: Optional[logging.Logger] = None):
        self.gateway = gateway
        self.leaderboard = leaderboard
        self.channel = channel
        self.logger = logger or logging.getLogger(__name__)
        self.timers = timers or RoundTimers(logger=self.logger)
        self.presence = presence or PresenceRegistry()
        self.votes = votes or VoteTracker()
        self.items = list(items) if items else None
        self.intermission_sec = intermission_sec
        self.skip_grace_sec = skip_grace_sec
        self._clock = clock
        self._rng = rng or random
        self._lock = threading.RLock()
        self._round: Optional[Round] = None
        self._last_round_id = 0
        self._room_was_empty = True

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ---- Read side ----

    def snapshot(self) -> Dict:
        """Current round for clients syncing on page load."""
        with self._lock:
            current = self._round
            if current is None:
                return {'item': None, 'roundId': 0, 'startedAt': None, 'active': False}
            payload = current.to_dict()
            payload['active'] = current.active
            return payload

    def online_usernames(self) -> List[str]:
        with self._lock:
            return self.presence.distinct_usernames()

    def username_for(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self.presence.username_for(connection_id)

    def skip_status(self) -> Dict[str, int]:
        with self._lock:
            return self._skip_status(self.presence.distinct_usernames())

    def _skip_status(self, online: List[str]) -> Dict[str, int]:
        # Voters who left no longer count, so votes never exceeds needed
        return {'votes': self.votes.count_among(online), 'needed': len(online)}

    def _emit_skip_status(self, online: List[str]) -> Dict[str, int]:
        status = self._skip_status(online)
        self.channel.emit(events.SKIP_STATUS, status)
        return status

    # ---- Round transitions ----

    def start_round(self) -> Round:
        with self._lock:
            return self._start_round_locked()

    def _start_round_locked(self) -> Round:
        item = get_random_item(self.items, self._rng)
        self._last_round_id += 1
        self._round = Round(self._last_round_id, item, self._now_ms(), True)
        self.votes.clear()
        self._emit_skip_status(self.presence.distinct_usernames())
        self.logger.info(f"[round-start] round={self._round.round_id} item={item.label}")
        self.channel.emit(events.ROUND_STARTED, self._round.to_dict())
        return self._round

    def _start_next_round(self, round_id: int) -> Optional[Round]:
        with self._lock:
            current = self._round
            if current is None or current.round_id != round_id or current.active:
                self.logger.info(
                    f"[timer-abort] round={round_id} is stale (current={current.round_id if current else None})"
                )
                return None
            return self._start_round_locked()

    def submit_photo(self, username: str, target_label: str, image_bytes: bytes) -> SubmissionOutcome:
        with self._lock:
            current = self._round
            if current is None or not current.active:
                self.logger.info(f"[upload-rejected] user={username} round not active")
                return SubmissionOutcome(False, reason=ROUND_NOT_ACTIVE)
            round_id = current.round_id
            label = target_label or current.item.label

        self.logger.info(f"[upload] user={username} round={round_id} label={label!r}")
        result = self.gateway.classify(image_bytes, label)

        if not result.matched:
            return SubmissionOutcome(
                False,
                confidence=result.confidence,
                message=NOT_MATCHED_MESSAGE.format(label=label),
                round_id=round_id,
            )

        with self._lock:
            current = self._round
            if current is None or current.round_id != round_id or not current.active:
                self.logger.info(f"[win-late] user={username} round={round_id} matched after the round closed")
                return SubmissionOutcome(False, reason=ROUND_NOT_ACTIVE, round_id=round_id)
            current.active = False
            duration_ms = self._now_ms() - current.started_at
            self.logger.info(f"[win] round={round_id} user={username} duration_ms={duration_ms}")
            self.timers.schedule(round_id, 'intermission', self.intermission_sec, self._start_next_round)

            board = self.leaderboard.increment(username)
            self.channel.emit(events.LEADERBOARD_UPDATED, board)
            self.channel.emit(events.ROUND_ENDED, {
                'winner': username,
                'item': current.item.to_dict(),
                'durationMs': duration_ms,
                'leaderboard': board,
                'roundId': round_id,
            })

        return SubmissionOutcome(
            True,
            confidence=result.confidence,
            winner=username,
            duration_ms=duration_ms,
            round_id=round_id,
        )

    def vote_skip(self, username: Optional[str]) -> Optional[Dict[str, int]]:
        """Record a skip vote; skip the item once every online user agrees."""
        with self._lock:
            online = self.presence.distinct_usernames()
            if not username or username not in online:
                return None
            self.votes.add(username)
            status = self._emit_skip_status(online)

            current = self._round
            if current is not None and current.active and status['needed'] > 0 \
                    and status['votes'] >= status['needed']:
                current.active = False
                self.logger.info(f"[skip] round={current.round_id} item={current.item.label} votes={status['votes']}")
                self.channel.emit(events.ROUND_SKIPPED, {
                    'item': current.item.to_dict(),
                    'roundId': current.round_id,
                })
                self.timers.schedule(current.round_id, 'skip', self.skip_grace_sec, self._start_next_round)
            return status

    # ---- Presence ----

    def register_player(self, connection_id: str, username: str) -> None:
        with self._lock:
            self.presence.register(connection_id, username)
            self.on_presence_change()

    def unregister_connection(self, connection_id: str) -> Optional[str]:
        with self._lock:
            username = self.presence.unregister(connection_id)
            self.on_presence_change()
            return username

    def on_presence_change(self) -> None:
        with self._lock:
            online = self.presence.distinct_usernames()
            self.channel.emit(events.ONLINE_USERS, online)
            self._emit_skip_status(online)

            room_empty = not online
            if self._room_was_empty and not room_empty and self._round is not None and self._round.active:
                # The clock measures time someone was around to look for the item
                self._round.started_at = self._now_ms()
                self.logger.info(f"[timer-reset] round={self._round.round_id} first player joined")
            self._room_was_empty = room_empty

    def sync_client(self, connection_id: str) -> None:
        with self._lock:
            online = self.presence.distinct_usernames()
            self.channel.emit(events.ONLINE_USERS, online, to=connection_id)
            self.channel.emit(events.SKIP_STATUS, self._skip_status(online), to=connection_id)

    def reset(self) -> None:
        """Cancel pending round timers. Safe to call repeatedly."""
        self.timers.cancel_all()
