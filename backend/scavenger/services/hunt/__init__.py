"""Scavenger hunt domain services: round lifecycle and its collaborators.

This package contains the game logic that HTTP routes and socket handlers
call into. Nothing here imports Flask request state, so the round
coordinator can be driven directly from tests.
"""

from .broadcast import SocketIOChannel
from .classifier import ClassificationGateway, ClassificationResult
from .coordinator import Round, RoundCoordinator, SubmissionOutcome
from .leaderboard import LeaderboardStore
from .presence import PresenceRegistry
from .scheduler import RoundTimers
from .votes import VoteTracker

__all__ = [
    'ClassificationGateway',
    'ClassificationResult',
    'LeaderboardStore',
    'PresenceRegistry',
    'Round',
    'RoundCoordinator',
    'RoundTimers',
    'SocketIOChannel',
    'SubmissionOutcome',
    'VoteTracker',
]
