from typing import Iterable, Set


class VoteTracker:
    """Usernames that voted to skip the current item. Cleared each round."""

    def __init__(self):
        self._voters: Set[str] = set()

    def add(self, username: str) -> bool:
        """Record a vote. Returns False when the user had already voted."""
        if username in self._voters:
            return False
        self._voters.add(username)
        return True

    def size(self) -> int:
        return len(self._voters)

    def clear(self) -> None:
        self._voters.clear()

    def count_among(self, usernames: Iterable[str]) -> int:
        return len(self._voters.intersection(usernames))
