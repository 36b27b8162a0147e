from typing import Dict, List, Optional


class PresenceRegistry:
    """Maps socket connection ids to usernames.

    A username may be connected from several tabs at once; presence
    listings are deduplicated by username, in order of first connection.
    """

    def __init__(self):
        self._by_sid: Dict[str, str] = {}

    def register(self, connection_id: str, username: str) -> None:
        self._by_sid[connection_id] = username

    def unregister(self, connection_id: str) -> Optional[str]:
        return self._by_sid.pop(connection_id, None)

    def username_for(self, connection_id: str) -> Optional[str]:
        return self._by_sid.get(connection_id)

    def distinct_usernames(self) -> List[str]:
        return list(dict.fromkeys(self._by_sid.values()))
