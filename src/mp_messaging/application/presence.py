"""Process-wide presence: user id -> live socket id.

Lifecycle: connect() on handshake, disconnect() on socket close, is_online()
for queries. The map holds ONE connection per user (last-connection-wins):
a second tab overwrites the first tab's sid, and closing either tab marks
the user offline even if the other is still open. It is an approximation of
presence; room-based delivery does not depend on it, since every connection
of a user joins the user's room regardless of this map.
"""


class PresenceRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, str] = {}

    def connect(self, user_id: str, sid: str) -> None:
        self._connections[str(user_id)] = sid

    def disconnect(self, user_id: str) -> None:
        self._connections.pop(str(user_id), None)

    def is_online(self, user_id: str) -> bool:
        return str(user_id) in self._connections

    def sid_for(self, user_id: str) -> str | None:
        return self._connections.get(str(user_id))

    def online_count(self) -> int:
        return len(self._connections)


_presence = PresenceRegistry()


def get_presence() -> PresenceRegistry:
    return _presence
