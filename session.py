from typing import Optional, Tuple


class Session:
    """The (room_id, user_id) a single connection is currently joined as.

    Holds identifiers only; membership itself lives in the RoomRegistry.
    """

    def __init__(self):
        self._binding: Optional[Tuple[str, str]] = None

    def bind(self, room_id: str, user_id: str) -> None:
        # Overwrites silently; leaving the old room is the dispatcher's job
        self._binding = (room_id, user_id)

    def unbind(self) -> None:
        self._binding = None

    @property
    def current(self) -> Optional[Tuple[str, str]]:
        return self._binding

    def is_bound_to(self, room_id: str, user_id: Optional[str] = None) -> bool:
        if self._binding is None:
            return False
        bound_room, bound_user = self._binding
        if user_id is None:
            return bound_room == room_id
        return (bound_room, bound_user) == (room_id, user_id)
