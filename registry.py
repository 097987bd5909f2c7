import threading
from typing import Dict, List, Optional

from identifiers import (
    normalize_display_name,
    normalize_room_id,
    normalize_signal_address,
    normalize_user_id,
)
from logging_config import get_logger
from schemas.voice import Member

logger = get_logger(__name__)


class InvalidRequest(ValueError):
    """A room id, user id or signal address was empty after normalization."""


class RoomRegistry:
    """In-memory room -> members map for a single server process.

    Every public method holds the lock for its whole body, so the empty-room
    check and the room removal can't be split by another caller.
    """

    def __init__(self):
        # Format: {room_id: {user_id: Member}}, insertion ordered
        self._rooms: Dict[str, Dict[str, Member]] = {}
        self._lock = threading.Lock()
        logger.info("Initializing in-memory RoomRegistry")

    def join(
        self, room_id: str, user_id: str, display_name: str, signal_address: str, owner: Optional[str] = None
    ) -> List[Member]:
        """Add (or replace) a member and return a copy of the room's member list.

        `owner` records which connection the member belongs to, see `leave`.
        """
        rid = normalize_room_id(room_id)
        uid = normalize_user_id(user_id)
        name = normalize_display_name(display_name)
        peer_id = normalize_signal_address(signal_address)
        if not rid or not uid or not peer_id:
            raise InvalidRequest("roomId, uid and peerId are required")

        member = Member(user_id=uid, display_name=name, signal_address=peer_id, owner=owner)
        with self._lock:
            members = self._rooms.get(rid)
            if members is None:
                members = {}
                self._rooms[rid] = members
                logger.debug(f"Created room {rid}")
            replaced = uid in members
            members[uid] = member
            peers = [m.model_copy() for m in members.values()]

        if replaced:
            logger.debug(f"User {uid} re-joined room {rid}, previous entry replaced")
        else:
            logger.debug(f"User {uid} added to room {rid} ({len(peers)} members)")
        return peers

    def leave(self, room_id: str, user_id: str, owner: Optional[str] = None) -> Optional[bool]:
        """Remove a member from a room.

        With `owner` set, only a member joined by that connection is removed;
        a newer join under the same user id is left alone.

        Returns None when there was nothing to remove, otherwise whether the
        room is now empty (and therefore gone from the registry).
        """
        rid = normalize_room_id(room_id)
        uid = normalize_user_id(user_id)
        if not rid or not uid:
            raise InvalidRequest("roomId and uid are required")

        with self._lock:
            members = self._rooms.get(rid)
            if members is None or uid not in members:
                logger.debug(f"Leave for {uid} in room {rid} ignored, not a member")
                return None
            if owner is not None and members[uid].owner != owner:
                logger.debug(f"Leave for {uid} in room {rid} ignored, member now held by another connection")
                return None
            del members[uid]
            room_empty = not members
            if room_empty:
                del self._rooms[rid]

        logger.debug(f"User {uid} removed from room {rid}")
        if room_empty:
            logger.debug(f"Room {rid} is empty, removed")
        return room_empty

    def snapshot(self, room_id: str) -> List[Member]:
        rid = normalize_room_id(room_id)
        with self._lock:
            members = self._rooms.get(rid, {})
            return [m.model_copy() for m in members.values()]

    def room_ids(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        rid = normalize_room_id(room_id)
        with self._lock:
            return rid in self._rooms
