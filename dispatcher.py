from typing import Any, Awaitable, Callable, Optional

from events import BAD_REQUEST, VOICE_JOIN, VOICE_LEAVE, VOICE_USER_JOINED, VOICE_USER_LEFT
from logging_config import get_logger
from registry import RoomRegistry
from schemas.voice import JoinAck, JoinRequest, LeaveRequest, Member, UserLeft
from transport import ConnectionManager

logger = get_logger(__name__)

AckCallback = Callable[[dict], Awaitable[None]]


class EventDispatcher:
    """Turns inbound voice events into registry mutations and room notifications.

    Each handler finishes its registry work before its first await, so on the
    event loop a join or leave is never observed half applied. Notifications
    go out afterwards and their failures don't undo anything.
    """

    def __init__(self, registry: RoomRegistry, transport: ConnectionManager):
        self.registry = registry
        self.transport = transport

    async def dispatch(self, connection, event: str, data: Any = None, ack: Optional[AckCallback] = None) -> None:
        if event == VOICE_JOIN:
            await self.join(connection, data, ack)
        elif event == VOICE_LEAVE:
            await self.leave(connection, data)
        else:
            logger.debug(f"Ignoring unknown event {event!r} from connection {connection.connection_id}")

    async def join(self, connection, payload: Any, ack: Optional[AckCallback] = None) -> None:
        request = JoinRequest.from_payload(payload)
        if not request.is_valid:
            logger.debug(f"Rejected {VOICE_JOIN} from connection {connection.connection_id}: missing roomId/uid/peerId")
            await self._acknowledge(ack, JoinAck(ok=False, error=BAD_REQUEST))
            return

        rid, uid = request.room_id, request.user_id
        session = connection.session

        # A connection is in one room at a time: joining as a different
        # (room, user) first leaves the pair it was bound to.
        previous = session.current
        previous_removed = None
        if previous is not None and previous != (rid, uid):
            prev_rid, prev_uid = previous
            previous_removed = self.registry.leave(prev_rid, prev_uid, owner=connection.connection_id)
            if prev_rid != rid:
                self.transport.remove_from_room(prev_rid, connection)
            logger.info(f"Connection {connection.connection_id} switching from {prev_uid}@{prev_rid} to {uid}@{rid}")

        peers = self.registry.join(
            rid, uid, request.display_name, request.signal_address, owner=connection.connection_id
        )
        session.bind(rid, uid)
        self.transport.add_to_room(rid, connection)
        logger.info(f"User {uid} ({request.display_name}) joined room {rid} ({len(peers)} members)")

        await self._acknowledge(ack, JoinAck(ok=True, peers=peers))

        if previous_removed is not None:
            await self.transport.broadcast_to_room(
                prev_rid, VOICE_USER_LEFT, UserLeft(uid=prev_uid).model_dump(), exclude=connection
            )

        joined = Member(user_id=uid, display_name=request.display_name, signal_address=request.signal_address)
        await self.transport.broadcast_to_room(rid, VOICE_USER_JOINED, joined.to_wire(), exclude=connection)

    async def leave(self, connection, payload: Any) -> None:
        request = LeaveRequest.from_payload(payload)
        if not request.is_valid:
            logger.debug(f"Ignoring {VOICE_LEAVE} from connection {connection.connection_id}: missing roomId/uid")
            return

        rid, uid = request.room_id, request.user_id
        session = connection.session
        if session.is_bound_to(rid, uid):
            # Leaving our own pair must not evict a newer join of the same uid
            removed = self.registry.leave(rid, uid, owner=connection.connection_id)
            session.unbind()
        else:
            removed = self.registry.leave(rid, uid)
        if not session.is_bound_to(rid):
            self.transport.remove_from_room(rid, connection)

        if removed is None:
            return
        logger.info(f"User {uid} left room {rid}")
        await self.transport.broadcast_to_room(rid, VOICE_USER_LEFT, UserLeft(uid=uid).model_dump(), exclude=connection)

    async def disconnect(self, connection) -> None:
        binding = connection.session.current
        if binding is None:
            return

        rid, uid = binding
        connection.session.unbind()
        self.transport.remove_from_room(rid, connection)
        removed = self.registry.leave(rid, uid, owner=connection.connection_id)

        if removed is None:
            return
        logger.info(f"User {uid} disconnected from room {rid}")
        await self.transport.broadcast_to_room(rid, VOICE_USER_LEFT, UserLeft(uid=uid).model_dump(), exclude=connection)

    async def _acknowledge(self, ack: Optional[AckCallback], response: JoinAck) -> None:
        if ack is None:
            return
        try:
            await ack(response.to_wire())
        except Exception as e:
            # The requester is gone; the join itself stands
            logger.warning(f"Could not deliver {VOICE_JOIN} acknowledgement: {e}")
