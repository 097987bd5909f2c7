import asyncio
import json
import uuid
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from pydantic import ValidationError

from events import ACK
from logging_config import get_logger
from schemas.voice import InboundFrame
from session import Session

logger = get_logger(__name__)


class Connection:
    """One live websocket plus the session state that belongs to it."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.session = Session()

    async def send_json(self, message: dict) -> None:
        await self.websocket.send_text(json.dumps(message))

    def __repr__(self) -> str:
        return f"Connection({self.connection_id[:8]})"


def parse_frame(raw: str) -> Optional[InboundFrame]:
    """Decode one inbound text frame; None for anything that isn't an event object."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Ignoring non-JSON frame")
        return None
    if not isinstance(message, dict):
        logger.debug("Ignoring frame that is not a JSON object")
        return None
    try:
        return InboundFrame.model_validate(message)
    except ValidationError as e:
        logger.debug(f"Ignoring malformed frame: {e}")
        return None


class ConnectionManager:
    """Per-room broadcast groups of the connections held by this process."""

    def __init__(self):
        # Format: {room_id: {connection_id: Connection}}
        self.room_connections: Dict[str, Dict[str, Any]] = {}

    def add_to_room(self, room_id: str, connection) -> None:
        self.room_connections.setdefault(room_id, {})[connection.connection_id] = connection
        logger.debug(
            f"Added connection {connection.connection_id} to room {room_id} "
            f"(local connections: {len(self.room_connections[room_id])})"
        )

    def remove_from_room(self, room_id: str, connection) -> None:
        group = self.room_connections.get(room_id)
        if not group or connection.connection_id not in group:
            return
        del group[connection.connection_id]
        logger.debug(f"Removed connection {connection.connection_id} from room {room_id}")
        if not group:
            del self.room_connections[room_id]
            logger.debug(f"No more local connections in room {room_id}")

    def discard(self, connection) -> None:
        """Drop a connection from every broadcast group it is still part of."""
        for room_id in [rid for rid, group in self.room_connections.items() if connection.connection_id in group]:
            self.remove_from_room(room_id, connection)

    def connections_in(self, room_id: str) -> List[Any]:
        return list(self.room_connections.get(room_id, {}).values())

    async def acknowledge(self, connection, ack_id: Any, response: dict) -> None:
        await connection.send_json({"event": ACK, "ack": ack_id, "data": response})

    async def broadcast_to_room(self, room_id: str, event: str, payload: dict, exclude=None) -> None:
        """Send an event to every connection in the room except `exclude`.

        Failed sends are logged and the dead connection leaves the group; the
        caller never sees the error.
        """
        targets = [conn for conn in self.connections_in(room_id) if conn is not exclude]
        if not targets:
            logger.debug(f"No recipients for {event} in room {room_id}")
            return

        message = {"event": event, "data": payload}
        results = await asyncio.gather(*(conn.send_json(message) for conn in targets), return_exceptions=True)

        delivered = 0
        for conn, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Error sending {event} to connection {conn.connection_id} in room {room_id}: {result}")
                # Session and membership stay until that socket's own disconnect runs
                self.remove_from_room(room_id, conn)
            else:
                delivered += 1
        logger.debug(f"Broadcasted {event} to {delivered}/{len(targets)} connections in room {room_id}")
