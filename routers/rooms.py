from fastapi import APIRouter, Request

from identifiers import normalize_room_id
from logging_config import get_logger
from schemas.voice import RoomDetailsResponse, RoomListResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("", response_model=RoomListResponse)
async def list_rooms(request: Request):
    """Diagnostics: ids of every room that currently has members."""
    registry = request.app.state.registry
    room_ids = registry.room_ids()
    logger.debug(f"Room listing requested: {len(room_ids)} rooms")
    return RoomListResponse(count=len(room_ids), rooms=room_ids)


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Diagnostics: current members of a room.

    Unknown rooms are not an error; they simply have no peers.
    """
    registry = request.app.state.registry
    rid = normalize_room_id(room_id)
    peers = registry.snapshot(rid)
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room details request for {rid} from {client_host}: {len(peers)} peers")
    return RoomDetailsResponse(room_id=rid, peers=peers)
