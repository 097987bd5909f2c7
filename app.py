import functools
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from constants import ALLOWED_ORIGINS, LOG_FILE, LOG_LEVEL, SERVICE_NAME
from dispatcher import EventDispatcher
from logging_config import get_logger, setup_logging
from registry import RoomRegistry
from routers.health import health_router
from routers.rooms import rooms_router
from transport import Connection, ConnectionManager, parse_frame

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

# Origins on these hosts are always allowed, whatever the port (local dev servers)
LOCAL_ORIGIN_PREFIXES = ("http://localhost:", "http://127.0.0.1:")
LOCAL_ORIGIN_REGEX = r"http://(localhost|127\.0\.0\.1):.*"


def is_allowed_origin(origin: Optional[str], allowed_origins=ALLOWED_ORIGINS) -> bool:
    if not origin:
        return True  # curl / Postman send no Origin
    if "*" in allowed_origins:
        return True
    if origin in allowed_origins:
        return True
    return origin.startswith(LOCAL_ORIGIN_PREFIXES)


def create_app(registry: Optional[RoomRegistry] = None, allowed_origins=ALLOWED_ORIGINS) -> FastAPI:
    """Build the FastAPI app around one RoomRegistry for the life of the process."""
    app = FastAPI(title=SERVICE_NAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in allowed_origins else list(allowed_origins),
        allow_origin_regex=LOCAL_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.registry = registry if registry is not None else RoomRegistry()
    app.state.connections = ConnectionManager()
    app.state.dispatcher = EventDispatcher(app.state.registry, app.state.connections)

    app.include_router(health_router)
    app.include_router(rooms_router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Voice signaling socket.

        Clients send `voice:join` / `voice:leave` frames; closing the socket
        counts as leaving whatever room the connection was joined to.
        """
        origin = websocket.headers.get("origin")
        if not is_allowed_origin(origin, allowed_origins):
            logger.warning(f"WebSocket connection rejected: origin {origin} not allowed")
            await websocket.close(code=1008, reason="Origin not allowed")
            return

        manager: ConnectionManager = websocket.app.state.connections
        dispatcher: EventDispatcher = websocket.app.state.dispatcher

        await websocket.accept()
        connection = Connection(websocket)
        logger.info(f"WebSocket connection {connection.connection_id} accepted (origin: {origin})")

        try:
            message_count = 0
            while True:
                data = await websocket.receive_text()
                message_count += 1
                logger.debug(f"Received message #{message_count} from connection {connection.connection_id}")

                frame = parse_frame(data)
                if frame is None:
                    continue

                ack = None
                if frame.ack is not None:
                    ack = functools.partial(manager.acknowledge, connection, frame.ack)
                await dispatcher.dispatch(connection, frame.event, frame.data, ack)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection.connection_id}: {e}", exc_info=True)
        finally:
            await dispatcher.disconnect(connection)
            manager.discard(connection)
            logger.debug(f"Cleaned up connection {connection.connection_id}")

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
