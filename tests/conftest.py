import pytest

from dispatcher import EventDispatcher
from registry import RoomRegistry
from session import Session
from transport import ConnectionManager


class FakeConnection:
    """Stands in for transport.Connection; records what would go down the socket."""

    def __init__(self, connection_id: str, broken: bool = False):
        self.connection_id = connection_id
        self.session = Session()
        self.broken = broken
        self.sent = []

    async def send_json(self, message: dict) -> None:
        if self.broken:
            raise RuntimeError("connection already closed")
        self.sent.append(message)

    def received(self, event: str) -> list:
        return [m["data"] for m in self.sent if m["event"] == event]


class AckRecorder:
    def __init__(self):
        self.responses = []

    async def __call__(self, response: dict) -> None:
        self.responses.append(response)

    @property
    def last(self) -> dict:
        return self.responses[-1]


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def manager():
    return ConnectionManager()


@pytest.fixture
def dispatcher(registry, manager):
    return EventDispatcher(registry, manager)


@pytest.fixture
def make_connection():
    def _make(connection_id: str, broken: bool = False) -> FakeConnection:
        return FakeConnection(connection_id, broken=broken)

    return _make


@pytest.fixture
def make_ack():
    return AckRecorder
