"""Pytest fixtures shared by the session backend tests.

Provides a scripted fake transport, wired runtime components, and a
TestClient bound to temporary auth/data directories.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from dal.command_store import CommandStore
from main import create_app
from models.runtime_models import ConnectionStatus, RuntimeState
from services.command_registry import CommandRegistry
from services.realtime.event_bus import EventBus
from services.realtime.message_router import InboundMessageRouter
from services.realtime.session_lifecycle import SessionController
from services.transport.base import (
    NOTIFY,
    ConnectionUpdate,
    MessageBatch,
    Transport,
    TransportListener,
    TransportMessage,
)
from utils.settings import Settings


class FakeTransport(Transport):
    """Transport whose notifications are driven by the test."""

    def __init__(
        self,
        auth_dir: Path,
        listener: TransportListener,
        connect_delay: float = 0.0,
        connect_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(auth_dir, listener)
        self.connect_delay = connect_delay
        self.connect_error = connect_error
        self.connected = False
        self.closed = False
        self.sent: List[Tuple[str, str]] = []
        self.pairing_requests: List[str] = []
        self.pairing_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None

    async def connect(self) -> None:
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        await self.listener.on_connection_update(ConnectionUpdate(connection=ConnectionStatus.CONNECTING))

    async def request_pairing_code(self, phone_number: str) -> str:
        self.pairing_requests.append(phone_number)
        if self.pairing_error is not None:
            raise self.pairing_error
        return "ABCD-1234"

    async def send_text(self, recipient_id: str, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((recipient_id, text))

    async def close(self) -> None:
        self.closed = True

    async def emit_qr(self, challenge: str) -> None:
        await self.listener.on_connection_update(ConnectionUpdate(qr=challenge))

    async def emit_open(self) -> None:
        await self.listener.on_connection_update(ConnectionUpdate(connection=ConnectionStatus.OPEN))

    async def emit_close(self, code: Optional[int]) -> None:
        await self.listener.on_connection_update(
            ConnectionUpdate(connection=ConnectionStatus.CLOSED, disconnect_code=code)
        )

    async def emit_text(self, sender_id: str, text: str, from_me: bool = False, kind: str = NOTIFY) -> None:
        message = TransportMessage(sender_id=sender_id, from_me=from_me, content={"conversation": text})
        await self.listener.on_messages(MessageBatch(kind=kind, messages=[message]))


class FakeTransportFactory:
    """Callable transport factory that remembers every transport it built."""

    def __init__(self) -> None:
        self.created: List[FakeTransport] = []
        self.connect_delay = 0.0
        self.connect_error: Optional[Exception] = None

    def __call__(self, auth_dir: Path, listener: TransportListener) -> FakeTransport:
        transport = FakeTransport(auth_dir, listener, self.connect_delay, self.connect_error)
        self.created.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def runtime() -> RuntimeState:
    return RuntimeState()


@pytest.fixture
def bus(runtime: RuntimeState) -> EventBus:
    return EventBus(runtime)


@pytest.fixture
def command_store(tmp_path: Path) -> CommandStore:
    return CommandStore(tmp_path / "data")


@pytest.fixture
def registry(command_store: CommandStore, bus: EventBus) -> CommandRegistry:
    return CommandRegistry(command_store, bus)


@pytest.fixture
def message_router(runtime: RuntimeState, bus: EventBus, registry: CommandRegistry) -> InboundMessageRouter:
    return InboundMessageRouter(runtime, bus, registry)


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def session_factory(runtime, bus, message_router, transport_factory, tmp_path):
    """Build a SessionController with overridable pairing number and delay."""

    def _build(pairing_number: str = "", reconnect_delay: float = 0.01) -> SessionController:
        return SessionController(
            runtime=runtime,
            bus=bus,
            router=message_router,
            auth_dir=tmp_path / "auth",
            transport_factory=transport_factory,
            pairing_number=pairing_number,
            reconnect_delay=reconnect_delay,
        )

    return _build


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    auth_dir = tmp_path / "auth"
    data_dir = tmp_path / "data"
    auth_dir.mkdir()
    data_dir.mkdir()
    return Settings(auth_dir=auth_dir, data_dir=data_dir, admin_user="admin", admin_pass="secret")


@pytest.fixture
def client(settings: Settings, transport_factory: FakeTransportFactory):
    """TestClient running the app lifespan against the fake transport."""
    app = create_app(settings=settings, transport_factory=transport_factory)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    response = client.post("/api/auth/login", json={"username": "admin", "password": "secret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}

