"""Shared fixtures: a scriptable in-memory transport and an event recorder."""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from typing import Any, Iterator, Optional

import pytest

from etheripc.client import EtherIPC
from etheripc.config import Settings
from etheripc.ipc.transport import Transport, TransportState

CLIENT_EVENTS = [
    "connected",
    "connection_state_changed",
    "busy_changed",
    "error",
    "accounts_ready",
    "new_account_done",
    "delete_account_done",
    "send_transaction_done",
    "unlock_account_done",
    "block_number_done",
    "peer_count_changed",
    "gas_price_done",
    "closed",
]


class FakeTransport(Transport):
    """Transport driven by the test: nothing happens until a test says so."""

    def __init__(self) -> None:
        super().__init__()
        self.connect_calls: list[str] = []
        self.written: list[bytes] = []
        self.writable = True
        self.aborted = 0
        self._inbox = bytearray()

    # -- Transport interface --

    def connect(self, path: str) -> None:
        self.connect_calls.append(path)
        self._state = TransportState.CONNECTING

    def write(self, data: bytes) -> int:
        self.written.append(data)
        return len(data)

    def read(self, max_size: int) -> bytes:
        data = bytes(self._inbox[:max_size])
        del self._inbox[:max_size]
        return data

    def discard_input(self) -> int:
        dropped = len(self._inbox)
        self._inbox.clear()
        return dropped

    def is_writable(self) -> bool:
        return self.writable and self._state is TransportState.CONNECTED

    def abort(self) -> None:
        self.aborted += 1
        self._state = TransportState.UNCONNECTED

    # -- Test controls --

    def complete_connect(self) -> None:
        self._state = TransportState.CONNECTED
        self.events.emit("connected")

    def drop(self, message: str = "Remote closed the connection", code: int = 0) -> None:
        self._report_error(message, code)
        self._state = TransportState.UNCONNECTED
        self.events.emit("disconnected")

    def feed(self, data: bytes) -> None:
        self._inbox.extend(data)
        self.events.emit("ready_read")

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [json.loads(data) for data in self.written]

    @property
    def last_request(self) -> dict[str, Any]:
        return self.requests[-1]

    def reply(self, result: Any = None, *, error: Optional[dict] = None, id: Optional[int] = None) -> None:
        """Answer the last written request (or ``id``)."""
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": self.last_request["id"] if id is None else id}
        if error is not None:
            payload["error"] = error
        else:
            payload["result"] = result
        self.feed(json.dumps(payload).encode("utf-8"))


class EventRecorder:
    """Records every client event as a tuple of its arguments."""

    def __init__(self, client: EtherIPC) -> None:
        self.events: dict[str, list[tuple]] = defaultdict(list)
        self.order: list[str] = []
        for name in CLIENT_EVENTS:
            client.events.subscribe(name, self._recorder(name))

    def _recorder(self, name: str):
        def record(*args: Any) -> None:
            self.events[name].append(args)
            self.order.append(name)

        return record

    def __getitem__(self, name: str) -> list[tuple]:
        return self.events[name]


@pytest.fixture()
def loop() -> Iterator[asyncio.AbstractEventLoop]:
    event_loop = asyncio.new_event_loop()
    yield event_loop
    event_loop.close()


@pytest.fixture()
def settings() -> Settings:
    return Settings(ipc_path="/tmp/geth.ipc", connect_timeout=0.01)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def client(settings: Settings, transport: FakeTransport, loop: asyncio.AbstractEventLoop) -> EtherIPC:
    return EtherIPC(settings, transport=transport, loop=loop)


@pytest.fixture()
def recorder(client: EtherIPC) -> EventRecorder:
    return EventRecorder(client)


@pytest.fixture()
def connected(client: EtherIPC, transport: FakeTransport, recorder: EventRecorder) -> EtherIPC:
    """A client past connect, with the pending transaction filter answered."""
    client.connect()
    transport.complete_connect()
    transport.reply("0x1")
    return client
