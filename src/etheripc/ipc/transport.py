"""
Transport - Local socket connection to the node daemon.

The transport is event driven: it reports ``connected``, ``ready_read``,
``disconnected`` and ``error(message, code)`` on its event bus, and buffers
inbound bytes until the client reads them.
"""

from __future__ import annotations

import abc
import asyncio
import enum
import logging
from typing import Optional

from ..errors import TransportError
from ..events import EventBus

logger = logging.getLogger(__name__)


class TransportState(enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Transport(abc.ABC):
    """Interface the client drives; see ``UnixSocketTransport``."""

    def __init__(self) -> None:
        self.events = EventBus()
        self._state = TransportState.UNCONNECTED
        self._error_string = ""

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def error_string(self) -> str:
        """Text of the last transport error, empty if none."""
        return self._error_string

    @abc.abstractmethod
    def connect(self, path: str) -> None:
        """Start connecting; completion is reported via events."""

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Queue ``data`` for sending and return the number of bytes taken."""

    @abc.abstractmethod
    def read(self, max_size: int) -> bytes:
        """Take up to ``max_size`` buffered bytes (empty if none)."""

    @abc.abstractmethod
    def discard_input(self) -> int:
        """Drop all buffered inbound bytes and return how many there were."""

    @abc.abstractmethod
    def is_writable(self) -> bool: ...

    @abc.abstractmethod
    def abort(self) -> None:
        """Drop the connection immediately without emitting ``disconnected``."""

    def _report_error(self, message: str, code: int = 0) -> None:
        self._error_string = message
        self.events.emit("error", message, code)


class UnixSocketTransport(Transport):
    """Unix domain socket transport running on an asyncio loop."""

    RECV_SIZE = 65536

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__()
        self._loop = loop
        self._buffer = bytearray()
        self._writer: Optional[asyncio.StreamWriter] = None
        self._task: Optional[asyncio.Task] = None

    def connect(self, path: str) -> None:
        if self._state is not TransportState.UNCONNECTED:
            raise TransportError("Socket already in use")

        loop = self._loop or asyncio.get_running_loop()
        self._state = TransportState.CONNECTING
        self._error_string = ""
        self._buffer.clear()
        self._task = loop.create_task(self._run(path))

    async def _run(self, path: str) -> None:
        try:
            reader, writer = await asyncio.open_unix_connection(path)
        except OSError as exc:
            self._report_error(exc.strerror or str(exc), exc.errno or 0)
            self._state = TransportState.UNCONNECTED
            self.events.emit("disconnected")
            return

        self._writer = writer
        self._state = TransportState.CONNECTED
        logger.debug("Connected to %s", path)
        self.events.emit("connected")

        try:
            while True:
                chunk = await reader.read(self.RECV_SIZE)
                if not chunk:
                    self._report_error("Remote closed the connection")
                    break
                self._buffer.extend(chunk)
                self.events.emit("ready_read")
        except OSError as exc:
            self._report_error(exc.strerror or str(exc), exc.errno or 0)
        finally:
            self._close_writer()
            # abort() already moved us to UNCONNECTED and stays silent
            if self._state is not TransportState.UNCONNECTED:
                self._state = TransportState.UNCONNECTED
                logger.debug("Disconnected from %s", path)
                self.events.emit("disconnected")

    def write(self, data: bytes) -> int:
        writer = self._writer
        if writer is None or not self.is_writable():
            raise TransportError("Socket not writeable")
        try:
            writer.write(data)
        except (OSError, RuntimeError) as exc:
            raise TransportError(f"Error on socket write: {exc}") from exc
        return len(data)

    def read(self, max_size: int) -> bytes:
        data = bytes(self._buffer[:max_size])
        del self._buffer[:max_size]
        return data

    def discard_input(self) -> int:
        dropped = len(self._buffer)
        self._buffer.clear()
        return dropped

    def is_writable(self) -> bool:
        return (
            self._state is TransportState.CONNECTED
            and self._writer is not None
            and not self._writer.is_closing()
        )

    def abort(self) -> None:
        self._state = TransportState.UNCONNECTED
        self._close_writer()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._buffer.clear()

    def _close_writer(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None
