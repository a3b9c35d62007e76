"""
A fake node daemon for end-to-end tests.

The daemon listens on a real Unix socket, served from an event loop in a
background thread so that code under test can run its own loop (or
``asyncio.run``) on the main thread.
"""

from __future__ import annotations

import asyncio
import json
import os
import shutil
import tempfile
import threading
from typing import Any, Iterator, Optional

import pytest

# Result value that makes the daemon drop the connection instead of answering
HANG_UP = object()

DEFAULT_RESULTS: dict[str, Any] = {
    "eth_newPendingTransactionFilter": "0x1",
    "eth_blockNumber": "0x4d2",
    "net_peerCount": "0x7",
    "eth_gasPrice": "0x4a817c800",
    "personal_listAccounts": [],
}


class FakeDaemon:
    """
    Line-oriented JSON-RPC server.

    ``results`` maps a method name to its result, to a callable taking the
    request params, or to ``{"error": {...}}`` for an error reply. Unknown
    methods get the usual -32601 error.
    """

    def __init__(self, results: Optional[dict[str, Any]] = None) -> None:
        self.results: dict[str, Any] = dict(DEFAULT_RESULTS)
        self.results.update(results or {})
        self.requests: list[dict[str, Any]] = []
        # Unix socket paths are short; keep the directory near the root
        self.directory = tempfile.mkdtemp(prefix="eipc-")
        self.path = os.path.join(self.directory, "geth.ipc")
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._server: Optional[asyncio.AbstractServer] = None

    @property
    def methods(self) -> list[str]:
        return [request["method"] for request in self.requests]

    def start(self) -> None:
        self._thread.start()
        asyncio.run_coroutine_threadsafe(self._listen(), self._loop).result(timeout=5)

    def stop(self) -> None:
        def _close() -> None:
            if self._server is not None:
                self._server.close()

        self._loop.call_soon_threadsafe(_close)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        shutil.rmtree(self.directory, ignore_errors=True)

    async def _listen(self) -> None:
        self._server = await asyncio.start_unix_server(self._serve, path=self.path)

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                request = json.loads(line)
                self.requests.append(request)
                reply = self._answer(request)
                if reply is None:
                    break
                writer.write(json.dumps(reply).encode("utf-8") + b"\n")
                await writer.drain()
        finally:
            writer.close()

    def _answer(self, request: dict[str, Any]) -> Optional[dict[str, Any]]:
        method = request["method"]
        reply: dict[str, Any] = {"jsonrpc": "2.0", "id": request["id"]}

        if method not in self.results:
            reply["error"] = {
                "code": -32601,
                "message": f"the method {method} does not exist/is not available",
            }
            return reply

        value = self.results[method]
        if callable(value):
            value = value(request["params"])
        if value is HANG_UP:
            return None
        if isinstance(value, dict) and "error" in value:
            reply["error"] = value["error"]
        else:
            reply["result"] = value
        return reply


@pytest.fixture()
def daemon() -> Iterator[FakeDaemon]:
    server = FakeDaemon()
    server.start()
    yield server
    server.stop()
