"""
EtherIPC - JSON-RPC client for a node daemon on a local socket.

Single threaded and event driven: the transport reports connected /
readable / disconnected, the client answers by writing at most one request
at a time and routing each reply to the handler for its call type.

Every public call returns an ``asyncio.Future`` for its decoded result and
also reports completion on ``client.events``:

    connected, connection_state_changed(state), busy_changed(busy),
    error(message, code), accounts_ready(accounts),
    new_account_done(address, index), delete_account_done(result, index),
    send_transaction_done(hash), unlock_account_done(result, index),
    block_number_done(value), peer_count_changed(value),
    gas_price_done(value), closed
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

from .bigint import BigInt
from .config import Settings
from .errors import (
    EtherIPCError,
    LifecycleError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from .events import EventBus
from .ipc.dispatch import decode_result
from .ipc.queue import PendingCall, RequestQueue
from .ipc.transport import Transport, TransportState, UnixSocketTransport
from .ipc.wire import decode_reply, encode_request
from .models import AccountInfo, CallEnvelope, CallType, ConnectionQuality, LinkState

logger = logging.getLogger(__name__)

Handler = Callable[[PendingCall, Any], None]


def _consume_exception(future: asyncio.Future) -> None:
    # Callers that only listen to events never await the future
    if not future.cancelled():
        future.exception()


class EtherIPC:
    """
    IPC client with a one-call-in-flight request queue.

    Args:
        settings: Client settings (defaults to ``Settings()``)
        transport: Socket transport (defaults to ``UnixSocketTransport``)
        loop: Event loop that futures and the connect timer live on;
            defaults to the running loop at first use
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[Transport] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.events = EventBus()
        self._loop = loop
        self._transport = transport or UnixSocketTransport(loop)
        self._queue = RequestQueue(self._write_request, self._busy_maybe_changed)

        self._link = LinkState.UNCONNECTED
        self._path = ""
        self._error = ""
        self._code = 0
        self._busy = False
        self._peer_count = 0
        self._filter_id: Optional[int] = None
        self._accounts: List[AccountInfo] = []
        self._connect_waiter: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._closed: Optional[asyncio.Future] = None

        self._handlers: Dict[CallType, Handler] = {
            CallType.LIST_ACCOUNTS: self._handle_account_list,
            CallType.GET_BALANCE: self._handle_account_balance,
            CallType.GET_TRANSACTION_COUNT: self._handle_account_transaction_count,
            CallType.NEW_ACCOUNT: self._handle_new_account,
            CallType.DELETE_ACCOUNT: self._handle_delete_account,
            CallType.SEND_TRANSACTION: self._handle_send_transaction,
            CallType.UNLOCK_ACCOUNT: self._handle_unlock_account,
            CallType.GET_BLOCK_NUMBER: self._handle_block_number,
            CallType.GET_PEER_COUNT: self._handle_peer_count,
            CallType.GET_GAS_PRICE: self._handle_gas_price,
            CallType.NEW_PENDING_TRANSACTION_FILTER: self._handle_pending_filter,
        }

        events = self._transport.events
        events.subscribe("connected", self._on_connected)
        events.subscribe("disconnected", self._on_disconnected)
        events.subscribe("ready_read", self._on_ready_read)
        events.subscribe("error", self._on_transport_error)

    # ============ Queryable state ============

    @property
    def is_busy(self) -> bool:
        return self._queue.busy

    @property
    def last_error(self) -> str:
        return self._error

    @property
    def last_error_code(self) -> int:
        return self._code

    @property
    def path(self) -> str:
        return self._path

    @property
    def link_state(self) -> LinkState:
        return self._link

    @property
    def peer_count(self) -> int:
        return self._peer_count

    @property
    def pending_filter_id(self) -> Optional[int]:
        return self._filter_id

    @property
    def accounts(self) -> List[AccountInfo]:
        return list(self._accounts)

    @property
    def connection_state(self) -> ConnectionQuality:
        """0 when disconnected, else 1-3 by peer count tier."""
        if self._transport.state is not TransportState.CONNECTED:
            return ConnectionQuality.DISCONNECTED
        return ConnectionQuality.for_peers(
            self._peer_count, self.settings.peers_fair, self.settings.peers_good
        )

    @property
    def connection_state_str(self) -> str:
        return self.connection_state.label

    # ============ Connection lifecycle ============

    def connect(self, path: Optional[str] = None) -> asyncio.Future:
        """
        Connect to the daemon socket.

        Args:
            path: Socket path (default: ``settings.ipc_path``)

        Returns:
            Future resolved once connected, failed on timeout / error
        """
        waiter = self._new_future()

        if self._transport.state is not TransportState.UNCONNECTED:
            error = LifecycleError("Already connected")
            waiter.set_exception(error)
            self.fail(error)
            return waiter

        self._path = path or self.settings.ipc_path
        self._link = LinkState.CONNECTING
        self._connect_waiter = waiter
        self._queue.reserve()
        logger.info("Connecting to %s", self._path)

        try:
            self._transport.connect(self._path)
        except TransportError as exc:
            self._link = LinkState.FAULTED
            self.fail(exc)
            return waiter

        self._timer = self._get_loop().call_later(
            self.settings.connect_timeout, self._on_connect_timeout
        )
        return waiter

    def close_app(self) -> None:
        """Abort the socket and drop all outstanding work."""
        self._cancel_timer()
        for call in self._queue.abandon():
            if call.future is not None and not call.future.done():
                call.future.cancel()
        waiter, self._connect_waiter = self._connect_waiter, None
        if waiter is not None and not waiter.done():
            waiter.cancel()

        self._transport.abort()
        self._link = LinkState.UNCONNECTED
        self._busy_maybe_changed()
        self.events.emit("connection_state_changed", self.connection_state)

        if self._closed is not None and not self._closed.done():
            self._closed.set_result(None)
        self.events.emit("closed")

    async def wait_closed(self) -> None:
        """Wait until ``close_app`` has been called."""
        if self._closed is None:
            self._closed = self._get_loop().create_future()
        await self._closed

    def _on_connected(self) -> None:
        self._cancel_timer()
        self._link = LinkState.CONNECTED
        logger.info("Connected to %s", self._path)

        waiter, self._connect_waiter = self._connect_waiter, None
        if waiter is not None and not waiter.done():
            waiter.set_result(None)

        # queued behind calls made while connecting; release() writes the first
        self._new_pending_transaction_filter()
        try:
            self._queue.release()
        except TransportError as exc:
            self.fail(exc)
            return

        self.events.emit("connected")
        self.events.emit("connection_state_changed", self.connection_state)

    def _on_disconnected(self) -> None:
        # Only a confirmed unconnected socket is a failure
        if self._transport.state is not TransportState.UNCONNECTED:
            return
        self._cancel_timer()
        self._link = LinkState.FAULTED
        message = self._transport.error_string or "Disconnected from server"
        self.fail(TransportError(message, self._code))

    def _on_connect_timeout(self) -> None:
        self._timer = None
        if self._transport.state is TransportState.CONNECTED:
            return
        self._transport.abort()
        self._link = LinkState.FAULTED
        self.fail(TransportError(f"Connection timed out after {self.settings.connect_timeout:g}s"))

    def _on_transport_error(self, message: str, code: int) -> None:
        logger.warning("Socket error: %s (code %d)", message, code)
        self._error = message
        self._code = code

    # ============ Queue plumbing ============

    def fail(self, error: EtherIPCError) -> None:
        """
        Abandon the queue and report ``error``.

        Every active and pending call is dropped (their futures get
        ``error``), then ``error`` and ``connection_state_changed`` are
        emitted and the queue is left idle.
        """
        self._error = error.message
        self._code = error.code
        logger.warning("IPC failure: %s (code %d)", error.message, error.code)

        dropped = self._queue.abandon()
        for call in dropped:
            self._reject(call.future, error)
        waiter, self._connect_waiter = self._connect_waiter, None
        self._reject(waiter, error)

        # a failed reply may have left its unread tail behind
        discarded = self._transport.discard_input()
        if discarded:
            logger.debug("Discarded %d buffered bytes", discarded)

        self.events.emit("error", error.message, error.code)
        self.events.emit("connection_state_changed", self.connection_state)
        self._done()

    def _done(self) -> None:
        try:
            self._queue.advance()
        except TransportError as exc:
            self.fail(exc)

    def _enqueue(
        self,
        call_type: CallType,
        params: tuple[Any, ...] = (),
        index: int = -1,
    ) -> asyncio.Future:
        future = self._new_future()
        call = PendingCall(self._queue.new_call(call_type, params, index), future)
        try:
            self._queue.enqueue(call)
        except TransportError as exc:
            self.fail(exc)
        return future

    def _write_request(self, envelope: CallEnvelope) -> None:
        if not self._transport.is_writable():
            raise TransportError("Socket not writeable")

        data = encode_request(envelope)
        logger.debug("sent: %s", data)
        if self._transport.write(data) <= 0:
            raise TransportError(f"Error on socket write: {self._transport.error_string}")

    def _on_ready_read(self) -> None:
        call = self._queue.active
        data = self._transport.read(self.settings.read_chunk_size)
        if call is None:
            dropped = len(data) + self._transport.discard_input()
            logger.warning("Discarding %d bytes received with no call active", dropped)
            return
        if not data:
            self.fail(TransportError(f"Error on socket read: {self._transport.error_string}"))
            return

        logger.debug("received: %s", data)
        envelope = call.envelope
        try:
            result = decode_reply(data, envelope.call_id)
            value = decode_result(envelope.call_type, result, self.settings.decimal_point)
            self._handlers[envelope.call_type](call, value)
        except EtherIPCError as exc:
            self.fail(exc)
            return

        self._error = ""
        self._code = 0
        self._done()

    def _busy_maybe_changed(self) -> None:
        busy = self._queue.busy
        if busy != self._busy:
            self._busy = busy
            self.events.emit("busy_changed", busy)

    # ============ Public calls ============

    def get_accounts(self) -> asyncio.Future:
        """List accounts, then fetch balance and transaction count of each.

        The future resolves (and ``accounts_ready`` fires) once every
        account is complete.
        """
        return self._enqueue(CallType.LIST_ACCOUNTS)

    def new_account(self, password: str, index: int = -1) -> asyncio.Future:
        return self._enqueue(CallType.NEW_ACCOUNT, (password,), index)

    def delete_account(self, hash: str, password: str, index: int = -1) -> asyncio.Future:
        return self._enqueue(CallType.DELETE_ACCOUNT, (hash, password), index)

    def unlock_account(
        self,
        hash: str,
        password: str,
        duration: int,
        index: int = -1,
    ) -> asyncio.Future:
        """
        Unlock an account for ``duration`` seconds.

        The duration is sent as a hex quantity.
        """
        params = (hash, password, BigInt.from_int(duration).to_hex())
        return self._enqueue(CallType.UNLOCK_ACCOUNT, params, index)

    def send_transaction(
        self,
        from_: str,
        to: str,
        value: Union[float, str, Decimal],
    ) -> asyncio.Future:
        """
        Send ``value`` ether from ``from_`` to ``to``.

        Args:
            from_: Sender address (must be unlocked on the node)
            to: Recipient address
            value: Amount in ether; must be positive

        Returns:
            Future for the transaction hash
        """
        try:
            wei = BigInt.from_ether(value)
        except ValueError:
            wei = BigInt(0)
        if wei.value <= 0:
            error = ValidationError("Invalid transaction value")
            future = self._new_future()
            future.set_exception(error)
            self.fail(error)
            return future

        tx = {"from": from_, "to": to, "value": wei.to_hex()}
        return self._enqueue(CallType.SEND_TRANSACTION, (tx,))

    def get_block_number(self) -> asyncio.Future:
        return self._enqueue(CallType.GET_BLOCK_NUMBER)

    def get_peer_count(self) -> asyncio.Future:
        return self._enqueue(CallType.GET_PEER_COUNT)

    def get_gas_price(self) -> asyncio.Future:
        return self._enqueue(CallType.GET_GAS_PRICE)

    def _new_pending_transaction_filter(self) -> asyncio.Future:
        return self._enqueue(CallType.NEW_PENDING_TRANSACTION_FILTER)

    # ============ Reply handlers ============

    def _handle_account_list(self, call: PendingCall, addresses: List[str]) -> None:
        accounts = [AccountInfo(address) for address in addresses]
        self._accounts = accounts

        if not accounts:
            self.events.emit("accounts_ready", [])
            self._resolve(call.future, [])
            return

        # Follow-ups fill in this list only; the last count call carries the
        # list call's future so overlapping refreshes each resolve their own.
        last = len(accounts) - 1
        for i, account in enumerate(accounts):
            params = (account.hash, "latest")
            balance = self._queue.new_call(CallType.GET_BALANCE, params, i)
            count = self._queue.new_call(CallType.GET_TRANSACTION_COUNT, params, i)
            self._queue.enqueue(PendingCall(balance, target=accounts))
            self._queue.enqueue(
                PendingCall(count, call.future if i == last else None, target=accounts)
            )

    def _handle_account_balance(self, call: PendingCall, balance: str) -> None:
        self._account_at(call).balance = balance

    def _handle_account_transaction_count(self, call: PendingCall, count: int) -> None:
        self._account_at(call).transaction_count = count

        accounts = call.target
        if call.envelope.index + 1 == len(accounts):
            # a list superseded by a newer refresh only resolves its own caller
            if accounts is self._accounts:
                self.events.emit("accounts_ready", list(accounts))
            self._resolve(call.future, list(accounts))

    def _handle_new_account(self, call: PendingCall, address: str) -> None:
        self.events.emit("new_account_done", address, call.envelope.index)
        self._resolve(call.future, address)

    def _handle_delete_account(self, call: PendingCall, result: bool) -> None:
        self.events.emit("delete_account_done", result, call.envelope.index)
        self._resolve(call.future, result)

    def _handle_send_transaction(self, call: PendingCall, tx_hash: str) -> None:
        self.events.emit("send_transaction_done", tx_hash)
        self._resolve(call.future, tx_hash)

    def _handle_unlock_account(self, call: PendingCall, result: bool) -> None:
        self.events.emit("unlock_account_done", result, call.envelope.index)
        self._resolve(call.future, result)

    def _handle_block_number(self, call: PendingCall, number: int) -> None:
        self.events.emit("block_number_done", number)
        self._resolve(call.future, number)

    def _handle_peer_count(self, call: PendingCall, peers: int) -> None:
        previous = self.connection_state
        self._peer_count = peers
        self.events.emit("peer_count_changed", peers)
        if self.connection_state != previous:
            self.events.emit("connection_state_changed", self.connection_state)
        self._resolve(call.future, peers)

    def _handle_gas_price(self, call: PendingCall, price: str) -> None:
        self.events.emit("gas_price_done", price)
        self._resolve(call.future, price)

    def _handle_pending_filter(self, call: PendingCall, filter_id: int) -> None:
        self._filter_id = filter_id
        self._resolve(call.future, filter_id)

    # ============ Helpers ============

    @staticmethod
    def _account_at(call: PendingCall) -> AccountInfo:
        accounts = call.target or []
        index = call.envelope.index
        if not 0 <= index < len(accounts):
            raise ProtocolError(f"No account at index {index}")
        return accounts[index]

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _new_future(self) -> asyncio.Future:
        future = self._get_loop().create_future()
        future.add_done_callback(_consume_exception)
        return future

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @staticmethod
    def _resolve(future: Optional[asyncio.Future], value: Any) -> None:
        if future is not None and not future.done():
            future.set_result(value)

    @staticmethod
    def _reject(future: Optional[asyncio.Future], error: EtherIPCError) -> None:
        if future is not None and not future.done():
            future.set_exception(error)
