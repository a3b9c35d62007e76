"""
Request queue - one call in flight, the rest waiting in FIFO order.

The daemon answers requests in order and the reply only carries the call
id, so the queue never writes a second request before the active one has
been answered (or the queue has been abandoned).
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Iterable, List, Optional

from ..models import CallEnvelope, CallIdCounter, CallType

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """An envelope plus the future its decoded result is delivered to."""

    envelope: CallEnvelope
    future: Optional[asyncio.Future] = field(default=None, compare=False)
    # records a follow-up call fills in (e.g. the account list it belongs to)
    target: Any = field(default=None, compare=False)


class RequestQueue:
    """
    Active slot + pending FIFO.

    Args:
        writer: Sends an envelope; raises ``TransportError`` on failure
        on_busy_changed: Called whenever the active slot fills or empties
        counter: Call id source (a fresh one per queue by default)
    """

    def __init__(
        self,
        writer: Callable[[CallEnvelope], None],
        on_busy_changed: Optional[Callable[[], None]] = None,
        counter: Optional[CallIdCounter] = None,
    ) -> None:
        self._writer = writer
        self._on_busy_changed = on_busy_changed
        self._counter = counter or CallIdCounter()
        self._active: Optional[PendingCall] = None
        self._pending: Deque[PendingCall] = deque()
        self._reserved = False

    @property
    def active(self) -> Optional[PendingCall]:
        return self._active

    @property
    def pending(self) -> List[PendingCall]:
        return list(self._pending)

    @property
    def busy(self) -> bool:
        return self._active is not None or self._reserved

    def new_call(
        self,
        call_type: CallType,
        params: Iterable[Any] = (),
        index: int = -1,
    ) -> CallEnvelope:
        return CallEnvelope(
            call_id=self._counter.next_id(),
            call_type=call_type,
            method=call_type.method,
            params=tuple(params),
            index=index,
        )

    def enqueue(self, call: PendingCall) -> None:
        """
        Write ``call`` now if idle, otherwise append it to the pending FIFO.

        Raises:
            TransportError: If the immediate write fails; the call stays
                active so the caller's failure path can abandon it
        """
        if not self.busy:
            self._active = call
            self._notify_busy()
            self._writer(call.envelope)
        else:
            logger.debug(
                "Queued %s (id=%d) behind %d call(s)",
                call.envelope.method,
                call.envelope.call_id,
                len(self._pending) + 1,
            )
            self._pending.append(call)

    def reserve(self) -> None:
        """Hold the queue busy without a call (while the socket connects)."""
        self._reserved = True
        self._notify_busy()

    def release(self) -> None:
        """Drop the reservation and write whatever queued up behind it."""
        self._reserved = False
        self.advance()

    def advance(self) -> None:
        """Activate and write the next pending call, or go idle."""
        if self._pending:
            self._active = self._pending.popleft()
            self._writer(self._active.envelope)
        else:
            self._active = None
            self._notify_busy()

    def abandon(self) -> List[PendingCall]:
        """Empty the active slot and the FIFO, returning what was dropped."""
        dropped: List[PendingCall] = []
        if self._active is not None:
            dropped.append(self._active)
        dropped.extend(self._pending)
        self._active = None
        self._reserved = False
        self._pending.clear()
        return dropped

    def _notify_busy(self) -> None:
        if self._on_busy_changed is not None:
            self._on_busy_changed()
