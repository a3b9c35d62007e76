"""
Event bus for client and transport notifications.

Listeners are called synchronously on the thread that emits, in
subscription order.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventBus:
    """Per-instance publish/subscribe channel keyed by event name."""

    def __init__(self) -> None:
        self.listeners: Dict[str, List[Callable[..., Any]]] = {}

    def subscribe(self, event_type: str, callback: Callable[..., Any]) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: Event name (e.g., 'accounts_ready', 'error')
            callback: Called with the event's positional arguments
        """
        self.listeners.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[..., Any]) -> None:
        if event_type in self.listeners:
            try:
                self.listeners[event_type].remove(callback)
            except ValueError:
                logger.warning("Callback not found for event: %s", event_type)

    def once(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Subscribe for a single delivery."""

        def wrapper(*args: Any) -> None:
            self.unsubscribe(event_type, wrapper)
            callback(*args)

        self.subscribe(event_type, wrapper)

    def emit(self, event_type: str, *args: Any) -> None:
        """
        Emit an event to all subscribers.

        A listener that raises is logged and the remaining listeners still
        run; the emitter's own state machine is never unwound by a listener.
        """
        listeners = list(self.listeners.get(event_type, []))
        if not listeners:
            return

        logger.debug("Emitting %s to %d listener(s)", event_type, len(listeners))
        for callback in listeners:
            try:
                callback(*args)
            except Exception:
                logger.exception("Error in listener for %s", event_type)

    def clear(self, event_type: Optional[str] = None) -> None:
        if event_type:
            self.listeners.pop(event_type, None)
        else:
            self.listeners.clear()
