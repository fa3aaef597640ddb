# src/wwsclient/core/events.py
"""
Structured event emitter for client observability.

Each client instance owns one EventEmitter and passes it to the components it
builds, so connection and request events are attributed to the client that
produced them instead of going through process-wide state.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List
import logging
import threading
import time


@dataclass(frozen=True)
class ClientEvent:
    """One observable occurrence (connect, send, request completed, ...)."""
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


EventHandler = Callable[[ClientEvent], None]


class EventEmitter:
    """
    Records events, counts them by name and forwards them to subscribers.

    Emission is called from both the caller thread and the socket reader
    thread, so all bookkeeping happens under a lock. Subscribers are called
    outside the lock.

    Attributes:
        logger: Logger instance
    """

    def __init__(self, history_size: int = 200):
        """
        Initialize the emitter.

        Args:
            history_size: Number of recent events kept for inspection
        """
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._handlers: List[EventHandler] = []
        self._history: Deque[ClientEvent] = deque(maxlen=history_size)
        self._counts: Dict[str, int] = {}

    def subscribe(self, handler: EventHandler) -> None:
        """Register a handler called for every emitted event."""
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

    def emit(self, name: str, **fields: Any) -> ClientEvent:
        """
        Record an event and notify subscribers.

        Args:
            name: Event name, e.g. 'connect_failed'
            **fields: Structured event data

        Returns:
            The recorded event
        """
        event = ClientEvent(name, fields)
        with self._lock:
            self._history.append(event)
            self._counts[name] = self._counts.get(name, 0) + 1
            handlers = list(self._handlers)

        self.logger.debug(f"Event '{name}' {fields}")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event handler error for '{name}': {e}")
        return event

    def count(self, name: str) -> int:
        """Number of times an event has been emitted."""
        with self._lock:
            return self._counts.get(name, 0)

    def recent(self, limit: int = 20) -> List[ClientEvent]:
        """Most recent events, oldest first."""
        with self._lock:
            events = list(self._history)
        return events[-limit:]

    def get_stats(self) -> Dict[str, int]:
        """Get event counters."""
        with self._lock:
            return self._counts.copy()
