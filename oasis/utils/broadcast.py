"""Fan-out of JSON messages from the engine thread to WebSocket observers.

Each observer owns an ``asyncio.Queue`` bound to the event loop that
accepted its socket. The engine thread never touches the queue directly;
it schedules ``put_nowait`` on the observer's loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import Counter, deque
from typing import Any

logger = logging.getLogger(__name__)


class Observer:
    __slots__ = ("queue", "loop", "closed")

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 1000) -> None:
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self.loop = loop
        self.closed = False

    def _put(self, message: dict[str, Any]) -> None:
        if self.queue.full():
            # Slow consumer: drop the oldest pending message.
            self.queue.get_nowait()
        self.queue.put_nowait(message)

    def deliver(self, message: dict[str, Any]) -> bool:
        """Schedule delivery. Returns False once the observer's loop is gone."""
        if self.closed or self.loop.is_closed():
            self.closed = True
            return False
        try:
            self.loop.call_soon_threadsafe(self._put, message)
        except RuntimeError:
            self.closed = True
            return False
        return True


class BroadcastBus:
    """Thread-safe registry of observers plus a short history for inspection."""

    __slots__ = ("_observers", "_lock", "_history", "_counts")

    def __init__(self, history: int = 500) -> None:
        self._observers: list[Observer] = []
        self._lock = threading.Lock()
        self._history: deque[dict[str, Any]] = deque(maxlen=history)
        self._counts: Counter[str] = Counter()

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def subscribe(self, loop: asyncio.AbstractEventLoop) -> Observer:
        observer = Observer(loop)
        with self._lock:
            self._observers.append(observer)
        logger.info("Observer connected (%d total)", self.observer_count)
        return observer

    def unsubscribe(self, observer: Observer) -> None:
        observer.closed = True
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)
        logger.info("Observer disconnected (%d total)", self.observer_count)

    def emit(self, message: dict[str, Any]) -> None:
        with self._lock:
            self._history.append(message)
            self._counts[message.get("type", "?")] += 1
            observers = list(self._observers)
        dead = [o for o in observers if not o.deliver(message)]
        if dead:
            with self._lock:
                self._observers = [o for o in self._observers if o not in dead]

    # -- inspection --

    def count(self, type: str) -> int:
        with self._lock:
            return self._counts[type]

    def messages(self, type: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            items = list(self._history)
        if type is None:
            return items
        return [m for m in items if m.get("type") == type]
