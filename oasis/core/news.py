"""Thread-safe bounded ring of world news, newest first."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class NewsItem:
    """A single headline for the world news feed."""

    type: str
    message: str
    agent_id: str | None = None
    name: str | None = None
    zone: str | None = None
    time: str = ""
    tick: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "agentId": self.agent_id,
            "name": self.name,
            "message": self.message,
            "zone": self.zone,
            "time": self.time,
            "tick": self.tick,
        }


class NewsFeed:
    """Capped news ring. Writers prepend; readers snapshot a slice.

    Written from the engine thread, read from API handlers.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, capacity: int = 200) -> None:
        self._buffer: deque[NewsItem] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add(
        self,
        type: str,
        message: str,
        agent_id: str | None = None,
        name: str | None = None,
        zone: str | None = None,
        tick: int = 0,
    ) -> NewsItem:
        item = NewsItem(
            type=type,
            message=message,
            agent_id=agent_id,
            name=name,
            zone=zone,
            time=datetime.now(timezone.utc).isoformat(),
            tick=tick,
        )
        with self._lock:
            self._buffer.appendleft(item)
        return item

    def latest(self, count: int = 50) -> list[NewsItem]:
        """Return the *count* newest items, newest first."""
        with self._lock:
            items = list(self._buffer)
        return items[:count]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
