"""JSON snapshot files under the data directory.

One object per file. Writes go to a sibling temp file and are swapped in
with ``os.replace`` so a crash never leaves a half-written snapshot, and a
per-file lock keeps two writers of the same file from overlapping.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonStore:
    """Load/save named JSON blobs under a root directory."""

    __slots__ = ("_root", "_locks", "_guard")

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def path(self, name: str) -> Path:
        return self._root / name

    def _lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def load(self, name: str, default: Any) -> Any:
        """Return the parsed file, or ``default`` when absent or unreadable."""
        path = self.path(name)
        if not path.exists():
            return default
        try:
            with self._lock_for(name):
                return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s (%s); starting from defaults", path, exc)
            return default

    def save(self, name: str, data: Any) -> None:
        path = self.path(name)
        tmp = path.with_name(path.name + ".tmp")
        payload = json.dumps(data, separators=(",", ":"))
        with self._lock_for(name):
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, path)
        logger.debug("Saved %s (%d bytes)", path, len(payload))
