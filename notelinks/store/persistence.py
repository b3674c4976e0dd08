"""Durable key-value storage and debounced writes."""
from __future__ import annotations

import json
import pathlib
import re
import threading
from typing import Any, Optional

from ..utils.io import read_json, write_json
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStorage:
    """Stores one JSON document per key inside *directory*."""

    def __init__(self, directory: str | pathlib.Path):
        self.directory = pathlib.Path(directory)

    def path_for(self, key: str) -> pathlib.Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def read(self, key: str) -> Optional[Any]:
        """Return the document stored under *key*, or ``None`` if absent or unreadable."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return read_json(path)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.error("Failed to read %s from %s: %s", key, path, exc)
            return None

    def write(self, key: str, payload: Any) -> None:
        write_json(self.path_for(key), payload)


class DebouncedWriter:
    """Coalesces writes of one storage key over a short window.

    Only the most recent payload scheduled within *delay* seconds is written.
    A write that fails is logged; callers keep their in-memory state. Writes
    still pending when the process dies abruptly are lost.
    """

    def __init__(self, storage: JsonFileStorage, key: str, delay: float = 0.3):
        self.storage = storage
        self.key = key
        self.delay = delay
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Any = None
        self._has_pending = False

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def schedule(self, payload: Any) -> None:
        with self._lock:
            self._pending = payload
            self._has_pending = True
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Write the pending payload now. Returns ``True`` when something was written."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if not self._has_pending:
                return False
            payload = self._pending
            self._pending = None
            self._has_pending = False
            try:
                self.storage.write(self.key, payload)
            except (OSError, TypeError, ValueError) as exc:
                LOGGER.error("Failed to persist %s: %s", self.key, exc)
                return False
        return True

    def close(self) -> None:
        self.flush()
