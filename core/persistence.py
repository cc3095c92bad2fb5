"""
PERSISTENCE - Key/Value Store capability for the prediction cache

The prediction cache never talks to a storage API directly; it is handed a
Store with get/set/delete/items. Two implementations ship here:

    MemoryStore   - process-local dict (tests, ephemeral runs)
    JsonFileStore - one JSON document on disk, atomic writes (temp + rename)

The on-disk blob has no versioning guarantee. A document that fails to parse
is discarded wholesale and the store starts empty.

USAGE:
    from core.persistence import JsonFileStore

    store = JsonFileStore("./cache/predictions.json")
    store.set("match-1", {"match": {...}, "timestamp": 1760000000.0, "ttl": 1800})
    for key, value in store.items():
        ...
"""

from typing import Any, Dict, Iterator, Optional, Protocol, Tuple
import json
import logging
import os
import tempfile
import threading

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Injected persistence capability."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def items(self) -> Iterator[Tuple[str, Any]]: ...


class MemoryStore:
    """Dict-backed store."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._data.items()))

    def replace_all(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)
        self.write_count += 1

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore:
    """
    Single-file JSON store.

    The whole document is rewritten on every mutation; callers batch writes
    (the prediction cache debounces) so this stays cheap.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Discarding unreadable store %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Discarding store %s: expected object, got %s", self.path, type(data).__name__)
            return {}
        return data

    def _write(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._write()

    def items(self) -> Iterator[Tuple[str, Any]]:
        with self._lock:
            return iter(list(self._data.items()))

    def replace_all(self, data: Dict[str, Any]) -> None:
        """Swap the whole document in one write."""
        with self._lock:
            self._data = dict(data)
            self._write()
