"""
Key-Value Storage
=================
Durable storage for small JSON documents (fix analytics).

    KeyValueStore  — interface: get(key) / set(key, value)
    InMemoryStore  — dict-backed, for tests and ephemeral sessions
    JsonFileStore  — one JSON file holding every key; writes go to a temp
                     file in the same directory and are moved into place
                     with os.replace, so readers never see a half-written file

Single writer assumed; no cross-process locking.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored JSON-compatible value, or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value."""


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        # Round-trip through JSON so callers never share mutable state with the store
        return json.loads(value) if value is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)


class JsonFileStore(KeyValueStore):
    """
    All keys in one JSON object on disk.

    Usage:
        store = JsonFileStore("fix_analytics.json")
        store.set("stats", {...})
        store.get("stats")
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def get(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            logger.warning("Discarding unreadable store %s: %s", self.path, e)
            data = {}
        data[key] = value

        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
