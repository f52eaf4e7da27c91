"""
Key-value snapshot storage - the server-side stand-in for the browser's localStorage.
"""
import json
import os
import tempfile
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from projectflow.exceptions import StorageError

logger = logging.getLogger(__name__)


class SnapshotStorage(ABC):
    """Abstract string key-value store (getItem/setItem/removeItem contract)."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing a missing key is a no-op."""
        pass


class MemorySnapshotStorage(SnapshotStorage):
    """In-process snapshot storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileSnapshotStorage(SnapshotStorage):
    """
    Snapshot storage in a single JSON object file.

    Every write replaces the whole file through a temporary file and
    os.replace, so concurrent readers see either the old or the new snapshot.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read snapshot file {self.path}: {e}")
            raise StorageError(f"Snapshot file {self.path} is unreadable: {e}", original_error=e) from e
        if not isinstance(data, dict):
            raise StorageError(f"Snapshot file {self.path} does not contain a JSON object")
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            if isinstance(e, OSError):
                raise StorageError(f"Failed to write snapshot file {self.path}: {e}", original_error=e) from e
            raise
        logger.debug(f"Wrote snapshot file {self.path}")

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._write_all(items)
