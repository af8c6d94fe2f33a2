"""Storage layer for the todo store.

The host provides a string key-value storage (a browser's localStorage, a
JSON file on disk, a dict in tests). :class:`TodoStore` is the load/save
interface each view is given on top of it: it owns the two keys, runs the
codec, and turns storage failures into logged, non-fatal results.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .codec import decode, decode_filter, encode, encode_filter
from .config import ConfigModel, get_config
from .errors import PersistFailure
from .todo import Todo, TodoFilter


logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Host-provided persistent string storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``; raises OSError on failure."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete ``key``; absent keys are ignored."""


class MemoryStorage(KeyValueStorage):
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, fail_writes: bool = False):
        self.data: Dict[str, str] = dict(initial or {})
        self.fail_writes = fail_writes

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("storage quota exceeded")
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("storage is disabled")
        self.data.pop(key, None)


class FileStorage(KeyValueStorage):
    """Key-value storage kept as one JSON object in a file.

    Every write rewrites the whole file through a temporary file in the same
    directory followed by ``os.replace``, so readers never see a torn file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object, ignoring it")
            return {}

        return {key: value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class TodoStore:
    """Load/save interface over host storage for one todo collection."""

    def __init__(self, storage: KeyValueStorage, todos_key: str = "todos",
                 filter_key: str = "todoFilter"):
        self.storage = storage
        self.todos_key = todos_key
        self.filter_key = filter_key

    @classmethod
    def from_config(cls, config: ConfigModel) -> "TodoStore":
        """Build a file-backed store from configuration."""
        return cls(
            FileStorage(config.get_storage_path()),
            todos_key=config.todos_key,
            filter_key=config.filter_key,
        )

    def _write(self, key: str, value: str) -> None:
        try:
            self.storage.set_item(key, value)
        except OSError as e:
            raise PersistFailure(key, e)

    def _remove(self, key: str) -> None:
        try:
            self.storage.remove_item(key)
        except OSError as e:
            raise PersistFailure(key, e)

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.storage.get_item(key)
        except OSError as e:
            logger.error(f"Failed to read '{key}' from storage: {e}")
            return None

    def load_todos(self) -> List[Todo]:
        """Load the collection; unreadable data yields an empty one."""
        todos = decode(self._read(self.todos_key))
        logger.debug(f"Loaded {len(todos)} todos")
        return todos

    def save_todos(self, todos: List[Todo]) -> bool:
        """Write the full collection.

        Returns:
            True on success, False if the write failed (already logged)
        """
        try:
            self._write(self.todos_key, encode(todos))
        except PersistFailure as e:
            logger.error(str(e))
            return False

        logger.debug(f"Saved {len(todos)} todos")
        return True

    def load_filter(self) -> TodoFilter:
        return decode_filter(self._read(self.filter_key))

    def save_filter(self, filter_pref: TodoFilter) -> bool:
        """Write the filter preference, independently of the collection."""
        try:
            self._write(self.filter_key, encode_filter(filter_pref))
        except PersistFailure as e:
            logger.error(str(e))
            return False
        return True

    def clear(self) -> bool:
        """Remove both keys. Each removal is attempted even if one fails."""
        ok = True
        for key in (self.todos_key, self.filter_key):
            try:
                self._remove(key)
            except PersistFailure as e:
                logger.error(str(e))
                ok = False
        return ok


# Global store instance
_store_instance: Optional[TodoStore] = None


def get_store(config: Optional[ConfigModel] = None) -> TodoStore:
    """Get the global store instance.

    Returns:
        TodoStore initialized with the given or current config
    """
    global _store_instance

    if _store_instance is None:
        if config is None:
            config = get_config()
        _store_instance = TodoStore.from_config(config)

    return _store_instance


def reset_store() -> None:
    """Reset the global store instance (useful for testing)."""
    global _store_instance
    _store_instance = None
