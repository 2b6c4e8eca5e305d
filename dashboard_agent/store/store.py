"""Persistent key-value store backing the dashboard mini-apps."""

import copy
import json
import os
import threading
from typing import Any, Dict, List, Optional

from ..logger import StructuredLogger, get_structured_logger
from .channel import ChangeChannel

# Module-level singleton instance
_instance: Optional['KeyValueStore'] = None


def get_store() -> Optional['KeyValueStore']:
    """
    Get the global store instance.

    Returns:
        KeyValueStore instance if initialized, None otherwise
    """
    return _instance


def initialize_store(path: Optional[str] = None) -> 'KeyValueStore':
    """
    Initialize the global store instance.

    This function is idempotent - if called multiple times, it returns
    the existing instance without re-initializing.

    Args:
        path: Path to the JSON file backing the store (in-memory if None)

    Returns:
        KeyValueStore instance
    """
    global _instance

    if _instance is not None:
        return _instance

    _instance = KeyValueStore(path=path)
    return _instance


def reset_store() -> None:
    """
    Reset the global store instance (for testing).

    The next call to initialize_store() creates a fresh instance.
    """
    global _instance
    _instance = None


class KeyValueStore:
    """JSON key-value store with an out-of-band change channel."""

    def __init__(
        self,
        path: Optional[str] = None,
        channel: Optional[ChangeChannel] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize the store.

        Args:
            path: JSON file backing the store. None keeps everything in memory.
            channel: Change channel for external-write notifications
            logger: Structured logger for recovered failures
        """
        self.path = os.path.expanduser(path) if path else None
        self._logger = logger or get_structured_logger()
        self.channel = channel or ChangeChannel(self._logger)
        self._lock = threading.RLock()
        self._data: Dict[str, Any] = {}

        if self.path:
            self._data = self._load_file()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a stored value.

        Args:
            key: Storage key
            default: Value returned when the key is missing

        Returns:
            A copy of the stored value, or default
        """
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value and persist it."""
        with self._lock:
            self._data[key] = copy.deepcopy(value)
            self._save_file()

    def remove(self, key: str) -> None:
        """Remove a key (no-op if missing)."""
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._save_file()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def sync(self) -> List[str]:
        """
        Re-read the backing file and emit change events for keys written elsewhere.

        Returns:
            Keys whose value changed since the last read
        """
        if not self.path:
            return []

        with self._lock:
            fresh = self._load_file()
            changed = [
                key for key in set(self._data) | set(fresh)
                if self._data.get(key) != fresh.get(key)
            ]
            self._data = fresh

        # Emit outside the lock so listeners can read the store
        for key in sorted(changed):
            self.channel.emit(key)
        return changed

    def _load_file(self) -> Dict[str, Any]:
        """Load the backing file. A missing or corrupt file is treated as empty."""
        if not self.path or not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self._logger.error(
                f"Failed to load store from {self.path}",
                e,
                component="KeyValueStore",
                action="load",
            )
            return {}

        if not isinstance(data, dict):
            self._logger.warning(
                f"Ignoring store file {self.path}: top-level value is not an object",
                component="KeyValueStore",
                action="load",
            )
            return {}
        return data

    def _save_file(self) -> None:
        if not self.path:
            return

        try:
            data_dir = os.path.dirname(self.path)
            if data_dir and not os.path.exists(data_dir):
                os.makedirs(data_dir, exist_ok=True)

            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2)
        except (IOError, TypeError) as e:
            self._logger.error(
                f"Failed to save store to {self.path}",
                e,
                component="KeyValueStore",
                action="save",
            )
