"""Change channel: out-of-band "this key changed" notifications."""

import itertools
import threading
from typing import Callable, Dict, List, Optional

from ..logger import StructuredLogger, get_structured_logger

ChangeListener = Callable[[str], None]


class ChangeChannel:
    """
    Per-key listener registry for external store writes.

    Writes made by another execution context (another process writing the
    store file, a second UI window) arrive here as ``emit(key)`` calls.
    Adapters listen for their own storage key and reload immediately.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._listeners: Dict[str, Dict[int, ChangeListener]] = {}
        self._tokens = itertools.count()
        self._lock = threading.Lock()
        self._logger = logger or get_structured_logger()

    def listen(self, key: str, callback: ChangeListener) -> Callable[[], None]:
        """
        Register a listener for changes to ``key``.

        Args:
            key: Storage key to watch
            callback: Called with the changed key

        Returns:
            A function that removes exactly this registration
        """
        token = next(self._tokens)
        with self._lock:
            self._listeners.setdefault(key, {})[token] = callback

        def unlisten() -> None:
            with self._lock:
                listeners = self._listeners.get(key)
                if listeners is None:
                    return
                listeners.pop(token, None)
                if not listeners:
                    del self._listeners[key]

        return unlisten

    def emit(self, key: str) -> None:
        """Notify every listener of ``key``. A failing listener does not stop the others."""
        with self._lock:
            listeners: List[ChangeListener] = list(self._listeners.get(key, {}).values())

        for callback in listeners:
            try:
                callback(key)
            except Exception as e:
                self._logger.error(
                    "Change listener failed",
                    e,
                    component="ChangeChannel",
                    action="emit",
                    metadata={"key": key},
                )

    def listener_count(self, key: str) -> int:
        with self._lock:
            return len(self._listeners.get(key, {}))
