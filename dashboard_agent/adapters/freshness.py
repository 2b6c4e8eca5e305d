"""TTL lease that bounds how often an adapter re-reads its backing store."""

import threading
from typing import Callable, Optional

from ..clock import Clock
from ..config import CACHE_TTL_MS
from ..exceptions import ReloadError
from ..logger import StructuredLogger, get_structured_logger


class Freshness:
    """
    Tracks when an adapter last reloaded successfully.

    Data is stale iff ``now - last_fetch_time > ttl_ms``. ``last_fetch_time``
    only moves forward after a reload that did not raise.
    """

    def __init__(
        self,
        clock: Clock,
        ttl_ms: int = CACHE_TTL_MS,
        logger: Optional[StructuredLogger] = None,
        component: str = "adapter",
    ):
        self.clock = clock
        self.ttl_ms = ttl_ms
        self.last_fetch_time = 0
        self.component = component
        self._logger = logger or get_structured_logger()
        # Re-entrant: a reload may read the snapshot of its own adapter
        self._lock = threading.RLock()

    def is_stale(self) -> bool:
        return self.clock.now() - self.last_fetch_time > self.ttl_ms

    def refresh_if_stale(self, reload: Callable[[], None]) -> bool:
        """
        Reload if the lease has expired.

        Returns:
            True if a reload ran and succeeded
        """
        with self._lock:
            if not self.is_stale():
                return False
            return self._run(reload)

    def force_refresh(self, reload: Callable[[], None]) -> bool:
        """Reload now regardless of the TTL (push invalidation). Success renews the lease."""
        with self._lock:
            return self._run(reload)

    def invalidate(self) -> None:
        """Expire the lease so the next check reloads."""
        with self._lock:
            self.last_fetch_time = 0

    def _run(self, reload: Callable[[], None]) -> bool:
        try:
            reload()
        except Exception as e:
            self._logger.error(
                "Failed to reload data",
                ReloadError(str(e)),
                component=self.component,
                action="reload",
                metadata={"cause": type(e).__name__},
            )
            return False

        self.last_fetch_time = self.clock.now()
        return True
