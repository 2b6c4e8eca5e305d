"""Subscriber fan-out with per-callback isolation, plus a background refresh timer."""

import threading
from typing import Any, Callable, List, Optional, Tuple

from ..exceptions import SubscriberError
from ..logger import StructuredLogger, get_structured_logger

Subscriber = Callable[[Any], None]


class SubscriberList:
    """
    Ordered subscriber registry.

    Each ``subscribe`` call gets its own registration token, so subscribing
    the same callback twice yields two independent registrations and each
    returned unsubscribe removes only its own.
    """

    def __init__(self, component: str, logger: Optional[StructuredLogger] = None):
        self.component = component
        self._logger = logger or get_structured_logger()
        self._entries: List[Tuple[object, Subscriber]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        token = object()
        with self._lock:
            self._entries.append((token, callback))

        def unsubscribe() -> None:
            with self._lock:
                self._entries = [entry for entry in self._entries if entry[0] is not token]

        return unsubscribe

    def publish(self, data: Any) -> None:
        """Deliver ``data`` to every subscriber in registration order."""
        with self._lock:
            entries = list(self._entries)

        for _, callback in entries:
            try:
                callback(data)
            except Exception as e:
                self._logger.error(
                    f"Error notifying subscriber in {self.component}",
                    SubscriberError(str(e)),
                    component=self.component,
                    action="publish",
                )

    def clear(self) -> None:
        with self._lock:
            self._entries = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PeriodicRefresher:
    """
    Calls ``tick`` every ``interval`` seconds on a daemon thread until stopped.

    Every ``start`` gets its own stop event, so a thread that was told to stop
    keeps seeing its event set even after a restart.
    """

    def __init__(
        self,
        interval: float,
        tick: Callable[[], Any],
        name: str = "refresher",
        logger: Optional[StructuredLogger] = None,
    ):
        self.interval = interval
        self.name = name
        self._tick = tick
        self._logger = logger or get_structured_logger()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    def start(self) -> None:
        """Start ticking in a background thread."""
        if self.is_running:
            return
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(target=self._loop, args=(stop_event,), name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop ticking gracefully."""
        if self._stop_event is not None:
            self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._stop_event = None
        self._thread = None

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self._tick()
            except Exception as e:
                self._logger.error(
                    "Periodic refresh failed",
                    e,
                    component=self.name,
                    action="tick",
                )
