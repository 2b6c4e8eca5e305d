"""Base class for dashboard app adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from pydantic import ValidationError

from ..clock import Clock, get_clock
from ..config import CACHE_TTL_MS
from ..exceptions import CorruptStoreError, TransformError
from ..logger import StructuredLogger, get_structured_logger
from ..semantic import NullSemanticService
from ..store import ChangeChannel, KeyValueStore, get_store
from .freshness import Freshness
from .pubsub import PeriodicRefresher, SubscriberList
from .scoring import ConfidenceScorer, is_asking_for_advice
from .types import AggregateContribution, SearchMatch, Snapshot

R = TypeVar("R")
DateLike = Union[str, datetime, int, float, None]

DEFAULT_CAPABILITIES = ["data-access", "query-response", "real-time-updates"]


class AppAdapter(ABC):
    """
    Exposes one mini-app's stored state through a uniform interface.

    Subclasses implement the data hooks (``reload``, ``reset``, ``transform``,
    ``summarize``, ``keywords``, ``empty_data``) and optionally ``respond``,
    ``find_matches`` and ``aggregate``. The public methods (``get_snapshot``,
    ``get_confidence``, ``get_response``, ``search``, ``get_aggregate_data``)
    never raise: failures are logged and replaced with a safe default.

    Freshness and subscriber fan-out are held by composition. Set
    ``watch_key`` to reload immediately when the change channel reports an
    external write to that key, and ``refresh_interval`` to poll the store
    while at least one subscriber is registered.
    """

    app_name: str = ""
    display_name: str = ""
    icon: str = ""

    watch_key: Optional[str] = None
    refresh_interval: Optional[float] = None

    # Answer queries even when the snapshot is inactive
    respond_when_inactive: bool = False
    inactive_summary: str = "No data available"

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Optional[Clock] = None,
        semantic=None,
        logger: Optional[StructuredLogger] = None,
        channel: Optional[ChangeChannel] = None,
        ttl_ms: Optional[int] = None,
        refresh_interval: Optional[float] = None,
    ):
        """
        Initialize the adapter and load its data once.

        Args:
            store: Key-value store (defaults to the global store, or a private in-memory one)
            clock: Clock port (defaults to the system clock)
            semantic: Semantic confidence service (None disables the semantic signal)
            logger: Structured logger for recovered failures
            channel: Change channel for external writes (defaults to the store's channel)
            ttl_ms: Freshness lease in milliseconds
            refresh_interval: Seconds between background reloads while subscribed
        """
        if store is None:
            store = get_store()
        if store is None:
            store = KeyValueStore()
        self.store = store
        self.clock = clock or get_clock()
        self.component = f"{self.app_name}Adapter"
        self._logger = logger or get_structured_logger()
        self.channel = channel or self.store.channel

        self._freshness = Freshness(
            self.clock,
            ttl_ms=CACHE_TTL_MS if ttl_ms is None else ttl_ms,
            logger=self._logger,
            component=self.component,
        )
        self._subscribers = SubscriberList(self.component, self._logger)
        self._scorer = ConfidenceScorer(
            self.app_name,
            semantic=semantic if semantic is not None else NullSemanticService(),
            logger=self._logger,
            component=self.component,
        )

        interval = refresh_interval if refresh_interval is not None else self.refresh_interval
        self._refresher: Optional[PeriodicRefresher] = None
        if interval:
            self._refresher = PeriodicRefresher(
                interval,
                lambda: self._refresh(force=True),
                name=f"{self.component}-refresh",
                logger=self._logger,
            )

        self._last_reload_failed = False
        self._unlisten: Optional[Callable[[], None]] = None

        self.reset()
        if self.watch_key:
            self._unlisten = self.channel.listen(self.watch_key, self._on_external_change)
        self._refresh(force=True)

    # -- hooks -----------------------------------------------------------

    @abstractmethod
    def reload(self) -> None:
        """Read the backing store into adapter state. May raise."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Replace adapter state with its empty default."""
        pass

    @abstractmethod
    def transform(self) -> Dict[str, Any]:
        """Derive snapshot data from adapter state."""
        pass

    @abstractmethod
    def summarize(self, data: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def keywords(self) -> List[str]:
        pass

    @abstractmethod
    def empty_data(self) -> Dict[str, Any]:
        """Snapshot data for an adapter with no records."""
        pass

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        """
        Templated answer for a lowercased query.

        Returns:
            Answer text, or None to use the generic answer
        """
        return None

    def is_active(self, data: Dict[str, Any]) -> bool:
        return True

    def last_used(self, data: Dict[str, Any]) -> int:
        return 0

    def capabilities(self) -> List[str]:
        return list(DEFAULT_CAPABILITIES)

    def find_matches(self, query: str) -> List[SearchMatch]:
        """Search hook; receives the lowercased query."""
        return []

    def aggregate(self) -> List[AggregateContribution]:
        return []

    def supports_aggregation(self) -> bool:
        return False

    # -- refresh ---------------------------------------------------------

    def _reload(self) -> None:
        try:
            self.reload()
        except Exception:
            self._last_reload_failed = True
            self.reset()
            raise
        self._last_reload_failed = False

    def _refresh(self, force: bool = False) -> bool:
        if force:
            reloaded = self._freshness.force_refresh(self._reload)
        else:
            reloaded = self._freshness.refresh_if_stale(self._reload)

        # Published after the lease is renewed, so a subscriber that reads the
        # snapshot does not trigger another reload
        if reloaded:
            self._notify_subscribers()
        return reloaded

    def _notify_subscribers(self) -> None:
        if len(self._subscribers):
            self._subscribers.publish(self._safe_transform())

    def _safe_transform(self) -> Dict[str, Any]:
        try:
            return self.transform()
        except Exception as e:
            self._logger.error(
                "Failed to transform data",
                TransformError(str(e)),
                component=self.component,
                action="transform",
                metadata={"cause": type(e).__name__},
            )
            return self.empty_data()

    def _on_external_change(self, key: str) -> None:
        self._refresh(force=True)

    def invalidate(self) -> None:
        """Expire cached data so the next read reloads."""
        self._freshness.invalidate()

    # -- public surface --------------------------------------------------

    def get_snapshot(self) -> Snapshot:
        """Return the current snapshot, reloading first if the cache is stale."""
        try:
            self._refresh()
            if self._last_reload_failed:
                return self._inactive_snapshot()

            data = self._safe_transform()
            return Snapshot(
                app_name=self.app_name,
                display_name=self.display_name,
                icon=self.icon,
                is_active=self.is_active(data),
                last_used=self.last_used(data),
                data=data,
                summary=self.summarize(data),
                capabilities=self.capabilities(),
            )
        except Exception as e:
            self._log_error("Failed to build snapshot", e, "getSnapshot")
            return self._inactive_snapshot()

    def _inactive_snapshot(self) -> Snapshot:
        return Snapshot(
            app_name=self.app_name,
            display_name=self.display_name,
            icon=self.icon,
            is_active=False,
            last_used=0,
            data=self.empty_data(),
            summary=self.inactive_summary,
            capabilities=self.capabilities(),
        )

    async def get_confidence(self, query: str) -> float:
        """Confidence in [0, 1] that this adapter can answer the query."""
        try:
            self._refresh()
            return await self._scorer.score(query, self.keywords())
        except Exception as e:
            self._log_error("Failed to compute confidence", e, "getConfidence")
            return 0.0

    async def get_response(self, query: str) -> Optional[str]:
        """
        Answer a status query from the current snapshot.

        Returns:
            Answer text; an empty string for advice requests, which are left to
            a general-purpose responder; None if answering failed
        """
        try:
            if is_asking_for_advice(query):
                return ""

            snapshot = self.get_snapshot()
            if not snapshot.is_active and not self.respond_when_inactive:
                return self.inactive_response()

            answer = self.respond(query.lower(), snapshot)
            if answer is None:
                return f"I can help you with {self.display_name}. {snapshot.summary}"
            return answer
        except Exception as e:
            self._log_error("Failed to build response", e, "getResponse")
            return None

    def inactive_response(self) -> str:
        return f"The {self.display_name} app is not currently active or has no data available."

    async def search(self, query: str) -> List[SearchMatch]:
        """Case-insensitive search over this app's records."""
        lower_query = query.strip().lower()
        if not lower_query:
            return []
        try:
            self._refresh()
            return self.find_matches(lower_query)
        except Exception as e:
            self._log_error("Search failed", e, "search")
            return []

    def get_aggregate_data(self) -> List[AggregateContribution]:
        if not self.supports_aggregation():
            return []
        try:
            self._refresh()
            return self.aggregate()
        except Exception as e:
            self._log_error("Failed to compute aggregate data", e, "getAggregateData")
            return []

    def subscribe(self, callback: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        """
        Register a data-change listener.

        Returns:
            Function that removes exactly this registration; it also stops
            background polling once no subscribers remain
        """
        remove = self._subscribers.subscribe(callback)
        if self._refresher is not None:
            self._refresher.start()

        def unsubscribe() -> None:
            remove()
            if self._refresher is not None and not len(self._subscribers):
                self._refresher.stop()

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def dispose(self) -> None:
        """Release listeners and background work."""
        if self._unlisten is not None:
            self._unlisten()
            self._unlisten = None
        if self._refresher is not None:
            self._refresher.stop()
        self._subscribers.clear()

    # -- helpers ---------------------------------------------------------

    def _log_error(self, message: str, error: BaseException, action: str) -> None:
        self._logger.error(message, error, component=self.component, action=action)

    def read_records(self, key: str, factory: Callable[[Any], R]) -> List[R]:
        """
        Read a stored list and build a record from each item.

        Raises:
            CorruptStoreError: If the stored value is not a list or an item is malformed
        """
        raw = self.store.get(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise CorruptStoreError(f"{key} should hold a list, got {type(raw).__name__}")
        try:
            return [factory(item) for item in raw]
        except ValidationError as e:
            raise CorruptStoreError(f"Malformed record under {key}: {e}") from e

    def read_record(self, key: str, factory: Callable[[Any], R]) -> Optional[R]:
        """
        Read a single stored object.

        Returns:
            The built record, or None if the key is missing

        Raises:
            CorruptStoreError: If the stored value is malformed
        """
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return factory(raw)
        except ValidationError as e:
            raise CorruptStoreError(f"Malformed record under {key}: {e}") from e

    def is_today(self, date_str: Optional[str]) -> bool:
        if not date_str:
            return False
        return date_str == self.clock.local_date()

    def _to_datetime(self, value: DateLike) -> Optional[datetime]:
        if isinstance(value, datetime):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return self.clock.from_timestamp(value)
        return self.clock.parse(value)

    def timestamp_of(self, value: DateLike) -> int:
        """Epoch milliseconds for a date string, datetime or timestamp; 0 if unknown."""
        if not value:
            return 0
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
        parsed = self._to_datetime(value)
        return self.clock.to_timestamp(parsed) if parsed else 0

    def format_date(self, value: DateLike) -> str:
        if not value:
            return "Never"
        parsed = self._to_datetime(value)
        if parsed is None:
            return "Invalid date"
        return self.clock.format(parsed)

    def relative_time(self, value: DateLike) -> str:
        if not value:
            return "Never"
        parsed = self._to_datetime(value)
        if parsed is None:
            return "Invalid date"
        return self.clock.time_ago(parsed)
