"""Adapter registry: routes queries to the most confident app and merges app context."""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .adapters.base import AppAdapter
from .adapters.pubsub import SubscriberList
from .adapters.scoring import is_asking_for_advice
from .adapters.types import AggregateContribution, SearchMatch, Snapshot
from .clock import Clock, get_clock
from .config import ROUTER_MIN_CONFIDENCE
from .exceptions import AdapterNotFoundError
from .logger import StructuredLogger, get_structured_logger

COMPONENT = "AdapterRegistry"

CROSS_APP_MARKERS = ["across", "all apps", "all my", "total", "combined", "everywhere"]

# Rollup concept -> (aggregation type or None for every type, noun used in the answer)
_CONCEPTS = [
    (re.compile(r"\b(images?|photos?|pictures?|pics?)\b"), "image", "images"),
    (re.compile(r"\bvideos?\b"), "video", "videos"),
    (re.compile(r"\b(favou?rites?|saved)\b"), None, "favorites"),
]


@dataclass
class RouteResult:
    adapter: AppAdapter
    confidence: float


@dataclass
class QueryResponse:
    app_name: str
    response: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"app_name": self.app_name, "response": self.response, "confidence": self.confidence}


@dataclass
class AggregatedContext:
    """Snapshots of every registered app at one point in time."""
    apps: Dict[str, Snapshot] = field(default_factory=dict)
    active_apps: List[str] = field(default_factory=list)
    last_updated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apps": {name: snapshot.to_dict() for name, snapshot in self.apps.items()},
            "active_apps": list(self.active_apps),
            "last_updated": self.last_updated,
        }


@dataclass
class CrossAppTotals:
    type: str
    total: int
    by_app: List[AggregateContribution] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "total": self.total,
            "by_app": [
                {
                    "app_name": item.app_name,
                    "count": item.count,
                    "label": item.label,
                    "metadata": item.metadata,
                }
                for item in self.by_app
            ],
        }


def is_cross_app_query(query: str) -> bool:
    lower_query = query.lower()
    return any(marker in lower_query for marker in CROSS_APP_MARKERS)


def detect_concept(query: str) -> Optional[Tuple[Optional[str], str]]:
    """
    Find the rollup concept a cross-app query asks about.

    Returns:
        (aggregation type or None for all types, answer noun), or None
    """
    lower_query = query.lower()
    for pattern, agg_type, noun in _CONCEPTS:
        if pattern.search(lower_query):
            return agg_type, noun
    return None


class AdapterRegistry:
    """
    Ordered collection of adapters.

    Registration order is significant: when two adapters report the same
    confidence for a query, the one registered first wins.
    """

    def __init__(
        self,
        logger: Optional[StructuredLogger] = None,
        clock: Optional[Clock] = None,
        min_confidence: float = ROUTER_MIN_CONFIDENCE,
    ):
        """
        Initialize the registry.

        Args:
            logger: Structured logger for skipped adapters
            clock: Clock used to stamp aggregated context
            min_confidence: Adapters must score strictly above this to be routed to
        """
        self._logger = logger or get_structured_logger()
        self.clock = clock or get_clock()
        self.min_confidence = min_confidence
        self._adapters: Dict[str, AppAdapter] = {}
        self._unsubscribers: Dict[str, Callable[[], None]] = {}
        self._listeners = SubscriberList(COMPONENT, self._logger)

    # -- registration ----------------------------------------------------

    def register(self, adapter: AppAdapter) -> None:
        """Add an adapter. Re-registering an app name replaces it in place."""
        name = adapter.app_name
        if name in self._unsubscribers:
            self._unsubscribers.pop(name)()

        self._adapters[name] = adapter
        self._unsubscribers[name] = adapter.subscribe(lambda _data: self._on_adapter_change())
        self._logger.info(f"Registered adapter {name}", component=COMPONENT, action="register")

    def unregister(self, app_name: str) -> None:
        unsubscribe = self._unsubscribers.pop(app_name, None)
        if unsubscribe is not None:
            unsubscribe()
        self._adapters.pop(app_name, None)

    def get(self, app_name: str) -> Optional[AppAdapter]:
        return self._adapters.get(app_name)

    def require(self, app_name: str) -> AppAdapter:
        """
        Raises:
            AdapterNotFoundError: If no adapter is registered under ``app_name``
        """
        adapter = self._adapters.get(app_name)
        if adapter is None:
            raise AdapterNotFoundError(f"No adapter registered for '{app_name}'")
        return adapter

    @property
    def adapters(self) -> List[AppAdapter]:
        return list(self._adapters.values())

    # -- routing ---------------------------------------------------------

    async def _confidences(self, query: str) -> List[Tuple[AppAdapter, float]]:
        adapters = self.adapters
        results = await asyncio.gather(
            *(adapter.get_confidence(query) for adapter in adapters),
            return_exceptions=True,
        )

        scored = []
        for adapter, result in zip(adapters, results):
            if isinstance(result, BaseException):
                self._logger.warning(
                    "Adapter failed to score query",
                    result,
                    component=COMPONENT,
                    action="findBestAdapter",
                    metadata={"app": adapter.app_name},
                )
                result = 0.0
            scored.append((adapter, result))
        return scored

    async def score_all(self, query: str) -> List[Tuple[str, float]]:
        """Confidence of every adapter, in registration order."""
        return [(adapter.app_name, confidence) for adapter, confidence in await self._confidences(query)]

    async def find_best_adapter(self, query: str) -> Optional[RouteResult]:
        """
        Pick the adapter most confident it can answer ``query``.

        Returns:
            RouteResult for the strictly highest score above ``min_confidence``
            (first registered on ties), or None if no adapter qualifies
        """
        best: Optional[RouteResult] = None
        for adapter, confidence in await self._confidences(query):
            if confidence <= self.min_confidence:
                continue
            if best is None or confidence > best.confidence:
                best = RouteResult(adapter, confidence)
        return best

    async def get_response_for_query(self, query: str) -> Optional[QueryResponse]:
        """
        Answer a query with a cross-app rollup or the best adapter's response.

        Returns:
            QueryResponse, or None if the query asks for advice, no adapter
            qualifies, or the chosen adapter gave no answer
        """
        # Advice is left to a general-purpose responder, rollups included
        if is_asking_for_advice(query):
            return None

        rollup = self.get_cross_app_answer(query)
        if rollup is not None:
            return rollup

        route = await self.find_best_adapter(query)
        if route is None:
            return None

        response = await route.adapter.get_response(query)
        if not response:
            return None
        return QueryResponse(route.adapter.app_name, response, route.confidence)

    # -- cross-app aggregation -------------------------------------------

    def _contributions(self) -> List[AggregateContribution]:
        contributions = []
        for adapter in self.adapters:
            if not adapter.supports_aggregation():
                continue
            try:
                contributions.extend(adapter.get_aggregate_data())
            except Exception as e:
                self._logger.warning(
                    "Skipping adapter in cross-app totals",
                    e,
                    component=COMPONENT,
                    action="getCrossAppTotals",
                    metadata={"app": adapter.app_name},
                )
        return contributions

    def get_cross_app_totals(self, type: Optional[str] = None) -> List[CrossAppTotals]:
        """
        Sum aggregation contributions per type.

        Args:
            type: Only total this contribution type (e.g. "image")

        Returns:
            One CrossAppTotals per type, in order of first contribution
        """
        totals: Dict[str, CrossAppTotals] = {}
        for contribution in self._contributions():
            if type is not None and contribution.type != type:
                continue
            entry = totals.setdefault(contribution.type, CrossAppTotals(contribution.type, 0))
            entry.total += contribution.count
            entry.by_app.append(contribution)
        return list(totals.values())

    def get_cross_app_answer(self, query: str) -> Optional[QueryResponse]:
        """Rollup answer for queries like "how many images do I have across all apps"."""
        if not is_cross_app_query(query):
            return None
        concept = detect_concept(query)
        if concept is None:
            return None

        agg_type, noun = concept
        contributions = [
            item
            for totals in self.get_cross_app_totals(agg_type)
            for item in totals.by_app
            if item.count > 0
        ]
        if not contributions:
            return None

        total = sum(item.count for item in contributions)
        scope = "all apps" if agg_type else "your apps"
        lines = [f"You have {total} {noun} across {scope}:"]
        for item in contributions:
            adapter = self.get(item.app_name)
            display = adapter.display_name if adapter else item.app_name
            lines.append(f"• {item.count} {item.label} ({display})")
        return QueryResponse("dashboard", "\n".join(lines), 1.0)

    # -- context ---------------------------------------------------------

    def get_aggregated_context(self) -> AggregatedContext:
        context = AggregatedContext(last_updated=self.clock.now())
        for adapter in self.adapters:
            try:
                snapshot = adapter.get_snapshot()
            except Exception as e:
                self._logger.warning(
                    "Skipping adapter in aggregated context",
                    e,
                    component=COMPONENT,
                    action="getAllAppData",
                    metadata={"app": adapter.app_name},
                )
                continue
            context.apps[adapter.app_name] = snapshot
            if snapshot.is_active:
                context.active_apps.append(adapter.app_name)
        return context

    def get_context_summary(self) -> str:
        """One line per app that is active or has something to say."""
        context = self.get_aggregated_context()
        lines = [
            f"{snapshot.display_name}: {snapshot.summary}"
            for snapshot in context.apps.values()
            if snapshot.is_active or snapshot.summary
        ]
        if not lines:
            return "No active dashboard apps"
        return "Dashboard Apps:\n" + "\n".join(lines)

    def get_detailed_context(self, app_names: Optional[List[str]] = None) -> str:
        """
        Multi-line status block per app.

        Args:
            app_names: Restrict to these apps (all registered apps if None)
        """
        context = self.get_aggregated_context()
        names = app_names if app_names is not None else list(context.apps)

        blocks = []
        for name in names:
            snapshot = context.apps.get(name)
            if snapshot is None:
                continue
            blocks.append(
                f"\n{snapshot.display_name.upper()}:\n"
                f"- Status: {'Active' if snapshot.is_active else 'Inactive'}\n"
                f"- {snapshot.summary}\n"
                f"- Can help with: {', '.join(snapshot.capabilities)}"
            )
        return "\n".join(blocks)

    async def search_all(self, query: str) -> Dict[str, List[SearchMatch]]:
        """Search every adapter; only apps with matches appear in the result."""
        adapters = self.adapters
        results = await asyncio.gather(
            *(adapter.search(query) for adapter in adapters),
            return_exceptions=True,
        )

        matches: Dict[str, List[SearchMatch]] = {}
        for adapter, result in zip(adapters, results):
            if isinstance(result, BaseException):
                self._logger.warning(
                    "Adapter search failed",
                    result,
                    component=COMPONENT,
                    action="searchAllApps",
                    metadata={"app": adapter.app_name},
                )
                continue
            if result:
                matches[adapter.app_name] = result
        return matches

    def get_all_keywords(self) -> Dict[str, List[str]]:
        return {adapter.app_name: adapter.keywords() for adapter in self.adapters}

    # -- listeners -------------------------------------------------------

    def subscribe(self, callback: Callable[[AggregatedContext], None]) -> Callable[[], None]:
        """Be notified with the aggregated context whenever any adapter publishes."""
        return self._listeners.subscribe(callback)

    def _on_adapter_change(self) -> None:
        if len(self._listeners):
            self._listeners.publish(self.get_aggregated_context())

    def dispose(self) -> None:
        """Unsubscribe from and dispose every adapter."""
        for unsubscribe in self._unsubscribers.values():
            unsubscribe()
        self._unsubscribers.clear()
        for adapter in self.adapters:
            adapter.dispose()
        self._adapters.clear()
        self._listeners.clear()
