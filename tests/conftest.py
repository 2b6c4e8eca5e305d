"""
Pytest configuration for dashboard agent tests

Provides a controllable clock, an in-memory store, a capturing logger and
stub semantic services shared across all test files
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from dashboard_agent.adapters.base import AppAdapter
from dashboard_agent.clock import Clock
from dashboard_agent.logger import StructuredLogger
from dashboard_agent.store import KeyValueStore

NOW = datetime(2025, 3, 5, 12, 0)


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def current_datetime(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def millis_ago(self, **kwargs) -> int:
        return self.to_timestamp(self.current - timedelta(**kwargs))


class RecordingLogger(StructuredLogger):
    """Keeps every record instead of writing it out."""

    def __init__(self):
        super().__init__("dashboard_agent.tests")
        self.records = []

    def _log(self, level, message, error, component, action, metadata):
        self.records.append({
            "level": level,
            "message": message,
            "error": error,
            "component": component,
            "action": action,
            "metadata": metadata or {},
        })

    def actions(self):
        return [record["action"] for record in self.records]


class FixedSemantic:
    """Semantic service returning a preset score per app (default for the rest)."""

    def __init__(self, scores=None, default=0.0):
        self.scores = scores or {}
        self.default = default
        self.calls = []

    async def get_semantic_confidence(self, query, app_name):
        self.calls.append((query, app_name))
        return self.scores.get(app_name, self.default)


class RaisingSemantic:
    async def get_semantic_confidence(self, query, app_name):
        raise RuntimeError("embedding server unavailable")


class SlowSemantic:
    """Answers long after any reasonable timeout."""

    def __init__(self, delay=5.0, score=0.99):
        self.delay = delay
        self.score = score

    async def get_semantic_confidence(self, query, app_name):
        await asyncio.sleep(self.delay)
        return self.score


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """In-memory store (no backing file)."""
    return KeyValueStore(logger=RecordingLogger())


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def make_adapter(store, clock, logger):
    """Build an adapter wired to the shared fixtures; disposed after the test."""
    created = []

    def _make(adapter_class, **kwargs):
        kwargs.setdefault("store", store)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("logger", logger)
        adapter = adapter_class(**kwargs)
        created.append(adapter)
        return adapter

    yield _make

    for adapter in created:
        adapter.dispose()


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


class StubAdapter(AppAdapter):
    """Minimal adapter over a plain list under one key; counts reloads."""

    app_name = "stub"
    display_name = "Stub App"
    icon = "🧪"
    storage_key = "stub_items"

    def __init__(self, *args, keywords=None, fail_reload=False, **kwargs):
        self.reload_count = 0
        self.fail_reload = fail_reload
        self._keywords = keywords if keywords is not None else ["streak", "habit"]
        super().__init__(*args, **kwargs)

    def reset(self):
        self.items = []

    def reload(self):
        self.reload_count += 1
        if self.fail_reload:
            raise RuntimeError("store unreadable")
        self.items = list(self.store.get(self.storage_key, []))

    def empty_data(self):
        return {"items": [], "count": 0}

    def transform(self):
        return {"items": list(self.items), "count": len(self.items)}

    def summarize(self, data):
        return f"{data['count']} items"

    def is_active(self, data):
        return data["count"] > 0

    def keywords(self):
        return list(self._keywords)
