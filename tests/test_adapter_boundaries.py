"""Tests that adapter failures degrade to safe values and are logged, never raised."""

import logging

import pytest

from conftest import StubAdapter, run
from dashboard_agent.exceptions import TransformError


class FailingRespondStub(StubAdapter):
    def respond(self, query, snapshot):
        raise RuntimeError("template exploded")


class FailingSearchStub(StubAdapter):
    def find_matches(self, query):
        raise RuntimeError("index exploded")


class FailingAggregateStub(StubAdapter):
    def supports_aggregation(self):
        return True

    def aggregate(self):
        raise RuntimeError("totals exploded")


class FailingTransformStub(StubAdapter):
    def transform(self):
        raise KeyError("count")


class FailingSummaryStub(StubAdapter):
    def summarize(self, data):
        raise ValueError("summary exploded")


@pytest.fixture(autouse=True)
def active_store(store):
    store.set("stub_items", ["a", "b"])


def _only_error(logger):
    errors = [record for record in logger.records if record["level"] == logging.ERROR]
    assert len(errors) == 1
    return errors[0]


def test_failing_response_gives_none(make_adapter, logger):
    adapter = make_adapter(FailingRespondStub)

    assert run(adapter.get_response("my habit")) is None

    record = _only_error(logger)
    assert (record["component"], record["action"]) == ("stubAdapter", "getResponse")
    assert isinstance(record["error"], RuntimeError)


def test_failing_search_gives_empty_list(make_adapter, logger):
    adapter = make_adapter(FailingSearchStub)

    assert run(adapter.search("habit")) == []

    record = _only_error(logger)
    assert (record["component"], record["action"]) == ("stubAdapter", "search")


def test_failing_aggregate_gives_empty_list(make_adapter, logger):
    adapter = make_adapter(FailingAggregateStub)

    assert adapter.get_aggregate_data() == []

    record = _only_error(logger)
    assert (record["component"], record["action"]) == ("stubAdapter", "getAggregateData")


class TestFailingTransform:
    def test_snapshot_uses_empty_data(self, make_adapter, logger):
        adapter = make_adapter(FailingTransformStub)

        snapshot = adapter.get_snapshot()

        assert snapshot.data == {"items": [], "count": 0}
        assert snapshot.is_active is False
        record = _only_error(logger)
        assert (record["component"], record["action"]) == ("stubAdapter", "transform")
        assert isinstance(record["error"], TransformError)
        assert record["metadata"] == {"cause": "KeyError"}

    def test_subscribers_receive_empty_data(self, make_adapter, store):
        adapter = make_adapter(FailingTransformStub)
        seen = []
        adapter.subscribe(seen.append)

        store.set("stub_items", ["a", "b", "c"])
        adapter.invalidate()
        adapter.get_snapshot()

        assert seen[0] == {"items": [], "count": 0}


def test_failing_summary_gives_inactive_snapshot(make_adapter, logger):
    adapter = make_adapter(FailingSummaryStub)

    snapshot = adapter.get_snapshot()

    assert snapshot.is_active is False
    assert snapshot.summary == "No data available"
    assert snapshot.data == {"items": [], "count": 0}
    record = _only_error(logger)
    assert (record["component"], record["action"]) == ("stubAdapter", "getSnapshot")


def test_failing_response_is_skipped_by_router(make_adapter, logger):
    """Test that the registry turns a failed answer into no answer"""
    from dashboard_agent.registry import AdapterRegistry

    registry = AdapterRegistry(logger=logger)
    registry.register(make_adapter(FailingRespondStub))
    try:
        assert run(registry.get_response_for_query("my habit")) is None
    finally:
        registry.dispose()
