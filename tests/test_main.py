"""Tests for registry wiring and configuration validation."""

import pytest

from conftest import run
from dashboard_agent.config import Config
from dashboard_agent.main import ADAPTER_CLASSES, build_registry


@pytest.fixture
def registry(store, clock):
    registry = build_registry(store, clock=clock)
    yield registry
    registry.dispose()


def test_registers_every_adapter_in_order(registry):
    assert [adapter.app_name for adapter in registry.adapters] == [
        "userProfile", "notes", "streaks", "pomodoro", "camera",
        "dog", "giphy", "nasa", "rhythm",
    ]
    assert len(registry.adapters) == len(ADAPTER_CLASSES)


def test_adapters_share_the_store(registry, store):
    for adapter in registry.adapters:
        assert adapter.store is store


def test_keyword_routing_without_semantic_service(registry):
    route = run(registry.find_best_adapter("how many drum patterns"))
    assert route.adapter.app_name == "rhythm"


class TestConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DASHBOARD_AGENT_CACHE_TTL_MS", raising=False)
        monkeypatch.delenv("DASHBOARD_AGENT_API_PORT", raising=False)
        config = Config()
        assert config.cache_ttl_ms == 5000
        assert config.api_port == 8771

    @pytest.mark.parametrize("name,value", [
        ("DASHBOARD_AGENT_CACHE_TTL_MS", "-1"),
        ("DASHBOARD_AGENT_SEMANTIC_THRESHOLD", "1.5"),
        ("DASHBOARD_AGENT_SEMANTIC_TIMEOUT", "0"),
        ("DASHBOARD_AGENT_ROUTER_MIN_CONFIDENCE", "1.0"),
        ("DASHBOARD_AGENT_LOG_LEVEL", "chatty"),
    ])
    def test_rejects_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            Config()
