"""Tests for AdapterRegistry routing, context and cross-app rollups."""

import pytest

from conftest import FixedSemantic, StubAdapter, run
from dashboard_agent.adapters import CameraAdapter, DogGalleryAdapter, GiphyAdapter, NasaApodAdapter
from dashboard_agent.exceptions import AdapterNotFoundError
from dashboard_agent.registry import AdapterRegistry, detect_concept, is_cross_app_query
from dashboard_agent.store import StorageKeys


class HabitsStub(StubAdapter):
    app_name = "habits"
    display_name = "Habits"


class RoutinesStub(StubAdapter):
    app_name = "routines"
    display_name = "Routines"


class BrokenSnapshotStub(StubAdapter):
    app_name = "broken"
    display_name = "Broken"

    def get_snapshot(self):
        raise RuntimeError("snapshot exploded")


@pytest.fixture
def registry(logger, clock):
    registry = AdapterRegistry(logger=logger, clock=clock)
    yield registry
    registry.dispose()


class TestRegistration:
    def test_register_and_get(self, registry, make_adapter):
        adapter = make_adapter(HabitsStub)
        registry.register(adapter)
        assert registry.get("habits") is adapter
        assert registry.require("habits") is adapter
        assert registry.adapters == [adapter]

    def test_require_unknown(self, registry):
        with pytest.raises(AdapterNotFoundError):
            registry.require("missing")

    def test_reregister_keeps_position(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub))
        registry.register(make_adapter(RoutinesStub))
        replacement = make_adapter(HabitsStub)
        registry.register(replacement)

        assert [a.app_name for a in registry.adapters] == ["habits", "routines"]
        assert registry.get("habits") is replacement

    def test_unregister(self, registry, make_adapter):
        adapter = make_adapter(HabitsStub)
        registry.register(adapter)
        registry.unregister("habits")
        assert registry.get("habits") is None
        assert adapter.subscriber_count == 0


class TestRouting:
    def test_tie_goes_to_first_registered(self, registry, make_adapter):
        """Test that equal 0.9 scores always route to the adapter registered first"""
        registry.register(make_adapter(HabitsStub))
        registry.register(make_adapter(RoutinesStub))

        for _ in range(5):
            route = run(registry.find_best_adapter("show my streak"))
            assert route.adapter.app_name == "habits"
            assert route.confidence == 0.9

    def test_highest_score_wins(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub, keywords=["streaks"]))
        registry.register(make_adapter(RoutinesStub, keywords=["streak"]))
        route = run(registry.find_best_adapter("my streak"))
        assert route.adapter.app_name == "routines"

    def test_no_adapter_above_minimum(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub))
        assert run(registry.find_best_adapter("what's the weather")) is None

    def test_min_confidence_is_strict(self, logger, clock, make_adapter):
        registry = AdapterRegistry(logger=logger, clock=clock, min_confidence=0.3)
        registry.register(make_adapter(HabitsStub))
        assert run(registry.find_best_adapter("streaking")) is None
        assert run(registry.find_best_adapter("streak")) is not None

    def test_semantic_score_can_override_keywords(self, registry, make_adapter):
        semantic = FixedSemantic(scores={"routines": 0.95})
        registry.register(make_adapter(HabitsStub, semantic=semantic))
        registry.register(make_adapter(RoutinesStub, semantic=semantic))
        route = run(registry.find_best_adapter("show my streak"))
        assert route.adapter.app_name == "routines"
        assert route.confidence == 0.95

    def test_score_all_in_registration_order(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub, keywords=["habit"]))
        registry.register(make_adapter(RoutinesStub, keywords=["routine"]))
        assert run(registry.score_all("my routine")) == [("habits", 0.0), ("routines", 0.9)]

    def test_response_for_query(self, registry, make_adapter, store):
        store.set("stub_items", ["a"])
        registry.register(make_adapter(HabitsStub))
        result = run(registry.get_response_for_query("my habit"))
        assert result.app_name == "habits"
        assert result.response == "I can help you with Habits. 1 items"
        assert result.confidence == 0.9

    def test_advice_is_deferred(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub))
        assert run(registry.get_response_for_query("how do i build a better habit")) is None


class TestContext:
    def test_aggregated_context_skips_failing_adapter(self, registry, make_adapter, store, logger, clock):
        store.set("stub_items", ["a"])
        registry.register(make_adapter(HabitsStub))
        registry.register(make_adapter(BrokenSnapshotStub))

        context = registry.get_aggregated_context()

        assert list(context.apps) == ["habits"]
        assert context.active_apps == ["habits"]
        assert context.last_updated == clock.now()
        assert any(r["action"] == "getAllAppData" for r in logger.records)

    def test_context_summary(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub))
        registry.register(make_adapter(RoutinesStub))
        assert registry.get_context_summary() == "Dashboard Apps:\nHabits: 0 items\nRoutines: 0 items"

    def test_context_summary_without_apps(self, registry):
        assert registry.get_context_summary() == "No active dashboard apps"

    def test_detailed_context(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub))
        registry.register(make_adapter(RoutinesStub))
        detailed = registry.get_detailed_context(["routines", "unknown"])
        assert detailed == (
            "\nROUTINES:\n"
            "- Status: Inactive\n"
            "- 0 items\n"
            "- Can help with: data-access, query-response, real-time-updates"
        )

    def test_all_keywords(self, registry, make_adapter):
        registry.register(make_adapter(HabitsStub, keywords=["habit"]))
        assert registry.get_all_keywords() == {"habits": ["habit"]}

    def test_listeners_receive_context_on_change(self, registry, make_adapter, store, clock):
        registry.register(make_adapter(HabitsStub, ttl_ms=5000))
        seen = []
        registry.subscribe(seen.append)

        store.set("stub_items", ["a", "b"])
        clock.advance(seconds=6)
        registry.get("habits").get_snapshot()

        assert len(seen) == 1
        assert seen[0].apps["habits"].data["count"] == 2


class TestSearch:
    def test_only_apps_with_matches(self, registry, make_adapter, store):
        store.set(StorageKeys.DOG_FAVORITES, [{"id": "1", "url": "u1", "breed": "corgi"}])
        registry.register(make_adapter(DogGalleryAdapter))
        registry.register(make_adapter(GiphyAdapter))

        results = run(registry.search_all("corgi"))
        assert list(results) == ["dog"]
        assert results["dog"][0].label == "corgi"

    def test_empty_query(self, registry, make_adapter):
        registry.register(make_adapter(DogGalleryAdapter))
        assert run(registry.search_all("   ")) == {}


@pytest.fixture
def gallery_registry(registry, make_adapter, store, clock):
    """Camera with 20 photos, 5 dogs, 3 GIFs and 2 APOD images."""
    now = clock.now()
    store.set(StorageKeys.CAMERA_PHOTOS, [
        {"id": f"p{i}", "timestamp": now - i * 60000, "size": 1024} for i in range(20)
    ])
    store.set(StorageKeys.DOG_FAVORITES, [
        {"id": f"d{i}", "url": f"https://dogs/{i}.jpg", "breed": "corgi"} for i in range(5)
    ])
    store.set(StorageKeys.GIPHY_FAVORITES, [
        {"id": f"g{i}", "title": "funny cat", "rating": "g"} for i in range(3)
    ])
    store.set(StorageKeys.NASA_FAVORITES, [
        {"id": "n1", "date": "2025-01-01", "title": "Orion Nebula", "mediaType": "image", "savedAt": now},
        {"id": "n2", "date": "2025-01-02", "title": "Andromeda", "mediaType": "image", "savedAt": now},
    ])
    for adapter_class in (CameraAdapter, DogGalleryAdapter, GiphyAdapter, NasaApodAdapter):
        registry.register(make_adapter(adapter_class))
    return registry


class TestCrossApp:
    def test_query_detection(self):
        assert is_cross_app_query("How many images across all apps?")
        assert not is_cross_app_query("How many images?")
        assert detect_concept("all my photos") == ("image", "images")
        assert detect_concept("total videos") == ("video", "videos")
        assert detect_concept("all my favorites") == (None, "favorites")
        assert detect_concept("all my stuff") is None

    def test_totals_by_type(self, gallery_registry):
        totals = gallery_registry.get_cross_app_totals("image")
        assert len(totals) == 1
        assert totals[0].total == 30
        assert [(c.app_name, c.count) for c in totals[0].by_app] == [
            ("camera", 20), ("dog", 5), ("giphy", 3), ("nasa", 2),
        ]

    def test_totals_for_all_types(self, gallery_registry):
        assert [t.type for t in gallery_registry.get_cross_app_totals()] == ["image"]

    def test_image_rollup_answer(self, gallery_registry):
        result = run(gallery_registry.get_response_for_query("How many images do I have across all apps?"))
        assert result.app_name == "dashboard"
        assert result.confidence == 1.0
        assert result.response == (
            "You have 30 images across all apps:\n"
            "• 20 photos (Camera)\n"
            "• 5 favorite dogs (Dog Gallery)\n"
            "• 3 GIFs (Giphy Gallery)\n"
            "• 2 space images (NASA APOD)"
        )

    def test_favorites_rollup_answer(self, gallery_registry):
        result = run(gallery_registry.get_response_for_query("show all my favorites"))
        assert result.response.startswith("You have 30 favorites across your apps:")

    def test_advice_about_all_apps_is_deferred(self, gallery_registry):
        """Test that advice phrasing wins over the cross-app rollup"""
        assert gallery_registry.get_cross_app_answer("how to organize all my photos") is not None
        assert run(gallery_registry.get_response_for_query("how to organize all my photos")) is None

    def test_rollup_without_contributions_falls_through(self, gallery_registry):
        result = run(gallery_registry.get_response_for_query("total videos everywhere"))
        assert result is None or result.app_name != "dashboard"

    def test_failing_aggregator_is_skipped(self, gallery_registry, logger):
        dog = gallery_registry.get("dog")

        def broken():
            raise RuntimeError("boom")

        dog.get_aggregate_data = broken

        totals = gallery_registry.get_cross_app_totals("image")
        assert totals[0].total == 25
        assert any(r["action"] == "getCrossAppTotals" for r in logger.records)
