"""Tests for StreakAdapter."""

import pytest

from conftest import run
from dashboard_agent.adapters import StreakAdapter
from dashboard_agent.store import StorageKeys

HABITS = {
    "habits": [
        {"id": "h1", "name": "Meditate", "emoji": "🧘", "streak": 12, "longestStreak": 20,
         "lastCheckIn": "2025-03-05", "checkIns": ["2025-03-03", "2025-03-04", "2025-03-05"]},
        {"id": "h2", "name": "Read", "emoji": "📚", "streak": 3, "longestStreak": 9,
         "lastCheckIn": "2025-03-04", "checkIns": ["2025-03-04", "2025-02-01"]},
        {"id": "h3", "name": "Run", "emoji": "🏃", "streak": 0, "longestStreak": 4,
         "lastCheckIn": None, "checkIns": []},
    ],
    "stats": {"perfectDays": ["2025-02-20", "2025-03-01"]},
}


@pytest.fixture
def adapter(make_adapter, store):
    store.set(StorageKeys.HABITS, HABITS)
    return make_adapter(StreakAdapter)


class TestSnapshot:
    def test_stats(self, adapter):
        snapshot = adapter.get_snapshot()
        stats = snapshot.data["stats"]
        assert stats["total_habits"] == 3
        assert stats["total_check_ins"] == 5
        assert stats["best_streak"] == 20
        assert stats["habits_completed_today"] == 1
        assert stats["perfect_days_count"] == 2
        assert stats["last_perfect_day"] == "2025-03-01"

    def test_summary_and_activity(self, adapter):
        snapshot = adapter.get_snapshot()
        assert snapshot.summary == "3 habits, 1 completed today, 12 day streak"
        assert snapshot.is_active is True
        assert snapshot.icon == "🔥"

    def test_recent_activity_window(self, adapter):
        activity = adapter.get_snapshot().data["recent_activity"]
        assert [day["date"] for day in activity] == ["2025-03-05", "2025-03-04", "2025-03-03"]
        assert activity[1]["habit_names"] == ["Meditate", "Read"]

    def test_empty_store(self, make_adapter):
        snapshot = make_adapter(StreakAdapter).get_snapshot()
        assert snapshot.is_active is False
        assert snapshot.summary == "No habits tracked yet"
        assert snapshot.data["habits"] == []

    def test_corrupt_store(self, make_adapter, store, logger):
        store.set(StorageKeys.HABITS, {"habits": "oops"})
        snapshot = make_adapter(StreakAdapter).get_snapshot()
        assert snapshot.is_active is False
        assert snapshot.data["stats"]["total_habits"] == 0
        assert "reload" in logger.actions()


class TestResponses:
    def test_today(self, adapter):
        response = run(adapter.get_response("Did I check in today?"))
        assert response == "You've completed 1 out of 3 habits today: Meditate. 2 habits remaining."

    def test_streaks(self, adapter):
        response = run(adapter.get_response("show my streaks"))
        assert response == (
            "Your current streaks:\n🧘 Meditate: 12 days\n📚 Read: 3 days\n\nBest all-time streak: 20 days"
        )

    def test_specific_habit(self, adapter):
        response = run(adapter.get_response("how is my read habit going"))
        assert response.startswith("📚 **Read**:\n⏳ Not completed today")

    def test_perfect_days(self, adapter):
        response = run(adapter.get_response("perfect days?"))
        assert response == "You've had 2 perfect days! Your last perfect day was 4 days ago."

    def test_advice_is_deferred(self, adapter):
        assert run(adapter.get_response("what should I do to keep my streak")) == ""

    def test_no_habits(self, make_adapter):
        response = run(make_adapter(StreakAdapter).get_response("my streaks"))
        assert response == "The Habit Streaks app is not currently active or has no data available."


class TestKeywordsAndSearch:
    def test_habit_names_are_keywords(self, adapter):
        assert "meditate" in adapter.keywords()
        assert run(adapter.get_confidence("did I meditate")) == 0.9

    def test_search(self, adapter):
        matches = run(adapter.search("MED"))
        assert len(matches) == 1
        assert matches[0].label == "🧘 Meditate"
        assert matches[0].value == "12 day streak"
        assert matches[0].field == "habit.h1"
