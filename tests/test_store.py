"""Tests for the key-value store, its change channel and record models."""

import json

import pytest
from pydantic import ValidationError

from conftest import RecordingLogger, StubAdapter
from dashboard_agent.exceptions import CorruptStoreError
from dashboard_agent.store import ChangeChannel, KeyValueStore, StorageKeys
from dashboard_agent.store.models import (
    ApodFavorite,
    GiphyFavorite,
    HabitsDocument,
    NoteEntry,
    Photo,
    PomodoroStats,
    SavedPattern,
    UserProfile,
    to_millis,
)


class TestKeyValueStore:
    def test_get_returns_copy(self, store):
        store.set("items", [{"a": 1}])
        value = store.get("items")
        value[0]["a"] = 99
        assert store.get("items") == [{"a": 1}]

    def test_default_for_missing_key(self, store):
        assert store.get("missing") is None
        assert store.get("missing", []) == []

    def test_remove(self, store):
        store.set("key", 1)
        store.remove("key")
        store.remove("key")
        assert store.keys() == []

    def test_persists_to_file(self, tmp_path):
        path = tmp_path / "store.json"
        KeyValueStore(path=str(path), logger=RecordingLogger()).set("habits", {"habits": []})

        reopened = KeyValueStore(path=str(path), logger=RecordingLogger())
        assert reopened.get("habits") == {"habits": []}

    def test_corrupt_file_is_treated_as_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        logger = RecordingLogger()

        store = KeyValueStore(path=str(path), logger=logger)

        assert store.keys() == []
        assert logger.records[-1]["action"] == "load"

    def test_sync_emits_keys_changed_elsewhere(self, tmp_path):
        path = tmp_path / "store.json"
        store = KeyValueStore(path=str(path), logger=RecordingLogger())
        store.set("unchanged", 1)
        store.set("dogs", [])

        seen = []
        store.channel.listen("dogs", seen.append)
        store.channel.listen("unchanged", seen.append)

        # Another process rewrites the file
        path.write_text(json.dumps({"unchanged": 1, "dogs": [{"id": "1"}]}))

        assert store.sync() == ["dogs"]
        assert seen == ["dogs"]
        assert store.get("dogs") == [{"id": "1"}]

    def test_sync_without_file(self, store):
        assert store.sync() == []

    def test_set_does_not_emit(self, store):
        seen = []
        store.channel.listen("key", seen.append)
        store.set("key", 1)
        assert seen == []


class TestChangeChannel:
    def test_listen_and_unlisten(self):
        channel = ChangeChannel(RecordingLogger())
        seen = []
        unlisten = channel.listen("key", seen.append)

        channel.emit("key")
        channel.emit("other")
        unlisten()
        unlisten()
        channel.emit("key")

        assert seen == ["key"]
        assert channel.listener_count("key") == 0

    def test_failing_listener_is_isolated(self):
        logger = RecordingLogger()
        channel = ChangeChannel(logger)
        seen = []

        def broken(key):
            raise RuntimeError("listener bug")

        channel.listen("key", broken)
        channel.listen("key", seen.append)
        channel.emit("key")

        assert seen == ["key"]
        assert logger.records[-1]["metadata"] == {"key": "key"}


class TestModels:
    def test_habits_document(self):
        document = HabitsDocument.from_dict({
            "habits": [{"id": 1, "name": "Read", "emoji": "📚", "streak": 3, "longestStreak": 5,
                        "lastCheckIn": "2025-03-05", "checkIns": ["2025-03-04", "2025-03-05"]}],
            "stats": {"perfectDays": ["2025-03-01"]},
        })
        habit = document.habits[0]
        assert habit.id == "1"
        assert habit.longest_streak == 5
        assert habit.check_ins == ["2025-03-04", "2025-03-05"]
        assert document.perfect_days == ["2025-03-01"]

    @pytest.mark.parametrize("raw", [[], "habits", {"habits": "Read"}, {"habits": [{"name": "no id"}]}])
    def test_malformed_habits_document(self, raw):
        with pytest.raises(ValidationError):
            HabitsDocument.from_dict(raw)

    def test_note_with_iso_timestamp(self):
        note = NoteEntry.from_dict({
            "id": "n1",
            "content": "Call mom",
            "timestamp": "2025-03-05T12:00:00Z",
            "tasks": [{"text": "call", "completed": True}],
            "actionType": "task",
        })
        assert note.timestamp == 1741176000000
        assert note.tasks[0].completed is True
        assert note.action_type == "task"

    def test_to_millis(self):
        assert to_millis(None) == 0
        assert to_millis(1234.9) == 1234
        with pytest.raises(ValueError):
            to_millis(True)

    def test_pomodoro_stats_round_trip_keys(self):
        stats = PomodoroStats.from_dict({"sessionsCompleted": 2, "totalFocusMinutes": 50})
        assert stats.last_session_time is None
        assert stats.to_dict() == {"sessionsCompleted": 2, "totalFocusMinutes": 50, "lastSessionTime": None}

    def test_apod_rejects_unknown_media_type(self):
        with pytest.raises(ValidationError):
            ApodFavorite.from_dict({"id": "1", "date": "2025-01-01", "title": "x", "mediaType": "audio"})

    def test_saved_pattern_requires_tracks(self):
        with pytest.raises(ValidationError):
            SavedPattern.from_dict({"pattern": [True, False], "description": "x", "timestamp": 1})

    def test_nulls_and_blanks_take_defaults(self):
        gif = GiphyFavorite.from_dict({"id": 7, "title": None, "rating": "PG", "width": None})
        assert (gif.id, gif.title, gif.rating, gif.width) == ("7", "", "pg", 0)
        assert GiphyFavorite.from_dict({"id": "g", "rating": ""}).rating == "g"
        assert Photo.from_dict({"id": "p", "name": ""}).name is None

    def test_boolean_timestamp_is_malformed(self):
        with pytest.raises(ValidationError):
            Photo.from_dict({"id": "p", "timestamp": True})


class TestReadRecords:
    def test_malformed_item_is_corrupt_store(self, make_adapter, store):
        adapter = make_adapter(StubAdapter)
        store.set("photos", [{"id": "p1", "timestamp": 1}, {"name": "missing id"}])

        with pytest.raises(CorruptStoreError) as excinfo:
            adapter.read_records("photos", Photo.from_dict)
        assert isinstance(excinfo.value.__cause__, ValidationError)

    def test_malformed_object_is_corrupt_store(self, make_adapter, store):
        adapter = make_adapter(StubAdapter)
        store.set("stats", {"sessionsCompleted": "many"})

        with pytest.raises(CorruptStoreError):
            adapter.read_record("stats", PomodoroStats.from_dict)

    def test_valid_records(self, make_adapter, store):
        adapter = make_adapter(StubAdapter)
        store.set("photos", [{"id": "p1", "timestamp": 5, "isFavorite": True}])

        (photo,) = adapter.read_records("photos", Photo.from_dict)
        assert photo.is_favorite is True
        assert adapter.read_record("missing", Photo.from_dict) is None

    def test_profile_to_dict_uses_stored_names(self):
        profile = UserProfile.from_dict({"fullName": "Ada Lovelace", "address": {"city": "London"}})
        stored = profile.to_dict()
        assert stored["fullName"] == "Ada Lovelace"
        assert stored["address"]["city"] == "London"
        assert UserProfile.from_dict(stored) == profile

    def test_pomodoro_key_is_per_day(self):
        assert StorageKeys.pomodoro_stats("2025-03-05") == "pomodoro-stats-2025-03-05"
