"""Adapter for the notes app: notes, embedded tasks, tags and action types."""

import re
from typing import Any, Dict, List, Optional

from ..config import NOTES_REFRESH_INTERVAL
from ..store import StorageKeys
from ..store.models import NoteEntry
from .base import AppAdapter
from .types import SearchMatch, Snapshot

TAGS = ["work", "health", "money", "people", "growth", "life"]
ACTION_TYPES = ["task", "note", "idea", "goal", "reflect"]

ACTIVE_WINDOW_MS = 30 * 60 * 1000
DAY_MS = 24 * 60 * 60 * 1000

_SEARCH_TERM = re.compile(r"(?:search|find|about)\s+(?:for\s+)?[\"']?([^\"']+)[\"']?", re.IGNORECASE)


def _preview(text: str, length: int) -> str:
    return text[:length] + ("..." if len(text) > length else "")


class NotesAdapter(AppAdapter):
    """Notes are re-read every NOTES_REFRESH_INTERVAL seconds while subscribed."""

    app_name = "notes"
    display_name = "Notes"
    icon = "📝"
    inactive_summary = "No notes yet"
    refresh_interval = NOTES_REFRESH_INTERVAL

    # Notes answer from stored entries whether or not one was written recently
    respond_when_inactive = True

    def reset(self) -> None:
        self.entries: List[NoteEntry] = []

    def reload(self) -> None:
        self.entries = self.read_records(StorageKeys.NOTES, NoteEntry.from_dict)

    def _recent(self, count: int) -> List[NoteEntry]:
        return sorted(self.entries, key=lambda e: e.timestamp, reverse=True)[:count]

    def _task_stats(self) -> Dict[str, int]:
        total = sum(len(entry.tasks) for entry in self.entries)
        completed = sum(1 for entry in self.entries for task in entry.tasks if task.completed)
        return {"total": total, "completed": completed, "pending": total - completed}

    def _tag_distribution(self) -> Dict[str, int]:
        distribution = {tag: 0 for tag in TAGS}
        distribution["untagged"] = 0
        for entry in self.entries:
            if not entry.tags:
                distribution["untagged"] += 1
            for tag in entry.tags:
                distribution[tag] = distribution.get(tag, 0) + 1
        return distribution

    def _action_type_distribution(self) -> Dict[str, int]:
        distribution = {action: 0 for action in ACTION_TYPES}
        distribution["uncategorized"] = 0
        for entry in self.entries:
            key = entry.action_type or "uncategorized"
            distribution[key] = distribution.get(key, 0) + 1
        return distribution

    def empty_data(self) -> Dict[str, Any]:
        return {
            "total_notes": 0,
            "recent_notes": [],
            "task_count": {"total": 0, "completed": 0, "pending": 0},
            "tag_distribution": {**{tag: 0 for tag in TAGS}, "untagged": 0},
            "action_type_distribution": {**{a: 0 for a in ACTION_TYPES}, "uncategorized": 0},
            "last_update": None,
        }

    def transform(self) -> Dict[str, Any]:
        return {
            "total_notes": len(self.entries),
            "recent_notes": [
                {
                    "id": entry.id,
                    "content": _preview(entry.content, 100),
                    "timestamp": entry.timestamp,
                    "tags": list(entry.tags),
                    "action_type": entry.action_type,
                    "has_active_tasks": any(not task.completed for task in entry.tasks),
                }
                for entry in self._recent(5)
            ],
            "task_count": self._task_stats(),
            "tag_distribution": self._tag_distribution(),
            "action_type_distribution": self._action_type_distribution(),
            "last_update": max((entry.timestamp for entry in self.entries), default=None),
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        parts = []
        if data["total_notes"] > 0:
            parts.append(f"{data['total_notes']} notes")
        if data["task_count"]["pending"] > 0:
            parts.append(f"{data['task_count']['pending']} pending tasks")
        if data["recent_notes"]:
            parts.append(f"last note {self.relative_time(data['recent_notes'][0]['timestamp'])}")
        return ", ".join(parts) if parts else self.inactive_summary

    def is_active(self, data: Dict[str, Any]) -> bool:
        now = self.clock.now()
        return any(now - note["timestamp"] < ACTIVE_WINDOW_MS for note in data["recent_notes"])

    def last_used(self, data: Dict[str, Any]) -> int:
        return data["last_update"] or 0

    def keywords(self) -> List[str]:
        return [
            "note", "notes",
            "task", "tasks", "todo", "todos",
            "idea", "ideas",
            "reflection", "reflect", "journal",
            "wrote", "written", "jotted",
            "remember", "reminder",
            "tag", "tags", "tagged",
        ] + TAGS

    def capabilities(self) -> List[str]:
        return [
            "note-taking",
            "task-management",
            "idea-capture",
            "reflection-journaling",
            "tag-organization",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(query, data)
        if "task" in query or "todo" in query:
            return self._task_response()
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response()
        if "tag" in query or "category" in query:
            return self._tag_response(query)
        if "search" in query or "find" in query:
            return self._search_response(query)
        return self._overview_response(data)

    def _count_response(self, query: str, data: Dict[str, Any]) -> str:
        tasks = data["task_count"]
        if "task" in query:
            return (
                f"You have {tasks['total']} tasks total: "
                f"{tasks['completed']} completed and {tasks['pending']} pending."
            )
        if "note" in query:
            return f"You have {data['total_notes']} notes in your collection."
        return f"You have {data['total_notes']} notes with {tasks['total']} tasks ({tasks['pending']} pending)."

    def _task_response(self) -> str:
        stats = self._task_stats()
        if stats["total"] == 0:
            return "You don't have any tasks in your notes yet."

        pending = [
            (task, entry)
            for entry in self._recent(len(self.entries))
            for task in entry.tasks
            if not task.completed
        ][:5]

        response = f"You have {stats['pending']} pending tasks"
        if pending:
            response += ". Here are your most recent:\n"
            for task, entry in pending:
                response += f"• {task.text} (from note: \"{entry.content[:30]}...\")\n"
        return response

    def _recent_response(self) -> str:
        recent = self._recent(3)
        if not recent:
            return "You haven't created any notes yet."

        response = f"Your {len(recent)} most recent notes:\n"
        for entry in recent:
            tags = f" [{', '.join(entry.tags)}]" if entry.tags else ""
            response += f"• {self.relative_time(entry.timestamp)}: \"{_preview(entry.content, 80)}\"{tags}\n"
        return response

    def _tag_response(self, query: str) -> str:
        distribution = self._tag_distribution()

        requested = next((tag for tag in TAGS if tag in query), None)
        if requested and distribution[requested] > 0:
            tagged = [entry for entry in self._recent(len(self.entries)) if requested in entry.tags][:3]
            response = f"You have {distribution[requested]} notes tagged with \"{requested}\""
            if tagged:
                response += ". Recent ones:\n"
                for entry in tagged:
                    response += f"• \"{entry.content[:60]}...\"\n"
            return response

        active = [tag for tag in TAGS if distribution[tag] > 0]
        if not active:
            return (
                "You haven't tagged any notes yet. Tags help organize notes into life areas: "
                "work, health, money, people, growth, and life."
            )

        response = "Your notes by category:\n"
        for tag in active:
            response += f"• {tag}: {distribution[tag]} notes\n"
        if distribution["untagged"] > 0:
            response += f"• untagged: {distribution['untagged']} notes\n"
        return response

    def _search_response(self, query: str) -> str:
        match = _SEARCH_TERM.search(query)
        if not match:
            return "What would you like to search for in your notes?"

        term = match.group(1).strip().lower()
        matches = [entry for entry in self._recent(len(self.entries)) if term in entry.content.lower()]
        if not matches:
            return f"I couldn't find any notes containing \"{term}\"."

        response = f"Found {len(matches)} notes containing \"{term}\":\n"
        for entry in matches[:3]:
            response += f"• \"{_preview(entry.content, 80)}\"\n"
        if len(matches) > 3:
            response += f"...and {len(matches) - 3} more."
        return response

    def _overview_response(self, data: Dict[str, Any]) -> str:
        if data["total_notes"] == 0:
            return "You haven't created any notes yet. Start capturing your thoughts, tasks, and ideas!"

        response = f"You have {data['total_notes']} notes"
        if data["task_count"]["pending"] > 0:
            response += f" with {data['task_count']['pending']} pending tasks"
        if data["recent_notes"]:
            last = data["recent_notes"][0]
            response += f". Your last note was {self.relative_time(last['timestamp'])}"
            if last["action_type"]:
                response += f" ({last['action_type']})"
        return response + "."

    def _relevance(self, entry: NoteEntry, query: str) -> float:
        score = entry.content.lower().count(query) * 10.0
        if any(query in tag.lower() for tag in entry.tags):
            score += 20
        if entry.action_type and query in entry.action_type.lower():
            score += 15
        age_days = (self.clock.now() - entry.timestamp) / DAY_MS
        return score + max(0.0, 10 - age_days)

    def find_matches(self, query: str) -> List[SearchMatch]:
        matches = [
            entry for entry in self.entries
            if query in entry.content.lower()
            or any(query in tag.lower() for tag in entry.tags)
            or (entry.action_type and query in entry.action_type.lower())
        ]
        matches.sort(key=lambda entry: self._relevance(entry, query), reverse=True)
        return [
            SearchMatch(
                type="note",
                label=_preview(entry.content, 50),
                value=entry.content,
                field=f"note.{entry.id}",
            )
            for entry in matches
        ]
