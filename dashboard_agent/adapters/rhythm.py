"""Adapter for the rhythm machine's drum pattern save slots."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import CorruptStoreError
from ..store import StorageKeys
from ..store.models import SavedPattern
from .base import AppAdapter
from .types import SearchMatch, Snapshot

SLOT_COUNT = 5

# Checked in order; the first substring found in the description wins
GENRE_MARKERS = [
    ("techno", "techno"),
    ("house", "house"),
    ("trap", "trap"),
    ("break", "breakbeat"),
    ("minimal", "minimal"),
    ("808", "808"),
    ("jazz", "jazz"),
    ("afro", "afrobeat"),
    ("lo-fi", "lo-fi"),
    ("lofi", "lo-fi"),
    ("glitch", "glitch"),
    ("ambient", "ambient"),
    ("rock", "rock"),
]

ASKABLE_GENRES = ["techno", "house", "trap", "jazz", "afrobeat", "808", "minimal"]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def category_of(pattern: SavedPattern) -> str:
    if pattern.category:
        return pattern.category
    description = pattern.description.lower()
    for marker, genre in GENRE_MARKERS:
        if marker in description:
            return genre
    return "other"


def complexity_of(pattern: SavedPattern) -> float:
    """Fraction of active steps across all tracks."""
    steps = [step for track in pattern.pattern for step in track]
    return sum(1 for step in steps if step) / len(steps) if steps else 0.0


def bar_count(pattern: SavedPattern) -> int:
    if not pattern.pattern or not pattern.pattern[0]:
        return 0
    steps = len(pattern.pattern[0])
    if steps <= 4:
        return 1
    if steps <= 8:
        return 2
    if steps <= 16:
        return 4
    return 8


class RhythmMachineAdapter(AppAdapter):
    app_name = "rhythm"
    display_name = "Rhythm Machine"
    icon = "🥁"
    inactive_summary = "No drum patterns saved yet"
    watch_key = StorageKeys.RHYTHM_SAVE_SLOTS
    respond_when_inactive = True

    def reset(self) -> None:
        self.slots: List[Optional[SavedPattern]] = [None] * SLOT_COUNT

    def reload(self) -> None:
        raw = self.store.get(StorageKeys.RHYTHM_SAVE_SLOTS)
        if raw is None:
            self.reset()
            return
        if not isinstance(raw, list):
            raise CorruptStoreError(f"save slots should be a list, got {type(raw).__name__}")

        # Older versions stored bare step grids; those cannot be described, so start empty
        if raw and isinstance(raw[0], list):
            self.reset()
            return

        try:
            self.slots = [SavedPattern.from_dict(slot) if slot else None for slot in raw]
        except ValidationError as e:
            raise CorruptStoreError(f"Malformed save slot: {e}") from e

    def _saved(self) -> List[SavedPattern]:
        return [slot for slot in self.slots if slot is not None]

    def empty_data(self) -> Dict[str, Any]:
        return {
            "patterns": {"total": 0, "categories": {}, "recent": []},
            "stats": {
                "popular_categories": [],
                "average_complexity": 0.0,
                "most_active_slot": None,
                "total_beats": 0,
                "genres_used": [],
            },
        }

    def transform(self) -> Dict[str, Any]:
        saved = sorted(self._saved(), key=lambda p: p.timestamp, reverse=True)

        categories: Dict[str, int] = {}
        for pattern in saved:
            category = category_of(pattern)
            categories[category] = categories.get(category, 0) + 1

        most_active_slot = None
        latest = 0
        for index, slot in enumerate(self.slots):
            if slot is not None and slot.timestamp > latest:
                latest = slot.timestamp
                most_active_slot = index + 1

        ranked = sorted(categories.items(), key=lambda item: item[1], reverse=True)
        return {
            "patterns": {
                "total": len(saved),
                "categories": categories,
                "recent": [
                    {
                        "description": pattern.description,
                        "category": category_of(pattern),
                        "timestamp": pattern.timestamp,
                        "complexity": complexity_of(pattern),
                        "bars": bar_count(pattern),
                    }
                    for pattern in saved[:SLOT_COUNT]
                ],
            },
            "stats": {
                "popular_categories": [category for category, _ in ranked[:3]],
                "average_complexity": (
                    sum(complexity_of(p) for p in saved) / len(saved) if saved else 0.0
                ),
                "most_active_slot": most_active_slot,
                "total_beats": sum(1 for p in saved for track in p.pattern for step in track if step),
                "genres_used": list(categories),
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        total = data["patterns"]["total"]
        if total == 0:
            return self.inactive_summary

        parts = [f"{total} drum patterns"]
        popular = data["stats"]["popular_categories"]
        if popular:
            parts.append(f"mostly {popular[0]}")
        complexity = round(data["stats"]["average_complexity"] * 100)
        if complexity > 60:
            parts.append("complex beats")
        elif complexity < 30:
            parts.append("minimal grooves")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return data["patterns"]["total"] > 0

    def last_used(self, data: Dict[str, Any]) -> int:
        recent = data["patterns"]["recent"]
        return recent[0]["timestamp"] if recent else 0

    def keywords(self) -> List[str]:
        return [
            "drum", "drums", "beat", "beats", "rhythm", "pattern",
            "music", "groove", "tempo", "bpm", "kick", "snare",
            "hihat", "hi-hat", "clap", "percussion", "sequencer",
            "techno", "house", "trap", "jazz", "afrobeat",
        ]

    def capabilities(self) -> List[str]:
        return [
            "drum-patterns",
            "beat-creation",
            "rhythm-sequencing",
            "genre-exploration",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(data)
        for genre in ASKABLE_GENRES:
            if genre in query:
                return self._genre_response(genre, data)
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response(data)
        if "complex" in query or "simple" in query or "busy" in query:
            return self._complexity_response(data)
        if "slot" in query or "save" in query:
            return self._slot_response(data)
        return self._overview_response(data)

    def _count_response(self, data: Dict[str, Any]) -> str:
        total = data["patterns"]["total"]
        if total == 0:
            return "You haven't saved any drum patterns yet. Fire up the Rhythm Machine and create some beats!"

        empty = SLOT_COUNT - total
        response = f"You have {total} drum pattern{_plural(total)} saved"
        if empty > 0:
            response += f" with {empty} empty slot{_plural(empty)} available."
        else:
            response += " (all slots full)."

        beats = data["stats"]["total_beats"]
        if beats > 100:
            response += f" That's {beats} individual drum hits programmed!"
        return response

    def _genre_response(self, genre: str, data: Dict[str, Any]) -> str:
        count = data["patterns"]["categories"].get(genre, 0)
        if count == 0:
            return f"You don't have any {genre} patterns saved yet. Try creating a {genre} beat in the Rhythm Machine!"

        response = f"You have {count} {genre} pattern{_plural(count)} saved"
        popular = data["stats"]["popular_categories"]
        if popular and popular[0] == genre:
            return response + f". {genre.capitalize()} is your favorite style!"
        return response + "."

    def _recent_response(self, data: Dict[str, Any]) -> str:
        recent = data["patterns"]["recent"]
        if not recent:
            return "No drum patterns saved yet. Create your first beat in the Rhythm Machine!"

        latest = recent[0]
        response = (
            f"Your most recent pattern is a {latest['bars']}-bar {latest['category']} beat: "
            f"\"{latest['description']}\", created {self.relative_time(latest['timestamp'])}"
        )
        complexity = round(latest["complexity"] * 100)
        if complexity > 70:
            response += " (complex pattern)"
        elif complexity < 30:
            response += " (minimal groove)"
        response += "."

        if len(recent) > 1:
            response += " Recent patterns:"
            for pattern in recent[:3]:
                response += f"\n• {pattern['description']} ({pattern['category']})"
        return response

    def _complexity_response(self, data: Dict[str, Any]) -> str:
        if data["patterns"]["total"] == 0:
            return "No patterns saved to analyze complexity."

        average = round(data["stats"]["average_complexity"] * 100)
        response = f"Your drum patterns have an average complexity of {average}%"
        if average > 60:
            response += ". You tend to create busy, complex beats with lots of hits!"
        elif average < 30:
            response += ". You prefer minimal, spacious grooves that breathe."
        else:
            response += ". You have a nice balance between busy and minimal patterns."

        recent = data["patterns"]["recent"]
        if len(recent) > 1:
            ordered = sorted(recent, key=lambda p: p["complexity"], reverse=True)
            busiest, sparsest = ordered[0], ordered[-1]
            response += f"\n\nMost complex: \"{busiest['description']}\" ({round(busiest['complexity'] * 100)}%)"
            response += f"\nMost minimal: \"{sparsest['description']}\" ({round(sparsest['complexity'] * 100)}%)"
        return response

    def _slot_response(self, data: Dict[str, Any]) -> str:
        lines = ["Save slot status:"]
        for index, slot in enumerate(self.slots):
            if slot is not None:
                lines.append(f"• Slot {index + 1}: {slot.description} ({category_of(slot)})")
            else:
                lines.append(f"• Slot {index + 1}: Empty")

        most_active = data["stats"]["most_active_slot"]
        if most_active:
            lines.append("")
            lines.append(f"Slot {most_active} is your most recently used.")
        return "\n".join(lines)

    def _overview_response(self, data: Dict[str, Any]) -> str:
        total = data["patterns"]["total"]
        if total == 0:
            return "Rhythm Machine: No patterns saved yet. Create beats and explore different genres!"

        response = f"Rhythm Machine: {total} drum patterns"
        popular = data["stats"]["popular_categories"]
        if popular:
            response += f" (mostly {' and '.join(popular[:2])})"
        empty = SLOT_COUNT - total
        if empty > 0:
            response += f", {empty} slots available"
        return response + "."

    def find_matches(self, query: str) -> List[SearchMatch]:
        scored = []
        for index, slot in enumerate(self.slots):
            if slot is None:
                continue
            category = category_of(slot)
            relevance = 0
            if query in slot.description.lower():
                relevance += 100
            if query in category:
                relevance += 50
            if relevance:
                scored.append((relevance, index + 1, slot, category))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            SearchMatch(
                type="drum-pattern",
                label=slot.description,
                value=category,
                field=f"rhythm.slot-{number}",
            )
            for _, number, slot, category in scored
        ]
