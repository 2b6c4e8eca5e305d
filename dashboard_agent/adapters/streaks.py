"""Adapter for the habit streak tracker."""

from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import HabitsDocument
from .base import AppAdapter
from .types import SearchMatch, Snapshot


class StreakAdapter(AppAdapter):
    """Habits, current streaks, daily check-ins and perfect days."""

    app_name = "streaks"
    display_name = "Habit Streaks"
    icon = "🔥"
    inactive_summary = "No habits tracked yet"

    # Answers about streaks are useful even before today's first check-in
    respond_when_inactive = True

    def reset(self) -> None:
        self.document = HabitsDocument()

    def reload(self) -> None:
        self.document = self.read_record(StorageKeys.HABITS, HabitsDocument.from_dict) or HabitsDocument()

    def empty_data(self) -> Dict[str, Any]:
        return {
            "habits": [],
            "stats": {
                "total_habits": 0,
                "total_check_ins": 0,
                "best_streak": 0,
                "habits_completed_today": 0,
                "perfect_days_count": 0,
                "last_perfect_day": None,
            },
            "recent_activity": [],
        }

    def transform(self) -> Dict[str, Any]:
        today = self.clock.local_date()
        habits = [
            {
                "id": habit.id,
                "name": habit.name,
                "emoji": habit.emoji,
                "streak": habit.streak,
                "longest_streak": habit.longest_streak,
                "last_check_in": habit.last_check_in,
                "total_check_ins": len(habit.check_ins),
                "is_checked_today": habit.last_check_in == today,
            }
            for habit in self.document.habits
        ]
        perfect_days = self.document.perfect_days

        return {
            "habits": habits,
            "stats": {
                "total_habits": len(habits),
                "total_check_ins": sum(h["total_check_ins"] for h in habits),
                "best_streak": max([0] + [h["longest_streak"] for h in habits]),
                "habits_completed_today": sum(1 for h in habits if h["is_checked_today"]),
                "perfect_days_count": len(perfect_days),
                "last_perfect_day": perfect_days[-1] if perfect_days else None,
            },
            "recent_activity": self._recent_activity(),
        }

    def _recent_activity(self, days: int = 7) -> List[Dict[str, Any]]:
        window = {self.clock.days_ago(i).strftime("%Y-%m-%d") for i in range(days)}
        activity: Dict[str, List[str]] = {}
        for habit in self.document.habits:
            for check_in in habit.check_ins:
                if check_in in window:
                    names = activity.setdefault(check_in, [])
                    if habit.name not in names:
                        names.append(habit.name)

        return [
            {"date": date, "habits_completed": len(names), "habit_names": names}
            for date, names in sorted(activity.items(), reverse=True)
        ]

    def summarize(self, data: Dict[str, Any]) -> str:
        habits = data["habits"]
        if not habits:
            return self.inactive_summary

        parts = [f"{len(habits)} habits"]
        completed = data["stats"]["habits_completed_today"]
        if completed > 0:
            parts.append(f"{completed} completed today")

        current = [h["streak"] for h in habits if h["streak"] > 0]
        if current:
            parts.append(f"{max(current)} day streak")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return any(self.is_today(h["last_check_in"]) for h in data["habits"])

    def last_used(self, data: Dict[str, Any]) -> int:
        stamps = [self.timestamp_of(h["last_check_in"]) for h in data["habits"] if h["last_check_in"]]
        return max(stamps, default=0)

    def keywords(self) -> List[str]:
        return [
            "habit", "habits", "streak", "streaks", "check in", "check-in",
            "daily", "routine", "progress", "perfect day", "consistency",
            "tracking", "goal", "goals",
        ] + [habit.name.lower() for habit in self.document.habits if habit.name]

    def capabilities(self) -> List[str]:
        return [
            "habit-tracking",
            "streak-management",
            "daily-check-ins",
            "progress-tracking",
            "perfect-days",
            "achievement-tracking",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if not data["habits"]:
            return self.inactive_response()

        for habit in data["habits"]:
            if habit["name"] and habit["name"].lower() in query:
                return self._habit_response(habit)

        if "today" in query or "check in" in query:
            return self._today_response(data)
        if "streak" in query:
            return self._streak_response(data)
        if "perfect" in query:
            return self._perfect_days_response(data)
        return self._overview_response(data)

    def _habit_response(self, habit: Dict[str, Any]) -> str:
        lines = [f"{habit['emoji']} **{habit['name']}**:"]
        lines.append("✅ Completed today" if habit["is_checked_today"] else "⏳ Not completed today")
        if habit["streak"] > 0:
            lines.append(f"🔥 Current streak: {habit['streak']} days")
        if habit["longest_streak"] > 0:
            lines.append(f"🏆 Best streak: {habit['longest_streak']} days")
        lines.append(f"📊 Total check-ins: {habit['total_check_ins']}")
        return "\n".join(lines)

    def _today_response(self, data: Dict[str, Any]) -> str:
        total = len(data["habits"])
        completed = data["stats"]["habits_completed_today"]
        if completed == 0:
            return f"You haven't completed any habits today. You have {total} habits to work on."

        names = ", ".join(h["name"] for h in data["habits"] if h["is_checked_today"])
        response = f"You've completed {completed} out of {total} habits today: {names}."
        remaining = total - completed
        if remaining > 0:
            response += f" {remaining} habits remaining."
        else:
            response += " 🎉 Perfect day!"
        return response

    def _streak_response(self, data: Dict[str, Any]) -> str:
        active = sorted(
            (h for h in data["habits"] if h["streak"] > 0),
            key=lambda h: h["streak"],
            reverse=True,
        )
        if not active:
            return "You don't have any active streaks. Start checking in daily to build them!"

        lines = "\n".join(f"{h['emoji']} {h['name']}: {h['streak']} days" for h in active)
        return f"Your current streaks:\n{lines}\n\nBest all-time streak: {data['stats']['best_streak']} days"

    def _perfect_days_response(self, data: Dict[str, Any]) -> str:
        stats = data["stats"]
        if stats["perfect_days_count"] == 0:
            return "You haven't had any perfect days yet. Complete all your habits in one day to achieve this!"

        response = f"You've had {stats['perfect_days_count']} perfect days!"
        if stats["last_perfect_day"]:
            response += f" Your last perfect day was {self.relative_time(stats['last_perfect_day'])}."
        return response

    def _overview_response(self, data: Dict[str, Any]) -> str:
        lines = [f"You're tracking {len(data['habits'])} habits:"]
        for habit in data["habits"]:
            status = "✅" if habit["is_checked_today"] else "⏳"
            streak = f" ({habit['streak']} day streak)" if habit["streak"] > 0 else ""
            lines.append(f"{status} {habit['emoji']} {habit['name']}{streak}")

        stats = data["stats"]
        lines.append("")
        lines.append(f"📊 Total check-ins: {stats['total_check_ins']}")
        lines.append(f"🏆 Best streak: {stats['best_streak']} days")
        lines.append(f"⭐ Perfect days: {stats['perfect_days_count']}")
        return "\n".join(lines)

    def find_matches(self, query: str) -> List[SearchMatch]:
        return [
            SearchMatch(
                type="habit",
                label=f"{habit.emoji} {habit.name}",
                value=f"{habit.streak} day streak",
                field=f"habit.{habit.id}",
            )
            for habit in self.document.habits
            if query in habit.name.lower() or (habit.emoji and query in habit.emoji)
        ]
