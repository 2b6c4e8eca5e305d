"""Adapter for the Pomodoro focus timer."""

import math
from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import PomodoroStats
from .base import AppAdapter
from .types import Snapshot

HOUR_MS = 60 * 60 * 1000


class PomodoroAdapter(AppAdapter):
    """
    Today's focus statistics plus the live timer state.

    Stats are stored per local day; the timer state lives in memory and is
    pushed in by the timer UI through ``update_timer_state``.
    """

    app_name = "pomodoro"
    display_name = "Pomodoro Timer"
    icon = "🍅"
    respond_when_inactive = True

    def __init__(self, *args, **kwargs):
        self.timer_open = False
        self.is_running = False
        self.current_session: Optional[Dict[str, Any]] = None
        super().__init__(*args, **kwargs)

    def reset(self) -> None:
        self.stats = PomodoroStats()

    def reload(self) -> None:
        key = StorageKeys.pomodoro_stats(self.clock.local_date())
        self.stats = self.read_record(key, PomodoroStats.from_dict) or PomodoroStats()

    def _save_stats(self) -> None:
        key = StorageKeys.pomodoro_stats(self.clock.local_date())
        self.store.set(key, self.stats.to_dict())

    def empty_data(self) -> Dict[str, Any]:
        return {
            "is_active": False,
            "is_running": False,
            "current_session": None,
            "today_stats": {
                "sessions_completed": 0,
                "total_focus_minutes": 0,
                "last_session_time": None,
            },
        }

    def transform(self) -> Dict[str, Any]:
        return {
            "is_active": self.timer_open,
            "is_running": self.is_running,
            "current_session": dict(self.current_session) if self.current_session else None,
            "today_stats": {
                "sessions_completed": self.stats.sessions_completed,
                "total_focus_minutes": self.stats.total_focus_minutes,
                "last_session_time": self.stats.last_session_time,
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        session = data["current_session"]
        stats = data["today_stats"]
        if data["is_running"] and session:
            minutes_left = math.ceil(session["time_remaining"] / 60)
            return f"Focus session active: {minutes_left}/{session['selected_minutes']} minutes remaining"
        if stats["sessions_completed"] > 0:
            return (
                f"{stats['sessions_completed']} sessions completed today, "
                f"{stats['total_focus_minutes']} minutes focused"
            )
        return "No focus sessions today"

    def last_used(self, data: Dict[str, Any]) -> int:
        return data["today_stats"]["last_session_time"] or 0

    def is_active(self, data: Dict[str, Any]) -> bool:
        last = self.last_used(data)
        recent = bool(last) and self.clock.now() - last < HOUR_MS
        return data["is_active"] or recent

    def keywords(self) -> List[str]:
        return [
            "pomodoro", "timer", "focus", "focused", "focusing",
            "session", "sessions", "productivity",
            "work", "working", "concentrate", "concentration",
            "break", "breaks", "time left", "remaining",
            "completed", "finish", "done",
        ]

    def capabilities(self) -> List[str]:
        return [
            "focus-timer",
            "productivity-tracking",
            "session-management",
            "break-reminders",
            "focus-statistics",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        if "timer" in query or "time left" in query or "remaining" in query:
            return self._timer_response()
        if "today" in query or "session" in query or "productivity" in query:
            return self._today_response()
        return self._overview_response()

    def _timer_response(self) -> str:
        if not self.timer_open:
            return "The Pomodoro timer isn't active right now. Ready to start a focus session?"

        session = self.current_session
        if self.is_running and session:
            minutes, seconds = divmod(int(session["time_remaining"]), 60)
            clock = f"{minutes}:{seconds:02d}"
            selected = session["selected_minutes"]
            if session["progress"] > 90:
                return f"Almost done! Just {clock} left in your {selected}-minute focus session. Finish strong! 🏁"
            if session["progress"] > 50:
                return f"{clock} remaining in your {selected}-minute session. You're over halfway there! 💪"
            return f"{clock} remaining in your {selected}-minute focus session. Stay focused! 🎯"

        if session and session["phase"] == "paused":
            return f"Timer is paused with {int(session['time_remaining']) // 60} minutes remaining. Ready to continue?"

        return "Timer is set up but not started yet. Click start when you're ready to focus!"

    def _today_response(self) -> str:
        completed = self.stats.sessions_completed
        if completed == 0:
            return "You haven't completed any Pomodoro sessions today. Ready to start your first focus session?"

        plural = "s" if completed > 1 else ""
        response = (
            f"Great productivity today! You've completed {completed} Pomodoro session{plural} "
            f"for a total of {self.stats.total_focus_minutes} minutes of focused work. "
        )

        if self.stats.last_session_time:
            hours_since = (self.clock.now() - self.stats.last_session_time) // HOUR_MS
            if hours_since < 1:
                response += "Keep up the momentum!"
            elif hours_since < 3:
                response += "Perfect time for another session!"
            else:
                response += "Ready for another focus session?"
        return response

    def _overview_response(self) -> str:
        if self.is_running:
            return self._timer_response()

        completed = self.stats.sessions_completed
        if completed > 0:
            status = "Timer is open and ready!" if self.timer_open else "Open the timer to start another session."
            return (
                f"Pomodoro Timer: {completed} sessions completed today "
                f"({self.stats.total_focus_minutes} minutes total). {status}"
            )

        return (
            "Pomodoro Timer helps you focus with timed work sessions. The classic technique "
            "uses 25-minute focus periods. Ready to boost your productivity?"
        )

    def update_timer_state(
        self,
        is_active: bool,
        is_running: bool,
        selected_minutes: Optional[int] = None,
        time_remaining: Optional[int] = None,
    ) -> None:
        """
        Record the timer UI's state and notify subscribers.

        Args:
            is_active: Timer panel is open
            is_running: Countdown is running
            selected_minutes: Session length; omit to clear the current session
            time_remaining: Seconds left in the session
        """
        self.timer_open = is_active
        self.is_running = is_running

        if selected_minutes and time_remaining is not None:
            total_seconds = selected_minutes * 60
            if is_running:
                phase = "running"
            elif time_remaining == total_seconds:
                phase = "setup"
            else:
                phase = "paused"
            self.current_session = {
                "selected_minutes": selected_minutes,
                "time_remaining": time_remaining,
                "progress": (total_seconds - time_remaining) / total_seconds * 100,
                "phase": phase,
            }
        else:
            self.current_session = None

        self._notify_subscribers()

    def complete_session(self, minutes: int) -> None:
        """Count a finished focus session toward today's stats and persist them."""
        self._refresh()
        self.stats.sessions_completed += 1
        self.stats.total_focus_minutes += minutes
        self.stats.last_session_time = self.clock.now()
        self._save_stats()

        self.is_running = False
        self.current_session = None
        self._notify_subscribers()
