"""Clock/date port used by adapters for "now", parsing and human-readable times."""

import calendar
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional

_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


class Clock(ABC):
    """Abstract clock. All datetimes are naive local times."""

    @abstractmethod
    def current_datetime(self) -> datetime:
        """Return the current local datetime."""
        pass

    def now(self) -> int:
        """Return the current time as epoch milliseconds."""
        return self.to_timestamp(self.current_datetime())

    def to_timestamp(self, value: datetime) -> int:
        return int(value.timestamp() * 1000)

    def from_timestamp(self, millis: float) -> datetime:
        return datetime.fromtimestamp(millis / 1000.0)

    def local_date(self) -> str:
        """Return today's date as ``YYYY-MM-DD``."""
        return self.current_datetime().strftime("%Y-%m-%d")

    def start_of_day(self) -> int:
        """Return local midnight of today as epoch milliseconds."""
        current = self.current_datetime()
        midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
        return self.to_timestamp(midnight)

    def days_ago(self, days: int) -> datetime:
        return self.current_datetime() - timedelta(days=days)

    def months_ago(self, months: int) -> datetime:
        """Same time of day ``months`` calendar months back, clamped to the month's last day."""
        current = self.current_datetime()
        year, month_index = divmod(current.year * 12 + current.month - 1 - months, 12)
        day = min(current.day, calendar.monthrange(year, month_index + 1)[1])
        return current.replace(year=year, month=month_index + 1, day=day)

    def parse(self, value: Optional[str]) -> Optional[datetime]:
        """
        Parse an ISO-8601 datetime or a ``YYYY-MM-DD`` date.

        Args:
            value: String to parse

        Returns:
            Naive local datetime, or None if the value is empty or malformed
        """
        if not value or not isinstance(value, str):
            return None

        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"

        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.combine(date.fromisoformat(text[:10]), datetime.min.time())
            except ValueError:
                return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed

    def format(self, value: datetime) -> str:
        """Format a datetime as e.g. ``Mar 5, 2025``."""
        return f"{_MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"

    def time_ago(self, value: datetime) -> str:
        """Return a relative time string such as ``3 hours ago``."""
        seconds = int((self.current_datetime() - value).total_seconds())
        if seconds < 60:
            return "just now"

        minutes = seconds // 60
        if minutes < 60:
            return _plural(minutes, "minute")

        hours = minutes // 60
        if hours < 24:
            return _plural(hours, "hour")

        days = hours // 24
        if days < 7:
            return _plural(days, "day")

        weeks = days // 7
        if weeks < 4:
            return _plural(weeks, "week")

        months = days // 30
        if months < 12:
            return _plural(max(months, 1), "month")

        return _plural(max(days // 365, 1), "year")


class SystemClock(Clock):
    """Wall-clock implementation."""

    def current_datetime(self) -> datetime:
        return datetime.now()


_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """Return the process-wide clock (a SystemClock unless replaced)."""
    global _clock
    if _clock is None:
        _clock = SystemClock()
    return _clock


def set_clock(clock: Optional[Clock]) -> None:
    """Replace the process-wide clock. Passing None restores the system clock."""
    global _clock
    _clock = clock
