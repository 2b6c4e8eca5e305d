"""
Record models (Pydantic v2) for the data each mini-app persists.

Stored JSON uses the mini-apps' camelCase field names, mapped onto snake_case
attributes through aliases. Missing or null fields take defaults, but a record
of the wrong shape raises ``ValidationError`` so the reading adapter can treat
the whole store entry as corrupt.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_millis(value: Any) -> int:
    """
    Convert epoch milliseconds, or an ISO-8601 string, to epoch milliseconds.

    Raises:
        ValueError: If the value is a boolean, an unparseable string or another type
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError("timestamp must not be a boolean")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        return int(datetime.fromisoformat(text).timestamp() * 1000)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def _blank_to_none(value: Any) -> Any:
    return value or None


class StoredRecord(BaseModel):
    """Base for records read from the store: accepts camelCase or attribute names."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Null means "not set", so the field default applies
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_dict(cls, raw: Any):
        """
        Build a record from its stored JSON form.

        Raises:
            ValidationError: If the stored value does not have the record's shape
        """
        return cls.model_validate(raw)

    def to_dict(self) -> Dict[str, Any]:
        """Stored JSON form, with the mini-app's field names."""
        return self.model_dump(by_alias=True)


class Habit(StoredRecord):
    """A tracked habit and its check-in history (``YYYY-MM-DD`` dates)."""
    id: str
    name: str = ""
    emoji: str = ""
    streak: int = 0
    longest_streak: int = Field(default=0, alias="longestStreak")
    last_check_in: Optional[str] = Field(default=None, alias="lastCheckIn")
    check_ins: List[str] = Field(default_factory=list, alias="checkIns")


class HabitStats(StoredRecord):
    perfect_days: List[str] = Field(default_factory=list, alias="perfectDays")


class HabitsDocument(StoredRecord):
    habits: List[Habit] = Field(default_factory=list)
    stats: HabitStats = Field(default_factory=HabitStats)

    @property
    def perfect_days(self) -> List[str]:
        return self.stats.perfect_days


class NoteTask(StoredRecord):
    text: str = ""
    completed: bool = False


class NoteEntry(StoredRecord):
    """A note; tags are life areas, action_type classifies the entry."""
    id: str
    content: str = ""
    timestamp: int = 0
    tags: List[str] = Field(default_factory=list)
    action_type: Optional[str] = Field(default=None, alias="actionType")
    tasks: List[NoteTask] = Field(default_factory=list)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_millis(cls, value: Any) -> int:
        return to_millis(value)

    @field_validator("action_type", mode="before")
    @classmethod
    def _blank_action_type(cls, value: Any) -> Any:
        return _blank_to_none(value)


class PomodoroStats(StoredRecord):
    sessions_completed: int = Field(default=0, alias="sessionsCompleted")
    total_focus_minutes: int = Field(default=0, alias="totalFocusMinutes")
    last_session_time: Optional[int] = Field(default=None, alias="lastSessionTime")

    @field_validator("last_session_time", mode="before")
    @classmethod
    def _last_session_millis(cls, value: Any) -> Optional[int]:
        return to_millis(value) if value else None


class Photo(StoredRecord):
    id: str
    timestamp: int = 0
    name: Optional[str] = None
    size: int = 0
    is_favorite: bool = Field(default=False, alias="isFavorite")
    tags: List[str] = Field(default_factory=list)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_millis(cls, value: Any) -> int:
        return to_millis(value)

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, value: Any) -> Any:
        return _blank_to_none(value)


class DogFavorite(StoredRecord):
    id: str
    url: str = ""
    breed: str = "mixed"

    @field_validator("breed", mode="before")
    @classmethod
    def _default_breed(cls, value: Any) -> Any:
        return value or "mixed"


class GiphyFavorite(StoredRecord):
    id: str
    title: str = ""
    url: str = ""
    rating: str = "g"
    width: int = 0
    height: int = 0

    @field_validator("rating", mode="before")
    @classmethod
    def _normalize_rating(cls, value: Any) -> Any:
        if not value:
            return "g"
        return value.lower() if isinstance(value, str) else value


class ApodFavorite(StoredRecord):
    """A saved Astronomy Picture of the Day."""
    id: str
    date: str = ""
    title: str = ""
    media_type: Literal["image", "video"] = Field(default="image", alias="mediaType")
    explanation: str = ""
    copyright: Optional[str] = None
    saved_at: int = Field(default=0, alias="savedAt")

    @field_validator("saved_at", mode="before")
    @classmethod
    def _saved_at_millis(cls, value: Any) -> int:
        return to_millis(value)

    @field_validator("copyright", mode="before")
    @classmethod
    def _blank_copyright(cls, value: Any) -> Any:
        return _blank_to_none(value)


class SavedPattern(StoredRecord):
    """A drum pattern in one of the rhythm machine's save slots."""
    pattern: List[List[bool]] = Field(default_factory=list)
    description: str = ""
    timestamp: int = 0
    category: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_millis(cls, value: Any) -> int:
        return to_millis(value)

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Address(StoredRecord):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

    def is_complete(self) -> bool:
        return bool(self.street and self.city and self.state and self.zip)


class UserProfile(StoredRecord):
    nickname: str = ""
    full_name: str = Field(default="", alias="fullName")
    date_of_birth: str = Field(default="", alias="dateOfBirth")
    email: str = ""
    phone: str = ""
    gender: str = ""
    marital_status: str = Field(default="", alias="maritalStatus")
    unique_id: str = Field(default="", alias="uniqueId")
    address: Address = Field(default_factory=Address)
