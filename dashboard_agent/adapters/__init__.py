"""Dashboard app adapters: one per mini-app, all sharing the AppAdapter interface."""

from .base import AppAdapter
from .camera import CameraAdapter
from .dog import DogGalleryAdapter
from .fields import FieldSpec, search_in_fields
from .freshness import Freshness
from .giphy import GiphyAdapter
from .nasa import NasaApodAdapter
from .notes import NotesAdapter
from .pomodoro import PomodoroAdapter
from .pubsub import PeriodicRefresher, SubscriberList
from .rhythm import RhythmMachineAdapter
from .scoring import ConfidenceScorer, clamp_confidence, is_asking_for_advice
from .streaks import StreakAdapter
from .types import AggregateContribution, SearchMatch, Snapshot
from .user_profile import UserProfileAdapter

__all__ = [
    "AppAdapter",
    "AggregateContribution",
    "CameraAdapter",
    "ConfidenceScorer",
    "DogGalleryAdapter",
    "FieldSpec",
    "Freshness",
    "GiphyAdapter",
    "NasaApodAdapter",
    "NotesAdapter",
    "PeriodicRefresher",
    "PomodoroAdapter",
    "RhythmMachineAdapter",
    "SearchMatch",
    "Snapshot",
    "StreakAdapter",
    "SubscriberList",
    "UserProfileAdapter",
    "clamp_confidence",
    "is_asking_for_advice",
    "search_in_fields",
]
