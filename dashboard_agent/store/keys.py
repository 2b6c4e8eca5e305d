"""Storage keys shared between the dashboard mini-apps and their adapters."""


class StorageKeys:
    """Keys under which each mini-app persists its data."""

    HABITS = "virgil_habits"
    NOTES = "virgil_notes_entries"
    CAMERA_PHOTOS = "virgil_camera_photos"
    DOG_FAVORITES = "virgil_dog_favorites"
    NASA_FAVORITES = "virgil_nasa_favorites"
    GIPHY_FAVORITES = "giphy-favorites"
    RHYTHM_SAVE_SLOTS = "rhythmMachineSaveSlots"
    USER_PROFILE = "virgil_user_profile"

    # Pomodoro keeps one stats record per local day
    POMODORO_STATS_PREFIX = "pomodoro-stats-"

    @classmethod
    def pomodoro_stats(cls, local_date: str) -> str:
        return f"{cls.POMODORO_STATS_PREFIX}{local_date}"
