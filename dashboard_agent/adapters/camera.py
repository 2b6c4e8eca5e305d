"""Adapter for the camera app's saved photo gallery."""

from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import Photo
from .base import AppAdapter
from .types import AggregateContribution, SearchMatch, Snapshot

MAX_STORAGE_BYTES = 50 * 1024 * 1024
BYTES_PER_MB = 1024 * 1024


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


class CameraAdapter(AppAdapter):
    """Photo counts, favorites and storage use. Active if a photo was taken in the last week."""

    app_name = "camera"
    display_name = "Camera"
    icon = "📸"
    inactive_summary = "No photos saved yet"
    respond_when_inactive = True

    def reset(self) -> None:
        self.photos: List[Photo] = []

    def reload(self) -> None:
        photos = self.read_records(StorageKeys.CAMERA_PHOTOS, Photo.from_dict)
        self.photos = sorted(photos, key=lambda p: p.timestamp, reverse=True)

    def _count_since(self, since_ms: int) -> int:
        return sum(1 for photo in self.photos if photo.timestamp >= since_ms)

    def empty_data(self) -> Dict[str, Any]:
        return {
            "photos": {"total": 0, "favorites": 0, "recent": []},
            "storage": {"used_mb": 0.0, "max_mb": MAX_STORAGE_BYTES / BYTES_PER_MB, "used_percentage": 0.0},
            "stats": {
                "today_count": 0,
                "week_count": 0,
                "month_count": 0,
                "oldest_photo": None,
                "newest_photo": None,
            },
        }

    def transform(self) -> Dict[str, Any]:
        total_size = sum(photo.size for photo in self.photos)
        return {
            "photos": {
                "total": len(self.photos),
                "favorites": sum(1 for photo in self.photos if photo.is_favorite),
                "recent": [
                    {
                        "id": photo.id,
                        "timestamp": photo.timestamp,
                        "name": photo.name,
                        "size": photo.size,
                        "is_favorite": photo.is_favorite,
                        "tags": list(photo.tags),
                    }
                    for photo in self.photos[:10]
                ],
            },
            "storage": {
                "used_mb": round(total_size / BYTES_PER_MB, 2),
                "max_mb": MAX_STORAGE_BYTES / BYTES_PER_MB,
                "used_percentage": round(total_size / MAX_STORAGE_BYTES * 100, 1),
            },
            "stats": {
                "today_count": self._count_since(self.clock.start_of_day()),
                "week_count": self._count_since(self.clock.to_timestamp(self.clock.days_ago(7))),
                "month_count": self._count_since(self.clock.to_timestamp(self.clock.months_ago(1))),
                "oldest_photo": self.photos[-1].timestamp if self.photos else None,
                "newest_photo": self.photos[0].timestamp if self.photos else None,
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        photos = data["photos"]
        if photos["total"] == 0:
            return self.inactive_summary

        parts = [f"{photos['total']} photos"]
        if photos["favorites"] > 0:
            parts.append(f"{photos['favorites']} favorites")
        if data["stats"]["today_count"] > 0:
            parts.append(f"{data['stats']['today_count']} today")
        parts.append(f"{data['storage']['used_mb']:g}MB used")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return data["stats"]["week_count"] > 0

    def last_used(self, data: Dict[str, Any]) -> int:
        return data["stats"]["newest_photo"] or 0

    def keywords(self) -> List[str]:
        return [
            "photo", "photos", "picture", "pictures", "selfie", "selfies",
            "camera", "gallery", "image", "images",
            "saved", "captured", "taken", "shot",
            "favorite", "favorites", "starred",
            "storage", "space", "memory",
        ]

    def capabilities(self) -> List[str]:
        return [
            "photo-capture",
            "photo-storage",
            "favorites-management",
            "photo-organization",
            "storage-tracking",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(query, data)
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response(data)
        if "favorite" in query or "starred" in query:
            return self._favorites_response()
        if "storage" in query or "space" in query or "memory" in query:
            return self._storage_response(data)
        if "today" in query or "week" in query or "month" in query:
            return self._period_response(query, data)
        return self._overview_response(data)

    def _count_response(self, query: str, data: Dict[str, Any]) -> str:
        total = data["photos"]["total"]
        favorites = data["photos"]["favorites"]
        if "favorite" in query:
            if favorites == 0:
                return (
                    "You haven't marked any photos as favorites yet. "
                    "Tap the star icon on photos you want to favorite!"
                )
            return f"You have {favorites} favorite photo{_plural(favorites)} out of {total} total."

        if total == 0:
            return "You haven't saved any photos yet. Open the camera app to capture your first photo!"
        return f"You have {total} photo{_plural(total)} saved in your gallery."

    def _recent_response(self, data: Dict[str, Any]) -> str:
        recent = data["photos"]["recent"]
        if not recent:
            return "No photos in your gallery yet. Start capturing memories with the camera!"

        latest = recent[0]
        response = f"Your most recent photo was taken {self.relative_time(latest['timestamp'])}"
        if latest["name"]:
            response += f" (named \"{latest['name']}\")"
        if latest["is_favorite"]:
            response += " and is marked as a favorite"
        response += "."
        if len(recent) > 1:
            response += f" You have {len(recent)} recent photos in your gallery."
        return response

    def _favorites_response(self) -> str:
        favorites = [photo for photo in self.photos if photo.is_favorite]
        if not favorites:
            return "You haven't marked any photos as favorites yet. Tap the star icon on photos you love!"

        response = f"You have {len(favorites)} favorite photo{_plural(len(favorites))}. Recent favorites:"
        for photo in favorites[:3]:
            response += f"\n• Photo from {self.relative_time(photo.timestamp)}"
            if photo.name:
                response += f" (\"{photo.name}\")"
        return response

    def _storage_response(self, data: Dict[str, Any]) -> str:
        storage = data["storage"]
        total = data["photos"]["total"]
        if total == 0:
            return f"You have {storage['max_mb']:g}MB of storage available for photos. Start capturing!"

        response = (
            f"Storage usage: {storage['used_mb']:g}MB of {storage['max_mb']:g}MB "
            f"({storage['used_percentage']:g}%)"
        )
        if storage["used_percentage"] > 80:
            response += "\n⚠️ Storage is getting full. Consider deleting old photos or exporting them."
        elif storage["used_percentage"] > 50:
            response += "\n📊 You're using about half of your available storage."
        else:
            response += "\n✅ You have plenty of storage space available."
        response += f"\nAverage photo size: {storage['used_mb'] / total:.2f}MB"
        return response

    def _period_response(self, query: str, data: Dict[str, Any]) -> str:
        stats = data["stats"]
        if "today" in query:
            count = stats["today_count"]
            if count == 0:
                return "You haven't taken any photos today. Ready to capture some moments?"
            return f"You've taken {count} photo{_plural(count)} today."
        if "week" in query:
            count = stats["week_count"]
            if count == 0:
                return "No photos taken this week. Time to capture some memories!"
            return f"You've taken {count} photo{_plural(count)} in the past week."

        count = stats["month_count"]
        if count == 0:
            return "No photos taken this month. Your camera is waiting!"
        return f"You've taken {count} photo{_plural(count)} in the past month."

    def _overview_response(self, data: Dict[str, Any]) -> str:
        photos = data["photos"]
        if photos["total"] == 0:
            return "Camera app: No photos saved yet. Open the camera to start capturing memories!"

        response = f"Camera gallery: {photos['total']} photos"
        if photos["favorites"] > 0:
            response += f" ({photos['favorites']} favorites)"
        response += f", {data['storage']['used_mb']:g}MB used"
        if data["stats"]["today_count"] > 0:
            response += f", {data['stats']['today_count']} taken today"
        return response + "."

    def find_matches(self, query: str) -> List[SearchMatch]:
        results = []
        for photo in self.photos:
            name_hit = bool(photo.name) and query in photo.name.lower()
            tag_hit = any(query in tag.lower() for tag in photo.tags)
            if not (name_hit or tag_hit):
                continue

            taken = self.clock.from_timestamp(photo.timestamp).strftime("%Y-%m-%d")
            results.append(SearchMatch(
                type="photo",
                label=photo.name or f"Photo from {taken}",
                value="⭐ Favorite" if photo.is_favorite else taken,
                field=f"camera.{photo.id}",
            ))
        return results

    def supports_aggregation(self) -> bool:
        return True

    def aggregate(self) -> List[AggregateContribution]:
        if not self.photos:
            return []
        return [
            AggregateContribution(
                type="image",
                count=len(self.photos),
                label="photos",
                app_name=self.app_name,
                metadata={
                    "favorites": sum(1 for photo in self.photos if photo.is_favorite),
                    "todayCount": self._count_since(self.clock.start_of_day()),
                },
            )
        ]
