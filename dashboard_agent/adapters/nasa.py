"""Adapter for saved NASA Astronomy Picture of the Day favorites."""

from collections import Counter
from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import ApodFavorite
from .base import AppAdapter
from .types import AggregateContribution, SearchMatch, Snapshot

DAY_MS = 24 * 60 * 60 * 1000

TOPIC_KEYWORDS = [
    "galaxy", "nebula", "planet", "moon", "sun", "star", "comet",
    "asteroid", "mars", "jupiter", "saturn", "hubble", "webb",
    "black hole", "supernova", "eclipse", "aurora", "milky way",
    "iss", "spacecraft", "meteor",
]

ASKABLE_TOPICS = ["galaxy", "nebula", "planet", "moon", "star", "hubble", "webb", "mars", "jupiter"]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _text(favorite: ApodFavorite) -> str:
    return f"{favorite.title} {favorite.explanation}".lower()


class NasaApodAdapter(AppAdapter):
    app_name = "nasa"
    display_name = "NASA APOD"
    icon = "🚀"
    inactive_summary = "No space images saved yet"
    watch_key = StorageKeys.NASA_FAVORITES
    respond_when_inactive = True

    def reset(self) -> None:
        self.favorites: List[ApodFavorite] = []

    def reload(self) -> None:
        favorites = self.read_records(StorageKeys.NASA_FAVORITES, ApodFavorite.from_dict)
        self.favorites = sorted(favorites, key=lambda f: f.saved_at, reverse=True)

    def _date_label(self, value: str) -> str:
        return self.format_date(value)

    def _popular_topics(self) -> List[str]:
        counts = Counter()
        for favorite in self.favorites:
            text = _text(favorite)
            counts.update(topic for topic in TOPIC_KEYWORDS if topic in text)
        return [topic for topic, _ in counts.most_common(5)]

    def _months_spanned(self) -> int:
        stamps = [self.timestamp_of(favorite.date) for favorite in self.favorites]
        stamps = [stamp for stamp in stamps if stamp]
        if not stamps:
            return 0
        return (max(stamps) - min(stamps)) // (DAY_MS * 30)

    def empty_data(self) -> Dict[str, Any]:
        return {
            "favorites": {"total": 0, "images": 0, "videos": 0, "recent": []},
            "stats": {
                "oldest_favorite": None,
                "newest_favorite": None,
                "months_spanned": 0,
                "copyrighted_count": 0,
                "popular_topics": [],
            },
        }

    def transform(self) -> Dict[str, Any]:
        dates = sorted(favorite.date for favorite in self.favorites if favorite.date)
        return {
            "favorites": {
                "total": len(self.favorites),
                "images": sum(1 for f in self.favorites if f.media_type == "image"),
                "videos": sum(1 for f in self.favorites if f.media_type == "video"),
                "recent": [
                    {
                        "id": f.id,
                        "date": f.date,
                        "title": f.title,
                        "media_type": f.media_type,
                        "saved_at": f.saved_at,
                    }
                    for f in self.favorites[:10]
                ],
            },
            "stats": {
                "oldest_favorite": dates[0] if dates else None,
                "newest_favorite": dates[-1] if dates else None,
                "months_spanned": self._months_spanned(),
                "copyrighted_count": sum(1 for f in self.favorites if f.copyright),
                "popular_topics": self._popular_topics(),
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        if favorites["total"] == 0:
            return self.inactive_summary

        parts = [f"{favorites['total']} space favorites"]
        if favorites["videos"] > 0:
            parts.append(f"{favorites['images']} images, {favorites['videos']} videos")
        if data["stats"]["popular_topics"]:
            parts.append(f"featuring {data['stats']['popular_topics'][0]}")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return data["favorites"]["total"] > 0

    def last_used(self, data: Dict[str, Any]) -> int:
        recent = data["favorites"]["recent"]
        return recent[0]["saved_at"] if recent else 0

    def keywords(self) -> List[str]:
        return [
            "nasa", "space", "astronomy", "apod", "galaxy", "nebula",
            "planet", "star", "cosmos", "universe", "telescope",
            "astronomical", "celestial", "cosmic", "hubble", "webb",
            "astronaut", "spacecraft", "moon", "mars", "jupiter",
            "saturn", "eclipse", "comet", "asteroid", "supernova",
            "black hole", "milky way", "space image", "space photo",
            "image", "images", "photo", "photos", "picture", "pictures",
            "favorite", "favorites", "saved", "collection",
        ]

    def capabilities(self) -> List[str]:
        return [
            "astronomy-images",
            "space-favorites",
            "daily-astronomy",
            "space-education",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(data)
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response(data)
        for topic in ASKABLE_TOPICS:
            if topic in query:
                return self._topic_response(topic)
        if "oldest" in query or "first" in query:
            return self._oldest_response(data)
        if "video" in query:
            return self._video_response(data)
        return self._overview_response(data)

    def _count_response(self, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        total = favorites["total"]
        if total == 0:
            return (
                "You haven't saved any space images yet. "
                "Explore the NASA APOD gallery to discover amazing astronomy pictures!"
            )

        response = f"You have {total} NASA APOD favorite{_plural(total)}"
        if favorites["videos"] > 0:
            images, videos = favorites["images"], favorites["videos"]
            response += f" ({images} image{_plural(images)} and {videos} video{_plural(videos)})"
        response += "."

        years = data["stats"]["months_spanned"] // 12
        if data["stats"]["months_spanned"] > 12:
            response += f" Your collection spans over {years} year{_plural(years)} of astronomical discoveries!"
        return response

    def _recent_response(self, data: Dict[str, Any]) -> str:
        recent = data["favorites"]["recent"]
        if not recent:
            return "No space images saved yet. Open NASA APOD to explore the cosmos!"

        latest = recent[0]
        response = (
            f"Your most recent space favorite is \"{latest['title']}\" from "
            f"{self._date_label(latest['date'])}, saved {self.relative_time(latest['saved_at'])}."
        )
        if len(recent) > 1:
            response += " Recent favorites include:"
            for favorite in recent[:3]:
                response += f"\n• {favorite['title']} ({self._date_label(favorite['date'])})"
        return response

    def _topic_response(self, topic: str) -> str:
        matching = [favorite for favorite in self.favorites if topic in _text(favorite)]
        if not matching:
            return (
                f"You don't have any {topic}-related images in your favorites yet. "
                f"NASA APOD has amazing {topic} photos to explore!"
            )

        response = f"You have {len(matching)} {topic}-related favorite{_plural(len(matching))}"
        if len(matching) <= 3:
            response += ":"
            for favorite in matching:
                response += f"\n• \"{favorite.title}\" from {self._date_label(favorite.date)}"
        else:
            response += ", including:"
            for favorite in matching[:3]:
                response += f"\n• \"{favorite.title}\""
            response += f"\n...and {len(matching) - 3} more"
        return response

    def _oldest_response(self, data: Dict[str, Any]) -> str:
        if not self.favorites:
            return "No space images saved yet. Start building your cosmic collection!"

        oldest = self.favorites[-1]
        response = f"Your oldest NASA APOD favorite is \"{oldest.title}\" from {self._date_label(oldest.date)}."
        months = data["stats"]["months_spanned"]
        if months > 6:
            response += f" You've been collecting space images for over {months} months!"
        return response

    def _video_response(self, data: Dict[str, Any]) -> str:
        count = data["favorites"]["videos"]
        if count == 0:
            return (
                "You haven't saved any space videos yet. "
                "NASA APOD occasionally features amazing astronomy videos!"
            )

        response = f"You have {count} space video{_plural(count)} saved"
        if count > 3:
            return response + "."

        response += ":"
        for favorite in self.favorites:
            if favorite.media_type == "video":
                response += f"\n• \"{favorite.title}\" from {self._date_label(favorite.date)}"
        return response

    def _overview_response(self, data: Dict[str, Any]) -> str:
        total = data["favorites"]["total"]
        if total == 0:
            return (
                "NASA APOD: No favorites saved yet. "
                "Explore daily astronomy pictures and save your cosmic favorites!"
            )

        response = f"NASA APOD: {total} space favorites"
        topics = data["stats"]["popular_topics"]
        if topics:
            response += f" featuring {', '.join(topics[:2])}"
        months = data["stats"]["months_spanned"]
        if months > 0:
            response += f", collected over {months} month{_plural(months)}"
        return response + "."

    def find_matches(self, query: str) -> List[SearchMatch]:
        scored = []
        for favorite in self.favorites:
            relevance = 0
            if query in favorite.title.lower():
                relevance += 100
            if query in favorite.explanation.lower():
                relevance += 50
            if relevance:
                scored.append((relevance, favorite))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            SearchMatch(
                type="nasa-apod",
                label=favorite.title,
                value=f"{favorite.media_type} from {favorite.date}",
                field=f"nasa.{favorite.id}",
            )
            for _, favorite in scored
        ]

    def supports_aggregation(self) -> bool:
        return True

    def aggregate(self) -> List[AggregateContribution]:
        contributions = []
        for media_type, label in (("image", "space images"), ("video", "space videos")):
            matching = [f for f in self.favorites if f.media_type == media_type]
            if matching:
                contributions.append(AggregateContribution(
                    type=media_type,
                    count=len(matching),
                    label=label,
                    app_name=self.app_name,
                    metadata={"copyrighted": sum(1 for f in matching if f.copyright)},
                ))
        return contributions
