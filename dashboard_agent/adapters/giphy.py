"""Adapter for the Giphy gallery's saved GIFs."""

from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import GiphyFavorite
from .base import AppAdapter
from .types import AggregateContribution, SearchMatch, Snapshot

RATINGS = ["g", "pg", "pg-13", "r"]

# Title words that put a GIF into a category; a GIF can land in several
CATEGORY_KEYWORDS = {
    "funny": ["funny", "lol", "laugh", "humor", "comedy"],
    "reaction": ["reaction", "react", "response", "mood"],
    "meme": ["meme", "viral", "trending"],
    "cute": ["cute", "adorable", "aww", "sweet"],
    "animal": ["cat", "dog", "pet", "animal", "puppy", "kitten"],
    "excited": ["excited", "happy", "joy", "celebrate", "party"],
    "sad": ["sad", "cry", "tears", "upset"],
    "dance": ["dance", "dancing", "moves", "groove"],
    "love": ["love", "heart", "romance", "kiss"],
    "wow": ["wow", "amazing", "awesome", "incredible"],
}

ASKABLE_CATEGORIES = ["funny", "reaction", "meme", "cute", "animal", "dance", "love"]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _ranked(counts: Dict[str, int]) -> List[str]:
    """Keys by descending count; ties keep insertion order."""
    return [key for key, _ in sorted(counts.items(), key=lambda item: item[1], reverse=True)]


class GiphyAdapter(AppAdapter):
    app_name = "giphy"
    display_name = "Giphy Gallery"
    icon = "🎬"
    inactive_summary = "No favorite GIFs saved yet"
    watch_key = StorageKeys.GIPHY_FAVORITES
    respond_when_inactive = True

    def reset(self) -> None:
        self.favorites: List[GiphyFavorite] = []

    def reload(self) -> None:
        self.favorites = self.read_records(StorageKeys.GIPHY_FAVORITES, GiphyFavorite.from_dict)

    def _categories(self) -> Dict[str, int]:
        categories: Dict[str, int] = {}
        for gif in self.favorites:
            title = gif.title.lower()
            matched = [
                category for category, words in CATEGORY_KEYWORDS.items()
                if any(word in title for word in words)
            ]
            for category in matched or ["other"]:
                categories[category] = categories.get(category, 0) + 1
        return categories

    def empty_data(self) -> Dict[str, Any]:
        return {
            "favorites": {
                "total": 0,
                "categories": {},
                "ratings": {rating: 0 for rating in RATINGS},
                "recent": [],
            },
            "stats": {
                "popular_categories": [],
                "most_used_rating": "g",
                "average_size": 0.0,
                "total_size": 0.0,
            },
        }

    def transform(self) -> Dict[str, Any]:
        categories = self._categories()
        ratings = {rating: 0 for rating in RATINGS}
        total_size = 0.0
        for gif in self.favorites:
            ratings[gif.rating] = ratings.get(gif.rating, 0) + 1
            # KB estimate for an uncompressed RGBA frame
            total_size += gif.width * gif.height * 4 / 1024

        return {
            "favorites": {
                "total": len(self.favorites),
                "categories": categories,
                "ratings": ratings,
                "recent": [
                    {"id": gif.id, "title": gif.title or "Untitled GIF", "rating": gif.rating}
                    for gif in self.favorites[:10]
                ],
            },
            "stats": {
                "popular_categories": _ranked(categories)[:5],
                "most_used_rating": _ranked(ratings)[0],
                "average_size": total_size / len(self.favorites) if self.favorites else 0.0,
                "total_size": total_size,
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        stats = data["stats"]
        if data["favorites"]["total"] == 0:
            return self.inactive_summary

        parts = [f"{data['favorites']['total']} favorite GIFs"]
        if stats["popular_categories"]:
            parts.append(f"mostly {stats['popular_categories'][0]}")
        parts.append(f"{stats['most_used_rating']} rated")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return data["favorites"]["total"] > 0

    def last_used(self, data: Dict[str, Any]) -> int:
        return self.clock.now() if self.is_active(data) else 0

    def keywords(self) -> List[str]:
        return [
            "gif", "gifs", "giphy", "meme", "memes", "animation",
            "animated", "reaction", "funny", "cute", "dance",
            "sticker", "emoji", "mood", "feeling",
            "image", "images", "photo", "photos", "picture", "pictures",
            "favorite", "favorites", "saved", "collection",
        ]

    def capabilities(self) -> List[str]:
        return [
            "gif-favorites",
            "meme-collection",
            "animation-library",
            "content-categories",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(data)
        for category in ASKABLE_CATEGORIES:
            if category in query:
                return self._category_response(category, data)
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response(data)
        if "rating" in query or "rated" in query:
            return self._rating_response(data)
        return self._overview_response(data)

    def _count_response(self, data: Dict[str, Any]) -> str:
        total = data["favorites"]["total"]
        if total == 0:
            return "You haven't saved any favorite GIFs yet. Explore Giphy to find hilarious animations!"

        response = f"You have {total} favorite GIF{_plural(total)} saved"
        popular = data["stats"]["popular_categories"]
        if popular:
            response += f", with {popular[0]} being your favorite type"
        return response + "."

    def _category_response(self, category: str, data: Dict[str, Any]) -> str:
        count = data["favorites"]["categories"].get(category, 0)
        if count == 0:
            return f"You don't have any {category} GIFs saved yet. Giphy has tons of {category} content to explore!"

        response = f"You have {count} {category} GIF{_plural(count)} in your favorites"
        percentage = round(count / data["favorites"]["total"] * 100)
        if percentage > 20:
            response += f" ({percentage}% of your collection)"
        response += "."
        popular = data["stats"]["popular_categories"]
        if popular and popular[0] == category:
            response += f" {category.capitalize()} GIFs are your favorite type!"
        return response

    def _recent_response(self, data: Dict[str, Any]) -> str:
        recent = data["favorites"]["recent"]
        if not recent:
            return "No GIFs saved yet. Start building your collection with Giphy!"

        response = f"Your most recent favorite GIF is \"{recent[0]['title']}\" (rated {recent[0]['rating']})"
        if len(recent) == 1:
            return response + "."

        response += ". Recent favorites include:"
        for gif in recent[:3]:
            response += f"\n• {gif['title']} ({gif['rating']})"
        return response

    def _rating_response(self, data: Dict[str, Any]) -> str:
        total = data["favorites"]["total"]
        if total == 0:
            return "No GIFs saved yet to analyze ratings."

        response = "Your GIF collection ratings:"
        for rating, count in data["favorites"]["ratings"].items():
            if count > 0:
                response += f"\n• {rating.upper()}: {count} GIFs ({round(count / total * 100)}%)"
        response += f"\n\nMostly {data['stats']['most_used_rating'].upper()}-rated content."
        return response

    def _overview_response(self, data: Dict[str, Any]) -> str:
        total = data["favorites"]["total"]
        if total == 0:
            return "Giphy Gallery: No favorites saved yet. Find and save your favorite GIFs and memes!"

        response = f"Giphy Gallery: {total} favorite GIFs"
        popular = data["stats"]["popular_categories"]
        if popular:
            response += f" (mostly {' and '.join(popular[:2])})"
        response += f", {data['stats']['most_used_rating'].upper()}-rated."
        return response

    def find_matches(self, query: str) -> List[SearchMatch]:
        return [
            SearchMatch(
                type="gif",
                label=f"{gif.title} ({gif.rating})",
                value=gif.title or "Untitled GIF",
                field=f"giphy.gif-{gif.id}",
            )
            for gif in self.favorites
            if query in gif.title.lower()
        ]

    def supports_aggregation(self) -> bool:
        return True

    def aggregate(self) -> List[AggregateContribution]:
        if not self.favorites:
            return []
        data = self.transform()
        return [
            AggregateContribution(
                type="image",
                count=len(self.favorites),
                label="GIFs",
                app_name=self.app_name,
                metadata={
                    "categories": len(data["favorites"]["categories"]),
                    "averageSize": data["stats"]["average_size"],
                },
            )
        ]
