"""Adapter for the dog gallery's saved favorites."""

from collections import Counter
from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import DogFavorite
from .base import AppAdapter
from .types import AggregateContribution, SearchMatch, Snapshot

BREED_NAMES = [
    "retriever", "labrador", "poodle", "bulldog", "beagle",
    "husky", "corgi", "terrier", "shepherd", "spaniel",
]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


class DogGalleryAdapter(AppAdapter):
    """Favorite dog images grouped by breed. Reloads when another window saves a favorite."""

    app_name = "dog"
    display_name = "Dog Gallery"
    icon = "🐕"
    inactive_summary = "No favorite dogs saved yet"
    watch_key = StorageKeys.DOG_FAVORITES
    respond_when_inactive = True

    def reset(self) -> None:
        self.favorites: List[DogFavorite] = []

    def reload(self) -> None:
        self.favorites = self.read_records(StorageKeys.DOG_FAVORITES, DogFavorite.from_dict)

    def _breed_counts(self) -> Dict[str, int]:
        return dict(Counter(dog.breed or "mixed" for dog in self.favorites))

    def empty_data(self) -> Dict[str, Any]:
        return {
            "favorites": {"total": 0, "breeds": {}, "recent": []},
            "stats": {"most_favorited_breed": None, "breed_diversity": 0, "unique_breeds": []},
        }

    def transform(self) -> Dict[str, Any]:
        breeds = self._breed_counts()
        most_favorited = None
        best = 0
        # First breed reaching the highest count wins
        for breed, count in breeds.items():
            if count > best:
                best = count
                most_favorited = breed

        return {
            "favorites": {
                "total": len(self.favorites),
                "breeds": breeds,
                "recent": [
                    {"url": dog.url, "breed": dog.breed, "id": dog.id}
                    for dog in self.favorites[:10]
                ],
            },
            "stats": {
                "most_favorited_breed": most_favorited,
                "breed_diversity": len(breeds),
                "unique_breeds": list(breeds),
            },
        }

    def summarize(self, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        stats = data["stats"]
        if favorites["total"] == 0:
            return self.inactive_summary

        parts = [f"{favorites['total']} favorite dogs"]
        if stats["breed_diversity"] > 1:
            parts.append(f"{stats['breed_diversity']} breeds")
        top = stats["most_favorited_breed"]
        if top and favorites["breeds"][top] > 1:
            parts.append(f"mostly {top}")
        return ", ".join(parts)

    def is_active(self, data: Dict[str, Any]) -> bool:
        return data["favorites"]["total"] > 0

    def last_used(self, data: Dict[str, Any]) -> int:
        return self.clock.now() if self.is_active(data) else 0

    def keywords(self) -> List[str]:
        return [
            "dog", "dogs", "puppy", "puppies", "pup", "doggo",
            "breed", "breeds", "favorite dog", "saved dog",
            "pet", "pets", "canine", "hound",
            "golden retriever", "labrador", "poodle", "bulldog",
            "beagle", "husky", "corgi", "terrier",
            # shared with the other galleries for cross-app questions
            "image", "images", "photo", "photos", "picture", "pictures",
            "favorite", "favorites", "saved", "collection",
        ]

    def capabilities(self) -> List[str]:
        return [
            "dog-image-favorites",
            "breed-tracking",
            "favorite-management",
            "breed-statistics",
        ]

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        data = snapshot.data
        if "how many" in query or "count" in query:
            return self._count_response(data)
        if "breed" in query:
            return self._breed_response(query, data)
        if "recent" in query or "latest" in query or "last" in query:
            return self._recent_response(data)
        for breed in BREED_NAMES:
            if breed in query:
                return self._specific_breed_response(breed)
        return self._overview_response(data)

    def _count_response(self, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        stats = data["stats"]
        if favorites["total"] == 0:
            return (
                "You haven't saved any favorite dogs yet. "
                "Browse the Dog Gallery and tap the heart icon on dogs you love!"
            )

        response = f"You have {favorites['total']} favorite dog{_plural(favorites['total'])} saved"
        if stats["breed_diversity"] > 1:
            response += f" across {stats['breed_diversity']} different breeds"
        response += "."
        top = stats["most_favorited_breed"]
        if top and favorites["breeds"][top] > 2:
            response += f" You seem to really like {top}s!"
        return response

    def _breed_response(self, query: str, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        stats = data["stats"]
        if favorites["total"] == 0:
            return "No favorite dogs saved yet. Start exploring breeds in the Dog Gallery!"

        top = stats["most_favorited_breed"]
        if ("what breed" in query or "which breed" in query) and top:
            count = favorites["breeds"][top]
            return f"Your most favorited breed is {top} with {count} saved image{_plural(count)}."

        diversity = stats["breed_diversity"]
        response = f"You have favorites from {diversity} breed{_plural(diversity)}:"
        ranked = sorted(favorites["breeds"].items(), key=lambda item: item[1], reverse=True)
        for breed, count in ranked[:5]:
            response += f"\n• {breed}: {count} photo{_plural(count)}"
        if len(ranked) > 5:
            response += f"\n...and {len(ranked) - 5} more breeds"
        return response

    def _recent_response(self, data: Dict[str, Any]) -> str:
        recent = data["favorites"]["recent"]
        if not recent:
            return "No favorite dogs yet. Visit the Dog Gallery to discover adorable pups!"

        response = f"Your most recent favorite is a {recent[0]['breed']}"
        if len(recent) > 1:
            response += f". You have {len(recent)} recent favorites"
            breeds = list(dict.fromkeys(dog["breed"] for dog in recent[:3]))
            if len(breeds) > 1:
                response += f" including {', '.join(breeds)}"
        return response + "."

    def _specific_breed_response(self, breed: str) -> str:
        matching = [dog for dog in self.favorites if breed in dog.breed.lower()]
        if not matching:
            return f"You don't have any {breed}s in your favorites yet. Try searching for {breed} in the Dog Gallery!"

        exact = matching[0].breed
        response = f"You have {len(matching)} {exact}{_plural(len(matching))} in your favorites."
        if len(matching) > 2:
            response += f" You really seem to love {exact}s!"
        return response

    def _overview_response(self, data: Dict[str, Any]) -> str:
        favorites = data["favorites"]
        stats = data["stats"]
        if favorites["total"] == 0:
            return "Dog Gallery: No favorites saved yet. Browse and save your favorite good boys and girls!"

        response = f"Dog Gallery: {favorites['total']} favorite dogs"
        if stats["breed_diversity"] > 1:
            response += f" ({stats['breed_diversity']} breeds)"
        if stats["most_favorited_breed"]:
            response += f", mostly {stats['most_favorited_breed']}s"
        return response + "."

    def find_matches(self, query: str) -> List[SearchMatch]:
        matching = [dog for dog in self.favorites if query in dog.breed.lower()]
        # Exact breed matches first
        matching.sort(key=lambda dog: dog.breed.lower() != query)
        return [
            SearchMatch(type="dog", label=dog.breed, value=dog.url, field=f"dog.{dog.id}")
            for dog in matching
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
                label="favorite dogs",
                app_name=self.app_name,
                metadata={
                    "breeds": data["stats"]["breed_diversity"],
                    "mostFavorited": data["stats"]["most_favorited_breed"],
                },
            )
        ]
