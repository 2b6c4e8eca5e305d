"""Semantic confidence: embedding similarity between a query and per-app example intents."""

import asyncio
import threading
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

import numpy as np
import openai

from .config import EMBEDDING_API_KEY, EMBEDDING_ENDPOINT, EMBEDDING_MODEL
from .exceptions import SemanticServiceError

# Example queries each app should answer. Embedded once per app on first use.
DEFAULT_INTENTS: Dict[str, List[str]] = {
    "streaks": [
        "What are my habits?",
        "Show me my streaks",
        "How many days have I done my meditation habit?",
        "What's my longest streak?",
        "Did I check in today?",
        "Show me my daily progress",
        "How many perfect days do I have?",
        "What habits did I complete today?",
        "Tell me about my morning routine streak",
        "What's my current streak for exercise?",
        "What's my gym streak?",
        "track habits not workout advice",
        "streak status not fitness guidance",
    ],
    "notes": [
        "Show me my notes",
        "What notes do I have?",
        "Find my notes about the meeting",
        "Show me my recent ideas",
        "What did I write yesterday?",
        "Search my notes for project ideas",
        "Show me my saved reminders",
        "What's in my notebook?",
        "Count my notes",
        "List my tasks",
        "retrieve notes not note-taking advice",
        "find notes not organization tips",
    ],
    "pomodoro": [
        "How much time is left?",
        "Show me my pomodoro stats",
        "How many pomodoros did I complete today?",
        "What's my productivity today?",
        "How many work sessions have I done?",
        "Show me my focus time stats",
        "Is the timer running?",
    ],
}


class NullSemanticService:
    """Semantic service used when embeddings are disabled: never confident."""

    async def get_semantic_confidence(self, query: str, app_name: str) -> float:
        return 0.0


class SemanticConfidenceService:
    """Scores queries against example intents with an OpenAI-compatible embeddings API."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        intents: Optional[Dict[str, List[str]]] = None,
        client=None,
        query_cache_size: int = 256,
    ):
        """
        Initialize the semantic service.

        Args:
            endpoint: Embeddings endpoint URL (defaults to config value)
            model: Embedding model name (defaults to config value)
            api_key: API key (local endpoints accept any value)
            intents: Example queries per app name (defaults to DEFAULT_INTENTS)
            client: Pre-built OpenAI client (for testing/mocking support)
            query_cache_size: Number of query embeddings kept in memory
        """
        self.endpoint = endpoint or EMBEDDING_ENDPOINT
        self.model = model or EMBEDDING_MODEL
        self.client = client if client is not None else openai.OpenAI(
            base_url=self.endpoint,
            api_key=api_key or EMBEDDING_API_KEY,
        )
        source = DEFAULT_INTENTS if intents is None else intents
        self._intents: Dict[str, List[str]] = {name: list(examples) for name, examples in source.items()}
        self._intent_vectors: Dict[str, np.ndarray] = {}
        self._query_cache: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self._query_cache_size = query_cache_size
        self._lock = threading.Lock()

    def register_intents(self, app_name: str, examples: Sequence[str]) -> None:
        """Replace the example queries for an app. Embeddings are recomputed lazily."""
        with self._lock:
            self._intents[app_name] = [text for text in examples if text]
            self._intent_vectors.pop(app_name, None)

    def has_intents(self, app_name: str) -> bool:
        return bool(self._intents.get(app_name))

    def _embed(self, texts: List[str]) -> np.ndarray:
        """Embed texts and return L2-normalised row vectors."""
        try:
            response = self.client.embeddings.create(model=self.model, input=texts)
        except openai.OpenAIError as e:
            raise SemanticServiceError(f"Embedding request failed: {e}") from e

        vectors = np.array([item.embedding for item in response.data], dtype=float)
        if vectors.ndim != 2 or vectors.shape[0] != len(texts):
            raise SemanticServiceError(
                f"Embedding response had shape {vectors.shape} for {len(texts)} inputs"
            )
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return vectors / norms

    def _intent_matrix(self, app_name: str) -> Optional[np.ndarray]:
        with self._lock:
            cached = self._intent_vectors.get(app_name)
            examples = list(self._intents.get(app_name, []))
        if cached is not None:
            return cached
        if not examples:
            return None

        matrix = self._embed(examples)
        with self._lock:
            self._intent_vectors[app_name] = matrix
        return matrix

    def _query_vector(self, query: str) -> np.ndarray:
        key = query.strip().lower()
        with self._lock:
            if key in self._query_cache:
                self._query_cache.move_to_end(key)
                return self._query_cache[key]

        vector = self._embed([query])[0]
        with self._lock:
            self._query_cache[key] = vector
            while len(self._query_cache) > self._query_cache_size:
                self._query_cache.popitem(last=False)
        return vector

    def similarity(self, query: str, app_name: str) -> float:
        """
        Blocking similarity computation.

        Returns:
            Highest cosine similarity against the app's intents, clamped to [0, 1];
            0.0 when the app has no intents
        """
        if not query or not query.strip():
            return 0.0

        matrix = self._intent_matrix(app_name)
        if matrix is None:
            return 0.0

        scores = matrix @ self._query_vector(query)
        best = float(np.max(scores))
        if np.isnan(best):
            return 0.0
        return float(np.clip(best, 0.0, 1.0))

    async def get_semantic_confidence(self, query: str, app_name: str) -> float:
        """Async wrapper: runs the embedding calls on a worker thread."""
        return await asyncio.to_thread(self.similarity, query, app_name)
