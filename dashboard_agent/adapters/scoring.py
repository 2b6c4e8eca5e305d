"""Confidence scoring: semantic similarity first, keyword regexes as fallback."""

import asyncio
import math
import re
from typing import Dict, Iterable, Optional, Pattern

from ..config import SEMANTIC_THRESHOLD, SEMANTIC_TIMEOUT_SECONDS
from ..exceptions import SemanticTimeoutError
from ..logger import StructuredLogger, get_structured_logger

EXACT_MATCH_CONFIDENCE = 0.9
PARTIAL_MATCH_CONFIDENCE = 0.3

# Phrases that mark a request for guidance rather than status
ADVICE_PATTERNS = (
    "what should", "how to", "how do i", "recommend",
    "suggestion", "advice", "tips", "help me", "guide",
    "best way", "improve", "better", "plan",
    "strategy", "method", "approach", "technique",
    "organize",
)


def is_asking_for_advice(query: str) -> bool:
    """Return True if the query asks for recommendations or how-to guidance."""
    lower_query = query.lower()
    return any(pattern in lower_query for pattern in ADVICE_PATTERNS)


def clamp_confidence(value: Optional[float]) -> float:
    """Force a score into [0, 1]. None and NaN become 0."""
    if value is None:
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(score):
        return 0.0
    return min(max(score, 0.0), 1.0)


class ConfidenceScorer:
    """
    Scores how well an adapter can answer a query.

    Compiled keyword regexes are cached on the instance, keyed by the escaped
    keyword, so two adapters never share a cache.
    """

    def __init__(
        self,
        app_name: str,
        semantic=None,
        logger: Optional[StructuredLogger] = None,
        component: Optional[str] = None,
        threshold: float = SEMANTIC_THRESHOLD,
        timeout: float = SEMANTIC_TIMEOUT_SECONDS,
    ):
        """
        Initialize the scorer.

        Args:
            app_name: App name passed to the semantic service
            semantic: Object with async get_semantic_confidence(query, app_name); None disables it
            logger: Structured logger for recovered failures
            component: Component name used in log records
            threshold: Semantic scores above this are returned without keyword scoring
            timeout: Seconds to wait for the semantic service
        """
        self.app_name = app_name
        self.semantic = semantic
        self.threshold = threshold
        self.timeout = timeout
        self.component = component or app_name
        self._logger = logger or get_structured_logger()
        self._regex_cache: Dict[str, Pattern] = {}

    def _word_regex(self, keyword: str) -> Pattern:
        escaped = re.escape(keyword)
        regex = self._regex_cache.get(escaped)
        if regex is None:
            regex = re.compile(rf"\b{escaped}\b", re.IGNORECASE)
            self._regex_cache[escaped] = regex
        return regex

    def keyword_confidence(self, query: str, keywords: Iterable[str]) -> float:
        """
        Score a query against keywords.

        Returns:
            0.9 for a whole-word match of any keyword, else 0.3 for a substring
            match, else 0.0
        """
        lower_query = query.lower()
        best = 0.0
        for keyword in keywords:
            if not keyword:
                continue
            if self._word_regex(keyword).search(lower_query):
                return EXACT_MATCH_CONFIDENCE
            if keyword.lower() in lower_query:
                best = PARTIAL_MATCH_CONFIDENCE
        return best

    async def semantic_confidence(self, query: str) -> Optional[float]:
        """
        Ask the semantic service for a score.

        Returns:
            Clamped score, or None if the service is disabled, timed out or failed
        """
        if self.semantic is None:
            return None

        try:
            score = await asyncio.wait_for(
                self.semantic.get_semantic_confidence(query, self.app_name),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning(
                "Semantic confidence check timed out",
                SemanticTimeoutError(f"no answer within {self.timeout}s"),
                component=self.component,
                action="getConfidence",
            )
            return None
        except Exception as e:
            self._logger.error(
                "Semantic confidence check failed",
                e,
                component=self.component,
                action="getConfidence",
            )
            return None

        return clamp_confidence(score)

    async def score(self, query: str, keywords: Iterable[str]) -> float:
        """Semantic score if it clears the threshold, otherwise keyword score."""
        semantic_score = await self.semantic_confidence(query)
        if semantic_score is not None and semantic_score > self.threshold:
            return semantic_score
        return clamp_confidence(self.keyword_confidence(query, keywords))
