"""Configuration for the dashboard agent."""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Configuration class for the dashboard agent."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Adapter freshness lease (milliseconds). Adapters re-read their store
        # only once the cached data is older than this.
        self.cache_ttl_ms = int(os.getenv("DASHBOARD_AGENT_CACHE_TTL_MS", "5000"))

        # Semantic confidence (embedding similarity against example intents)
        self.semantic_enabled = _env_bool("DASHBOARD_AGENT_SEMANTIC_ENABLED", "true")
        self.semantic_threshold = float(os.getenv("DASHBOARD_AGENT_SEMANTIC_THRESHOLD", "0.5"))
        self.semantic_timeout_seconds = float(os.getenv("DASHBOARD_AGENT_SEMANTIC_TIMEOUT", "2.0"))

        # OpenAI-compatible embeddings endpoint (local servers don't need a real key)
        self.embedding_endpoint = os.getenv("DASHBOARD_AGENT_EMBEDDING_ENDPOINT", "http://localhost:8000/v1")
        self.embedding_model = os.getenv("DASHBOARD_AGENT_EMBEDDING_MODEL", "text-embedding-3-small")
        self.embedding_api_key = os.getenv("DASHBOARD_AGENT_EMBEDDING_API_KEY", "not-needed")

        # Router: adapters must score strictly above this to be picked
        self.router_min_confidence = float(os.getenv("DASHBOARD_AGENT_ROUTER_MIN_CONFIDENCE", "0.0"))

        # Notes adapter polls its store while someone is subscribed
        self.notes_refresh_interval = float(os.getenv("DASHBOARD_AGENT_NOTES_REFRESH_INTERVAL", "30"))

        # Store sync loop (picks up writes made by other processes)
        self.store_path = os.getenv(
            "DASHBOARD_AGENT_STORE_PATH",
            os.path.expanduser("~/.dashboard_agent_store.json"),
        )
        self.store_sync_interval = float(os.getenv("DASHBOARD_AGENT_STORE_SYNC_INTERVAL", "1.0"))

        # Local API (for the dashboard UI)
        self.api_port = int(os.getenv("DASHBOARD_AGENT_API_PORT", "8771"))

        self.log_level = os.getenv("DASHBOARD_AGENT_LOG_LEVEL", "INFO").upper()

        # Validate configuration
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if self.cache_ttl_ms < 0:
            raise ValueError(f"Cache TTL must be non-negative, got {self.cache_ttl_ms}")

        if not 0.0 <= self.semantic_threshold <= 1.0:
            raise ValueError(
                f"Semantic threshold must be between 0 and 1, got {self.semantic_threshold}"
            )

        if self.semantic_timeout_seconds <= 0:
            raise ValueError(
                f"Semantic timeout must be positive, got {self.semantic_timeout_seconds}"
            )

        if not 0.0 <= self.router_min_confidence < 1.0:
            raise ValueError(
                f"Router minimum confidence must be in [0, 1), got {self.router_min_confidence}"
            )

        if self.notes_refresh_interval <= 0:
            raise ValueError(
                f"Notes refresh interval must be positive, got {self.notes_refresh_interval}"
            )

        if self.store_sync_interval <= 0:
            raise ValueError(
                f"Store sync interval must be positive, got {self.store_sync_interval}"
            )

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            raise ValueError(
                f"Invalid log level '{self.log_level}'. "
                f"Must be one of: {', '.join(valid_log_levels)}"
            )


# Create a global config instance
_config = Config()

# Expose configuration values as module-level variables
CACHE_TTL_MS = _config.cache_ttl_ms
SEMANTIC_ENABLED = _config.semantic_enabled
SEMANTIC_THRESHOLD = _config.semantic_threshold
SEMANTIC_TIMEOUT_SECONDS = _config.semantic_timeout_seconds
EMBEDDING_ENDPOINT = _config.embedding_endpoint
EMBEDDING_MODEL = _config.embedding_model
EMBEDDING_API_KEY = _config.embedding_api_key
ROUTER_MIN_CONFIDENCE = _config.router_min_confidence
NOTES_REFRESH_INTERVAL = _config.notes_refresh_interval
STORE_PATH = _config.store_path
STORE_SYNC_INTERVAL = _config.store_sync_interval
API_PORT = _config.api_port
LOG_LEVEL = _config.log_level

__all__ = [
    "Config",
    "CACHE_TTL_MS",
    "SEMANTIC_ENABLED",
    "SEMANTIC_THRESHOLD",
    "SEMANTIC_TIMEOUT_SECONDS",
    "EMBEDDING_ENDPOINT",
    "EMBEDDING_MODEL",
    "EMBEDDING_API_KEY",
    "ROUTER_MIN_CONFIDENCE",
    "NOTES_REFRESH_INTERVAL",
    "STORE_PATH",
    "STORE_SYNC_INTERVAL",
    "API_PORT",
    "LOG_LEVEL",
]
