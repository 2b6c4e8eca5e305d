"""Main entry point for the dashboard agent."""

import time
from typing import Optional

from .adapters import (
    CameraAdapter,
    DogGalleryAdapter,
    GiphyAdapter,
    NasaApodAdapter,
    NotesAdapter,
    PeriodicRefresher,
    PomodoroAdapter,
    RhythmMachineAdapter,
    StreakAdapter,
    UserProfileAdapter,
)
from .api_server import start_api_server
from .clock import Clock, get_clock
from .config import (
    API_PORT, EMBEDDING_ENDPOINT, SEMANTIC_ENABLED, STORE_PATH, STORE_SYNC_INTERVAL
)
from .logger import get_logger, get_structured_logger
from .registry import AdapterRegistry
from .semantic import NullSemanticService, SemanticConfidenceService
from .store import KeyValueStore, initialize_store

logger = get_logger(__name__)

# Registration order doubles as the routing tie-break order
ADAPTER_CLASSES = [
    UserProfileAdapter,
    NotesAdapter,
    StreakAdapter,
    PomodoroAdapter,
    CameraAdapter,
    DogGalleryAdapter,
    GiphyAdapter,
    NasaApodAdapter,
    RhythmMachineAdapter,
]


def print_help():
    """Print welcome message and endpoint overview."""
    print("=" * 60)
    print("Dashboard Agent")
    print("=" * 60)
    print(f"\n🌐 Local API on http://127.0.0.1:{API_PORT}")
    print("  - GET /context            all app snapshots")
    print("  - GET /context/summary    one line per app")
    print("  - GET /query?text=...     route a question to the best app")
    print("  - GET /search?text=...    search every app")
    print("  - GET /totals?type=image  cross-app totals")
    print(f"\nStore: {STORE_PATH}")
    print(f"Semantic routing: {'on (' + EMBEDDING_ENDPOINT + ')' if SEMANTIC_ENABLED else 'off'}")
    print("=" * 60)
    print("\nPress Ctrl-C to stop.\n")


def build_registry(
    store: KeyValueStore,
    clock: Optional[Clock] = None,
    semantic=None,
) -> AdapterRegistry:
    """
    Create every adapter against ``store`` and register them in routing order.

    Args:
        store: Key-value store the mini-apps write to
        clock: Clock port (defaults to the system clock)
        semantic: Semantic confidence service (None disables the semantic signal)

    Returns:
        Registry holding all dashboard adapters
    """
    clock = clock or get_clock()
    structured = get_structured_logger()
    registry = AdapterRegistry(logger=structured, clock=clock)
    for adapter_class in ADAPTER_CLASSES:
        registry.register(adapter_class(store=store, clock=clock, semantic=semantic, logger=structured))
    return registry


def _create_semantic_service():
    if not SEMANTIC_ENABLED:
        return NullSemanticService()
    try:
        return SemanticConfidenceService()
    except Exception as e:
        logger.warning(f"Could not initialize semantic service, using keywords only: {e}")
        return NullSemanticService()


def main():
    """Run the dashboard agent until interrupted."""
    print_help()

    store = initialize_store(STORE_PATH)
    registry = build_registry(store, semantic=_create_semantic_service())
    logger.info(f"Registered {len(registry.adapters)} adapters")

    start_api_server(registry, port=API_PORT)

    # Picks up writes other processes made to the store file
    sync = PeriodicRefresher(STORE_SYNC_INTERVAL, store.sync, name="store-sync")
    sync.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
    finally:
        sync.stop()
        registry.dispose()


if __name__ == "__main__":
    main()
