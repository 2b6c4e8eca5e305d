"""Store package: persistent key-value store, change channel and record models."""

from .channel import ChangeChannel
from .keys import StorageKeys
from .store import (
    KeyValueStore,
    get_store,
    initialize_store,
    reset_store,
)

__all__ = [
    'ChangeChannel',
    'KeyValueStore',
    'StorageKeys',
    'get_store',
    'initialize_store',
    'reset_store',
]
