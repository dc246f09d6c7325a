"""
Storage module for peddy-paper data.

Provides a unified interface for the shared remote store:
- Memory (local runs, tests)
- Firebase Realtime Database (hosted game)

and the device-local key-value slots used for session rehydration.

Usage:
    from peddypaper.storage import get_store

    store = get_store()  # Uses STORE_TYPE env var
    teams = store.get('equipas')
"""

from .base import RemoteStoreInterface, Subscription, TransactionResult, is_container, iter_children
from .factory import get_store, reset_store
from .local_state import LocalStateStore
from .exceptions import (
    StoreError,
    TransportError,
    ConfigurationError,
    DecodeError
)

__all__ = [
    'RemoteStoreInterface',
    'Subscription',
    'TransactionResult',
    'is_container',
    'iter_children',
    'get_store',
    'reset_store',
    'LocalStateStore',
    'StoreError',
    'TransportError',
    'ConfigurationError',
    'DecodeError'
]
