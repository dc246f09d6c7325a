"""
Factory function to create the appropriate remote store implementation.

Reads configuration from environment variables to determine which
store backend to use.
"""

import logging
import os
from typing import Optional

from .base import RemoteStoreInterface
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# Singleton instance
_store_instance: Optional[RemoteStoreInterface] = None


def get_store() -> RemoteStoreInterface:
    """
    Get or create the store instance.

    Uses the STORE_TYPE environment variable to determine which implementation:
    - "memory" (default): In-process store, optionally seeded from MEMORY_SEED_FILE
    - "firebase": Firebase Realtime Database over REST

    Additional environment variables per type:
    - Memory: MEMORY_SEED_FILE
    - Firebase: FIREBASE_DATABASE_URL, FIREBASE_AUTH_TOKEN

    Returns:
        RemoteStoreInterface implementation

    Raises:
        ConfigurationError: If required env vars are missing
    """
    global _store_instance

    if _store_instance is not None:
        return _store_instance

    store_type = os.environ.get('STORE_TYPE', 'memory').lower()
    logger.info(f"Store type: {store_type}")

    if store_type == 'memory':
        from .memory_store import MemoryStore
        store = MemoryStore(seed_file=os.environ.get('MEMORY_SEED_FILE', ''))

    elif store_type == 'firebase':
        from .firebase_store import FirebaseStore
        store = FirebaseStore()

    else:
        raise ConfigurationError(
            f"Unknown STORE_TYPE: {store_type}. "
            f"Valid options: memory, firebase"
        )

    # Initialize before publishing the singleton so a failed setup is retried
    store.initialize()
    _store_instance = store

    return _store_instance


def reset_store() -> None:
    """
    Reset the store singleton.

    Used for testing or when switching configurations.
    """
    global _store_instance
    if _store_instance is not None:
        _store_instance.close()
        _store_instance = None
