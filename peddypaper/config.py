"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import logging
import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


# =============================================================================
# REMOTE STORE
# =============================================================================
# Backend selection is read by storage.factory at call time; this is the
# value seen at import.
STORE_TYPE = _get_str('STORE_TYPE', 'memory')

FIREBASE_DATABASE_URL = _get_str('FIREBASE_DATABASE_URL', '')
FIREBASE_AUTH_TOKEN = _get_str('FIREBASE_AUTH_TOKEN', '')

# JSON document used to seed the in-memory store (local runs)
MEMORY_SEED_FILE = _get_str('MEMORY_SEED_FILE', '')

HTTP_TIMEOUT_SECONDS = _get_float('HTTP_TIMEOUT_SECONDS', 30.0)
TRANSACTION_MAX_RETRIES = _get_int('TRANSACTION_MAX_RETRIES', 25)
SUBSCRIPTION_RETRY_SECONDS = _get_float('SUBSCRIPTION_RETRY_SECONDS', 5.0)
BOOTSTRAP_TIMEOUT_SECONDS = _get_float('BOOTSTRAP_TIMEOUT_SECONDS', 30.0)

# Rewrite a legacy nested /submissions tree to the flat layout at startup
MIGRATE_LEGACY_ON_BOOTSTRAP = _get_bool('MIGRATE_LEGACY_ON_BOOTSTRAP', False)

# =============================================================================
# LOCAL DURABLE STATE
# =============================================================================
DATA_DIR = _get_str('DATA_DIR', '.peddypaper')
LOCAL_STATE_FILE = _get_str('LOCAL_STATE_FILE', 'local_state.json')

SESSION_KEY = 'peddy_session'
DEVICE_KEY = 'peddy_device_id'

# =============================================================================
# GAME RULES
# =============================================================================
ALLOWED_POINTS = (0, 100)

# Station PINs never change during a game, so lookups can be cached
PIN_CACHE_TTL_SECONDS = _get_int('PIN_CACHE_TTL_SECONDS', 300)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = None) -> None:
    """Configure root logging from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT
    )
