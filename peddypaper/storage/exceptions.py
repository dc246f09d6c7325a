"""
Custom exceptions for the storage layer.

These exceptions provide clear error categories for remote store operations:
- StoreError: Base exception for all store errors
- TransportError: Network failures or store unavailable
- ConfigurationError: Missing or invalid configuration or seed data
- DecodeError: Snapshot does not match any known record layout
"""


class StoreError(Exception):
    """Base exception for all store errors."""
    pass


class TransportError(StoreError):
    """Failed to reach the store or the store rejected the request."""
    pass


class ConfigurationError(StoreError):
    """Missing or invalid store configuration."""
    pass


class DecodeError(StoreError):
    """Snapshot matches neither the flat nor the legacy nested layout."""
    pass
