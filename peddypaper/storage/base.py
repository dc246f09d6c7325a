"""
Abstract base class defining the remote store interface.

The remote store is a synchronized key-value tree addressed by
slash-separated paths. All store implementations must inherit from this
class and implement all abstract methods. This ensures consistent behavior
across backends.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, List, Tuple

# Callback receiving a full snapshot of a subscribed subtree
SnapshotCallback = Callable[[Any], None]

# Transaction update: receives the current value, returns the new value,
# or None to abort without writing
TransactionUpdate = Callable[[Any], Any]


def split_path(path: str) -> List[str]:
    """Split a store path into its non-empty segments."""
    return [part for part in path.strip('/').split('/') if part]


def join_path(*parts: str) -> str:
    """Join path segments with '/'."""
    return '/'.join(p.strip('/') for p in parts if p and p.strip('/'))


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def iter_children(value: Any) -> Iterator[Tuple[str, Any]]:
    """
    (key, child) pairs of a snapshot node.

    The REST API returns a node whose keys are small integers as a JSON
    array, with null at every missing index; those holes are skipped.
    Anything that is not a mapping or array has no children.
    """
    if isinstance(value, dict):
        return ((str(k), v) for k, v in value.items())
    if isinstance(value, list):
        return ((str(i), v) for i, v in enumerate(value) if v is not None)
    return iter(())


@dataclass
class TransactionResult:
    """Outcome of an atomic conditional write."""
    committed: bool
    snapshot: Any = None


class Subscription:
    """
    Handle for a push subscription.

    Backends call `deliver()` with every full snapshot; `cancel()` stops
    delivery. Safe to cancel more than once.
    """

    def __init__(self, path: str, callback: SnapshotCallback):
        self.path = path
        self._callback = callback
        self._cancelled = threading.Event()
        self._on_cancel: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()

    def deliver(self, snapshot: Any) -> None:
        if self.active:
            self._callback(snapshot)

    def on_cancel(self, hook: Callable[[], None]) -> None:
        self._on_cancel = hook

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._on_cancel is not None:
            self._on_cancel()

    def wait_cancelled(self, timeout: float) -> bool:
        """Block up to `timeout` seconds; True if cancelled meanwhile."""
        return self._cancelled.wait(timeout)


class RemoteStoreInterface(ABC):
    """
    Abstract interface for the shared game data store.

    Only two primitives carry consistency guarantees: `transaction`, which
    writes atomically to a single path, and `subscribe`, which pushes full
    snapshots of a subtree in the order the store emits them.
    """

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Prepare the store for use.

        Called once when the store is first created.
        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release connections and cancel open subscriptions.

        Should be called when the application shuts down.
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if the store is accessible, False otherwise
        """
        pass

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    @abstractmethod
    def get(self, path: str) -> Any:
        """
        Read the value at a path.

        Args:
            path: Slash-separated path, e.g. 'postos/P1/pin'

        Returns:
            The JSON value stored at the path, or None if absent

        Raises:
            TransportError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        """
        Subscribe to a subtree.

        The callback first receives the current snapshot, then one full
        snapshot after every change below `path`. Absent values are
        delivered as None.

        Returns:
            Subscription handle; call cancel() to stop delivery
        """
        pass

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    @abstractmethod
    def transaction(self, path: str, update: TransactionUpdate) -> TransactionResult:
        """
        Atomically replace the value at a single path.

        `update` receives the current value (None if absent) and returns
        the value to write, or None to abort. If another writer changes the
        path between read and write, `update` is re-run on the fresh value.

        Returns:
            TransactionResult with committed=False when `update` aborted,
            and the value at the path after the transaction

        Raises:
            TransportError: If the store cannot be reached or retries
                            are exhausted
        """
        pass

    @abstractmethod
    def push(self, path: str, value: Any) -> str:
        """
        Append a value under a newly generated, time-ordered child key.

        Returns:
            The generated key
        """
        pass
