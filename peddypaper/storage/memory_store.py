"""
In-memory store for local runs and tests.

Provides the same consistency primitives as the hosted store:
- Atomic transactions (update function runs under the store lock)
- Push subscriptions delivering full subtree snapshots
- Time-ordered push keys

This is the in-process implementation of the RemoteStoreInterface.
"""

import copy
import json
import logging
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .base import (
    RemoteStoreInterface,
    Subscription,
    SnapshotCallback,
    TransactionResult,
    TransactionUpdate,
    split_path,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


_push_lock = threading.Lock()
_last_push_ms = 0
_push_seq = 0


def generate_push_key() -> str:
    """Create a child key that sorts by creation order."""
    global _last_push_ms, _push_seq
    with _push_lock:
        now = int(time.time() * 1000)
        if now <= _last_push_ms:
            _push_seq += 1
        else:
            _last_push_ms = now
            _push_seq = 0
        return f"{_last_push_ms:013d}-{_push_seq:04d}{uuid.uuid4().hex[:6]}"


class MemoryStore(RemoteStoreInterface):
    """
    Nested-dict store guarded by a single lock.

    Listeners are notified after the lock is released. Every snapshot
    carries the write version it was read at, and a subscription never
    receives a snapshot older than one it already got.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, seed_file: str = ''):
        """
        Create memory store instance.

        Args:
            data: Initial tree
            seed_file: JSON file loaded into the tree on initialize()
        """
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else {}
        self._seed_file = seed_file
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []
        self._initialized = False

        self._version = 0
        self._delivery_lock = threading.RLock()
        self._delivered: Dict[Subscription, int] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Load the seed file, if any."""
        if self._initialized:
            return

        if self._seed_file:
            path = Path(self._seed_file)
            if not path.exists():
                raise ConfigurationError(f"Seed file not found: {self._seed_file}")
            with open(path, 'r', encoding='utf-8') as f:
                seed = json.load(f)
            if not isinstance(seed, dict):
                raise ConfigurationError("Seed file must contain a JSON object")
            with self._lock:
                self._data = seed
            logger.info(f"Memory store seeded from {self._seed_file}")

        self._initialized = True

    def close(self) -> None:
        """Cancel every open subscription."""
        with self._lock:
            subscriptions = list(self._subscriptions)
        for sub in subscriptions:
            sub.cancel()

    def health_check(self) -> bool:
        return True

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the whole tree."""
        with self._lock:
            return copy.deepcopy(self._data)

    # =========================================================================
    # TREE HELPERS
    # =========================================================================

    def _read(self, parts: List[str]) -> Any:
        node: Any = self._data
        for part in parts:
            # Seeds exported from the hosted database may hold arrays
            if isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            elif isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return None
        return node

    def _write(self, parts: List[str], value: Any) -> None:
        if not parts:
            self._data = value if isinstance(value, dict) else {}
            return

        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                node[part] = child
            node = child

        if value is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = value

    def _affected(self, written: List[str]) -> List[Subscription]:
        """Subscriptions whose path is an ancestor or descendant of the write."""
        affected = []
        for sub in self._subscriptions:
            sub_parts = split_path(sub.path)
            common = min(len(sub_parts), len(written))
            if sub_parts[:common] == written[:common]:
                affected.append(sub)
        return affected

    def _snapshots(self, subscriptions: List[Subscription]) -> List[Tuple[Subscription, int, Any]]:
        """Versioned copies for each subscription; call with the lock held."""
        return [
            (sub, self._version, copy.deepcopy(self._read(split_path(sub.path))))
            for sub in subscriptions
            if sub.active
        ]

    def _dispatch(self, deliveries: List[Tuple[Subscription, int, Any]]) -> None:
        with self._delivery_lock:
            for sub, version, value in deliveries:
                if version <= self._delivered.get(sub, -1):
                    logger.debug(f"Skipping stale push on {sub.path}")
                    continue
                self._delivered[sub] = version
                logger.debug(f"Push on {sub.path}")
                sub.deliver(value)

    def _notify(self, written: List[str]) -> None:
        with self._lock:
            self._version += 1
            deliveries = self._snapshots(self._affected(written))
        self._dispatch(deliveries)

    # =========================================================================
    # RemoteStoreInterface
    # =========================================================================

    def get(self, path: str) -> Any:
        with self._lock:
            return copy.deepcopy(self._read(split_path(path)))

    def set(self, path: str, value: Any) -> None:
        """Unconditional write (seeding and tests)."""
        parts = split_path(path)
        with self._lock:
            self._write(parts, copy.deepcopy(value))
        self._notify(parts)

    def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        sub = Subscription(path, callback)

        def _remove():
            with self._lock:
                if sub in self._subscriptions:
                    self._subscriptions.remove(sub)
            with self._delivery_lock:
                self._delivered.pop(sub, None)

        sub.on_cancel(_remove)
        with self._lock:
            self._subscriptions.append(sub)
            deliveries = self._snapshots([sub])
        self._dispatch(deliveries)
        return sub

    def transaction(self, path: str, update: TransactionUpdate) -> TransactionResult:
        parts = split_path(path)
        with self._lock:
            current = self._read(parts)
            new_value = update(copy.deepcopy(current))
            if new_value is None:
                return TransactionResult(committed=False, snapshot=copy.deepcopy(current))
            self._write(parts, copy.deepcopy(new_value))
            result = TransactionResult(committed=True, snapshot=copy.deepcopy(new_value))
        self._notify(parts)
        return result

    def push(self, path: str, value: Any) -> str:
        key = generate_push_key()
        parts = split_path(path) + [key]
        with self._lock:
            self._write(parts, copy.deepcopy(value))
        self._notify(parts)
        return key
