"""
Submission gateway: the only write path for scores.

A submission for a (team, station) pair goes through:

    UNATTEMPTED -> PENDING_VALIDATION -> COMMITTED
                                      -> REJECTED            (points, PIN)
                                      -> DUPLICATE_REJECTED  (pre-check, lost race)

Points are checked locally before any remote call. The PIN is compared
after trimming both sides. A fresh read of /submissions rejects pairs that
are already recorded, but that scan is only an early exit: the guarantee
that a pair scores once comes from the conditional write on a path keyed by
the pair, which commits only if nothing is stored there yet.
"""

import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Tuple

from cachetools import TTLCache

from peddypaper import config
from peddypaper.models import Submission
from peddypaper.services.exceptions import (
    SubmissionState,
    ValidationError,
    StationConfigurationError,
    DuplicateSubmissionError,
    TransactionConflictError,
    MSG_INVALID_POINTS,
)
from peddypaper.services.normalizer import (
    LAYOUT_NESTED,
    decode_nested,
    detect_layout,
    normalize_submissions,
    submission_id,
    to_flat_shape,
)
from peddypaper.services.state import AppState
from peddypaper.storage import RemoteStoreInterface
from peddypaper.storage.exceptions import StoreError

logger = logging.getLogger(__name__)

SUBMISSIONS_PATH = 'submissions'
ACCESS_LOGS_PATH = 'access_logs'


def utc_now_iso() -> str:
    """Current time as ISO-8601 UTC with milliseconds and a 'Z' suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class SubmissionGateway:
    """Validates and records station submissions."""

    def __init__(
        self,
        store: RemoteStoreInterface,
        state: AppState,
        allowed_points: Iterable[int] = config.ALLOWED_POINTS,
        pin_cache_ttl: int = config.PIN_CACHE_TTL_SECONDS,
        clock: Callable[[], str] = utc_now_iso
    ):
        self.store = store
        self.state = state
        self.allowed_points = frozenset(allowed_points)
        self.clock = clock

        self._pin_cache: Optional[TTLCache] = (
            TTLCache(maxsize=256, ttl=pin_cache_ttl) if pin_cache_ttl > 0 else None
        )
        self._lock = threading.Lock()
        self._in_flight: Counter = Counter()

    # =========================================================================
    # VALIDATION STEPS
    # =========================================================================

    def validate_points(self, points: Any) -> int:
        """
        Accept only the configured point values.

        Raises:
            ValidationError: For anything else, before any remote call
        """
        if isinstance(points, bool):
            raise ValidationError(MSG_INVALID_POINTS)
        try:
            value = int(str(points).strip())
        except (TypeError, ValueError):
            raise ValidationError(MSG_INVALID_POINTS)
        if value not in self.allowed_points:
            raise ValidationError(MSG_INVALID_POINTS)
        return value

    def fetch_pin(self, station_id: str) -> str:
        """
        Station PIN, trimmed, from /postos/<id>/pin.

        Raises:
            StationConfigurationError: If the station has no PIN
        """
        if self._pin_cache is not None:
            with self._lock:
                cached = self._pin_cache.get(station_id)
            if cached is not None:
                logger.debug(f"PIN cache hit for station {station_id}")
                return cached

        pin = self.store.get(f"postos/{station_id}/pin")
        if pin is None or not str(pin).strip():
            logger.error(f"Station {station_id} has no PIN record")
            raise StationConfigurationError()

        pin = str(pin).strip()
        if self._pin_cache is not None:
            with self._lock:
                self._pin_cache[station_id] = pin
        return pin

    def precheck(self, team_id: str, station_id: str) -> str:
        """
        Fresh duplicate scan over /submissions.

        Returns:
            The layout new writes must use

        Raises:
            DuplicateSubmissionError: If the pair is already recorded
        """
        raw = self.store.get(SUBMISSIONS_PATH)
        rows = normalize_submissions(raw)
        if any(row.pair == (team_id, station_id) for row in rows):
            raise DuplicateSubmissionError()
        return detect_layout(raw)

    # =========================================================================
    # SUBMIT
    # =========================================================================

    def _target(self, team_id: str, station_id: str, layout: str, timestamp: str,
                points: int) -> Tuple[str, dict]:
        if layout == LAYOUT_NESTED:
            return (
                f"{SUBMISSIONS_PATH}/{team_id}/{station_id}",
                {'timestamp': timestamp, 'points': points}
            )
        return (
            f"{SUBMISSIONS_PATH}/{submission_id(team_id, station_id)}",
            {'timestamp': timestamp, 'posto': station_id, 'equipa': team_id, 'pontos': points}
        )

    def submit(self, team_id: str, station_id: str, pin: str, points: Any) -> Submission:
        """
        Run a submission to a terminal state.

        Returns:
            The committed submission

        Raises:
            SubmissionError: Rejected or duplicate (see .state)
            StoreError: The store could not be reached
        """
        value = self.validate_points(points)

        pair = (team_id, station_id)
        with self._lock:
            self._in_flight[pair] += 1
        try:
            expected = self.fetch_pin(station_id)
            if str(pin or '').strip() != expected:
                logger.warning(f"Wrong PIN from team {team_id} at station {station_id}")
                raise ValidationError()

            layout = self.precheck(team_id, station_id)

            timestamp = self.clock()
            path, payload = self._target(team_id, station_id, layout, timestamp, value)

            # Commit only into an empty slot; a non-None current value aborts
            result = self.store.transaction(
                path, lambda current: payload if current is None else None
            )
            if not result.committed:
                logger.warning(f"Team {team_id} lost the race for station {station_id}")
                raise TransactionConflictError()

            logger.info(f"Team {team_id} scored {value} at station {station_id}")
            return Submission(
                id=submission_id(team_id, station_id),
                timestamp=timestamp,
                posto=station_id,
                equipa=team_id,
                pontos=value
            )
        finally:
            with self._lock:
                self._in_flight[pair] -= 1
                if self._in_flight[pair] <= 0:
                    del self._in_flight[pair]

    def state_for(self, team_id: str, station_id: str) -> SubmissionState:
        """Current state of a pair as seen by this device."""
        with self._lock:
            if self._in_flight.get((team_id, station_id)):
                return SubmissionState.PENDING_VALIDATION
        with self.state.lock:
            if any(row.pair == (team_id, station_id) for row in self.state.submissions):
                return SubmissionState.COMMITTED
        return SubmissionState.UNATTEMPTED

    # =========================================================================
    # ACCESS LOG
    # =========================================================================

    def register_access(self, team_id: str, device_id: str, user_agent: str = '') -> bool:
        """
        Append a login audit entry; best effort.

        Returns:
            True if written, False if the store failed (logged, not raised)
        """
        entry = {
            'teamId': team_id,
            'timestamp': self.clock(),
            'deviceId': device_id,
            'ua': user_agent or '',
        }
        try:
            self.store.push(ACCESS_LOGS_PATH, entry)
            return True
        except StoreError as e:
            logger.warning(f"Access log for team {team_id} not written: {e}")
            return False

    # =========================================================================
    # MIGRATION
    # =========================================================================

    def migrate_legacy_submissions(self) -> int:
        """
        Rewrite a legacy nested /submissions tree into the flat layout.

        Runs as one transaction on /submissions, so concurrent writers
        either land before (and are migrated) or retry on the new layout.

        Returns:
            Number of rows migrated (0 if already flat or empty)
        """
        def _migrate(current):
            if not current or detect_layout(current) != LAYOUT_NESTED:
                return None
            return to_flat_shape(decode_nested(current))

        result = self.store.transaction(SUBMISSIONS_PATH, _migrate)
        if not result.committed:
            return 0
        count = len(result.snapshot or {})
        logger.info(f"Migrated {count} legacy submissions to the flat layout")
        return count
