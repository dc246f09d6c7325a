"""
Normalizer for persisted submission and access-log snapshots.

Two submission layouts have been written to /submissions over time:

Flat (current), keyed by submission id:
    {
        "T1_P2": {
            "timestamp": "2024-01-01T00:00:00Z",
            "posto": "P2",
            "equipa": "T1",
            "pontos": 100
        }
    }

Legacy nested, keyed by team id then station id:
    {
        "T1": {
            "P2": {"timestamp": "2024-01-01T00:00:00Z", "points": 100}
        }
    }

A snapshot is decoded as a whole: first strictly as flat, then strictly as
nested. A snapshot matching neither raises DecodeError.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple

from peddypaper.models import Submission, AccessLogEntry
from peddypaper.storage import is_container, iter_children
from peddypaper.storage.exceptions import DecodeError

logger = logging.getLogger(__name__)

LAYOUT_FLAT = 'flat'
LAYOUT_NESTED = 'nested'

# Fields that mark a record as a flat submission, old and new names
PAYLOAD_FIELDS = frozenset({
    'timestamp', 'posto', 'gameId', 'equipa', 'teamId', 'pontos', 'points'
})


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_str(value: Any) -> str:
    return '' if value is None else str(value)


def _first(record: Dict[str, Any], *keys: str) -> Any:
    """First present, non-None value among `keys`."""
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def _escape_key_part(value: str) -> str:
    # '%' first so the escape itself stays unambiguous
    return value.replace('%', '%25').replace('_', '%5F')


def submission_id(team_id: str, station_id: str) -> str:
    """
    Id of the single submission a team may hold for a station.

    The separating '_' never occurs inside an escaped part, so distinct
    pairs such as ('A', 'B_C') and ('A_B', 'C') never share an id.
    Ids without '_' or '%' are joined unchanged: ('T1', 'P2') -> 'T1_P2'.
    """
    return f"{_escape_key_part(team_id)}_{_escape_key_part(station_id)}"


def _items(raw: Any) -> Iterable[Tuple[str, Any]]:
    """Children of a snapshot node that must be a mapping or array."""
    if is_container(raw):
        return iter_children(raw)
    raise DecodeError(f"Expected a mapping, got {type(raw).__name__}")


# =============================================================================
# SUBMISSIONS
# =============================================================================

def decode_flat(raw: Any) -> List[Submission]:
    """Strict flat decode: every child must be a submission record."""
    rows = []
    for key, record in _items(raw):
        if not isinstance(record, dict) or not PAYLOAD_FIELDS.intersection(record):
            raise DecodeError(f"Entry '{key}' is not a flat submission record")
        rows.append(Submission(
            id=key,
            timestamp=_to_str(record.get('timestamp')),
            posto=_to_str(_first(record, 'posto', 'gameId')),
            equipa=_to_str(_first(record, 'equipa', 'teamId')),
            pontos=_to_int(_first(record, 'pontos', 'points'))
        ))
    return rows


def decode_nested(raw: Any) -> List[Submission]:
    """Strict legacy decode: team id -> station id -> {timestamp, points}."""
    rows = []
    for team_id, stations in _items(raw):
        if not is_container(stations):
            raise DecodeError(f"Team entry '{team_id}' is not a mapping of stations")
        for station_id, record in iter_children(stations):
            if not isinstance(record, dict):
                raise DecodeError(f"Entry '{team_id}/{station_id}' is not a record")
            rows.append(Submission(
                id=submission_id(team_id, station_id),
                timestamp=_to_str(record.get('timestamp')),
                posto=station_id,
                equipa=team_id,
                pontos=_to_int(_first(record, 'pontos', 'points'))
            ))
    return rows


def detect_layout(raw: Any) -> str:
    """
    Layout of a /submissions snapshot.

    Empty snapshots count as flat, the layout new writes use.

    Raises:
        DecodeError: If the snapshot matches neither layout
    """
    if not raw:
        return LAYOUT_FLAT
    try:
        decode_flat(raw)
        return LAYOUT_FLAT
    except DecodeError:
        pass
    decode_nested(raw)
    return LAYOUT_NESTED


def normalize_submissions(raw: Any) -> List[Submission]:
    """
    Decode a /submissions snapshot into canonical rows.

    Args:
        raw: Snapshot value (None when the path is empty)

    Returns:
        Canonical rows in no particular order

    Raises:
        DecodeError: If the snapshot matches neither layout
    """
    if not raw:
        return []

    try:
        return decode_flat(raw)
    except DecodeError as flat_error:
        try:
            return decode_nested(raw)
        except DecodeError as nested_error:
            raise DecodeError(
                f"Submissions snapshot is neither flat ({flat_error}) "
                f"nor nested ({nested_error})"
            ) from nested_error


def to_flat_shape(rows: Iterable[Submission]) -> Dict[str, Dict[str, Any]]:
    """Wire form of canonical rows in the flat layout."""
    return {
        row.id: {
            'timestamp': row.timestamp,
            'posto': row.posto,
            'equipa': row.equipa,
            'pontos': row.pontos,
        }
        for row in rows
    }


# =============================================================================
# ACCESS LOGS
# =============================================================================

def normalize_access_logs(raw: Any) -> List[AccessLogEntry]:
    """
    Decode an /access_logs snapshot.

    Entries without a team id or timestamp are dropped.
    """
    if not raw:
        return []

    entries = []
    dropped = 0
    for key, record in _items(raw):
        if not isinstance(record, dict):
            dropped += 1
            continue
        team_id = _to_str(_first(record, 'teamId', 'equipa'))
        timestamp = _to_str(record.get('timestamp'))
        if not team_id or not timestamp:
            dropped += 1
            continue
        entries.append(AccessLogEntry(
            id=key,
            team_id=team_id,
            timestamp=timestamp,
            device_id=_to_str(record.get('deviceId')),
            ua=_to_str(record.get('ua'))
        ))

    if dropped:
        logger.debug(f"Dropped {dropped} incomplete access log entries")
    return entries
