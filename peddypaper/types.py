"""
Type definitions for the peddy-paper data store.

Provides TypedDict classes describing the raw records found under each
remote store path, before normalization.
"""

from typing import TypedDict, Dict


class AdminRecord(TypedDict, total=False):
    """Credentials stored at /admin."""
    username: str
    password: str


class TeamRecord(TypedDict, total=False):
    """
    Team entry under /equipas/<id>.

    Older catalogs use 'teamName', newer ones 'team_name'.
    """
    username: str
    password: str
    team_name: str
    teamName: str
    role: str  # team (default) | admin


class StationRecord(TypedDict, total=False):
    """Station entry under /postos/<id>."""
    game_label: str
    pin: str


class FlatSubmissionRecord(TypedDict, total=False):
    """
    Submission under /submissions/<submissionId> (current layout).

    Historical writers used gameId/teamId/points instead of
    posto/equipa/pontos.
    """
    timestamp: str
    posto: str
    gameId: str
    equipa: str
    teamId: str
    pontos: int
    points: int


class LegacySubmissionRecord(TypedDict, total=False):
    """Submission under /submissions/<teamId>/<stationId> (legacy layout)."""
    timestamp: str
    points: int


# /submissions/<teamId>/<stationId>
LegacySubmissionTree = Dict[str, Dict[str, LegacySubmissionRecord]]


class AccessLogRecord(TypedDict, total=False):
    """Login audit entry under /access_logs/<id>."""
    teamId: str
    equipa: str
    timestamp: str
    deviceId: str
    ua: str


class SessionDescriptorDict(TypedDict, total=False):
    """Device-local persisted session."""
    role: str  # admin | team
    teamId: str
