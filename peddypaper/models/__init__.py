"""Data models for the peddy-paper client."""

from peddypaper.models.team import Team, AdminCredential
from peddypaper.models.station import Station, natural_key
from peddypaper.models.submission import Submission, AccessLogEntry
from peddypaper.models.session import Session, SessionDescriptor, ROLE_ADMIN, ROLE_TEAM
from peddypaper.models.views import (
    RankingRow,
    HistoryRow,
    AccessRow,
    AccessSummaryRow,
    StationTile,
    TeamView,
    AdminView,
)

__all__ = [
    "Team", "AdminCredential", "Station", "natural_key",
    "Submission", "AccessLogEntry",
    "Session", "SessionDescriptor", "ROLE_ADMIN", "ROLE_TEAM",
    "RankingRow", "HistoryRow", "AccessRow", "AccessSummaryRow",
    "StationTile", "TeamView", "AdminView",
]
