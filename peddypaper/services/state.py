"""
Process-wide game state.

One container owned by the view controller and handed by reference to the
aggregator and the gateway. Collections are only ever replaced wholesale,
through the update methods below, so readers never see a partial push.
"""

import threading
from typing import Dict, List, Optional

from peddypaper.models import (
    AdminCredential,
    Team,
    Station,
    Submission,
    AccessLogEntry,
    Session,
)


class AppState:
    """Shared canonical state with single-writer update functions."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

        self.admin: Optional[AdminCredential] = None
        self.teams: List[Team] = []
        self.stations: List[Station] = []
        self.submissions: List[Submission] = []
        self.access_logs: List[AccessLogEntry] = []
        self.session: Optional[Session] = None

        self.ready = False
        self.bootstrap_error: Optional[str] = None
        self.decode_error: Optional[str] = None

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # =========================================================================
    # WRITERS
    # =========================================================================

    def load_catalog(
        self,
        admin: AdminCredential,
        teams: List[Team],
        stations: List[Station]
    ) -> None:
        """Install the bulk-fetched catalog and mark the state ready."""
        with self._lock:
            self.admin = admin
            self.teams = list(teams)
            self.stations = list(stations)
            self.bootstrap_error = None
            self.ready = True

    def fail_bootstrap(self, message: str) -> None:
        with self._lock:
            self.bootstrap_error = message
            self.ready = False

    def replace_submissions(self, rows: List[Submission]) -> None:
        with self._lock:
            self.submissions = list(rows)
            self.decode_error = None

    def replace_access_logs(self, entries: List[AccessLogEntry]) -> None:
        with self._lock:
            self.access_logs = list(entries)

    def set_session(self, session: Optional[Session]) -> None:
        with self._lock:
            self.session = session

    # =========================================================================
    # READERS
    # =========================================================================

    def team_by_id(self, team_id: str) -> Optional[Team]:
        with self._lock:
            for team in self.teams:
                if team.id == team_id:
                    return team
        return None

    def team_names(self) -> Dict[str, str]:
        with self._lock:
            return {team.id: team.team_name for team in self.teams}

    def station_labels(self) -> Dict[str, str]:
        with self._lock:
            return {station.posto_id: station.label for station in self.stations}
