"""
Catalog loading: admin credentials, teams and stations.

These are fetched once at bootstrap and treated as immutable afterwards.
"""

import logging
from typing import List, Optional

from peddypaper.models import AdminCredential, Team, Station
from peddypaper.storage import RemoteStoreInterface, iter_children
from peddypaper.storage.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ADMIN_PATH = 'admin'
TEAMS_PATH = 'equipas'
STATIONS_PATH = 'postos'


def fetch_admin(store: RemoteStoreInterface) -> Optional[AdminCredential]:
    """Dedicated /admin record, or None when absent."""
    return AdminCredential.from_record(store.get(ADMIN_PATH))


def fetch_team_records(store: RemoteStoreInterface) -> List[Team]:
    """Every /equipas entry, whatever its role."""
    return [
        Team.from_record(team_id, record)
        for team_id, record in iter_children(store.get(TEAMS_PATH))
        if isinstance(record, dict)
    ]


def fetch_stations(store: RemoteStoreInterface) -> List[Station]:
    """Station catalog in natural label order."""
    stations = [
        Station.from_record(posto_id, record)
        for posto_id, record in iter_children(store.get(STATIONS_PATH))
    ]
    stations.sort(key=Station.sort_key)
    return stations


def resolve_admin(
    admin: Optional[AdminCredential],
    team_records: List[Team]
) -> AdminCredential:
    """
    Pick the admin credential.

    The dedicated /admin record wins; a team entry whose role is 'admin'
    is the legacy fallback.

    Raises:
        ConfigurationError: If neither exists
    """
    if admin is not None:
        return admin

    for team in team_records:
        if team.is_admin():
            logger.warning(f"No /admin record; using admin role on team entry {team.id}")
            return AdminCredential(username=team.username, password=team.password)

    raise ConfigurationError("Nó /admin não existe na base de dados.")


def playable_teams(team_records: List[Team]) -> List[Team]:
    """Entries whose role is 'team'."""
    return [team for team in team_records if team.is_team()]
