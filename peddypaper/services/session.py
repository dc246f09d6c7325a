"""
Session store: authentication and device-local session rehydration.

Only {role, teamId} is persisted. A restored team id is always resolved
against the freshly fetched team catalog.
"""

import logging
import uuid
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from peddypaper import config
from peddypaper.models import Session, SessionDescriptor, ROLE_ADMIN, ROLE_TEAM
from peddypaper.services.state import AppState
from peddypaper.storage import LocalStateStore

logger = logging.getLogger(__name__)


class SessionStore:
    """Authenticates against the catalog and persists the session locally."""

    def __init__(self, state: AppState, local_state: LocalStateStore):
        self.state = state
        self.local_state = local_state

    def authenticate(self, username: str, password: str) -> Optional[Session]:
        """
        Match credentials exactly, admin first, then teams in catalog order.

        Returns:
            Session, or None if nothing matches
        """
        with self.state.lock:
            admin = self.state.admin
            teams = list(self.state.teams)

        if admin is not None and username == admin.username and password == admin.password:
            return Session(role=ROLE_ADMIN)

        for team in teams:
            if team.username == username and team.password == password:
                return Session(role=ROLE_TEAM, team=team)
        return None

    def persist(self, session: Session) -> None:
        descriptor = SessionDescriptor(role=session.role, team_id=session.team_id)
        self.local_state.set(
            config.SESSION_KEY,
            descriptor.model_dump(by_alias=True, exclude_none=True)
        )

    def restore(self) -> Optional[Session]:
        """
        Rebuild the persisted session against the live catalog.

        Returns None, clearing nothing, when there is no descriptor, the
        descriptor is malformed, or its team is no longer in the catalog.
        """
        raw = self.local_state.get(config.SESSION_KEY)
        if not raw:
            return None

        try:
            descriptor = SessionDescriptor.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Ignoring malformed persisted session")
            return None

        if descriptor.role == ROLE_ADMIN:
            return Session(role=ROLE_ADMIN)

        if descriptor.role == ROLE_TEAM and descriptor.team_id:
            team = self.state.team_by_id(descriptor.team_id)
            if team is not None:
                return Session(role=ROLE_TEAM, team=team)
            logger.warning(f"Persisted team {descriptor.team_id} not in catalog; staying logged out")

        return None

    def clear(self) -> None:
        self.local_state.delete(config.SESSION_KEY)

    def device_id(self) -> str:
        """Identifier of this device, created on first use and then reused."""
        existing = self.local_state.get(config.DEVICE_KEY)
        if isinstance(existing, str) and existing:
            return existing
        device_id = str(uuid.uuid4())
        self.local_state.set(config.DEVICE_KEY, device_id)
        logger.info("Generated new device id")
        return device_id
