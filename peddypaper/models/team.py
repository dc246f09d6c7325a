"""Team and admin credential models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Team(BaseModel):
    """A team seeded under /equipas; immutable from the client's side."""

    id: str
    username: str = ''
    password: str = ''
    team_name: str = Field('', alias="teamName")
    role: str = 'team'

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @classmethod
    def from_record(cls, team_id: str, record: Dict[str, Any]) -> "Team":
        """Build a team from its store record (team_name or teamName)."""
        name = record.get('team_name') or record.get('teamName') or team_id
        return cls(
            id=team_id,
            username=str(record.get('username', '')),
            password=str(record.get('password', '')),
            team_name=str(name),
            role=str(record.get('role') or 'team')
        )

    def is_team(self) -> bool:
        return self.role.lower() == 'team'

    def is_admin(self) -> bool:
        return self.role.lower() == 'admin'


class AdminCredential(BaseModel):
    """The single admin login."""

    username: str
    password: str

    @classmethod
    def from_record(cls, record: Any) -> Optional["AdminCredential"]:
        """
        Accept either {username, password} or a mapping holding one such record.

        Returns:
            AdminCredential or None if no record has a username
        """
        if not isinstance(record, dict):
            return None
        if 'username' in record:
            return cls(
                username=str(record.get('username', '')),
                password=str(record.get('password', ''))
            )
        for value in record.values():
            if isinstance(value, dict) and 'username' in value:
                return cls(
                    username=str(value.get('username', '')),
                    password=str(value.get('password', ''))
                )
        return None
