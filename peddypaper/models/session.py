"""Session models."""

from typing import Optional

from pydantic import BaseModel, Field

from peddypaper.models.team import Team

ROLE_ADMIN = 'admin'
ROLE_TEAM = 'team'


class Session(BaseModel):
    """The authenticated identity of this device. Never stored remotely."""

    role: str
    team: Optional[Team] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def team_id(self) -> Optional[str]:
        return self.team.id if self.team else None


class SessionDescriptor(BaseModel):
    """What survives a reload: the role and team id, nothing else."""

    role: str
    team_id: Optional[str] = Field(None, alias="teamId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
