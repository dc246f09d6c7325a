"""Canonical submission and access-log rows."""

from pydantic import BaseModel, Field


class Submission(BaseModel):
    """
    Canonical submission row.

    At most one row exists per (equipa, posto) pair.
    """

    id: str
    timestamp: str = ''
    posto: str = ''
    equipa: str = ''
    pontos: int = 0

    @property
    def pair(self) -> tuple:
        """(team id, station id); unique among canonical rows."""
        return (self.equipa, self.posto)


class AccessLogEntry(BaseModel):
    """One device-tagged team login."""

    id: str
    team_id: str = Field(..., alias="teamId")
    timestamp: str
    device_id: str = Field('', alias="deviceId")
    ua: str = ''

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
