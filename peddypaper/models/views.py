"""Derived view rows handed to the renderer."""

from typing import List, Optional

from pydantic import BaseModel


class RankingRow(BaseModel):
    position: int = 0
    name: str
    score: int


class HistoryRow(BaseModel):
    timestamp: str
    team_name: str
    game_id: str
    points: int


class AccessRow(BaseModel):
    timestamp: str
    team_name: str
    device_id: str
    ua: str


class AccessSummaryRow(BaseModel):
    """Per-team login audit; multi_device flags more than one device id."""

    team_id: str
    team_name: str
    accesses: int
    devices: int
    multi_device: bool
    last_seen: Optional[str] = None


class StationTile(BaseModel):
    posto_id: str
    label: str
    done: bool


class TeamView(BaseModel):
    team_id: str
    team_name: str
    score: int
    stations: List[StationTile]


class AdminView(BaseModel):
    ranking: List[RankingRow]
    history: List[HistoryRow]
    access: List[AccessSummaryRow]
