"""
Score aggregation over canonical rows.

Pure read-side functions: totals, ranking, submission history and the
per-team login audit. Nothing here mutates state.
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Set

from peddypaper.models import (
    natural_key,
    RankingRow,
    HistoryRow,
    AccessRow,
    AccessSummaryRow,
)
from peddypaper.services.state import AppState

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp as an aware UTC datetime.

    Unparsable values map to the epoch so they sort as the earliest.
    """
    if not value:
        return EPOCH
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ScoreAggregator:
    """Derives views from the shared AppState."""

    def __init__(self, state: AppState):
        self.state = state

    def compute_team_score(self, team_id: str) -> int:
        """Sum of points over the team's submissions (0 if none)."""
        with self.state.lock:
            rows = self.state.submissions
            return sum(row.pontos for row in rows if row.equipa == team_id)

    def completed_stations(self, team_id: str) -> Set[str]:
        with self.state.lock:
            return {row.posto for row in self.state.submissions if row.equipa == team_id}

    def ranking_rows(self) -> List[RankingRow]:
        """
        One row per team, best score first.

        Ties are ordered by team name as people read it (accents and case
        folded, 'Equipa 2' before 'Equipa 10'), then by team id, so the
        order is total and stable between pushes.
        """
        with self.state.lock:
            totals: Dict[str, int] = defaultdict(int)
            for row in self.state.submissions:
                totals[row.equipa] += row.pontos
            entries = [
                (team.team_name, team.id, totals.get(team.id, 0))
                for team in self.state.teams
            ]

        entries.sort(key=lambda e: (-e[2], natural_key(e[0]), e[1]))
        return [
            RankingRow(position=idx + 1, name=name, score=score)
            for idx, (name, _team_id, score) in enumerate(entries)
        ]

    def history_rows(self) -> List[HistoryRow]:
        """Every submission, newest first, with team and station names resolved."""
        with self.state.lock:
            rows = list(self.state.submissions)
        names = self.state.team_names()
        labels = self.state.station_labels()

        rows.sort(key=lambda r: (parse_timestamp(r.timestamp), r.id), reverse=True)
        return [
            HistoryRow(
                timestamp=row.timestamp,
                team_name=names.get(row.equipa, row.equipa),
                game_id=labels.get(row.posto, row.posto),
                points=row.pontos
            )
            for row in rows
        ]

    def access_rows(self) -> List[AccessRow]:
        """Raw login audit, newest first."""
        with self.state.lock:
            entries = list(self.state.access_logs)
        names = self.state.team_names()

        entries.sort(key=lambda e: (parse_timestamp(e.timestamp), e.id), reverse=True)
        return [
            AccessRow(
                timestamp=entry.timestamp,
                team_name=names.get(entry.team_id, entry.team_id),
                device_id=entry.device_id,
                ua=entry.ua
            )
            for entry in entries
        ]

    def access_summary(self) -> List[AccessSummaryRow]:
        """
        Per-team login counts and distinct devices, ordered by team name.

        A team seen on more than one device id is flagged multi_device.
        """
        with self.state.lock:
            entries = list(self.state.access_logs)
        names = self.state.team_names()

        grouped = defaultdict(list)
        for entry in entries:
            grouped[entry.team_id].append(entry)

        summary = []
        for team_id, team_entries in grouped.items():
            devices = {e.device_id for e in team_entries if e.device_id}
            latest = max(team_entries, key=lambda e: parse_timestamp(e.timestamp))
            summary.append(AccessSummaryRow(
                team_id=team_id,
                team_name=names.get(team_id, team_id),
                accesses=len(team_entries),
                devices=len(devices),
                multi_device=len(devices) > 1,
                last_seen=latest.timestamp
            ))

        summary.sort(key=lambda r: (natural_key(r.team_name), r.team_id))
        return summary
