"""Tests for ScoreAggregator."""

from datetime import datetime, timezone

from peddypaper.models import AccessLogEntry, Team
from peddypaper.services.scoring import ScoreAggregator, parse_timestamp, EPOCH


class TestComputeTeamScore:
    """Tests for per-team totals."""

    def test_sum_of_team_rows(self, app_state, make_submission):
        """Total is the sum of the team's rows only."""
        app_state.replace_submissions([
            make_submission('T1', '1', 100),
            make_submission('T1', '2', 0),
            make_submission('T1', '10', 100),
            make_submission('T2', '1', 100),
        ])
        aggregator = ScoreAggregator(app_state)

        assert aggregator.compute_team_score('T1') == 200
        assert aggregator.compute_team_score('T2') == 100

    def test_zero_without_rows(self, app_state):
        """Teams without submissions, known or not, score 0."""
        aggregator = ScoreAggregator(app_state)

        assert aggregator.compute_team_score('T3') == 0
        assert aggregator.compute_team_score('nobody') == 0


class TestRankingRows:
    """Tests for the ranking order."""

    def test_score_descending(self, app_state, make_submission):
        """Higher totals rank first; teams without rows still appear."""
        app_state.replace_submissions([
            make_submission('T2', '1', 100),
            make_submission('T2', '2', 100),
            make_submission('T1', '1', 100),
        ])

        ranking = ScoreAggregator(app_state).ranking_rows()

        assert [(r.position, r.name, r.score) for r in ranking] == [
            (1, 'Águias', 200),
            (2, 'Lobos', 100),
            (3, 'Linces', 0),
        ]

    def test_ties_broken_by_name(self, app_state, make_submission):
        """Equal scores are ordered by name ascending."""
        app_state.load_catalog(
            app_state.admin,
            [
                Team(id='z', team_name='Zeta'),
                Team(id='a', team_name='Alfa'),
                Team(id='m', team_name='Mu'),
            ],
            app_state.stations
        )
        app_state.replace_submissions([
            make_submission('z', '1', 80),
            make_submission('a', '1', 80),
            make_submission('m', '1', 50),
        ])

        ranking = ScoreAggregator(app_state).ranking_rows()

        assert [(r.name, r.score) for r in ranking] == [('Alfa', 80), ('Zeta', 80), ('Mu', 50)]

    def test_ties_ignore_accents_and_case(self, app_state):
        """Accented and lowercase names interleave as in a Portuguese list."""
        app_state.load_catalog(
            app_state.admin,
            [
                Team(id='l', team_name='Lobos'),
                Team(id='g', team_name='Águias'),
                Team(id='f', team_name='alfa'),
                Team(id='e10', team_name='Equipa 10'),
                Team(id='e2', team_name='Equipa 2'),
            ],
            app_state.stations
        )
        app_state.replace_submissions([])

        ranking = ScoreAggregator(app_state).ranking_rows()

        assert [r.name for r in ranking] == ['Águias', 'alfa', 'Equipa 2', 'Equipa 10', 'Lobos']

    def test_order_is_deterministic(self, app_state, make_submission):
        """Reversing the input rows does not change the output."""
        rows = [make_submission('T1', '1'), make_submission('T3', '1')]
        app_state.replace_submissions(rows)
        first = ScoreAggregator(app_state).ranking_rows()

        app_state.replace_submissions(list(reversed(rows)))
        second = ScoreAggregator(app_state).ranking_rows()

        assert first == second


class TestHistoryRows:
    """Tests for the submission history."""

    def test_newest_first_with_names(self, app_state, make_submission):
        """Rows are ordered by timestamp descending with names resolved."""
        app_state.replace_submissions([
            make_submission('T1', '1', timestamp='2024-05-01T10:00:00Z'),
            make_submission('T2', '10', timestamp='2024-05-01T12:00:00Z'),
            make_submission('T3', '2', pontos=0, timestamp='2024-05-01T11:00:00+00:00'),
        ])

        history = ScoreAggregator(app_state).history_rows()

        assert [(h.team_name, h.game_id, h.points) for h in history] == [
            ('Águias', 'P10', 100),
            ('Linces', 'P2', 0),
            ('Lobos', 'P1', 100),
        ]

    def test_unknown_team_falls_back_to_id(self, app_state, make_submission):
        """Unknown team and station ids are shown raw."""
        app_state.replace_submissions([make_submission('ghost', 'P99')])

        history = ScoreAggregator(app_state).history_rows()

        assert history[0].team_name == 'ghost'
        assert history[0].game_id == 'P99'

    def test_unparsable_timestamps_sort_last(self, app_state, make_submission):
        """Bad timestamps are treated as the epoch."""
        app_state.replace_submissions([
            make_submission('T1', '1', timestamp='ontem'),
            make_submission('T2', '1', timestamp='2024-05-01T10:00:00Z'),
        ])

        history = ScoreAggregator(app_state).history_rows()

        assert [h.team_name for h in history] == ['Águias', 'Lobos']


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_zulu(self):
        """Trailing Z is UTC."""
        assert parse_timestamp('2024-01-01T00:00:00.000Z') == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        """Timestamps without offset are read as UTC."""
        assert parse_timestamp('2024-01-01T00:00:00').tzinfo is not None

    def test_garbage_is_epoch(self):
        """Empty and invalid values map to the epoch."""
        assert parse_timestamp('') == EPOCH
        assert parse_timestamp('not a date') == EPOCH


class TestAccessSummary:
    """Tests for the device audit."""

    def test_multi_device_flag(self, app_state):
        """Two device ids for one team flag it; one device does not."""
        app_state.replace_access_logs([
            AccessLogEntry(id='a', team_id='T1', timestamp='2024-05-01T09:00:00Z', device_id='d1'),
            AccessLogEntry(id='b', team_id='T1', timestamp='2024-05-01T09:30:00Z', device_id='d2'),
            AccessLogEntry(id='c', team_id='T2', timestamp='2024-05-01T09:10:00Z', device_id='d3'),
            AccessLogEntry(id='d', team_id='T2', timestamp='2024-05-01T09:20:00Z', device_id='d3'),
        ])

        summary = {row.team_id: row for row in ScoreAggregator(app_state).access_summary()}

        assert summary['T1'].multi_device is True
        assert summary['T1'].devices == 2
        assert summary['T1'].last_seen == '2024-05-01T09:30:00Z'
        assert summary['T2'].multi_device is False
        assert summary['T2'].accesses == 2

    def test_access_rows_newest_first(self, app_state):
        """Raw audit rows are listed newest first."""
        app_state.replace_access_logs([
            AccessLogEntry(id='a', team_id='T1', timestamp='2024-05-01T09:00:00Z', device_id='d1'),
            AccessLogEntry(id='b', team_id='T2', timestamp='2024-05-01T10:00:00Z', device_id='d2'),
        ])

        rows = ScoreAggregator(app_state).access_rows()

        assert [r.team_name for r in rows] == ['Águias', 'Lobos']

    def test_summary_ordered_by_folded_name(self, app_state):
        """'Águias' is listed before 'Lobos' and unknown ids sort by their raw id."""
        app_state.replace_access_logs([
            AccessLogEntry(id='a', team_id='T1', timestamp='2024-05-01T09:00:00Z', device_id='d1'),
            AccessLogEntry(id='b', team_id='T2', timestamp='2024-05-01T09:05:00Z', device_id='d2'),
            AccessLogEntry(id='c', team_id='ghost', timestamp='2024-05-01T09:10:00Z', device_id='d3'),
        ])

        rows = ScoreAggregator(app_state).access_summary()

        assert [r.team_name for r in rows] == ['Águias', 'ghost', 'Lobos']
