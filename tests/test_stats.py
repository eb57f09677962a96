"""Tests for the season statistics aggregator."""

from __future__ import annotations

import datetime
import itertools
import unittest
from unittest.mock import MagicMock

from tournabot.errors import StorageError
from tournabot.stats.services import SeasonStatsService
from tournabot.tournament import bracket
from tournabot.tournament.models import Match, Standing, Tournament
from tournabot.tournament.standings import reconcile

PARTICIPANT_TEAMS = {
    "Alice": "Arsenal",
    "Bob": "Barcelona",
    "Carol": "Chelsea",
    "Dave": "Dortmund",
    "Erin": "Everton",
}


def build_completed_tournament() -> Tournament:
    """Five teams; earlier teams beat later ones; seeds win every playoff match."""
    tournament = Tournament(
        id=7,
        name="2024-05-17 Tournament #1",
        created_at=datetime.datetime(2024, 5, 17, tzinfo=datetime.timezone.utc),
        participants=list(PARTICIPANT_TEAMS),
        participant_teams=dict(PARTICIPANT_TEAMS),
        setup_completed=True,
        active=True,
    )
    tournament.standings = [Standing(team=t) for t in tournament.teams]
    for team1, team2 in itertools.combinations(tournament.teams, 2):
        tournament.matches.append(Match(team1=team1, team2=team2, score1=2, score2=0))
    tournament.standings = reconcile(tournament.standings, tournament.matches)

    playoff = bracket.seed_bracket(tournament.teams[:4])
    bracket.record_result(playoff, "Chelsea", "Dortmund", 1, 0)
    bracket.record_result(
        playoff,
        "Barcelona",
        "Chelsea",
        1,
        1,
        extra_time=True,
        penalties=True,
        extra_score=(2, 2),
        penalty_score=(4, 3),
    )
    bracket.record_result(playoff, "Arsenal", "Barcelona", 3, 1)
    tournament.playoff = playoff
    tournament.active = False
    tournament.completed = True
    return tournament


class SeasonStatsComputeTestCase(unittest.TestCase):
    """Test case for per-participant computation."""

    def setUp(self) -> None:
        self.tournament = build_completed_tournament()
        self.lines = {
            line.participant: line
            for line in SeasonStatsService.compute(self.tournament)
        }

    def test_placements(self) -> None:
        places = SeasonStatsService.placements(self.tournament)
        self.assertEqual(places["Arsenal"], "first")
        self.assertEqual(places["Barcelona"], "second")
        self.assertEqual(places["Chelsea"], "third")
        self.assertEqual(places["Dortmund"], "group")
        self.assertEqual(places["Everton"], "group")

    def test_points_stack_group_bonus(self) -> None:
        """Placement points are added to the group top-three bonus."""
        self.assertEqual(self.lines["Alice"].points, 8 + 2)
        self.assertEqual(self.lines["Bob"].points, 4 + 2)
        self.assertEqual(self.lines["Carol"].points, 2 + 2)
        self.assertEqual(self.lines["Dave"].points, 0)
        self.assertEqual(self.lines["Erin"].points, 0)

    def test_goals_include_extra_time_not_penalties(self) -> None:
        bob = self.lines["Bob"]
        # Group: 3 wins 2:0 and a 0:2 loss. Semi 2:2 a.e.t. Final 1:3.
        self.assertEqual(bob.goals_scored, 6 + 0 + 2 + 1)
        self.assertEqual(bob.goals_conceded, 2 + 2 + 3)
        self.assertEqual(bob.matches_played, 6)

    def test_results_count_shootout_winner(self) -> None:
        bob = self.lines["Bob"]
        self.assertEqual((bob.wins, bob.draws, bob.losses), (4, 0, 2))
        carol = self.lines["Carol"]
        self.assertEqual(carol.matches_played, 6)
        self.assertEqual((carol.wins, carol.losses), (3, 3))

    def test_group_only_participant(self) -> None:
        erin = self.lines["Erin"]
        self.assertEqual(erin.matches_played, 4)
        self.assertEqual(erin.losses, 4)
        self.assertEqual(erin.goals_conceded, 8)

    def test_history_entry(self) -> None:
        entry = self.lines["Alice"].history_entry(self.tournament.id)
        self.assertEqual(entry["tournament_id"], 7)
        self.assertEqual(entry["place"], "first")
        self.assertEqual(entry["points"], 10)


class SeasonStatsApplyTestCase(unittest.TestCase):
    """Test case for writing season statistics."""

    def setUp(self) -> None:
        self.tournament = build_completed_tournament()
        self.mock_db = MagicMock()
        self.refs: dict[str, MagicMock] = {}

        def document(name):
            return self.refs.setdefault(name, MagicMock(name=name))

        self.mock_db.collection.return_value.document.side_effect = document

    def test_one_update_per_participant(self) -> None:
        report = SeasonStatsService.apply_tournament(self.tournament, db=self.mock_db)

        self.assertEqual(sorted(report.updated), sorted(PARTICIPANT_TEAMS))
        self.mock_db.collection.assert_called_with("participants")
        payload = self.refs["Alice"].update.call_args[0][0]
        self.assertEqual(payload["stats.total_points"].value, 10)
        self.assertEqual(payload["stats.tournaments_played"].value, 1)
        self.assertEqual(payload["stats.wins"].value, 5)
        history = payload["stats.tournament_stats"].values
        self.assertEqual(history[0]["place"], "first")
        for ref in self.refs.values():
            ref.update.assert_called_once()

    def test_partial_failure_is_reported(self) -> None:
        """One failed write does not stop the others."""

        def document(name):
            ref = self.refs.setdefault(name, MagicMock(name=name))
            if name == "Carol":
                ref.update.side_effect = RuntimeError("boom")
            return ref

        self.mock_db.collection.return_value.document.side_effect = document

        report = SeasonStatsService.apply_tournament(self.tournament, db=self.mock_db)

        self.assertIn("Carol", report.failed)
        self.assertEqual(len(report.updated), 4)

    def test_total_failure_raises(self) -> None:
        def document(name):
            ref = MagicMock(name=name)
            ref.update.side_effect = RuntimeError("unavailable")
            return ref

        self.mock_db.collection.return_value.document.side_effect = document

        with self.assertRaises(StorageError):
            SeasonStatsService.apply_tournament(self.tournament, db=self.mock_db)


if __name__ == "__main__":
    unittest.main()
