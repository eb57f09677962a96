"""Tests for tournament utility functions."""

from __future__ import annotations

import datetime
import random
import unittest

from tournabot.errors import InsufficientTeamsError
from tournabot.tournament.models import Match
from tournabot.tournament.utils import (
    missing_pairs,
    perform_draw,
    round_robin_pairs,
    tournament_name,
)


class TournamentUtilsTestCase(unittest.TestCase):
    """Test case for tournament utility functions."""

    def test_draw_assigns_distinct_teams(self) -> None:
        participants = ["Alice", "Bob", "Carol", "Dave", "Erin"]
        pool = ["Arsenal", "Barcelona", "Chelsea", "Dortmund", "Everton", "Fiorentina"]

        teams = perform_draw(participants, pool, rng=random.Random(7))

        self.assertEqual(list(teams), participants)
        self.assertEqual(len(set(teams.values())), len(participants))
        self.assertTrue(set(teams.values()) <= set(pool))

    def test_draw_is_deterministic_for_a_seed(self) -> None:
        participants = ["Alice", "Bob", "Carol"]
        pool = ["Arsenal", "Barcelona", "Chelsea", "Dortmund"]

        first = perform_draw(participants, pool, rng=random.Random(42))
        second = perform_draw(participants, pool, rng=random.Random(42))

        self.assertEqual(first, second)

    def test_draw_does_not_mutate_pool(self) -> None:
        pool = ["Arsenal", "Barcelona", "Chelsea"]
        perform_draw(["Alice", "Bob"], pool, rng=random.Random(1))
        self.assertEqual(pool, ["Arsenal", "Barcelona", "Chelsea"])

    def test_draw_with_too_few_teams(self) -> None:
        with self.assertRaises(InsufficientTeamsError):
            perform_draw(["Alice", "Bob", "Carol"], ["Arsenal", "Barcelona"])

    def test_round_robin_pairs(self) -> None:
        pairs = round_robin_pairs(["A", "B", "C", "D", "E"])
        self.assertEqual(len(pairs), 10)
        self.assertIn(frozenset({"A", "E"}), pairs)

    def test_missing_pairs_ignores_order(self) -> None:
        matches = [Match(team1="B", team2="A", score1=1, score2=0)]
        missing = missing_pairs(["A", "B", "C"], matches)
        self.assertEqual(set(missing), {frozenset({"A", "C"}), frozenset({"B", "C"})})

    def test_tournament_name(self) -> None:
        self.assertEqual(
            tournament_name(datetime.date(2024, 5, 17), 2),
            "2024-05-17 Tournament #2",
        )


if __name__ == "__main__":
    unittest.main()
