"""Tests for participants, team categories and admins."""

from __future__ import annotations

import unittest

from mockfirestore import MockFirestore

from tests.conftest import CATEGORY, CATEGORY_TEAMS, MockFirestoreBuilder
from tournabot.admin.services import AdminService
from tournabot.catalog.services import (
    ParticipantService,
    TeamCategoryService,
    parse_category_args,
)
from tournabot.errors import ConflictError, NotFoundError, ValidationError


class ParticipantServiceTestCase(unittest.TestCase):
    """Test case for the ParticipantService."""

    def setUp(self) -> None:
        self.db = MockFirestore()

    def test_add_participant(self) -> None:
        data = ParticipantService.add_participant("  Anna   Maria ", db=self.db)

        self.assertEqual(data["name"], "Anna Maria")
        self.assertEqual(data["stats"]["total_points"], 0)
        self.assertEqual(data["stats"]["tournament_stats"], [])
        self.assertTrue(ParticipantService.exists("Anna Maria", db=self.db))

    def test_add_participant_accepts_non_ascii_letters(self) -> None:
        ParticipantService.add_participant("Zoë", db=self.db)
        self.assertEqual(ParticipantService.list_participants(db=self.db), ["Zoë"])

    def test_add_participant_rejects_invalid_names(self) -> None:
        for name in ("", "   ", "R2D2", "Anna_Maria", "O'Neil", "Bob!"):
            with self.subTest(name=name):
                with self.assertRaises(ValidationError):
                    ParticipantService.add_participant(name, db=self.db)
        self.assertEqual(ParticipantService.list_participants(db=self.db), [])

    def test_add_participant_duplicate(self) -> None:
        ParticipantService.add_participant("Alice", db=self.db)
        with self.assertRaises(ConflictError):
            ParticipantService.add_participant("Alice", db=self.db)

    def test_list_participants_sorted(self) -> None:
        for name in ("Carol", "Alice", "Bob"):
            ParticipantService.add_participant(name, db=self.db)
        self.assertEqual(
            ParticipantService.list_participants(db=self.db), ["Alice", "Bob", "Carol"]
        )

    def test_season_rating_order(self) -> None:
        """Points first, then goal difference, then name."""
        records = {
            "Carol": {"total_points": 10, "goals_scored": 5, "goals_conceded": 5},
            "Bob": {"total_points": 10, "goals_scored": 9, "goals_conceded": 2},
            "Alice": {"total_points": 4, "goals_scored": 1, "goals_conceded": 0},
            "Dave": {"total_points": 4, "goals_scored": 1, "goals_conceded": 0},
        }
        for name, stats in records.items():
            self.db.collection("participants").document(name).set({
                "name": name,
                "stats": stats,
            })

        rating = ParticipantService.get_season_rating(db=self.db)

        self.assertEqual([r["name"] for r in rating], ["Bob", "Carol", "Alice", "Dave"])
        self.assertEqual(rating[0]["goals_difference"], 7)
        self.assertEqual(rating[0]["wins"], 0)


class TeamCategoryServiceTestCase(unittest.TestCase):
    """Test case for the TeamCategoryService."""

    def setUp(self) -> None:
        self.db = MockFirestore()
        MockFirestoreBuilder.seed_catalog(self.db)

    def test_parse_category_args(self) -> None:
        name, teams = parse_category_args("Nations, Brazil ,Spain,, Italy")
        self.assertEqual(name, "Nations")
        self.assertEqual(teams, ["Brazil", "Spain", "Italy"])

    def test_parse_category_args_invalid(self) -> None:
        for text in ("", "Nations", "Nations,Brazil", "Nations,Spain,Spain"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError):
                    parse_category_args(text)

    def test_add_and_get(self) -> None:
        TeamCategoryService.add_team_category("Nations", ["Brazil", "Spain"], db=self.db)

        category = TeamCategoryService.get_team_category("Nations", db=self.db)
        self.assertEqual(category["teams"], ["Brazil", "Spain"])
        names = [c["name"] for c in TeamCategoryService.list_team_categories(db=self.db)]
        self.assertEqual(names, [CATEGORY, "Nations"])

    def test_add_replaces_existing(self) -> None:
        TeamCategoryService.add_team_category(CATEGORY, ["Ajax", "Benfica"], db=self.db)
        category = TeamCategoryService.get_team_category(CATEGORY, db=self.db)
        self.assertEqual(category["teams"], ["Ajax", "Benfica"])

    def test_invalid_name(self) -> None:
        with self.assertRaises(ValidationError):
            TeamCategoryService.add_team_category("A/B", ["X", "Y"], db=self.db)

    def test_remove(self) -> None:
        TeamCategoryService.remove_team_category(CATEGORY, db=self.db)

        with self.assertRaises(NotFoundError):
            TeamCategoryService.get_team_category(CATEGORY, db=self.db)
        with self.assertRaises(NotFoundError):
            TeamCategoryService.remove_team_category(CATEGORY, db=self.db)

    def test_get_seeded(self) -> None:
        category = TeamCategoryService.get_team_category(CATEGORY, db=self.db)
        self.assertEqual(category["teams"], CATEGORY_TEAMS)


class AdminServiceTestCase(unittest.TestCase):
    """Test case for the AdminService."""

    def setUp(self) -> None:
        self.db = MockFirestore()

    def test_add_and_remove_admin(self) -> None:
        self.assertFalse(AdminService.is_admin(42, db=self.db))

        AdminService.add_admin("42", added_by=1, db=self.db)
        self.assertTrue(AdminService.is_admin(42, db=self.db))
        stored = self.db.collection("admins").document("42").get().to_dict()
        self.assertEqual(stored["user_id"], 42)
        self.assertEqual(stored["added_by"], 1)

        AdminService.remove_admin(42, db=self.db)
        self.assertFalse(AdminService.is_admin(42, db=self.db))

    def test_add_admin_requires_numeric_id(self) -> None:
        with self.assertRaises(ValidationError):
            AdminService.add_admin("alice", db=self.db)

    def test_remove_unknown_admin(self) -> None:
        with self.assertRaises(NotFoundError):
            AdminService.remove_admin(7, db=self.db)


if __name__ == "__main__":
    unittest.main()
