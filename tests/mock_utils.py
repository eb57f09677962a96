"""Mock utilities for Firestore."""

from __future__ import annotations

from typing import Any, Optional

from mockfirestore import CollectionReference, Query

PARTICIPANTS = ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank"]
CATEGORY = "Clubs"
CATEGORY_TEAMS = ["Arsenal", "Barcelona", "Chelsea", "Dortmund", "Everton", "Fiorentina"]


class MockFirestoreBuilder:
    """Builder to modularize mockfirestore patching and seeding."""

    @staticmethod
    def patch_db_read() -> None:
        """Apply monkeypatches to mockfirestore to support FieldFilter."""

        def collection_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(CollectionReference, "_where"):
            CollectionReference._where = CollectionReference.where
            CollectionReference.where = collection_where

        def query_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(Query, "_where"):
            Query._where = Query.where
            Query.where = query_where

    @staticmethod
    def seed_catalog(
        db: Any,
        participants: Optional[list[str]] = None,
        teams: Optional[list[str]] = None,
        admins: Optional[list[int]] = None,
    ) -> None:
        """Store participants, one team category and admins."""
        for name in participants if participants is not None else PARTICIPANTS:
            db.collection("participants").document(name).set({
                "name": name,
                "stats": {"total_points": 0, "tournament_stats": []},
            })
        db.collection("team_categories").document(CATEGORY).set({
            "name": CATEGORY,
            "teams": list(teams if teams is not None else CATEGORY_TEAMS),
        })
        for user_id in admins or []:
            db.collection("admins").document(str(user_id)).set({"user_id": user_id})


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter."""
    MockFirestoreBuilder.patch_db_read()
