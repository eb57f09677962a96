"""Service layer for participants and team categories."""

from __future__ import annotations

import datetime
import re
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from tournabot.core.constants import (
    PARTICIPANT_NAME_PATTERN,
    PARTICIPANTS_COLLECTION,
    TEAM_CATEGORIES_COLLECTION,
)
from tournabot.errors import ConflictError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

NAME_RE = re.compile(PARTICIPANT_NAME_PATTERN)


def empty_season_stats() -> dict[str, Any]:
    """Return the zeroed season record of a new participant."""
    return {
        "total_points": 0,
        "goals_scored": 0,
        "goals_conceded": 0,
        "wins": 0,
        "losses": 0,
        "draws": 0,
        "matches_played": 0,
        "tournaments_played": 0,
        "tournament_stats": [],
    }


def parse_category_args(text: str) -> tuple[str, list[str]]:
    """Split ``"name,team1,team2,..."`` into a name and its teams."""
    parts = [p.strip() for p in (text or "").split(",")]
    parts = [p for p in parts if p]
    if len(parts) < 3:
        raise ValidationError(
            "Use the format: category name, team 1, team 2, ..."
        )
    name, teams = parts[0], parts[1:]
    if len(set(teams)) != len(teams):
        raise ValidationError("Team names in a category must be unique.")
    return name, teams


class ParticipantService:
    """Handles the pool of known participants."""

    @staticmethod
    def add_participant(name: str, db: Client | None = None) -> dict[str, Any]:
        """Register a new participant.

        Raises:
            ValidationError: If the name is not letters and spaces.
            ConflictError: If the participant already exists.
        """
        if db is None:
            db = firestore.client()
        name = " ".join((name or "").split())
        if not name or not NAME_RE.match(name):
            raise ValidationError("A name may only contain letters and spaces.")

        ref = db.collection(PARTICIPANTS_COLLECTION).document(name)
        if ref.get().exists:
            raise ConflictError(f"Participant {name} already exists.")

        data = {
            "name": name,
            "created_at": datetime.datetime.now(datetime.timezone.utc),
            "stats": empty_season_stats(),
        }
        ref.set(data)
        return data

    @staticmethod
    def list_participants(db: Client | None = None) -> list[str]:
        """Return every participant name, alphabetically."""
        if db is None:
            db = firestore.client()
        names = []
        for doc in db.collection(PARTICIPANTS_COLLECTION).stream():
            data = doc.to_dict() or {}
            names.append(data.get("name") or doc.id)
        return sorted(names)

    @staticmethod
    def exists(name: str, db: Client | None = None) -> bool:
        if db is None:
            db = firestore.client()
        return bool(db.collection(PARTICIPANTS_COLLECTION).document(name).get().exists)

    @staticmethod
    def get_season_rating(db: Client | None = None) -> list[dict[str, Any]]:
        """Rank participants by season points, then goal difference, then name."""
        if db is None:
            db = firestore.client()
        rows = []
        for doc in db.collection(PARTICIPANTS_COLLECTION).stream():
            data = doc.to_dict() or {}
            stats = {**empty_season_stats(), **(data.get("stats") or {})}
            rows.append({
                "name": data.get("name") or doc.id,
                "total_points": stats["total_points"],
                "goals_scored": stats["goals_scored"],
                "goals_conceded": stats["goals_conceded"],
                "goals_difference": stats["goals_scored"] - stats["goals_conceded"],
                "wins": stats["wins"],
                "draws": stats["draws"],
                "losses": stats["losses"],
                "matches_played": stats["matches_played"],
                "tournaments_played": stats["tournaments_played"],
            })
        rows.sort(key=lambda r: (-r["total_points"], -r["goals_difference"], r["name"]))
        return rows


class TeamCategoryService:
    """Handles the named pools of teams used by the draw."""

    @staticmethod
    def add_team_category(
        name: str, teams: list[str], db: Client | None = None
    ) -> dict[str, Any]:
        """Create or replace a team category."""
        if db is None:
            db = firestore.client()
        if not name or "/" in name:
            raise ValidationError("Invalid category name.")
        if not teams:
            raise ValidationError("A category needs at least one team.")
        data = {"name": name, "teams": list(teams)}
        db.collection(TEAM_CATEGORIES_COLLECTION).document(name).set(data)
        return data

    @staticmethod
    def remove_team_category(name: str, db: Client | None = None) -> None:
        if db is None:
            db = firestore.client()
        ref = db.collection(TEAM_CATEGORIES_COLLECTION).document(name)
        if not ref.get().exists:
            raise NotFoundError(f"Team category {name} not found.")
        ref.delete()

    @staticmethod
    def get_team_category(name: str, db: Client | None = None) -> dict[str, Any]:
        if db is None:
            db = firestore.client()
        doc = db.collection(TEAM_CATEGORIES_COLLECTION).document(name).get()
        if not doc.exists:
            raise NotFoundError(f"Team category {name} not found.")
        data = doc.to_dict() or {}
        return {"name": data.get("name") or name, "teams": list(data.get("teams") or [])}

    @staticmethod
    def list_team_categories(db: Client | None = None) -> list[dict[str, Any]]:
        if db is None:
            db = firestore.client()
        categories = []
        for doc in db.collection(TEAM_CATEGORIES_COLLECTION).stream():
            data = doc.to_dict() or {}
            categories.append({
                "name": data.get("name") or doc.id,
                "teams": list(data.get("teams") or []),
            })
        categories.sort(key=lambda c: c["name"])
        return categories
