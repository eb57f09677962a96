"""Service layer for tournament business logic."""

from __future__ import annotations

import datetime
import logging
import random
import threading
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from tournabot.catalog.services import ParticipantService, TeamCategoryService
from tournabot.core.constants import (
    COUNTERS_COLLECTION,
    MAX_PARTICIPANTS,
    MIN_PARTICIPANTS,
    REAP_AFTER_HOURS,
    TOURNAMENT_ID_COUNTER,
    TOURNAMENTS_COLLECTION,
)
from tournabot.errors import (
    ConflictError,
    DuplicateMatchError,
    NotFoundError,
    PlayoffNotStartedError,
    PreconditionError,
    StageError,
    ValidationError,
)
from tournabot.notifications import services as notifications
from tournabot.notifications.services import NotificationService
from tournabot.stats.services import SeasonStatsService

from . import bracket
from .models import STAGE_DONE, Match, Standing, Tournament
from .standings import compute_standings, rank_standings, reconcile
from .utils import missing_pairs, perform_draw, tournament_name

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)

# Serializes every lifecycle mutation; only one tournament is active at a time.
_lifecycle_lock = threading.RLock()


def _validate_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("Scores must be non-negative whole numbers.")
    return value


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _ref(db: Client, tournament_id: int) -> DocumentReference:
        return db.collection(TOURNAMENTS_COLLECTION).document(str(tournament_id))

    @staticmethod
    def _load(db: Client, tournament_id: int) -> Tournament:
        doc = TournamentService._ref(db, tournament_id).get()
        if not doc.exists:
            raise NotFoundError(f"Tournament {tournament_id} not found.")
        return Tournament.from_dict(doc.to_dict() or {})

    @staticmethod
    def _save(db: Client, tournament: Tournament) -> None:
        TournamentService._ref(db, tournament.id).set(tournament.to_dict())

    @staticmethod
    def _next_counter(db: Client, key: str) -> int:
        """Increment and return the named counter."""
        ref = db.collection(COUNTERS_COLLECTION).document(key)
        doc = ref.get()
        value = int((doc.to_dict() or {}).get("value", 0)) + 1 if doc.exists else 1
        ref.set({"value": value})
        return value

    @staticmethod
    def _publish(event: str, tournament: Tournament, message: str = "") -> None:
        NotificationService.publish(
            event, TournamentService.snapshot(tournament, message=message)
        )

    @staticmethod
    def stage_of(tournament: Tournament) -> str:
        """Return a short description of the lifecycle state."""
        if tournament.completed:
            return "completed"
        if not tournament.setup_completed:
            return "draft"
        if not tournament.active:
            return "ended"
        if tournament.playoff is None:
            return "group"
        return tournament.playoff.current_stage

    @staticmethod
    def get_ranked_standings(tournament: Tournament) -> list[Standing]:
        """Return the group table sorted by the tie-break rules."""
        return rank_standings(tournament.standings, tournament.matches)

    @staticmethod
    def snapshot(tournament: Tournament, message: str = "") -> dict[str, Any]:
        """Build the structured view published to subscribers."""
        return {
            "tournament_id": tournament.id,
            "name": tournament.name,
            "stage": TournamentService.stage_of(tournament),
            "message": message,
            "participant_teams": dict(tournament.participant_teams),
            "standings": [
                row.to_dict()
                for row in TournamentService.get_ranked_standings(tournament)
            ],
            "playoff": tournament.playoff.to_dict() if tournament.playoff else None,
            "winner": tournament.playoff.winner if tournament.playoff else None,
        }

    @staticmethod
    def get_tournament(tournament_id: int, db: Client | None = None) -> Tournament:
        if db is None:
            db = firestore.client()
        return TournamentService._load(db, tournament_id)

    @staticmethod
    def list_tournaments(db: Client | None = None) -> list[Tournament]:
        """Return every stored tournament, newest first."""
        if db is None:
            db = firestore.client()
        tournaments = [
            Tournament.from_dict(doc.to_dict() or {})
            for doc in db.collection(TOURNAMENTS_COLLECTION).stream()
        ]
        return sorted(tournaments, key=lambda t: t.id, reverse=True)

    @staticmethod
    def list_active_tournaments(db: Client | None = None) -> list[Tournament]:
        """Return every tournament whose active flag is set."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(TOURNAMENTS_COLLECTION)
            .where(filter=firestore.FieldFilter("active", "==", True))
            .stream()
        )
        tournaments = [Tournament.from_dict(doc.to_dict() or {}) for doc in docs]
        return sorted(tournaments, key=lambda t: t.id)

    @staticmethod
    def get_active_tournament(db: Client | None = None) -> Optional[Tournament]:
        active = TournamentService.list_active_tournaments(db)
        return active[0] if active else None

    @staticmethod
    def create_tournament(
        now: Optional[datetime.datetime] = None,
        min_participants: int = MIN_PARTICIPANTS,
        max_participants: int = MAX_PARTICIPANTS,
        db: Client | None = None,
    ) -> Tournament:
        """Create a new draft tournament.

        Raises:
            ConflictError: If another tournament is currently active.
        """
        if db is None:
            db = firestore.client()
        now = now or datetime.datetime.now(datetime.timezone.utc)

        with _lifecycle_lock:
            if TournamentService.list_active_tournaments(db):
                raise ConflictError(
                    "A tournament is already running. End it before creating a new one."
                )
            tournament_id = TournamentService._next_counter(db, TOURNAMENT_ID_COUNTER)
            number = TournamentService._next_counter(
                db, f"daily_{now.date().isoformat()}"
            )
            tournament = Tournament(
                id=tournament_id,
                name=tournament_name(now.date(), number),
                created_at=now,
                min_participants=min_participants,
                max_participants=max_participants,
            )
            TournamentService._save(db, tournament)

        logger.info("Created tournament %s (%s)", tournament.id, tournament.name)
        return tournament

    @staticmethod
    def _require_draft(tournament: Tournament) -> None:
        if tournament.setup_completed or tournament.completed:
            raise PreconditionError(
                "Setup can only be changed before the tournament starts."
            )

    @staticmethod
    def toggle_participant(
        tournament_id: int, name: str, db: Client | None = None
    ) -> bool:
        """Add or remove a participant; returns True if the name was added."""
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            TournamentService._require_draft(tournament)

            if name in tournament.participants:
                tournament.participants.remove(name)
                added = False
            else:
                if not ParticipantService.exists(name, db=db):
                    raise NotFoundError(f"Participant {name} not found.")
                if len(tournament.participants) >= tournament.max_participants:
                    raise PreconditionError(
                        f"A tournament takes at most "
                        f"{tournament.max_participants} participants."
                    )
                tournament.participants.append(name)
                added = True
            TournamentService._save(db, tournament)
        return added

    @staticmethod
    def set_team_category(
        tournament_id: int, category: str, db: Client | None = None
    ) -> None:
        """Choose the team category used by the draw."""
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            TournamentService._require_draft(tournament)
            TeamCategoryService.get_team_category(category, db=db)
            tournament.team_category = category
            TournamentService._save(db, tournament)

    @staticmethod
    def start_tournament(
        tournament_id: int,
        rng: Optional[random.Random] = None,
        db: Client | None = None,
    ) -> Tournament:
        """Perform the draw and open the group stage.

        Raises:
            PreconditionError: If the tournament cannot start yet.
            InsufficientTeamsError: If the category is smaller than the field.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            TournamentService._require_draft(tournament)

            count = len(tournament.participants)
            if count < tournament.min_participants:
                raise PreconditionError(
                    f"At least {tournament.min_participants} participants are "
                    f"needed, {count} selected."
                )
            if count > tournament.max_participants:
                raise PreconditionError(
                    f"At most {tournament.max_participants} participants are "
                    f"allowed, {count} selected."
                )
            if not tournament.team_category:
                raise PreconditionError("Choose a team category first.")
            others = [
                t
                for t in TournamentService.list_active_tournaments(db)
                if t.id != tournament.id
            ]
            if others:
                raise PreconditionError(
                    f"Tournament {others[0].name} is still active."
                )

            category = TeamCategoryService.get_team_category(
                tournament.team_category, db=db
            )
            tournament.participant_teams = perform_draw(
                tournament.participants, category["teams"], rng=rng
            )
            tournament.matches = []
            tournament.standings = [Standing(team=team) for team in tournament.teams]
            tournament.active = True
            tournament.setup_completed = True
            TournamentService._save(db, tournament)

        logger.info("Tournament %s started", tournament.id)
        TournamentService._publish(notifications.TOURNAMENT_STARTED, tournament)
        return tournament

    @staticmethod
    def _require_running(tournament: Tournament) -> None:
        if not tournament.setup_completed:
            raise PreconditionError("The tournament has not started yet.")
        if tournament.completed:
            raise PreconditionError("The tournament is already completed.")
        if not tournament.active:
            raise PreconditionError("The tournament is no longer active.")

    @staticmethod
    def record_group_match(
        tournament_id: int,
        team1: str,
        team2: str,
        score1: int,
        score2: int,
        date: Optional[datetime.datetime] = None,
        db: Client | None = None,
    ) -> Match:
        """Record a group-stage result and update the table.

        Raises:
            PreconditionError: If the group stage is not running.
            StageError: If the playoff has already started.
            ValidationError: If the teams or scores are invalid.
            DuplicateMatchError: If the two teams have already played.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            TournamentService._require_running(tournament)
            if tournament.playoff is not None:
                raise StageError("The group stage is over; record playoff matches.")

            teams = tournament.teams
            if team1 not in teams or team2 not in teams:
                raise ValidationError("Both teams must play in this tournament.")
            if team1 == team2:
                raise ValidationError("A team cannot play against itself.")
            score1 = _validate_score(score1)
            score2 = _validate_score(score2)

            match = Match(
                team1=team1,
                team2=team2,
                score1=score1,
                score2=score2,
                date=date or datetime.datetime.now(datetime.timezone.utc),
            )
            if any(m.pairing() == match.pairing() for m in tournament.matches):
                raise DuplicateMatchError(
                    f"{team1} and {team2} have already played each other."
                )

            tournament.matches.append(match)
            tournament.standings = reconcile(tournament.standings, tournament.matches)
            TournamentService._save(db, tournament)

        TournamentService._publish(
            notifications.MATCH_RECORDED,
            tournament,
            message=f"{team1} {score1}:{score2} {team2}",
        )
        return match

    @staticmethod
    def start_playoff(tournament_id: int, db: Client | None = None) -> Tournament:
        """Seed the bracket from the final group table.

        Raises:
            PreconditionError: If the tournament has not been set up.
            StageError: If the group stage is incomplete or the playoff exists.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            TournamentService._require_running(tournament)
            if tournament.playoff is not None:
                raise StageError("The playoff has already started.")

            remaining = missing_pairs(tournament.teams, tournament.matches)
            if remaining:
                raise StageError(
                    f"The group stage still has {len(remaining)} matches to play."
                )

            ranked = TournamentService.get_ranked_standings(tournament)
            tournament.playoff = bracket.seed_bracket([row.team for row in ranked])
            TournamentService._save(db, tournament)

        logger.info(
            "Playoff started for tournament %s with seeds %s",
            tournament.id,
            tournament.playoff.seeds,
        )
        TournamentService._publish(notifications.PLAYOFF_STARTED, tournament)
        return tournament

    @staticmethod
    def record_playoff_match(  # noqa: PLR0913
        tournament_id: int,
        team1: str,
        team2: str,
        score1: int,
        score2: int,
        extra_time: bool = False,
        penalties: bool = False,
        extra_score: Optional[tuple[int, int]] = None,
        penalty_score: Optional[tuple[int, int]] = None,
        date: Optional[datetime.datetime] = None,
        db: Client | None = None,
    ) -> bracket.PlayoffResult:
        """Submit a result for the open playoff match.

        A decisive final completes the tournament and folds it into the
        season statistics. If that aggregation fails the tournament document
        is restored to its state before this call and the error re-raised.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            if tournament.playoff is None:
                raise PlayoffNotStartedError()
            if not tournament.completed:
                TournamentService._require_running(tournament)
            before = tournament.to_dict()

            result = bracket.record_result(
                tournament.playoff,
                team1,
                team2,
                score1,
                score2,
                extra_time=extra_time,
                penalties=penalties,
                extra_score=extra_score,
                penalty_score=penalty_score,
                date=date,
            )
            if not result.decided:
                return result

            if tournament.playoff.current_stage == STAGE_DONE:
                tournament.active = False
                tournament.completed = True
            TournamentService._save(db, tournament)

            if tournament.completed:
                try:
                    SeasonStatsService.apply_tournament(tournament, db=db)
                except Exception:
                    logger.error(
                        "Season aggregation failed for tournament %s; "
                        "restoring the previous state",
                        tournament.id,
                    )
                    TournamentService._ref(db, tournament.id).set(before)
                    raise

        match = result.match
        TournamentService._publish(
            notifications.PLAYOFF_MATCH_RECORDED,
            tournament,
            message=f"{match.team1} {match.final_score1}:{match.final_score2} "
            f"{match.team2}",
        )
        if tournament.completed:
            logger.info(
                "Tournament %s won by %s", tournament.id, tournament.playoff.winner
            )
            TournamentService._publish(
                notifications.TOURNAMENT_COMPLETED,
                tournament,
                message=f"{tournament.playoff.winner} wins the tournament!",
            )
            NotificationService.publish(
                notifications.SEASON_RATING,
                {
                    "name": "Season rating",
                    "rating": ParticipantService.get_season_rating(db=db),
                },
            )
        return result

    @staticmethod
    def delete_last_match(tournament_id: int, db: Client | None = None) -> Match:
        """Remove the latest result of the current stage.

        In the group stage this is the tail of the match list and the table
        is rebuilt from what remains. In the playoff it is the latest decided
        slot and every later round is rewired.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            if tournament.completed:
                raise PreconditionError(
                    "Results of a completed tournament cannot be changed."
                )
            TournamentService._require_running(tournament)

            if tournament.playoff is not None:
                _, removed = bracket.delete_last(tournament.playoff)
            else:
                if not tournament.matches:
                    raise PreconditionError("No match has been recorded yet.")
                removed = tournament.matches.pop()
                tournament.standings = compute_standings(
                    tournament.teams, tournament.matches
                )
            TournamentService._save(db, tournament)

        TournamentService._publish(
            notifications.MATCH_DELETED,
            tournament,
            message=f"Deleted {removed.team1} {removed.score1}:{removed.score2} "
            f"{removed.team2}",
        )
        return removed

    @staticmethod
    def end_tournament(tournament_id: int, db: Client | None = None) -> Tournament:
        """Deactivate a running tournament without completing it."""
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            tournament = TournamentService._load(db, tournament_id)
            if not tournament.active:
                raise PreconditionError("The tournament is not active.")
            tournament.active = False
            TournamentService._save(db, tournament)
        logger.info("Tournament %s ended", tournament.id)
        return tournament

    @staticmethod
    def delete_tournament(tournament_id: int, db: Client | None = None) -> None:
        """Delete a tournament in any state.

        Raises:
            NotFoundError: If the tournament does not exist.
        """
        if db is None:
            db = firestore.client()

        with _lifecycle_lock:
            ref = TournamentService._ref(db, tournament_id)
            if not ref.get().exists:
                raise NotFoundError(f"Tournament {tournament_id} not found.")
            ref.delete()
        logger.info("Tournament %s deleted", tournament_id)

    @staticmethod
    def get_reapable_tournaments(
        now: Optional[datetime.datetime] = None,
        max_age_hours: int = REAP_AFTER_HOURS,
        db: Client | None = None,
    ) -> list[Tournament]:
        """Return idle tournaments old enough to be deleted.

        A tournament is idle when it was never set up or is no longer
        active. Completed tournaments are kept.
        """
        if db is None:
            db = firestore.client()
        now = now or datetime.datetime.now(datetime.timezone.utc)
        cutoff = now - datetime.timedelta(hours=max_age_hours)

        docs = (
            db.collection(TOURNAMENTS_COLLECTION)
            .where(filter=firestore.FieldFilter("completed", "==", False))
            .stream()
        )
        reapable = []
        for doc in docs:
            tournament = Tournament.from_dict(doc.to_dict() or {})
            if tournament.setup_completed and tournament.active:
                continue
            created_at = tournament.created_at
            if created_at is None:
                continue
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=datetime.timezone.utc)
            if created_at < cutoff:
                reapable.append(tournament)
        return sorted(reapable, key=lambda t: t.id)

    @staticmethod
    def reap_tournaments(
        now: Optional[datetime.datetime] = None,
        max_age_hours: int = REAP_AFTER_HOURS,
        db: Client | None = None,
    ) -> list[int]:
        """Delete every reapable tournament and return their ids."""
        if db is None:
            db = firestore.client()
        reaped = []
        for tournament in TournamentService.get_reapable_tournaments(
            now=now, max_age_hours=max_age_hours, db=db
        ):
            TournamentService.delete_tournament(tournament.id, db=db)
            reaped.append(tournament.id)
        return reaped
