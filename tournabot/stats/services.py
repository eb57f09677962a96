"""Season statistics aggregation for completed tournaments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from tournabot.core.constants import (
    GROUP_BONUS_PLACES,
    GROUP_TOP_THREE_BONUS,
    PARTICIPANTS_COLLECTION,
    PLACE_FIRST,
    PLACE_GROUP,
    PLACE_SECOND,
    PLACE_THIRD,
    PLACEMENT_POINTS,
)
from tournabot.errors import StorageError
from tournabot.tournament.models import STAGE_FINAL, STAGE_SEMI, Tournament
from tournabot.tournament.standings import compute_standings, rank_standings

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


@dataclass
class ParticipantTournamentStats:
    """One participant's contribution from a single tournament."""

    participant: str
    team: str
    place: str = PLACE_GROUP
    points: int = 0
    goals_scored: int = 0
    goals_conceded: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    matches_played: int = 0

    def history_entry(self, tournament_id: int) -> dict[str, Any]:
        return {
            "tournament_id": tournament_id,
            "team": self.team,
            "place": self.place,
            "points": self.points,
            "goals_scored": self.goals_scored,
            "goals_conceded": self.goals_conceded,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "matches_played": self.matches_played,
        }

    def update_payload(self, tournament_id: int) -> dict[str, Any]:
        """Build the Firestore update that folds this line into the season."""
        return {
            "stats.total_points": firestore.Increment(self.points),
            "stats.goals_scored": firestore.Increment(self.goals_scored),
            "stats.goals_conceded": firestore.Increment(self.goals_conceded),
            "stats.wins": firestore.Increment(self.wins),
            "stats.losses": firestore.Increment(self.losses),
            "stats.draws": firestore.Increment(self.draws),
            "stats.matches_played": firestore.Increment(self.matches_played),
            "stats.tournaments_played": firestore.Increment(1),
            "stats.tournament_stats": firestore.ArrayUnion(
                [self.history_entry(tournament_id)]
            ),
        }


@dataclass
class AggregationReport:
    """Which participants were written and which failed."""

    updated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class SeasonStatsService:
    """Folds completed tournaments into participants' season records."""

    @staticmethod
    def placements(tournament: Tournament) -> dict[str, str]:
        """Map team to its final placement."""
        playoff = tournament.playoff
        places = {team: PLACE_GROUP for team in tournament.teams}
        if playoff is None:
            return places

        decided = dict(playoff.decided_matches())
        final = decided.get(STAGE_FINAL)
        if final is not None and final.winner:
            places[final.winner] = PLACE_FIRST
            places[final.loser] = PLACE_SECOND
        semi = decided.get(STAGE_SEMI)
        if semi is not None and semi.loser and places.get(semi.loser) == PLACE_GROUP:
            places[semi.loser] = PLACE_THIRD
        return places

    @staticmethod
    def compute(tournament: Tournament) -> list[ParticipantTournamentStats]:
        """Work out every participant's line for ``tournament``.

        Goals include extra time but never shootout goals. The group
        top-three bonus is added on top of any placement points.
        """
        group_table = rank_standings(
            compute_standings(tournament.teams, tournament.matches),
            tournament.matches,
        )
        group_top = {row.team for row in group_table[:GROUP_BONUS_PLACES]}
        places = SeasonStatsService.placements(tournament)

        matches = [m for m in tournament.matches if m.counted]
        if tournament.playoff is not None:
            matches += [
                m for _, m in tournament.playoff.decided_matches() if m.counted
            ]

        lines = []
        for participant in tournament.participants:
            team = tournament.participant_teams.get(participant)
            if team is None:
                continue
            line = ParticipantTournamentStats(participant=participant, team=team)
            for match in matches:
                if not match.involves(team):
                    continue
                scored, conceded = match.goals_for(team)
                line.matches_played += 1
                line.goals_scored += scored
                line.goals_conceded += conceded
                winner = match.winner
                if winner is None:
                    line.draws += 1
                elif winner == team:
                    line.wins += 1
                else:
                    line.losses += 1

            line.place = places.get(team, PLACE_GROUP)
            line.points = PLACEMENT_POINTS[line.place]
            if team in group_top:
                line.points += GROUP_TOP_THREE_BONUS
            lines.append(line)
        return lines

    @staticmethod
    def apply_tournament(
        tournament: Tournament, db: Client | None = None
    ) -> AggregationReport:
        """Write each participant's totals and history entry.

        Each participant is one atomic update. A failed participant is logged
        and skipped; the others still apply.

        Raises:
            StorageError: If not a single participant could be written.
        """
        if db is None:
            db = firestore.client()

        lines = SeasonStatsService.compute(tournament)
        report = AggregationReport()
        for line in lines:
            ref = db.collection(PARTICIPANTS_COLLECTION).document(line.participant)
            try:
                ref.update(line.update_payload(tournament.id))
            except Exception as e:  # noqa: BLE001
                logger.error(
                    "Failed to update season stats for %s: %s", line.participant, e
                )
                report.failed[line.participant] = str(e)
            else:
                report.updated.append(line.participant)

        if lines and not report.updated:
            raise StorageError(
                f"Season statistics for tournament {tournament.id} could not be saved."
            )
        return report
