"""Plain-text renderings of tournament state."""

from __future__ import annotations

from typing import Any

from tournabot.tournament.models import (
    STAGE_LABELS,
    DecidedSlot,
    EmptySlot,
    Match,
    PendingSlot,
    Tournament,
)
from tournabot.tournament.services import TournamentService


def format_match(match: Match) -> str:
    text = f"{match.team1} {match.score1}:{match.score2} {match.team2}"
    if match.extra_time:
        text += f" (a.e.t. {match.extra_score1}:{match.extra_score2})"
    if match.penalties:
        text += f" (pen. {match.penalty_score1}:{match.penalty_score2})"
    return text


def format_standings(tournament: Tournament) -> str:
    lines = ["#  Team  P  W  D  L  GF:GA  GD  Pts"]
    for place, row in enumerate(TournamentService.get_ranked_standings(tournament), 1):
        lines.append(
            f"{place}. {row.team}  {row.played}  {row.won}  {row.drawn}  {row.lost}"
            f"  {row.goals_for}:{row.goals_against}  {row.goals_difference:+d}"
            f"  {row.points}"
        )
    return "\n".join(lines)


def format_playoff(tournament: Tournament) -> str:
    playoff = tournament.playoff
    if playoff is None:
        return "The playoff has not started."
    lines = ["Playoff"]
    for stage, label in STAGE_LABELS.items():
        slot = playoff.slot(stage)
        if isinstance(slot, DecidedSlot):
            lines.append(f"{label}: {format_match(slot.match)}")
        elif isinstance(slot, PendingSlot):
            lines.append(f"{label}: {slot.team1} vs {slot.team2}")
        elif isinstance(slot, EmptySlot):
            lines.append(f"{label}: to be decided")
    if playoff.winner:
        lines.append(f"Winner: {playoff.winner}")
    return "\n".join(lines)


def format_tournament(tournament: Tournament) -> str:
    """Summarise a tournament for the info command."""
    lines = [
        tournament.name,
        f"Status: {TournamentService.stage_of(tournament)}",
    ]
    if tournament.participant_teams:
        lines.append("Teams:")
        lines.extend(
            f"  {participant}: {tournament.participant_teams[participant]}"
            for participant in tournament.participants
            if participant in tournament.participant_teams
        )
    elif tournament.participants:
        lines.append(f"Participants: {', '.join(tournament.participants)}")
    if tournament.team_category:
        lines.append(f"Category: {tournament.team_category}")
    if tournament.setup_completed:
        lines.append("")
        lines.append(format_standings(tournament))
        if tournament.matches:
            lines.append("")
            lines.append("Matches:")
            lines.extend(f"  {format_match(m)}" for m in tournament.matches)
    if tournament.playoff is not None:
        lines.append("")
        lines.append(format_playoff(tournament))
    return "\n".join(lines)


def format_rating(rows: list[dict[str, Any]]) -> str:
    if not rows:
        return "No participants yet."
    lines = ["Season rating"]
    for place, row in enumerate(rows, 1):
        lines.append(
            f"{place}. {row['name']}: {row['total_points']} pts, "
            f"{row['wins']}W {row['draws']}D {row['losses']}L, "
            f"goals {row['goals_scored']}:{row['goals_conceded']}, "
            f"{row['tournaments_played']} tournaments"
        )
    return "\n".join(lines)
