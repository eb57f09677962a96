"""Group-stage standings and the tie-break ranking."""

from __future__ import annotations

import functools
from collections.abc import Iterable

from tournabot.core.constants import POINTS_DRAW, POINTS_LOSS, POINTS_WIN

from .models import Match, Standing


def apply_match(table: dict[str, Standing], match: Match) -> None:
    """Fold one match result into the two teams' rows."""
    for team in (match.team1, match.team2):
        row = table.get(team)
        if row is None:
            row = table[team] = Standing(team=team)
        scored, conceded = match.goals_for(team)
        row.played += 1
        row.goals_for += scored
        row.goals_against += conceded
        row.goals_difference = row.goals_for - row.goals_against
        if scored > conceded:
            row.won += 1
            row.points += POINTS_WIN
        elif scored == conceded:
            row.drawn += 1
            row.points += POINTS_DRAW
        else:
            row.lost += 1
            row.points += POINTS_LOSS


def reconcile(standings: list[Standing], matches: list[Match]) -> list[Standing]:
    """Fold every uncounted match into ``standings`` and mark it counted.

    Matches already marked counted are skipped, so running this twice over
    the same list changes nothing.
    """
    table = {row.team: row for row in standings}
    for match in matches:
        if match.counted:
            continue
        apply_match(table, match)
        match.counted = True
    return list(table.values())


def compute_standings(teams: Iterable[str], matches: Iterable[Match]) -> list[Standing]:
    """Build the table from scratch out of the counted matches."""
    table = {team: Standing(team=team) for team in teams}
    for match in matches:
        if match.counted:
            apply_match(table, match)
    return list(table.values())


def head_to_head(matches: Iterable[Match], team_a: str, team_b: str) -> tuple[int, int]:
    """Return the number of mutual wins for ``team_a`` and ``team_b``."""
    wins_a = wins_b = 0
    pair = frozenset((team_a, team_b))
    for match in matches:
        if not match.counted or match.pairing() != pair:
            continue
        winner = match.winner
        if winner == team_a:
            wins_a += 1
        elif winner == team_b:
            wins_b += 1
    return wins_a, wins_b


def compare_standings(a: Standing, b: Standing, matches: list[Match]) -> int:
    """Order two rows; negative means ``a`` ranks higher."""
    for key in ("points", "goals_difference", "goals_for", "played"):
        diff = getattr(b, key) - getattr(a, key)
        if diff:
            return diff

    wins_a, wins_b = head_to_head(matches, a.team, b.team)
    if wins_a != wins_b:
        return wins_b - wins_a

    if a.team < b.team:
        return -1
    if a.team > b.team:
        return 1
    return 0


def rank_standings(standings: Iterable[Standing], matches: list[Match]) -> list[Standing]:
    """Return the rows sorted best first."""
    return sorted(
        standings,
        key=functools.cmp_to_key(lambda a, b: compare_standings(a, b, matches)),
    )
