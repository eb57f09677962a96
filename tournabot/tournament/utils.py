"""Utility functions for tournament management."""

from __future__ import annotations

import datetime
import itertools
import random
from typing import Optional

from tournabot.errors import InsufficientTeamsError

from .models import Match


def perform_draw(
    participants: list[str],
    pool: list[str],
    rng: Optional[random.Random] = None,
) -> dict[str, str]:
    """Assign a distinct team from ``pool`` to every participant.

    The pool is shuffled and its first entries are handed out in
    participant order.
    """
    if len(pool) < len(participants):
        raise InsufficientTeamsError(
            f"The category has {len(pool)} teams but there are "
            f"{len(participants)} participants."
        )
    shuffled = list(pool)
    (rng or random).shuffle(shuffled)
    return dict(zip(participants, shuffled))


def round_robin_pairs(teams: list[str]) -> list[frozenset[str]]:
    """Return every unordered pairing of a single round robin."""
    return [frozenset(pair) for pair in itertools.combinations(teams, 2)]


def missing_pairs(teams: list[str], matches: list[Match]) -> list[frozenset[str]]:
    """Return the round-robin pairings that have not been played yet."""
    played = {m.pairing() for m in matches}
    return [pair for pair in round_robin_pairs(teams) if pair not in played]


def tournament_name(date: datetime.date, number: int) -> str:
    """Build the display name of the n-th tournament created on ``date``."""
    return f"{date.isoformat()} Tournament #{number}"
