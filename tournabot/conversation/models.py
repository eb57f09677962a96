"""Data models for the match-entry conversation."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

KIND_GROUP = "group"
KIND_PLAYOFF = "playoff"


class Step(str, enum.Enum):
    """Where a conversation is waiting for input."""

    SELECT_TEAM1 = "select_team1"
    SELECT_TEAM2 = "select_team2"
    AWAIT_SCORE1 = "await_score1"
    AWAIT_SCORE2 = "await_score2"
    AWAIT_EXTRA_TIME = "await_extra_time"
    AWAIT_PENALTIES = "await_penalties"


SCORE_STEPS = frozenset({
    Step.AWAIT_SCORE1,
    Step.AWAIT_SCORE2,
    Step.AWAIT_EXTRA_TIME,
    Step.AWAIT_PENALTIES,
})


@dataclass
class ConversationState:
    """One user's in-progress match entry."""

    user_id: int
    tournament_id: int
    kind: str
    step: Step
    team1: Optional[str] = None
    team2: Optional[str] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    extra_score: Optional[tuple[int, int]] = None
    penalty_score: Optional[tuple[int, int]] = None

    @property
    def awaiting_score(self) -> bool:
        return self.step in SCORE_STEPS

    @property
    def is_playoff(self) -> bool:
        return self.kind == KIND_PLAYOFF
