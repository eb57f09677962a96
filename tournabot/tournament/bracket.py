"""Progression of the four-team playoff bracket.

Seeds come from the group ranking. Seed 3 meets seed 4 in the
quarterfinal, seed 2 waits in the semifinal for the quarterfinal winner and
seed 1 waits in the final for the semifinal winner.

Every function here works on a :class:`Playoff` in memory. Persisting the
bracket is the caller's job.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Optional

from tournabot.core.constants import PLAYOFF_TEAMS
from tournabot.errors import (
    PlayoffNotStartedError,
    PreconditionError,
    StageAlreadyDecidedError,
    StageError,
    ValidationError,
)

from .models import (
    PLAYOFF_STAGES,
    STAGE_DONE,
    DecidedSlot,
    EmptySlot,
    Match,
    PendingSlot,
    Playoff,
    Slot,
)

NEEDS_EXTRA_TIME = "needs_extra_time"
NEEDS_PENALTIES = "needs_penalties"
DECIDED = "decided"


@dataclass
class PlayoffResult:
    """Outcome of submitting a playoff score."""

    status: str
    stage: str
    match: Optional[Match] = None
    champion: Optional[str] = None

    @property
    def decided(self) -> bool:
        return self.status == DECIDED


def seed_bracket(ranked_teams: list[str]) -> Playoff:
    """Create the bracket from the ranked group table."""
    if len(ranked_teams) < PLAYOFF_TEAMS:
        raise StageError(
            f"The playoff needs at least {PLAYOFF_TEAMS} teams, "
            f"got {len(ranked_teams)}."
        )
    playoff = Playoff(seeds=list(ranked_teams[:PLAYOFF_TEAMS]))
    _rebuild(playoff)
    return playoff


def open_pairing(playoff: Optional[Playoff]) -> PendingSlot:
    """Return the slot currently waiting for a result."""
    if playoff is None:
        raise PlayoffNotStartedError()
    if playoff.current_stage == STAGE_DONE:
        raise StageAlreadyDecidedError("The playoff is already finished.")
    slot = playoff.slot(playoff.current_stage)
    if isinstance(slot, DecidedSlot):
        raise StageAlreadyDecidedError()
    if not isinstance(slot, PendingSlot):
        raise StageError("The next playoff pairing is not known yet.")
    return slot


def _check_score(value: int, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative whole number.")


def record_result(
    playoff: Optional[Playoff],
    team1: str,
    team2: str,
    score1: int,
    score2: int,
    extra_time: bool = False,
    penalties: bool = False,
    extra_score: Optional[tuple[int, int]] = None,
    penalty_score: Optional[tuple[int, int]] = None,
    date: Optional[datetime.datetime] = None,
) -> PlayoffResult:
    """Apply a score to the open slot of the current stage.

    A level regulation score without extra time, or a level extra-time score
    without penalties, leaves the bracket untouched and reports which
    resubmission is needed. ``extra_score`` is the score at the end of extra
    time; ``penalty_score`` is the shootout tally.

    Raises:
        PlayoffNotStartedError: If there is no bracket.
        StageAlreadyDecidedError: If the current slot already has a result.
        ValidationError: If the teams or scores do not fit the open slot.
    """
    slot = open_pairing(playoff)
    stage = playoff.current_stage

    if {team1, team2} != {slot.team1, slot.team2} or team1 == team2:
        raise ValidationError(
            f"The open {stage} match is {slot.team1} vs {slot.team2}."
        )

    # Store the match in bracket orientation.
    swapped = team1 != slot.team1
    if swapped:
        score1, score2 = score2, score1
        if extra_score is not None:
            extra_score = (extra_score[1], extra_score[0])
        if penalty_score is not None:
            penalty_score = (penalty_score[1], penalty_score[0])

    _check_score(score1, "Score")
    _check_score(score2, "Score")

    match = Match(
        team1=slot.team1,
        team2=slot.team2,
        score1=score1,
        score2=score2,
        date=date or datetime.datetime.now(datetime.timezone.utc),
    )

    if score1 == score2:
        if not extra_time or extra_score is None:
            return PlayoffResult(status=NEEDS_EXTRA_TIME, stage=stage)
        extra1, extra2 = extra_score
        _check_score(extra1, "Extra time score")
        _check_score(extra2, "Extra time score")
        if extra1 < score1 or extra2 < score2:
            raise ValidationError(
                "The extra time score cannot be lower than the regulation score."
            )
        match.extra_time = True
        match.extra_score1, match.extra_score2 = extra1, extra2

        if extra1 == extra2:
            if not penalties or penalty_score is None:
                return PlayoffResult(status=NEEDS_PENALTIES, stage=stage)
            pen1, pen2 = penalty_score
            _check_score(pen1, "Penalty score")
            _check_score(pen2, "Penalty score")
            if pen1 == pen2:
                raise ValidationError("A penalty shootout cannot end level.")
            match.penalties = True
            match.penalty_score1, match.penalty_score2 = pen1, pen2

    match.counted = True
    playoff.set_slot(stage, DecidedSlot(match=match))
    _rebuild(playoff)
    return PlayoffResult(
        status=DECIDED, stage=stage, match=match, champion=playoff.winner
    )


def delete_last(playoff: Optional[Playoff]) -> tuple[str, Match]:
    """Remove the most recently decided result and rewire later rounds."""
    if playoff is None:
        raise PlayoffNotStartedError()
    for stage in reversed(PLAYOFF_STAGES):
        slot = playoff.slot(stage)
        if isinstance(slot, DecidedSlot):
            playoff.set_slot(stage, EmptySlot())
            _rebuild(playoff)
            return stage, slot.match
    raise PreconditionError("No playoff match has been recorded yet.")


def _next_slot(current: Slot, team1: str, team2: Optional[str]) -> Slot:
    """Return the slot for a round whose teams are team1 and team2."""
    if team2 is None:
        return EmptySlot()
    if isinstance(current, DecidedSlot) and current.match.pairing() == {team1, team2}:
        return current
    return PendingSlot(team1=team1, team2=team2)


def _winner_of(slot: Slot) -> Optional[str]:
    return slot.match.winner if isinstance(slot, DecidedSlot) else None


def _rebuild(playoff: Playoff) -> None:
    """Recompute every slot, the stage and the winner from seeds and results."""
    seed1, seed2, seed3, seed4 = playoff.seeds

    playoff.quarter_final = _next_slot(playoff.quarter_final, seed3, seed4)
    playoff.semi_final = _next_slot(
        playoff.semi_final, seed2, _winner_of(playoff.quarter_final)
    )
    playoff.final = _next_slot(playoff.final, seed1, _winner_of(playoff.semi_final))
    playoff.winner = _winner_of(playoff.final)

    for stage in PLAYOFF_STAGES:
        if not isinstance(playoff.slot(stage), DecidedSlot):
            playoff.current_stage = stage
            break
    else:
        playoff.current_stage = STAGE_DONE
