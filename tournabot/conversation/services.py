"""State machine behind the match-entry dialogue."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from tournabot.errors import (
    ConversationInProgressError,
    PreconditionError,
    StageError,
    ValidationError,
)
from tournabot.tournament import bracket
from tournabot.tournament.models import Match
from tournabot.tournament.services import TournamentService

from .models import KIND_GROUP, KIND_PLAYOFF, ConversationState, Step
from .store import ConversationStore

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

SCORE_RE = re.compile(r"^\s*(\d+)\s*$")
PAIR_RE = re.compile(r"^\s*(\d+)\s*:\s*(\d+)\s*$")


def parse_score(text: str) -> int:
    """Parse a single non-negative integer score."""
    match = SCORE_RE.match(text or "")
    if not match:
        raise ValidationError("Please send the score as a non-negative whole number.")
    return int(match.group(1))


def parse_score_pair(text: str) -> tuple[int, int]:
    """Parse a ``"a:b"`` score pair."""
    match = PAIR_RE.match(text or "")
    if not match:
        raise ValidationError("Please send the score in the form 3:2.")
    return int(match.group(1)), int(match.group(2))


@dataclass
class StepResult:
    """What happened after one conversation step.

    ``state`` is None once the conversation has been closed.
    """

    state: Optional[ConversationState]
    match: Optional[Match] = None
    stage: Optional[str] = None
    champion: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.state is None


class MatchEntryConversation:
    """Drives match entry for any number of users.

    Each user has at most one open conversation in ``store``. A rejected
    input leaves the conversation where it was; any other failure while
    submitting closes it.
    """

    def __init__(self, store: ConversationStore, db: Client | None = None) -> None:
        self.store = store
        self.db = db

    def _require(self, user_id: int) -> ConversationState:
        state = self.store.get(user_id)
        if state is None:
            raise PreconditionError("There is no match entry in progress. Use /add_match.")
        return state

    def start(self, user_id: int) -> ConversationState:
        """Open a conversation against the active tournament.

        Group matches start with team selection; playoff matches start at the
        first score with the open pairing already filled in.
        """
        with self.store.user_lock(user_id):
            if user_id in self.store:
                raise ConversationInProgressError()

            tournament = TournamentService.get_active_tournament(db=self.db)
            if tournament is None or not tournament.setup_completed:
                raise PreconditionError("There is no running tournament.")

            if tournament.playoff is None:
                state = ConversationState(
                    user_id=user_id,
                    tournament_id=tournament.id,
                    kind=KIND_GROUP,
                    step=Step.SELECT_TEAM1,
                )
            else:
                pairing = bracket.open_pairing(tournament.playoff)
                state = ConversationState(
                    user_id=user_id,
                    tournament_id=tournament.id,
                    kind=KIND_PLAYOFF,
                    step=Step.AWAIT_SCORE1,
                    team1=pairing.team1,
                    team2=pairing.team2,
                )
            return self.store.create(state)

    def pick_team(self, user_id: int, team: str) -> ConversationState:
        """Select the next team of a group match."""
        with self.store.user_lock(user_id):
            state = self._require(user_id)
            if state.step not in (Step.SELECT_TEAM1, Step.SELECT_TEAM2):
                raise ValidationError("Teams are already selected; send the score.")

            tournament = TournamentService.get_tournament(
                state.tournament_id, db=self.db
            )
            if team not in tournament.teams:
                raise ValidationError(f"{team} does not play in this tournament.")

            if state.step == Step.SELECT_TEAM1:
                state.team1 = team
                state.step = Step.SELECT_TEAM2
            else:
                if team == state.team1:
                    raise ValidationError(f"{team} is already selected as team 1.")
                state.team2 = team
                state.step = Step.AWAIT_SCORE1
            return state

    def handle_text(self, user_id: int, text: str) -> StepResult:
        """Feed a free-text reply into the conversation."""
        with self.store.user_lock(user_id):
            state = self._require(user_id)

            if state.step == Step.AWAIT_SCORE1:
                state.score1 = parse_score(text)
                state.step = Step.AWAIT_SCORE2
                return StepResult(state=state)
            if state.step == Step.AWAIT_SCORE2:
                candidate = replace(state, score2=parse_score(text))
            elif state.step == Step.AWAIT_EXTRA_TIME:
                candidate = replace(state, extra_score=parse_score_pair(text))
            elif state.step == Step.AWAIT_PENALTIES:
                candidate = replace(state, penalty_score=parse_score_pair(text))
            else:
                raise ValidationError("Please pick a team using the buttons.")
            return self._submit(candidate)

    def cancel(self, user_id: int) -> bool:
        """Drop the user's conversation; returns False if none was open."""
        with self.store.user_lock(user_id):
            return self.store.delete(user_id)

    def _submit(self, candidate: ConversationState) -> StepResult:
        """Record ``candidate`` and update or close the stored state."""
        user_id = candidate.user_id
        try:
            if not candidate.is_playoff:
                match = TournamentService.record_group_match(
                    candidate.tournament_id,
                    candidate.team1,
                    candidate.team2,
                    candidate.score1,
                    candidate.score2,
                    db=self.db,
                )
                self.store.delete(user_id)
                return StepResult(state=None, match=match, stage=KIND_GROUP)

            tournament = TournamentService.get_tournament(
                candidate.tournament_id, db=self.db
            )
            pairing = bracket.open_pairing(tournament.playoff)
            if {pairing.team1, pairing.team2} != {candidate.team1, candidate.team2}:
                raise StageError(
                    f"{candidate.team1} vs {candidate.team2} has already been "
                    "recorded. Use /add_match for the next match."
                )

            result = TournamentService.record_playoff_match(
                candidate.tournament_id,
                candidate.team1,
                candidate.team2,
                candidate.score1,
                candidate.score2,
                extra_time=candidate.extra_score is not None,
                penalties=candidate.penalty_score is not None,
                extra_score=candidate.extra_score,
                penalty_score=candidate.penalty_score,
                db=self.db,
            )
        except ValidationError:
            raise
        except Exception:
            logger.warning("Match entry for user %s aborted", user_id)
            self.store.delete(user_id)
            raise

        state = self.store.get(user_id)
        if result.status == bracket.NEEDS_EXTRA_TIME:
            state.score1, state.score2 = candidate.score1, candidate.score2
            state.step = Step.AWAIT_EXTRA_TIME
            return StepResult(state=state, stage=result.stage)
        if result.status == bracket.NEEDS_PENALTIES:
            state.score2 = candidate.score2
            state.extra_score = candidate.extra_score
            state.step = Step.AWAIT_PENALTIES
            return StepResult(state=state, stage=result.stage)

        self.store.delete(user_id)
        return StepResult(
            state=None,
            match=result.match,
            stage=result.stage,
            champion=result.champion,
        )

