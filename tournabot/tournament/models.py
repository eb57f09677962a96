"""Data models for the tournament blueprint."""

from __future__ import annotations

import datetime
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

STAGE_QUARTER = "quarter"
STAGE_SEMI = "semi"
STAGE_FINAL = "final"
STAGE_DONE = "done"

PLAYOFF_STAGES = (STAGE_QUARTER, STAGE_SEMI, STAGE_FINAL)

STAGE_LABELS = {
    STAGE_QUARTER: "Quarterfinal",
    STAGE_SEMI: "Semifinal",
    STAGE_FINAL: "Final",
}


@dataclass
class Match:
    """A single match result.

    ``score1``/``score2`` always hold the regulation score. When the match
    went to extra time, ``extra_score1``/``extra_score2`` hold the score at
    the end of extra time; a shootout is stored separately in the penalty
    fields and never counts as goals.
    """

    team1: str
    team2: str
    score1: int
    score2: int
    extra_time: bool = False
    extra_score1: int = 0
    extra_score2: int = 0
    penalties: bool = False
    penalty_score1: int = 0
    penalty_score2: int = 0
    date: Optional[datetime.datetime] = None
    counted: bool = False

    @property
    def final_score1(self) -> int:
        """Goals scored by team1 including extra time."""
        return self.extra_score1 if self.extra_time else self.score1

    @property
    def final_score2(self) -> int:
        """Goals scored by team2 including extra time."""
        return self.extra_score2 if self.extra_time else self.score2

    @property
    def winner(self) -> Optional[str]:
        """Return the winning team, or None for a draw."""
        if self.penalties:
            first, second = self.penalty_score1, self.penalty_score2
        else:
            first, second = self.final_score1, self.final_score2
        if first > second:
            return self.team1
        if second > first:
            return self.team2
        return None

    @property
    def loser(self) -> Optional[str]:
        winner = self.winner
        if winner is None:
            return None
        return self.team2 if winner == self.team1 else self.team1

    def involves(self, team: str) -> bool:
        return team in (self.team1, self.team2)

    def pairing(self) -> frozenset[str]:
        """Return the unordered pair of teams."""
        return frozenset((self.team1, self.team2))

    def goals_for(self, team: str) -> tuple[int, int]:
        """Return (scored, conceded) for ``team``."""
        if team == self.team1:
            return self.final_score1, self.final_score2
        return self.final_score2, self.final_score1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Match:
        return cls(
            team1=data["team1"],
            team2=data["team2"],
            score1=int(data.get("score1", 0)),
            score2=int(data.get("score2", 0)),
            extra_time=bool(data.get("extra_time", False)),
            extra_score1=int(data.get("extra_score1", 0)),
            extra_score2=int(data.get("extra_score2", 0)),
            penalties=bool(data.get("penalties", False)),
            penalty_score1=int(data.get("penalty_score1", 0)),
            penalty_score2=int(data.get("penalty_score2", 0)),
            date=data.get("date"),
            counted=bool(data.get("counted", False)),
        )


@dataclass
class Standing:
    """One row of the group table."""

    team: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goals_difference: int = 0
    points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Standing:
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})


@dataclass(frozen=True)
class EmptySlot:
    """A bracket slot whose teams are not known yet."""

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "empty"}


@dataclass(frozen=True)
class PendingSlot:
    """A bracket slot with both teams known and no result."""

    team1: str
    team2: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "pending", "team1": self.team1, "team2": self.team2}


@dataclass(frozen=True)
class DecidedSlot:
    """A bracket slot holding its decisive result."""

    match: Match

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "decided", "match": self.match.to_dict()}


Slot = Union[EmptySlot, PendingSlot, DecidedSlot]


def slot_from_dict(data: Optional[dict[str, Any]]) -> Slot:
    """Rebuild a bracket slot from its stored form."""
    if not data:
        return EmptySlot()
    kind = data.get("kind")
    if kind == "pending":
        return PendingSlot(team1=data["team1"], team2=data["team2"])
    if kind == "decided":
        return DecidedSlot(match=Match.from_dict(data["match"]))
    return EmptySlot()


@dataclass
class Playoff:
    """The four-team knockout bracket."""

    seeds: list[str]
    current_stage: str = STAGE_QUARTER
    quarter_final: Slot = field(default_factory=EmptySlot)
    semi_final: Slot = field(default_factory=EmptySlot)
    final: Slot = field(default_factory=EmptySlot)
    winner: Optional[str] = None

    def slot(self, stage: str) -> Slot:
        if stage == STAGE_QUARTER:
            return self.quarter_final
        if stage == STAGE_SEMI:
            return self.semi_final
        if stage == STAGE_FINAL:
            return self.final
        raise KeyError(stage)

    def set_slot(self, stage: str, slot: Slot) -> None:
        if stage == STAGE_QUARTER:
            self.quarter_final = slot
        elif stage == STAGE_SEMI:
            self.semi_final = slot
        elif stage == STAGE_FINAL:
            self.final = slot
        else:
            raise KeyError(stage)

    def decided_matches(self) -> list[tuple[str, Match]]:
        """Return (stage, match) for every decided slot in bracket order."""
        decided = []
        for stage in PLAYOFF_STAGES:
            slot = self.slot(stage)
            if isinstance(slot, DecidedSlot):
                decided.append((stage, slot.match))
        return decided

    def to_dict(self) -> dict[str, Any]:
        return {
            "seeds": list(self.seeds),
            "current_stage": self.current_stage,
            "quarter_final": self.quarter_final.to_dict(),
            "semi_final": self.semi_final.to_dict(),
            "final": self.final.to_dict(),
            "winner": self.winner,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Playoff:
        return cls(
            seeds=list(data.get("seeds", [])),
            current_stage=data.get("current_stage", STAGE_QUARTER),
            quarter_final=slot_from_dict(data.get("quarter_final")),
            semi_final=slot_from_dict(data.get("semi_final")),
            final=slot_from_dict(data.get("final")),
            winner=data.get("winner"),
        )


@dataclass
class Tournament:
    """A tournament document in Firestore."""

    id: int
    name: str
    created_at: datetime.datetime
    participants: list[str] = field(default_factory=list)
    min_participants: int = 5
    max_participants: int = 6
    team_category: Optional[str] = None
    participant_teams: dict[str, str] = field(default_factory=dict)
    matches: list[Match] = field(default_factory=list)
    standings: list[Standing] = field(default_factory=list)
    active: bool = False
    setup_completed: bool = False
    completed: bool = False
    playoff: Optional[Playoff] = None

    @property
    def teams(self) -> list[str]:
        """Assigned teams in participant join order."""
        return [
            self.participant_teams[p]
            for p in self.participants
            if p in self.participant_teams
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "participants": list(self.participants),
            "min_participants": self.min_participants,
            "max_participants": self.max_participants,
            "team_category": self.team_category,
            "participant_teams": dict(self.participant_teams),
            "matches": [m.to_dict() for m in self.matches],
            "standings": [s.to_dict() for s in self.standings],
            "active": self.active,
            "setup_completed": self.setup_completed,
            "completed": self.completed,
            "playoff": self.playoff.to_dict() if self.playoff else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tournament:
        playoff = data.get("playoff")
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            created_at=data.get("created_at"),
            participants=list(data.get("participants") or []),
            min_participants=int(data.get("min_participants", 5)),
            max_participants=int(data.get("max_participants", 6)),
            team_category=data.get("team_category"),
            participant_teams=dict(data.get("participant_teams") or {}),
            matches=[Match.from_dict(m) for m in data.get("matches") or []],
            standings=[Standing.from_dict(s) for s in data.get("standings") or []],
            active=bool(data.get("active", False)),
            setup_completed=bool(data.get("setup_completed", False)),
            completed=bool(data.get("completed", False)),
            playoff=Playoff.from_dict(playoff) if playoff else None,
        )
