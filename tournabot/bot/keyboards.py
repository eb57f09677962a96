"""Inline keyboards attached to bot messages."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from tournabot.core.types import Button, DisplayPayload
from tournabot.tournament.models import Tournament

BUTTONS_PER_ROW = 2

TOGGLE_PARTICIPANT = "toggle_participant_"
SELECT_CATEGORY = "select_category_"
CATEGORY_SELECTED = "category_selected_"
TEAM = "team_"
CONFIRM_DELETE_LAST_MATCH = "confirm_delete_last_match"
CANCEL_DELETE_LAST_MATCH = "cancel_delete_last_match"
DELETE_TOURNAMENT = "delete_tournament_"


def button(text: str, data: str) -> Button:
    return {"text": text, "data": data}


def rows(buttons: Iterable[Button], width: int = BUTTONS_PER_ROW) -> list[list[Button]]:
    """Lay buttons out ``width`` per row."""
    items = list(buttons)
    return [items[i : i + width] for i in range(0, len(items), width)]


def message(text: str, buttons: Optional[list[list[Button]]] = None) -> DisplayPayload:
    return {"text": text, "buttons": buttons or []}


def participants_keyboard(
    tournament: Tournament, participants: list[str]
) -> list[list[Button]]:
    """Toggle buttons for every known participant plus the category step."""
    toggles = [
        button(
            f"{'✅ ' if name in tournament.participants else ''}{name}",
            f"{TOGGLE_PARTICIPANT}{tournament.id}_{name}",
        )
        for name in participants
    ]
    keyboard = rows(toggles)
    keyboard.append([
        button("Select team category", f"{SELECT_CATEGORY}{tournament.id}")
    ])
    return keyboard


def categories_keyboard(
    tournament_id: int, categories: list[dict]
) -> list[list[Button]]:
    return rows(
        button(
            f"{c['name']} ({len(c['teams'])})",
            f"{CATEGORY_SELECTED}{tournament_id}_{c['name']}",
        )
        for c in categories
    )


def teams_keyboard(
    teams: list[str], exclude: Optional[str] = None
) -> list[list[Button]]:
    return rows(button(team, f"{TEAM}{team}") for team in teams if team != exclude)


def confirm_delete_keyboard() -> list[list[Button]]:
    return [[
        button("Yes, delete it", CONFIRM_DELETE_LAST_MATCH),
        button("No", CANCEL_DELETE_LAST_MATCH),
    ]]


def tournaments_keyboard(tournaments: list[Tournament]) -> list[list[Button]]:
    return [
        [button(t.name, f"{DELETE_TOURNAMENT}{t.id}")] for t in tournaments
    ]
