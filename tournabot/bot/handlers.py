"""Command and callback handlers for the bot."""

from __future__ import annotations

from typing import Callable, Optional

from flask import current_app

from tournabot.admin.decorators import admin_required
from tournabot.admin.services import AdminService
from tournabot.catalog.services import (
    ParticipantService,
    TeamCategoryService,
    parse_category_args,
)
from tournabot.conversation import MatchEntryConversation, Step, StepResult
from tournabot.conversation.models import ConversationState
from tournabot.core.types import DisplayPayload
from tournabot.errors import PreconditionError, ValidationError
from tournabot.notifications import services as notifications
from tournabot.notifications.services import NotificationService
from tournabot.tournament.models import STAGE_LABELS, Tournament
from tournabot.tournament.services import TournamentService

from . import keyboards
from .keyboards import message
from .models import Update
from .views import format_match, format_rating, format_tournament

Handler = Callable[[Update], list[DisplayPayload]]

COMMANDS: dict[str, Handler] = {}

HELP_TEXT = """Available commands:
/tournament_info - show the current tournament
/season_rating - show the season rating
/add_match - record a match result
/cancel - cancel the current match entry
Admin commands:
/create_tournament, /add_participant <name>,
/add_team_category <name>,<team>,<team>..., /remove_team_category <name>,
/start_playoff, /deletelastmatch, /end_tournament, /delete_tournament,
/addadmin <user id>, /removeadmin <user id>"""


def command(*names: str) -> Callable[[Handler], Handler]:
    """Register a handler under one or more command names."""

    def decorator(f: Handler) -> Handler:
        for name in names:
            COMMANDS[name] = f
        return f

    return decorator


def _conversation() -> MatchEntryConversation:
    return MatchEntryConversation(current_app.extensions["conversations"])


def _require_active() -> Tournament:
    tournament = TournamentService.get_active_tournament()
    if tournament is None:
        raise PreconditionError("There is no active tournament.")
    return tournament


def _prompt_for(state: ConversationState) -> DisplayPayload:
    """Build the prompt for the step a conversation is waiting on."""
    if state.step == Step.SELECT_TEAM1:
        tournament = TournamentService.get_tournament(state.tournament_id)
        return message("Select team 1:", keyboards.teams_keyboard(tournament.teams))
    if state.step == Step.SELECT_TEAM2:
        tournament = TournamentService.get_tournament(state.tournament_id)
        return message(
            f"Team 1: {state.team1}. Select team 2:",
            keyboards.teams_keyboard(tournament.teams, exclude=state.team1),
        )
    if state.step == Step.AWAIT_SCORE1:
        return message(f"{state.team1} vs {state.team2}. Goals for {state.team1}?")
    if state.step == Step.AWAIT_SCORE2:
        return message(f"Goals for {state.team2}?")
    if state.step == Step.AWAIT_EXTRA_TIME:
        return message(
            f"{state.score1}:{state.score2} after regulation. Send the score after "
            f"extra time as {state.team1}:{state.team2}, e.g. 2:1."
        )
    return message(
        "Still level after extra time. Send the penalty shootout score, e.g. 5:4."
    )


def _step_reply(result: StepResult) -> list[DisplayPayload]:
    if not result.finished:
        return [_prompt_for(result.state)]
    label = STAGE_LABELS.get(result.stage, "Match")
    replies = [message(f"{label} recorded: {format_match(result.match)}")]
    if result.champion:
        replies.append(message(f"🏆 {result.champion} wins the tournament!"))
    return replies


@command("start", "help")
def handle_help(update: Update) -> list[DisplayPayload]:
    return [message(HELP_TEXT)]


@command("create_tournament")
@admin_required
def handle_create_tournament(update: Update) -> list[DisplayPayload]:
    tournament = TournamentService.create_tournament(
        min_participants=current_app.config["MIN_PARTICIPANTS"],
        max_participants=current_app.config["MAX_PARTICIPANTS"],
    )
    participants = ParticipantService.list_participants()
    return [
        message(
            f"{tournament.name} created. Select "
            f"{tournament.min_participants}-{tournament.max_participants} participants:",
            keyboards.participants_keyboard(tournament, participants),
        )
    ]


@command("add_participant")
@admin_required
def handle_add_participant(update: Update) -> list[DisplayPayload]:
    if not update.args:
        raise ValidationError("Usage: /add_participant <name>")
    data = ParticipantService.add_participant(update.args)
    return [message(f"Participant {data['name']} added.")]


@command("add_team_category")
@admin_required
def handle_add_team_category(update: Update) -> list[DisplayPayload]:
    name, teams = parse_category_args(update.args)
    TeamCategoryService.add_team_category(name, teams)
    return [message(f"Team category {name} saved with {len(teams)} teams.")]


@command("remove_team_category")
@admin_required
def handle_remove_team_category(update: Update) -> list[DisplayPayload]:
    if not update.args:
        raise ValidationError("Usage: /remove_team_category <name>")
    TeamCategoryService.remove_team_category(update.args)
    return [message(f"Team category {update.args} removed.")]


@command("add_match")
@admin_required
def handle_add_match(update: Update) -> list[DisplayPayload]:
    state = _conversation().start(update.user_id)
    return [_prompt_for(state)]


@command("cancel")
def handle_cancel(update: Update) -> list[DisplayPayload]:
    if _conversation().cancel(update.user_id):
        return [message("Match entry cancelled.")]
    return [message("Nothing to cancel.")]


@command("tournament_info")
def handle_tournament_info(update: Update) -> list[DisplayPayload]:
    active = TournamentService.list_active_tournaments()
    if not active:
        return [message("There is no active tournament.")]
    return [message(format_tournament(t)) for t in active]


@command("season_rating")
def handle_season_rating(update: Update) -> list[DisplayPayload]:
    rows = ParticipantService.get_season_rating()
    NotificationService.publish(
        notifications.SEASON_RATING, {"name": "Season rating", "rating": rows}
    )
    return [message(format_rating(rows))]


@command("deletelastmatch", "delete_last_match")
@admin_required
def handle_delete_last_match(update: Update) -> list[DisplayPayload]:
    _require_active()
    return [
        message(
            "Delete the last recorded match?", keyboards.confirm_delete_keyboard()
        )
    ]


@command("start_playoff")
@admin_required
def handle_start_playoff(update: Update) -> list[DisplayPayload]:
    tournament = TournamentService.start_playoff(_require_active().id)
    seeds = tournament.playoff.seeds
    return [
        message(
            "Playoff started!\n"
            f"Quarterfinal: {seeds[2]} vs {seeds[3]}\n"
            f"Semifinal: {seeds[1]} vs quarterfinal winner\n"
            f"Final: {seeds[0]} vs semifinal winner"
        )
    ]


@command("end_tournament")
@admin_required
def handle_end_tournament(update: Update) -> list[DisplayPayload]:
    tournament = TournamentService.end_tournament(_require_active().id)
    return [message(f"{tournament.name} ended.")]


@command("delete_tournament")
@admin_required
def handle_delete_tournament(update: Update) -> list[DisplayPayload]:
    if update.args:
        try:
            tournament_id = int(update.args)
        except ValueError as e:
            raise ValidationError("Usage: /delete_tournament [id]") from e
        TournamentService.delete_tournament(tournament_id)
        return [message(f"Tournament {tournament_id} deleted.")]

    tournaments = TournamentService.list_tournaments()
    if not tournaments:
        return [message("There are no tournaments.")]
    return [
        message(
            "Select a tournament to delete:",
            keyboards.tournaments_keyboard(tournaments),
        )
    ]


@command("addadmin")
@admin_required
def handle_add_admin(update: Update) -> list[DisplayPayload]:
    if not update.args:
        raise ValidationError("Usage: /addadmin <user id>")
    AdminService.add_admin(update.args, added_by=update.user_id)
    return [message(f"User {update.args} is now an admin.")]


@command("removeadmin")
@admin_required
def handle_remove_admin(update: Update) -> list[DisplayPayload]:
    if not update.args:
        raise ValidationError("Usage: /removeadmin <user id>")
    AdminService.remove_admin(update.args)
    return [message(f"User {update.args} is no longer an admin.")]


def _split_id(rest: str) -> tuple[int, str]:
    """Split ``"<id>_<value>"`` on the first underscore."""
    raw_id, _, value = rest.partition("_")
    try:
        return int(raw_id), value
    except ValueError as e:
        raise ValidationError("Malformed button data.") from e


@admin_required
def handle_toggle_participant(update: Update, rest: str) -> list[DisplayPayload]:
    tournament_id, name = _split_id(rest)
    added = TournamentService.toggle_participant(tournament_id, name)
    tournament = TournamentService.get_tournament(tournament_id)
    verb = "added to" if added else "removed from"
    return [
        message(
            f"{name} {verb} {tournament.name} "
            f"({len(tournament.participants)}/{tournament.max_participants}).",
            keyboards.participants_keyboard(
                tournament, ParticipantService.list_participants()
            ),
        )
    ]


@admin_required
def handle_select_category(update: Update, rest: str) -> list[DisplayPayload]:
    tournament_id, _ = _split_id(rest)
    categories = TeamCategoryService.list_team_categories()
    if not categories:
        return [message("There are no team categories. Use /add_team_category.")]
    return [
        message(
            "Select a team category:",
            keyboards.categories_keyboard(tournament_id, categories),
        )
    ]


@admin_required
def handle_category_selected(update: Update, rest: str) -> list[DisplayPayload]:
    tournament_id, category = _split_id(rest)
    TournamentService.set_team_category(tournament_id, category)
    tournament = TournamentService.start_tournament(tournament_id)
    return [message(f"The draw is done!\n\n{format_tournament(tournament)}")]


def handle_team(update: Update, team: str) -> list[DisplayPayload]:
    state = _conversation().pick_team(update.user_id, team)
    return [_prompt_for(state)]


@admin_required
def handle_confirm_delete_last_match(
    update: Update, rest: str
) -> list[DisplayPayload]:
    removed = TournamentService.delete_last_match(_require_active().id)
    return [message(f"Deleted: {format_match(removed)}")]


def handle_cancel_delete_last_match(
    update: Update, rest: str
) -> list[DisplayPayload]:
    return [message("Nothing was deleted.")]


@admin_required
def handle_delete_tournament_callback(
    update: Update, rest: str
) -> list[DisplayPayload]:
    tournament_id, _ = _split_id(rest)
    TournamentService.delete_tournament(tournament_id)
    return [message(f"Tournament {tournament_id} deleted.")]


# Exact matches are checked before prefixes.
CALLBACKS: list[tuple[str, Callable[[Update, str], list[DisplayPayload]]]] = [
    (keyboards.CONFIRM_DELETE_LAST_MATCH, handle_confirm_delete_last_match),
    (keyboards.CANCEL_DELETE_LAST_MATCH, handle_cancel_delete_last_match),
    (keyboards.TOGGLE_PARTICIPANT, handle_toggle_participant),
    (keyboards.SELECT_CATEGORY, handle_select_category),
    (keyboards.CATEGORY_SELECTED, handle_category_selected),
    (keyboards.DELETE_TOURNAMENT, handle_delete_tournament_callback),
    (keyboards.TEAM, handle_team),
]


def _find_callback(
    data: str,
) -> Optional[tuple[Callable[[Update, str], list[DisplayPayload]], str]]:
    for prefix, handler in CALLBACKS:
        if data.startswith(prefix):
            return handler, data[len(prefix) :]
    return None


def dispatch(update: Update) -> list[DisplayPayload]:
    """Route an update to its handler and return the replies."""
    if update.command:
        handler = COMMANDS.get(update.command)
        if handler is None:
            return [message(f"Unknown command /{update.command}.\n\n{HELP_TEXT}")]
        return handler(update)

    if update.callback:
        found = _find_callback(update.callback)
        if found is None:
            current_app.logger.warning(f"Unknown callback: {update.callback}")
            return [message("This button is no longer valid.")]
        handler, rest = found
        return handler(update, rest)

    conversation = _conversation()
    if update.user_id not in conversation.store:
        return [message("Use /add_match to record a result or /help for commands.")]
    return _step_reply(conversation.handle_text(update.user_id, update.text or ""))
