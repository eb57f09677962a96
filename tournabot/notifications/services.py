"""Broadcast tournament events to subscribers."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from flask import current_app, has_app_context

from tournabot.utils import EmailError, send_email

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

TOURNAMENT_STARTED = "tournament_started"
MATCH_RECORDED = "match_recorded"
MATCH_DELETED = "match_deleted"
PLAYOFF_STARTED = "playoff_started"
PLAYOFF_MATCH_RECORDED = "playoff_match_recorded"
TOURNAMENT_COMPLETED = "tournament_completed"
SEASON_RATING = "season_rating"

SUBJECTS = {
    TOURNAMENT_STARTED: "Tournament started",
    MATCH_RECORDED: "Match recorded",
    MATCH_DELETED: "Match deleted",
    PLAYOFF_STARTED: "Playoff started",
    PLAYOFF_MATCH_RECORDED: "Playoff match recorded",
    TOURNAMENT_COMPLETED: "Tournament completed",
    SEASON_RATING: "Season rating",
}


def send_notification_background(
    app: Flask, recipients: list[str], subject: str, context: dict[str, Any]
) -> threading.Thread:
    """Send a notification email to each recipient in a background thread."""

    def task() -> None:
        """Perform the email sending task in the background."""
        with app.app_context():
            for to in recipients:
                try:
                    send_email(to, subject, "email/notification.html", **context)
                except EmailError as e:
                    app.logger.error(f"Notification to {to} failed: {e}")

    thread = threading.Thread(target=task)
    thread.start()
    return thread


class NotificationService:
    """Publishes structured tournament snapshots."""

    @staticmethod
    def publish(event: str, snapshot: dict[str, Any]) -> None:
        """Publish ``snapshot`` for ``event``.

        Delivery problems are logged and never raised to the caller.
        """
        logger.info(
            "Publishing %s for tournament %s", event, snapshot.get("tournament_id")
        )
        if not has_app_context():
            return

        recipients = current_app.config.get("NOTIFY_RECIPIENTS") or []
        if not recipients:
            return

        subject = f"{SUBJECTS.get(event, event)}: {snapshot.get('name', '')}"
        try:
            send_notification_background(
                current_app._get_current_object(),  # type: ignore[attr-defined]
                list(recipients),
                subject,
                {"event": event, "snapshot": snapshot},
            )
        except RuntimeError as e:
            current_app.logger.error(f"Could not start notification thread: {e}")
