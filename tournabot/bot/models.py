"""Inbound updates delivered to the bot webhook."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from tournabot.errors import ValidationError


@dataclass
class Update:
    """A single command, button press or text message from a user."""

    user_id: int
    chat_id: int
    command: Optional[str] = None
    args: str = ""
    callback: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Optional[dict[str, Any]]) -> Update:
        """Build an update from the webhook body.

        Raises:
            ValidationError: If the body is malformed.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Expected a JSON object.")
        try:
            user_id = int(payload["user_id"])
            chat_id = int(payload.get("chat_id", user_id))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError("user_id and chat_id must be integers.") from e

        command = payload.get("command")
        if command:
            command = str(command).lstrip("/").split("@", 1)[0].strip().lower()
        update = cls(
            user_id=user_id,
            chat_id=chat_id,
            command=command or None,
            args=str(payload.get("args") or "").strip(),
            callback=payload.get("callback") or None,
            text=payload.get("text"),
        )
        if not (update.command or update.callback or update.text is not None):
            raise ValidationError("The update has no command, callback or text.")
        return update
