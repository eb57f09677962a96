"""Webhook routes for the bot blueprint."""

import hmac

from flask import abort, current_app, jsonify, request

from tournabot.errors import AppError, StorageError

from . import bp
from .handlers import dispatch
from .keyboards import message
from .models import Update


@bp.route("/webhook", methods=["POST"])
def webhook():
    """Handle one inbound update and return the replies."""
    secret = current_app.config.get("WEBHOOK_SECRET")
    if secret and not hmac.compare_digest(
        request.headers.get("X-Bot-Secret", ""), secret
    ):
        abort(403)

    update = Update.from_json(request.get_json(silent=True))
    try:
        messages = dispatch(update)
    except StorageError as e:
        current_app.logger.error(f"Storage error for user {update.user_id}: {e}")
        messages = [message(e.message)]
    except AppError as e:
        current_app.logger.warning(
            f"{type(e).__name__} for user {update.user_id}: {e.message}"
        )
        messages = [message(e.message)]

    return jsonify({"chat_id": update.chat_id, "messages": messages})
