"""The bot blueprint."""

from flask import Blueprint

bp = Blueprint("bot", __name__, url_prefix="/bot")

from . import routes  # noqa: E402

__all__ = ["routes"]
