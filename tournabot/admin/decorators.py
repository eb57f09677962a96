"""Decorators for admin-only bot handlers."""

from functools import wraps

from flask import current_app

from tournabot.errors import PermissionDeniedError

from .services import AdminService


def is_admin_user(user_id):
    """Return True for configured admins and admins stored in Firestore."""
    if user_id in current_app.config.get("ADMIN_USER_IDS", ()):
        return True
    return AdminService.is_admin(user_id)


def admin_required(f):
    """Reject the update unless it comes from an admin.

    Usage:
    @admin_required
    def handle_start_playoff(update):
        ...
    """

    @wraps(f)
    def decorated_function(update, *args, **kwargs):
        if not is_admin_user(update.user_id):
            current_app.logger.warning(
                f"User {update.user_id} tried an admin action: {f.__name__}"
            )
            raise PermissionDeniedError("Only admins can do that.")
        return f(update, *args, **kwargs)

    return decorated_function
