"""JSON error responses for the application."""

from flask import Blueprint, current_app, jsonify

from .errors import AppError, NotFoundError, StorageError, ValidationError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _payload(text, status_code):
    return jsonify({"messages": [{"text": text, "buttons": []}]}), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _payload(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _payload(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(StorageError)
def handle_storage_error(error):
    """Handles storage errors without exposing backend details."""
    current_app.logger.error(f"Storage Error: {error.message}")
    return _payload("A storage error occurred. Please try again later.", 500)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _payload(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(403)
def handle_403(e):
    """Handles requests rejected by the webhook secret check."""
    return _payload("Forbidden.", 403)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _payload("Not found.", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _payload("Something went wrong. Please try again later.", 500)
