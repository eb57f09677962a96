"""Initialize the Flask app and its extensions."""

import os

import click
import firebase_admin
from firebase_admin import credentials
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .conversation import ConversationStore
from .core import constants
from .extensions import mail


def _env_list(name):
    """Split a comma-separated environment variable."""
    return [v.strip() for v in (os.environ.get(name) or "").split(",") if v.strip()]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env, file or default credentials."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        import json

        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            import json

            try:
                with open(cred_path, "r") as f:
                    project_id = json.load(f).get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        MIN_PARTICIPANTS=int(
            os.environ.get("MIN_PARTICIPANTS") or constants.MIN_PARTICIPANTS
        ),
        MAX_PARTICIPANTS=int(
            os.environ.get("MAX_PARTICIPANTS") or constants.MAX_PARTICIPANTS
        ),
        REAP_AFTER_HOURS=int(
            os.environ.get("REAP_AFTER_HOURS") or constants.REAP_AFTER_HOURS
        ),
        WEBHOOK_SECRET=os.environ.get("WEBHOOK_SECRET"),
        ADMIN_USER_IDS=[int(v) for v in _env_list("ADMIN_USER_IDS")],
        NOTIFY_RECIPIENTS=_env_list("NOTIFY_RECIPIENTS"),
        MAIL_SERVER=os.environ.get("MAIL_SERVER") or "smtp.gmail.com",
        MAIL_PORT=int(os.environ.get("MAIL_PORT") or 587),
        MAIL_USE_TLS=(os.environ.get("MAIL_USE_TLS") or "true").lower()
        in ["true", "1", "t"],
        MAIL_USE_SSL=(os.environ.get("MAIL_USE_SSL") or "false").lower()
        in ["true", "1", "t"],
        MAIL_USERNAME=os.environ.get("MAIL_USERNAME"),
        MAIL_PASSWORD=os.environ.get("MAIL_PASSWORD"),
        MAIL_DEFAULT_SENDER=os.environ.get("MAIL_DEFAULT_SENDER")
        or "noreply@tournabot.local",
        MAIL_SUBJECT_PREFIX="[tournabot] ",
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Initialize extensions
    mail.init_app(app)
    app.extensions["conversations"] = ConversationStore()

    # Register blueprints
    from . import bot as bot_bp

    app.register_blueprint(bot_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.cli.command("reap-tournaments")
    @click.option("--hours", type=int, default=None, help="Minimum idle age.")
    def reap_tournaments_command(hours):
        """Delete idle tournaments older than REAP_AFTER_HOURS."""
        from .tournament.services import TournamentService

        max_age = hours if hours is not None else app.config["REAP_AFTER_HOURS"]
        reaped = TournamentService.reap_tournaments(max_age_hours=max_age)
        for tournament_id in reaped:
            app.logger.info(f"Reaped tournament {tournament_id}")
        click.echo(f"Reaped {len(reaped)} tournament(s).")

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
