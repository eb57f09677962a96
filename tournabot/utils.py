"""Utility functions for the application."""

import smtplib

from flask import current_app, render_template
from flask_mail import Message

from .extensions import mail

SMTP_AUTH_ERROR_CODE = 534


class EmailError(Exception):
    """Raised when a notification email cannot be delivered."""


def send_email(to, subject, template, **kwargs):
    """Render ``template`` and mail it to a single recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    prefix = current_app.config.get("MAIL_SUBJECT_PREFIX") or ""
    msg = Message(
        f"{prefix}{subject}",
        recipients=[to],
        html=render_template(template, **kwargs),
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        if e.smtp_code == SMTP_AUTH_ERROR_CODE:
            raise EmailError(
                "SMTP authentication was rejected; the provider expects an "
                "app password in MAIL_PASSWORD."
            ) from e
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except (smtplib.SMTPException, OSError) as e:
        raise EmailError(f"Failed to send email: {e}") from e
