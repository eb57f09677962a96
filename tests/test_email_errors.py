"""Tests for email error handling."""

import smtplib
import unittest
from unittest.mock import patch

from tournabot import create_app
from tournabot.utils import EmailError, send_email

SNAPSHOT = {"name": "2024-05-17 Tournament #1", "message": "Arsenal 2:0 Chelsea"}


class TestEmailErrors(unittest.TestCase):
    """Test case for email errors."""

    def setUp(self):
        """Set up the test case."""
        self.app = create_app({"TESTING": True, "MAIL_SUPPRESS_SEND": False})
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        """Tear down the test case."""
        self.ctx.pop()

    @patch("tournabot.utils.mail.send")
    def test_send_email_renders_and_prefixes(self, mock_send):
        send_email("test@example.com", "Match recorded", "email/notification.html",
                   event="match_recorded", snapshot=SNAPSHOT)

        msg = mock_send.call_args[0][0]
        self.assertEqual(msg.subject, "[tournabot] Match recorded")
        self.assertEqual(msg.recipients, ["test@example.com"])
        self.assertIn("Arsenal 2:0 Chelsea", msg.html)

    @patch("tournabot.utils.mail.send")
    def test_send_email_smtp_534(self, mock_send):
        """Test handling of SMTP 534 error."""
        error_msg = b"5.7.9 Please log in with your web browser and then try again..."
        mock_send.side_effect = smtplib.SMTPAuthenticationError(534, error_msg)

        with self.assertRaises(EmailError) as cm:
            send_email("test@example.com", "Subject", "email/notification.html",
                       snapshot=SNAPSHOT)

        self.assertIn("app password", str(cm.exception))

    @patch("tournabot.utils.mail.send")
    def test_send_email_other_auth_error(self, mock_send):
        mock_send.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with self.assertRaises(EmailError) as cm:
            send_email("test@example.com", "Subject", "email/notification.html",
                       snapshot=SNAPSHOT)

        self.assertIn("SMTP Authentication failed", str(cm.exception))

    @patch("tournabot.utils.mail.send")
    def test_send_email_generic_error(self, mock_send):
        """Test handling of connection errors."""
        mock_send.side_effect = ConnectionRefusedError("Connection refused")

        with self.assertRaises(EmailError) as cm:
            send_email("test@example.com", "Subject", "email/notification.html",
                       snapshot=SNAPSHOT)

        self.assertIn("Failed to send email: Connection refused", str(cm.exception))
