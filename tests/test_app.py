"""Tests for the app factory."""

import datetime
import os
import unittest
from unittest.mock import patch

from mockfirestore import MockFirestore

# Pre-emptive imports to ensure patch targets exist.
from tournabot import create_app
from tournabot.conversation import ConversationStore
from tournabot.tournament.models import Tournament


class AppFactoryTestCase(unittest.TestCase):
    """Test case for the app factory."""

    @patch("firebase_admin.initialize_app")
    @patch("firebase_admin.firestore.client")
    def test_404_error_handler(self, mock_firestore_client, mock_init_app):
        """Unknown routes answer with a JSON message."""
        app = create_app({"TESTING": True})

        with app.test_client() as client:
            response = client.get("/non_existent_page")
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.get_json()["messages"][0]["text"], "Not found.")
        mock_init_app.assert_not_called()

    def test_config_from_environment(self):
        env_vars = {
            "MIN_PARTICIPANTS": "4",
            "MAX_PARTICIPANTS": "8",
            "ADMIN_USER_IDS": "11, 12,",
            "NOTIFY_RECIPIENTS": "a@example.com,b@example.com",
            "WEBHOOK_SECRET": "hook",
        }

        with patch.dict(os.environ, env_vars):
            app = create_app({"TESTING": True})

        self.assertEqual(app.config["MIN_PARTICIPANTS"], 4)
        self.assertEqual(app.config["MAX_PARTICIPANTS"], 8)
        self.assertEqual(app.config["ADMIN_USER_IDS"], [11, 12])
        self.assertEqual(
            app.config["NOTIFY_RECIPIENTS"], ["a@example.com", "b@example.com"]
        )
        self.assertEqual(app.config["WEBHOOK_SECRET"], "hook")

    def test_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            app = create_app({"TESTING": True})

        self.assertEqual(app.config["MIN_PARTICIPANTS"], 5)
        self.assertEqual(app.config["MAX_PARTICIPANTS"], 6)
        self.assertEqual(app.config["REAP_AFTER_HOURS"], 24)
        self.assertEqual(app.config["ADMIN_USER_IDS"], [])
        self.assertIsNone(app.config["WEBHOOK_SECRET"])
        self.assertIsInstance(app.extensions["conversations"], ConversationStore)

    def test_test_config_overrides(self):
        app = create_app({"TESTING": True, "MAX_PARTICIPANTS": 7})
        self.assertEqual(app.config["MAX_PARTICIPANTS"], 7)

    def test_https_scheme_with_proxy_headers(self):
        """X-Forwarded-Proto is respected behind a proxy."""
        app = create_app({"TESTING": True})

        @app.route("/test_scheme")
        def test_scheme():
            from flask import request

            return request.scheme

        response = app.test_client().get(
            "/test_scheme", headers={"X-Forwarded-Proto": "https"}
        )
        self.assertEqual(response.data.decode(), "https")


class ReapCommandTestCase(unittest.TestCase):
    """Test case for the reap-tournaments CLI command."""

    def setUp(self):
        self.db = MockFirestore()
        patcher = patch("firebase_admin.firestore.client", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.app = create_app({"TESTING": True})

    def _store(self, tournament):
        self.db.collection("tournaments").document(str(tournament.id)).set(
            tournament.to_dict()
        )

    def test_reaps_stale_drafts(self):
        old = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(
            hours=30
        )
        self._store(Tournament(id=1, name="stale", created_at=old))
        self._store(
            Tournament(
                id=2,
                name="running",
                created_at=old,
                setup_completed=True,
                active=True,
            )
        )

        result = self.app.test_cli_runner().invoke(args=["reap-tournaments"])

        self.assertIn("Reaped 1 tournament(s).", result.output)
        ids = [doc.id for doc in self.db.collection("tournaments").stream()]
        self.assertEqual(ids, ["2"])

    def test_hours_option(self):
        recent = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(
            hours=2
        )
        self._store(Tournament(id=1, name="recent", created_at=recent))

        result = self.app.test_cli_runner().invoke(args=["reap-tournaments"])
        self.assertIn("Reaped 0 tournament(s).", result.output)

        result = self.app.test_cli_runner().invoke(
            args=["reap-tournaments", "--hours", "1"]
        )
        self.assertIn("Reaped 1 tournament(s).", result.output)


if __name__ == "__main__":
    unittest.main()
