"""Service layer for admin-related operations."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from firebase_admin import firestore

from tournabot.core.constants import ADMINS_COLLECTION
from tournabot.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class AdminService:
    """Service class for admin-related operations."""

    @staticmethod
    def is_admin(user_id: int | str, db: Client | None = None) -> bool:
        """Return True if ``user_id`` is registered as an admin."""
        if db is None:
            db = firestore.client()
        return bool(db.collection(ADMINS_COLLECTION).document(str(user_id)).get().exists)

    @staticmethod
    def add_admin(
        user_id: int | str, added_by: int | str | None = None, db: Client | None = None
    ) -> None:
        """Grant admin rights to ``user_id``."""
        if db is None:
            db = firestore.client()
        if not str(user_id).lstrip("-").isdigit():
            raise ValidationError("An admin is identified by a numeric user id.")
        db.collection(ADMINS_COLLECTION).document(str(user_id)).set({
            "user_id": int(user_id),
            "added_by": added_by,
            "created_at": datetime.datetime.now(datetime.timezone.utc),
        })

    @staticmethod
    def remove_admin(user_id: int | str, db: Client | None = None) -> None:
        """Revoke admin rights from ``user_id``."""
        if db is None:
            db = firestore.client()
        ref = db.collection(ADMINS_COLLECTION).document(str(user_id))
        if not ref.get().exists:
            raise NotFoundError(f"User {user_id} is not an admin.")
        ref.delete()
