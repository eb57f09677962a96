"""Outbound notifications for tournament events."""

from .services import NotificationService

__all__ = ["NotificationService"]
