"""Participants and team categories available to tournaments."""

from .services import ParticipantService, TeamCategoryService

__all__ = ["ParticipantService", "TeamCategoryService"]
