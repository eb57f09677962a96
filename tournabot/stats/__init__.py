"""Season statistics for participants."""

from .services import SeasonStatsService

__all__ = ["SeasonStatsService"]
