"""Tournament lifecycle, group standings and the playoff bracket."""

from .models import Match, Playoff, Standing, Tournament  # noqa: F401

__all__ = ["Match", "Playoff", "Standing", "Tournament"]
