"""Domain models for the winery loan distress engine."""

from winery_finance.models.base import GameDate, Season

__all__ = ["GameDate", "Season"]
