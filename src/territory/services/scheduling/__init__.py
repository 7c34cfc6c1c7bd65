"""Daily visit scheduling."""

from .schedule import build_daily_schedule, sequence_stops, sort_by_proximity

__all__ = ["sort_by_proximity", "build_daily_schedule", "sequence_stops"]
