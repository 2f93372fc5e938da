"""Recurring auto-purge task."""

from .runner import ScheduledPurgeRunner

__all__ = ["ScheduledPurgeRunner"]
