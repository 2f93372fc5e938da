"""Persisted cache settings."""

from .models import CacheConfig, PurgeFrequency, SettingsForm
from .store import SettingsStore

__all__ = [
    "CacheConfig",
    "PurgeFrequency",
    "SettingsForm",
    "SettingsStore",
]
