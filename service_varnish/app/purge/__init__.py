"""Purge client and invalidation coordinator."""

from .client import PurgeClient
from .coordinator import InvalidationCoordinator
from .models import (
    ContentChangeEvent,
    EventKind,
    PurgeErrorKind,
    PurgeOutcome,
    PurgeRequest,
)

__all__ = [
    "PurgeClient",
    "InvalidationCoordinator",
    "ContentChangeEvent",
    "EventKind",
    "PurgeErrorKind",
    "PurgeOutcome",
    "PurgeRequest",
]
