"""Persistence for papers, scores, profiles, feedback and briefings.

This package provides:
- The PaperFeedStore protocol consumed by the ranking core
- InMemoryStore, a lock-guarded in-process implementation
- SqliteStore, a WAL-mode SQLite implementation with migrations
"""

from paperfeed.store.errors import (
    ConcurrentUpdateError,
    MigrationError,
    ProfileNotFoundError,
    StoreConnectionError,
    StoreError,
)
from paperfeed.store.memory import InMemoryStore
from paperfeed.store.metrics import StoreMetrics
from paperfeed.store.models import (
    Briefing,
    BriefingStatus,
    FeedbackAction,
    FeedbackEvent,
    Paper,
    PaperEnrichment,
    PaperStatus,
    Score,
    SignalName,
    UserProfile,
)
from paperfeed.store.protocols import PaperFeedStore
from paperfeed.store.sqlite_store import SqliteStore


__all__ = [
    # Errors
    "ConcurrentUpdateError",
    "MigrationError",
    "ProfileNotFoundError",
    "StoreConnectionError",
    "StoreError",
    # Models
    "Briefing",
    "BriefingStatus",
    "FeedbackAction",
    "FeedbackEvent",
    "Paper",
    "PaperEnrichment",
    "PaperStatus",
    "Score",
    "SignalName",
    "UserProfile",
    # Stores
    "InMemoryStore",
    "PaperFeedStore",
    "SqliteStore",
    "StoreMetrics",
]
