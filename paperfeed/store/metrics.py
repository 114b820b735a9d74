"""Metrics collection for the stores."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class StoreMetrics:
    """Metrics for store operations.

    Attributes:
        score_upserts_total: Score records written.
        briefing_upserts_total: Briefing records written.
        feedback_appends_total: Feedback events appended.
        cas_conflicts_total: Interest-vector writes rejected by a version check.
        db_tx_duration_ms: Cumulative transaction duration in milliseconds.
        db_tx_count: Number of transactions.
    """

    score_upserts_total: int = 0
    briefing_upserts_total: int = 0
    feedback_appends_total: int = 0
    cas_conflicts_total: int = 0
    db_tx_duration_ms: float = 0.0
    db_tx_count: int = 0

    _instance: ClassVar["StoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "StoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_score_upsert(self) -> None:
        self.score_upserts_total += 1

    def record_briefing_upsert(self) -> None:
        self.briefing_upserts_total += 1

    def record_feedback_append(self) -> None:
        self.feedback_appends_total += 1

    def record_cas_conflict(self) -> None:
        self.cas_conflicts_total += 1

    def record_tx_duration(self, duration_ms: float) -> None:
        """Record transaction duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.db_tx_duration_ms += duration_ms
        self.db_tx_count += 1

    @property
    def avg_tx_duration_ms(self) -> float:
        """Average transaction duration in milliseconds."""
        if self.db_tx_count == 0:
            return 0.0
        return self.db_tx_duration_ms / self.db_tx_count

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "score_upserts_total": self.score_upserts_total,
            "briefing_upserts_total": self.briefing_upserts_total,
            "feedback_appends_total": self.feedback_appends_total,
            "cas_conflicts_total": self.cas_conflicts_total,
            "db_tx_duration_ms": self.db_tx_duration_ms,
            "db_tx_count": self.db_tx_count,
            "avg_tx_duration_ms": self.avg_tx_duration_ms,
        }


@dataclass
class TransactionContext:
    """Context for a single transaction with timing.

    Attributes:
        tx_id: Unique transaction identifier.
        start_time_ns: Start time in nanoseconds.
        operation: The operation being performed.
    """

    tx_id: str
    start_time_ns: int
    operation: str
    affected_rows: int = field(default=0)

    def add_affected_rows(self, rows: int) -> None:
        """Add to the affected row count."""
        self.affected_rows += rows
