"""Metrics collection for the ranker module."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class RankerMetrics:
    """Metrics for ranking batches.

    Attributes:
        papers_in: Papers submitted for ranking.
        papers_scored: Papers that received a Score.
        papers_failed: Papers whose scoring raised.
        papers_excluded: Papers removed by exclusion rules.
        score_values: Final scores for percentile calculation.
        scoring_duration_ms: Time spent in the last batch.
    """

    papers_in: int = 0
    papers_scored: int = 0
    papers_failed: int = 0
    papers_excluded: int = 0
    score_values: list[float] = field(default_factory=list)
    scoring_duration_ms: float = 0.0

    _instance: ClassVar["RankerMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RankerMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_papers_in(self, count: int) -> None:
        self.papers_in += count

    def record_scored(self, final_score: float) -> None:
        """Record a successfully scored paper.

        Args:
            final_score: The paper's fused score.
        """
        self.papers_scored += 1
        self.score_values.append(final_score)

    def record_failure(self) -> None:
        self.papers_failed += 1

    def record_exclusion(self) -> None:
        self.papers_excluded += 1

    def record_scoring_duration(self, duration_ms: float) -> None:
        self.scoring_duration_ms = duration_ms

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate score percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.score_values:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        ordered = sorted(self.score_values)
        n = len(ordered)

        def percentile(p: float) -> float:
            return ordered[min(int(p * n / 100), n - 1)]

        return {"p50": percentile(50), "p90": percentile(90), "p99": percentile(99)}

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "papers_in": self.papers_in,
            "papers_scored": self.papers_scored,
            "papers_failed": self.papers_failed,
            "papers_excluded": self.papers_excluded,
            "scoring_duration_ms": self.scoring_duration_ms,
            "score_percentiles": self.get_score_percentiles(),
        }
