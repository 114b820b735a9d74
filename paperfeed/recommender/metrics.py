"""Metrics collection for digest composition."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class DigestMetrics:
    """Metrics for digest generation.

    Attributes:
        digests_generated: Briefings written.
        empty_digests: Briefings written with no papers.
        papers_selected: Papers across all briefings.
        exploit_selected: Papers picked by score.
        explore_selected: Papers picked by diversity.
        candidates_considered: Candidates that passed the score threshold.
    """

    digests_generated: int = 0
    empty_digests: int = 0
    papers_selected: int = 0
    exploit_selected: int = 0
    explore_selected: int = 0
    candidates_considered: int = 0

    _instance: ClassVar["DigestMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "DigestMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_digest(self, candidates: int, exploit: int, explore: int) -> None:
        """Record one generated digest.

        Args:
            candidates: Size of the qualified pool.
            exploit: Papers picked by score.
            explore: Papers picked by diversity.
        """
        self.digests_generated += 1
        self.candidates_considered += candidates
        self.exploit_selected += exploit
        self.explore_selected += explore
        self.papers_selected += exploit + explore
        if exploit + explore == 0:
            self.empty_digests += 1

    def to_dict(self) -> dict[str, int]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "digests_generated": self.digests_generated,
            "empty_digests": self.empty_digests,
            "papers_selected": self.papers_selected,
            "exploit_selected": self.exploit_selected,
            "explore_selected": self.explore_selected,
            "candidates_considered": self.candidates_considered,
        }
