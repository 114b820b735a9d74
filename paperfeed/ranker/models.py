"""Data models for the paper ranker."""

from dataclasses import dataclass, field

from paperfeed.store.models import Score, SignalName


@dataclass(frozen=True)
class SignalBreakdown:
    """The six signals of one paper and their fused score.

    Attributes:
        novelty: Distance from the user's history, in [0, 1].
        evidence: Methodological rigor, in [0, 1].
        velocity: Attention growth, in [0, 1].
        personal_fit: Similarity to the user's interests plus rule bonus.
        lab_prior: 1.0 when an author belongs to a boosted lab.
        math_penalty: Penalty magnitude for math-heavy papers.
        contributions: Weighted contribution of each signal to final_score.
        final_score: Fused score.
    """

    novelty: float
    evidence: float
    velocity: float
    personal_fit: float
    lab_prior: float
    math_penalty: float
    contributions: dict[SignalName, float] = field(default_factory=dict)
    final_score: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for logging.

        Returns:
            Dictionary of signal name to value.
        """
        return {
            "novelty": self.novelty,
            "evidence": self.evidence,
            "velocity": self.velocity,
            "personal_fit": self.personal_fit,
            "lab_prior": self.lab_prior,
            "math_penalty": self.math_penalty,
            "final_score": self.final_score,
        }

    def to_score(self, paper_id: str) -> Score:
        """Build the persisted Score record for a paper."""
        return Score(
            paper_id=paper_id,
            novelty=self.novelty,
            evidence=self.evidence,
            velocity=self.velocity,
            personal_fit=self.personal_fit,
            lab_prior=self.lab_prior,
            math_penalty=self.math_penalty,
            final_score=self.final_score,
            why_shown=dict(self.contributions),
        )


@dataclass
class BatchRankResult:
    """Outcome of ranking a batch of papers.

    Attributes:
        results: Score per requested paper, or None when the paper failed
            or was excluded. Keys keep the batch order.
        failed_ids: Papers whose scoring raised.
        excluded_ids: Papers removed by the profile's exclusion rules.
        marked_count: Papers advanced to RANKED.
    """

    results: dict[str, Score | None] = field(default_factory=dict)
    failed_ids: list[str] = field(default_factory=list)
    excluded_ids: list[str] = field(default_factory=list)
    marked_count: int = 0

    @property
    def ranked_ids(self) -> list[str]:
        """IDs of papers that were scored successfully, in batch order."""
        return [pid for pid, score in self.results.items() if score is not None]

    @property
    def scores(self) -> list[Score]:
        """Successful scores in batch order."""
        return [score for score in self.results.values() if score is not None]
