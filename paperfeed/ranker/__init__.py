"""Paper ranking: signal scoring, fusion and score persistence."""

from paperfeed.ranker.errors import NotEnrichedError
from paperfeed.ranker.metrics import RankerMetrics
from paperfeed.ranker.models import BatchRankResult, SignalBreakdown
from paperfeed.ranker.ranker import PaperRanker
from paperfeed.ranker.rules import should_exclude_paper
from paperfeed.ranker.scorer import PaperScorer, ScorerConfig, score_paper_pure
from paperfeed.ranker.signals import (
    calculate_evidence_score,
    calculate_keyword_novelty,
    calculate_lab_prior_score,
    calculate_math_penalty,
    calculate_novelty_score,
    calculate_personal_fit_score,
    fuse_signals,
)
from paperfeed.ranker.velocity import ConstantVelocity, VelocitySignal


__all__ = [
    "BatchRankResult",
    "ConstantVelocity",
    "NotEnrichedError",
    "PaperRanker",
    "PaperScorer",
    "RankerMetrics",
    "ScorerConfig",
    "SignalBreakdown",
    "VelocitySignal",
    "calculate_evidence_score",
    "calculate_keyword_novelty",
    "calculate_lab_prior_score",
    "calculate_math_penalty",
    "calculate_novelty_score",
    "calculate_personal_fit_score",
    "fuse_signals",
    "score_paper_pure",
    "should_exclude_paper",
]
