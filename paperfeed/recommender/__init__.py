"""Digest composition: threshold filter, exploit/explore split, briefings."""

from paperfeed.recommender.composer import (
    DigestComposer,
    briefing_date,
    compose_selection,
    split_counts,
)
from paperfeed.recommender.diversity import diversity_score, select_diverse_papers
from paperfeed.recommender.jobs import generate_daily_digests, run_daily_digests
from paperfeed.recommender.metrics import DigestMetrics
from paperfeed.recommender.models import CandidatePaper, DigestJobResult, DigestSelection


__all__ = [
    "CandidatePaper",
    "DigestComposer",
    "DigestJobResult",
    "DigestMetrics",
    "DigestSelection",
    "briefing_date",
    "compose_selection",
    "diversity_score",
    "generate_daily_digests",
    "run_daily_digests",
    "select_diverse_papers",
    "split_counts",
]
