"""Ranking and digest tuning configuration."""

from paperfeed.config.loader import ConfigLoader, ConfigValidationError
from paperfeed.config.schemas import (
    DigestConfig,
    EvidenceWeights,
    FeedbackConfig,
    FusionWeights,
    NoveltyConfig,
    PersonalFitConfig,
    RankingConfig,
)


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "DigestConfig",
    "EvidenceWeights",
    "FeedbackConfig",
    "FusionWeights",
    "NoveltyConfig",
    "PersonalFitConfig",
    "RankingConfig",
]
