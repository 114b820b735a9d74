"""Ranking configuration schema.

Defaults reproduce the production weights; a ranking.yaml file only
needs to list the values it overrides.
"""

from typing import Annotated

from pydantic import Field, model_validator

from paperfeed.data_model import StrictBaseModel


Weight = Annotated[float, Field(ge=0.0, le=1.0)]


class FusionWeights(StrictBaseModel):
    """Weights of the final score formula.

    final = novelty*N + evidence*E + velocity*V + personal_fit*P
            + lab_prior*L - math_penalty*M

    Attributes:
        novelty: Weight of the novelty signal.
        evidence: Weight of the evidence signal.
        velocity: Weight of the velocity signal.
        personal_fit: Weight of the personal fit signal.
        lab_prior: Weight of the lab prior signal.
        math_penalty: Weight subtracted per unit of math penalty.
        clamp: Clamp the fused score to [0, 1].
    """

    novelty: Weight = 0.20
    evidence: Weight = 0.25
    velocity: Weight = 0.10
    personal_fit: Weight = 0.30
    lab_prior: Weight = 0.10
    math_penalty: Weight = 0.05
    clamp: bool = True


class EvidenceWeights(StrictBaseModel):
    """Credit for each methodological rigor flag."""

    baselines: Weight = 0.30
    ablations: Weight = 0.20
    code: Weight = 0.20
    data: Weight = 0.15
    multiple_evals: Weight = 0.15

    @model_validator(mode="after")
    def validate_total(self) -> "EvidenceWeights":
        """Evidence must stay within [0, 1] when every flag is set."""
        total = (
            self.baselines + self.ablations + self.code + self.data + self.multiple_evals
        )
        if total > 1.0 + 1e-9:
            msg = f"Evidence weights sum to {total:.3f}, must be <= 1.0"
            raise ValueError(msg)
        return self


class PersonalFitConfig(StrictBaseModel):
    """Blend of vector similarity and include-rule bonuses."""

    similarity_weight: Weight = 0.7
    rule_weight: Weight = 0.3
    topic_bonus: Weight = 0.20
    keyword_bonus: Weight = 0.10
    rule_bonus_cap: Weight = 1.0


class NoveltyConfig(StrictBaseModel):
    """Blend of centroid distance and keyword novelty."""

    centroid_weight: Weight = 0.5
    keyword_weight: Weight = 0.5


class FeedbackConfig(StrictBaseModel):
    """Interest vector learning parameters.

    Attributes:
        learning_rate: EMA step size; the current vector keeps 1 - rate.
        max_retries: Compare-and-swap attempts before giving up.
    """

    learning_rate: Annotated[float, Field(gt=0.0, le=1.0)] = 0.1
    max_retries: Annotated[int, Field(ge=1, le=50)] = 3


class DigestConfig(StrictBaseModel):
    """Daily digest composition parameters."""

    lookback_hours: Annotated[int, Field(ge=1, le=24 * 14)] = 24
    candidate_limit: Annotated[int, Field(ge=1)] = 100


class RankingConfig(StrictBaseModel):
    """Root configuration for ranking.yaml."""

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    fusion: FusionWeights = Field(default_factory=FusionWeights)
    evidence: EvidenceWeights = Field(default_factory=EvidenceWeights)
    personal_fit: PersonalFitConfig = Field(default_factory=PersonalFitConfig)
    novelty: NoveltyConfig = Field(default_factory=NoveltyConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
    digest: DigestConfig = Field(default_factory=DigestConfig)
    velocity_placeholder: Weight = 0.5
