"""Multi-signal scoring engine for papers."""

from dataclasses import dataclass, field

import structlog

from paperfeed.config.schemas import RankingConfig
from paperfeed.ranker.errors import NotEnrichedError
from paperfeed.ranker.models import SignalBreakdown
from paperfeed.ranker.signals import (
    calculate_evidence_score,
    calculate_lab_prior_score,
    calculate_math_penalty,
    calculate_novelty_score,
    calculate_personal_fit_score,
    fuse_signals,
)
from paperfeed.ranker.velocity import ConstantVelocity, VelocitySignal
from paperfeed.store.models import Paper, PaperEnrichment, SignalName, UserProfile


logger = structlog.get_logger()

# Signal values used when ranking without a user profile
NO_PROFILE_NOVELTY = 0.5
NO_PROFILE_PERSONAL_FIT = 0.0
NO_PROFILE_LAB_PRIOR = 0.0
NO_PROFILE_MATH_PENALTY = 0.0


@dataclass
class ScorerConfig:
    """Configuration bundle for PaperScorer.

    Attributes:
        ranking: Weights and signal parameters.
        profile: User whose preferences drive the personal signals.
        velocity: Velocity strategy; defaults to the configured placeholder.
    """

    ranking: RankingConfig = field(default_factory=RankingConfig)
    profile: UserProfile | None = None
    velocity: VelocitySignal | None = None


class PaperScorer:
    """Computes the six ranking signals of a paper and fuses them.

    Scoring formula:
        final = 0.20*novelty + 0.25*evidence + 0.10*velocity
              + 0.30*personal_fit + 0.10*lab_prior - 0.05*math_penalty

    Where:
        - novelty: centroid distance and keyword novelty vs. the user's history
        - evidence: weighted methodological rigor flags
        - velocity: pluggable attention-growth signal
        - personal_fit: interest-vector similarity plus include-rule bonus
        - lab_prior: boosted lab affiliation match
        - math_penalty: math depth scaled by the user's sensitivity
    """

    def __init__(self, config: ScorerConfig | None = None) -> None:
        """Initialize the scorer.

        Args:
            config: Scorer configuration bundle.
        """
        config = config or ScorerConfig()
        self._ranking = config.ranking
        self._profile = config.profile
        self._velocity = config.velocity or ConstantVelocity(
            config.ranking.velocity_placeholder
        )
        self._log = logger.bind(component="ranker", subcomponent="scorer")

    def score_paper(self, paper: Paper, enrichment: PaperEnrichment) -> SignalBreakdown:
        """Compute all signals for a single paper.

        Args:
            paper: Paper to score.
            enrichment: The paper's enrichment.

        Returns:
            SignalBreakdown with fused score and weighted contributions.

        Raises:
            VectorLengthMismatchError: If the paper embedding and the user's
                interest vector differ in dimensionality.
        """
        novelty = self._compute_novelty(paper, enrichment)
        evidence = calculate_evidence_score(enrichment, self._ranking.evidence)
        velocity = self._compute_velocity(paper)
        personal_fit = self._compute_personal_fit(paper, enrichment)
        lab_prior = self._compute_lab_prior(paper)
        math_penalty = self._compute_math_penalty(enrichment)

        weights = self._ranking.fusion
        final_score = fuse_signals(
            novelty=novelty,
            evidence=evidence,
            velocity=velocity,
            personal_fit=personal_fit,
            lab_prior=lab_prior,
            math_penalty=math_penalty,
            weights=weights,
        )

        contributions = {
            SignalName.NOVELTY: weights.novelty * novelty,
            SignalName.EVIDENCE: weights.evidence * evidence,
            SignalName.VELOCITY: weights.velocity * velocity,
            SignalName.PERSONAL_FIT: weights.personal_fit * personal_fit,
            SignalName.LAB_PRIOR: weights.lab_prior * lab_prior,
            SignalName.MATH_PENALTY: -weights.math_penalty * math_penalty,
        }

        return SignalBreakdown(
            novelty=novelty,
            evidence=evidence,
            velocity=velocity,
            personal_fit=personal_fit,
            lab_prior=lab_prior,
            math_penalty=math_penalty,
            contributions=contributions,
            final_score=final_score,
        )

    def _compute_novelty(self, paper: Paper, enrichment: PaperEnrichment) -> float:
        if self._profile is None:
            return NO_PROFILE_NOVELTY
        return calculate_novelty_score(
            paper_embedding=enrichment.embedding,
            user_centroid=self._profile.interest_vector,
            paper_text=paper.text,
            historical_keywords=self._profile.historical_keywords,
            config=self._ranking.novelty,
        )

    def _compute_velocity(self, paper: Paper) -> float:
        value = self._velocity.score(paper)
        if not 0.0 <= value <= 1.0:
            self._log.warning(
                "velocity_out_of_range", paper_id=paper.paper_id, value=value
            )
            value = max(0.0, min(1.0, value))
        return value

    def _compute_personal_fit(self, paper: Paper, enrichment: PaperEnrichment) -> float:
        if self._profile is None:
            return NO_PROFILE_PERSONAL_FIT
        return calculate_personal_fit_score(
            paper_embedding=enrichment.embedding,
            user_embedding=self._profile.interest_vector,
            paper_topics=enrichment.topics,
            included_topics=self._profile.include_topics,
            included_keywords=self._profile.include_keywords,
            paper_text=paper.text,
            config=self._ranking.personal_fit,
        )

    def _compute_lab_prior(self, paper: Paper) -> float:
        if self._profile is None:
            return NO_PROFILE_LAB_PRIOR
        return calculate_lab_prior_score(
            authors=paper.authors,
            author_affiliations=paper.author_affiliations,
            boosted_labs=self._profile.boosted_labs,
        )

    def _compute_math_penalty(self, enrichment: PaperEnrichment) -> float:
        if self._profile is None:
            return NO_PROFILE_MATH_PENALTY
        return calculate_math_penalty(
            enrichment.math_depth, self._profile.math_sensitivity
        )


def score_paper_pure(
    paper: Paper,
    profile: UserProfile | None = None,
    config: RankingConfig | None = None,
    velocity: VelocitySignal | None = None,
) -> SignalBreakdown:
    """Pure function for scoring one paper without touching a store.

    Args:
        paper: Enriched paper to score.
        profile: Optional user profile.
        config: Ranking configuration.
        velocity: Optional velocity strategy.

    Returns:
        SignalBreakdown for the paper.

    Raises:
        NotEnrichedError: If the paper has no enrichment.
    """
    if paper.enrichment is None:
        raise NotEnrichedError(paper.paper_id)

    scorer = PaperScorer(
        ScorerConfig(
            ranking=config or RankingConfig(),
            profile=profile,
            velocity=velocity,
        )
    )
    return scorer.score_paper(paper, paper.enrichment)
