"""Pure signal functions for paper ranking.

Each function takes plain inputs, performs no I/O and returns a value in
[0, 1]. The scorer combines them with ``fuse_signals``.
"""

from collections.abc import Iterable, Mapping, Sequence

from paperfeed.config.schemas import (
    EvidenceWeights,
    FusionWeights,
    NoveltyConfig,
    PersonalFitConfig,
)
from paperfeed.store.models import PaperEnrichment
from paperfeed.vector import cosine_similarity, magnitude


def calculate_evidence_score(
    enrichment: PaperEnrichment,
    weights: EvidenceWeights | None = None,
) -> float:
    """Sum the credit of each methodological rigor flag that is set.

    There is no partial credit: a flag either contributes its full weight
    or nothing.

    Args:
        enrichment: Paper enrichment carrying the evidence flags.
        weights: Per-flag credit (defaults: 0.30/0.20/0.20/0.15/0.15).

    Returns:
        Evidence score in [0, 1].
    """
    w = weights or EvidenceWeights()
    score = 0.0
    if enrichment.has_baselines:
        score += w.baselines
    if enrichment.has_ablations:
        score += w.ablations
    if enrichment.has_code:
        score += w.code
    if enrichment.has_data:
        score += w.data
    if enrichment.has_multiple_evals:
        score += w.multiple_evals
    return min(max(score, 0.0), 1.0)


def _similarity_or_zero(
    paper_embedding: Sequence[float] | None,
    user_embedding: Sequence[float],
) -> float:
    """Normalized cosine, with missing or uninitialized vectors scoring 0."""
    if not paper_embedding or not user_embedding:
        return 0.0
    return cosine_similarity(paper_embedding, user_embedding, normalize=True)


def calculate_personal_fit_score(
    paper_embedding: Sequence[float] | None,
    user_embedding: Sequence[float],
    paper_topics: Iterable[str],
    included_topics: Iterable[str],
    included_keywords: Iterable[str],
    paper_text: str,
    config: PersonalFitConfig | None = None,
) -> float:
    """Blend vector similarity with include-rule bonuses.

    P = 0.7 * normalized_cosine + 0.3 * min(rule_bonus, 1.0), where the
    rule bonus grows by 0.20 per included topic on the paper and 0.10 per
    included keyword found in the text.

    Raises:
        VectorLengthMismatchError: If both embeddings are present but differ
            in length.
    """
    cfg = config or PersonalFitConfig()
    similarity = _similarity_or_zero(paper_embedding, user_embedding)

    wanted_topics = set(included_topics)
    rule_bonus = sum(cfg.topic_bonus for t in paper_topics if t in wanted_topics)

    lower_text = paper_text.lower()
    rule_bonus += sum(
        cfg.keyword_bonus for kw in included_keywords if kw and kw.lower() in lower_text
    )
    rule_bonus = min(rule_bonus, cfg.rule_bonus_cap)

    return cfg.similarity_weight * similarity + cfg.rule_weight * rule_bonus


def calculate_keyword_novelty(paper_text: str, historical_keywords: Sequence[str]) -> float:
    """Fraction of the paper's tokens not contained in any historical keyword.

    Matching is by substring, so "machine" is familiar when
    "machine learning" is historical.
    """
    tokens = paper_text.lower().split()
    if not tokens:
        return 0.0
    history = [kw.lower() for kw in historical_keywords]
    novel = sum(1 for token in tokens if not any(token in kw for kw in history))
    return novel / len(tokens)


def calculate_novelty_score(
    paper_embedding: Sequence[float] | None,
    user_centroid: Sequence[float],
    paper_text: str,
    historical_keywords: Sequence[str],
    config: NoveltyConfig | None = None,
) -> float:
    """Score how different a paper is from what the user already knows.

    A user with no history (zero centroid and no keywords) finds
    everything novel.
    """
    cfg = config or NoveltyConfig()
    if magnitude(user_centroid) == 0.0 and not historical_keywords:
        return 1.0

    centroid_distance = 1.0 - _similarity_or_zero(paper_embedding, user_centroid)
    keyword_novelty = calculate_keyword_novelty(paper_text, historical_keywords)
    return cfg.centroid_weight * centroid_distance + cfg.keyword_weight * keyword_novelty


def calculate_lab_prior_score(
    authors: Iterable[str],
    author_affiliations: Mapping[str, str],
    boosted_labs: Iterable[str],
) -> float:
    """1.0 if any author's affiliation contains a boosted lab name, else 0.0."""
    labs = [lab.lower() for lab in boosted_labs if lab]
    if not labs:
        return 0.0

    for author in authors:
        affiliation = author_affiliations.get(author)
        if not affiliation:
            continue
        lower_affiliation = affiliation.lower()
        if any(lab in lower_affiliation for lab in labs):
            return 1.0
    return 0.0


def calculate_math_penalty(math_depth: float, user_sensitivity: float) -> float:
    """Penalty magnitude for math-heavy papers, capped at 1.0."""
    return min(max(math_depth * user_sensitivity, 0.0), 1.0)


def fuse_signals(
    novelty: float,
    evidence: float,
    velocity: float,
    personal_fit: float,
    lab_prior: float,
    math_penalty: float,
    weights: FusionWeights | None = None,
) -> float:
    """Combine the six signals into the final ranking score.

    final = 0.20*N + 0.25*E + 0.10*V + 0.30*P + 0.10*L - 0.05*M,
    clamped to [0, 1] unless ``weights.clamp`` is False.
    """
    w = weights or FusionWeights()
    final = (
        w.novelty * novelty
        + w.evidence * evidence
        + w.velocity * velocity
        + w.personal_fit * personal_fit
        + w.lab_prior * lab_prior
        - w.math_penalty * math_penalty
    )
    if w.clamp:
        final = max(0.0, min(1.0, final))
    return final
