"""Unit tests for the pure ranking signal functions."""

import pytest

from paperfeed.config import EvidenceWeights, FusionWeights
from paperfeed.ranker.signals import (
    calculate_evidence_score,
    calculate_keyword_novelty,
    calculate_lab_prior_score,
    calculate_math_penalty,
    calculate_novelty_score,
    calculate_personal_fit_score,
    fuse_signals,
)
from paperfeed.store.models import PaperEnrichment
from paperfeed.vector import VectorLengthMismatchError


class TestEvidenceScore:
    """Tests for calculate_evidence_score."""

    def test_all_flags(self) -> None:
        """Test every flag set gives full evidence."""
        enrichment = PaperEnrichment(
            has_baselines=True,
            has_ablations=True,
            has_code=True,
            has_data=True,
            has_multiple_evals=True,
        )
        assert calculate_evidence_score(enrichment) == pytest.approx(1.0)

    def test_no_flags(self) -> None:
        """Test no flags gives zero."""
        assert calculate_evidence_score(PaperEnrichment()) == 0.0

    def test_baselines_and_code(self) -> None:
        """Test partial flags sum their weights."""
        enrichment = PaperEnrichment(has_baselines=True, has_code=True)
        assert calculate_evidence_score(enrichment) == pytest.approx(0.5)

    def test_custom_weights(self) -> None:
        """Test configured weights are used."""
        weights = EvidenceWeights(
            baselines=0.5, ablations=0.0, code=0.0, data=0.0, multiple_evals=0.5
        )
        enrichment = PaperEnrichment(has_multiple_evals=True)
        assert calculate_evidence_score(enrichment, weights) == pytest.approx(0.5)


class TestPersonalFitScore:
    """Tests for calculate_personal_fit_score."""

    def test_similarity_and_rule_bonus(self) -> None:
        """Test similarity and topic/keyword bonuses combine."""
        score = calculate_personal_fit_score(
            paper_embedding=[1.0, 0.0],
            user_embedding=[1.0, 0.0],
            paper_topics=["nlp"],
            included_topics=["nlp"],
            included_keywords=["TRANSFORMER"],
            paper_text="A transformer paper",
        )
        # 0.7 * 1.0 + 0.3 * (0.2 + 0.1)
        assert score == pytest.approx(0.79)

    def test_orthogonal_without_rules(self) -> None:
        """Test orthogonal vectors give half the similarity weight."""
        score = calculate_personal_fit_score(
            paper_embedding=[1.0, 0.0],
            user_embedding=[0.0, 1.0],
            paper_topics=[],
            included_topics=[],
            included_keywords=[],
            paper_text="",
        )
        assert score == pytest.approx(0.35)

    def test_rule_bonus_is_capped(self) -> None:
        """Test the rule bonus never exceeds 1.0 before weighting."""
        topics = [f"topic-{i}" for i in range(8)]
        score = calculate_personal_fit_score(
            paper_embedding=None,
            user_embedding=[],
            paper_topics=topics,
            included_topics=topics,
            included_keywords=["a", "b"],
            paper_text="a b",
        )
        assert score == pytest.approx(0.3)

    def test_uninitialized_user_vector(self) -> None:
        """Test an empty user vector contributes no similarity."""
        score = calculate_personal_fit_score(
            paper_embedding=[0.3, 0.4],
            user_embedding=[],
            paper_topics=[],
            included_topics=[],
            included_keywords=[],
            paper_text="text",
        )
        assert score == 0.0

    def test_dimension_mismatch_raises(self) -> None:
        """Test mismatched embeddings are a fatal input error."""
        with pytest.raises(VectorLengthMismatchError):
            calculate_personal_fit_score(
                paper_embedding=[1.0, 0.0, 0.0],
                user_embedding=[1.0, 0.0],
                paper_topics=[],
                included_topics=[],
                included_keywords=[],
                paper_text="",
            )


class TestNoveltyScore:
    """Tests for calculate_novelty_score and keyword novelty."""

    def test_cold_start_user(self) -> None:
        """Test a user with no history finds everything novel."""
        score = calculate_novelty_score(
            paper_embedding=[0.1, 0.9],
            user_centroid=[0.0, 0.0],
            paper_text="anything at all",
            historical_keywords=[],
        )
        assert score == 1.0

    def test_empty_centroid_is_cold_start(self) -> None:
        """Test an uninitialized centroid counts as zero."""
        score = calculate_novelty_score(
            paper_embedding=None,
            user_centroid=[],
            paper_text="text",
            historical_keywords=[],
        )
        assert score == 1.0

    def test_aligned_paper_half_familiar_text(self) -> None:
        """Test centroid distance and keyword novelty are averaged."""
        score = calculate_novelty_score(
            paper_embedding=[1.0, 0.0],
            user_centroid=[1.0, 0.0],
            paper_text="word1 word2",
            historical_keywords=["word1"],
        )
        assert score == pytest.approx(0.25)

    def test_substring_match_is_familiar(self) -> None:
        """Test a token contained in a historical keyword is not novel."""
        score = calculate_novelty_score(
            paper_embedding=[0.0, 1.0],
            user_centroid=[1.0, 0.0],
            paper_text="Machine",
            historical_keywords=["machine learning"],
        )
        # 0.5 * (1 - 0.5) + 0.5 * 0.0
        assert score == pytest.approx(0.25)

    def test_keyword_novelty_fraction(self) -> None:
        """Test keyword novelty counts unmatched tokens."""
        novelty = calculate_keyword_novelty(
            "graph neural diffusion models", ["graph", "diffusion"]
        )
        assert novelty == pytest.approx(0.5)

    def test_keyword_novelty_empty_text(self) -> None:
        """Test text without tokens has zero keyword novelty."""
        assert calculate_keyword_novelty("   ", ["graph"]) == 0.0


class TestLabPriorScore:
    """Tests for calculate_lab_prior_score."""

    def test_boosted_affiliation(self) -> None:
        """Test case-insensitive substring match on affiliation."""
        score = calculate_lab_prior_score(
            authors=["Alice", "Bob"],
            author_affiliations={"Bob": "Google DeepMind, London"},
            boosted_labs=["deepmind"],
        )
        assert score == 1.0

    def test_no_boosted_labs(self) -> None:
        """Test no configured labs always yields zero."""
        score = calculate_lab_prior_score(
            authors=["Alice"],
            author_affiliations={"Alice": "DeepMind"},
            boosted_labs=[],
        )
        assert score == 0.0

    def test_unknown_affiliation(self) -> None:
        """Test authors without an affiliation never match."""
        score = calculate_lab_prior_score(
            authors=["Alice"],
            author_affiliations={},
            boosted_labs=["DeepMind"],
        )
        assert score == 0.0


class TestMathPenalty:
    """Tests for calculate_math_penalty."""

    def test_scaled_by_sensitivity(self) -> None:
        """Test depth is scaled by sensitivity."""
        assert calculate_math_penalty(0.8, 0.5) == pytest.approx(0.4)

    def test_capped_at_one(self) -> None:
        """Test the penalty never exceeds 1.0."""
        assert calculate_math_penalty(1.0, 1.0) == 1.0

    def test_zero_sensitivity(self) -> None:
        """Test an insensitive user is never penalized."""
        assert calculate_math_penalty(0.9, 0.0) == 0.0


class TestFuseSignals:
    """Tests for fuse_signals."""

    def test_all_positive_signals(self) -> None:
        """Test fusion with full signals and no penalty."""
        final = fuse_signals(1.0, 1.0, 1.0, 1.0, 1.0, 0.0)
        assert final == pytest.approx(0.95)

    def test_weighted_sum(self) -> None:
        """Test each weight is applied to its signal."""
        final = fuse_signals(
            novelty=0.5,
            evidence=0.4,
            velocity=0.5,
            personal_fit=0.6,
            lab_prior=1.0,
            math_penalty=0.2,
        )
        expected = (
            0.20 * 0.5 + 0.25 * 0.4 + 0.10 * 0.5 + 0.30 * 0.6 + 0.10 * 1.0 - 0.05 * 0.2
        )
        assert final == pytest.approx(expected)

    def test_penalty_only_is_clamped(self) -> None:
        """Test a negative fused score is clamped to zero."""
        assert fuse_signals(0.0, 0.0, 0.0, 0.0, 0.0, 1.0) == 0.0

    def test_unclamped_formula(self) -> None:
        """Test clamping can be disabled."""
        final = fuse_signals(
            0.0, 0.0, 0.0, 0.0, 0.0, 1.0, weights=FusionWeights(clamp=False)
        )
        assert final == pytest.approx(-0.05)

    def test_upper_clamp(self) -> None:
        """Test heavy custom weights cannot push the score above 1."""
        weights = FusionWeights(
            novelty=1.0, evidence=1.0, velocity=1.0, personal_fit=1.0, lab_prior=1.0
        )
        assert fuse_signals(1.0, 1.0, 1.0, 1.0, 1.0, 0.0, weights=weights) == 1.0
