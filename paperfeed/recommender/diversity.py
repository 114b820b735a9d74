"""Greedy diversity selection against a user's interest vector."""

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from paperfeed.recommender.models import CandidatePaper
from paperfeed.vector import cosine_similarity


# Diversity assigned to papers without an embedding
NO_EMBEDDING_DIVERSITY = 0.5


def diversity_score(
    embedding: Sequence[float] | None,
    user_vector: Sequence[float],
) -> float:
    """Score how orthogonal a paper is to the user's interests.

    diversity = 1 - |raw cosine|, so both aligned and opposite papers
    score low. An uninitialized user vector makes every embedded paper
    fully diverse.

    Raises:
        VectorLengthMismatchError: If both vectors are present but differ
            in length.
    """
    if not embedding:
        return NO_EMBEDDING_DIVERSITY
    if not user_vector:
        return 1.0
    return 1.0 - abs(cosine_similarity(embedding, user_vector))


def select_diverse_papers(
    candidates: Sequence[CandidatePaper],
    user_vector: Sequence[float],
    count: int,
) -> list[CandidatePaper]:
    """Greedily pick the candidates most orthogonal to the user's interests.

    Each round picks the remaining candidate with the highest diversity;
    ties go to the candidate that appears first in ``candidates``.

    Args:
        candidates: Pool to pick from, in rank order.
        user_vector: The user's interest vector (may be empty).
        count: Number of papers to pick.

    Returns:
        Up to ``count`` candidates in pick order. The whole pool is
        returned unchanged when it is no larger than ``count``.
    """
    if count <= 0:
        return []
    if len(candidates) <= count:
        return list(candidates)

    scores: NDArray[np.float64] = np.array(
        [diversity_score(c.embedding, user_vector) for c in candidates],
        dtype=np.float64,
    )
    selected_mask: NDArray[np.bool_] = np.zeros(len(candidates), dtype=bool)
    picks: list[CandidatePaper] = []

    for _ in range(count):
        unselected = np.where(~selected_mask)[0]
        if not len(unselected):
            break
        # argmax returns the first maximum, which keeps ties in pool order
        best_idx = int(unselected[np.argmax(scores[unselected])])
        picks.append(candidates[best_idx])
        selected_mask[best_idx] = True

    return picks
