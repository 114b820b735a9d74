"""Cosine similarity, magnitude, dot product and unit normalization.

All functions accept any float sequence and never mutate their inputs.
Vectors returned to callers are plain ``list[float]`` so they can be
stored on pydantic records directly.
"""

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from paperfeed.vector.errors import VectorLengthMismatchError


def _as_array(vec: Sequence[float]) -> NDArray[np.float64]:
    return np.asarray(vec, dtype=np.float64)


def _check_lengths(vec1: Sequence[float], vec2: Sequence[float]) -> None:
    if len(vec1) != len(vec2):
        raise VectorLengthMismatchError(len(vec1), len(vec2))


def cosine_similarity(
    vec1: Sequence[float],
    vec2: Sequence[float],
    normalize: bool = False,
) -> float:
    """Calculate cosine similarity between two vectors.

    A zero-magnitude vector on either side yields 0.0 in both modes.

    Args:
        vec1: First vector.
        vec2: Second vector.
        normalize: Map the raw [-1, 1] cosine onto [0, 1] via (cos + 1) / 2.

    Returns:
        Raw cosine in [-1, 1], or the normalized value in [0, 1].

    Raises:
        VectorLengthMismatchError: If the vectors differ in length.
    """
    _check_lengths(vec1, vec2)

    a = _as_array(vec1)
    b = _as_array(vec2)
    mag1 = float(np.linalg.norm(a))
    mag2 = float(np.linalg.norm(b))

    if mag1 == 0.0 or mag2 == 0.0:
        return 0.0

    cos = float(np.dot(a, b) / (mag1 * mag2))
    # Rounding can push |cos| marginally past 1 for (anti)parallel vectors
    cos = max(-1.0, min(1.0, cos))

    return (cos + 1.0) / 2.0 if normalize else cos


def magnitude(vec: Sequence[float]) -> float:
    """Calculate the L2 norm of a vector."""
    return float(np.linalg.norm(_as_array(vec)))


def dot_product(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Calculate the dot product of two vectors.

    Raises:
        VectorLengthMismatchError: If the vectors differ in length.
    """
    _check_lengths(vec1, vec2)
    return float(np.dot(_as_array(vec1), _as_array(vec2)))


def normalize(vec: Sequence[float]) -> list[float]:
    """Scale a vector to unit length.

    Args:
        vec: Input vector.

    Returns:
        A new unit-length vector, or an all-zero vector of the same length
        when the input has zero magnitude.
    """
    arr = _as_array(vec)
    mag = float(np.linalg.norm(arr))
    if mag == 0.0:
        return [0.0] * len(arr)
    return (arr / mag).tolist()


def zeros_like(vec: Sequence[float]) -> list[float]:
    """Return an all-zero vector with the same dimensionality as ``vec``."""
    return [0.0] * len(vec)
