"""Vector-space primitives for embeddings."""

from paperfeed.vector.errors import VectorLengthMismatchError
from paperfeed.vector.space import (
    cosine_similarity,
    dot_product,
    magnitude,
    normalize,
    zeros_like,
)


__all__ = [
    "VectorLengthMismatchError",
    "cosine_similarity",
    "dot_product",
    "magnitude",
    "normalize",
    "zeros_like",
]
