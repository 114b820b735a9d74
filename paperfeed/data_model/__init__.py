"""Shared data model primitives."""

from paperfeed.data_model.base import EmbeddingVector, StrictBaseModel


__all__ = ["EmbeddingVector", "StrictBaseModel"]
