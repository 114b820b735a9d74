"""Shared Pydantic base models and type aliases."""

from pydantic import BaseModel, ConfigDict


# Ordered, fixed-length float sequence; length must match across compared vectors.
EmbeddingVector = list[float]


class StrictBaseModel(BaseModel):
    """Base model for persisted records.

    Records are frozen; updates produce a copy via ``model_copy``.
    Unknown fields are rejected.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
