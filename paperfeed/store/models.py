"""Persisted records shared by ranking, feedback and digest composition."""

import uuid
from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated

from pydantic import Field, field_validator

from paperfeed.data_model import EmbeddingVector, StrictBaseModel


Unit = Annotated[float, Field(ge=0.0, le=1.0)]
CalendarDate = date


class PaperStatus(str, Enum):
    """Processing stage of a paper.

    - new: ingested, awaiting enrichment
    - enriched: enrichment attached, not yet scored
    - ranked: a Score has been written
    """

    NEW = "new"
    ENRICHED = "enriched"
    RANKED = "ranked"


class SignalName(str, Enum):
    """Closed set of ranking signals.

    Keys of a Score's ``why_shown`` breakdown; the fusion formula and its
    explanation share this vocabulary.
    """

    NOVELTY = "novelty"
    EVIDENCE = "evidence"
    VELOCITY = "velocity"
    PERSONAL_FIT = "personal_fit"
    LAB_PRIOR = "lab_prior"
    MATH_PENALTY = "math_penalty"


class FeedbackAction(str, Enum):
    """User reaction to a paper."""

    SAVE = "save"
    DISMISS = "dismiss"
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    HIDE = "hide"

    @property
    def is_positive(self) -> bool:
        """Whether the action reinforces the paper's direction."""
        return self in (FeedbackAction.SAVE, FeedbackAction.THUMBS_UP)


class BriefingStatus(str, Enum):
    """Lifecycle status of a briefing."""

    READY = "ready"


class PaperEnrichment(StrictBaseModel):
    """Derived attributes attached by the external enrichment step."""

    topics: list[str] = Field(default_factory=list)
    facets: list[str] = Field(default_factory=list)
    embedding: EmbeddingVector | None = None
    math_depth: Unit = 0.0
    has_baselines: bool = False
    has_ablations: bool = False
    has_code: bool = False
    has_data: bool = False
    has_multiple_evals: bool = False


class Paper(StrictBaseModel):
    """A paper as seen by the ranking core."""

    paper_id: Annotated[str, Field(min_length=1)]
    arxiv_id: str = ""
    title: Annotated[str, Field(min_length=1)]
    abstract: str = ""
    authors: list[str] = Field(default_factory=list)
    author_affiliations: dict[str, str] = Field(default_factory=dict)
    published_at: datetime
    status: PaperStatus = PaperStatus.NEW
    enrichment: PaperEnrichment | None = None

    @field_validator("published_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def text(self) -> str:
        """Title and abstract joined for keyword matching."""
        return f"{self.title} {self.abstract}"

    @property
    def embedding(self) -> EmbeddingVector | None:
        """Enrichment embedding, if any."""
        if self.enrichment is None:
            return None
        return self.enrichment.embedding


class Score(StrictBaseModel):
    """Ranking result for one paper; at most one per paper_id."""

    paper_id: Annotated[str, Field(min_length=1)]
    novelty: Unit
    evidence: Unit
    velocity: Unit
    personal_fit: Unit
    lab_prior: Unit
    math_penalty: Unit
    final_score: float
    why_shown: dict[SignalName, float] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class UserProfile(StrictBaseModel):
    """Per-user preferences and learned interest vector.

    An empty ``interest_vector`` means the vector was never initialized
    and is treated as all-zero. ``vector_version`` increments on every
    interest-vector write and guards compare-and-swap updates.
    """

    user_id: Annotated[str, Field(min_length=1)]
    interest_vector: EmbeddingVector = Field(default_factory=list)
    vector_version: Annotated[int, Field(ge=0)] = 0
    include_topics: list[str] = Field(default_factory=list)
    exclude_topics: list[str] = Field(default_factory=list)
    include_keywords: list[str] = Field(default_factory=list)
    exclude_keywords: list[str] = Field(default_factory=list)
    historical_keywords: list[str] = Field(default_factory=list)
    boosted_labs: list[str] = Field(default_factory=list)
    score_threshold: Unit = 0.5
    noise_cap: Annotated[int, Field(ge=1, le=200)] = 15
    exploration_rate: Annotated[float, Field(ge=0.0, le=0.3)] = 0.15
    math_sensitivity: Unit = 0.5
    digest_enabled: bool = True


class FeedbackEvent(StrictBaseModel):
    """Append-only record of a user's reaction to a paper."""

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: Annotated[str, Field(min_length=1)]
    paper_id: Annotated[str, Field(min_length=1)]
    action: FeedbackAction
    weight: float = 1.0
    context: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Briefing(StrictBaseModel):
    """A user's digest for one calendar day; unique per (user_id, date)."""

    user_id: Annotated[str, Field(min_length=1)]
    date: CalendarDate
    paper_ids: list[str] = Field(default_factory=list)
    paper_count: Annotated[int, Field(ge=0)] = 0
    avg_score: float = 0.0
    status: BriefingStatus = BriefingStatus.READY
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
