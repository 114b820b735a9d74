"""Persistence contract consumed by the ranking core."""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol, runtime_checkable

from paperfeed.store.models import (
    Briefing,
    FeedbackAction,
    FeedbackEvent,
    Paper,
    Score,
    UserProfile,
)


@runtime_checkable
class PaperFeedStore(Protocol):
    """Storage operations required by ranking, feedback and digests.

    Implementations must provide idempotent upserts keyed by paper_id
    (Score) and (user_id, date) (Briefing), and an atomic conditional
    write for the interest vector so that concurrent feedback events for
    one user never overwrite each other's update.
    """

    # ----- papers -----

    def upsert_paper(self, paper: Paper) -> Paper:
        """Insert or replace a paper keyed by paper_id."""
        ...

    def get_paper(self, paper_id: str) -> Paper | None:
        """Get a paper by ID."""
        ...

    def get_papers(self, paper_ids: Sequence[str]) -> list[Paper]:
        """Get the enriched papers among ``paper_ids``, once each, in request order."""
        ...

    def get_unscored_papers(self) -> list[Paper]:
        """Get enriched papers that have no Score yet."""
        ...

    def mark_papers_ranked(self, paper_ids: Sequence[str]) -> int:
        """Advance papers to RANKED; returns the number updated."""
        ...

    # ----- scores -----

    def upsert_score(self, score: Score) -> Score:
        """Insert or overwrite the Score for ``score.paper_id``."""
        ...

    def get_score(self, paper_id: str) -> Score | None:
        """Get the Score for a paper."""
        ...

    def get_scored_candidates(
        self, since: datetime, min_score: float
    ) -> list[tuple[Paper, Score]]:
        """Get enriched papers published at/after ``since`` scoring >= ``min_score``."""
        ...

    # ----- profiles -----

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user's profile."""
        ...

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Insert a profile, or update the settings of an existing one.

        The interest vector and its version on an existing profile are
        left untouched; only ``compare_and_set_interest_vector`` writes them.
        """
        ...

    def get_digest_user_ids(self) -> list[str]:
        """Get IDs of users with digests enabled."""
        ...

    def compare_and_set_interest_vector(
        self,
        user_id: str,
        expected_version: int,
        vector: Sequence[float],
    ) -> bool:
        """Write the interest vector if ``vector_version`` is still ``expected_version``.

        Returns:
            True if written (version incremented), False if another writer
            got there first.
        """
        ...

    # ----- feedback -----

    def append_feedback(self, event: FeedbackEvent) -> FeedbackEvent:
        """Append a feedback event."""
        ...

    def get_feedback_history(
        self,
        user_id: str,
        action: FeedbackAction | None = None,
        limit: int | None = None,
    ) -> list[FeedbackEvent]:
        """Get a user's feedback, newest first."""
        ...

    # ----- briefings -----

    def upsert_briefing(self, briefing: Briefing) -> Briefing:
        """Insert or replace the briefing for (user_id, date)."""
        ...

    def get_briefing(self, user_id: str, day: date) -> Briefing | None:
        """Get the briefing for a user and day."""
        ...

    def get_latest_briefing(self, user_id: str) -> Briefing | None:
        """Get the user's most recent briefing."""
        ...
