"""Daily digest composition.

Turns the scored candidate pool into a bounded briefing:

1. Keep candidates from the lookback window whose score clears the
   user's threshold (the material-improvement filter).
2. Sort by final score, best first.
3. Take the top ``floor(noise_cap * (1 - exploration_rate))`` papers.
4. Fill the remaining slots with the papers most orthogonal to the
   user's interest vector.
5. Upsert the briefing for (user, UTC date).
"""

import math
from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

import structlog

from paperfeed.config.schemas import DigestConfig
from paperfeed.recommender.diversity import select_diverse_papers
from paperfeed.recommender.metrics import DigestMetrics
from paperfeed.recommender.models import CandidatePaper, DigestSelection
from paperfeed.store.errors import ProfileNotFoundError
from paperfeed.store.models import Briefing, BriefingStatus, UserProfile
from paperfeed.store.protocols import PaperFeedStore


logger = structlog.get_logger()


def split_counts(noise_cap: int, exploration_rate: float) -> tuple[int, int]:
    """Split the digest size into exploit and explore slots.

    Args:
        noise_cap: Maximum papers in the digest.
        exploration_rate: Share of slots reserved for exploration.

    Returns:
        Tuple of (exploit_count, explore_count).
    """
    # Round first so a product like 6.999999999999999 floors to 7
    exploit_count = math.floor(round(noise_cap * (1.0 - exploration_rate), 9))
    return exploit_count, noise_cap - exploit_count


def sort_pool(pool: Sequence[CandidatePaper]) -> list[CandidatePaper]:
    """Sort candidates by final score, best first, keeping pool order on ties."""
    return sorted(pool, key=lambda c: c.final_score, reverse=True)


def compose_selection(
    pool: Sequence[CandidatePaper],
    profile: UserProfile,
) -> DigestSelection:
    """Pure function for choosing a digest from a qualified pool.

    Args:
        pool: Candidates that already passed the score threshold.
        profile: User whose cap, exploration rate and vector apply.

    Returns:
        DigestSelection with at most ``profile.noise_cap`` papers.
    """
    ranked = sort_pool(pool)
    exploit_count, explore_count = split_counts(
        profile.noise_cap, profile.exploration_rate
    )

    exploit = ranked[:exploit_count]
    remaining = ranked[exploit_count:]
    explore = select_diverse_papers(remaining, profile.interest_vector, explore_count)

    return DigestSelection(exploit=exploit, explore=explore)


def _as_utc(value: datetime) -> datetime:
    """Convert to UTC, treating naive datetimes as UTC."""
    return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)


def briefing_date(now: datetime) -> date:
    """Calendar date of a timestamp, truncated at UTC midnight."""
    return _as_utc(now).date()


class DigestComposer:
    """Builds and persists a user's daily briefing."""

    def __init__(
        self,
        store: PaperFeedStore,
        config: DigestConfig | None = None,
        metrics: DigestMetrics | None = None,
        now: datetime | None = None,
    ) -> None:
        """Initialize the composer.

        Args:
            store: Persistence backend.
            config: Lookback window and pool limit.
            metrics: Optional metrics instance.
            now: Reference time; defaults to the current time per call.
        """
        self._store = store
        self._config = config or DigestConfig()
        self._metrics = metrics or DigestMetrics.get_instance()
        self._now = now
        self._log = logger.bind(component="recommender", subcomponent="composer")

    def _current_time(self) -> datetime:
        return _as_utc(self._now) if self._now else datetime.now(UTC)

    def load_pool(self, profile: UserProfile, now: datetime) -> list[CandidatePaper]:
        """Load the qualified candidate pool for a user.

        Args:
            profile: User whose score threshold applies.
            now: Reference time for the lookback window.

        Returns:
            Candidates sorted best first, truncated to the pool limit.
        """
        since = _as_utc(now) - timedelta(hours=self._config.lookback_hours)
        rows = self._store.get_scored_candidates(since, profile.score_threshold)
        pool = sort_pool([CandidatePaper(paper=p, score=s) for p, s in rows])
        return pool[: self._config.candidate_limit]

    def generate_daily_digest(self, user_id: str) -> Briefing:
        """Compose and upsert today's briefing for a user.

        Args:
            user_id: User to build the digest for.

        Returns:
            The persisted Briefing; empty when no paper qualifies.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = self._store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        now = self._current_time()
        pool = self.load_pool(profile, now)
        selection = compose_selection(pool, profile)

        briefing = self._store.upsert_briefing(
            Briefing(
                user_id=user_id,
                date=briefing_date(now),
                paper_ids=selection.paper_ids,
                paper_count=len(selection.papers),
                avg_score=selection.avg_score,
                status=BriefingStatus.READY,
                generated_at=now,
            )
        )

        self._metrics.record_digest(
            candidates=len(pool),
            exploit=len(selection.exploit),
            explore=len(selection.explore),
        )
        self._log.info(
            "digest_generated",
            user_id=user_id,
            date=briefing.date.isoformat(),
            candidates=len(pool),
            exploit_count=len(selection.exploit),
            explore_count=len(selection.explore),
            avg_score=round(briefing.avg_score, 4),
        )
        return briefing
