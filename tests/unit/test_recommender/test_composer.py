"""Unit tests for digest composition."""

from collections.abc import Generator
from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from paperfeed.config import DigestConfig
from paperfeed.recommender import (
    CandidatePaper,
    DigestComposer,
    DigestMetrics,
    briefing_date,
    compose_selection,
    split_counts,
)
from paperfeed.store import InMemoryStore, ProfileNotFoundError, StoreMetrics
from tests.helpers.factories import make_paper, make_profile, make_score
from tests.helpers.time import FIXED_NOW


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset singleton metrics around each test."""
    DigestMetrics.reset()
    StoreMetrics.reset()
    yield
    DigestMetrics.reset()
    StoreMetrics.reset()


def _make_candidate(
    paper_id: str,
    final_score: float,
    embedding: list[float] | None = None,
) -> CandidatePaper:
    return CandidatePaper(
        paper=make_paper(paper_id=paper_id, embedding=embedding),
        score=make_score(paper_id=paper_id, final_score=final_score),
    )


def _seed_paper(
    store: InMemoryStore,
    paper_id: str,
    final_score: float,
    embedding: list[float] | None = None,
    hours_ago: float = 1.0,
) -> None:
    """Store a paper and its Score."""
    store.upsert_paper(
        make_paper(
            paper_id=paper_id,
            embedding=embedding,
            published_at=FIXED_NOW - timedelta(hours=hours_ago),
        )
    )
    store.upsert_score(make_score(paper_id=paper_id, final_score=final_score))


def _make_composer(
    store: InMemoryStore, config: DigestConfig | None = None
) -> DigestComposer:
    return DigestComposer(store, config, now=FIXED_NOW)


class TestSplitCounts:
    """Tests for split_counts."""

    @pytest.mark.parametrize(
        ("noise_cap", "rate", "expected"),
        [
            (5, 0.15, (4, 1)),
            (10, 0.2, (8, 2)),
            (15, 0.15, (12, 3)),
            (10, 0.3, (7, 3)),
            (10, 0.0, (10, 0)),
            (1, 0.3, (0, 1)),
        ],
    )
    def test_split(self, noise_cap: int, rate: float, expected: tuple[int, int]) -> None:
        """Test exploit slots are floored and explore takes the rest."""
        assert split_counts(noise_cap, rate) == expected


class TestComposeSelection:
    """Tests for compose_selection."""

    def test_exploit_is_top_slice(self) -> None:
        """Test exploit picks are the highest scores in order."""
        pool = [
            _make_candidate("low", 0.55, [1.0, 0.0]),
            _make_candidate("best", 0.95, [1.0, 0.0]),
            _make_candidate("good", 0.85, [1.0, 0.0]),
            _make_candidate("mid", 0.65, [0.0, 1.0]),
        ]
        profile = make_profile(
            interest_vector=[1.0, 0.0], noise_cap=3, exploration_rate=0.3
        )

        selection = compose_selection(pool, profile)

        assert [c.paper_id for c in selection.exploit] == ["best", "good"]
        assert [c.paper_id for c in selection.explore] == ["mid"]
        assert selection.paper_ids == ["best", "good", "mid"]
        assert selection.avg_score == pytest.approx((0.95 + 0.85 + 0.65) / 3)

    def test_explore_prefers_diverse_over_score(self) -> None:
        """Test explore picks by diversity, not by remaining score."""
        pool = [
            _make_candidate("top", 0.9, [1.0, 0.0]),
            _make_candidate("similar", 0.8, [1.0, 0.1]),
            _make_candidate("different", 0.6, [0.0, 1.0]),
        ]
        profile = make_profile(
            interest_vector=[1.0, 0.0], noise_cap=2, exploration_rate=0.3
        )

        selection = compose_selection(pool, profile)

        assert selection.paper_ids == ["top", "different"]

    def test_empty_pool(self) -> None:
        """Test an empty pool yields an empty selection."""
        selection = compose_selection([], make_profile())
        assert selection.papers == []
        assert selection.avg_score == 0.0

    def test_fewer_candidates_than_cap(self) -> None:
        """Test small pools are returned in full without padding."""
        pool = [_make_candidate("a", 0.7), _make_candidate("b", 0.6)]
        selection = compose_selection(pool, make_profile(noise_cap=10))
        assert selection.paper_ids == ["a", "b"]


class TestBriefingDate:
    """Tests for briefing_date."""

    def test_utc_truncation(self) -> None:
        assert briefing_date(FIXED_NOW) == date(2024, 3, 15)

    def test_other_timezone_uses_utc_date(self) -> None:
        """Test local times are converted to UTC before truncation."""
        local = datetime(2024, 3, 15, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        assert briefing_date(local) == date(2024, 3, 14)

    def test_naive_is_utc(self) -> None:
        assert briefing_date(datetime(2024, 3, 15, 23, 59)) == date(2024, 3, 15)


class TestGenerateDailyDigest:
    """Tests for DigestComposer.generate_daily_digest."""

    def test_missing_profile(self) -> None:
        """Test composing for an unknown user fails."""
        with pytest.raises(ProfileNotFoundError):
            _make_composer(InMemoryStore()).generate_daily_digest("ghost")

    def test_threshold_filters_pool(self) -> None:
        """Test papers below the user's threshold never enter the digest."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.6))
        _seed_paper(store, "high", 0.8)
        _seed_paper(store, "low", 0.3)

        briefing = _make_composer(store).generate_daily_digest("user-1")

        assert briefing.paper_ids == ["high"]
        assert briefing.avg_score == pytest.approx(0.8)

    def test_lookback_window(self) -> None:
        """Test papers older than the lookback window are excluded."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.1))
        _seed_paper(store, "fresh", 0.7, hours_ago=2)
        _seed_paper(store, "stale", 0.9, hours_ago=30)

        briefing = _make_composer(store).generate_daily_digest("user-1")
        assert briefing.paper_ids == ["fresh"]

        wide = _make_composer(store, DigestConfig(lookback_hours=48))
        assert wide.generate_daily_digest("user-1").paper_ids == ["stale", "fresh"]

    def test_candidate_limit(self) -> None:
        """Test the pool is truncated after sorting by score."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.1, noise_cap=10))
        for i in range(5):
            _seed_paper(store, f"p{i}", 0.5 + i * 0.1)

        composer = _make_composer(store, DigestConfig(candidate_limit=2))
        briefing = composer.generate_daily_digest("user-1")

        assert briefing.paper_ids == ["p4", "p3"]

    def test_empty_digest(self) -> None:
        """Test no qualifying papers gives an empty briefing, not an error."""
        store = InMemoryStore()
        store.save_profile(make_profile())

        briefing = _make_composer(store).generate_daily_digest("user-1")

        assert briefing.paper_ids == []
        assert briefing.paper_count == 0
        assert briefing.avg_score == 0.0
        assert DigestMetrics.get_instance().empty_digests == 1

    def test_regeneration_is_idempotent(self) -> None:
        """Test generating twice for the same day keeps one briefing."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.1))
        _seed_paper(store, "a", 0.7)

        composer = _make_composer(store)
        composer.generate_daily_digest("user-1")
        _seed_paper(store, "b", 0.9)
        second = composer.generate_daily_digest("user-1")

        assert store.count_briefings("user-1") == 1
        stored = store.get_briefing("user-1", date(2024, 3, 15))
        assert stored == second
        assert stored.paper_ids == ["b", "a"]

    def test_briefing_fields(self) -> None:
        """Test the briefing carries the selection statistics."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.1))
        _seed_paper(store, "a", 0.6)
        _seed_paper(store, "b", 0.8)

        briefing = _make_composer(store).generate_daily_digest("user-1")

        assert briefing.date == date(2024, 3, 15)
        assert briefing.paper_count == 2
        assert briefing.avg_score == pytest.approx(0.7)
        assert briefing.generated_at == FIXED_NOW
        assert DigestMetrics.get_instance().papers_selected == 2

    def test_default_now_is_current_time(self) -> None:
        """Test the composer uses the wall clock when no time is injected."""
        store = InMemoryStore()
        store.save_profile(make_profile())

        briefing = DigestComposer(store).generate_daily_digest("user-1")

        assert briefing.date == datetime.now(UTC).date()

    def test_naive_now_is_treated_as_utc(self) -> None:
        """Test an injected naive time filters the pool as UTC."""
        store = InMemoryStore()
        store.save_profile(make_profile(score_threshold=0.5))
        _seed_paper(store, "fresh", 0.9, hours_ago=2)
        _seed_paper(store, "stale", 0.9, hours_ago=30)

        naive_now = FIXED_NOW.replace(tzinfo=None)
        briefing = DigestComposer(store, now=naive_now).generate_daily_digest("user-1")

        assert briefing.paper_ids == ["fresh"]
        assert briefing.date == date(2024, 3, 15)
        assert briefing.generated_at == FIXED_NOW
