"""Ranking engine: scores enriched papers and persists their Scores."""

import time
from collections.abc import Sequence

import structlog

from paperfeed.config.schemas import RankingConfig
from paperfeed.ranker.errors import NotEnrichedError
from paperfeed.ranker.metrics import RankerMetrics
from paperfeed.ranker.models import BatchRankResult
from paperfeed.ranker.rules import should_exclude_paper
from paperfeed.ranker.scorer import PaperScorer, ScorerConfig
from paperfeed.ranker.velocity import VelocitySignal
from paperfeed.store.models import Paper, Score, UserProfile
from paperfeed.store.protocols import PaperFeedStore


logger = structlog.get_logger()


class PaperRanker:
    """Orchestrates PaperScorer over papers and persists the results.

    Each paper is ranked independently: a Score is upserted keyed by
    paper_id, so re-ranking overwrites rather than duplicates. Batch
    methods continue past individual failures and only advance papers
    that ranked successfully to RANKED.
    """

    def __init__(
        self,
        store: PaperFeedStore,
        config: RankingConfig | None = None,
        profile: UserProfile | None = None,
        velocity: VelocitySignal | None = None,
        metrics: RankerMetrics | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            store: Persistence backend.
            config: Ranking configuration.
            profile: Optional user whose preferences personalize the signals
                and whose exclusion rules filter papers.
            velocity: Optional velocity strategy.
            metrics: Optional metrics instance.
        """
        self._store = store
        self._profile = profile
        self._scorer = PaperScorer(
            ScorerConfig(
                ranking=config or RankingConfig(),
                profile=profile,
                velocity=velocity,
            )
        )
        self._metrics = metrics or RankerMetrics.get_instance()
        self._log = logger.bind(
            component="ranker",
            user_id=profile.user_id if profile else None,
        )

    def rank_paper(self, paper: Paper) -> Score | None:
        """Score one paper and upsert its Score.

        Args:
            paper: Paper to rank.

        Returns:
            The persisted Score, or None if the profile's exclusion rules
            filtered the paper out.

        Raises:
            NotEnrichedError: If the paper has no enrichment.
            VectorLengthMismatchError: If embeddings differ in dimensionality.
        """
        enrichment = paper.enrichment
        if enrichment is None:
            raise NotEnrichedError(paper.paper_id)

        if self._profile is not None and should_exclude_paper(
            paper_topics=enrichment.topics,
            excluded_topics=self._profile.exclude_topics,
            excluded_keywords=self._profile.exclude_keywords,
            paper_text=paper.text,
        ):
            self._log.debug("paper_excluded", paper_id=paper.paper_id)
            return None

        breakdown = self._scorer.score_paper(paper, enrichment)
        score = self._store.upsert_score(breakdown.to_score(paper.paper_id))

        self._log.debug(
            "paper_ranked",
            paper_id=paper.paper_id,
            **breakdown.to_dict(),
        )
        return score

    def score_papers(self, paper_ids: Sequence[str]) -> BatchRankResult:
        """Rank the given papers.

        Requested IDs that are unknown or not enriched are reported as
        failed with a None result.

        Args:
            paper_ids: Papers to rank.

        Returns:
            BatchRankResult keyed by every requested paper ID.
        """
        requested = list(dict.fromkeys(paper_ids))
        papers = self._store.get_papers(requested)
        loaded = {p.paper_id for p in papers}
        missing = [pid for pid in requested if pid not in loaded]
        if missing:
            self._log.warning("papers_not_rankable", paper_ids=missing)

        result = self._rank_batch(papers)
        for pid in missing:
            result.results[pid] = None
            result.failed_ids.append(pid)
            self._metrics.record_failure()
        return result

    def score_unranked_papers(self) -> BatchRankResult:
        """Rank every enriched paper that has no Score yet.

        Returns:
            BatchRankResult for the loaded papers.
        """
        return self._rank_batch(self._store.get_unscored_papers())

    def _rank_batch(self, papers: Sequence[Paper]) -> BatchRankResult:
        """Rank papers independently and advance the successful ones.

        Args:
            papers: Papers to rank.

        Returns:
            BatchRankResult with per-paper outcomes.
        """
        self._log.info("batch_scoring_started", papers_in=len(papers))
        self._metrics.record_papers_in(len(papers))

        result = BatchRankResult()
        start = time.perf_counter()

        for paper in papers:
            try:
                score = self.rank_paper(paper)
            except Exception:  # noqa: BLE001
                self._log.warning(
                    "paper_scoring_failed", paper_id=paper.paper_id, exc_info=True
                )
                result.results[paper.paper_id] = None
                result.failed_ids.append(paper.paper_id)
                self._metrics.record_failure()
                continue

            result.results[paper.paper_id] = score
            if score is None:
                result.excluded_ids.append(paper.paper_id)
                self._metrics.record_exclusion()
            else:
                self._metrics.record_scored(score.final_score)

        ranked_ids = result.ranked_ids
        if ranked_ids:
            result.marked_count = self._store.mark_papers_ranked(ranked_ids)

        duration_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_scoring_duration(duration_ms)

        self._log.info(
            "batch_scoring_complete",
            papers_in=len(papers),
            papers_scored=len(ranked_ids),
            papers_failed=len(result.failed_ids),
            papers_excluded=len(result.excluded_ids),
            duration_ms=round(duration_ms, 2),
        )
        return result
