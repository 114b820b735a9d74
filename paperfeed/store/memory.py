"""Thread-safe in-memory implementation of the store contract."""

import threading
from collections.abc import Sequence
from datetime import date, datetime

import structlog

from paperfeed.store.metrics import StoreMetrics
from paperfeed.store.models import (
    Briefing,
    FeedbackAction,
    FeedbackEvent,
    Paper,
    PaperStatus,
    Score,
    UserProfile,
)


logger = structlog.get_logger()


class InMemoryStore:
    """Dict-backed store for tests, notebooks and single-process jobs.

    A single lock serializes every read-modify-write, which makes the
    interest-vector compare-and-swap atomic within the process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._papers: dict[str, Paper] = {}
        self._scores: dict[str, Score] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._feedback: list[FeedbackEvent] = []
        self._briefings: dict[tuple[str, date], Briefing] = {}
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(component="store", backend="memory")

    # ===== Papers =====

    def upsert_paper(self, paper: Paper) -> Paper:
        with self._lock:
            self._papers[paper.paper_id] = paper
        return paper

    def get_paper(self, paper_id: str) -> Paper | None:
        return self._papers.get(paper_id)

    def get_papers(self, paper_ids: Sequence[str]) -> list[Paper]:
        papers = (self._papers.get(pid) for pid in dict.fromkeys(paper_ids))
        return [p for p in papers if p is not None and p.enrichment is not None]

    def get_unscored_papers(self) -> list[Paper]:
        with self._lock:
            return [
                p
                for p in self._papers.values()
                if p.enrichment is not None and p.paper_id not in self._scores
            ]

    def mark_papers_ranked(self, paper_ids: Sequence[str]) -> int:
        updated = 0
        with self._lock:
            for pid in paper_ids:
                paper = self._papers.get(pid)
                if paper is None:
                    continue
                self._papers[pid] = paper.model_copy(
                    update={"status": PaperStatus.RANKED}
                )
                updated += 1
        return updated

    # ===== Scores =====

    def upsert_score(self, score: Score) -> Score:
        with self._lock:
            self._scores[score.paper_id] = score
        self._metrics.record_score_upsert()
        return score

    def get_score(self, paper_id: str) -> Score | None:
        return self._scores.get(paper_id)

    def get_scored_candidates(
        self, since: datetime, min_score: float
    ) -> list[tuple[Paper, Score]]:
        with self._lock:
            candidates: list[tuple[Paper, Score]] = []
            for paper in self._papers.values():
                if paper.enrichment is None or paper.published_at < since:
                    continue
                score = self._scores.get(paper.paper_id)
                if score is None or score.final_score < min_score:
                    continue
                candidates.append((paper, score))
            return candidates

    # ===== Profiles =====

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            existing = self._profiles.get(profile.user_id)
            if existing is not None:
                profile = profile.model_copy(
                    update={
                        "interest_vector": existing.interest_vector,
                        "vector_version": existing.vector_version,
                    }
                )
            self._profiles[profile.user_id] = profile
        return profile

    def get_digest_user_ids(self) -> list[str]:
        return [p.user_id for p in self._profiles.values() if p.digest_enabled]

    def compare_and_set_interest_vector(
        self,
        user_id: str,
        expected_version: int,
        vector: Sequence[float],
    ) -> bool:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None or profile.vector_version != expected_version:
                self._metrics.record_cas_conflict()
                self._log.debug(
                    "interest_vector_cas_rejected",
                    user_id=user_id,
                    expected_version=expected_version,
                )
                return False
            self._profiles[user_id] = profile.model_copy(
                update={
                    "interest_vector": list(vector),
                    "vector_version": expected_version + 1,
                }
            )
            return True

    # ===== Feedback =====

    def append_feedback(self, event: FeedbackEvent) -> FeedbackEvent:
        with self._lock:
            self._feedback.append(event)
        self._metrics.record_feedback_append()
        return event

    def get_feedback_history(
        self,
        user_id: str,
        action: FeedbackAction | None = None,
        limit: int | None = None,
    ) -> list[FeedbackEvent]:
        events = [
            e
            for e in self._feedback
            if e.user_id == user_id and (action is None or e.action == action)
        ]
        # Newest first; equal timestamps keep the latest append first
        events.reverse()
        events.sort(key=lambda e: e.created_at, reverse=True)
        return events[:limit] if limit is not None else events

    # ===== Briefings =====

    def upsert_briefing(self, briefing: Briefing) -> Briefing:
        key = (briefing.user_id, briefing.date)
        with self._lock:
            self._briefings[key] = briefing
        self._metrics.record_briefing_upsert()
        return briefing

    def get_briefing(self, user_id: str, day: date) -> Briefing | None:
        return self._briefings.get((user_id, day))

    def get_latest_briefing(self, user_id: str) -> Briefing | None:
        own = [b for (uid, _), b in self._briefings.items() if uid == user_id]
        if not own:
            return None
        return max(own, key=lambda b: b.date)

    def count_briefings(self, user_id: str) -> int:
        """Count stored briefings for a user."""
        return sum(1 for uid, _ in self._briefings if uid == user_id)
