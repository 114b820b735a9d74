"""SQLite implementation of the store contract."""

import json
import sqlite3
import time
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path

import structlog

from paperfeed.store.errors import StoreConnectionError
from paperfeed.store.metrics import StoreMetrics, TransactionContext
from paperfeed.store.migrations import CURRENT_VERSION, MigrationManager
from paperfeed.store.models import (
    Briefing,
    BriefingStatus,
    FeedbackAction,
    FeedbackEvent,
    Paper,
    PaperEnrichment,
    PaperStatus,
    Score,
    UserProfile,
)


logger = structlog.get_logger()

# Profile columns stored outside settings_json
_PROFILE_VECTOR_FIELDS = {"user_id", "interest_vector", "vector_version"}


def _ts(value: datetime) -> str:
    """Fixed-width UTC ISO timestamp, so TEXT comparison matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SqliteStore:
    """SQLite store for papers, scores, profiles, feedback and briefings.

    Uses WAL mode and versioned migrations. Scores and briefings are
    written with ``INSERT ... ON CONFLICT DO UPDATE``; interest vectors
    are written with a version-guarded ``UPDATE`` so concurrent writers
    in separate processes cannot lose each other's update.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(
            component="store", backend="sqlite", db_path=str(self._db_path)
        )

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open the database, creating it if needed, and apply migrations."""
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._log.info("connecting_to_database")

        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        migration_mgr = MigrationManager(self._conn)
        old_version = migration_mgr.get_current_version()
        applied = migration_mgr.apply_migrations()

        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "SqliteStore":
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[TransactionContext]:
        """Run a block in a transaction with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            Transaction context with timing information.
        """
        conn = self._ensure_connected()
        tx_id = str(uuid.uuid4())[:8]
        start_ns = time.perf_counter_ns()
        ctx = TransactionContext(tx_id=tx_id, start_time_ns=start_ns, operation=operation)

        try:
            yield ctx
            conn.commit()
        except Exception:
            conn.rollback()
            self._log.error(
                "transaction_failed",
                tx_id=tx_id,
                op=operation,
                duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
            )
            raise

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_tx_duration(duration_ms)
        self._log.debug(
            "transaction_complete",
            tx_id=tx_id,
            op=operation,
            affected_rows=ctx.affected_rows,
            duration_ms=round(duration_ms, 2),
        )

    # ===== Papers =====

    @staticmethod
    def _row_to_paper(row: sqlite3.Row) -> Paper:
        enrichment_json = row["enrichment_json"]
        return Paper(
            paper_id=row["paper_id"],
            arxiv_id=row["arxiv_id"],
            title=row["title"],
            abstract=row["abstract"],
            authors=json.loads(row["authors_json"]),
            author_affiliations=json.loads(row["affiliations_json"]),
            published_at=datetime.fromisoformat(row["published_at"]),
            status=PaperStatus(row["status"]),
            enrichment=(
                PaperEnrichment.model_validate_json(enrichment_json)
                if enrichment_json
                else None
            ),
        )

    def upsert_paper(self, paper: Paper) -> Paper:
        with self._transaction("upsert_paper") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                INSERT INTO papers (
                    paper_id, arxiv_id, title, abstract, authors_json,
                    affiliations_json, published_at, status, enrichment_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(paper_id) DO UPDATE SET
                    arxiv_id = excluded.arxiv_id,
                    title = excluded.title,
                    abstract = excluded.abstract,
                    authors_json = excluded.authors_json,
                    affiliations_json = excluded.affiliations_json,
                    published_at = excluded.published_at,
                    status = excluded.status,
                    enrichment_json = excluded.enrichment_json
                """,
                (
                    paper.paper_id,
                    paper.arxiv_id,
                    paper.title,
                    paper.abstract,
                    json.dumps(paper.authors),
                    json.dumps(paper.author_affiliations),
                    _ts(paper.published_at),
                    paper.status.value,
                    paper.enrichment.model_dump_json() if paper.enrichment else None,
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)
        return paper

    def get_paper(self, paper_id: str) -> Paper | None:
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT * FROM papers WHERE paper_id = ?", (paper_id,)
        ).fetchone()
        return self._row_to_paper(row) if row is not None else None

    def get_papers(self, paper_ids: Sequence[str]) -> list[Paper]:
        unique_ids = list(dict.fromkeys(paper_ids))
        if not unique_ids:
            return []
        conn = self._ensure_connected()
        placeholders = ", ".join("?" for _ in unique_ids)
        rows = conn.execute(
            f"SELECT * FROM papers WHERE paper_id IN ({placeholders}) "  # noqa: S608
            "AND enrichment_json IS NOT NULL",
            tuple(unique_ids),
        ).fetchall()
        by_id = {row["paper_id"]: self._row_to_paper(row) for row in rows}
        return [by_id[pid] for pid in unique_ids if pid in by_id]

    def get_unscored_papers(self) -> list[Paper]:
        conn = self._ensure_connected()
        rows = conn.execute(
            """
            SELECT p.* FROM papers p
            LEFT JOIN scores s ON s.paper_id = p.paper_id
            WHERE p.enrichment_json IS NOT NULL AND s.paper_id IS NULL
            ORDER BY p.published_at, p.paper_id
            """
        ).fetchall()
        return [self._row_to_paper(row) for row in rows]

    def mark_papers_ranked(self, paper_ids: Sequence[str]) -> int:
        if not paper_ids:
            return 0
        with self._transaction("mark_papers_ranked") as ctx:
            conn = self._ensure_connected()
            cursor = conn.executemany(
                "UPDATE papers SET status = ? WHERE paper_id = ?",
                [(PaperStatus.RANKED.value, pid) for pid in paper_ids],
            )
            ctx.add_affected_rows(cursor.rowcount)
        return ctx.affected_rows

    # ===== Scores =====

    @staticmethod
    def _row_to_score(row: sqlite3.Row) -> Score:
        return Score(
            paper_id=row["paper_id"],
            novelty=row["novelty"],
            evidence=row["evidence"],
            velocity=row["velocity"],
            personal_fit=row["personal_fit"],
            lab_prior=row["lab_prior"],
            math_penalty=row["math_penalty"],
            final_score=row["final_score"],
            why_shown=json.loads(row["why_shown_json"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def upsert_score(self, score: Score) -> Score:
        with self._transaction("upsert_score") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                INSERT INTO scores (
                    paper_id, novelty, evidence, velocity, personal_fit,
                    lab_prior, math_penalty, final_score, why_shown_json, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(paper_id) DO UPDATE SET
                    novelty = excluded.novelty,
                    evidence = excluded.evidence,
                    velocity = excluded.velocity,
                    personal_fit = excluded.personal_fit,
                    lab_prior = excluded.lab_prior,
                    math_penalty = excluded.math_penalty,
                    final_score = excluded.final_score,
                    why_shown_json = excluded.why_shown_json,
                    updated_at = excluded.updated_at
                """,
                (
                    score.paper_id,
                    score.novelty,
                    score.evidence,
                    score.velocity,
                    score.personal_fit,
                    score.lab_prior,
                    score.math_penalty,
                    score.final_score,
                    json.dumps({k.value: v for k, v in score.why_shown.items()}),
                    _ts(score.updated_at),
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)
        self._metrics.record_score_upsert()
        return score

    def get_score(self, paper_id: str) -> Score | None:
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT * FROM scores WHERE paper_id = ?", (paper_id,)
        ).fetchone()
        return self._row_to_score(row) if row is not None else None

    def get_scored_candidates(
        self, since: datetime, min_score: float
    ) -> list[tuple[Paper, Score]]:
        conn = self._ensure_connected()
        rows = conn.execute(
            """
            SELECT p.*, s.novelty, s.evidence, s.velocity, s.personal_fit,
                   s.lab_prior, s.math_penalty, s.final_score,
                   s.why_shown_json, s.updated_at
            FROM papers p
            JOIN scores s ON s.paper_id = p.paper_id
            WHERE p.published_at >= ?
              AND p.enrichment_json IS NOT NULL
              AND s.final_score >= ?
            ORDER BY p.published_at, p.paper_id
            """,
            (_ts(since), min_score),
        ).fetchall()
        return [(self._row_to_paper(row), self._row_to_score(row)) for row in rows]

    # ===== Profiles =====

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> UserProfile:
        return UserProfile(
            user_id=row["user_id"],
            interest_vector=json.loads(row["interest_vector_json"]),
            vector_version=row["vector_version"],
            **json.loads(row["settings_json"]),
        )

    def get_profile(self, user_id: str) -> UserProfile | None:
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT * FROM user_profiles WHERE user_id = ?", (user_id,)
        ).fetchone()
        return self._row_to_profile(row) if row is not None else None

    def save_profile(self, profile: UserProfile) -> UserProfile:
        settings = profile.model_dump(mode="json", exclude=_PROFILE_VECTOR_FIELDS)
        with self._transaction("save_profile") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                INSERT INTO user_profiles (
                    user_id, settings_json, interest_vector_json,
                    vector_version, digest_enabled
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    settings_json = excluded.settings_json,
                    digest_enabled = excluded.digest_enabled
                """,
                (
                    profile.user_id,
                    json.dumps(settings),
                    json.dumps(profile.interest_vector),
                    profile.vector_version,
                    1 if profile.digest_enabled else 0,
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)

        stored = self.get_profile(profile.user_id)
        return stored if stored is not None else profile

    def get_digest_user_ids(self) -> list[str]:
        conn = self._ensure_connected()
        rows = conn.execute(
            "SELECT user_id FROM user_profiles WHERE digest_enabled = 1 ORDER BY user_id"
        ).fetchall()
        return [row["user_id"] for row in rows]

    def compare_and_set_interest_vector(
        self,
        user_id: str,
        expected_version: int,
        vector: Sequence[float],
    ) -> bool:
        with self._transaction("compare_and_set_interest_vector") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                UPDATE user_profiles
                SET interest_vector_json = ?, vector_version = vector_version + 1
                WHERE user_id = ? AND vector_version = ?
                """,
                (json.dumps(list(vector)), user_id, expected_version),
            )
            ctx.add_affected_rows(cursor.rowcount)

        if ctx.affected_rows != 1:
            self._metrics.record_cas_conflict()
            self._log.debug(
                "interest_vector_cas_rejected",
                user_id=user_id,
                expected_version=expected_version,
            )
            return False
        return True

    # ===== Feedback =====

    def append_feedback(self, event: FeedbackEvent) -> FeedbackEvent:
        with self._transaction("append_feedback") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                INSERT INTO feedback (
                    event_id, user_id, paper_id, action, weight, context,
                    created_at, seq
                ) VALUES (
                    ?, ?, ?, ?, ?, ?, ?,
                    (SELECT COALESCE(MAX(seq), 0) + 1 FROM feedback)
                )
                """,
                (
                    event.event_id,
                    event.user_id,
                    event.paper_id,
                    event.action.value,
                    event.weight,
                    event.context,
                    _ts(event.created_at),
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)
        self._metrics.record_feedback_append()
        return event

    def get_feedback_history(
        self,
        user_id: str,
        action: FeedbackAction | None = None,
        limit: int | None = None,
    ) -> list[FeedbackEvent]:
        conn = self._ensure_connected()
        sql = "SELECT * FROM feedback WHERE user_id = ?"
        params: list[object] = [user_id]
        if action is not None:
            sql += " AND action = ?"
            params.append(action.value)
        sql += " ORDER BY created_at DESC, seq DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = conn.execute(sql, params).fetchall()
        return [
            FeedbackEvent(
                event_id=row["event_id"],
                user_id=row["user_id"],
                paper_id=row["paper_id"],
                action=FeedbackAction(row["action"]),
                weight=row["weight"],
                context=row["context"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ===== Briefings =====

    @staticmethod
    def _row_to_briefing(row: sqlite3.Row) -> Briefing:
        return Briefing(
            user_id=row["user_id"],
            date=date.fromisoformat(row["date"]),
            paper_ids=json.loads(row["paper_ids_json"]),
            paper_count=row["paper_count"],
            avg_score=row["avg_score"],
            status=BriefingStatus(row["status"]),
            generated_at=datetime.fromisoformat(row["generated_at"]),
        )

    def upsert_briefing(self, briefing: Briefing) -> Briefing:
        with self._transaction("upsert_briefing") as ctx:
            conn = self._ensure_connected()
            cursor = conn.execute(
                """
                INSERT INTO briefings (
                    user_id, date, paper_ids_json, paper_count, avg_score,
                    status, generated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    paper_ids_json = excluded.paper_ids_json,
                    paper_count = excluded.paper_count,
                    avg_score = excluded.avg_score,
                    status = excluded.status,
                    generated_at = excluded.generated_at
                """,
                (
                    briefing.user_id,
                    briefing.date.isoformat(),
                    json.dumps(briefing.paper_ids),
                    briefing.paper_count,
                    briefing.avg_score,
                    briefing.status.value,
                    _ts(briefing.generated_at),
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)
        self._metrics.record_briefing_upsert()
        return briefing

    def get_briefing(self, user_id: str, day: date) -> Briefing | None:
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT * FROM briefings WHERE user_id = ? AND date = ?",
            (user_id, day.isoformat()),
        ).fetchone()
        return self._row_to_briefing(row) if row is not None else None

    def get_latest_briefing(self, user_id: str) -> Briefing | None:
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT * FROM briefings WHERE user_id = ? ORDER BY date DESC LIMIT 1",
            (user_id,),
        ).fetchone()
        return self._row_to_briefing(row) if row is not None else None

    def count_briefings(self, user_id: str) -> int:
        """Count stored briefings for a user."""
        conn = self._ensure_connected()
        row = conn.execute(
            "SELECT COUNT(*) FROM briefings WHERE user_id = ?", (user_id,)
        ).fetchone()
        return int(row[0])

    # ===== Diagnostics =====

    def get_stats(self) -> dict[str, int]:
        """Get row counts for all tables.

        Returns:
            Dictionary mapping table name to row count.
        """
        conn = self._ensure_connected()
        stats: dict[str, int] = {}
        for table in ("papers", "scores", "user_profiles", "feedback", "briefings"):
            cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
            stats[table] = cursor.fetchone()[0]
        return stats

    def get_schema_version(self) -> int:
        """Get current schema version."""
        return MigrationManager(self._ensure_connected()).get_current_version()
