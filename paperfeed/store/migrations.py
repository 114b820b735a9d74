"""SQLite schema migrations for the paperfeed store."""

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from paperfeed.store.errors import MigrationError


logger = structlog.get_logger()

CURRENT_VERSION = 1


@dataclass(frozen=True)
class Migration:
    """A database migration.

    Attributes:
        version: Target version after applying this migration.
        description: Human-readable description.
        up_sql: SQL to apply the migration.
    """

    version: int
    description: str
    up_sql: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Papers, scores, profiles, feedback and briefings",
        up_sql="""
CREATE TABLE IF NOT EXISTS papers (
    paper_id TEXT PRIMARY KEY,
    arxiv_id TEXT NOT NULL,
    title TEXT NOT NULL,
    abstract TEXT NOT NULL,
    authors_json TEXT NOT NULL,
    affiliations_json TEXT NOT NULL,
    published_at TEXT NOT NULL,
    status TEXT NOT NULL,
    enrichment_json TEXT
);
CREATE INDEX IF NOT EXISTS idx_papers_published_at ON papers(published_at);
CREATE INDEX IF NOT EXISTS idx_papers_status ON papers(status);

-- One live score per paper
CREATE TABLE IF NOT EXISTS scores (
    paper_id TEXT PRIMARY KEY REFERENCES papers(paper_id) ON DELETE CASCADE,
    novelty REAL NOT NULL,
    evidence REAL NOT NULL,
    velocity REAL NOT NULL,
    personal_fit REAL NOT NULL,
    lab_prior REAL NOT NULL,
    math_penalty REAL NOT NULL,
    final_score REAL NOT NULL,
    why_shown_json TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_scores_final_score ON scores(final_score);

-- Interest vector is versioned for compare-and-swap updates
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id TEXT PRIMARY KEY,
    settings_json TEXT NOT NULL,
    interest_vector_json TEXT NOT NULL,
    vector_version INTEGER NOT NULL DEFAULT 0,
    digest_enabled INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS feedback (
    event_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    paper_id TEXT NOT NULL,
    action TEXT NOT NULL,
    weight REAL NOT NULL,
    context TEXT,
    created_at TEXT NOT NULL,
    seq INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_feedback_user ON feedback(user_id, seq);

CREATE TABLE IF NOT EXISTS briefings (
    user_id TEXT NOT NULL,
    date TEXT NOT NULL,
    paper_ids_json TEXT NOT NULL,
    paper_count INTEGER NOT NULL,
    avg_score REAL NOT NULL,
    status TEXT NOT NULL,
    generated_at TEXT NOT NULL,
    PRIMARY KEY (user_id, date)
);
""",
    ),
]


def get_migrations_to_apply(current_version: int) -> list[Migration]:
    """Get migrations newer than ``current_version``, in order."""
    return [m for m in MIGRATIONS if m.version > current_version]


class MigrationManager:
    """Manages SQLite schema migrations."""

    VERSION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT
);
"""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._log = logger.bind(component="store", operation="migration")

    def get_current_version(self) -> int:
        """Get the current schema version, or 0 if nothing was applied."""
        self._conn.execute(self.VERSION_TABLE_SQL)
        self._conn.commit()
        row = self._conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def apply_migrations(self) -> list[int]:
        """Apply all pending migrations.

        Returns:
            Versions that were applied.

        Raises:
            MigrationError: If a migration script fails.
        """
        pending = get_migrations_to_apply(self.get_current_version())
        applied: list[int] = []

        for migration in pending:
            self._log.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                self._conn.executescript(migration.up_sql)
                self._conn.execute(
                    """
                    INSERT INTO schema_version (version, applied_at, description)
                    VALUES (?, ?, ?)
                    """,
                    (
                        migration.version,
                        datetime.now(UTC).isoformat(),
                        migration.description,
                    ),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                self._log.error(
                    "migration_failed", version=migration.version, error=str(e)
                )
                raise MigrationError(migration.version, str(e)) from e

            applied.append(migration.version)

        return applied
