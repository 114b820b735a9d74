"""Daily digest job over all digest-enabled users."""

from datetime import datetime

import structlog

from paperfeed.config import ConfigLoader, RankingConfig
from paperfeed.observability import bind_user_context, clear_user_context, configure_logging
from paperfeed.recommender.composer import DigestComposer
from paperfeed.recommender.metrics import DigestMetrics
from paperfeed.recommender.models import DigestJobResult
from paperfeed.settings import AppSettings, get_settings
from paperfeed.store import PaperFeedStore, SqliteStore


logger = structlog.get_logger()


def generate_daily_digests(
    store: PaperFeedStore,
    config: RankingConfig | None = None,
    now: datetime | None = None,
) -> DigestJobResult:
    """Generate today's briefing for every digest-enabled user.

    A failure for one user is logged and counted; the remaining users
    are still processed.

    Args:
        store: Persistence backend.
        config: Ranking configuration (digest section is used).
        now: Reference time for every user in this run.

    Returns:
        DigestJobResult with success and failure counts.
    """
    config = config or RankingConfig()
    composer = DigestComposer(store, config.digest, now=now)
    log = logger.bind(component="recommender", subcomponent="job")

    user_ids = store.get_digest_user_ids()
    log.info("digest_job_started", users=len(user_ids))

    result = DigestJobResult()
    for user_id in user_ids:
        bind_user_context(user_id)
        try:
            composer.generate_daily_digest(user_id)
            result.succeeded += 1
        except Exception:  # noqa: BLE001
            log.warning("digest_generation_failed", user_id=user_id, exc_info=True)
            result.failed += 1
            result.failed_user_ids.append(user_id)
        finally:
            clear_user_context()

    log.info(
        "digest_job_complete",
        succeeded=result.succeeded,
        failed=result.failed,
        total=result.total,
        metrics=DigestMetrics.get_instance().to_dict(),
    )
    return result


def run_daily_digests(settings: AppSettings | None = None) -> DigestJobResult:
    """Run the daily digest job against the configured SQLite database.

    Args:
        settings: Application settings; read from the environment if None.

    Returns:
        DigestJobResult for the run.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    config = ConfigLoader().load(settings.config_path)
    with SqliteStore(settings.db_path) as store:
        return generate_daily_digests(store, config)
