"""ARQ worker for analytics summary refreshes."""

import uuid

from arq import Retry, cron
from libs.common.arq_config import get_redis_settings
from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger
from libs.common.metrics import ANALYTICS_REFRESH

logger = get_logger(__name__)
settings = get_settings()


async def refresh_card_summary(ctx: dict, card_id: str):
    from services.analytics_service.tasks import refresh_one

    try:
        await refresh_one(uuid.UUID(card_id))
    except Exception as exc:
        job_try = ctx.get("job_try", 1)
        if job_try < settings.ANALYTICS_REFRESH_MAX_TRIES:
            logger.warning(
                "Refresh for card %s failed (try %d), retrying", card_id, job_try
            )
            raise Retry(defer=job_try * 5) from exc
        ANALYTICS_REFRESH.labels(outcome="failed").inc()
        logger.exception("Refresh for card %s gave up after %d tries", card_id, job_try)
        return
    ANALYTICS_REFRESH.labels(outcome="completed").inc()


async def task_refresh_stale_summaries(ctx: dict):
    from services.analytics_service.tasks import refresh_stale_summaries

    logger.info("Running: refresh_stale_summaries")
    await refresh_stale_summaries()


async def startup(ctx: dict):
    configure_logging()


class WorkerSettings:
    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [refresh_card_summary, task_refresh_stale_summaries]

    cron_jobs = [
        cron(task_refresh_stale_summaries, hour={2}, minute={30}),
    ]

    max_tries = settings.ANALYTICS_REFRESH_MAX_TRIES
    # Results are not kept so the per-card job id frees up once a refresh ends
    keep_result = 0
