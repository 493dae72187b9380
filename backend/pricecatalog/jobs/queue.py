from __future__ import annotations

import datetime
import logging

from redis import Redis
from rq import Queue
from rq.job import Job

from pricecatalog.config.settings import ReindexSettings, settings
from pricecatalog.jobs.reindex import run_product_reindex


logger = logging.getLogger(__name__)


def get_redis_connection() -> Redis:
    return Redis.from_url(settings.redis_url)


def get_queue(name: str | None = None) -> Queue:
    queue_name = name or settings.reindex_queue_name
    return Queue(name=queue_name, connection=get_redis_connection())


def enqueue_reindex(currency: str | None = None) -> Job:
    queue = get_queue()
    return queue.enqueue(run_product_reindex, currency=currency)


def run_recurring_reindex(currency: str | None = None) -> dict:
    try:
        return run_product_reindex(currency)
    finally:
        schedule_product_reindexing()


_RECURRING_FUNC_NAME = f"{run_recurring_reindex.__module__}.{run_recurring_reindex.__qualname__}"


def _scheduled_reindex_jobs(queue: Queue) -> list[Job]:
    registry = queue.scheduled_job_registry
    jobs: list[Job] = []
    for job_id in registry.get_job_ids():
        job = queue.fetch_job(job_id)
        if job is not None and job.func_name == _RECURRING_FUNC_NAME:
            jobs.append(job)
    return jobs


def schedule_product_reindexing(reindex: ReindexSettings | None = None) -> Job | None:
    """Keep exactly one recurring re-index job scheduled while re-indexing is enabled."""
    reindex = reindex or settings.reindex
    queue = get_queue()
    scheduled = _scheduled_reindex_jobs(queue)

    if not reindex.enabled:
        for job in scheduled:
            queue.scheduled_job_registry.remove(job, delete_job=True)
        if scheduled:
            logger.info("unscheduled %d re-index jobs", len(scheduled))
        return None

    if scheduled:
        return scheduled[0]

    job = queue.enqueue_in(
        datetime.timedelta(minutes=reindex.interval_minutes),
        run_recurring_reindex,
        currency=settings.default_currency,
    )
    logger.info("scheduled re-index in %d minutes", reindex.interval_minutes)
    return job
