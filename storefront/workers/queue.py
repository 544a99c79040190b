"""
RQ queue configuration and utilities.
Provides Redis connection and queue instances for maintenance jobs.
"""

from datetime import datetime
from typing import Any, Callable

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job

from storefront.core.config import settings
from storefront.core.errors import TransientError
from storefront.core.logging import get_logger

logger = get_logger(__name__)

# Redis connection for RQ; connects lazily on first command
redis_conn = Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    socket_connect_timeout=settings.DB_TIMEOUT_SECONDS,
    socket_timeout=settings.DB_TIMEOUT_SECONDS,
)

maintenance_queue = Queue("maintenance", connection=redis_conn)


def enqueue_task(func: Callable[..., Any], *args: Any, **kwargs: Any) -> str:
    """
    Enqueue a background task.

    Args:
        func: Function to execute
        *args: Positional arguments for the function
        **kwargs: Keyword arguments for the function

    Returns:
        Job ID

    Raises:
        TransientError: If Redis is unreachable
    """
    try:
        job = maintenance_queue.enqueue(func, *args, **kwargs)
    except RedisError as e:
        logger.error(f"Could not enqueue {func.__name__}: {e.__class__.__name__}")
        raise TransientError() from e
    logger.info(f"Enqueued task {func.__name__} with job ID: {job.id}")
    return job.id


def get_job_status(job_id: str) -> dict[str, Any]:
    """
    Get the status of a background job.

    Args:
        job_id: Job ID to check

    Returns:
        Job status information
    """
    try:
        job = Job.fetch(job_id, connection=redis_conn)
    except NoSuchJobError:
        return {"job_id": job_id, "status": "not_found"}
    except RedisError as e:
        logger.error(f"Error fetching job {job_id}: {e.__class__.__name__}")
        raise TransientError() from e

    return {
        "job_id": job.id,
        "status": job.get_status(),
        "result": job.return_value() if job.is_finished else None,
        "error": "Job failed" if job.is_failed else None,
    }


def schedule_task(func: Callable[..., Any], run_at: datetime, job_id: str) -> str:
    """
    Schedule a background task to run at a given time.

    Scheduling the same job ID twice keeps a single job. Workers must run
    with ``--with-scheduler`` to pick scheduled jobs up.

    Raises:
        TransientError: If Redis is unreachable
    """
    try:
        job = maintenance_queue.enqueue_at(run_at, func, job_id=job_id)
    except RedisError as e:
        logger.error(f"Could not schedule {func.__name__}: {e.__class__.__name__}")
        raise TransientError() from e
    logger.info(f"Scheduled task {func.__name__} for {run_at.isoformat()} with job ID: {job.id}")
    return job.id
