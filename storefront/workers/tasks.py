"""
Background tasks using RQ (Redis Queue).
Workers run outside the API process and open their own database engine.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlmodel import Session

from storefront.core.config import settings
from storefront.core.errors import TransientError
from storefront.core.logging import get_logger
from storefront.core.security import utcnow
from storefront.db.session import create_db_engine
from storefront.services.token_service import TokenService
from storefront.workers.queue import schedule_task

logger = get_logger(__name__)

SWEEP_JOB_PREFIX = "purge-expired-refresh-tokens"


def schedule_refresh_token_sweep(now: Optional[datetime] = None) -> Optional[str]:
    """
    Schedule the next sweep at the start of the next interval slot.

    The job ID is derived from the slot, so every API process and every
    finished sweep schedule the same job instead of starting parallel chains.

    Returns:
        Job ID, or None when the scheduled sweep is disabled
    """
    interval = settings.REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS
    if interval <= 0:
        return None

    now = now or utcnow()
    slot = int(now.timestamp()) // interval + 1
    run_at = datetime.fromtimestamp(slot * interval, tz=timezone.utc)
    return schedule_task(purge_expired_refresh_tokens_task, run_at, job_id=f"{SWEEP_JOB_PREFIX}-{slot}")


def purge_expired_refresh_tokens_task() -> dict[str, Any]:
    """
    Sweep refresh token records past their hard expiry for all users,
    then schedule the next sweep.

    Returns:
        Task result dictionary
    """
    engine = create_db_engine(echo=False)
    try:
        with Session(engine) as session:
            purged = TokenService.purge_expired(session)
    finally:
        engine.dispose()

    logger.info(f"Refresh token sweep removed {purged} record(s)")

    try:
        next_job_id = schedule_refresh_token_sweep()
    except TransientError:
        logger.warning("Next refresh token sweep could not be scheduled")
        next_job_id = None

    return {
        "task": "purge_expired_refresh_tokens",
        "purged": purged,
        "status": "completed",
        "next_job_id": next_job_id,
    }
