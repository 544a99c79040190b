"""
Maintenance routes for enqueueing and monitoring background jobs.
Admin only.
"""

from fastapi import APIRouter, status

from storefront.api.deps import CurrentAdmin
from storefront.workers.queue import enqueue_task, get_job_status
from storefront.workers.tasks import purge_expired_refresh_tokens_task

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/refresh-tokens/purge", status_code=status.HTTP_202_ACCEPTED)
def purge_refresh_tokens(admin: CurrentAdmin) -> dict:
    """
    Enqueue a sweep of expired refresh token records.

    Returns:
        Job information including job_id
    """
    job_id = enqueue_task(purge_expired_refresh_tokens_task)
    return {
        "message": "Job enqueued successfully",
        "job_id": job_id,
        "task": "purge_expired_refresh_tokens",
    }


@router.get("/jobs/{job_id}")
def get_job(job_id: str, admin: CurrentAdmin) -> dict:
    """Get the status of a maintenance job."""
    return get_job_status(job_id)
