"""Queue inspection and manual retry endpoints."""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from formsync.agent import SyncAgent, get_agent

router = APIRouter()
logger = logging.getLogger(__name__)


class RetryRequest(BaseModel):
    """Manual retry. reset_exhausted gives jobs that hit the retry cap a fresh budget."""
    reset_exhausted: bool = False
    job_ids: Optional[list[str]] = None


@router.get("")
async def get_queue_state(agent: SyncAgent = Depends(get_agent)):
    """Pending saves with their retry state, for the "N pending saves" indicator."""
    now = agent.clock.now()
    max_attempts = agent.queue.policy.max_attempts
    jobs = await agent.queue.jobs()

    return {
        "online": agent.connectivity.is_online(),
        "pending": len(jobs),
        "exhausted": sum(1 for job in jobs if job.attempts >= max_attempts),
        "last_saved": agent.scheduler.last_saved,
        "jobs": [
            {
                "id": job.id,
                "resource_id": job.resource_id,
                "attempts": job.attempts,
                "next_attempt_at": job.next_attempt_at,
                "state": job.state(now, max_attempts).value,
                "last_error": job.last_error,
            }
            for job in jobs
        ],
    }


@router.post("/flush")
async def flush_queue(agent: SyncAgent = Depends(get_agent)):
    """Run one flush pass now."""
    result = await agent.scheduler.flush_queue()
    return {"result": result.to_dict(), "pending": agent.scheduler.pending_count}


@router.post("/retry")
async def retry_queue(request: Optional[RetryRequest] = None, agent: SyncAgent = Depends(get_agent)):
    """Manual retry. Without reset_exhausted, jobs past the retry cap stay skipped."""
    request = request or RetryRequest()
    reset = 0
    if request.reset_exhausted:
        reset = await agent.queue.reset_exhausted(request.job_ids)
    result = await agent.scheduler.flush_queue()
    return {"reset": reset, "result": result.to_dict(), "pending": agent.scheduler.pending_count}


@router.delete("/{job_id}")
async def discard_job(job_id: str, agent: SyncAgent = Depends(get_agent)):
    """Give up on a queued save."""
    if not await agent.queue.discard(job_id):
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    pending = await agent.scheduler.refresh_pending()
    return {"discarded": job_id, "pending": pending}
