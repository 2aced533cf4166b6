"""Autosave endpoints: answer edits from the form UI."""

from typing import Any
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from formsync.agent import SyncAgent, get_agent

router = APIRouter()
logger = logging.getLogger(__name__)


class AnswersUpdate(BaseModel):
    answers: dict[str, Any]
    replace: bool = False


@router.put("/{resource_id}", status_code=202)
async def update_answers(resource_id: str, update: AnswersUpdate, agent: SyncAgent = Depends(get_agent)):
    """Record edits; the save runs once the debounce window passes without new edits."""
    scheduler = agent.scheduler
    scheduler.set_target(resource_id)
    scheduled = scheduler.update_answers(update.answers, replace=update.replace)
    return {
        "resource_id": resource_id,
        "scheduled": scheduled,
        "debounce_ms": scheduler.debounce_ms,
        "pending": scheduler.pending_count,
    }


@router.post("/{resource_id}/save")
async def save_now(resource_id: str, agent: SyncAgent = Depends(get_agent)):
    """Skip the debounce and save the current answers immediately."""
    scheduler = agent.scheduler
    scheduler.set_target(resource_id)
    outcome = await scheduler.save_now()
    return {
        "resource_id": resource_id,
        "saved": bool(outcome and outcome.success),
        "queued_job_id": outcome.job_id if outcome else None,
        "last_saved": scheduler.last_saved,
        "pending": scheduler.pending_count,
    }
