"""Queued save job model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .answers import QueuedAnswer


class JobState(str, Enum):
    """Flush-time view of a job, derived from attempts and next_attempt_at."""
    READY = "ready"
    WAITING = "waiting"  # backoff window not elapsed yet
    EXHAUSTED = "exhausted"  # retry cap reached, needs a manual reset


class QueueJob(BaseModel):
    """A pending save of one answer set for one resource."""
    id: str
    resource_id: str
    payload: list[QueuedAnswer] = []
    attempts: int = Field(default=0, ge=0)
    next_attempt_at: Optional[float] = None  # epoch ms, set after a failed attempt
    created_at: Optional[float] = None
    last_error: Optional[str] = None

    def state(self, now: float, max_attempts: int) -> JobState:
        # Backoff is checked first so a job that just hit the cap still reports "waiting"
        if self.next_attempt_at is not None and now < self.next_attempt_at:
            return JobState.WAITING
        if self.attempts >= max_attempts:
            return JobState.EXHAUSTED
        return JobState.READY
