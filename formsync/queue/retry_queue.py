"""Durable retry queue for answer saves that could not be delivered.

Features:
- Jobs persisted as one snapshot in a QueueStore (survives restarts)
- Exponential backoff with a cap, enforced through next_attempt_at
- Retry cap: exhausted jobs stay visible until explicitly reset or discarded
- Flush passes are no-ops while offline
- Flush, enqueue and reset are serialized so no pass can lose an update
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Iterable, Mapping, Optional, Union

from formsync.clock import AsyncioClock, Clock
from formsync.connectivity import ConnectivityProbe
from formsync.lib.json_logger import job_logger, log_duration
from formsync.lib.pii_redactor import PIIRedactor
from formsync.models import JobState, QueueJob, QueuedAnswer, answers_from_mapping, to_wire_answers
from formsync.transport import NetworkTransport
from .store import QueueStore

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
BACKOFF_BASE_MS = 1000
BACKOFF_MAX_MS = 60000


@dataclass
class RetryPolicy:
    """Retry policy configuration."""
    max_attempts: int = MAX_ATTEMPTS
    base_delay_ms: int = BACKOFF_BASE_MS
    max_delay_ms: int = BACKOFF_MAX_MS
    exponential_base: float = 2.0

    def get_delay(self, attempts: int) -> float:
        """Backoff after the given number of failed attempts (1 -> 2s, 2 -> 4s, ...)."""
        return min(self.max_delay_ms, (self.exponential_base ** attempts) * self.base_delay_ms)


@dataclass
class FlushResult:
    """Outcome counts of one flush pass."""
    skipped_offline: bool = False
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    waiting: int = 0
    exhausted: int = 0
    remaining: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class PersistentRetryQueue:
    """Single-consumer, client-local queue of failed saves."""

    def __init__(
        self,
        store: QueueStore,
        transport: NetworkTransport,
        connectivity: ConnectivityProbe,
        clock: Optional[Clock] = None,
        policy: Optional[RetryPolicy] = None,
    ):
        self.store = store
        self.transport = transport
        self.connectivity = connectivity
        self.clock = clock or AsyncioClock()
        self.policy = policy or RetryPolicy()
        self._lock = asyncio.Lock()

    async def enqueue(
        self,
        resource_id: str,
        payload: Union[Iterable[QueuedAnswer], Mapping[str, Any]],
    ) -> QueueJob:
        """Append a new job with a fresh id and zero attempts."""
        if isinstance(payload, Mapping):
            items = answers_from_mapping(payload)
        else:
            items = list(payload)

        job = QueueJob(
            id=str(uuid.uuid4()),
            resource_id=resource_id,
            payload=items,
            attempts=0,
            created_at=self.clock.now(),
        )
        log = job_logger(job.id, resource_id)
        async with self._lock:
            jobs = await self.store.load_for_update()
            if jobs is None:
                log.error(f"Queue record unreadable - job {job.id} not persisted")
                return job
            jobs.append(job)
            await self.store.save(jobs)

        log.info(
            f"Enqueued job {job.id} for resource {resource_id}",
            extra={"answers": PIIRedactor.redact_answers({item.key: item.value for item in items})},
        )
        return job

    async def length(self) -> int:
        """Number of jobs currently in the durable store."""
        return len(await self.store.load())

    async def jobs(self) -> list[QueueJob]:
        """Snapshot of the stored jobs in queue order."""
        return await self.store.load()

    async def exhausted_count(self) -> int:
        return sum(1 for job in await self.store.load() if job.attempts >= self.policy.max_attempts)

    async def flush(self) -> FlushResult:
        """
        Run one pass over a snapshot of the queue.

        Ready jobs are submitted; successes are dropped and failures get
        attempts += 1 and a new backoff deadline. Waiting and exhausted jobs are
        carried over untouched. The resulting list replaces the stored snapshot.
        Never raises for per-job transport failures.
        """
        result = FlushResult()

        async with self._lock:
            # Checked under the lock: connectivity may drop while a pass waits its turn
            if not self.connectivity.is_online():
                logger.info("Offline - skipping queue flush")
                result.skipped_offline = True
                return result

            queue = await self.store.load()
            if not queue:
                logger.debug("Queue is empty")
                return result

            logger.info(f"Flushing {len(queue)} jobs")
            updated: list[QueueJob] = []

            with log_duration(logger, "Queue flush complete") as fields:
                for job in queue:
                    kept = await self._process(job, result)
                    if kept is not None:
                        updated.append(kept)

                await self.store.save(updated)
                result.remaining = len(updated)
                fields.update(pending=result.remaining, status="flushed")

        return result

    async def _process(self, job: QueueJob, result: FlushResult) -> Optional[QueueJob]:
        """Handle one job of a flush pass. Returns the job to keep, or None once delivered."""
        log = job_logger(job.id, job.resource_id)
        state = job.state(self.clock.now(), self.policy.max_attempts)

        if state == JobState.WAITING:
            log.debug(f"Skipping job {job.id} - waiting for backoff", extra={"attempts": job.attempts})
            result.waiting += 1
            return job

        if state == JobState.EXHAUSTED:
            log.warning(f"Job {job.id} exceeded max attempts ({self.policy.max_attempts}) - marked as failed",
                        extra={"attempts": job.attempts})
            result.exhausted += 1
            return job

        result.attempted += 1
        try:
            await self.transport.submit(job.resource_id, to_wire_answers(job.payload))
        except Exception as e:
            result.failed += 1
            return self._record_failure(job, e)

        log.info(f"Successfully saved job {job.id} for resource {job.resource_id}")
        result.succeeded += 1
        return None

    def _record_failure(self, job: QueueJob, error: Exception) -> QueueJob:
        attempts = job.attempts + 1
        backoff_ms = self.policy.get_delay(attempts)
        failed = job.model_copy(update={
            "attempts": attempts,
            "next_attempt_at": self.clock.now() + backoff_ms,
            "last_error": str(error) or type(error).__name__,
        })
        log = job_logger(job.id, job.resource_id)
        extra = {"attempts": attempts, "backoff_ms": backoff_ms}
        if attempts >= self.policy.max_attempts:
            log.error(f"Job {job.id} failed after {attempts} attempts - marked as failed: {error}", extra=extra)
        else:
            log.warning(
                f"Job {job.id} failed (attempt {attempts}/{self.policy.max_attempts}) - retrying in {backoff_ms:.0f}ms: {error}",
                extra=extra,
            )
        return failed

    async def reset_exhausted(self, job_ids: Optional[Iterable[str]] = None) -> int:
        """
        Give exhausted jobs a fresh retry budget.

        Clears attempts and the backoff deadline of every exhausted job (or of
        the given ids only). Returns the number of jobs reset.
        """
        wanted = set(job_ids) if job_ids is not None else None
        reset = 0
        async with self._lock:
            jobs = await self.store.load()
            for index, job in enumerate(jobs):
                if job.attempts < self.policy.max_attempts:
                    continue
                if wanted is not None and job.id not in wanted:
                    continue
                jobs[index] = job.model_copy(update={"attempts": 0, "next_attempt_at": None})
                reset += 1
            if reset:
                await self.store.save(jobs)

        if reset:
            logger.info(f"Reset {reset} exhausted jobs")
        return reset

    async def retry_exhausted(self, job_ids: Optional[Iterable[str]] = None) -> FlushResult:
        """Reset exhausted jobs and flush immediately."""
        await self.reset_exhausted(job_ids)
        return await self.flush()

    async def discard(self, job_id: str) -> bool:
        """Drop a job without delivering it. Returns False if it was not queued."""
        async with self._lock:
            jobs = await self.store.load()
            kept = [job for job in jobs if job.id != job_id]
            if len(kept) == len(jobs):
                return False
            await self.store.save(kept)

        logger.warning(f"Discarded job {job_id}", extra={"job_id": job_id})
        return True
