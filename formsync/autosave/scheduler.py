"""Debounced autosave with queue fallback.

Each mutation of the answer set restarts a quiet-period timer. When it fires,
the current answers are submitted directly; if that fails the save is handed
to the PersistentRetryQueue. The queue is flushed on startup (when online)
and whenever connectivity comes back.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from formsync.clock import AsyncioClock, Clock, TimerHandle
from formsync.connectivity import ConnectivityProbe
from formsync.models import Answer
from formsync.queue import FlushResult, PersistentRetryQueue
from formsync.transport import NetworkTransport

logger = logging.getLogger(__name__)

DEBOUNCE_MS = 2000


@dataclass
class AutosaveState:
    """Caller-observable signals."""
    last_saved: Optional[float] = None  # epoch ms of the last direct save
    pending_count: int = 0
    exhausted_count: int = 0


@dataclass
class SaveOutcome:
    success: bool
    error: Optional[Exception] = None
    job_id: Optional[str] = None


StateListener = Callable[[AutosaveState], None]


class AutosaveScheduler:
    """Autosave for one target resource and its answer set."""

    def __init__(
        self,
        queue: PersistentRetryQueue,
        transport: NetworkTransport,
        connectivity: ConnectivityProbe,
        clock: Optional[Clock] = None,
        debounce_ms: float = DEBOUNCE_MS,
        resource_id: Optional[str] = None,
        enabled: bool = True,
    ):
        self.queue = queue
        self.transport = transport
        self.connectivity = connectivity
        self.clock = clock or AsyncioClock()
        self.debounce_ms = debounce_ms
        self.enabled = enabled

        self._resource_id = resource_id
        self._answers: dict[str, Any] = {}
        self._timer: Optional[TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: list[StateListener] = []
        self.state = AutosaveState()

    # ==================== Signals ====================

    @property
    def last_saved(self) -> Optional[float]:
        return self.state.last_saved

    @property
    def pending_count(self) -> int:
        return self.state.pending_count

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("Autosave state listener failed")

    async def refresh_pending(self) -> int:
        """Recompute the pending-count signal from the durable queue."""
        jobs = await self.queue.jobs()
        self.state.pending_count = len(jobs)
        self.state.exhausted_count = sum(1 for job in jobs if job.attempts >= self.queue.policy.max_attempts)
        self._emit()
        return self.state.pending_count

    # ==================== Edits & debounce ====================

    @property
    def resource_id(self) -> Optional[str]:
        return self._resource_id

    @property
    def answers(self) -> dict[str, Any]:
        return dict(self._answers)

    @property
    def is_armed(self) -> bool:
        return self._timer is not None

    def _can_arm(self) -> bool:
        return self.enabled and bool(self._resource_id) and bool(self._answers)

    def set_target(self, resource_id: Optional[str]) -> None:
        """Point the scheduler at another resource. Pending timers are dropped."""
        if resource_id != self._resource_id:
            self._cancel_timer()
            self._resource_id = resource_id
            self._answers = {}

    def set_answer(self, key: str, value: Any) -> bool:
        """Record one answer change and restart the debounce timer."""
        self._answers[key] = value
        return self._reschedule()

    def update_answers(self, answers: Mapping[str, Any], replace: bool = False) -> bool:
        """Merge (or replace) answers and restart the debounce timer.

        Returns True if a save is now scheduled.
        """
        if replace:
            self._answers = dict(answers)
        else:
            self._answers.update(answers)
        return self._reschedule()

    def _reschedule(self) -> bool:
        self._cancel_timer()
        if not self._can_arm():
            return False
        self._timer = self.clock.call_later(self.debounce_ms, self._on_timer)
        return True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._spawn(self.save_now())

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ==================== Saving ====================

    async def save_now(self) -> Optional[SaveOutcome]:
        """Submit the current answers directly, falling back to the queue on failure."""
        self._cancel_timer()
        if not self._can_arm():
            return None

        resource_id = self._resource_id
        answers = dict(self._answers)

        try:
            await self.transport.submit(
                resource_id,
                [Answer(question_id=key, value=value) for key, value in answers.items()],
            )
        except Exception as e:
            logger.warning(f"Autosave failed, enqueueing for retry: {e}", extra={"resource_id": resource_id})
            job = await self.queue.enqueue(resource_id, answers)
            await self.refresh_pending()
            return SaveOutcome(success=False, error=e, job_id=job.id)

        self.state.last_saved = self.clock.now()
        logger.debug(f"Autosaved {len(answers)} answers for {resource_id}", extra={"resource_id": resource_id})
        self._emit()
        return SaveOutcome(success=True)

    async def flush_queue(self) -> FlushResult:
        """Flush the retry queue and refresh the pending count (manual retry)."""
        result = await self.queue.flush()
        await self.refresh_pending()
        return result

    def _on_online(self) -> None:
        logger.info("Online - flushing queue")
        self._spawn(self.flush_queue())

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Subscribe to connectivity and flush jobs left over from a previous session."""
        if self._unsubscribe is None:
            self._unsubscribe = self.connectivity.subscribe(self._on_online)
        if self.connectivity.is_online():
            await self.flush_queue()
        else:
            await self.refresh_pending()

    async def drain(self) -> None:
        """Wait for in-flight saves and flushes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.drain()
