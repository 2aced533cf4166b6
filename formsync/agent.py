"""Wiring of store, transport, connectivity, queue, scheduler and poller."""

import logging
from typing import Optional

from formsync.autosave import AutosaveScheduler
from formsync.clock import AsyncioClock, Clock
from formsync.config import Settings, get_settings
from formsync.connectivity import ConnectivityProbe, HttpConnectivityProbe
from formsync.queue import (
    FileQueueStore,
    MemoryQueueStore,
    PersistentRetryQueue,
    QueueStore,
    RedisQueueStore,
    RetryPolicy,
)
from formsync.reports import ReportPoller
from formsync.transport import HttpTransport, NetworkTransport

logger = logging.getLogger(__name__)


class SyncAgent:
    """The resilience subsystem for one client session."""

    def __init__(
        self,
        transport: NetworkTransport,
        store: QueueStore,
        connectivity: ConnectivityProbe,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self.store = store
        self.connectivity = connectivity
        self.clock = clock or AsyncioClock()

        self.queue = PersistentRetryQueue(
            store,
            transport,
            connectivity,
            clock=self.clock,
            policy=RetryPolicy(
                max_attempts=self.settings.max_attempts,
                base_delay_ms=self.settings.backoff_base_ms,
                max_delay_ms=self.settings.backoff_max_ms,
            ),
        )
        self.scheduler = AutosaveScheduler(
            self.queue,
            transport,
            connectivity,
            clock=self.clock,
            debounce_ms=self.settings.debounce_ms,
        )
        self.poller = ReportPoller(
            transport,
            clock=self.clock,
            interval_ms=self.settings.poll_interval_ms,
            timeout_ms=self.settings.poll_timeout_ms,
            max_consecutive_errors=self.settings.poll_max_consecutive_errors,
        )
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        await self.connectivity.start()
        await self.scheduler.start()
        self._started = True
        logger.info(f"Sync agent started ({await self.queue.length()} jobs pending)")

    async def stop(self) -> None:
        if not self._started:
            return
        await self.scheduler.stop()
        await self.connectivity.stop()
        await self.transport.close()
        await self.store.close()
        self._started = False
        logger.info("Sync agent stopped")


def build_store(settings: Settings) -> QueueStore:
    """Create the queue store selected by settings.queue_backend."""
    backend = settings.queue_backend.lower()
    if backend == "redis":
        return RedisQueueStore(settings.redis_url, key=settings.queue_storage_key,
                               fail_open=settings.storage_fail_open)
    if backend == "memory":
        return MemoryQueueStore(key=settings.queue_storage_key, fail_open=settings.storage_fail_open)
    if backend == "file":
        return FileQueueStore(settings.queue_file_path, key=settings.queue_storage_key,
                              fail_open=settings.storage_fail_open)
    raise ValueError(f"Unknown queue backend: {settings.queue_backend}")


def build_agent(settings: Optional[Settings] = None) -> SyncAgent:
    """Create an agent talking HTTP to the configured backend."""
    settings = settings or get_settings()
    clock = AsyncioClock()
    transport = HttpTransport(
        settings.api_base_url,
        token=settings.api_token,
        timeout_seconds=settings.request_timeout_seconds,
    )
    connectivity = HttpConnectivityProbe(
        settings.health_url,
        interval_seconds=settings.connectivity_check_interval_seconds,
        clock=clock,
    )
    return SyncAgent(transport, build_store(settings), connectivity, clock=clock, settings=settings)


# Global agent instance, created lazily
_agent: Optional[SyncAgent] = None


def get_agent() -> SyncAgent:
    """Get the agent instance (for dependency injection)."""
    global _agent
    if _agent is None:
        _agent = build_agent()
    return _agent


def set_agent(agent: Optional[SyncAgent]) -> None:
    """Replace the global agent (useful for testing)."""
    global _agent
    _agent = agent
