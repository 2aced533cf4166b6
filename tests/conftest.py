"""Shared fixtures: virtual clock, manual connectivity, scripted transport."""

from typing import Awaitable, Callable, Optional, Union

import pytest

from formsync.clock import VirtualClock
from formsync.connectivity import ManualConnectivity
from formsync.errors import TransportError
from formsync.models import Answer, ReportHandle
from formsync.queue import MemoryQueueStore, PersistentRetryQueue
from formsync.transport import NetworkTransport


class FakeTransport(NetworkTransport):
    """
    Scripted transport.

    submit_results / status_results are consumed one per call; when a list runs
    out, submit falls back to `fail_submit` and status repeats its last entry.
    Exceptions in the scripts are raised instead of returned.
    """

    def __init__(self, clock: Optional[VirtualClock] = None):
        self.clock = clock
        self.fail_submit = False
        self.submit_results: list[Optional[Exception]] = []
        self.submit_calls: list[tuple[str, list[dict]]] = []
        self.submit_hook: Optional[Callable[[], Awaitable[None]]] = None
        self.status_results: list[Union[ReportHandle, Exception]] = []
        self.status_calls: list[tuple[str, Optional[float]]] = []
        self.create_result: Union[ReportHandle, bytes, None] = None
        self.closed = False

    async def submit(self, resource_id: str, answers: list[Answer]) -> None:
        self.submit_calls.append((resource_id, [answer.to_wire() for answer in answers]))
        if self.submit_hook is not None:
            await self.submit_hook()
        if self.submit_results:
            outcome = self.submit_results.pop(0)
        else:
            outcome = TransportError("Network error") if self.fail_submit else None
        if isinstance(outcome, Exception):
            raise outcome

    async def get_report_status(self, report_id: str) -> ReportHandle:
        self.status_calls.append((report_id, self.clock.now() if self.clock else None))
        if len(self.status_results) > 1:
            outcome = self.status_results.pop(0)
        else:
            outcome = self.status_results[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def create_report(self, resource_id: str) -> Union[ReportHandle, bytes]:
        return self.create_result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def connectivity():
    return ManualConnectivity(online=True)


@pytest.fixture
def transport(clock):
    return FakeTransport(clock)


@pytest.fixture
def store():
    return MemoryQueueStore()


@pytest.fixture
def queue(store, transport, connectivity, clock):
    return PersistentRetryQueue(store, transport, connectivity, clock=clock)
