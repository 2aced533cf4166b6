"""formsync: durable autosave queue and report polling for the forms client."""

from formsync.agent import SyncAgent, build_agent
from formsync.autosave import AutosaveScheduler, AutosaveState
from formsync.clock import AsyncioClock, Clock, VirtualClock
from formsync.connectivity import ConnectivityProbe, HttpConnectivityProbe, ManualConnectivity
from formsync.errors import (
    FormSyncError,
    PollingTimeoutError,
    ReportFailedError,
    ReportFetchError,
    StorageError,
    TransportError,
    UnauthorizedError,
)
from formsync.queue import (
    FileQueueStore,
    FlushResult,
    MemoryQueueStore,
    PersistentRetryQueue,
    RedisQueueStore,
    RetryPolicy,
)
from formsync.reports import ReportPoller
from formsync.transport import HttpTransport, NetworkTransport

__version__ = "0.1.0"

__all__ = [
    "SyncAgent",
    "build_agent",
    "AutosaveScheduler",
    "AutosaveState",
    "AsyncioClock",
    "Clock",
    "VirtualClock",
    "ConnectivityProbe",
    "HttpConnectivityProbe",
    "ManualConnectivity",
    "FormSyncError",
    "PollingTimeoutError",
    "ReportFailedError",
    "ReportFetchError",
    "StorageError",
    "TransportError",
    "UnauthorizedError",
    "FileQueueStore",
    "FlushResult",
    "MemoryQueueStore",
    "PersistentRetryQueue",
    "RedisQueueStore",
    "RetryPolicy",
    "ReportPoller",
    "HttpTransport",
    "NetworkTransport",
]
