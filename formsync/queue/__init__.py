"""Queue module for durable, retryable answer saves.

Features:
- One durable snapshot per queue (memory, file or Redis store)
- Retry with capped exponential backoff
- Exhausted jobs kept for manual reset instead of being dropped
"""

from .retry_queue import (
    PersistentRetryQueue,
    RetryPolicy,
    FlushResult,
    MAX_ATTEMPTS,
    BACKOFF_BASE_MS,
    BACKOFF_MAX_MS,
)
from .store import (
    QueueStore,
    MemoryQueueStore,
    FileQueueStore,
    RedisQueueStore,
    DEFAULT_STORAGE_KEY,
)

__all__ = [
    'PersistentRetryQueue',
    'RetryPolicy',
    'FlushResult',
    'MAX_ATTEMPTS',
    'BACKOFF_BASE_MS',
    'BACKOFF_MAX_MS',
    'QueueStore',
    'MemoryQueueStore',
    'FileQueueStore',
    'RedisQueueStore',
    'DEFAULT_STORAGE_KEY',
]
