"""Report generation polling."""

from .poller import ReportPoller, ProgressCallback, DEFAULT_INTERVAL_MS, DEFAULT_TIMEOUT_MS

__all__ = ['ReportPoller', 'ProgressCallback', 'DEFAULT_INTERVAL_MS', 'DEFAULT_TIMEOUT_MS']
