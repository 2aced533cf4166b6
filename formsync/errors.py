"""Exception hierarchy for the form sync client.

Transient failures (TransportError) are absorbed by the autosave scheduler and
the retry queue. Only the report poller raises fatal errors to its caller.
"""

from typing import Any, Optional


class FormSyncError(Exception):
    """Base exception for all formsync errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error.
        cause: Original exception that caused this error.
    """

    default_message: str = "Form sync error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        parts = [f"{self.__class__.__name__}({self.message!r}"]
        if self.details:
            parts.append(f", details={self.details!r}")
        if self.cause:
            parts.append(f", cause={self.cause!r}")
        parts.append(")")
        return "".join(parts)


class TransportError(FormSyncError):
    """A transport call failed; safe to retry later."""

    default_message = "Transport request failed"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class UnauthorizedError(FormSyncError):
    """The backend rejected the credentials (HTTP 401)."""

    default_message = "Unauthorized"


class ReportFailedError(FormSyncError):
    """Report generation reached a terminal failure state."""

    default_message = "Report generation failed"

    def __init__(self, report_id: str, status: Optional[str] = None, **kwargs):
        super().__init__(details={"report_id": report_id, "status": status}, **kwargs)
        self.report_id = report_id
        self.status = status


class PollingTimeoutError(FormSyncError):
    """No terminal report state was reached before the deadline."""

    default_message = "Polling timeout: Report generation took too long"

    def __init__(self, report_id: str, elapsed_ms: float, **kwargs):
        super().__init__(details={"report_id": report_id, "elapsed_ms": elapsed_ms}, **kwargs)
        self.report_id = report_id
        self.elapsed_ms = elapsed_ms


class ReportFetchError(FormSyncError):
    """Too many consecutive status fetches failed (only when a cap is configured)."""

    default_message = "Report status could not be fetched"


class StorageError(FormSyncError):
    """Reading or writing the durable queue store failed."""

    default_message = "Queue storage failure"
