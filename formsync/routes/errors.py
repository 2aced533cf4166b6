"""FastAPI exception handlers for formsync errors.

Response format:
    {
        "error": "ErrorClassName",
        "detail": "Human-readable error message",
        "details": {...}
    }
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from formsync.errors import (
    FormSyncError,
    PollingTimeoutError,
    ReportFailedError,
    ReportFetchError,
    StorageError,
    TransportError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES: dict[type[FormSyncError], int] = {
    UnauthorizedError: 401,
    ReportFailedError: 502,
    ReportFetchError: 502,
    PollingTimeoutError: 504,
    TransportError: 503,
    StorageError: 500,
    FormSyncError: 500,
}


def get_status_code_for_error(error: FormSyncError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_class):
            return status_code
    return 500


def build_error_response(error: FormSyncError) -> dict:
    return {
        "error": error.__class__.__name__,
        "detail": error.message,
        "details": error.details,
    }


async def formsync_error_handler(request: Request, exc: FormSyncError) -> JSONResponse:
    status_code = get_status_code_for_error(exc)
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=status_code, content=build_error_response(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Map FormSyncError subclasses to HTTP responses."""
    app.add_exception_handler(FormSyncError, formsync_error_handler)
