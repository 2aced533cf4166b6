"""Structured JSON logging.

One JSON object per line on stdout. Queue and report code attaches its
identifiers (job_id, resource_id, report_id, ...) through `extra` or a
context adapter so the agent's log can be filtered per save or per report.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from .pii_redactor import PIIRedactor

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname', 'levelno',
    'lineno', 'module', 'msecs', 'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName', 'taskName',
    'message', 'asctime',
})

STANDARD_FIELDS = (
    "job_id", "resource_id", "report_id", "attempts", "backoff_ms",
    "elapsed_ms", "status", "pending", "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line, with PII redacted from strings."""

    def __init__(self, redact_pii: bool = True):
        super().__init__()
        self.redact_pii = redact_pii

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": self._redact(record.getMessage()),
        }

        # Known identifiers first so they line up across entries
        entry.update({
            field: getattr(record, field)
            for field in STANDARD_FIELDS
            if getattr(record, field, None) is not None
        })

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in STANDARD_FIELDS or key.startswith('_'):
                continue
            entry[key] = self._redact(value)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": self._redact(str(exc)),
                "traceback": self._redact(self.formatException(record.exc_info)),
            }

        return json.dumps(entry, default=str, ensure_ascii=False)

    def _redact(self, value: Any) -> Any:
        if self.redact_pii and isinstance(value, str):
            return PIIRedactor.redact_for_logging(value)
        return value


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter whose context is merged into every record's `extra`."""

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs

    def with_context(self, **context) -> 'StructuredLoggerAdapter':
        return StructuredLoggerAdapter(self.logger, {**self.extra, **context})


def setup_json_logging(level: str = "INFO", redact_pii: bool = True):
    """
    Send all logging to stdout as JSON lines.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR)
        redact_pii: Redact e-mails, phone numbers, IBANs and tokens from strings
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(redact_pii=redact_pii))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Every connectivity check would log a request line otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def setup_text_logging(level: str = "INFO"):
    """Configure plain-text logging for local development."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def get_structured_logger(name: str, **context) -> StructuredLoggerAdapter:
    """Logger adapter carrying default context fields (job_id, resource_id, ...)."""
    return StructuredLoggerAdapter(logging.getLogger(name), context)


def job_logger(job_id: str, resource_id: str) -> StructuredLoggerAdapter:
    """Logger for one queued save job."""
    return get_structured_logger("formsync.queue", job_id=job_id, resource_id=resource_id)


def report_logger(report_id: str, resource_id: Optional[str] = None) -> StructuredLoggerAdapter:
    """Logger for one report poll loop."""
    return get_structured_logger("formsync.reports", report_id=report_id, resource_id=resource_id)


@contextmanager
def log_duration(logger: logging.Logger, message: str, **context) -> Iterator[dict]:
    """
    Log `message` at INFO with duration_ms once the block finishes.

    The yielded dict is merged into the record, so the block can add result
    fields (e.g. pending) before it exits. Nothing is logged if the block raises.
    """
    fields = dict(context)
    started = time.monotonic()
    yield fields
    fields["duration_ms"] = round((time.monotonic() - started) * 1000, 1)
    logger.info(message, extra=fields)
