"""Poll a report handle until it is ready, failed or timed out.

State machine: PENDING -> READY (url present) | FAILED (status failed/error)
| TIMEOUT (deadline elapsed). Fetch errors are not terminal; they are retried
every interval until the deadline, unless a consecutive-error cap is set.
"""

import logging
from typing import Callable, Optional

from formsync.clock import AsyncioClock, Clock
from formsync.errors import (
    PollingTimeoutError,
    ReportFailedError,
    ReportFetchError,
    UnauthorizedError,
)
from formsync.lib.json_logger import report_logger
from formsync.models import GeneratedReport, ReportHandle
from formsync.transport import NetworkTransport

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1500
DEFAULT_TIMEOUT_MS = 60000

ProgressCallback = Callable[[int], None]


class ReportPoller:
    """Drives the poll loop for one report at a time per call."""

    def __init__(
        self,
        transport: NetworkTransport,
        clock: Optional[Clock] = None,
        interval_ms: float = DEFAULT_INTERVAL_MS,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        max_consecutive_errors: Optional[int] = None,
    ):
        self.transport = transport
        self.clock = clock or AsyncioClock()
        self.interval_ms = interval_ms
        self.timeout_ms = timeout_ms
        self.max_consecutive_errors = max_consecutive_errors

    async def poll(
        self,
        report_id: str,
        on_progress: Optional[ProgressCallback] = None,
        interval_ms: Optional[float] = None,
        timeout_ms: Optional[float] = None,
    ) -> ReportHandle:
        """
        Poll until the report has a url and return the final handle.

        Args:
            report_id: Report to poll
            on_progress: Called synchronously with every progress value fetched,
                in fetch order (values may repeat or decrease)
            interval_ms: Wait between fetches (default from the poller)
            timeout_ms: Deadline measured from the start of the loop

        Raises:
            ReportFailedError: The report status is "failed" or "error"
            PollingTimeoutError: No terminal state before the deadline
            UnauthorizedError: The backend rejected the credentials
            ReportFetchError: max_consecutive_errors fetches failed in a row
        """
        interval = self.interval_ms if interval_ms is None else interval_ms
        timeout = self.timeout_ms if timeout_ms is None else timeout_ms

        log = report_logger(report_id)
        started = self.clock.now()
        consecutive_errors = 0

        while True:
            elapsed = self.clock.now() - started
            if elapsed >= timeout:
                log.warning(f"Polling report {report_id} timed out after {elapsed:.0f}ms", extra={"elapsed_ms": elapsed})
                raise PollingTimeoutError(report_id, elapsed)

            try:
                report = await self.transport.get_report_status(report_id)
            except UnauthorizedError:
                raise
            except Exception as e:
                consecutive_errors += 1
                log.warning(f"Fetching report {report_id} failed ({consecutive_errors} in a row), retrying: {e}")
                if self.max_consecutive_errors is not None and consecutive_errors >= self.max_consecutive_errors:
                    raise ReportFetchError(
                        f"Report {report_id} status failed {consecutive_errors} times in a row",
                        details={"report_id": report_id},
                        cause=e,
                    ) from e
                await self.clock.sleep(interval)
                continue

            consecutive_errors = 0

            if on_progress is not None and report.progress is not None:
                on_progress(report.progress)

            if report.is_ready:
                log.info(f"Report {report_id} ready")
                return report

            if report.is_failed:
                log.error(f"Report {report_id} generation failed (status={report.status})", extra={"status": report.status})
                raise ReportFailedError(report_id, report.status)

            await self.clock.sleep(interval)

    async def generate(
        self,
        resource_id: str,
        on_progress: Optional[ProgressCallback] = None,
        interval_ms: Optional[float] = None,
        timeout_ms: Optional[float] = None,
    ) -> GeneratedReport:
        """Create a report for a resource and wait for it.

        The backend either renders the PDF synchronously (returned as content)
        or hands back a report handle, which is then polled.
        """
        created = await self.transport.create_report(resource_id)
        if isinstance(created, bytes):
            logger.info(f"Report for {resource_id} rendered synchronously ({len(created)} bytes)",
                        extra={"resource_id": resource_id})
            return GeneratedReport(resource_id=resource_id, content=created, content_type="application/pdf")

        if created.is_ready:
            return GeneratedReport(resource_id=resource_id, handle=created)

        handle = await self.poll(created.id, on_progress=on_progress, interval_ms=interval_ms, timeout_ms=timeout_ms)
        return GeneratedReport(resource_id=resource_id, handle=handle)
