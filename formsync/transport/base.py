"""Transport contract used by the retry queue, autosave scheduler and poller."""

from typing import Union

from formsync.models import Answer, ReportHandle


class NetworkTransport:
    """
    Backend calls the resilience layer depends on.

    Implementations raise TransportError (or UnauthorizedError) on failure;
    a failed submit carries no payload beyond the error itself.
    """

    async def submit(self, resource_id: str, answers: list[Answer]) -> None:
        raise NotImplementedError

    async def get_report_status(self, report_id: str) -> ReportHandle:
        raise NotImplementedError

    async def create_report(self, resource_id: str) -> Union[ReportHandle, bytes]:
        """Start report generation. Returns a handle to poll, or the finished PDF."""
        raise NotImplementedError

    async def close(self) -> None:
        pass
