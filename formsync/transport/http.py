"""HTTP transport against the forms backend."""

import logging
from typing import Optional, Union

import httpx

from formsync.errors import TransportError, UnauthorizedError
from formsync.models import Answer, ReportHandle
from .base import NetworkTransport

logger = logging.getLogger(__name__)


class HttpTransport(NetworkTransport):
    """NetworkTransport backed by an httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token or None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds, connect=10.0))
        self._owns_client = client is None

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, fallback_error: str, **kwargs) -> httpx.Response:
        """Send a request and map failures onto the formsync error types."""
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{fallback_error}: {e}", cause=e) from e

        if response.status_code == 401:
            raise UnauthorizedError(details={"url": url})
        if response.is_error:
            raise TransportError(
                self._error_message(response) or fallback_error,
                status_code=response.status_code,
                details={"url": url},
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("error")
        return None

    async def submit(self, resource_id: str, answers: list[Answer]) -> None:
        await self._request(
            "POST",
            f"/api/products/{resource_id}/responses",
            "Failed to submit response",
            json={"answers": [answer.to_wire() for answer in answers]},
        )
        logger.debug(f"Submitted {len(answers)} answers for {resource_id}")

    async def get_report_status(self, report_id: str) -> ReportHandle:
        response = await self._request("GET", f"/api/reports/{report_id}", "Failed to fetch report")
        try:
            body = response.json()
            # Status bodies are {url?, progress?, status?}; the id is the one we asked for
            fields = body if isinstance(body, dict) else {}
            return ReportHandle.model_validate({"id": report_id, **fields})
        except ValueError as e:
            raise TransportError("Malformed report status", cause=e) from e

    async def create_report(self, resource_id: str) -> Union[ReportHandle, bytes]:
        response = await self._request("POST", f"/api/products/{resource_id}/reports", "Failed to create report")
        if "application/pdf" in response.headers.get("content-type", ""):
            return response.content
        try:
            return ReportHandle.model_validate(response.json())
        except ValueError as e:
            raise TransportError("Malformed report response", cause=e) from e

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
