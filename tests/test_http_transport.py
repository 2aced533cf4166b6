"""Tests for HttpTransport against a mocked backend."""

import json

import httpx
import pytest

from formsync.clock import VirtualClock
from formsync.errors import TransportError, UnauthorizedError
from formsync.models import Answer, ReportHandle
from formsync.reports import ReportPoller
from formsync.transport import HttpTransport


def make_transport(handler, token="secret-token"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport("https://forms.example.com/", token=token, client=client)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_posts_answers_in_wire_format(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        transport = make_transport(handler)
        await transport.submit("product-1", [Answer(question_id="q1", value="a"), Answer(question_id="q2", value=[1, 2])])

        [request] = requests
        assert request.method == "POST"
        assert request.url == "https://forms.example.com/api/products/product-1/responses"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == {
            "answers": [{"questionId": "q1", "value": "a"}, {"questionId": "q2", "value": [1, 2]}],
        }

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        await make_transport(handler, token=None).submit("product-1", [])

        assert "Authorization" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_server_error_uses_error_message(self):
        transport = make_transport(lambda request: httpx.Response(500, json={"error": "Database unavailable"}))

        with pytest.raises(TransportError) as exc_info:
            await transport.submit("product-1", [])

        assert str(exc_info.value) == "Database unavailable"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_server_error_without_body(self):
        transport = make_transport(lambda request: httpx.Response(502, text="Bad gateway"))

        with pytest.raises(TransportError) as exc_info:
            await transport.submit("product-1", [])

        assert str(exc_info.value) == "Failed to submit response"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            await make_transport(handler).submit("product-1", [])

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        transport = make_transport(lambda request: httpx.Response(401, json={"error": "Unauthorized"}))

        with pytest.raises(UnauthorizedError):
            await transport.submit("product-1", [])


class TestReports:

    @pytest.mark.asyncio
    async def test_get_report_status(self):
        def handler(request):
            assert request.url.path == "/api/reports/report-1"
            return httpx.Response(200, json={"id": "report-1", "progress": 40, "status": "processing", "extra": 1})

        report = await make_transport(handler).get_report_status("report-1")

        assert report == ReportHandle(id="report-1", progress=40, status="processing")

    @pytest.mark.asyncio
    async def test_status_body_without_id(self):
        transport = make_transport(
            lambda request: httpx.Response(200, json={"url": "https://example.com/r.pdf", "progress": 100})
        )

        report = await transport.get_report_status("report-1")

        assert report == ReportHandle(id="report-1", url="https://example.com/r.pdf", progress=100)

    @pytest.mark.asyncio
    async def test_status_body_that_is_not_an_object(self):
        transport = make_transport(lambda request: httpx.Response(200, json=[]))

        report = await transport.get_report_status("report-1")

        assert report == ReportHandle(id="report-1")

    @pytest.mark.asyncio
    async def test_malformed_report_status(self):
        transport = make_transport(lambda request: httpx.Response(200, json={"progress": "halfway"}))

        with pytest.raises(TransportError):
            await transport.get_report_status("report-1")

    @pytest.mark.asyncio
    async def test_poller_resolves_on_status_without_id(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 2:
                return httpx.Response(200, json={"progress": 40})
            return httpx.Response(200, json={"url": "https://example.com/r.pdf", "progress": 100})

        poller = ReportPoller(make_transport(handler), clock=VirtualClock())
        seen = []

        report = await poller.poll("report-1", on_progress=seen.append, interval_ms=1000, timeout_ms=5000)

        assert report.url == "https://example.com/r.pdf"
        assert seen == [40, 100]
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_create_report_returns_handle(self):
        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/api/products/product-1/reports"
            return httpx.Response(202, json={"id": "report-1", "status": "pending"})

        created = await make_transport(handler).create_report("product-1")

        assert created == ReportHandle(id="report-1", status="pending")

    @pytest.mark.asyncio
    async def test_create_report_returns_pdf_bytes(self):
        transport = make_transport(
            lambda request: httpx.Response(200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"})
        )

        assert await transport.create_report("product-1") == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        transport = HttpTransport("https://forms.example.com", client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()
