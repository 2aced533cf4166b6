"""Report generation endpoint."""

from typing import Optional
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from formsync.agent import SyncAgent, get_agent

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/{resource_id}")
async def generate_report(
    resource_id: str,
    interval_ms: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    agent: SyncAgent = Depends(get_agent),
):
    """
    Create a report and wait until it is ready.

    Returns the PDF directly when the backend renders synchronously, otherwise
    the final report url. Failure and timeout map to 502 and 504.
    """
    progress: list[int] = []
    report = await agent.poller.generate(
        resource_id,
        on_progress=progress.append,
        interval_ms=interval_ms,
        timeout_ms=timeout_ms,
    )

    if report.content is not None:
        return Response(
            content=report.content,
            media_type=report.content_type or "application/pdf",
            headers={"Content-Disposition": f'attachment; filename="product-{resource_id}-report.pdf"'},
        )

    return {
        "resource_id": resource_id,
        "report_id": report.handle.id,
        "url": report.url,
        "progress": progress,
    }
