"""Health check endpoints."""

from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from formsync.agent import SyncAgent, get_agent

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def health_check():
    """Basic health check - always returns ok if service is running."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "formsync-agent",
        "version": "0.1.0"
    }


@router.get("/ready")
async def readiness_check(agent: SyncAgent = Depends(get_agent)):
    """
    Readiness check of the queue store and backend connectivity.
    Being offline degrades the agent but does not make it unready: saves are queued.
    """
    checks = {}
    overall_status = "ok"

    store_status = await agent.store.check()
    checks["store"] = store_status
    if store_status["status"] != "ok":
        overall_status = "degraded"

    online = agent.connectivity.is_online()
    checks["backend"] = {"status": "ok" if online else "offline"}
    if not online:
        overall_status = "degraded"

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "config": {
            "api_base_url": agent.settings.api_base_url,
            "queue_backend": agent.settings.queue_backend,
        }
    }
