"""Main entry point for the local sync agent service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formsync.agent import get_agent
from formsync.config import get_settings
from formsync.routes import autosave, health, queue, reports
from formsync.routes.errors import register_exception_handlers

logger = logging.getLogger(__name__)

# Configure logging based on settings
settings = get_settings()

if settings.log_format == "json":
    from formsync.lib.json_logger import setup_json_logging
    setup_json_logging(level=settings.log_level, redact_pii=True)
else:
    from formsync.lib.json_logger import setup_text_logging
    setup_text_logging(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the sync agent (startup flush, connectivity checks) alongside the HTTP server."""
    agent = get_agent()
    await agent.start()
    logger.info("Sync agent running")
    yield
    await agent.stop()


app = FastAPI(
    title="formsync agent",
    description="Durable autosave queue and report polling for the forms client",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware - the form UI runs on another local origin
cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(queue.router, prefix="/queue", tags=["Queue"])
app.include_router(autosave.router, prefix="/autosave", tags=["Autosave"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "formsync agent",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    uvicorn.run(
        "formsync.main:app",
        host="127.0.0.1",
        port=settings.port,
        reload=settings.debug
    )
