"""Report status models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

# Status tags that end polling with a failure
FAILED_STATUSES = frozenset({"failed", "error"})


class ReportHandle(BaseModel):
    """Status snapshot of a report being generated."""
    model_config = ConfigDict(extra="ignore")

    id: str
    url: Optional[str] = None
    progress: Optional[int] = None  # 0-100, may repeat or go backwards
    status: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return bool(self.url)

    @property
    def is_failed(self) -> bool:
        return self.status in FAILED_STATUSES


class GeneratedReport(BaseModel):
    """Outcome of create-then-poll: a ready handle or a synchronously rendered PDF."""
    resource_id: str
    handle: Optional[ReportHandle] = None
    content: Optional[bytes] = None
    content_type: Optional[str] = None

    @property
    def url(self) -> Optional[str]:
        return self.handle.url if self.handle else None
