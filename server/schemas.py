"""Pydantic schemas for API."""

from pydantic import BaseModel, Field


class AuditOptions(BaseModel):
    """Options passed to the auditor.

    Fields mirror the commonly tuned parts of ``AuditConfig``; anything not
    listed keeps the dataclass default.
    """
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_ms: int = Field(60000, gt=0)
    dom_ready_timeout_ms: int = Field(60000, gt=0)
    wait_for_network_idle: bool = True
    scroll_pages: bool = True
    scan_modals: bool = True
    dismiss_overlays: bool = True
    concurrency: int = Field(10, ge=1, le=50)
    request_timeout_s: float = Field(5.0, gt=0)
    lenient_domains: list[str] = Field(default_factory=list)


class AuditRequest(BaseModel):
    """Audit request payload."""
    target_urls: list[str] = Field(min_length=1)
    config: AuditOptions = AuditOptions()
