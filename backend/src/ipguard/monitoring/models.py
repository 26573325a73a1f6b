"""Pydantic models for monitoring jobs and collected page evidence."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urlparse
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..analysis.models import RiskAssessment

MAX_IMAGES = 15
MAX_LINKS = 25

AGENT_VERSION = "SurveillanceAgent-v1.0"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_target_url(url: str) -> str:
    """Return ``url`` stripped if it is http(s) with a hostname.

    Raises:
        ValueError: If the URL is not a usable monitoring target
    """
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"URL must use http or https: {url}")
    if not parsed.hostname:
        raise ValueError(f"URL has no hostname: {url}")
    return url


# =========================
# Enumerations
# =========================


class JobStatus(str, Enum):
    """Lifecycle of a monitoring job. Transitions never return to PENDING."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# =========================
# Core models
# =========================


class ProtectedAsset(BaseModel):
    """The intellectual property a job watches for."""

    id: UUID
    title: str
    type: str = Field(..., description="copyright, trademark, patent, ...")
    description: str | None = None
    registration_number: str | None = None
    jurisdiction: str | None = None

    model_config = ConfigDict(frozen=True)


class MonitoringJob(BaseModel):
    """A request to scrape one URL and assess it against one asset."""

    id: UUID = Field(default_factory=uuid4)
    target_url: str
    protected_asset_id: UUID
    status: JobStatus = JobStatus.PENDING
    created_by: str
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    error_message: str | None = None

    @field_validator("target_url")
    @classmethod
    def check_target_url(cls, v: str) -> str:
        return validate_target_url(v)


class CreateJobRequest(BaseModel):
    """Request to create a monitoring job."""

    url: str = Field(..., description="Page to monitor (http or https)")
    ip_asset_id: UUID

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return validate_target_url(v)


# =========================
# Evidence snapshot
# =========================


class Heading(BaseModel):
    level: str
    text: str

    model_config = ConfigDict(frozen=True)


class PageImage(BaseModel):
    src: str
    alt: str = ""
    title: str = ""
    width: int = 0
    height: int = 0

    model_config = ConfigDict(frozen=True)


class PageLink(BaseModel):
    href: str
    text: str
    title: str = ""

    model_config = ConfigDict(frozen=True)


class PageStats(BaseModel):
    load_time: float = 0.0
    image_count: int = 0
    link_count: int = 0
    script_count: int = 0
    word_count: int = 0

    model_config = ConfigDict(frozen=True)


class EvidenceSnapshot(BaseModel):
    """Structured extraction of one monitored page.

    Built once per execution and never modified afterwards.
    """

    page_title: str = ""
    url: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    headings: tuple[Heading, ...] = ()
    images: tuple[PageImage, ...] = Field(default=(), max_length=MAX_IMAGES)
    links: tuple[PageLink, ...] = Field(default=(), max_length=MAX_LINKS)
    visible_text: str = ""
    structured_data: tuple[Any, ...] = ()
    html_excerpt: str = ""
    page_stats: PageStats = Field(default_factory=PageStats)

    model_config = ConfigDict(frozen=True)


class CollectedPage(BaseModel):
    """Collector output: snapshot, full-page PNG and the page HTML."""

    snapshot: EvidenceSnapshot
    screenshot: bytes
    html: str = ""

    model_config = ConfigDict(frozen=True)


# =========================
# Results
# =========================


class MonitoringLog(BaseModel):
    """Persisted result of one job execution."""

    id: UUID = Field(default_factory=uuid4)
    job_id: UUID
    result: str | None = None
    risk_score: int = Field(..., ge=0, le=100)
    screenshot_url: str | None = None
    html_content: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    auto_case_id: UUID | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class ExecutionResult(BaseModel):
    """Outcome of a successful ``execute_job`` call."""

    job: MonitoringJob
    log: MonitoringLog
    assessment: RiskAssessment
    auto_case_id: UUID | None = None
    auto_case_created: bool = False


class MonitoringStats(BaseModel):
    """Aggregate job and risk statistics."""

    total_jobs: int = 0
    jobs_by_status: dict[str, int] = Field(default_factory=dict)
    average_risk_score: int = 0
    high_risk_count: int = 0
