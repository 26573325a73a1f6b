"""Pydantic models for infringement cases and monitoring evidence."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================
# Enumerations
# =========================


class CaseStatus(str, Enum):
    """Status of an infringement case."""

    OPEN = "open"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"


class EvidenceRecordType(str, Enum):
    """Types of monitoring evidence attached to a case."""

    SCREENSHOT = "screenshot"
    RISK_ANALYSIS = "risk_analysis"
    HTML_CONTENT = "html_content"
    UPLOADED_FILE = "uploaded_file"


# =========================
# Core models
# =========================


class Case(BaseModel):
    """A tracked infringement case.

    At most one auto-generated case exists per source monitoring job.
    """

    id: UUID = Field(default_factory=uuid4)
    title: str
    status: CaseStatus = CaseStatus.OPEN
    description: str | None = None
    related_asset_id: UUID
    suspected_url: str
    created_by: str | None = None
    auto_generated: bool = False
    source_monitoring_job_id: UUID | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class EvidenceRecord(BaseModel):
    """Evidence linking a monitoring log to a case."""

    id: UUID = Field(default_factory=uuid4)
    evidence_type: EvidenceRecordType
    evidence_url: str | None = None
    evidence_data: dict[str, Any] | None = None
    auto_generated: bool = False
    case_id: UUID | None = None
    monitoring_log_id: UUID | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class EscalationResult(BaseModel):
    """Outcome of an escalation attempt.

    ``created`` is True only when this call inserted the case.
    """

    case_id: UUID | None = None
    created: bool = False
    evidence_count: int = 0
