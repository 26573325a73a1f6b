"""Pydantic models for uploaded evidence and its chain of custody."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustodyAction(str, Enum):
    """Actions recorded in the chain of custody."""

    UPLOADED = "uploaded"
    VIEWED = "viewed"
    DOWNLOADED = "downloaded"
    MODIFIED = "modified"
    SHARED = "shared"
    INTEGRITY_CHECK = "integrity_check"


# Actions a caller may log directly; the others are written by the ledger.
ACCESS_ACTIONS = frozenset(
    {CustodyAction.VIEWED, CustodyAction.DOWNLOADED, CustodyAction.MODIFIED, CustodyAction.SHARED}
)


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    VALID = "valid"
    INVALID = "invalid"


class CustodyEntry(BaseModel):
    """One append-only chain-of-custody entry."""

    action: CustodyAction
    actor: str
    timestamp: datetime = Field(default_factory=_utcnow)
    details: str | None = None

    model_config = ConfigDict(frozen=True)


class UploadContext(BaseModel):
    """Client context captured at upload time."""

    user_agent: str | None = None
    ip_address: str | None = None
    device_info: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class FileIntegrity(BaseModel):
    hash: str
    algorithm: str = "SHA-256"
    last_verified: datetime | None = None
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED


class EvidenceFile(BaseModel):
    """An uploaded evidence file attached to a case."""

    id: UUID = Field(default_factory=uuid4)
    case_id: UUID
    file_name: str
    original_file_name: str
    mime_type: str
    file_size: int = Field(..., ge=0)
    file_url: str
    title: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=_utcnow)
    upload_context: UploadContext = Field(default_factory=UploadContext)
    file_integrity: FileIntegrity

    @property
    def hash(self) -> str:
        return self.file_integrity.hash


class IntegrityCheckResult(BaseModel):
    """Outcome of comparing a freshly computed hash with the recorded one."""

    is_valid: bool
    original_hash: str
    current_hash: str
    verified_at: datetime


class ChainOfCustodyReport(BaseModel):
    """Full custody report for one evidence file."""

    evidence_id: UUID
    file_name: str
    original_file_name: str
    file_hash: str
    file_size: int
    mime_type: str
    case_info: dict[str, Any]
    upload_info: dict[str, Any]
    file_integrity: FileIntegrity
    access_history: list[CustodyEntry]
    verification_status: dict[str, Any]
