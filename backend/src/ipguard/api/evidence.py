"""API endpoints for evidence chain of custody."""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..evidence.ledger import EvidenceLedger, get_evidence_ledger
from ..evidence.models import (
    ChainOfCustodyReport,
    CustodyAction,
    CustodyEntry,
    IntegrityCheckResult,
)
from . import get_actor_id

router = APIRouter(prefix="/evidence", tags=["evidence"])


class LogAccessRequest(BaseModel):
    action: CustodyAction = Field(..., description="viewed, downloaded, modified or shared")
    details: str | None = None


class VerifyIntegrityRequest(BaseModel):
    current_hash: str = Field(..., min_length=1)


@router.post("/{evidence_id}/access", response_model=CustodyEntry, status_code=201)
async def log_access(
    evidence_id: UUID,
    request: LogAccessRequest,
    actor_id: str = Depends(get_actor_id),
    ledger: EvidenceLedger = Depends(get_evidence_ledger),
) -> CustodyEntry:
    """Append an access entry to the chain of custody."""
    return await ledger.log_access(evidence_id, request.action, actor_id, request.details)


@router.post("/{evidence_id}/verify", response_model=IntegrityCheckResult)
async def verify_integrity(
    evidence_id: UUID,
    request: VerifyIntegrityRequest,
    actor_id: str = Depends(get_actor_id),
    ledger: EvidenceLedger = Depends(get_evidence_ledger),
) -> IntegrityCheckResult:
    """Compare a freshly computed hash with the recorded one."""
    return await ledger.verify_integrity(evidence_id, request.current_hash, actor_id)


@router.get("/{evidence_id}/custody", response_model=ChainOfCustodyReport)
async def get_chain_of_custody(
    evidence_id: UUID,
    actor_id: str = Depends(get_actor_id),
    ledger: EvidenceLedger = Depends(get_evidence_ledger),
) -> ChainOfCustodyReport:
    """Full chain-of-custody report."""
    return await ledger.get_chain_of_custody(evidence_id)
