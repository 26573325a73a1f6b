"""Models for legal-document workflows and their audit trail."""

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..analysis.models import RiskAssessment
from ..monitoring.models import EvidenceSnapshot, ProtectedAsset

SUPPORTED_JURISDICTIONS = ("US", "UK", "CA", "AU", "DE", "FR", "JP", "EU")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRequest(BaseModel):
    """Input to a legal document generation workflow."""

    case_id: UUID
    document_type: str = Field(..., description="e.g. dmca_takedown, cease_and_desist")
    asset: ProtectedAsset
    evidence: EvidenceSnapshot | None = None
    target_url: str | None = None
    jurisdiction: str = "US"
    tone: str = "professional"
    case_details: dict[str, Any] = Field(default_factory=dict)
    validate_infringement: bool = True
    review_document: bool = True


class DraftedDocument(BaseModel):
    """Output of a DocumentDrafter."""

    content: str
    tokens_used: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)


class WorkflowStep(BaseModel):
    """One completed step in a workflow run."""

    step: int
    agent: str
    action: str
    result: str = "success"
    tokens_used: int = 0
    detail: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class WorkflowRun(BaseModel):
    """Audit trail of a terminated workflow run."""

    steps: list[WorkflowStep] = Field(default_factory=list)
    total_cost: float = 0.0
    success: bool = False
    error: str | None = None
    started_at: datetime
    finished_at: datetime
    duration_ms: int = 0

    model_config = ConfigDict(frozen=True)


class CostSummary(BaseModel):
    total_tokens: int
    estimated_cost: float
    breakdown: list[dict[str, Any]] = Field(default_factory=list)


class WorkflowResult(BaseModel):
    """Workflow outcome.

    On failure ``success`` is False, ``error`` holds the message and the
    result fields hold whatever completed before the failing step.
    """

    success: bool
    error: str | None = None
    document: DraftedDocument | None = None
    infringement_analysis: dict[str, Any] | None = None
    document_review: dict[str, Any] | None = None
    risk_assessment: RiskAssessment | None = None
    run: WorkflowRun
    cost_summary: CostSummary | None = None


class WorkflowConfig(BaseModel):
    """Step selection and model choice produced by ``optimize_workflow``."""

    validate_infringement: bool
    review_document: bool = True
    agent_model: str
    max_tokens: int
    multiple_reviews: bool = False


class JurisdictionCheck(BaseModel):
    jurisdiction: str
    is_supported: bool
    supported_jurisdictions: list[str]
    recommendation: Literal["PROCEED", "USE_GENERIC_TEMPLATE"]


class CostTracker:
    """Token and cost counter owned by one orchestrator.

    Call ``reset`` at session boundaries.
    """

    def __init__(self, cost_per_1k_tokens: float = 0.0):
        self.cost_per_1k_tokens = cost_per_1k_tokens
        self.reset()

    def reset(self) -> None:
        self.total_tokens = 0
        self.total_cost = 0.0
        self.session_start = _utcnow()

    def add(self, tokens: int) -> None:
        self.total_tokens += tokens
        self.total_cost = self.estimate_cost(self.total_tokens)

    def estimate_cost(self, tokens: int) -> float:
        return tokens / 1000 * self.cost_per_1k_tokens
