"""Legal document workflow orchestration.

Sequences optional infringement validation, document drafting, optional
review and risk scoring, recording each completed step with its tokens.
A failing step ends the run; the result keeps what completed before it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from ..analysis.client import CompletionClient
from ..analysis.engine import RiskAssessmentEngine
from ..analysis.models import InfringementAnalysis, InfringementValidation, value_or
from ..config import get_settings
from .models import (
    SUPPORTED_JURISDICTIONS,
    CostSummary,
    CostTracker,
    DocumentRequest,
    DraftedDocument,
    JurisdictionCheck,
    WorkflowConfig,
    WorkflowResult,
    WorkflowRun,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

FAST_MODEL = "llama3-8b-8192"
STANDARD_MODEL = "llama3-70b-8192"

WORKFLOW_PROFILES: dict[str, dict[str, Any]] = {
    "simple": {
        "validate_infringement": False,
        "review_document": True,
        "agent_model": FAST_MODEL,
        "max_tokens": 1000,
    },
    "moderate": {
        "validate_infringement": True,
        "review_document": True,
        "agent_model": STANDARD_MODEL,
        "max_tokens": 1500,
    },
    "complex": {
        "validate_infringement": True,
        "review_document": True,
        "agent_model": STANDARD_MODEL,
        "max_tokens": 2000,
        "multiple_reviews": True,
    },
}

LOW_BUDGET_LIMIT = 0.10
LOW_BUDGET_MAX_TOKENS = 800
LOW_CONFIDENCE = 30


@runtime_checkable
class DocumentDrafter(Protocol):
    """Produces the text of a legal document for a case."""

    name: str

    async def generate_document(
        self,
        request: DocumentRequest,
        analysis: InfringementAnalysis | None,
    ) -> DraftedDocument: ...


class CompletionDocumentDrafter:
    """DocumentDrafter backed by the AI completion service."""

    name = "LegalDraftAgent"
    version = "1.0"
    capabilities = ("dmca_takedown", "cease_and_desist", "licensing_inquiry")

    SYSTEM_PROMPT = (
        "You are a legal drafting assistant for intellectual property enforcement. "
        "Write complete, professional documents with clear demands and deadlines. "
        "Return only the document text."
    )

    def __init__(self, client: CompletionClient | None = None, max_tokens: int = 1500):
        self.client = client or CompletionClient()
        self.max_tokens = max_tokens

    async def generate_document(
        self,
        request: DocumentRequest,
        analysis: InfringementAnalysis | None,
    ) -> DraftedDocument:
        asset = request.asset
        lines = [
            f"Draft a {request.document_type} in a {request.tone} tone "
            f"for jurisdiction {request.jurisdiction}.",
            f"Protected asset: {asset.title} ({asset.type})",
            f"Registration: {asset.registration_number or 'Unregistered'}",
        ]
        if request.target_url:
            lines.append(f"Infringing URL: {request.target_url}")
        if analysis is not None:
            lines.append(f"Legal basis: {value_or(analysis.legal_basis, 'Not assessed')}")
        for key, value in request.case_details.items():
            lines.append(f"{key}: {value}")

        completion = await self.client.complete(
            self.SYSTEM_PROMPT, "\n".join(lines), max_tokens=self.max_tokens, temperature=0.3
        )
        return DraftedDocument(
            content=completion.text,
            tokens_used=completion.tokens_used,
            metadata={"agent": self.name, "version": self.version, "model": self.client.model},
        )

    def describe(self) -> dict[str, Any]:
        return {"status": "healthy", "capabilities": list(self.capabilities), "version": self.version}


class WorkflowOrchestrator:
    """Runs document-generation workflows and tracks token usage.

    Each orchestrator owns its ``CostTracker``; share one across requests
    only when a single usage total is wanted, and reset it explicitly.
    """

    name = "OrchestratorAgent"
    version = "1.0"

    def __init__(
        self,
        engine: RiskAssessmentEngine | None = None,
        drafter: DocumentDrafter | None = None,
        cost_tracker: CostTracker | None = None,
    ):
        self.engine = engine or RiskAssessmentEngine()
        self.drafter = drafter or CompletionDocumentDrafter()
        self.cost_tracker = cost_tracker or CostTracker()

    async def generate_legal_document(self, request: DocumentRequest) -> WorkflowResult:
        """Run the validation, draft, review and scoring sequence.

        Never raises for step failures; inspect ``success`` and ``error``.
        """
        logger.info(
            f"Starting legal document workflow for case {request.case_id} "
            f"({request.document_type}, {request.jurisdiction})"
        )
        started_at = datetime.now(timezone.utc)
        steps: list[WorkflowStep] = []
        validation: InfringementValidation | None = None
        document: DraftedDocument | None = None
        review: dict[str, Any] | None = None

        try:
            if request.validate_infringement and request.evidence is not None:
                validation = await self.engine.validate_infringement(
                    request.asset,
                    request.evidence,
                    request.target_url or request.evidence.url,
                )
                confidence = value_or(validation.analysis.confidence)
                steps.append(
                    WorkflowStep(
                        step=1,
                        agent=self.engine.name,
                        action="validate_infringement",
                        tokens_used=validation.tokens_used,
                        detail={"confidence": confidence},
                    )
                )
                self.cost_tracker.add(validation.tokens_used)

                if confidence is not None and confidence < LOW_CONFIDENCE:
                    logger.warning(
                        f"Low infringement confidence ({confidence}%), proceeding with caution"
                    )

            document = await self.drafter.generate_document(
                request, validation.analysis if validation else None
            )
            steps.append(
                WorkflowStep(
                    step=2,
                    agent=self.drafter.name,
                    action="generate_document",
                    tokens_used=document.tokens_used,
                    detail={"document_length": len(document.content)},
                )
            )
            self.cost_tracker.add(document.tokens_used)

            if request.review_document:
                outcome = await self.engine.review_document(
                    document.content, request.document_type, request.jurisdiction, request.asset
                )
                review = outcome.review
                steps.append(
                    WorkflowStep(
                        step=3,
                        agent=self.engine.name,
                        action="review_document",
                        tokens_used=outcome.tokens_used,
                        detail={
                            "quality_score": review.get("quality_score"),
                            "recommendation": review.get("approval_recommendation"),
                        },
                    )
                )
                self.cost_tracker.add(outcome.tokens_used)

                if review.get("approval_recommendation") == "REJECT":
                    logger.warning("Document rejected by review, flagging for revision")

            assessment = None
            if validation is not None:
                assessment = self.engine.calculate_risk(validation.analysis)
                steps.append(
                    WorkflowStep(
                        step=4,
                        agent=self.engine.name,
                        action="calculate_risk_score",
                        detail={
                            "risk_score": assessment.overall_risk_score,
                            "recommendation": assessment.recommendation.value,
                        },
                    )
                )

        except Exception as e:
            logger.error(f"Workflow failed: {e}")
            return WorkflowResult(
                success=False,
                error=str(e) or e.__class__.__name__,
                document=document,
                infringement_analysis=validation.analysis.to_dict() if validation else None,
                document_review=review,
                run=self._finish(steps, started_at, success=False, error=str(e)),
            )

        run = self._finish(steps, started_at, success=True)
        logger.info(
            f"Workflow completed in {run.duration_ms}ms, "
            f"{self.cost_tracker.total_tokens} tokens, est. ${run.total_cost:.4f}"
        )

        return WorkflowResult(
            success=True,
            document=document,
            infringement_analysis=validation.analysis.to_dict() if validation else None,
            document_review=review,
            risk_assessment=assessment,
            run=run,
            cost_summary=CostSummary(
                total_tokens=self.cost_tracker.total_tokens,
                estimated_cost=run.total_cost,
                breakdown=[
                    {"agent": s.agent, "action": s.action, "tokens": s.tokens_used} for s in steps
                ],
            ),
        )

    def _finish(
        self,
        steps: list[WorkflowStep],
        started_at: datetime,
        success: bool,
        error: str | None = None,
    ) -> WorkflowRun:
        finished_at = datetime.now(timezone.utc)
        return WorkflowRun(
            steps=list(steps),
            total_cost=self.cost_tracker.total_cost,
            success=success,
            error=error,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=int((finished_at - started_at).total_seconds() * 1000),
        )

    def validate_jurisdiction(self, jurisdiction: str) -> JurisdictionCheck:
        code = jurisdiction.strip().upper()
        supported = code in SUPPORTED_JURISDICTIONS
        logger.info(f"Jurisdiction {code}: {'SUPPORTED' if supported else 'UNSUPPORTED'}")
        return JurisdictionCheck(
            jurisdiction=code,
            is_supported=supported,
            supported_jurisdictions=list(SUPPORTED_JURISDICTIONS),
            recommendation="PROCEED" if supported else "USE_GENERIC_TEMPLATE",
        )

    def optimize_workflow(
        self,
        complexity: str,
        budget_limit: float | None = None,
        time_constraint: str | None = None,
    ) -> WorkflowConfig:
        """Choose workflow steps and model for a case.

        Unknown complexity falls back to ``moderate``. A budget under $0.10
        forces the fast model with at most 800 tokens; ``urgent`` skips
        infringement validation.
        """
        config = dict(WORKFLOW_PROFILES.get(complexity, WORKFLOW_PROFILES["moderate"]))

        if budget_limit is not None and budget_limit < LOW_BUDGET_LIMIT:
            config["agent_model"] = FAST_MODEL
            config["max_tokens"] = min(config["max_tokens"], LOW_BUDGET_MAX_TOKENS)

        if time_constraint == "urgent":
            config["validate_infringement"] = False

        return WorkflowConfig(**config)

    def usage_stats(self) -> dict[str, Any]:
        tracker = self.cost_tracker
        elapsed = (datetime.now(timezone.utc) - tracker.session_start).total_seconds()
        minutes = elapsed / 60
        hours = elapsed / 3600
        return {
            "session_duration": round(elapsed),
            "total_tokens": tracker.total_tokens,
            "estimated_cost": tracker.total_cost,
            "average_tokens_per_minute": round(tracker.total_tokens / minutes) if minutes else 0,
            "cost_per_hour": round(tracker.total_cost / hours, 4) if hours else 0.0,
        }

    def health_check(self) -> dict[str, Any]:
        health: dict[str, Any] = {
            "orchestrator": "healthy",
            "agents": {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            health["agents"]["analysis"] = self.engine.describe()
            describe = getattr(self.drafter, "describe", None)
            health["agents"]["legal_draft"] = (
                describe() if describe else {"status": "healthy", "name": self.drafter.name}
            )
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            health["orchestrator"] = "unhealthy"
            health["error"] = str(e)
        return health
