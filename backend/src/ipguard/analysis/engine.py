"""Risk assessment engine.

Sends collected page evidence to the AI completion service, parses the
structured answer and computes a deterministic risk score on top of it.
"""

from datetime import datetime, timezone
from typing import Any

from ..logging import get_logger, log_risk_assessment
from ..monitoring.models import EvidenceSnapshot, ProtectedAsset
from .client import CompletionClient
from .models import (
    AnalysisOutcome,
    InfringementAnalysis,
    InfringementValidation,
    ReviewOutcome,
    RiskAssessment,
    value_or,
)
from .parser import parse_document_review, parse_infringement_analysis
from .prompts import (
    DOCUMENT_REVIEW_SYSTEM_PROMPT,
    DOCUMENT_REVIEW_USER_PROMPT,
    INFRINGEMENT_SYSTEM_PROMPT,
    INFRINGEMENT_USER_PROMPT,
)
from .scoring import score_risk

logger = get_logger(__name__)

PROMPT_TEXT_LIMIT = 3000
PROMPT_HTML_LIMIT = 2000


def _truncate(text: str, limit: int, placeholder: str) -> str:
    if not text:
        return placeholder
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def build_infringement_prompt(
    asset: ProtectedAsset, snapshot: EvidenceSnapshot, target_url: str
) -> str:
    """Render the user prompt for an infringement analysis."""
    headings = ", ".join(h.text for h in snapshot.headings) or "None"
    return INFRINGEMENT_USER_PROMPT.format(
        asset_type=asset.type,
        asset_title=asset.title,
        asset_description=asset.description or "Not provided",
        registration=asset.registration_number or "Unregistered",
        jurisdiction=asset.jurisdiction or "Not specified",
        target_url=target_url,
        page_title=snapshot.page_title or "Not available",
        meta_description=snapshot.meta_description or "Not available",
        page_text=_truncate(snapshot.visible_text, PROMPT_TEXT_LIMIT, "Not available"),
        image_count=len(snapshot.images),
        link_count=len(snapshot.links),
        headings=headings,
        html_excerpt=_truncate(
            snapshot.html_excerpt, PROMPT_HTML_LIMIT, "HTML content not available"
        ),
    )


def summarize(analysis: InfringementAnalysis) -> str:
    """One-line verdict stored as the monitoring log result."""
    verdict = (
        "INFRINGEMENT LIKELY"
        if value_or(analysis.infringement_likely, False)
        else "NO CLEAR INFRINGEMENT"
    )
    strength = value_or(analysis.strength) or "UNKNOWN"
    return f"AI Analysis: {verdict} - {strength} evidence"


class RiskAssessmentEngine:
    """AI-assisted infringement analysis and document review.

    Usage:
        engine = RiskAssessmentEngine()
        outcome = await engine.analyze(asset, snapshot, url)
        outcome.assessment.overall_risk_score
    """

    name = "AnalysisAgent"
    version = "1.0"
    capabilities = (
        "infringement_validation",
        "confidence_scoring",
        "legal_document_review",
        "evidence_analysis",
    )

    def __init__(self, client: CompletionClient | None = None):
        self.client = client or CompletionClient()

    async def validate_infringement(
        self, asset: ProtectedAsset, snapshot: EvidenceSnapshot, target_url: str
    ) -> InfringementValidation:
        """Ask the model for an infringement analysis and parse it."""
        logger.info(f"Validating infringement of '{asset.title}' at {target_url}")

        completion = await self.client.complete(
            INFRINGEMENT_SYSTEM_PROMPT,
            build_infringement_prompt(asset, snapshot, target_url),
            max_tokens=1000,
            temperature=0.1,
        )

        analysis = parse_infringement_analysis(completion.text)
        logger.debug(f"Parsed analysis: {analysis}")

        return InfringementValidation(
            analysis=analysis,
            tokens_used=completion.tokens_used,
            raw_response=completion.text,
        )

    def calculate_risk(self, analysis: InfringementAnalysis) -> RiskAssessment:
        return score_risk(analysis)

    async def analyze(
        self, asset: ProtectedAsset, snapshot: EvidenceSnapshot, target_url: str
    ) -> AnalysisOutcome:
        """Validate infringement and score the result.

        Raises:
            AnalysisTimeoutError: If the completion call times out
        """
        validation = await self.validate_infringement(asset, snapshot, target_url)
        assessment = self.calculate_risk(validation.analysis)

        log_risk_assessment(
            target_url=target_url,
            risk_score=assessment.overall_risk_score,
            recommendation=assessment.recommendation.value,
            confidence=assessment.confidence,
            tokens_used=validation.tokens_used,
        )

        return AnalysisOutcome(
            analysis=validation.analysis.to_dict(),
            assessment=assessment,
            summary=summarize(validation.analysis),
            tokens_used=validation.tokens_used,
            raw_response=validation.raw_response,
        )

    async def review_document(
        self,
        content: str,
        document_type: str,
        jurisdiction: str,
        asset: ProtectedAsset,
    ) -> ReviewOutcome:
        """Review a generated legal document for completeness and quality."""
        logger.info(f"Reviewing {document_type} for legal completeness")

        completion = await self.client.complete(
            DOCUMENT_REVIEW_SYSTEM_PROMPT,
            DOCUMENT_REVIEW_USER_PROMPT.format(
                document_type=document_type,
                jurisdiction=jurisdiction,
                asset_type=asset.type,
                content=content,
            ),
            max_tokens=800,
            temperature=0.1,
        )

        review = parse_document_review(completion.text)
        logger.info(
            f"Document review complete. Quality score: {value_or(review.quality_score)}"
        )

        return ReviewOutcome(
            review=review.to_dict(),
            tokens_used=completion.tokens_used,
            reviewed_at=datetime.now(timezone.utc),
        )

    def describe(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "capabilities": list(self.capabilities),
            "version": self.version,
        }
