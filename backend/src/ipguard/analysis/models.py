"""Models for AI-assisted infringement analysis and risk scoring."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# =========================
# Field sentinels
# =========================


class _Missing:
    """Marker for a response key the model never produced."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass(frozen=True)
class Present(Generic[T]):
    """A response key the model produced, with its parsed value."""

    value: T


ParsedField = Present[T] | _Missing


def value_or(field: "ParsedField[Any]", default: Any = None) -> Any:
    """Unwrap a parsed field, falling back to ``default`` when missing."""
    if isinstance(field, Present):
        return field.value
    return default


# =========================
# Enumerations
# =========================


class Strength(str, Enum):
    """Legal strength reported by the model."""

    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"


class EvidenceQuality(str, Enum):
    """Evidence quality reported by the model."""

    POOR = "POOR"
    FAIR = "FAIR"
    GOOD = "GOOD"
    EXCELLENT = "EXCELLENT"


class Recommendation(str, Enum):
    """Action recommendation derived from the overall risk score."""

    IMMEDIATE_ACTION_REQUIRED = "IMMEDIATE_ACTION_REQUIRED"
    LEGAL_ACTION_RECOMMENDED = "LEGAL_ACTION_RECOMMENDED"
    MONITOR_CLOSELY = "MONITOR_CLOSELY"
    CONTINUE_MONITORING = "CONTINUE_MONITORING"
    LOW_PRIORITY = "LOW_PRIORITY"


# =========================
# Parsed responses
# =========================


@dataclass(frozen=True)
class InfringementAnalysis:
    """Field-by-field parse of an infringement analysis response.

    Enum-like fields keep the upper-cased text the model returned, so an
    unknown value such as ``"VERY STRONG"`` stays present and scores zero.
    """

    confidence: ParsedField[int] = MISSING
    infringement_likely: ParsedField[bool] = MISSING
    strength: ParsedField[str] = MISSING
    legal_basis: ParsedField[str] = MISSING
    evidence_quality: ParsedField[str] = MISSING
    recommendations: ParsedField[str] = MISSING
    risks: ParsedField[str] = MISSING

    def to_dict(self) -> dict[str, Any]:
        """Plain values for persistence; missing fields become None."""
        return {
            "confidence": value_or(self.confidence),
            "infringement_likely": value_or(self.infringement_likely),
            "strength": value_or(self.strength),
            "legal_basis": value_or(self.legal_basis),
            "evidence_quality": value_or(self.evidence_quality),
            "recommendations": value_or(self.recommendations),
            "risks": value_or(self.risks),
        }


@dataclass(frozen=True)
class DocumentReview:
    """Field-by-field parse of a legal document review response."""

    quality_score: ParsedField[int] = MISSING
    completeness: ParsedField[str] = MISSING
    legal_soundness: ParsedField[str] = MISSING
    missing_elements: ParsedField[str] = MISSING
    strengths: ParsedField[str] = MISSING
    improvements: ParsedField[str] = MISSING
    approval_recommendation: ParsedField[str] = MISSING

    def to_dict(self) -> dict[str, Any]:
        return {
            "quality_score": value_or(self.quality_score),
            "completeness": value_or(self.completeness),
            "legal_soundness": value_or(self.legal_soundness),
            "missing_elements": value_or(self.missing_elements),
            "strengths": value_or(self.strengths),
            "improvements": value_or(self.improvements),
            "approval_recommendation": value_or(self.approval_recommendation),
        }


@dataclass(frozen=True)
class InfringementValidation:
    """Parsed infringement analysis with the completion it came from."""

    analysis: InfringementAnalysis
    tokens_used: int = 0
    raw_response: str = ""


# =========================
# Risk assessment
# =========================


class RiskFactor(BaseModel):
    """One weighted contribution to the overall risk score."""

    name: str
    raw_score: float
    weight: float
    contribution: float

    model_config = ConfigDict(frozen=True)


class RiskAssessment(BaseModel):
    """Deterministic risk score computed over a parsed analysis."""

    confidence: int | None = Field(default=None, ge=0, le=100)
    infringement_likely: bool | None = None
    strength: str | None = None
    evidence_quality: str | None = None
    overall_risk_score: int = Field(..., ge=0, le=100)
    factors: list[RiskFactor] = Field(default_factory=list)
    recommendation: Recommendation
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


class AnalysisOutcome(BaseModel):
    """Everything the engine produced for one monitored page."""

    analysis: dict[str, Any] = Field(
        default_factory=dict, description="Parsed response fields, None where missing"
    )
    assessment: RiskAssessment
    summary: str
    tokens_used: int = 0
    raw_response: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def details(self) -> dict[str, Any]:
        """Analysis details stored on the monitoring log and risk evidence."""
        return {
            "ai_analysis": self.analysis,
            "risk_factors": [f.model_dump() for f in self.assessment.factors],
            "recommendation": self.assessment.recommendation.value,
            "confidence": self.assessment.confidence or 0,
            "legal_basis": self.analysis.get("legal_basis"),
            "evidence_quality": self.analysis.get("evidence_quality"),
            "risks": self.analysis.get("risks"),
        }


class ReviewOutcome(BaseModel):
    """Result of reviewing a generated legal document."""

    review: dict[str, Any]
    tokens_used: int = 0
    reviewed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)
