"""Risk assessment for monitored pages.

The parser turns the model's ``KEY: value`` answer into explicit
present/missing fields; the scorer turns those into a deterministic
0-100 risk score. ``RiskAssessmentEngine`` (in ``.engine``) drives both.

Usage:
    from ipguard.analysis import parse_infringement_analysis, score_risk

    analysis = parse_infringement_analysis(response_text)
    assessment = score_risk(analysis)
"""

from .models import (
    MISSING,
    AnalysisOutcome,
    DocumentReview,
    InfringementAnalysis,
    Present,
    Recommendation,
    RiskAssessment,
    RiskFactor,
)
from .parser import parse_document_review, parse_infringement_analysis
from .scoring import recommendation_for, score_risk

__all__ = [
    "MISSING",
    "AnalysisOutcome",
    "DocumentReview",
    "InfringementAnalysis",
    "Present",
    "Recommendation",
    "RiskAssessment",
    "RiskFactor",
    "parse_document_review",
    "parse_infringement_analysis",
    "recommendation_for",
    "score_risk",
]
