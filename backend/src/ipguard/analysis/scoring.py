"""Deterministic risk scoring over a parsed infringement analysis.

Weights are not renormalised when a factor is missing: an absent factor
contributes nothing, which caps the reachable score for incomplete answers.
"""

import math

from .models import (
    EvidenceQuality,
    InfringementAnalysis,
    Present,
    Recommendation,
    RiskAssessment,
    RiskFactor,
    Strength,
    value_or,
)

CONFIDENCE_WEIGHT = 0.6
STRENGTH_WEIGHT = 0.25
EVIDENCE_QUALITY_WEIGHT = 0.15

# Floor applied when the model reports no infringement.
MINIMUM_RISK_SCORE = 3

STRENGTH_SCORES: dict[str, int] = {
    Strength.STRONG.value: 100,
    Strength.MODERATE.value: 65,
    Strength.WEAK.value: 30,
}

EVIDENCE_QUALITY_SCORES: dict[str, int] = {
    EvidenceQuality.EXCELLENT.value: 100,
    EvidenceQuality.GOOD.value: 75,
    EvidenceQuality.FAIR.value: 50,
    EvidenceQuality.POOR.value: 25,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def recommendation_for(score: int) -> Recommendation:
    """Map an overall risk score onto an action recommendation."""
    if score >= 80:
        return Recommendation.IMMEDIATE_ACTION_REQUIRED
    if score >= 60:
        return Recommendation.LEGAL_ACTION_RECOMMENDED
    if score >= 40:
        return Recommendation.MONITOR_CLOSELY
    if score >= 20:
        return Recommendation.CONTINUE_MONITORING
    return Recommendation.LOW_PRIORITY


def score_risk(analysis: InfringementAnalysis) -> RiskAssessment:
    """Compute the overall risk score for a parsed analysis.

    When the model reports zero confidence, or does not say infringement
    is likely, the score is the reported confidence floored at
    ``MINIMUM_RISK_SCORE`` with a single "AI Analysis" factor. Otherwise
    it is the weighted sum of the factors the model actually answered.

    Args:
        analysis: Field-by-field parse of the model's response

    Returns:
        RiskAssessment whose score is an int in [0, 100]
    """
    confidence = value_or(analysis.confidence)
    likely = value_or(analysis.infringement_likely, False)
    strength = value_or(analysis.strength)
    evidence_quality = value_or(analysis.evidence_quality)

    common = {
        "confidence": confidence,
        "infringement_likely": value_or(analysis.infringement_likely),
        "strength": strength,
        "evidence_quality": evidence_quality,
    }

    if confidence == 0 or not likely:
        raw = confidence or 0
        score = max(MINIMUM_RISK_SCORE, raw)
        return RiskAssessment(
            **common,
            overall_risk_score=score,
            factors=[RiskFactor(name="AI Analysis", raw_score=raw, weight=1.0, contribution=raw)],
            recommendation=recommendation_for(score),
        )

    factors: list[RiskFactor] = []

    if isinstance(analysis.confidence, Present):
        factors.append(_factor("AI Infringement Confidence", confidence, CONFIDENCE_WEIGHT))

    if isinstance(analysis.strength, Present):
        factors.append(
            _factor("Legal Strength", STRENGTH_SCORES.get(strength, 0), STRENGTH_WEIGHT)
        )

    if isinstance(analysis.evidence_quality, Present):
        factors.append(
            _factor(
                "Evidence Quality",
                EVIDENCE_QUALITY_SCORES.get(evidence_quality, 0),
                EVIDENCE_QUALITY_WEIGHT,
            )
        )

    total = sum(f.contribution for f in factors)
    score = round_half_up(min(100.0, max(0.0, total)))

    return RiskAssessment(
        **common,
        overall_risk_score=score,
        factors=factors,
        recommendation=recommendation_for(score),
    )


def _factor(name: str, raw: float, weight: float) -> RiskFactor:
    return RiskFactor(name=name, raw_score=raw, weight=weight, contribution=raw * weight)
