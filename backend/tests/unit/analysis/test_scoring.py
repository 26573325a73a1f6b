"""Unit tests for deterministic risk scoring."""

import pytest

from ipguard.analysis.models import MISSING, InfringementAnalysis, Present, Recommendation
from ipguard.analysis.parser import parse_infringement_analysis
from ipguard.analysis.scoring import recommendation_for, round_half_up, score_risk


def _analysis(**fields) -> InfringementAnalysis:
    return InfringementAnalysis(**{k: Present(v) for k, v in fields.items()})


class TestScoreRisk:
    """Tests for score_risk."""

    def test_strong_good_evidence(self):
        # 82 * 0.6 + 100 * 0.25 + 75 * 0.15 = 85.45
        assessment = score_risk(
            _analysis(
                confidence=82,
                infringement_likely=True,
                strength="STRONG",
                evidence_quality="GOOD",
            )
        )

        assert assessment.overall_risk_score == 85
        assert assessment.recommendation == Recommendation.IMMEDIATE_ACTION_REQUIRED
        assert [f.name for f in assessment.factors] == [
            "AI Infringement Confidence",
            "Legal Strength",
            "Evidence Quality",
        ]

    def test_85_percent_strong_good_scores_87(self):
        # 85 * 0.6 + 100 * 0.25 + 75 * 0.15 = 87.25
        assessment = score_risk(
            _analysis(
                confidence=85,
                infringement_likely=True,
                strength="STRONG",
                evidence_quality="GOOD",
            )
        )

        assert assessment.overall_risk_score == 87
        assert assessment.recommendation == Recommendation.IMMEDIATE_ACTION_REQUIRED

    def test_missing_evidence_quality_is_not_reweighted(self):
        # 50 * 0.6 + 65 * 0.25 = 46.25
        assessment = score_risk(
            _analysis(confidence=50, infringement_likely=True, strength="MODERATE")
        )

        assert assessment.overall_risk_score == 46
        assert assessment.recommendation == Recommendation.MONITOR_CLOSELY
        assert len(assessment.factors) == 2

    def test_zero_confidence_floor(self):
        assessment = score_risk(
            _analysis(confidence=0, infringement_likely=True, strength="STRONG")
        )

        assert assessment.overall_risk_score == 3
        assert len(assessment.factors) == 1
        assert assessment.factors[0].name == "AI Analysis"
        assert assessment.recommendation == Recommendation.LOW_PRIORITY

    def test_not_likely_uses_confidence(self):
        assessment = score_risk(_analysis(confidence=35, infringement_likely=False))

        assert assessment.overall_risk_score == 35
        assert assessment.factors[0].raw_score == 35

    def test_missing_likely_is_treated_as_no(self):
        assessment = score_risk(InfringementAnalysis(confidence=Present(90)))
        assert assessment.overall_risk_score == 90
        assert assessment.factors[0].name == "AI Analysis"

    def test_empty_response_scores_floor(self):
        assessment = score_risk(parse_infringement_analysis(""))
        assert assessment.overall_risk_score == 3
        assert assessment.confidence is None

    def test_unknown_strength_scores_zero(self):
        assessment = score_risk(
            _analysis(confidence=50, infringement_likely=True, strength="OVERWHELMING")
        )
        strength = next(f for f in assessment.factors if f.name == "Legal Strength")

        assert strength.raw_score == 0
        assert assessment.overall_risk_score == 30

    def test_likely_without_confidence(self):
        assessment = score_risk(
            InfringementAnalysis(
                confidence=MISSING,
                infringement_likely=Present(True),
                strength=Present("STRONG"),
            )
        )
        # No confidence factor; strength alone contributes 25
        assert assessment.overall_risk_score == 25

    def test_score_always_in_range(self):
        assessment = score_risk(
            _analysis(
                confidence=100,
                infringement_likely=True,
                strength="STRONG",
                evidence_quality="EXCELLENT",
            )
        )
        assert assessment.overall_risk_score == 100


@pytest.mark.parametrize(
    "score,expected",
    [
        (80, Recommendation.IMMEDIATE_ACTION_REQUIRED),
        (79, Recommendation.LEGAL_ACTION_RECOMMENDED),
        (60, Recommendation.LEGAL_ACTION_RECOMMENDED),
        (40, Recommendation.MONITOR_CLOSELY),
        (20, Recommendation.CONTINUE_MONITORING),
        (19, Recommendation.LOW_PRIORITY),
    ],
)
def test_recommendation_thresholds(score, expected):
    assert recommendation_for(score) == expected


def test_round_half_up():
    assert round_half_up(46.5) == 47
    assert round_half_up(85.45) == 85
    assert round_half_up(0.5) == 1
