"""Unit tests for the structured AI response parser."""

from ipguard.analysis.models import MISSING, Present, value_or
from ipguard.analysis.parser import (
    parse_document_review,
    parse_enum,
    parse_infringement_analysis,
    parse_percentage,
    parse_yes_no,
)


class TestFieldParsers:
    """Tests for individual field parsers."""

    def test_percentage_takes_first_integer(self):
        assert parse_percentage("82% (high)") == Present(82)

    def test_percentage_clamped(self):
        assert parse_percentage("140") == Present(100)
        assert parse_percentage("-5") == Present(0)

    def test_percentage_without_digits_is_missing(self):
        assert parse_percentage("high") is MISSING

    def test_yes_no(self):
        assert parse_yes_no("yes") == Present(True)
        assert parse_yes_no(" YES ") == Present(True)
        assert parse_yes_no("Probably") == Present(False)

    def test_enum_uppercases(self):
        assert parse_enum("strong") == Present("STRONG")
        assert parse_enum("   ") is MISSING


class TestInfringementAnalysis:
    """Tests for parse_infringement_analysis."""

    def test_full_response(self):
        analysis = parse_infringement_analysis(
            "CONFIDENCE: 82%\n"
            "INFRINGEMENT_LIKELY: YES\n"
            "STRENGTH: STRONG\n"
            "LEGAL_BASIS: Verbatim copy: same captions\n"
            "EVIDENCE_QUALITY: good\n"
        )

        assert analysis.confidence == Present(82)
        assert analysis.infringement_likely == Present(True)
        assert analysis.strength == Present("STRONG")
        assert analysis.evidence_quality == Present("GOOD")
        # Everything after the first colon belongs to the value
        assert value_or(analysis.legal_basis) == "Verbatim copy: same captions"

    def test_absent_keys_stay_missing(self):
        analysis = parse_infringement_analysis("CONFIDENCE: 50")

        assert analysis.strength is MISSING
        assert analysis.evidence_quality is MISSING
        assert analysis.infringement_likely is MISSING

    def test_first_occurrence_wins(self):
        analysis = parse_infringement_analysis("CONFIDENCE: 40\nCONFIDENCE: 90")
        assert analysis.confidence == Present(40)

    def test_unparsable_first_occurrence_is_not_replaced(self):
        analysis = parse_infringement_analysis("CONFIDENCE: unknown\nCONFIDENCE: 90")
        assert analysis.confidence is MISSING

    def test_tolerates_markdown_emphasis(self):
        analysis = parse_infringement_analysis("**CONFIDENCE**: 70\n**STRENGTH:** **MODERATE**")

        assert analysis.confidence == Present(70)
        assert analysis.strength == Present("MODERATE")

    def test_ignores_prose_and_unknown_keys(self):
        analysis = parse_infringement_analysis(
            "Here is my analysis.\nVERDICT: guilty\nno colon here\nSTRENGTH: WEAK"
        )
        assert analysis.strength == Present("WEAK")
        assert analysis.confidence is MISSING

    def test_empty_response(self):
        analysis = parse_infringement_analysis("")
        assert analysis.confidence is MISSING
        assert analysis.to_dict()["confidence"] is None


class TestDocumentReview:
    def test_review_fields(self):
        review = parse_document_review(
            "QUALITY_SCORE: 78\n"
            "COMPLETENESS: COMPLETE\n"
            "LEGAL_SOUNDNESS: SOUND\n"
            "MISSING_ELEMENTS: None\n"
            "APPROVAL_RECOMMENDATION: approve_with_changes\n"
        )

        assert review.quality_score == Present(78)
        assert review.approval_recommendation == Present("APPROVE_WITH_CHANGES")
        assert review.to_dict()["strengths"] is None
