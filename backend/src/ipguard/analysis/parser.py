"""Line-oriented parser for structured AI responses.

The model is asked to answer in ``KEY: value`` lines. Each recognised key
is parsed independently; a key the model did not produce stays MISSING
so scoring can tell "the model said zero" from "the model said nothing".
"""

import re
from typing import Any, Callable

from .models import (
    MISSING,
    DocumentReview,
    InfringementAnalysis,
    ParsedField,
    Present,
)

_INTEGER = re.compile(r"-?\d+")


def parse_percentage(value: str) -> ParsedField[int]:
    """First integer in ``value``, clamped to [0, 100]."""
    match = _INTEGER.search(value)
    if match is None:
        return MISSING
    return Present(max(0, min(100, int(match.group()))))


def parse_yes_no(value: str) -> ParsedField[bool]:
    return Present(value.strip().upper() == "YES")


def parse_enum(value: str) -> ParsedField[str]:
    text = value.strip().upper()
    if not text:
        return MISSING
    return Present(text)


def parse_text(value: str) -> ParsedField[str]:
    text = value.strip()
    if not text:
        return MISSING
    return Present(text)


FieldParsers = dict[str, tuple[str, Callable[[str], ParsedField[Any]]]]

INFRINGEMENT_FIELDS: FieldParsers = {
    "CONFIDENCE": ("confidence", parse_percentage),
    "INFRINGEMENT_LIKELY": ("infringement_likely", parse_yes_no),
    "STRENGTH": ("strength", parse_enum),
    "LEGAL_BASIS": ("legal_basis", parse_text),
    "EVIDENCE_QUALITY": ("evidence_quality", parse_enum),
    "RECOMMENDATIONS": ("recommendations", parse_text),
    "RISKS": ("risks", parse_text),
}

REVIEW_FIELDS: FieldParsers = {
    "QUALITY_SCORE": ("quality_score", parse_percentage),
    "COMPLETENESS": ("completeness", parse_enum),
    "LEGAL_SOUNDNESS": ("legal_soundness", parse_enum),
    "MISSING_ELEMENTS": ("missing_elements", parse_text),
    "STRENGTHS": ("strengths", parse_text),
    "IMPROVEMENTS": ("improvements", parse_text),
    "APPROVAL_RECOMMENDATION": ("approval_recommendation", parse_enum),
}


def parse_fields(text: str, fields: FieldParsers) -> dict[str, ParsedField[Any]]:
    """Parse ``KEY: value`` lines for the given field table.

    The value is everything after the first colon. The first occurrence of
    a key wins; later repeats and unrecognised lines are ignored. Markdown
    emphasis around the key (``**CONFIDENCE**:``) is tolerated.
    """
    parsed: dict[str, ParsedField[Any]] = {}
    seen: set[str] = set()

    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue

        key = key.strip().strip("*").strip().upper()
        if key not in fields:
            continue

        attr, parser = fields[key]
        if attr in seen:
            continue
        seen.add(attr)

        result = parser(value.strip(" \t*"))
        if isinstance(result, Present):
            parsed[attr] = result

    return parsed


def parse_infringement_analysis(text: str) -> InfringementAnalysis:
    """Parse an infringement analysis response. Never raises."""
    return InfringementAnalysis(**parse_fields(text or "", INFRINGEMENT_FIELDS))


def parse_document_review(text: str) -> DocumentReview:
    """Parse a legal document review response. Never raises."""
    return DocumentReview(**parse_fields(text or "", REVIEW_FIELDS))
