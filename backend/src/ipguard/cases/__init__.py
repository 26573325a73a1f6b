"""Infringement cases and automatic escalation.

Usage:
    from ipguard.cases.escalation import CaseEscalationManager

    manager = CaseEscalationManager()
    result = await manager.escalate(job, asset, log, outcome)
"""

from .models import Case, CaseStatus, EscalationResult, EvidenceRecord, EvidenceRecordType

__all__ = [
    "Case",
    "CaseStatus",
    "EscalationResult",
    "EvidenceRecord",
    "EvidenceRecordType",
]
