"""Evidence ledger and chain of custody."""

from .ledger import EvidenceLedger, get_evidence_ledger
from .models import (
    ChainOfCustodyReport,
    CustodyAction,
    CustodyEntry,
    EvidenceFile,
    IntegrityCheckResult,
    UploadContext,
    VerificationStatus,
)

__all__ = [
    "ChainOfCustodyReport",
    "CustodyAction",
    "CustodyEntry",
    "EvidenceFile",
    "EvidenceLedger",
    "IntegrityCheckResult",
    "UploadContext",
    "VerificationStatus",
    "get_evidence_ledger",
]
