"""Domain exceptions for IPGuard.

The API layer maps these onto HTTP responses; the monitoring service
records their message verbatim on failed jobs.
"""

from uuid import UUID


class IPGuardError(Exception):
    """Base class for all IPGuard domain errors."""


class JobNotFoundError(IPGuardError):
    """The requested monitoring job does not exist."""

    def __init__(self, job_id: UUID | str):
        self.job_id = job_id
        super().__init__(f"Monitoring job not found: {job_id}")


class JobConflictError(IPGuardError):
    """The job is not in the state required for the requested transition."""

    def __init__(self, job_id: UUID | str, current_status: str, message: str):
        self.job_id = job_id
        self.current_status = current_status
        super().__init__(message)


class NavigationError(IPGuardError):
    """The collector could not load the target URL within its retry budget."""

    def __init__(self, url: str, attempts: int, cause: Exception | None = None):
        self.url = url
        self.attempts = attempts
        detail = f": {cause}" if cause else ""
        super().__init__(f"Navigation to {url} failed after {attempts} attempts{detail}")


class AnalysisTimeoutError(IPGuardError):
    """The AI completion call exceeded its timeout."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"AI analysis timed out after {timeout_seconds:g}s")


class StorageError(IPGuardError):
    """An upload or record persistence failed."""


class EscalationError(IPGuardError):
    """Auto-case escalation failed. Never propagated past the escalation manager."""


class EvidenceNotFoundError(IPGuardError):
    """The requested evidence file does not exist."""

    def __init__(self, evidence_id: UUID | str):
        self.evidence_id = evidence_id
        super().__init__(f"Evidence not found: {evidence_id}")


class AssetNotFoundError(IPGuardError):
    """The protected asset referenced by a job does not exist."""

    def __init__(self, asset_id: UUID | str):
        self.asset_id = asset_id
        super().__init__(f"Protected asset not found: {asset_id}")


class InvalidRequestError(IPGuardError):
    """A request failed validation (for example a non-http target URL)."""
