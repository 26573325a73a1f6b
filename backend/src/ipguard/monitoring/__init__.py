"""Monitoring jobs: state machine, surveillance collector and browser slots."""

from .models import (
    CollectedPage,
    EvidenceSnapshot,
    ExecutionResult,
    JobStatus,
    MonitoringJob,
    MonitoringLog,
    MonitoringStats,
    ProtectedAsset,
)

__all__ = [
    "CollectedPage",
    "EvidenceSnapshot",
    "ExecutionResult",
    "JobStatus",
    "MonitoringJob",
    "MonitoringLog",
    "MonitoringStats",
    "ProtectedAsset",
]
