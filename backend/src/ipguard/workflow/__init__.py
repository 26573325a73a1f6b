"""Multi-step legal document workflows.

Usage:
    from ipguard.workflow.orchestrator import WorkflowOrchestrator

    orchestrator = WorkflowOrchestrator()
    result = await orchestrator.generate_legal_document(request)
    orchestrator.cost_tracker.reset()
"""

from .models import (
    CostTracker,
    DocumentRequest,
    DraftedDocument,
    WorkflowConfig,
    WorkflowResult,
    WorkflowRun,
    WorkflowStep,
)

__all__ = [
    "CostTracker",
    "DocumentRequest",
    "DraftedDocument",
    "WorkflowConfig",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowStep",
]
