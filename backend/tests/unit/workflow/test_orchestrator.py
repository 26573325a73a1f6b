"""Unit tests for the legal document workflow orchestrator."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from ipguard.analysis.client import Completion
from ipguard.analysis.models import ReviewOutcome
from ipguard.errors import AnalysisTimeoutError
from ipguard.workflow.models import CostTracker, DocumentRequest, DraftedDocument
from ipguard.workflow.orchestrator import (
    FAST_MODEL,
    STANDARD_MODEL,
    CompletionDocumentDrafter,
    DocumentDrafter,
    WorkflowOrchestrator,
)


@pytest.fixture
def request_(sample_asset, sample_snapshot) -> DocumentRequest:
    return DocumentRequest(
        case_id=uuid4(),
        document_type="dmca_takedown",
        asset=sample_asset,
        evidence=sample_snapshot,
        target_url=sample_snapshot.url,
    )


@pytest.fixture
def drafter():
    drafter = MagicMock()
    drafter.name = "LegalDraftAgent"
    drafter.generate_document = AsyncMock(
        return_value=DraftedDocument(content="DMCA TAKEDOWN NOTICE ...", tokens_used=900)
    )
    return drafter


@pytest.fixture
def review_engine(engine):
    engine.review_document = AsyncMock(
        return_value=ReviewOutcome(
            review={"quality_score": 81, "approval_recommendation": "APPROVE"},
            tokens_used=300,
        )
    )
    return engine


class TestGenerateLegalDocument:
    """Tests for WorkflowOrchestrator.generate_legal_document."""

    @pytest.mark.asyncio
    async def test_full_run(self, review_engine, drafter, request_):
        orchestrator = WorkflowOrchestrator(review_engine, drafter, CostTracker(cost_per_1k_tokens=0.5))

        result = await orchestrator.generate_legal_document(request_)

        assert result.success is True
        assert [s.action for s in result.run.steps] == [
            "validate_infringement",
            "generate_document",
            "review_document",
            "calculate_risk_score",
        ]
        assert result.risk_assessment.overall_risk_score == 85
        assert result.document.content.startswith("DMCA")
        assert result.cost_summary.total_tokens == 512 + 900 + 300
        assert result.run.total_cost == pytest.approx(1712 / 1000 * 0.5)

    @pytest.mark.asyncio
    async def test_skips_optional_steps(self, review_engine, drafter, request_):
        request_ = request_.model_copy(update={"validate_infringement": False, "review_document": False})
        orchestrator = WorkflowOrchestrator(review_engine, drafter)

        result = await orchestrator.generate_legal_document(request_)

        assert result.success is True
        assert [s.step for s in result.run.steps] == [2]
        assert result.risk_assessment is None
        drafter.generate_document.assert_awaited_once_with(request_, None)

    @pytest.mark.asyncio
    async def test_failure_keeps_partial_results(self, review_engine, drafter, request_):
        review_engine.review_document = AsyncMock(side_effect=AnalysisTimeoutError(60))
        orchestrator = WorkflowOrchestrator(review_engine, drafter)

        result = await orchestrator.generate_legal_document(request_)

        assert result.success is False
        assert result.error == "AI analysis timed out after 60s"
        assert result.infringement_analysis["confidence"] == 82
        assert result.document is not None
        assert result.document_review is None
        assert [s.action for s in result.run.steps] == ["validate_infringement", "generate_document"]
        assert result.run.success is False

    @pytest.mark.asyncio
    async def test_drafter_failure(self, review_engine, request_):
        drafter = MagicMock()
        drafter.name = "LegalDraftAgent"
        drafter.generate_document = AsyncMock(side_effect=RuntimeError("model overloaded"))
        orchestrator = WorkflowOrchestrator(review_engine, drafter)

        result = await orchestrator.generate_legal_document(request_)

        assert result.success is False
        assert result.document is None
        assert len(result.run.steps) == 1


class TestCostTracking:
    @pytest.mark.asyncio
    async def test_tracker_accumulates_until_reset(self, review_engine, drafter, request_):
        tracker = CostTracker()
        orchestrator = WorkflowOrchestrator(review_engine, drafter, tracker)

        await orchestrator.generate_legal_document(request_)
        await orchestrator.generate_legal_document(request_)
        assert tracker.total_tokens == 2 * 1712

        tracker.reset()
        assert tracker.total_tokens == 0
        assert tracker.total_cost == 0.0

    def test_orchestrators_do_not_share_trackers(self, engine, drafter):
        first = WorkflowOrchestrator(engine, drafter)
        second = WorkflowOrchestrator(engine, drafter)

        first.cost_tracker.add(100)

        assert second.cost_tracker.total_tokens == 0

    def test_usage_stats(self, engine, drafter):
        orchestrator = WorkflowOrchestrator(engine, drafter)
        orchestrator.cost_tracker.add(1000)

        stats = orchestrator.usage_stats()

        assert stats["total_tokens"] == 1000
        assert set(stats) >= {"session_duration", "estimated_cost", "cost_per_hour"}


class TestOptimizeWorkflow:
    """Tests for WorkflowOrchestrator.optimize_workflow."""

    def test_simple(self, engine, drafter):
        config = WorkflowOrchestrator(engine, drafter).optimize_workflow("simple")

        assert config.validate_infringement is False
        assert config.agent_model == FAST_MODEL

    def test_unknown_complexity_is_moderate(self, engine, drafter):
        config = WorkflowOrchestrator(engine, drafter).optimize_workflow("baroque")

        assert config.validate_infringement is True
        assert config.agent_model == STANDARD_MODEL
        assert config.max_tokens == 1500

    def test_low_budget(self, engine, drafter):
        config = WorkflowOrchestrator(engine, drafter).optimize_workflow("complex", budget_limit=0.05)

        assert config.agent_model == FAST_MODEL
        assert config.max_tokens == 800
        assert config.multiple_reviews is True

    def test_urgent_skips_validation(self, engine, drafter):
        config = WorkflowOrchestrator(engine, drafter).optimize_workflow(
            "moderate", time_constraint="urgent"
        )
        assert config.validate_infringement is False


class TestJurisdictionAndHealth:
    def test_supported(self, engine, drafter):
        check = WorkflowOrchestrator(engine, drafter).validate_jurisdiction("uk")

        assert check.jurisdiction == "UK"
        assert check.is_supported is True
        assert check.recommendation == "PROCEED"

    def test_unsupported(self, engine, drafter):
        check = WorkflowOrchestrator(engine, drafter).validate_jurisdiction("BR")

        assert check.is_supported is False
        assert check.recommendation == "USE_GENERIC_TEMPLATE"

    def test_health_check(self, engine, mock_completion_client):
        orchestrator = WorkflowOrchestrator(engine, CompletionDocumentDrafter(mock_completion_client))

        health = orchestrator.health_check()

        assert health["orchestrator"] == "healthy"
        assert health["agents"]["analysis"]["status"] == "healthy"
        assert "dmca_takedown" in health["agents"]["legal_draft"]["capabilities"]


class TestCompletionDocumentDrafter:
    @pytest.mark.asyncio
    async def test_generates_document(self, request_, mock_completion_client):
        mock_completion_client.complete.return_value = Completion(text="NOTICE", tokens_used=700)
        drafter = CompletionDocumentDrafter(mock_completion_client, max_tokens=1200)

        document = await drafter.generate_document(request_, None)

        assert isinstance(drafter, DocumentDrafter)
        assert document.content == "NOTICE"
        assert document.tokens_used == 700
        user_prompt = mock_completion_client.complete.call_args.args[1]
        assert "Aurora Photo Series" in user_prompt
        assert request_.target_url in user_prompt
        assert mock_completion_client.complete.call_args.kwargs["max_tokens"] == 1200
