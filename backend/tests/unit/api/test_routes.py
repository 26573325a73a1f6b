"""Unit tests for the REST API with mocked services."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from ipguard.analysis.models import Recommendation, RiskAssessment
from ipguard.errors import (
    EvidenceNotFoundError,
    InvalidRequestError,
    JobConflictError,
    JobNotFoundError,
    NavigationError,
)
from ipguard.evidence.ledger import get_evidence_ledger
from ipguard.evidence.models import CustodyAction, CustodyEntry, IntegrityCheckResult
from ipguard.main import app
from ipguard.monitoring.models import (
    ExecutionResult,
    JobStatus,
    MonitoringJob,
    MonitoringLog,
    MonitoringStats,
)
from ipguard.monitoring.service import get_monitoring_service

ACTOR = {"X-Actor-Id": "analyst-1"}


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def ledger_mock():
    return MagicMock()


@pytest.fixture
def client(service, ledger_mock):
    app.dependency_overrides[get_monitoring_service] = lambda: service
    app.dependency_overrides[get_evidence_ledger] = lambda: ledger_mock
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def job() -> MonitoringJob:
    return MonitoringJob(
        target_url="https://shop.example.com/aurora",
        protected_asset_id=uuid4(),
        created_by="analyst-1",
    )


class TestMonitoringRoutes:
    def test_requires_actor_header(self, client, service):
        response = client.post(
            "/api/v1/monitoring/jobs",
            json={"url": "https://shop.example.com/aurora", "ip_asset_id": str(uuid4())},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTHENTICATION_REQUIRED"
        service.create_job.assert_not_called()

    def test_create_job(self, client, service, job):
        service.create_job = AsyncMock(return_value=job)

        response = client.post(
            "/api/v1/monitoring/jobs",
            json={"url": job.target_url, "ip_asset_id": str(job.protected_asset_id)},
            headers=ACTOR,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["url"] == job.target_url
        service.create_job.assert_awaited_once_with(
            job.target_url, job.protected_asset_id, "analyst-1"
        )

    def test_create_job_rejects_bad_url(self, client, service):
        service.create_job = AsyncMock(side_effect=InvalidRequestError("Invalid URL"))

        response = client.post(
            "/api/v1/monitoring/jobs",
            json={"url": "https://shop.example.com", "ip_asset_id": str(uuid4())},
            headers=ACTOR,
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_get_job_not_found(self, client, service):
        job_id = uuid4()
        service.get_job = AsyncMock(side_effect=JobNotFoundError(job_id))

        response = client.get(f"/api/v1/monitoring/jobs/{job_id}", headers=ACTOR)

        assert response.status_code == 404
        assert response.headers["X-Error-Code"] == "NOT_FOUND"

    def test_get_job_includes_failure(self, client, service, job):
        failed = job.model_copy(
            update={"status": JobStatus.FAILED, "error_message": "Navigation failed"}
        )
        service.get_job = AsyncMock(return_value=failed)
        service.get_latest_log = AsyncMock(return_value=None)

        response = client.get(f"/api/v1/monitoring/jobs/{job.id}", headers=ACTOR)

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["error_message"] == "Navigation failed"

    def test_execute_job(self, client, service, job):
        completed = job.model_copy(update={"status": JobStatus.COMPLETED})
        case_id = uuid4()
        service.execute_job = AsyncMock(
            return_value=ExecutionResult(
                job=completed,
                log=MonitoringLog(job_id=job.id, risk_score=85, auto_case_id=case_id),
                assessment=RiskAssessment(
                    confidence=82,
                    infringement_likely=True,
                    overall_risk_score=85,
                    recommendation=Recommendation.IMMEDIATE_ACTION_REQUIRED,
                ),
                auto_case_id=case_id,
                auto_case_created=True,
            )
        )

        response = client.post(f"/api/v1/monitoring/jobs/{job.id}/execute", headers=ACTOR)

        assert response.status_code == 200
        body = response.json()
        assert body["job"]["status"] == "completed"
        assert body["assessment"]["overall_risk_score"] == 85
        assert body["auto_case_id"] == str(case_id)
        service.execute_job.assert_awaited_once_with(job.id, actor_id="analyst-1")

    def test_execute_conflict(self, client, service, job):
        service.execute_job = AsyncMock(
            side_effect=JobConflictError(job.id, "completed", f"Job {job.id} is already completed")
        )

        response = client.post(f"/api/v1/monitoring/jobs/{job.id}/execute", headers=ACTOR)

        assert response.status_code == 409
        assert "is already completed" in response.json()["error"]

    def test_execute_upstream_failure(self, client, service, job):
        service.execute_job = AsyncMock(side_effect=NavigationError(job.target_url, 3))

        response = client.post(f"/api/v1/monitoring/jobs/{job.id}/execute", headers=ACTOR)

        assert response.status_code == 502
        assert response.json()["error_code"] == "UPSTREAM_ERROR"

    def test_stats(self, client, service):
        service.get_stats = AsyncMock(
            return_value=MonitoringStats(total_jobs=2, jobs_by_status={"completed": 2})
        )

        response = client.get("/api/v1/monitoring/stats", headers=ACTOR)

        assert response.status_code == 200
        assert response.json()["total_jobs"] == 2


class TestEvidenceRoutes:
    def test_log_access(self, client, ledger_mock):
        evidence_id = uuid4()
        ledger_mock.log_access = AsyncMock(
            return_value=CustodyEntry(
                action=CustodyAction.VIEWED, actor="analyst-1", details="Evidence viewed"
            )
        )

        response = client.post(
            f"/api/v1/evidence/{evidence_id}/access",
            json={"action": "viewed"},
            headers=ACTOR,
        )

        assert response.status_code == 201
        assert response.json()["action"] == "viewed"
        ledger_mock.log_access.assert_awaited_once_with(
            evidence_id, CustodyAction.VIEWED, "analyst-1", None
        )

    def test_log_access_unknown_action(self, client, ledger_mock):
        response = client.post(
            f"/api/v1/evidence/{uuid4()}/access",
            json={"action": "shredded"},
            headers=ACTOR,
        )

        assert response.status_code == 422

    def test_verify(self, client, ledger_mock):
        evidence_id = uuid4()
        ledger_mock.verify_integrity = AsyncMock(
            return_value=IntegrityCheckResult(
                is_valid=False,
                original_hash="a" * 64,
                current_hash="b" * 64,
                verified_at="2026-01-01T00:00:00Z",
            )
        )

        response = client.post(
            f"/api/v1/evidence/{evidence_id}/verify",
            json={"current_hash": "b" * 64},
            headers=ACTOR,
        )

        assert response.status_code == 200
        assert response.json()["is_valid"] is False

    def test_custody_not_found(self, client, ledger_mock):
        evidence_id = uuid4()
        ledger_mock.get_chain_of_custody = AsyncMock(
            side_effect=EvidenceNotFoundError(evidence_id)
        )

        response = client.get(f"/api/v1/evidence/{evidence_id}/custody", headers=ACTOR)

        assert response.status_code == 404


def test_liveness():
    response = TestClient(app).get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}
