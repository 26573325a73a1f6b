"""API endpoints for monitoring jobs."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..analysis.models import RiskAssessment
from ..monitoring.models import CreateJobRequest, JobStatus, MonitoringLog, MonitoringStats
from ..monitoring.service import MonitoringJobService, get_monitoring_service
from . import get_actor_id

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


class JobResponse(BaseModel):
    """Monitoring job with its latest result."""

    id: UUID
    url: str
    ip_asset_id: UUID
    status: JobStatus
    created_by: str
    created_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None
    latest_log: MonitoringLog | None = None


class ExecuteJobResponse(BaseModel):
    job: JobResponse
    assessment: RiskAssessment
    auto_case_created: bool
    auto_case_id: UUID | None = None
    message: str


def _job_response(job, log: MonitoringLog | None = None) -> JobResponse:
    return JobResponse(
        id=job.id,
        url=job.target_url,
        ip_asset_id=job.protected_asset_id,
        status=job.status,
        created_by=job.created_by,
        created_at=job.created_at,
        completed_at=job.completed_at,
        error_message=job.error_message,
        latest_log=log,
    )


@router.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(
    request: CreateJobRequest,
    actor_id: str = Depends(get_actor_id),
    service: MonitoringJobService = Depends(get_monitoring_service),
) -> JobResponse:
    """Create a pending monitoring job."""
    job = await service.create_job(request.url, request.ip_asset_id, actor_id)
    return _job_response(job)


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: UUID,
    actor_id: str = Depends(get_actor_id),
    service: MonitoringJobService = Depends(get_monitoring_service),
) -> JobResponse:
    """Get a job, its terminal status and error message, and its latest log."""
    job = await service.get_job(job_id)
    return _job_response(job, await service.get_latest_log(job_id))


@router.post("/jobs/{job_id}/execute", response_model=ExecuteJobResponse)
async def execute_job(
    job_id: UUID,
    actor_id: str = Depends(get_actor_id),
    service: MonitoringJobService = Depends(get_monitoring_service),
) -> ExecuteJobResponse:
    """Execute a pending job synchronously.

    Returns 409 if the job is not pending and 502 if collection or
    analysis failed (the job is then ``failed`` with the same message).
    """
    result = await service.execute_job(job_id, actor_id=actor_id)
    return ExecuteJobResponse(
        job=_job_response(result.job, result.log),
        assessment=result.assessment,
        auto_case_created=result.auto_case_created,
        auto_case_id=result.auto_case_id,
        message=(
            "High-risk infringement detected. Auto-case created with evidence."
            if result.auto_case_created
            else "Monitoring job completed successfully"
        ),
    )


@router.get("/stats", response_model=MonitoringStats)
async def get_stats(
    actor_id: str = Depends(get_actor_id),
    service: MonitoringJobService = Depends(get_monitoring_service),
) -> MonitoringStats:
    """Job counts by status, average risk score and high-risk count."""
    return await service.get_stats()
