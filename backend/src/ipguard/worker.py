"""Celery worker configuration for IPGuard.

Runs monitoring jobs in the background so API requests can return as soon
as a job is created.
"""

import asyncio
from uuid import UUID

from celery import Celery

from .config import get_settings
from .errors import JobConflictError
from .logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Create Celery app
app = Celery(
    "ipguard",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,
    task_soft_time_limit=540,
    # One browser per worker process; the slot pool bounds it further
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.max_concurrent_browsers,
    result_expires=86400,
    task_routes={
        "ipguard.monitoring.*": {"queue": "monitoring"},
    },
)


@app.task(name="ipguard.monitoring.execute_job")
def execute_monitoring_job(job_id: str, actor_id: str | None = None) -> dict:
    """Execute a pending monitoring job.

    Jobs are never retried here: a failed job is terminal and a new job
    must be created for another attempt.
    """
    from .db import close_all_connections
    from .monitoring.service import MonitoringJobService
    from .monitoring.slots import BrowserSlotPool

    async def run():
        # Each task runs on a fresh event loop; AI and database clients
        # must not outlive it
        service = MonitoringJobService(slots=BrowserSlotPool())
        try:
            return await service.execute_job(UUID(job_id), actor_id=actor_id)
        finally:
            await close_all_connections()

    try:
        result = asyncio.run(run())
    except JobConflictError as e:
        logger.info(f"Skipping job {job_id}: {e}")
        return {"job_id": job_id, "status": e.current_status, "skipped": True}

    return {
        "job_id": job_id,
        "status": result.job.status.value,
        "risk_score": result.assessment.overall_risk_score,
        "auto_case_id": str(result.auto_case_id) if result.auto_case_id else None,
    }
