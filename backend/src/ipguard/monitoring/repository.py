"""Persistence for monitoring jobs, logs and protected assets."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..analysis.scoring import round_half_up
from ..db import SessionFactory, get_session_factory, session_scope
from ..errors import StorageError
from ..tables import ip_assets, monitoring_jobs, monitoring_logs
from .models import (
    JobStatus,
    MonitoringJob,
    MonitoringLog,
    MonitoringStats,
    ProtectedAsset,
)

HIGH_RISK_SCORE = 70


def _row_to_job(row: Any) -> MonitoringJob:
    return MonitoringJob.model_construct(
        id=row.id,
        target_url=row.url,
        protected_asset_id=row.ip_asset_id,
        status=JobStatus(row.status),
        created_by=row.created_by,
        created_at=row.created_at,
        completed_at=row.completed_at,
        error_message=row.error_message,
    )


class JobRepository:
    """Async repository over the monitoring tables.

    Every method opens its own short transaction so that state transitions
    are visible to concurrent executors as soon as they return.
    """

    def __init__(self, session_factory: SessionFactory | None = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    # =========================
    # Assets
    # =========================

    async def insert_asset(self, asset: ProtectedAsset, created_by: str | None = None) -> None:
        async with session_scope(self.session_factory) as session:
            await session.execute(
                insert(ip_assets).values(
                    id=asset.id,
                    title=asset.title,
                    type=asset.type,
                    description=asset.description,
                    registration_number=asset.registration_number,
                    jurisdiction=asset.jurisdiction,
                    created_by=created_by,
                    created_at=datetime.now(timezone.utc),
                )
            )

    async def get_asset(self, asset_id: UUID) -> ProtectedAsset | None:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(select(ip_assets).where(ip_assets.c.id == asset_id))
            row = result.first()

        if row is None:
            return None
        return ProtectedAsset(
            id=row.id,
            title=row.title,
            type=row.type,
            description=row.description,
            registration_number=row.registration_number,
            jurisdiction=row.jurisdiction,
        )

    # =========================
    # Jobs
    # =========================

    async def create(self, job: MonitoringJob) -> MonitoringJob:
        async with session_scope(self.session_factory) as session:
            await session.execute(
                insert(monitoring_jobs).values(
                    id=job.id,
                    url=job.target_url,
                    ip_asset_id=job.protected_asset_id,
                    status=job.status.value,
                    created_by=job.created_by,
                    created_at=job.created_at,
                )
            )
        return job

    async def get(self, job_id: UUID) -> MonitoringJob | None:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(monitoring_jobs).where(monitoring_jobs.c.id == job_id)
            )
            row = result.first()
        return _row_to_job(row) if row is not None else None

    async def transition(
        self,
        job_id: UUID,
        expected: JobStatus,
        new: JobStatus,
        **values: Any,
    ) -> bool:
        """Compare-and-swap the job status.

        Returns:
            True if the job was in ``expected`` and is now ``new``
        """
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                update(monitoring_jobs)
                .where(monitoring_jobs.c.id == job_id)
                .where(monitoring_jobs.c.status == expected.value)
                .values(status=new.value, **values)
            )
            return result.rowcount == 1

    async def claim(self, job_id: UUID) -> bool:
        """Move a pending job to running. Exactly one concurrent caller wins."""
        return await self.transition(job_id, JobStatus.PENDING, JobStatus.RUNNING)

    async def complete(self, job_id: UUID) -> bool:
        return await self.transition(
            job_id,
            JobStatus.RUNNING,
            JobStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
            error_message=None,
        )

    async def fail(self, job_id: UUID, error_message: str) -> bool:
        return await self.transition(
            job_id,
            JobStatus.RUNNING,
            JobStatus.FAILED,
            completed_at=datetime.now(timezone.utc),
            error_message=error_message,
        )

    # =========================
    # Logs
    # =========================

    async def insert_log(self, log: MonitoringLog) -> MonitoringLog:
        """Persist a monitoring log.

        Raises:
            StorageError: If the row could not be written
        """
        try:
            async with session_scope(self.session_factory) as session:
                await session.execute(
                    insert(monitoring_logs).values(
                        id=log.id,
                        job_id=log.job_id,
                        result=log.result,
                        risk_score=log.risk_score,
                        screenshot_url=log.screenshot_url,
                        html_content=log.html_content,
                        metadata=log.metadata,
                        auto_case_id=log.auto_case_id,
                        created_at=log.created_at,
                    )
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create monitoring log: {e}") from e
        return log

    async def get_latest_log(self, job_id: UUID) -> MonitoringLog | None:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(monitoring_logs)
                .where(monitoring_logs.c.job_id == job_id)
                .order_by(monitoring_logs.c.created_at.desc())
                .limit(1)
            )
            row = result.first()

        if row is None:
            return None
        return MonitoringLog(
            id=row.id,
            job_id=row.job_id,
            result=row.result,
            risk_score=row.risk_score,
            screenshot_url=row.screenshot_url,
            html_content=row.html_content,
            metadata=row._mapping["metadata"] or {},
            auto_case_id=row.auto_case_id,
            created_at=row.created_at,
        )

    # =========================
    # Statistics
    # =========================

    async def stats(self) -> MonitoringStats:
        async with session_scope(self.session_factory) as session:
            status_rows = await session.execute(
                select(monitoring_jobs.c.status, func.count()).group_by(monitoring_jobs.c.status)
            )
            jobs_by_status = {status: count for status, count in status_rows.all()}

            risk_row = (
                await session.execute(
                    select(
                        func.count(monitoring_logs.c.id),
                        func.avg(monitoring_logs.c.risk_score),
                        func.count(monitoring_logs.c.id).filter(
                            monitoring_logs.c.risk_score >= HIGH_RISK_SCORE
                        ),
                    )
                )
            ).one()

        log_count, average, high_risk = risk_row
        return MonitoringStats(
            total_jobs=sum(jobs_by_status.values()),
            jobs_by_status=jobs_by_status,
            average_risk_score=round_half_up(float(average)) if log_count else 0,
            high_risk_count=high_risk or 0,
        )
