"""Monitoring job state machine.

A job moves pending -> running -> completed | failed and never returns to
pending. The pending -> running step is a compare-and-swap in the
database, so concurrent executions of one job yield exactly one winner.
"""

import time
from datetime import datetime, timezone
from uuid import UUID

from ..analysis.engine import RiskAssessmentEngine
from ..analysis.models import AnalysisOutcome
from ..cases.escalation import CaseEscalationManager
from ..errors import (
    AssetNotFoundError,
    InvalidRequestError,
    JobConflictError,
    JobNotFoundError,
)
from ..logging import get_context_logger, log_job_completed, log_job_failed, log_job_started
from ..storage import StorageClient, get_storage, store_screenshot
from .collector import SurveillanceCollector
from .models import (
    AGENT_VERSION,
    CollectedPage,
    ExecutionResult,
    JobStatus,
    MonitoringJob,
    MonitoringLog,
    MonitoringStats,
    validate_target_url,
)
from .repository import JobRepository
from .slots import BrowserSlotPool, get_browser_slots


class MonitoringJobService:
    """Creates and executes monitoring jobs.

    Collaborators are injected so each can be replaced in tests; defaults
    come from settings.
    """

    def __init__(
        self,
        repository: JobRepository | None = None,
        collector: SurveillanceCollector | None = None,
        engine: RiskAssessmentEngine | None = None,
        storage: StorageClient | None = None,
        escalation: CaseEscalationManager | None = None,
        slots: BrowserSlotPool | None = None,
    ):
        self.repository = repository or JobRepository()
        self._collector = collector
        self._engine = engine
        self._storage = storage
        self.escalation = escalation or CaseEscalationManager()
        self.slots = slots or get_browser_slots()

    @property
    def collector(self) -> SurveillanceCollector:
        if self._collector is None:
            self._collector = SurveillanceCollector()
        return self._collector

    @property
    def engine(self) -> RiskAssessmentEngine:
        if self._engine is None:
            self._engine = RiskAssessmentEngine()
        return self._engine

    @property
    def storage(self) -> StorageClient:
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    # =========================
    # Queries
    # =========================

    async def get_job(self, job_id: UUID) -> MonitoringJob:
        job = await self.repository.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def get_latest_log(self, job_id: UUID) -> MonitoringLog | None:
        return await self.repository.get_latest_log(job_id)

    async def get_stats(self) -> MonitoringStats:
        return await self.repository.stats()

    # =========================
    # Commands
    # =========================

    async def create_job(self, url: str, asset_id: UUID, actor_id: str) -> MonitoringJob:
        """Create a pending monitoring job.

        Raises:
            InvalidRequestError: If the URL is not http(s) with a hostname
            AssetNotFoundError: If the protected asset does not exist
        """
        try:
            url = validate_target_url(url)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

        if await self.repository.get_asset(asset_id) is None:
            raise AssetNotFoundError(asset_id)

        job = MonitoringJob(target_url=url, protected_asset_id=asset_id, created_by=actor_id)
        await self.repository.create(job)

        get_context_logger(__name__, job_id=str(job.id)).info(
            f"Created monitoring job for {url}"
        )
        return job

    async def execute_job(self, job_id: UUID, actor_id: str | None = None) -> ExecutionResult:
        """Run one monitoring job to completion.

        Waits for a browser slot, claims the job, collects the page, scores
        it, stores the screenshot and log, then hands high-risk results to
        escalation.

        Args:
            job_id: Job to execute
            actor_id: User credited with any auto-case; defaults to the job creator

        Returns:
            ExecutionResult with the completed job and its log

        Raises:
            JobNotFoundError: If the job does not exist
            JobConflictError: If the job is not pending
            NavigationError, AnalysisTimeoutError, StorageError: Job failed;
                its status is ``failed`` with this message recorded
        """
        # Fail fast on a job that is not pending instead of queueing for a slot
        current = await self.get_job(job_id)
        if current.status != JobStatus.PENDING:
            raise _conflict(current)

        async with self.slots.slot():
            if not await self.repository.claim(job_id):
                await self._raise_conflict(job_id)

            job = await self.get_job(job_id)
            logger = get_context_logger(__name__, job_id=str(job_id))
            log_job_started(str(job_id), job.target_url)
            started = time.monotonic()

            try:
                asset = await self.repository.get_asset(job.protected_asset_id)
                if asset is None:
                    raise AssetNotFoundError(job.protected_asset_id)

                page = await self.collector.collect(job.target_url)
                outcome = await self.engine.analyze(asset, page.snapshot, job.target_url)

                screenshot_url = await store_screenshot(self.storage, job.id, page.screenshot)

                log = self._build_log(job, page, outcome, screenshot_url, started)
                await self.repository.insert_log(log)
                await self.repository.complete(job.id)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                try:
                    await self.repository.fail(job.id, message)
                except Exception as fail_error:
                    logger.error(f"Could not mark job failed: {fail_error}")
                log_job_failed(str(job_id), message)
                raise

        duration = time.monotonic() - started
        log_job_completed(
            str(job_id), log.risk_score, round(duration, 3), screenshot_url is not None
        )

        escalation = await self.escalation.escalate(job, asset, log, outcome, actor_id)
        if escalation.case_id is not None:
            log = log.model_copy(update={"auto_case_id": escalation.case_id})

        return ExecutionResult(
            job=await self.get_job(job_id),
            log=log,
            assessment=outcome.assessment,
            auto_case_id=escalation.case_id,
            auto_case_created=escalation.created,
        )

    async def _raise_conflict(self, job_id: UUID) -> None:
        raise _conflict(await self.get_job(job_id))

    def _build_log(
        self,
        job: MonitoringJob,
        page: CollectedPage,
        outcome: AnalysisOutcome,
        screenshot_url: str | None,
        started: float,
    ) -> MonitoringLog:
        snapshot = page.snapshot
        metadata = snapshot.model_dump(mode="json", exclude={"html_excerpt"})
        metadata.update(
            {
                "analysis_details": outcome.details,
                "agent_version": AGENT_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "processing_time_ms": int((time.monotonic() - started) * 1000),
            }
        )

        return MonitoringLog(
            job_id=job.id,
            result=f"SurveillanceAgent Analysis: {outcome.summary}",
            risk_score=outcome.assessment.overall_risk_score,
            screenshot_url=screenshot_url,
            html_content=snapshot.html_excerpt or None,
            metadata=metadata,
        )


def _conflict(job: MonitoringJob) -> JobConflictError:
    if job.status == JobStatus.PENDING:
        message = f"Job {job.id} could not be claimed"
    else:
        message = f"Job {job.id} is already {job.status.value}"
    return JobConflictError(job.id, job.status.value, message)


_service: MonitoringJobService | None = None


def get_monitoring_service() -> MonitoringJobService:
    """Get the monitoring service singleton."""
    global _service
    if _service is None:
        _service = MonitoringJobService()
    return _service
