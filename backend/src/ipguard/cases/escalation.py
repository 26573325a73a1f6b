"""Automatic escalation of high-risk monitoring results into cases.

Escalation is idempotent per monitoring job and never fails the job that
triggered it: every error here is logged and swallowed.
"""

from typing import Any

from sqlalchemy.exc import IntegrityError

from ..analysis.models import AnalysisOutcome
from ..config import get_settings
from ..errors import EscalationError
from ..logging import get_context_logger, log_escalation
from ..monitoring.models import MonitoringJob, MonitoringLog, ProtectedAsset
from .models import Case, CaseStatus, EscalationResult, EvidenceRecord, EvidenceRecordType
from .repository import CaseRepository

HTML_EVIDENCE_LIMIT = 5000


def build_auto_case(
    job: MonitoringJob,
    asset: ProtectedAsset,
    log: MonitoringLog,
    created_by: str | None,
) -> Case:
    return Case(
        title=f"AUTO: {asset.title} - High Risk Detection",
        status=CaseStatus.OPEN,
        description=(
            "Automatically generated case from high-risk monitoring detection. "
            f"Risk Score: {log.risk_score}%. {log.result or ''}"
        ).strip(),
        related_asset_id=asset.id,
        suspected_url=job.target_url,
        created_by=created_by,
        auto_generated=True,
        source_monitoring_job_id=job.id,
    )


def build_evidence_records(
    case: Case,
    job: MonitoringJob,
    log: MonitoringLog,
    outcome: AnalysisOutcome,
) -> list[EvidenceRecord]:
    """Evidence for a new auto-case.

    Screenshot only when one was stored, risk analysis always, HTML only
    when the page HTML was captured.
    """
    common: dict[str, Any] = {
        "case_id": case.id,
        "monitoring_log_id": log.id,
        "auto_generated": True,
    }
    records: list[EvidenceRecord] = []

    if log.screenshot_url:
        records.append(
            EvidenceRecord(
                evidence_type=EvidenceRecordType.SCREENSHOT,
                evidence_url=log.screenshot_url,
                **common,
            )
        )

    records.append(
        EvidenceRecord(
            evidence_type=EvidenceRecordType.RISK_ANALYSIS,
            evidence_data={
                "risk_score": log.risk_score,
                "factors": [f.model_dump() for f in outcome.assessment.factors],
                "recommendation": outcome.assessment.recommendation.value,
                "summary": outcome.summary,
                "confidence": outcome.assessment.confidence or 0,
                "details": outcome.details,
            },
            **common,
        )
    )

    if log.html_content:
        page_stats = log.metadata.get("page_stats") or {}
        records.append(
            EvidenceRecord(
                evidence_type=EvidenceRecordType.HTML_CONTENT,
                evidence_data={
                    "html_content": log.html_content[:HTML_EVIDENCE_LIMIT],
                    "page_title": log.metadata.get("page_title") or "",
                    "page_url": job.target_url,
                    "word_count": page_stats.get("word_count") or 0,
                    "image_count": page_stats.get("image_count") or 0,
                },
                **common,
            )
        )

    return records


class CaseEscalationManager:
    """Creates at most one auto-case per monitoring job.

    Usage:
        manager = CaseEscalationManager()
        result = await manager.escalate(job, asset, log, outcome)
        if result.created:
            ...
    """

    def __init__(
        self,
        repository: CaseRepository | None = None,
        threshold: int | None = None,
    ):
        self.repository = repository or CaseRepository()
        self.threshold = threshold if threshold is not None else get_settings().auto_case_threshold

    def should_escalate(self, risk_score: int) -> bool:
        return risk_score >= self.threshold

    async def escalate(
        self,
        job: MonitoringJob,
        asset: ProtectedAsset,
        log: MonitoringLog,
        outcome: AnalysisOutcome,
        created_by: str | None = None,
    ) -> EscalationResult:
        """Escalate a completed job if its risk score crosses the threshold.

        Returns:
            EscalationResult; an empty result when below threshold or on error
        """
        if not self.should_escalate(log.risk_score):
            return EscalationResult()

        logger = get_context_logger(__name__, job_id=str(job.id))
        logger.info(f"High risk detected ({log.risk_score}%), escalating to auto-case")

        try:
            result = await self._escalate(job, asset, log, outcome, created_by or job.created_by)
            log_escalation(
                job_id=str(job.id),
                case_id=str(result.case_id) if result.case_id else None,
                created=result.created,
                evidence_count=result.evidence_count,
            )
        except EscalationError as e:
            logger.error(f"Auto-case escalation failed: {e}")
            return EscalationResult()
        except Exception as e:
            logger.error(f"Unexpected error during auto-case escalation: {e}", exc_info=True)
            return EscalationResult()

        return result

    async def _escalate(
        self,
        job: MonitoringJob,
        asset: ProtectedAsset,
        log: MonitoringLog,
        outcome: AnalysisOutcome,
        created_by: str | None,
    ) -> EscalationResult:
        existing = await self.repository.find_auto_case(job.id)
        if existing is not None:
            return EscalationResult(case_id=existing.id, created=False)

        case = build_auto_case(job, asset, log, created_by)
        try:
            await self.repository.create(case)
        except IntegrityError as e:
            # Lost a race with a concurrent escalation for the same job
            existing = await self.repository.find_auto_case(job.id)
            if existing is not None:
                return EscalationResult(case_id=existing.id, created=False)
            raise EscalationError(f"Failed to create auto-case: {e}") from e

        logger = get_context_logger(__name__, job_id=str(job.id), case_id=str(case.id))

        try:
            await self.repository.link_log(log.id, case.id)
        except Exception as e:
            logger.error(f"Failed to link monitoring log {log.id} to case: {e}")

        records = build_evidence_records(case, job, log, outcome)
        created = await self._attach_evidence(records, logger)

        return EscalationResult(case_id=case.id, created=True, evidence_count=created)

    async def _attach_evidence(self, records: list[EvidenceRecord], logger: Any) -> int:
        """Insert evidence in bulk, falling back to one insert per record."""
        logger.info(f"Creating {len(records)} evidence records")

        try:
            await self.repository.insert_evidence_bulk(records)
            return len(records)
        except Exception as e:
            logger.error(f"Bulk evidence insert failed, retrying individually: {e}")

        created = 0
        for record in records:
            try:
                await self.repository.insert_evidence(record)
                created += 1
            except Exception as e:
                logger.error(f"Failed to create {record.evidence_type.value} evidence: {e}")
        return created
