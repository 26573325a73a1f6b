"""Persistence for cases and monitoring evidence."""

from typing import Any
from uuid import UUID

from sqlalchemy import insert, select, update

from ..db import SessionFactory, get_session_factory, session_scope
from ..tables import cases, monitoring_evidence, monitoring_logs
from .models import Case, CaseStatus, EvidenceRecord, EvidenceRecordType


def _row_to_case(row: Any) -> Case:
    return Case(
        id=row.id,
        title=row.title,
        status=CaseStatus(row.status),
        description=row.description,
        related_asset_id=row.related_ip_asset_id,
        suspected_url=row.suspected_url,
        created_by=row.created_by,
        auto_generated=row.auto_generated,
        source_monitoring_job_id=row.source_monitoring_job_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _evidence_values(record: EvidenceRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "monitoring_log_id": record.monitoring_log_id,
        "case_id": record.case_id,
        "evidence_type": record.evidence_type.value,
        "evidence_url": record.evidence_url,
        "evidence_data": record.evidence_data,
        "auto_generated": record.auto_generated,
        "created_at": record.created_at,
    }


class CaseRepository:
    """Async repository over the cases and monitoring_evidence tables."""

    def __init__(self, session_factory: SessionFactory | None = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def get(self, case_id: UUID) -> Case | None:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(select(cases).where(cases.c.id == case_id))
            row = result.first()
        return _row_to_case(row) if row is not None else None

    async def find_auto_case(self, job_id: UUID) -> Case | None:
        """Find the auto-generated case for a monitoring job, if any."""
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(cases)
                .where(cases.c.source_monitoring_job_id == job_id)
                .where(cases.c.auto_generated.is_(True))
                .limit(1)
            )
            row = result.first()
        return _row_to_case(row) if row is not None else None

    async def create(self, case: Case) -> Case:
        """Insert a case.

        Raises:
            IntegrityError: If an auto-case already exists for the same job
        """
        async with session_scope(self.session_factory) as session:
            await session.execute(
                insert(cases).values(
                    id=case.id,
                    title=case.title,
                    status=case.status.value,
                    description=case.description,
                    related_ip_asset_id=case.related_asset_id,
                    suspected_url=case.suspected_url,
                    created_by=case.created_by,
                    auto_generated=case.auto_generated,
                    source_monitoring_job_id=case.source_monitoring_job_id,
                    created_at=case.created_at,
                    updated_at=case.updated_at,
                )
            )
        return case

    async def link_log(self, log_id: UUID, case_id: UUID) -> None:
        async with session_scope(self.session_factory) as session:
            await session.execute(
                update(monitoring_logs)
                .where(monitoring_logs.c.id == log_id)
                .values(auto_case_id=case_id)
            )

    async def insert_evidence_bulk(self, records: list[EvidenceRecord]) -> None:
        """Insert all records in one statement; nothing is written on failure."""
        async with session_scope(self.session_factory) as session:
            await session.execute(
                insert(monitoring_evidence), [_evidence_values(r) for r in records]
            )

    async def insert_evidence(self, record: EvidenceRecord) -> None:
        async with session_scope(self.session_factory) as session:
            await session.execute(insert(monitoring_evidence).values(**_evidence_values(record)))

    async def list_evidence(self, case_id: UUID) -> list[EvidenceRecord]:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(monitoring_evidence)
                .where(monitoring_evidence.c.case_id == case_id)
                .order_by(monitoring_evidence.c.created_at)
            )
            rows = result.all()

        return [
            EvidenceRecord(
                id=row.id,
                evidence_type=EvidenceRecordType(row.evidence_type),
                evidence_url=row.evidence_url,
                evidence_data=row.evidence_data,
                auto_generated=row.auto_generated,
                case_id=row.case_id,
                monitoring_log_id=row.monitoring_log_id,
                created_at=row.created_at,
            )
            for row in rows
        ]
