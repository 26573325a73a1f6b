"""Evidence ledger with an append-only chain of custody.

Custody entries are only ever inserted; no operation here updates or
deletes a prior entry. Integrity status lives on the evidence row and is
updated alongside each ``integrity_check`` entry.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import SessionFactory, get_session_factory, session_scope
from ..errors import EvidenceNotFoundError, InvalidRequestError
from ..logging import get_logger, log_custody_event
from ..storage import StorageClient, compute_content_hash, get_storage
from ..tables import cases, custody_log, evidence_files
from .models import (
    ACCESS_ACTIONS,
    ChainOfCustodyReport,
    CustodyAction,
    CustodyEntry,
    EvidenceFile,
    FileIntegrity,
    IntegrityCheckResult,
    UploadContext,
    VerificationStatus,
)

logger = get_logger(__name__)

HASH_PREFIX_LENGTH = 16


def _row_to_evidence(row: Any) -> EvidenceFile:
    return EvidenceFile(
        id=row.id,
        case_id=row.case_id,
        file_name=row.file_name,
        original_file_name=row.original_file_name,
        mime_type=row.mime_type,
        file_size=row.file_size,
        file_url=row.file_url,
        title=row.title,
        description=row.description,
        tags=row.tags or [],
        uploaded_by=row.uploaded_by,
        uploaded_at=row.uploaded_at,
        upload_context=UploadContext(**(row.upload_context or {})),
        file_integrity=FileIntegrity(
            hash=row.hash,
            algorithm=row.hash_algorithm,
            last_verified=row.integrity_last_verified,
            verification_status=VerificationStatus(row.integrity_status),
        ),
    )


class EvidenceLedger:
    """Registers evidence files and records every access to them."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        storage: StorageClient | None = None,
    ):
        self._session_factory = session_factory
        self._storage = storage

    @property
    def session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    @property
    def storage(self) -> StorageClient:
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    # =========================
    # Registration
    # =========================

    async def register_upload(
        self,
        case_id: UUID,
        file_name: str,
        mime_type: str,
        file_size: int,
        file_url: str,
        hash: str,
        uploaded_by: str,
        hash_algorithm: str = "SHA-256",
        title: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        original_file_name: str | None = None,
        upload_context: UploadContext | None = None,
    ) -> EvidenceFile:
        """Record an uploaded evidence file and its initial custody entry.

        The hash is supplied by the caller (computed client-side or by
        ``store_upload``); the ledger does not read the stored bytes.
        """
        evidence = EvidenceFile(
            case_id=case_id,
            file_name=file_name,
            original_file_name=original_file_name or file_name,
            mime_type=mime_type,
            file_size=file_size,
            file_url=file_url,
            title=title,
            description=description,
            tags=tags or [],
            uploaded_by=uploaded_by,
            upload_context=upload_context or UploadContext(),
            file_integrity=FileIntegrity(hash=hash, algorithm=hash_algorithm),
        )
        entry = CustodyEntry(
            action=CustodyAction.UPLOADED,
            actor=uploaded_by,
            timestamp=evidence.uploaded_at,
            details="Initial file upload",
        )

        async with session_scope(self.session_factory) as session:
            await session.execute(
                insert(evidence_files).values(
                    id=evidence.id,
                    case_id=evidence.case_id,
                    file_name=evidence.file_name,
                    original_file_name=evidence.original_file_name,
                    mime_type=evidence.mime_type,
                    file_size=evidence.file_size,
                    file_url=evidence.file_url,
                    title=evidence.title,
                    description=evidence.description,
                    tags=evidence.tags,
                    hash=evidence.file_integrity.hash,
                    hash_algorithm=evidence.file_integrity.algorithm,
                    uploaded_by=evidence.uploaded_by,
                    uploaded_at=evidence.uploaded_at,
                    upload_context=evidence.upload_context.model_dump(mode="json"),
                    integrity_last_verified=None,
                    integrity_status=VerificationStatus.UNVERIFIED.value,
                )
            )
            await self._append(session, evidence.id, entry)

        log_custody_event(str(evidence.id), entry.action.value, entry.actor, entry.details)
        return evidence

    async def store_upload(
        self,
        case_id: UUID,
        data: bytes,
        file_name: str,
        mime_type: str,
        uploaded_by: str,
        **kwargs: Any,
    ) -> EvidenceFile:
        """Upload bytes to the evidence bucket, hash them and register the file."""
        key = f"cases/{case_id}/{uuid4().hex}_{file_name}"
        file_url = await asyncio.to_thread(self.storage.upload, key, data, mime_type)

        return await self.register_upload(
            case_id=case_id,
            file_name=key,
            mime_type=mime_type,
            file_size=len(data),
            file_url=file_url,
            hash=compute_content_hash(data),
            uploaded_by=uploaded_by,
            original_file_name=kwargs.pop("original_file_name", None) or file_name,
            **kwargs,
        )

    # =========================
    # Custody
    # =========================

    async def log_access(
        self,
        evidence_id: UUID,
        action: CustodyAction | str,
        actor: str,
        details: str | None = None,
    ) -> CustodyEntry:
        """Append exactly one access entry.

        Raises:
            InvalidRequestError: If ``action`` is not an access action
            EvidenceNotFoundError: If the evidence does not exist
        """
        try:
            action = CustodyAction(action)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown custody action: {action}") from e
        if action not in ACCESS_ACTIONS:
            raise InvalidRequestError(f"Action {action.value} cannot be logged directly")

        entry = CustodyEntry(
            action=action,
            actor=actor,
            details=details or f"Evidence {action.value}",
        )

        async with session_scope(self.session_factory) as session:
            await self._require(session, evidence_id)
            await self._append(session, evidence_id, entry)

        log_custody_event(str(evidence_id), entry.action.value, actor, entry.details)
        return entry

    async def verify_integrity(
        self, evidence_id: UUID, current_hash: str, actor: str
    ) -> IntegrityCheckResult:
        """Compare ``current_hash`` with the recorded hash.

        Always appends one ``integrity_check`` entry, whatever the outcome.
        """
        verified_at = datetime.now(timezone.utc)

        async with session_scope(self.session_factory) as session:
            row = await self._require(session, evidence_id)
            is_valid = row.hash == current_hash

            entry = CustodyEntry(
                action=CustodyAction.INTEGRITY_CHECK,
                actor=actor,
                timestamp=verified_at,
                details=(
                    f"File integrity {'verified' if is_valid else 'FAILED'} - "
                    f"Hash: {current_hash[:HASH_PREFIX_LENGTH]}..."
                ),
            )
            await self._append(session, evidence_id, entry)
            await session.execute(
                update(evidence_files)
                .where(evidence_files.c.id == evidence_id)
                .values(
                    integrity_last_verified=verified_at,
                    integrity_status=(
                        VerificationStatus.VALID if is_valid else VerificationStatus.INVALID
                    ).value,
                )
            )

        log_custody_event(str(evidence_id), entry.action.value, actor, entry.details)
        return IntegrityCheckResult(
            is_valid=is_valid,
            original_hash=row.hash,
            current_hash=current_hash,
            verified_at=verified_at,
        )

    async def get_evidence(self, evidence_id: UUID) -> EvidenceFile:
        async with session_scope(self.session_factory) as session:
            row = await self._require(session, evidence_id)
        return _row_to_evidence(row)

    async def get_custody_entries(self, evidence_id: UUID) -> list[CustodyEntry]:
        async with session_scope(self.session_factory) as session:
            await self._require(session, evidence_id)
            return await self._entries(session, evidence_id)

    async def get_chain_of_custody(self, evidence_id: UUID) -> ChainOfCustodyReport:
        """Build the full custody report for an evidence file."""
        async with session_scope(self.session_factory) as session:
            row = await self._require(session, evidence_id)
            case_row = (
                await session.execute(
                    select(cases.c.id, cases.c.title, cases.c.status).where(
                        cases.c.id == row.case_id
                    )
                )
            ).first()
            history = await self._entries(session, evidence_id)

        evidence = _row_to_evidence(row)
        return ChainOfCustodyReport(
            evidence_id=evidence.id,
            file_name=evidence.file_name,
            original_file_name=evidence.original_file_name,
            file_hash=evidence.hash,
            file_size=evidence.file_size,
            mime_type=evidence.mime_type,
            case_info={
                "id": case_row.id if case_row else None,
                "title": case_row.title if case_row else None,
                "status": case_row.status if case_row else None,
            },
            upload_info={
                "uploaded_by": evidence.uploaded_by,
                "uploaded_at": evidence.uploaded_at,
                "upload_context": evidence.upload_context.model_dump(mode="json"),
            },
            file_integrity=evidence.file_integrity,
            access_history=history,
            verification_status={
                "hash_verified": evidence.file_integrity.verification_status
                == VerificationStatus.VALID,
                "chain_complete": bool(history)
                and history[0].action == CustodyAction.UPLOADED,
                "last_verified": evidence.file_integrity.last_verified,
                "status": evidence.file_integrity.verification_status.value,
            },
        )

    # =========================
    # Internals
    # =========================

    async def _require(self, session: AsyncSession, evidence_id: UUID) -> Any:
        result = await session.execute(
            select(evidence_files).where(evidence_files.c.id == evidence_id)
        )
        row = result.first()
        if row is None:
            raise EvidenceNotFoundError(evidence_id)
        return row

    async def _append(self, session: AsyncSession, evidence_id: UUID, entry: CustodyEntry) -> None:
        await session.execute(
            insert(custody_log).values(
                evidence_id=evidence_id,
                action=entry.action.value,
                actor=entry.actor,
                timestamp=entry.timestamp,
                details=entry.details,
            )
        )

    async def _entries(self, session: AsyncSession, evidence_id: UUID) -> list[CustodyEntry]:
        result = await session.execute(
            select(custody_log)
            .where(custody_log.c.evidence_id == evidence_id)
            .order_by(custody_log.c.id)
        )
        return [
            CustodyEntry(
                action=CustodyAction(row.action),
                actor=row.actor,
                timestamp=row.timestamp,
                details=row.details,
            )
            for row in result.all()
        ]


_ledger: EvidenceLedger | None = None


def get_evidence_ledger() -> EvidenceLedger:
    """Get the evidence ledger singleton."""
    global _ledger
    if _ledger is None:
        _ledger = EvidenceLedger()
    return _ledger
