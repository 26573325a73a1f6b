"""Unit tests for the evidence ledger and chain of custody."""

from uuid import uuid4

import pytest
import pytest_asyncio

from ipguard.cases.models import Case
from ipguard.errors import EvidenceNotFoundError, InvalidRequestError
from ipguard.evidence.models import CustodyAction, UploadContext, VerificationStatus
from ipguard.storage import compute_content_hash

FILE_BYTES = b"%PDF-1.7 takedown notice"
FILE_HASH = compute_content_hash(FILE_BYTES)


@pytest_asyncio.fixture
async def case(case_repository, stored_asset) -> Case:
    return await case_repository.create(
        Case(
            title="Aurora takedown",
            related_asset_id=stored_asset.id,
            suspected_url="https://shop.example.com/aurora",
            created_by="analyst-1",
        )
    )


@pytest_asyncio.fixture
async def evidence(ledger, case):
    return await ledger.register_upload(
        case_id=case.id,
        file_name="cases/abc_notice.pdf",
        original_file_name="notice.pdf",
        mime_type="application/pdf",
        file_size=len(FILE_BYTES),
        file_url="https://evidence.example.test/cases/abc_notice.pdf",
        hash=FILE_HASH,
        uploaded_by="analyst-1",
        upload_context=UploadContext(ip_address="203.0.113.7", user_agent="pytest"),
    )


class TestRegistration:
    @pytest.mark.asyncio
    async def test_initial_upload_entry(self, ledger, evidence):
        entries = await ledger.get_custody_entries(evidence.id)

        assert len(entries) == 1
        assert entries[0].action == CustodyAction.UPLOADED
        assert entries[0].actor == "analyst-1"
        assert entries[0].details == "Initial file upload"

    @pytest.mark.asyncio
    async def test_store_upload_hashes_bytes(self, ledger, case, mock_storage):
        stored = await ledger.store_upload(
            case.id, FILE_BYTES, "notice.pdf", "application/pdf", "analyst-1"
        )

        assert stored.hash == FILE_HASH
        assert stored.original_file_name == "notice.pdf"
        assert stored.file_size == len(FILE_BYTES)
        key = mock_storage.upload.call_args.args[0]
        assert key.startswith(f"cases/{case.id}/") and key.endswith("_notice.pdf")


class TestLogAccess:
    """Tests for EvidenceLedger.log_access."""

    @pytest.mark.asyncio
    async def test_appends_one_entry(self, ledger, evidence):
        await ledger.log_access(evidence.id, CustodyAction.VIEWED, "reviewer-1")
        await ledger.log_access(evidence.id, "downloaded", "reviewer-2", "Exported for counsel")

        entries = await ledger.get_custody_entries(evidence.id)

        assert [e.action for e in entries] == [
            CustodyAction.UPLOADED,
            CustodyAction.VIEWED,
            CustodyAction.DOWNLOADED,
        ]
        assert entries[1].details == "Evidence viewed"
        assert entries[2].details == "Exported for counsel"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["uploaded", "integrity_check", "deleted"])
    async def test_rejects_non_access_actions(self, ledger, evidence, action):
        with pytest.raises(InvalidRequestError):
            await ledger.log_access(evidence.id, action, "reviewer-1")

        assert len(await ledger.get_custody_entries(evidence.id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_evidence(self, ledger):
        with pytest.raises(EvidenceNotFoundError):
            await ledger.log_access(uuid4(), CustodyAction.VIEWED, "reviewer-1")


class TestVerifyIntegrity:
    """Tests for EvidenceLedger.verify_integrity."""

    @pytest.mark.asyncio
    async def test_matching_hash(self, ledger, evidence):
        result = await ledger.verify_integrity(evidence.id, FILE_HASH, "auditor-1")

        assert result.is_valid is True
        assert result.original_hash == FILE_HASH

        entries = await ledger.get_custody_entries(evidence.id)
        assert entries[-1].action == CustodyAction.INTEGRITY_CHECK
        assert entries[-1].details == f"File integrity verified - Hash: {FILE_HASH[:16]}..."

    @pytest.mark.asyncio
    async def test_mismatch_is_recorded(self, ledger, evidence):
        tampered = compute_content_hash(b"tampered")

        result = await ledger.verify_integrity(evidence.id, tampered, "auditor-1")

        assert result.is_valid is False
        entries = await ledger.get_custody_entries(evidence.id)
        assert entries[-1].details == f"File integrity FAILED - Hash: {tampered[:16]}..."
        stored = await ledger.get_evidence(evidence.id)
        assert stored.file_integrity.verification_status == VerificationStatus.INVALID

    @pytest.mark.asyncio
    async def test_every_check_appends(self, ledger, evidence):
        for _ in range(3):
            await ledger.verify_integrity(evidence.id, FILE_HASH, "auditor-1")

        entries = await ledger.get_custody_entries(evidence.id)
        checks = [e for e in entries if e.action == CustodyAction.INTEGRITY_CHECK]
        assert len(checks) == 3


class TestChainOfCustody:
    @pytest.mark.asyncio
    async def test_report(self, ledger, evidence, case):
        await ledger.log_access(evidence.id, CustodyAction.VIEWED, "reviewer-1")
        await ledger.verify_integrity(evidence.id, FILE_HASH, "auditor-1")

        report = await ledger.get_chain_of_custody(evidence.id)

        assert report.evidence_id == evidence.id
        assert report.original_file_name == "notice.pdf"
        assert report.file_hash == FILE_HASH
        assert report.case_info["title"] == "Aurora takedown"
        assert report.upload_info["upload_context"]["ip_address"] == "203.0.113.7"
        assert [e.action for e in report.access_history] == [
            CustodyAction.UPLOADED,
            CustodyAction.VIEWED,
            CustodyAction.INTEGRITY_CHECK,
        ]
        assert report.verification_status["hash_verified"] is True
        assert report.verification_status["chain_complete"] is True
        assert report.verification_status["last_verified"] is not None

    @pytest.mark.asyncio
    async def test_unknown_evidence(self, ledger):
        with pytest.raises(EvidenceNotFoundError):
            await ledger.get_chain_of_custody(uuid4())
