"""Shared pytest fixtures for IPGuard tests.

Database fixtures run against a throwaway SQLite file through aiosqlite;
the browser, AI service and object storage are always mocked.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from ipguard.analysis.client import Completion
from ipguard.analysis.engine import RiskAssessmentEngine
from ipguard.cases.escalation import CaseEscalationManager
from ipguard.cases.repository import CaseRepository
from ipguard.db import create_all, create_session_factory
from ipguard.evidence.ledger import EvidenceLedger
from ipguard.monitoring.models import (
    CollectedPage,
    EvidenceSnapshot,
    Heading,
    PageImage,
    PageLink,
    PageStats,
    ProtectedAsset,
)
from ipguard.monitoring.repository import JobRepository
from ipguard.monitoring.service import MonitoringJobService
from ipguard.monitoring.slots import BrowserSlotPool

# =========================
# AI responses
# =========================

HIGH_RISK_RESPONSE = """CONFIDENCE: 82%
INFRINGEMENT_LIKELY: YES
STRENGTH: STRONG
LEGAL_BASIS: Unlicensed reproduction of the registered photograph series
EVIDENCE_QUALITY: GOOD
RECOMMENDATIONS: Send a DMCA takedown notice to the hosting provider
RISKS: Possible fair use defence for thumbnails"""

LOW_RISK_RESPONSE = """CONFIDENCE: 15
INFRINGEMENT_LIKELY: NO
STRENGTH: WEAK
LEGAL_BASIS: Only generic terms overlap
EVIDENCE_QUALITY: FAIR
RECOMMENDATIONS: Continue monitoring
RISKS: None"""

SCREENSHOT_URL = "https://evidence.example.test/surveillance/shot.png"


# =========================
# Database fixtures
# =========================


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """SQLite database with every IPGuard table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ipguard.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def job_repository(session_factory) -> JobRepository:
    return JobRepository(session_factory)


@pytest.fixture
def case_repository(session_factory) -> CaseRepository:
    return CaseRepository(session_factory)


@pytest.fixture
def mock_storage():
    """Storage client whose uploads succeed."""
    storage = MagicMock()
    storage.upload = MagicMock(return_value=SCREENSHOT_URL)
    storage.get_public_url = MagicMock(side_effect=lambda key: f"https://evidence.example.test/{key}")
    return storage


@pytest.fixture
def ledger(session_factory, mock_storage) -> EvidenceLedger:
    return EvidenceLedger(session_factory, storage=mock_storage)


# =========================
# Domain fixtures
# =========================


@pytest.fixture
def sample_asset() -> ProtectedAsset:
    return ProtectedAsset(
        id=uuid4(),
        title="Aurora Photo Series",
        type="copyright",
        description="Twelve landscape photographs of the northern lights",
        registration_number="VA-2-345-678",
        jurisdiction="US",
    )


@pytest_asyncio.fixture
async def stored_asset(job_repository, sample_asset) -> ProtectedAsset:
    await job_repository.insert_asset(sample_asset, created_by="owner-1")
    return sample_asset


@pytest.fixture
def sample_snapshot() -> EvidenceSnapshot:
    return EvidenceSnapshot(
        page_title="Aurora prints for sale",
        url="https://shop.example.com/aurora",
        meta_description="Buy northern lights prints",
        headings=(Heading(level="h1", text="Aurora prints"),),
        images=(PageImage(src="https://shop.example.com/a1.jpg", alt="Aurora 1"),),
        links=(PageLink(href="https://shop.example.com/cart", text="Cart"),),
        visible_text="Aurora prints for sale at low prices",
        html_excerpt="<html><body><h1>Aurora prints</h1></body></html>",
        page_stats=PageStats(image_count=1, link_count=1, word_count=7),
    )


@pytest.fixture
def collected_page(sample_snapshot) -> CollectedPage:
    return CollectedPage(
        snapshot=sample_snapshot,
        screenshot=b"\x89PNG fake",
        html=sample_snapshot.html_excerpt,
    )


@pytest.fixture
def mock_collector(collected_page):
    collector = MagicMock()
    collector.collect = AsyncMock(return_value=collected_page)
    return collector


@pytest.fixture
def mock_completion_client():
    """Completion client answering every call with a high-risk analysis."""
    client = MagicMock()
    client.model = "test-model"
    client.complete = AsyncMock(return_value=Completion(text=HIGH_RISK_RESPONSE, tokens_used=512))
    return client


@pytest.fixture
def engine(mock_completion_client) -> RiskAssessmentEngine:
    return RiskAssessmentEngine(client=mock_completion_client)


@pytest.fixture
def escalation(case_repository) -> CaseEscalationManager:
    return CaseEscalationManager(case_repository, threshold=70)


@pytest.fixture
def monitoring_service(
    job_repository, mock_collector, engine, mock_storage, escalation
) -> MonitoringJobService:
    return MonitoringJobService(
        repository=job_repository,
        collector=mock_collector,
        engine=engine,
        storage=mock_storage,
        escalation=escalation,
        slots=BrowserSlotPool(size=2),
    )
