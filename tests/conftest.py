"""
ProSe Counsel - Shared Test Fixtures
Temporary SQLite database, an HTTP client against the app, and a scripted
stand-in for the language-model client.
"""

import os
from typing import AsyncGenerator, Optional

import pytest
from httpx import AsyncClient, ASGITransport

# Configure test environment BEFORE importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_prose_counsel.db"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from prose_counsel.main import app
from prose_counsel.core.errors import AnalysisUnavailable
from prose_counsel.services.legal_ai import (
    ComplianceResult,
    DocumentAnalysis,
    LearningPatterns,
    LegalGuidance,
    get_legal_ai,
)
from prose_counsel.services.stores import Storage, get_storage


# =============================================================================
# Fake AI Client
# =============================================================================

class FakeLegalAI:
    """
    Scripted replacement for LegalAIService.

    Set `fail` to a set of operation names ("analyze", "compliance",
    "generate", "guidance", "learn") to make those calls fail the way the
    real client does. Every call is recorded in `calls`.
    """

    def __init__(self):
        self.fail: set[str] = set()
        self.calls: list[tuple[str, tuple]] = []
        self.compliance_score = 62

    def _record(self, name: str, *args):
        self.calls.append((name, args))
        if name in self.fail and name != "learn":
            raise AnalysisUnavailable(f"Failed to {name}")

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)

    async def analyze_document(self, content, document_type, jurisdiction):
        self._record("analyze", content, document_type, jurisdiction)
        return DocumentAnalysis(
            summary=f"{document_type} filed in {jurisdiction}",
            key_issues=["Qualified immunity"],
            parties={"plaintiff": "Jane Doe", "defendant": "City of Springfield"},
            legal_claims=["42 U.S.C. 1983 excessive force"],
        )

    async def check_compliance_rule(self, content, jurisdiction):
        self._record("compliance", content, jurisdiction)
        return ComplianceResult(
            overall_assessment="needs_improvement",
            score=self.compliance_score,
            findings=[{"claim": "Excessive force", "assessment": "pass", "reasoning": "Facts pled"}],
            required_elements=[{"element": "State actor", "present": True}],
            recommendations=["Plead Monell facts"],
        )

    async def generate_document(self, document_type, jurisdiction, plaintiff, defendant, case_info, instructions):
        self._record("generate", document_type, jurisdiction, plaintiff, defendant, case_info, instructions)
        return f"IN THE {jurisdiction.upper()}\n{plaintiff} v. {defendant}\n{document_type.upper()}"

    async def get_guidance(self, question, jurisdiction, case_context=None):
        self._record("guidance", question, jurisdiction, case_context)
        return LegalGuidance(
            answer=f"Answer for {jurisdiction}",
            sources=["Fed. R. Civ. P. 12(b)(6)"],
            next_steps=["File an amended complaint"],
        )

    async def learn_from_document(self, document_type, jurisdiction, content, compliance):
        self._record("learn", document_type, jurisdiction, content, compliance)
        if "learn" in self.fail:
            return None
        return LearningPatterns(effective_patterns=["Numbered paragraphs"])


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture(scope="function", autouse=True)
async def setup_test_database():
    """Create database tables before each test and drop them after."""
    from prose_counsel.core.database import get_engine, Base
    from prose_counsel.models import models  # noqa: F401  registers tables

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def storage() -> Storage:
    return get_storage()


@pytest.fixture
def fake_ai() -> FakeLegalAI:
    return FakeLegalAI()


@pytest.fixture
async def client(fake_ai: FakeLegalAI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the AI client replaced by FakeLegalAI."""
    app.dependency_overrides[get_legal_ai] = lambda: fake_ai
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_legal_ai, None)


@pytest.fixture
async def case(storage: Storage):
    """A saved case in a federal district."""
    return await storage.cases.create(
        title="Doe v. City of Springfield",
        case_number="3:24-cv-01234",
        plaintiff="Jane Doe",
        defendant="City of Springfield",
        jurisdiction="N.D. Illinois",
        description="Excessive force during a traffic stop",
    )


def _case_payload(**overrides) -> dict:
    payload = {
        "title": "Doe v. City of Springfield",
        "caseNumber": "3:24-cv-01234",
        "plaintiff": "Jane Doe",
        "defendant": "City of Springfield",
        "jurisdiction": "N.D. Illinois",
        "description": "Excessive force during a traffic stop",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def case_payload():
    """Builder for a valid POST /api/cases body; keyword overrides replace fields."""
    return _case_payload


# =============================================================================
# Cleanup
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def cleanup_test_db():
    """Remove the test database file after the session."""
    yield
    for db_file in ["test_prose_counsel.db", "test_prose_counsel.db-journal"]:
        if os.path.exists(db_file):
            try:
                os.remove(db_file)
            except PermissionError:
                pass
