"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Test database engine and sessions
- Resource record factories
- Common FHIR ConceptMap test data
"""

import itertools
import os
from datetime import datetime, timezone

# Point the application engine at SQLite before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  (registers tables on Base.metadata)
from app.database import Base
from app.models import ResourceRecord

LOINC = "http://loinc.org"
SNOMED = "http://snomed.info/sct"
ICD10 = "http://hl7.org/fhir/sid/icd-10"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after.
    Uses DATABASE_TEST_URL env var if set, otherwise a throwaway SQLite file.
    """
    db_url = os.environ.get("DATABASE_TEST_URL")
    if not db_url:
        db_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"

    engine = create_async_engine(db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncSession:
    """Create test database session with automatic rollback.

    Each test gets a fresh session that rolls back on completion,
    ensuring test isolation.
    """
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Resource Record Fixtures
# =============================================================================


_fhir_ids = itertools.count(1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def add_record(db_session):
    """Factory that inserts a ResourceRecord and returns it with its id assigned."""

    async def _add(
        resource_type: str = "Patient",
        *,
        deleted: bool = False,
        index_status: int | None = 1,
        data: dict | None = None,
        fhir_id: str | None = None,
    ) -> ResourceRecord:
        record = ResourceRecord(
            fhir_id=fhir_id or f"{resource_type.lower()}-{next(_fhir_ids)}",
            resource_type=resource_type,
            data=data if data is not None else {"resourceType": resource_type},
            deleted_at=utc_now() if deleted else None,
            index_status=index_status,
        )
        db_session.add(record)
        await db_session.flush()
        return record

    return _add


# =============================================================================
# ConceptMap Fixtures
# =============================================================================


@pytest.fixture
def loinc_to_snomed_map() -> dict:
    """ConceptMap with a single LOINC -> SNOMED group."""
    return {
        "resourceType": "ConceptMap",
        "id": "loinc-snomed",
        "url": "http://example.org/fhir/ConceptMap/loinc-snomed",
        "status": "active",
        "group": [
            {
                "source": LOINC,
                "target": SNOMED,
                "element": [
                    {
                        "code": "1234-5",
                        "target": [{"code": "88888-1", "equivalence": "equivalent"}],
                    },
                    {
                        "code": "718-7",
                        "display": "Hemoglobin",
                        "target": [
                            {"code": "441689006", "display": "Hemoglobin measurement", "equivalence": "wider"},
                            {"code": "271026005", "equivalence": "narrower"},
                        ],
                    },
                ],
            }
        ],
    }


@pytest.fixture
def multi_group_map() -> dict:
    """ConceptMap with repeated system pairs and repeated source codes."""
    return {
        "resourceType": "ConceptMap",
        "id": "multi",
        "url": "http://example.org/fhir/ConceptMap/multi",
        "group": [
            {
                "source": LOINC,
                "target": SNOMED,
                "element": [
                    {"code": "A", "target": [{"code": "s1"}, {"code": "s2"}]},
                    {"code": "B", "target": [{"code": "s9"}]},
                    {"code": "A", "target": [{"code": "s3"}]},
                ],
            },
            {
                "source": LOINC,
                "target": ICD10,
                "element": [{"code": "A", "target": [{"code": "I10"}]}],
            },
            {
                "source": LOINC,
                "target": SNOMED,
                "element": [{"code": "A", "target": [{"code": "s4"}]}],
            },
        ],
    }
