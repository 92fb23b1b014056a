"""
Shared pytest fixtures for the DMPHQ test suite.
"""
import os
import tempfile
from pathlib import Path

# The API tests run against a throwaway SQLite file; must be set before
# src.core.config is imported anywhere.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="dmphq-tests-"))
TEST_DB_PATH = _TEST_DB_DIR / "test.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ.setdefault("CACHE_ENABLED", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.automation.cache import score_cache
from src.automation.types import CategoryToolCount, DimensionInputs, ModuleInput
from src.core.database import Base, build_engine
from src.core.scoring import ScoringConfig


# --- Cache ---

@pytest.fixture(autouse=True)
def clear_score_cache():
    """The score cache is process-global; every test starts cold."""
    score_cache.clear()
    yield
    score_cache.clear()


# --- Database Fixtures ---

@pytest.fixture
async def async_db_session():
    """Async in-memory SQLite session for testing."""
    import src.operations.database  # noqa: F401

    engine = build_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def test_client():
    """FastAPI TestClient on a fresh database file (tables created by the lifespan)."""
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    from src.web.app import app
    with TestClient(app) as client:
        yield client


# --- Scoring Fixtures ---

@pytest.fixture
def scoring_config():
    """Built-in default scoring configuration (independent of config/ files)."""
    return ScoringConfig()


@pytest.fixture
def good_progress_inputs():
    """10 tools over 5 categories, sparse integration, mixed tiers."""
    return DimensionInputs.from_counts(
        total_tools=10,
        total_categories=5,
        categories_with_tools=5,
        integrated_pairs=3,
        tools_by_tier={"free": 4, "low-cost": 4, "enterprise": 2},
        sop_count=5,
        average_sop_steps=6,
    )


@pytest.fixture
def category_names():
    return ["Accounting", "Project Management", "Email Marketing", "CRM", "Help Desk"]


@pytest.fixture
def empty_inputs(category_names):
    """A tenant with five categories and nothing adopted yet."""
    return DimensionInputs.from_counts(
        total_tools=0,
        total_categories=5,
        categories_with_tools=0,
        integrated_pairs=0,
        tools_by_tier={},
        sop_count=0,
        average_sop_steps=0,
        categories=[CategoryToolCount(name=name, tool_count=0) for name in category_names],
    )


@pytest.fixture
def sample_modules():
    """Two modules: a well-equipped finance module and an empty sales module."""
    return [
        ModuleInput(
            module_id="finance",
            module_name="Finance",
            categories=[
                CategoryToolCount(name="Accounting", tool_count=2),
                CategoryToolCount(name="Payroll", tool_count=2),
            ],
            tools_by_tier={"enterprise": 4},
            integrated_pairs=4,
            sop_count=2,
            average_sop_steps=10,
            automated_process_count=3,
            manual_process_count=1,
        ),
        ModuleInput(
            module_id="sales",
            module_name="Sales",
            categories=[
                CategoryToolCount(name="CRM", tool_count=0),
                CategoryToolCount(name="Proposals", tool_count=0),
            ],
            automated_process_count=0,
            manual_process_count=2,
        ),
    ]
