import json
import os
import sys
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Add project root to path so the submission_analyzer package resolves when run from a checkout
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, project_root)

# Load test environment variables from .env.test in the project root
dotenv_path = os.path.join(project_root, '.env.test')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)

from submission_analyzer.core.analysis_cache import AnalysisCache
from submission_analyzer.core.revision_scheduler import RevisionScheduler
from submission_analyzer.models.dtos import RevisionEntry, Submission
from submission_analyzer.storage.keyed_store import InMemoryKeyedStore
from submission_analyzer.storage.revision_store import InMemoryRevisionStore

# Database-backed tests only run when a test database is configured.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

FIXED_TODAY = date(2024, 3, 10)


def make_submission(id: int, status: str = "Accepted", title: str = None, **kwargs) -> Submission:
    """Builds a submission the way the judge payload would describe it."""
    data = {
        "id": id,
        "title": title or f"Problem {id}",
        "code": f"def solve_{id}(): pass",
        "lang": "python3",
        "lang_name": "Python3",
        "timestamp": 1700000000 + id,
        "status_display": status,
        "runtime": "40 ms",
        "memory": "16.4 MB",
        "url": f"/submissions/detail/{id}/",
        "is_pending": "Not Pending",
    }
    data.update(kwargs)
    return Submission.model_validate(data)


def annotation_payload(n: int, best: bool = True) -> dict:
    """A single complexity annotation as the analysis service returns it."""
    return {
        "isBestSolution": best,
        "bestTimeComplexity": "O(N)",
        "currentTimeComplexity": f"O(N^{n})" if n > 1 else "O(N)",
        "bestSpaceComplexity": "O(1)",
        "currentSpaceComplexity": "O(N)",
    }


def gemini_response(payload) -> MagicMock:
    """A generate_content response whose ``text`` is ``payload`` encoded as JSON."""
    response = MagicMock()
    response.text = payload if isinstance(payload, str) else json.dumps(payload)
    return response


@pytest.fixture
def submission_factory():
    return make_submission


@pytest.fixture
def mock_genai_client():
    """A genai client whose async generate_content is an AsyncMock."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def keyed_store():
    return InMemoryKeyedStore()


@pytest.fixture
def revision_store():
    return InMemoryRevisionStore()


@pytest.fixture
def analysis_cache(keyed_store):
    return AnalysisCache(keyed_store, single_flight=False)


@pytest.fixture
def revision_scheduler(revision_store):
    return RevisionScheduler(revision_store, today=lambda: FIXED_TODAY)


@pytest.fixture
def revision_entry_factory():
    def _make(title: str, confidence_level: int = 3, **kwargs) -> RevisionEntry:
        return RevisionEntry(title=title, confidence_level=confidence_level, **kwargs)
    return _make


@pytest_asyncio.fixture
async def db_session():
    """Provide a transactional database session against TEST_DATABASE_URL, rolled back afterwards."""
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL is not set")

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from submission_analyzer.models.base import Base

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    connection = await engine.connect()
    await connection.begin()
    session = async_sessionmaker(bind=connection, class_=AsyncSession, expire_on_commit=False)()

    yield session

    await session.close()
    await connection.rollback()
    await connection.close()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
