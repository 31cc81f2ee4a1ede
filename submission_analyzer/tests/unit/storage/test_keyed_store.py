import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy.exc import SQLAlchemyError

from submission_analyzer.errors import CacheError
from submission_analyzer.storage.keyed_store import InMemoryKeyedStore, SqlAlchemyKeyedStore


@pytest.fixture
def mock_db_session():
    """Mocks the session context manager used by the SQLAlchemy store."""
    with patch('submission_analyzer.storage.keyed_store.get_db_session_context_manager') as mock_get_session:
        mock_session = AsyncMock()
        mock_get_session.return_value.__aenter__.return_value = mock_session
        mock_get_session.return_value.__aexit__.return_value = False
        yield mock_session


@pytest.mark.asyncio
async def test_in_memory_round_trip_is_isolated_from_caller():
    store = InMemoryKeyedStore()
    payload = {"steps": [{"title": "one"}]}

    await store.set("analyseSubmission", "1", payload)
    payload["steps"].append({"title": "mutated"})
    fetched = await store.get("analyseSubmission", "1")
    fetched["steps"].clear()

    assert await store.get("analyseSubmission", "1") == {"steps": [{"title": "one"}]}


@pytest.mark.asyncio
async def test_in_memory_missing_key_returns_none():
    store = InMemoryKeyedStore()
    await store.set("submissionFeedback", "1", {"a": 1})

    assert await store.get("submissionFeedback", "2") is None
    assert await store.get("analyseSubmission", "1") is None


@pytest.mark.asyncio
async def test_in_memory_set_overwrites():
    store = InMemoryKeyedStore()
    await store.set("c", "k", {"v": 1})
    await store.set("c", "k", {"v": 2})

    assert await store.get("c", "k") == {"v": 2}
    assert len(store) == 1


@pytest.mark.asyncio
async def test_sqlalchemy_get_returns_payload(mock_db_session):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = {"optimalCode": "pass"}
    mock_db_session.execute.return_value = mock_result

    payload = await SqlAlchemyKeyedStore().get("analyseSubmission", "1")

    assert payload == {"optimalCode": "pass"}
    assert mock_db_session.execute.called


@pytest.mark.asyncio
async def test_sqlalchemy_get_missing_returns_none(mock_db_session):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = None
    mock_db_session.execute.return_value = mock_result

    assert await SqlAlchemyKeyedStore().get("analyseSubmission", "404") is None


@pytest.mark.asyncio
async def test_sqlalchemy_get_db_error_raises_cache_error(mock_db_session):
    mock_db_session.execute.side_effect = SQLAlchemyError("connection lost")

    with pytest.raises(CacheError) as exc_info:
        await SqlAlchemyKeyedStore().get("analyseSubmission", "1")

    assert isinstance(exc_info.value.cause, SQLAlchemyError)


@pytest.mark.asyncio
async def test_sqlalchemy_set_executes_upsert(mock_db_session):
    await SqlAlchemyKeyedStore().set("submissionFeedback", "1", {"codeStyleAndReadability": "ok"})

    stmt = mock_db_session.execute.call_args.args[0]
    compiled = str(stmt.compile(compile_kwargs={"literal_binds": False}, dialect=_pg_dialect()))
    assert "INSERT INTO analysis_results" in compiled
    assert "ON CONFLICT" in compiled
    assert "DO UPDATE SET payload = excluded.payload" in compiled


@pytest.mark.asyncio
async def test_sqlalchemy_set_with_shared_session_commits():
    session = AsyncMock()
    store = SqlAlchemyKeyedStore(session=session)

    await store.set("submissionFeedback", "1", {"codeStyleAndReadability": "ok"})

    session.execute.assert_awaited_once()
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_sqlalchemy_set_error_with_shared_session_rolls_back():
    session = AsyncMock()
    session.execute.side_effect = SQLAlchemyError("deadlock")
    store = SqlAlchemyKeyedStore(session=session)

    with pytest.raises(CacheError):
        await store.set("submissionFeedback", "1", {})

    session.rollback.assert_awaited_once()
    session.commit.assert_not_called()


def _pg_dialect():
    from sqlalchemy.dialects import postgresql
    return postgresql.dialect()
