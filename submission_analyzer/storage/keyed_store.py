"""
Keyed result store used by the analysis cache.

A store maps ``(collection, key)`` to a JSON-compatible payload. The SQLAlchemy
implementation keeps one row per pair in ``analysis_results``; the in-memory
implementation backs tests and single-process deployments.
"""
import copy
import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from submission_analyzer.errors import CacheError
from submission_analyzer.models.analysis_result_orm import AnalysisResultORM
from submission_analyzer.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)


class KeyedStore(Protocol):
    """A protocol that defines the interface for keyed result stores."""

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """
        Returns the payload stored under ``(collection, key)`` or None when absent.

        Raises:
            CacheError: If the store cannot be read.
        """
        ...

    async def set(self, collection: str, key: str, value: Dict[str, Any]) -> None:
        """
        Stores ``value`` under ``(collection, key)``, replacing any previous payload.

        Raises:
            CacheError: If the store cannot be written.
        """
        ...


class InMemoryKeyedStore:
    """Dictionary-backed store. Payloads are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], Dict[str, Any]] = {}

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get((collection, key))
        return copy.deepcopy(value) if value is not None else None

    async def set(self, collection: str, key: str, value: Dict[str, Any]) -> None:
        self._data[(collection, key)] = copy.deepcopy(value)

    def __len__(self) -> int:
        return len(self._data)


class SqlAlchemyKeyedStore:
    """
    Stores payloads in the ``analysis_results`` table.

    Writes use INSERT ... ON CONFLICT DO UPDATE so a repeated set for the same
    key overwrites the previous payload.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        """
        Args:
            session: An optional shared AsyncSession. If None, a new session is
                     created for each operation.
        """
        self._shared_session = session

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            async with get_db_session_context_manager(existing_session=self._shared_session) as session:
                result = await session.execute(
                    select(AnalysisResultORM.payload).where(
                        (AnalysisResultORM.collection == collection) &
                        (AnalysisResultORM.key == key)
                    )
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Database error reading {collection}/{key}: {e}", exc_info=True)
            raise CacheError(f"Failed to read {collection}/{key}", cause=e) from e

    async def set(self, collection: str, key: str, value: Dict[str, Any]) -> None:
        stmt = pg_insert(AnalysisResultORM).values(collection=collection, key=key, payload=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[AnalysisResultORM.collection, AnalysisResultORM.key],
            set_={"payload": stmt.excluded.payload, "updated_at": func.now()},
        )
        try:
            async with get_db_session_context_manager(existing_session=self._shared_session) as session:
                await session.execute(stmt)
                if self._shared_session is not None:
                    await session.commit()
            logger.debug(f"Stored analysis result {collection}/{key}")
        except SQLAlchemyError as e:
            logger.error(f"Database error writing {collection}/{key}: {e}", exc_info=True)
            if self._shared_session is not None:
                await self._shared_session.rollback()
            raise CacheError(f"Failed to write {collection}/{key}", cause=e) from e
