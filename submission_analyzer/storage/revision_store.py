"""
Per-user revision document storage.

The revision set of a user is always read and written as one document; there
are no per-entry updates. Concurrent writers for the same user race and the
last write wins.
"""
import copy
import logging
from typing import Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from submission_analyzer.errors import CacheError
from submission_analyzer.models.dtos import RevisionEntry, RevisionSet
from submission_analyzer.models.revision_set_orm import RevisionSetORM
from submission_analyzer.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)


class RevisionStore(Protocol):
    """A protocol that defines how revision documents are loaded and saved."""

    async def load(self, user_id: str) -> RevisionSet:
        """Returns the user's revision set; an empty set when the user has none."""
        ...

    async def save(self, user_id: str, revisions: List[RevisionEntry]) -> RevisionSet:
        """Overwrites the user's revision set and returns the stored document."""
        ...


class InMemoryRevisionStore:
    def __init__(self) -> None:
        self._documents: Dict[str, RevisionSet] = {}

    async def load(self, user_id: str) -> RevisionSet:
        document = self._documents.get(user_id)
        if document is None:
            return RevisionSet(user_id=user_id)
        return document.model_copy(deep=True)

    async def save(self, user_id: str, revisions: List[RevisionEntry]) -> RevisionSet:
        previous = self._documents.get(user_id)
        document = RevisionSet(
            user_id=user_id,
            revisions=copy.deepcopy(revisions),
            version=(previous.version if previous else 0) + 1,
        )
        self._documents[user_id] = document
        return document.model_copy(deep=True)


class SqlAlchemyRevisionStore:
    """Keeps one ``revision_sets`` row per user holding the whole document."""

    def __init__(self, session: Optional[AsyncSession] = None):
        self._shared_session = session

    async def load(self, user_id: str) -> RevisionSet:
        try:
            async with get_db_session_context_manager(existing_session=self._shared_session) as session:
                result = await session.execute(
                    select(RevisionSetORM).where(RevisionSetORM.user_id == user_id)
                )
                row = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Database error loading revisions for user {user_id}: {e}", exc_info=True)
            raise CacheError(f"Failed to load revisions for user {user_id}", cause=e) from e

        if row is None:
            return RevisionSet(user_id=user_id)
        return RevisionSet(
            user_id=row.user_id,
            revisions=[RevisionEntry.model_validate(item) for item in (row.revisions or [])],
            version=row.version,
        )

    async def save(self, user_id: str, revisions: List[RevisionEntry]) -> RevisionSet:
        payload = [entry.model_dump(mode="json") for entry in revisions]
        stmt = pg_insert(RevisionSetORM).values(user_id=user_id, revisions=payload, version=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[RevisionSetORM.user_id],
            set_={
                "revisions": stmt.excluded.revisions,
                "version": RevisionSetORM.version + 1,
                "updated_at": func.now(),
            },
        ).returning(RevisionSetORM.version)
        try:
            async with get_db_session_context_manager(existing_session=self._shared_session) as session:
                result = await session.execute(stmt)
                version = result.scalar_one()
                if self._shared_session is not None:
                    await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database error saving revisions for user {user_id}: {e}", exc_info=True)
            if self._shared_session is not None:
                await self._shared_session.rollback()
            raise CacheError(f"Failed to save revisions for user {user_id}", cause=e) from e

        logger.info(f"Saved {len(revisions)} revision entries for user {user_id} (version {version})")
        return RevisionSet(user_id=user_id, revisions=list(revisions), version=version)
