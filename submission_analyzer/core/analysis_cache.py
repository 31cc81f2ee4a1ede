"""
Analysis Cache component for the Submission Analysis Service.

Memoizes expensive analysis calls per problem id in a keyed store. Lookup is
read-check-then-write: two concurrent callers with the same key may both miss
and both compute unless the single-flight guard is enabled.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from submission_analyzer.config.settings import settings
from submission_analyzer.errors import CacheError
from submission_analyzer.models.analysis_kinds import AnalysisKind
from submission_analyzer.storage.keyed_store import KeyedStore

logger = logging.getLogger(__name__)


class AnalysisCache:
    """
    Caches analysis results by kind and problem id.

    Store failures raise CacheError and never fall back to live computation.
    Errors raised by ``compute`` propagate unchanged and nothing is stored.
    """

    def __init__(self, store: KeyedStore, single_flight: Optional[bool] = None):
        """
        Args:
            store: The keyed result store.
            single_flight: Serialize concurrent lookups of the same key so only one
                           of them computes. Defaults to ``settings.CACHE_SINGLE_FLIGHT``.
        """
        self.store = store
        self.single_flight = settings.CACHE_SINGLE_FLIGHT if single_flight is None else single_flight
        # Per-key locks live only while some caller holds or waits on them.
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Dict[Tuple[str, str], int] = {}

    async def get(self, kind: AnalysisKind, key: str) -> Optional[BaseModel]:
        """Returns the cached result for ``key`` or None when absent or not present."""
        payload = await self._read(kind, key)
        if payload is None:
            return None
        try:
            result = kind.model.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring undecodable cached {kind.collection}/{key}: {e}")
            return None
        return result if kind.is_present(result) else None

    async def get_or_compute(
        self,
        kind: AnalysisKind,
        key: str,
        compute: Callable[[], Awaitable[BaseModel]],
    ) -> Tuple[BaseModel, bool]:
        """
        Returns ``(result, from_cache)``.

        On a miss ``compute`` is awaited and its result stored under the same key.

        Raises:
            CacheError: If the store cannot be read or written.
        """
        if not self.single_flight:
            return await self._get_or_compute(kind, key, compute)
        lock_key = (kind.collection, key)
        lock = self._locks.setdefault(lock_key, asyncio.Lock())
        self._lock_users[lock_key] = self._lock_users.get(lock_key, 0) + 1
        try:
            async with lock:
                return await self._get_or_compute(kind, key, compute)
        finally:
            self._lock_users[lock_key] -= 1
            if self._lock_users[lock_key] == 0:
                del self._lock_users[lock_key]
                del self._locks[lock_key]

    async def _get_or_compute(self, kind, key, compute):
        cached = await self.get(kind, key)
        if cached is not None:
            logger.info(f"Cache hit for {kind.collection}/{key}")
            return cached, True

        logger.info(f"Cache miss for {kind.collection}/{key}; computing.")
        result = await compute()
        await self._write(kind, key, result)
        return result, False

    async def _read(self, kind: AnalysisKind, key: str):
        try:
            return await self.store.get(kind.collection, key)
        except CacheError:
            raise
        except Exception as e:
            logger.error(f"Error reading {kind.collection}/{key} from the result store: {e}", exc_info=True)
            raise CacheError(f"Failed to read {kind.collection}/{key}", cause=e) from e

    async def _write(self, kind: AnalysisKind, key: str, result: BaseModel) -> None:
        try:
            await self.store.set(kind.collection, key, result.model_dump(mode="json", by_alias=True))
        except CacheError:
            raise
        except Exception as e:
            logger.error(f"Error writing {kind.collection}/{key} to the result store: {e}", exc_info=True)
            raise CacheError(f"Failed to write {kind.collection}/{key}", cause=e) from e
