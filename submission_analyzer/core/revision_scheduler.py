"""
Revision Scheduler component for the Submission Analysis Service.

Keeps each user's spaced-repetition list. Every mutation loads the user's
whole revision set, changes it in memory and writes the whole set back.
Entries are identified by title. With concurrent writers for one user the
last write wins.
"""
import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from submission_analyzer.errors import ValidationError
from submission_analyzer.models.dtos import RevisionEntry, RevisionSet
from submission_analyzer.storage.revision_store import RevisionStore

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_NOTES = "No notes available"
DEFAULT_CODE = "No code available"

# Confidence level -> days until the next revision.
REVISION_INTERVALS: Dict[int, int] = {1: 1, 2: 3, 3: 7, 4: 14, 5: 30}
DEFAULT_INTERVAL_DAYS = 1


def compute_next_revision(confidence_level: int, today: date) -> str:
    """
    Returns the next revision date as ``YYYY-MM-DD``.

    Unknown confidence levels fall back to one day.
    """
    days = REVISION_INTERVALS.get(confidence_level, DEFAULT_INTERVAL_DAYS)
    return (today + timedelta(days=days)).strftime(DATE_FORMAT)


def preprocess(entry: RevisionEntry) -> RevisionEntry:
    """
    Validates an incoming entry and fills placeholder notes and code.

    Raises:
        ValidationError: If the title is empty or the confidence level is zero.
    """
    if not entry.title:
        raise ValidationError("No title provided for revision problem, title is required")
    if entry.confidence_level == 0:
        raise ValidationError(f"No confidence level provided for revision problem '{entry.title}', confidence level is required")
    updates = {}
    if not entry.notes:
        updates["notes"] = DEFAULT_NOTES
    if not entry.code:
        updates["code"] = DEFAULT_CODE
    return entry.model_copy(update=updates) if updates else entry


class RevisionScheduler:
    """CRUD operations over a user's revision set plus the due-date rule."""

    def __init__(self, store: RevisionStore, today: Optional[Callable[[], date]] = None):
        """
        Args:
            store: Where revision documents are persisted.
            today: Clock returning the current date; defaults to ``date.today``.
        """
        self.store = store
        self._today = today or date.today

    def today(self) -> str:
        return self._today().strftime(DATE_FORMAT)

    def schedule(self, entry: RevisionEntry) -> RevisionEntry:
        """Returns a copy of ``entry`` with its next revision date recomputed."""
        return entry.model_copy(update={"next_revision": compute_next_revision(entry.confidence_level, self._today())})

    async def get_all(self, user_id: str) -> List[RevisionEntry]:
        document = await self.store.load(user_id)
        return document.revisions

    async def add_or_update(self, user_id: str, entries: Sequence[RevisionEntry]) -> RevisionSet:
        """
        Upserts ``entries`` into the user's revision set.

        Incoming entries replace existing entries with the same title; existing
        entries whose title is not among ``entries`` are carried forward as they
        are. The first invalid entry aborts the whole call before anything is
        written.

        Raises:
            ValidationError: If any entry fails validation.
        """
        by_title: Dict[str, RevisionEntry] = {}
        for entry in entries:
            # A title repeated within one call keeps its last version.
            scheduled = self.schedule(preprocess(entry))
            by_title[scheduled.title] = scheduled
        incoming = list(by_title.values())
        incoming_titles = set(by_title)

        existing = await self.store.load(user_id)
        carried = [entry for entry in existing.revisions if entry.title not in incoming_titles]

        document = await self.store.save(user_id, incoming + carried)
        logger.info(
            f"Upserted {len(incoming)} revision entries for user {user_id}; "
            f"carried forward {len(carried)}."
        )
        return document

    async def update(self, user_id: str, entry: RevisionEntry) -> RevisionSet:
        """
        Replaces the entry with the same title and recomputes its next revision date.

        All other entries are left untouched. If no entry has that title the set
        is written back unchanged.
        """
        existing = await self.store.load(user_id)
        replaced = False
        revisions = []
        for current in existing.revisions:
            if current.title == entry.title:
                revisions.append(self.schedule(entry))
                replaced = True
            else:
                revisions.append(current)
        if not replaced:
            logger.warning(f"No revision entry titled '{entry.title}' for user {user_id}; nothing updated.")
        return await self.store.save(user_id, revisions)

    async def delete(self, user_id: str, entry: RevisionEntry) -> RevisionSet:
        """Removes the entry with the same title as ``entry``."""
        existing = await self.store.load(user_id)
        revisions = [current for current in existing.revisions if current.title != entry.title]
        logger.info(f"Deleting revision entry '{entry.title}' for user {user_id} ({len(existing.revisions) - len(revisions)} removed).")
        return await self.store.save(user_id, revisions)

    async def due_today(self, user_id: str) -> List[RevisionEntry]:
        """Returns the entries whose next revision date is today or earlier."""
        today = self.today()
        # Fixed-width zero-padded dates compare correctly as strings.
        return [entry for entry in await self.get_all(user_id) if entry.next_revision <= today]
