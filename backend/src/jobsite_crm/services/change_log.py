"""Change-log recorder: append-only audit ledger shared by all projects.

One global sequence numbers every entry; entries are scoped to a project
by ``project_id`` only. Nothing here mutates or removes a recorded entry.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Optional

from jobsite_crm.domain.enums import ChangeAction, ChangeCategory
from jobsite_crm.domain.schemas import (
    ChangeLogEntry,
    ChangeLogPage,
    EntityRef,
    MultiFieldChange,
    NoteChange,
)

logger = logging.getLogger(__name__)

PAGE_SIZES = (10, 15, 25, 50)
DEFAULT_PAGE_SIZE = 15


class ChangeLogDetailsError(TypeError):
    """Raised when a details record does not match its action."""

    def __init__(self, action: ChangeAction, details: object):
        self.action = action
        self.details = details
        super().__init__(
            f"{type(details).__name__} is not a valid details record for {action.value}"
        )


# ---------------------------------------------------------------------------
# Action -> allowed details variant
# ---------------------------------------------------------------------------

A = ChangeAction

DETAILS_BY_ACTION: dict[ChangeAction, type] = {
    A.PROJECT_CREATED: EntityRef,
    A.PROJECT_UPDATED: MultiFieldChange,
    A.OPPORTUNITY_ASSOCIATED: EntityRef,
    A.OPPORTUNITY_CREATED: EntityRef,
    A.OPPORTUNITY_UPDATED: MultiFieldChange,
    A.COMPANY_ADDED: EntityRef,
    A.COMPANY_REMOVED: EntityRef,
    A.COMPANY_UPDATED: MultiFieldChange,
    A.ACTIVITY_ADDED: EntityRef,
    A.ACTIVITY_UPDATED: MultiFieldChange,
    A.ACTIVITY_DELETED: EntityRef,
    A.NOTE_ADDED: EntityRef,
    A.NOTE_UPDATED: NoteChange,
    A.NOTE_DELETED: EntityRef,
    A.EQUIPMENT_ADDED: EntityRef,
    A.EQUIPMENT_UPDATED: MultiFieldChange,
    A.EQUIPMENT_DELETED: EntityRef,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeLog:
    """In-memory ledger with a single monotonically increasing id counter."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow
        self._entries: list[ChangeLogEntry] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        project_id: int,
        action: ChangeAction,
        summary: str,
        *,
        changed_by_id: int,
        details: EntityRef | MultiFieldChange | NoteChange | None = None,
    ) -> ChangeLogEntry:
        """Append one entry and return a copy of it.

        Category is implied by the action. ``details`` must be the variant
        registered for the action in ``DETAILS_BY_ACTION``.
        """
        if details is not None and not isinstance(details, DETAILS_BY_ACTION[action]):
            raise ChangeLogDetailsError(action, details)

        entry = ChangeLogEntry(
            id=self._next_id,
            project_id=project_id,
            timestamp=self._clock(),
            action=action,
            category=action.category,
            summary=summary,
            changed_by_id=changed_by_id,
            details=details,
        )
        self._next_id += 1
        self._entries.append(entry)
        logger.debug("Change #%d on project %s: %s", entry.id, project_id, summary)
        return entry.model_copy(deep=True)

    def query(self, project_id: int) -> list[ChangeLogEntry]:
        """Entries for one project in insertion order."""
        return [e.model_copy(deep=True) for e in self._entries if e.project_id == project_id]

    def sorted_for_display(
        self,
        project_id: int,
        category: Optional[ChangeCategory] = None,
    ) -> list[ChangeLogEntry]:
        """Newest first; entries sharing a timestamp keep insertion order."""
        entries = self.query(project_id)
        if category is not None:
            entries = [e for e in entries if e.category == category]
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    def page(
        self,
        project_id: int,
        category: Optional[ChangeCategory] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ChangeLogPage:
        """One page of ``sorted_for_display``. Out-of-range pages clamp."""
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}, got {page_size}")

        entries = self.sorted_for_display(project_id, category)
        total = len(entries)
        total_pages = max(1, math.ceil(total / page_size))
        page = min(max(page, 1), total_pages)
        start = (page - 1) * page_size
        return ChangeLogPage(
            items=entries[start:start + page_size],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )
