"""Durable preferences: filters, note-tag taxonomy, status colors.

Each slice lives under its own key in the ``preferences`` table as JSON
text. Loads never raise for bad stored data; a value that fails to
decode is logged and replaced by the hardcoded default.
"""

import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from jobsite_crm.domain.enums import ProjectStatus, StatusColor
from jobsite_crm.domain.models import Preference
from jobsite_crm.domain.schemas import Filters, NoteTag

logger = logging.getLogger(__name__)

FILTERS_KEY = "crm-filters"
NOTE_TAGS_KEY = "crm-note-tags"
STATUS_COLORS_KEY = "project-status-colors"

DEFAULT_NOTE_TAGS = [
    NoteTag(id="SAFETY", label="Safety", display_order=1, color=StatusColor.ROSE.value),
    NoteTag(id="FOLLOW_UP", label="Follow Up", display_order=2, color=StatusColor.AMBER.value),
    NoteTag(id="PRICING", label="Pricing", display_order=3, color=StatusColor.EMERALD.value),
    NoteTag(id="EQUIPMENT", label="Equipment", display_order=4, color=StatusColor.SKY.value),
    NoteTag(id="GENERAL", label="General", display_order=5, color=StatusColor.SLATE.value),
]

DEFAULT_STATUS_COLORS: dict[str, StatusColor] = {
    ProjectStatus.ACTIVE.value: StatusColor.EMERALD,
    ProjectStatus.PLANNING.value: StatusColor.SKY,
    ProjectStatus.ON_HOLD.value: StatusColor.AMBER,
    ProjectStatus.COMPLETED.value: StatusColor.SLATE,
}

_filters_adapter = TypeAdapter(Filters)
_note_tags_adapter = TypeAdapter(list[NoteTag])
_status_colors_adapter = TypeAdapter(dict[str, StatusColor])


def default_filters() -> Filters:
    return Filters()


def default_note_tags() -> list[NoteTag]:
    return [t.model_copy() for t in DEFAULT_NOTE_TAGS]


def default_status_colors() -> dict[str, StatusColor]:
    return dict(DEFAULT_STATUS_COLORS)


class PreferenceService:
    """Async key/value access to the preference table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _read(self, key: str) -> Optional[str]:
        row = await self.db.get(Preference, key)
        return row.value if row else None

    async def _write(self, key: str, value: str) -> None:
        row = await self.db.get(Preference, key)
        if row is None:
            self.db.add(Preference(key=key, value=value))
        else:
            row.value = value
        await self.db.commit()

    async def _load(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        raw = await self._read(key)
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Stored preference %s is unreadable, using default: %s", key, exc)
            return default

    # -- filters -----------------------------------------------------------

    async def load_filters(self) -> Filters:
        return await self._load(FILTERS_KEY, _filters_adapter, default_filters())

    async def save_filters(self, filters: Filters) -> None:
        await self._write(FILTERS_KEY, filters.model_dump_json(by_alias=True))

    # -- note tags ---------------------------------------------------------

    async def load_note_tags(self) -> list[NoteTag]:
        return await self._load(NOTE_TAGS_KEY, _note_tags_adapter, default_note_tags())

    async def save_note_tags(self, tags: list[NoteTag]) -> None:
        await self._write(NOTE_TAGS_KEY, _note_tags_adapter.dump_json(tags, by_alias=True).decode())

    # -- status colors -----------------------------------------------------

    async def load_status_colors(self) -> dict[str, StatusColor]:
        return await self._load(STATUS_COLORS_KEY, _status_colors_adapter, default_status_colors())

    async def save_status_colors(self, colors: dict[str, StatusColor]) -> None:
        await self._write(STATUS_COLORS_KEY, _status_colors_adapter.dump_json(colors).decode())
