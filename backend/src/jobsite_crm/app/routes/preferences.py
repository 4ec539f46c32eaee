"""Preferences API: filter set, note-tag taxonomy and status colors.

Every change updates the in-memory workspace first and is then written
through to the preference table.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobsite_crm.domain.enums import StatusColor
from jobsite_crm.domain.schemas import Filters, NoteTag, NoteTagCreate, NoteTagUpdate, StatusColorUpdate
from jobsite_crm.app.routes.session import get_workspace
from jobsite_crm.infra.database import get_db
from jobsite_crm.services.preferences import PreferenceService
from jobsite_crm.services.workspace import Workspace

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


def get_preferences(db: AsyncSession = Depends(get_db)) -> PreferenceService:
    return PreferenceService(db)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


@router.get("/filters", response_model=Filters)
async def get_filters(workspace: Workspace = Depends(get_workspace)):
    return workspace.filters


@router.put("/filters", response_model=Filters)
async def save_filters(
    data: Filters,
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    workspace.filters = data
    await preferences.save_filters(data)
    return workspace.filters


# ---------------------------------------------------------------------------
# Note tags
# ---------------------------------------------------------------------------


@router.get("/note-tags", response_model=list[NoteTag])
async def list_note_tags(workspace: Workspace = Depends(get_workspace)):
    return workspace.store.note_tags()


@router.post("/note-tags", response_model=NoteTag, status_code=status.HTTP_201_CREATED)
async def add_note_tag(
    data: NoteTagCreate,
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    tag = workspace.store.add_note_tag(data.label, data.color)
    if tag is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A tag equivalent to '{data.label}' already exists",
        )
    await preferences.save_note_tags(workspace.store.note_tags())
    return tag


@router.put("/note-tags", response_model=list[NoteTag])
async def replace_note_tags(
    data: list[NoteTag],
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    tags = workspace.store.replace_note_tags(data)
    await preferences.save_note_tags(tags)
    return tags


@router.put("/note-tags/order", response_model=list[NoteTag])
async def reorder_note_tags(
    tag_ids: list[str],
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    tags = workspace.store.reorder_note_tags(tag_ids)
    await preferences.save_note_tags(tags)
    return tags


@router.patch("/note-tags/{tag_id}", response_model=NoteTag)
async def update_note_tag(
    tag_id: str,
    data: NoteTagUpdate,
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    tag = workspace.store.update_note_tag(tag_id, label=data.label, color=data.color)
    if tag is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    await preferences.save_note_tags(workspace.store.note_tags())
    return tag


@router.delete("/note-tags/{tag_id}", response_model=NoteTag)
async def delete_note_tag(
    tag_id: str,
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    tag = workspace.store.delete_note_tag(tag_id)
    if tag is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    await preferences.save_note_tags(workspace.store.note_tags())
    return tag


# ---------------------------------------------------------------------------
# Status colors
# ---------------------------------------------------------------------------


@router.get("/status-colors", response_model=dict[str, StatusColor])
async def get_status_colors(workspace: Workspace = Depends(get_workspace)):
    return workspace.status_colors


@router.put("/status-colors", response_model=dict[str, StatusColor])
async def replace_status_colors(
    data: dict[str, StatusColor],
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    colors = workspace.replace_status_colors(data)
    await preferences.save_status_colors(colors)
    return colors


@router.put("/status-colors/{status_id}", response_model=dict[str, StatusColor])
async def set_status_color(
    status_id: str,
    data: StatusColorUpdate,
    workspace: Workspace = Depends(get_workspace),
    preferences: PreferenceService = Depends(get_preferences),
):
    colors = workspace.update_status_color(status_id, data.color)
    await preferences.save_status_colors(colors)
    return colors
