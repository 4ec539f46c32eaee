"""Opportunities API: the global opportunity list.

Bodies are free-form JSON objects; only the fields the core reasons about
are typed, everything else is carried as-is.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from jobsite_crm.domain.schemas import Opportunity
from jobsite_crm.app.routes.session import get_acting_user, get_workspace
from jobsite_crm.services.workspace import Workspace

router = APIRouter(prefix="/api/opportunities", tags=["opportunities"])


@router.get("", response_model=list[Opportunity])
async def list_opportunities(workspace: Workspace = Depends(get_workspace)):
    return workspace.store.opportunities()


@router.get("/next-id")
async def next_opportunity_id(workspace: Workspace = Depends(get_workspace)):
    return {"id": workspace.store.next_opportunity_id()}


@router.get("/{opportunity_id}", response_model=Opportunity)
async def get_opportunity(opportunity_id: int, workspace: Workspace = Depends(get_workspace)):
    opportunity = workspace.store.get_opportunity(opportunity_id)
    if opportunity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Opportunity not found")
    return opportunity


@router.post("", response_model=Opportunity, status_code=status.HTTP_201_CREATED)
async def create_opportunity(
    data: Opportunity,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    """Create an opportunity; an omitted id is assigned from the next free id."""
    return workspace.store.create_new_opportunity(data, acting_user_id=user_id)


@router.patch("/{opportunity_id}", response_model=Opportunity)
async def update_opportunity(
    opportunity_id: int,
    updates: dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    """Merge fields into the opportunity. Project summary rows are not refreshed."""
    try:
        opportunity = workspace.store.update_opportunity(opportunity_id, updates, acting_user_id=user_id)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
    if opportunity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Opportunity not found")
    return opportunity
