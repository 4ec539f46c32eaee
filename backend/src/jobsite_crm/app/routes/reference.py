"""Reference data API: read-only lookup tables."""

from fastapi import APIRouter, Depends

from jobsite_crm.domain.enums import ActivityType, StatusColor
from jobsite_crm.domain.schemas import DivisionInfo, OpportunityStage, OpportunityType, SalesRep
from jobsite_crm.app.routes.session import get_workspace
from jobsite_crm.services.workspace import Workspace

router = APIRouter(prefix="/api/reference", tags=["reference"])


@router.get("/sales-reps", response_model=list[SalesRep])
async def sales_reps(workspace: Workspace = Depends(get_workspace)):
    return workspace.reference.sales_reps()


@router.get("/stages", response_model=list[OpportunityStage])
async def stages(workspace: Workspace = Depends(get_workspace)):
    return workspace.reference.stages()


@router.get("/types", response_model=list[OpportunityType])
async def opportunity_types(workspace: Workspace = Depends(get_workspace)):
    return workspace.reference.types()


@router.get("/divisions", response_model=list[DivisionInfo])
async def divisions(workspace: Workspace = Depends(get_workspace)):
    return workspace.reference.divisions()


@router.get("/activity-types", response_model=list[str])
async def activity_types():
    return [t.value for t in ActivityType]


@router.get("/status-palette")
async def status_palette():
    """Color choices for statuses and note tags."""
    return [{"id": c.value, "label": c.label} for c in StatusColor]
