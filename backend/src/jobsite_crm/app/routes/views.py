"""Derived views API: filtered project list and pipeline aggregates.

Filter query parameters override the workspace's saved filter set field
by field; omitted parameters use the saved value.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from jobsite_crm.domain.schemas import Filters, PipelineSummary, Project, RevenueByType
from jobsite_crm.app.routes.session import get_workspace
from jobsite_crm.services.workspace import Workspace

router = APIRouter(prefix="/api/views", tags=["views"])


def get_filters(
    sales_rep_id: Optional[str] = None,
    division: Optional[str] = None,
    general_contractor: Optional[str] = None,
    show_behind_par: Optional[bool] = None,
    status: Optional[str] = None,
    hide_completed: Optional[bool] = None,
    workspace: Workspace = Depends(get_workspace),
) -> Filters:
    """FastAPI dependency: saved filters with query-string overrides applied."""
    overrides = {
        "sales_rep_id": sales_rep_id,
        "division": division,
        "general_contractor": general_contractor,
        "show_behind_par": show_behind_par,
        "status": status,
        "hide_completed": hide_completed,
    }
    return workspace.filters.model_copy(update={k: v for k, v in overrides.items() if v is not None})


@router.get("/projects", response_model=list[Project])
async def filtered_projects(
    filters: Filters = Depends(get_filters),
    workspace: Workspace = Depends(get_workspace),
):
    return workspace.views.get_filtered_projects(filters)


@router.get("/pipeline", response_model=PipelineSummary)
async def pipeline_summary(
    filters: Filters = Depends(get_filters),
    workspace: Workspace = Depends(get_workspace),
):
    """Project count, pipeline revenue and revenue by type over the filtered set."""
    return workspace.views.get_pipeline_summary(filters)


@router.get("/revenue-by-type", response_model=list[RevenueByType])
async def revenue_by_type(
    filters: Filters = Depends(get_filters),
    workspace: Workspace = Depends(get_workspace),
):
    return workspace.views.get_revenue_by_type(filters)


@router.get("/statuses", response_model=list[str])
async def statuses(workspace: Workspace = Depends(get_workspace)):
    return workspace.views.unique_statuses()
