"""Projects API: project CRUD plus nested companies, contacts, activities, notes, equipment.

Every mutation runs synchronously inside the request handler on the
event loop, so no two mutations interleave. A ``None`` from the store
means the referenced project or child does not exist and becomes a 404.
"""

from typing import Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobsite_crm.domain.enums import ChangeCategory
from jobsite_crm.domain.schemas import (
    Activity,
    ActivityCreate,
    ActivityUpdate,
    AvailableCompany,
    ChangeLogPage,
    CompanyContactCreate,
    CompanyContactUpdate,
    CustomerEquipment,
    EquipmentCreate,
    EquipmentUpdate,
    Note,
    NoteCreate,
    NoteUpdate,
    OpportunityAssociate,
    Project,
    ProjectCompany,
    ProjectCreate,
    ProjectOpportunityRow,
    ProjectUpdate,
)
from jobsite_crm.app.routes.session import get_acting_user, get_workspace
from jobsite_crm.services.change_log import DEFAULT_PAGE_SIZE, PAGE_SIZES
from jobsite_crm.services.workspace import Workspace

router = APIRouter(prefix="/api/projects", tags=["projects"])

T = TypeVar("T")


def _found(value: Optional[T], what: str) -> T:
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")
    return value


def _require_project(workspace: Workspace, project_id: int) -> Project:
    return _found(workspace.store.get_project(project_id), "Project")


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get("", response_model=list[Project])
async def list_projects(workspace: Workspace = Depends(get_workspace)):
    """All projects, unfiltered. See /api/views/projects for the filtered list."""
    return workspace.store.projects()


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return workspace.store.create_project(data, acting_user_id=user_id)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: int, workspace: Workspace = Depends(get_workspace)):
    return _require_project(workspace, project_id)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return _found(
        workspace.store.update_project(project_id, updates, acting_user_id=user_id), "Project",
    )


@router.get("/{project_id}/changes", response_model=ChangeLogPage)
async def project_change_log(
    project_id: int,
    category: Optional[ChangeCategory] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE),
    workspace: Workspace = Depends(get_workspace),
):
    """Change log, newest first, optionally narrowed to one category."""
    _require_project(workspace, project_id)
    if page_size not in PAGE_SIZES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size must be one of {list(PAGE_SIZES)}",
        )
    return workspace.store.change_log.page(project_id, category, page, page_size)


# ---------------------------------------------------------------------------
# Opportunities on a project
# ---------------------------------------------------------------------------


@router.get("/{project_id}/opportunities", response_model=list[ProjectOpportunityRow])
async def project_opportunities(
    project_id: int,
    open_only: bool = False,
    stage_id: Optional[int] = None,
    division: Optional[str] = None,
    type: Optional[str] = None,
    sales_rep: Optional[str] = None,
    workspace: Workspace = Depends(get_workspace),
):
    project = _require_project(workspace, project_id)
    return workspace.views.project_opportunities(
        project,
        open_only=open_only,
        stage_id=stage_id,
        division=division,
        type_label=type,
        sales_rep_name=sales_rep,
    )


@router.post("/{project_id}/opportunities", response_model=Project)
async def associate_opportunity(
    project_id: int,
    data: OpportunityAssociate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.add_opportunity_to_project(project_id, data.opportunity_id, acting_user_id=user_id),
        "Project or opportunity",
    )


# ---------------------------------------------------------------------------
# Companies and contacts
# ---------------------------------------------------------------------------


@router.get("/{project_id}/available-companies", response_model=list[AvailableCompany])
async def available_companies(project_id: int, workspace: Workspace = Depends(get_workspace)):
    _require_project(workspace, project_id)
    return workspace.views.available_companies_for(project_id)


@router.post("/{project_id}/companies", response_model=ProjectCompany, status_code=status.HTTP_201_CREATED)
async def add_company(
    project_id: int,
    data: ProjectCompany,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.add_project_company(project_id, data, acting_user_id=user_id), "Project")


@router.put("/{project_id}/companies/{association_id}", response_model=ProjectCompany)
async def replace_company(
    project_id: int,
    association_id: int,
    data: ProjectCompany,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    """Replace a company row wholesale; the association id is kept."""
    return _found(
        workspace.store.update_project_company(project_id, association_id, data, acting_user_id=user_id),
        "Company",
    )


@router.delete("/{project_id}/companies/{association_id}", response_model=ProjectCompany)
async def remove_company(
    project_id: int,
    association_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.remove_project_company(project_id, association_id, acting_user_id=user_id),
        "Company",
    )


@router.post("/{project_id}/companies/{association_id}/contacts", response_model=ProjectCompany)
async def add_contact(
    project_id: int,
    association_id: int,
    data: CompanyContactCreate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.add_company_contact(project_id, association_id, data, acting_user_id=user_id),
        "Company",
    )


@router.patch("/{project_id}/companies/{association_id}/contacts/{contact_id}", response_model=ProjectCompany)
async def update_contact(
    project_id: int,
    association_id: int,
    contact_id: int,
    data: CompanyContactUpdate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return _found(
        workspace.store.update_company_contact(
            project_id, association_id, contact_id, updates, acting_user_id=user_id,
        ),
        "Contact",
    )


@router.delete("/{project_id}/companies/{association_id}/contacts/{contact_id}", response_model=ProjectCompany)
async def remove_contact(
    project_id: int,
    association_id: int,
    contact_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    """Remove a contact. The last remaining contact is kept."""
    return _found(
        workspace.store.remove_company_contact(project_id, association_id, contact_id, acting_user_id=user_id),
        "Contact",
    )


@router.put("/{project_id}/companies/{association_id}/contacts/{contact_id}/primary", response_model=ProjectCompany)
async def set_primary_contact(
    project_id: int,
    association_id: int,
    contact_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.set_primary_company_contact(
            project_id, association_id, contact_id, acting_user_id=user_id,
        ),
        "Contact",
    )


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


@router.post("/{project_id}/activities", response_model=Activity, status_code=status.HTTP_201_CREATED)
async def add_activity(
    project_id: int,
    data: ActivityCreate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.add_activity(project_id, data, acting_user_id=user_id), "Project")


@router.patch("/{project_id}/activities/{activity_id}", response_model=Activity)
async def update_activity(
    project_id: int,
    activity_id: int,
    data: ActivityUpdate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return _found(
        workspace.store.update_activity(project_id, activity_id, updates, acting_user_id=user_id),
        "Activity",
    )


@router.delete("/{project_id}/activities/{activity_id}", response_model=Activity)
async def delete_activity(
    project_id: int,
    activity_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.delete_activity(project_id, activity_id, acting_user_id=user_id), "Activity",
    )


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


@router.post("/{project_id}/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
async def add_note(
    project_id: int,
    data: NoteCreate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.add_note(project_id, data, acting_user_id=user_id), "Project")


@router.patch("/{project_id}/notes/{note_id}", response_model=Note)
async def update_note(
    project_id: int,
    note_id: int,
    data: NoteUpdate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.update_note(project_id, note_id, data, acting_user_id=user_id), "Note")


@router.delete("/{project_id}/notes/{note_id}", response_model=Note)
async def delete_note(
    project_id: int,
    note_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.delete_note(project_id, note_id, acting_user_id=user_id), "Note")


# ---------------------------------------------------------------------------
# Customer equipment
# ---------------------------------------------------------------------------


@router.post("/{project_id}/equipment", response_model=CustomerEquipment, status_code=status.HTTP_201_CREATED)
async def add_equipment(
    project_id: int,
    data: EquipmentCreate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(workspace.store.add_customer_equipment(project_id, data, acting_user_id=user_id), "Project")


@router.patch("/{project_id}/equipment/{equipment_id}", response_model=CustomerEquipment)
async def update_equipment(
    project_id: int,
    equipment_id: int,
    data: EquipmentUpdate,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return _found(
        workspace.store.update_customer_equipment(project_id, equipment_id, updates, acting_user_id=user_id),
        "Equipment",
    )


@router.delete("/{project_id}/equipment/{equipment_id}", response_model=CustomerEquipment)
async def delete_equipment(
    project_id: int,
    equipment_id: int,
    workspace: Workspace = Depends(get_workspace),
    user_id: int = Depends(get_acting_user),
):
    return _found(
        workspace.store.delete_customer_equipment(project_id, equipment_id, acting_user_id=user_id),
        "Equipment",
    )
