"""Pydantic v2 schemas for the CRM entity model, reference tables and API payloads.

Attributes are snake_case; the wire/seed shape is camelCase through
``alias_generator``. Reference rows keep the lowercase keys of the source
tables via explicit aliases.
"""

import math
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobsite_crm.domain.enums import (
    GC_ROLE_ID,
    ActivityType,
    ChangeAction,
    ChangeCategory,
    ProjectStatus,
    StatusColor,
)

# Upload policy applied by the HTTP adapter, not by the store
MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
MAX_ATTACHMENTS_PER_NOTE = 10


class CamelModel(BaseModel):
    """Base for every entity: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Project and nested collections
# ---------------------------------------------------------------------------


class Address(CamelModel):
    """Postal address or lat/long pair; either half may be empty."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_postal_address(self) -> bool:
        return bool(self.street and self.city and self.state)

    @property
    def has_coordinates(self) -> bool:
        if self.latitude is None or self.longitude is None:
            return False
        return not (math.isnan(self.latitude) or math.isnan(self.longitude))


class ContactInfo(CamelModel):
    """Project primary contact."""

    name: str = ""
    title: str | None = None
    phone: str | None = None
    email: str = ""


class CompanyContact(CamelModel):
    id: int = 0
    name: str = ""
    title: str | None = None
    phone: str = ""
    email: str = ""


class ProjectCompany(CamelModel):
    """A company associated to one project in some role.

    ``association_id`` is the per-project surrogate key; ``company_name`` is
    a mutable attribute and may repeat across (or even within) projects.
    """

    association_id: int = 0
    company_id: str = ""
    company_name: str
    role_id: str = ""
    role_description: str = ""
    is_primary_contact: bool = False
    company_contacts: list[CompanyContact] = []
    primary_contact_index: int = 0

    @property
    def is_general_contractor(self) -> bool:
        return self.role_id == GC_ROLE_ID

    @property
    def primary_contact(self) -> CompanyContact | None:
        if not self.company_contacts:
            return None
        index = self.primary_contact_index
        if 0 <= index < len(self.company_contacts):
            return self.company_contacts[index]
        return self.company_contacts[0]


class OpportunitySummary(CamelModel):
    """Denormalized snapshot of an opportunity cached on its project."""

    id: int
    type: str = ""
    description: str = ""
    stage_id: int = 0
    revenue: float = 0.0


class Activity(CamelModel):
    id: int = 0
    assignee_id: int = 0
    activity_type: str = ActivityType.OTHER.value
    date: datetime | None = None
    description: str = ""


class Attachment(CamelModel):
    id: int = 0
    file_name: str = ""
    file_url: str = ""
    file_type: str = ""
    file_size: int = 0
    uploaded_at: datetime | None = None


class NoteModification(CamelModel):
    """One entry of a note's append-only edit history."""

    modified_at: datetime
    modified_by_id: int
    summary: str
    previous_content: str | None = None
    previous_tag_ids: list[str] | None = None


class Note(CamelModel):
    id: int = 0
    content: str = ""
    created_at: datetime | None = None
    created_by_id: int = 0
    tag_ids: list[str] = []
    attachments: list[Attachment] = []
    last_modified_at: datetime | None = None
    last_modified_by_id: int | None = None
    modification_history: list[NoteModification] = []


class CustomerEquipment(CamelModel):
    id: int = 0
    company_id: str = ""
    equipment_type: str = ""
    make: str = ""
    model: str = ""
    year: int | None = None
    serial_number: str | None = None
    hours: float | None = None


class Project(CamelModel):
    """A job site and everything hanging off it."""

    id: int = 0
    name: str
    description: str = ""
    status_id: str = ProjectStatus.PLANNING.value
    sales_rep_ids: list[int] = []
    planned_annual_rate: float = 0
    par_start_date: date | None = None
    address: Address = Address()
    project_primary_contact: ContactInfo = ContactInfo()
    project_companies: list[ProjectCompany] = []
    associated_opportunities: list[OpportunitySummary] = []
    activities: list[Activity] = []
    notes: list[Note] = []
    customer_equipment: list[CustomerEquipment] = []


# ---------------------------------------------------------------------------
# Opportunity
# ---------------------------------------------------------------------------


class Product(CamelModel):
    id: int = 0
    part_category_id: int | None = None
    rent_duration_type_id: int | None = None
    is_primary: bool = False
    quantity: int = 0
    rent_duration: int | None = None
    family_id: int | None = None
    age: float | None = None
    hours: float | None = None
    unit_price: float = 0.0
    description: str = ""
    make_id: str = ""
    base_model_id: str = ""
    stock_number: str = ""


class ProductGroup(CamelModel):
    id: int = 0
    status_id: int | None = None
    order: int = 0
    products: list[Product] = []


class Opportunity(CamelModel):
    """Full opportunity record.

    Only the fields the core reasons about are typed. The remaining
    customer, case and classification fields ride along untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: int | None = None
    description: str = ""
    estimate_revenue: float = 0.0
    stage_id: int = 0
    type_id: int = 2
    division_id: str = ""
    project_id: int | None = None
    sales_rep_id: int = 0
    estimate_delivery_month: int | None = None
    estimate_delivery_year: int | None = None
    product_groups: list[ProductGroup] = []


# ---------------------------------------------------------------------------
# Reference tables (read-only after startup)
# ---------------------------------------------------------------------------


class SalesRep(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="salesrepid")
    first_name: str = Field(default="", alias="firstname")
    last_name: str = Field(default="", alias="lastname")
    email: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.last_name}, {self.first_name}"


class OpportunityStage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="stageid")
    name: str = Field(alias="stagename")
    phase_id: int = Field(default=0, alias="phaseid")
    phase: str = ""
    display_order: int = Field(default=999, alias="displayorder")
    display_stage_name: str = Field(default="", alias="DisplayStageName")


class OpportunityType(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="typeid")
    name: str = Field(alias="typename")
    display_order: int = Field(default=999, alias="displayorder")


class DivisionInfo(CamelModel):
    code: str
    name: str


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


class NoteTag(CamelModel):
    id: str
    label: str
    display_order: int = 0
    color: str = StatusColor.SLATE.value


class Filters(CamelModel):
    """Project-list filter set. Empty strings mean "no filter"."""

    sales_rep_id: str = ""
    division: str = ""
    general_contractor: str = ""
    show_behind_par: bool = False
    status: str = ""
    hide_completed: bool = True


# ---------------------------------------------------------------------------
# Change log
# ---------------------------------------------------------------------------


class ValueChange(CamelModel):
    from_: Any = Field(default=None, alias="from")
    to: Any = None


class EntityRef(CamelModel):
    """Details for create/add/associate/remove/delete actions."""

    kind: Literal["entity"] = "entity"
    entity_id: int | str | None = None
    label: str = ""


class MultiFieldChange(CamelModel):
    """Per-field before/after values of a diff-gated update."""

    kind: Literal["fields"] = "fields"
    changes: dict[str, ValueChange] = {}


class NoteChange(CamelModel):
    kind: Literal["note"] = "note"
    note_id: int
    changes: list[str] = []


ChangeDetails = Annotated[
    Union[EntityRef, MultiFieldChange, NoteChange],
    Field(discriminator="kind"),
]


class ChangeLogEntry(CamelModel):
    id: int
    project_id: int | None = None
    timestamp: datetime
    action: ChangeAction
    category: ChangeCategory
    summary: str
    changed_by_id: int
    details: ChangeDetails | None = None


class ChangeLogPage(CamelModel):
    items: list[ChangeLogEntry]
    total: int
    page: int
    page_size: int
    total_pages: int


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class RevenueByType(CamelModel):
    type_id: int
    label: str
    display_order: int
    revenue: float


class PipelineSummary(CamelModel):
    project_count: int
    total_revenue: float
    revenue_by_type: list[RevenueByType]


class ProjectOpportunityRow(CamelModel):
    """Summary row joined with the live opportunity, for project detail."""

    id: int
    type: str
    description: str
    stage_id: int
    stage_name: str
    division_id: str
    sales_rep_name: str
    estimated_close: str
    revenue: float


class AvailableCompany(CamelModel):
    company_id: str
    company_name: str
    company_contacts: list[CompanyContact] = []


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ProjectCreate(CamelModel):
    name: str
    description: str = ""
    status_id: str = ProjectStatus.PLANNING.value
    sales_rep_ids: list[int] = []
    planned_annual_rate: float = 0
    par_start_date: date | None = None
    address: Address = Address()
    project_primary_contact: ContactInfo = ContactInfo()
    project_companies: list[ProjectCompany] = []


class ProjectUpdate(CamelModel):
    """Partial project update; only fields actually sent are applied."""

    name: str | None = None
    description: str | None = None
    status_id: str | None = None
    sales_rep_ids: list[int] | None = None
    planned_annual_rate: float | None = None
    par_start_date: date | None = None
    address: Address | None = None
    project_primary_contact: ContactInfo | None = None


class OpportunityAssociate(CamelModel):
    opportunity_id: int


class ActivityCreate(CamelModel):
    assignee_id: int
    activity_type: str = ActivityType.OTHER.value
    date: datetime | None = None
    description: str


class ActivityUpdate(CamelModel):
    assignee_id: int | None = None
    activity_type: str | None = None
    date: datetime | None = None
    description: str | None = None


def _check_upload_limits(attachments: list[Attachment]) -> list[Attachment]:
    if len(attachments) > MAX_ATTACHMENTS_PER_NOTE:
        raise ValueError(f"At most {MAX_ATTACHMENTS_PER_NOTE} attachments per note")
    for attachment in attachments:
        if attachment.file_size > MAX_ATTACHMENT_BYTES:
            raise ValueError(f"{attachment.file_name} exceeds the 5MB per-file limit")
    return attachments


Uploads = Annotated[list[Attachment], AfterValidator(_check_upload_limits)]


class NoteCreate(CamelModel):
    content: str
    tag_ids: list[str] = []
    attachments: Uploads = []


class NoteUpdate(CamelModel):
    content: str | None = None
    tag_ids: list[str] | None = None
    attachments: Uploads | None = None


class EquipmentCreate(CamelModel):
    company_id: str
    equipment_type: str
    make: str
    model: str
    year: int | None = None
    serial_number: str | None = None
    hours: float | None = None


class EquipmentUpdate(CamelModel):
    company_id: str | None = None
    equipment_type: str | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = None
    serial_number: str | None = None
    hours: float | None = None


class CompanyContactCreate(CamelModel):
    name: str
    title: str | None = None
    phone: str = ""
    email: str


class CompanyContactUpdate(CamelModel):
    name: str | None = None
    title: str | None = None
    phone: str | None = None
    email: str | None = None


class NoteTagCreate(CamelModel):
    label: str
    color: StatusColor = StatusColor.SLATE


class NoteTagUpdate(CamelModel):
    label: str | None = None
    color: StatusColor | None = None


class StatusColorUpdate(CamelModel):
    color: StatusColor


class CurrentUser(CamelModel):
    user_id: int
