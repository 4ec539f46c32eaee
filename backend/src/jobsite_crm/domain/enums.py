"""Domain enumerations for the job-site CRM.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class ChangeCategory(str, Enum):
    """Which part of a project a change-log entry belongs to."""

    PROJECT = "Project"
    OPPORTUNITY = "Opportunity"
    COMPANY = "Company"
    ACTIVITY = "Activity"
    NOTE = "Note"
    EQUIPMENT = "Equipment"


class ChangeAction(str, Enum):
    """Closed vocabulary of audited mutations."""

    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    OPPORTUNITY_ASSOCIATED = "OPPORTUNITY_ASSOCIATED"
    OPPORTUNITY_CREATED = "OPPORTUNITY_CREATED"
    OPPORTUNITY_UPDATED = "OPPORTUNITY_UPDATED"
    COMPANY_ADDED = "COMPANY_ADDED"
    COMPANY_REMOVED = "COMPANY_REMOVED"
    COMPANY_UPDATED = "COMPANY_UPDATED"
    ACTIVITY_ADDED = "ACTIVITY_ADDED"
    ACTIVITY_UPDATED = "ACTIVITY_UPDATED"
    ACTIVITY_DELETED = "ACTIVITY_DELETED"
    NOTE_ADDED = "NOTE_ADDED"
    NOTE_UPDATED = "NOTE_UPDATED"
    NOTE_DELETED = "NOTE_DELETED"
    EQUIPMENT_ADDED = "EQUIPMENT_ADDED"
    EQUIPMENT_UPDATED = "EQUIPMENT_UPDATED"
    EQUIPMENT_DELETED = "EQUIPMENT_DELETED"

    @property
    def category(self) -> ChangeCategory:
        return ACTION_CATEGORIES[self]


ACTION_CATEGORIES: dict[ChangeAction, ChangeCategory] = {
    ChangeAction.PROJECT_CREATED: ChangeCategory.PROJECT,
    ChangeAction.PROJECT_UPDATED: ChangeCategory.PROJECT,
    ChangeAction.OPPORTUNITY_ASSOCIATED: ChangeCategory.OPPORTUNITY,
    ChangeAction.OPPORTUNITY_CREATED: ChangeCategory.OPPORTUNITY,
    ChangeAction.OPPORTUNITY_UPDATED: ChangeCategory.OPPORTUNITY,
    ChangeAction.COMPANY_ADDED: ChangeCategory.COMPANY,
    ChangeAction.COMPANY_REMOVED: ChangeCategory.COMPANY,
    ChangeAction.COMPANY_UPDATED: ChangeCategory.COMPANY,
    ChangeAction.ACTIVITY_ADDED: ChangeCategory.ACTIVITY,
    ChangeAction.ACTIVITY_UPDATED: ChangeCategory.ACTIVITY,
    ChangeAction.ACTIVITY_DELETED: ChangeCategory.ACTIVITY,
    ChangeAction.NOTE_ADDED: ChangeCategory.NOTE,
    ChangeAction.NOTE_UPDATED: ChangeCategory.NOTE,
    ChangeAction.NOTE_DELETED: ChangeCategory.NOTE,
    ChangeAction.EQUIPMENT_ADDED: ChangeCategory.EQUIPMENT,
    ChangeAction.EQUIPMENT_UPDATED: ChangeCategory.EQUIPMENT,
    ChangeAction.EQUIPMENT_DELETED: ChangeCategory.EQUIPMENT,
}


class ActivityType(str, Enum):
    """Vocabulary offered for site activities."""

    SITE_VISIT = "Site Visit"
    PHONE_CALL = "Phone Call"
    EMAIL = "Email"
    MEETING = "Meeting"
    FOLLOW_UP = "Follow-up"
    PROPOSAL = "Proposal"
    DEMO = "Demo"
    OTHER = "Other"


class StatusColor(str, Enum):
    """Fixed palette shared by project statuses and note tags."""

    EMERALD = "emerald"
    SKY = "sky"
    AMBER = "amber"
    ROSE = "rose"
    VIOLET = "violet"
    SLATE = "slate"

    @property
    def label(self) -> str:
        return _COLOR_LABELS[self]


_COLOR_LABELS: dict[StatusColor, str] = {
    StatusColor.EMERALD: "Green",
    StatusColor.SKY: "Blue",
    StatusColor.AMBER: "Yellow",
    StatusColor.ROSE: "Red",
    StatusColor.VIOLET: "Purple",
    StatusColor.SLATE: "Gray",
}


class ProjectStatus(str, Enum):
    """Statuses shipped by default. statusId itself stays a free-form string."""

    ACTIVE = "Active"
    PLANNING = "Planning"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


class Division(str, Enum):
    """Division codes an opportunity can belong to."""

    E = "E"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


# Division assumed for a project with no resolvable opportunity
FALLBACK_DIVISION = Division.E.value

# Role id marking a general contractor row
GC_ROLE_ID = "GC"

# typeId convention used for the denormalized summary label
SALE_TYPE_ID = 1
