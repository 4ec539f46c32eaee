"""Entity store: the single source of truth for projects, opportunities and note tags.

Every mutator runs to completion synchronously: it applies its change and
appends at most one change-log entry before returning. Mutators take the
acting user explicitly and return a copy of the affected entity, or
``None`` when the referenced project/opportunity/child does not exist.
A lookup miss changes nothing and records nothing.

Ids inside a project (activities, notes, equipment, company associations)
and inside a company (contacts) are ``max(existing, 0) + 1``. Project ids
follow the same rule globally; opportunity ids start above 100000.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel

from jobsite_crm.domain.enums import SALE_TYPE_ID, ChangeAction, StatusColor
from jobsite_crm.domain.schemas import (
    Activity,
    ChangeLogEntry,
    CompanyContact,
    CustomerEquipment,
    EntityRef,
    MultiFieldChange,
    Note,
    NoteChange,
    NoteModification,
    NoteTag,
    Opportunity,
    OpportunitySummary,
    Project,
    ProjectCompany,
    ValueChange,
)
from jobsite_crm.services.change_log import ChangeLog
from jobsite_crm.services.merge import Updates, merge_entity, update_payload

logger = logging.getLogger(__name__)

# Lowest opportunity id is OPPORTUNITY_ID_FLOOR + 1
OPPORTUNITY_ID_FLOOR = 100000

# Either the association id or the company name (first match)
CompanyRef = Union[int, str]

_PREVIEW_LENGTH = 50

A = ChangeAction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_id(ids: Iterable[Optional[int]], floor: int = 0) -> int:
    return max([floor, *(i for i in ids if i is not None)]) + 1


def _assign_association_ids(companies: list[ProjectCompany]) -> None:
    """Give rows without an association id the next free ids, in list order."""
    next_association = _next_id(c.association_id for c in companies)
    for company in companies:
        if not company.association_id:
            company.association_id = next_association
            next_association += 1


def _as_dict(data: Union[Mapping[str, Any], BaseModel]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _preview(text: str) -> str:
    if len(text) <= _PREVIEW_LENGTH:
        return text
    return text[:_PREVIEW_LENGTH].rstrip() + "..."


def derive_tag_id(label: str) -> str:
    """``"Follow up!"`` -> ``"FOLLOW_UP"``."""
    return re.sub(r"[^A-Z0-9]+", "_", label.strip().upper()).strip("_")


def summarize_opportunity(opportunity: Opportunity) -> OpportunitySummary:
    """Denormalized row cached on the owning project."""
    return OpportunitySummary(
        id=opportunity.id,
        type="Sale" if opportunity.type_id == SALE_TYPE_ID else "Rental",
        description=opportunity.description,
        stage_id=opportunity.stage_id,
        revenue=opportunity.estimate_revenue,
    )


def equipment_label(equipment: CustomerEquipment) -> str:
    parts = [str(equipment.year) if equipment.year else "", equipment.make, equipment.model]
    label = " ".join(p for p in parts if p)
    return label or equipment.equipment_type or f"#{equipment.id}"


class EntityStore:
    """In-memory document store with an attached change log."""

    def __init__(
        self,
        projects: Iterable[Project] = (),
        opportunities: Iterable[Opportunity] = (),
        note_tags: Iterable[NoteTag] = (),
        change_log: Optional[ChangeLog] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._clock = clock or _utcnow
        self.change_log = change_log if change_log is not None else ChangeLog(clock=self._clock)
        self._projects: list[Project] = [p.model_copy(deep=True) for p in projects]
        self._opportunities: list[Opportunity] = [o.model_copy(deep=True) for o in opportunities]
        self._note_tags: list[NoteTag] = [t.model_copy(deep=True) for t in note_tags]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def projects(self) -> list[Project]:
        return [p.model_copy(deep=True) for p in self._projects]

    def get_project(self, project_id: int) -> Optional[Project]:
        project = self._find_project(project_id)
        return project.model_copy(deep=True) if project else None

    def opportunities(self) -> list[Opportunity]:
        return [o.model_copy(deep=True) for o in self._opportunities]

    def get_opportunity(self, opportunity_id: int) -> Optional[Opportunity]:
        opportunity = self._find_opportunity(opportunity_id)
        return opportunity.model_copy(deep=True) if opportunity else None

    def note_tags(self) -> list[NoteTag]:
        """Tag taxonomy ordered by display order."""
        tags = sorted(self._note_tags, key=lambda t: t.display_order)
        return [t.model_copy(deep=True) for t in tags]

    def get_change_log(self, project_id: int) -> list[ChangeLogEntry]:
        return self.change_log.query(project_id)

    def next_opportunity_id(self) -> int:
        return _next_id((o.id for o in self._opportunities), floor=OPPORTUNITY_ID_FLOOR)

    # ------------------------------------------------------------------
    # Internal lookups (live objects, never handed out)
    # ------------------------------------------------------------------

    def _find_project(self, project_id: int) -> Optional[Project]:
        project = next((p for p in self._projects if p.id == project_id), None)
        if project is None:
            logger.debug("Project %s not found", project_id)
        return project

    def _find_opportunity(self, opportunity_id: int) -> Optional[Opportunity]:
        opportunity = next((o for o in self._opportunities if o.id == opportunity_id), None)
        if opportunity is None:
            logger.debug("Opportunity %s not found", opportunity_id)
        return opportunity

    @staticmethod
    def _find_company_index(project: Project, ref: CompanyRef) -> Optional[int]:
        for index, company in enumerate(project.project_companies):
            if isinstance(ref, str):
                if company.company_name == ref:
                    return index
            elif company.association_id == ref:
                return index
        logger.debug("Company %r not found on project %s", ref, project.id)
        return None

    @staticmethod
    def _find_child_index(items: list, child_id: int, kind: str, project_id: int) -> Optional[int]:
        for index, item in enumerate(items):
            if item.id == child_id:
                return index
        logger.debug("%s %s not found on project %s", kind, child_id, project_id)
        return None

    def _record(self, project_id, action, summary, acting_user_id, details=None) -> ChangeLogEntry:
        return self.change_log.record(
            project_id, action, summary, changed_by_id=acting_user_id, details=details,
        )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, data: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int) -> Project:
        payload = _as_dict(data)
        payload.pop("id", None)
        project = Project.model_validate({**payload, "id": _next_id(p.id for p in self._projects)})

        _assign_association_ids(project.project_companies)

        self._projects.append(project)
        self._record(
            project.id, A.PROJECT_CREATED, f'Created project "{project.name}"', acting_user_id,
            EntityRef(entity_id=project.id, label=project.name),
        )
        logger.info("Created project %d (%s)", project.id, project.name)
        return project.model_copy(deep=True)

    def update_project(self, project_id: int, updates: Updates, *, acting_user_id: int) -> Optional[Project]:
        """Shallow-merge ``updates``; log only when some field actually differs."""
        project = self._find_project(project_id)
        if project is None:
            return None

        merged, diff = merge_entity(project, updates)
        _assign_association_ids(merged.project_companies)
        if not diff:
            return merged
        self._projects[self._projects.index(project)] = merged
        self._record(
            project_id, A.PROJECT_UPDATED, f"Updated project: {', '.join(diff)}", acting_user_id,
            MultiFieldChange(changes=diff),
        )
        return merged.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Opportunities
    # ------------------------------------------------------------------

    def add_opportunity_to_project(
        self, project_id: int, opportunity_id: int, *, acting_user_id: int,
    ) -> Optional[Project]:
        """Associate an existing opportunity; already-associated is a silent no-op."""
        project = self._find_project(project_id)
        opportunity = self._find_opportunity(opportunity_id)
        if project is None or opportunity is None:
            return None

        if any(s.id == opportunity_id for s in project.associated_opportunities):
            return project.model_copy(deep=True)

        project.associated_opportunities.append(summarize_opportunity(opportunity))
        self._record(
            project_id, A.OPPORTUNITY_ASSOCIATED,
            f"Associated opportunity #{opportunity_id}: {opportunity.description}", acting_user_id,
            EntityRef(entity_id=opportunity_id, label=opportunity.description),
        )
        return project.model_copy(deep=True)

    def create_new_opportunity(
        self, opportunity: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int,
    ) -> Opportunity:
        """Store the opportunity and cache its summary on the owning project.

        An unset id is filled from ``next_opportunity_id``. When the owning
        project does not exist the opportunity is stored without a summary
        and nothing is logged.
        """
        created = Opportunity.model_validate(_as_dict(opportunity))
        if created.id is None:
            created.id = self.next_opportunity_id()
        self._opportunities.append(created)

        project = self._find_project(created.project_id) if created.project_id is not None else None
        if project is not None:
            if not any(s.id == created.id for s in project.associated_opportunities):
                project.associated_opportunities.append(summarize_opportunity(created))
            self._record(
                project.id, A.OPPORTUNITY_CREATED,
                f"Created opportunity #{created.id}: {created.description}", acting_user_id,
                EntityRef(entity_id=created.id, label=created.description),
            )
        return created.model_copy(deep=True)

    def update_opportunity(
        self, opportunity_id: int, updates: Updates, *, acting_user_id: int,
    ) -> Optional[Opportunity]:
        """Merge into the global record only.

        The summary row cached on the project is left as it was at
        association time.
        """
        opportunity = self._find_opportunity(opportunity_id)
        if opportunity is None:
            return None

        merged, diff = merge_entity(opportunity, updates)
        if not diff:
            return merged
        self._opportunities[self._opportunities.index(opportunity)] = merged
        self._record(
            merged.project_id, A.OPPORTUNITY_UPDATED,
            f"Updated opportunity #{opportunity_id}: {', '.join(diff)}", acting_user_id,
            MultiFieldChange(changes=diff),
        )
        return merged.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Project companies
    # ------------------------------------------------------------------

    def add_project_company(
        self, project_id: int, company: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        project = self._find_project(project_id)
        if project is None:
            return None

        added = ProjectCompany.model_validate(_as_dict(company))
        added.association_id = _next_id(c.association_id for c in project.project_companies)
        project.project_companies.append(added)
        role = f" ({added.role_description})" if added.role_description else ""
        self._record(
            project_id, A.COMPANY_ADDED, f'Added company "{added.company_name}"{role}', acting_user_id,
            EntityRef(entity_id=added.association_id, label=added.company_name),
        )
        return added.model_copy(deep=True)

    def remove_project_company(
        self, project_id: int, ref: CompanyRef, *, acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_company_index(project, ref)
        if index is None:
            return None

        removed = project.project_companies.pop(index)
        self._record(
            project_id, A.COMPANY_REMOVED, f'Removed company "{removed.company_name}"', acting_user_id,
            EntityRef(entity_id=removed.association_id, label=removed.company_name),
        )
        return removed

    def update_project_company(
        self, project_id: int, ref: CompanyRef, updates: Updates, *, acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        """Replace or merge one company row; renames keep the association id."""
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_company_index(project, ref)
        if index is None:
            return None

        current = project.project_companies[index]
        merged, diff = merge_entity(current, updates, protected=("association_id",))
        if not diff:
            return merged
        project.project_companies[index] = merged
        self._record(
            project_id, A.COMPANY_UPDATED,
            f'Updated company "{merged.company_name}": {", ".join(diff)}', acting_user_id,
            MultiFieldChange(changes=diff),
        )
        return merged.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Company contacts
    # ------------------------------------------------------------------

    def _commit_company(
        self,
        project: Project,
        index: int,
        updated: ProjectCompany,
        summary: str,
        acting_user_id: int,
    ) -> ProjectCompany:
        current = project.project_companies[index]
        before = current.model_dump(mode="json", by_alias=True)
        after = updated.model_dump(mode="json", by_alias=True)
        changes = {
            key: ValueChange(from_=before[key], to=after[key])
            for key in ("companyContacts", "primaryContactIndex")
            if before[key] != after[key]
        }
        project.project_companies[index] = updated
        self._record(
            project.id, A.COMPANY_UPDATED, summary, acting_user_id, MultiFieldChange(changes=changes),
        )
        return updated.model_copy(deep=True)

    def _locate_company(self, project_id: int, ref: CompanyRef) -> tuple[Optional[Project], Optional[int]]:
        project = self._find_project(project_id)
        if project is None:
            return None, None
        return project, self._find_company_index(project, ref)

    def add_company_contact(
        self,
        project_id: int,
        ref: CompanyRef,
        contact: Union[Mapping[str, Any], BaseModel],
        *,
        acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        project, index = self._locate_company(project_id, ref)
        if index is None:
            return None

        company = project.project_companies[index].model_copy(deep=True)
        added = CompanyContact.model_validate(_as_dict(contact))
        added.id = _next_id(c.id for c in company.company_contacts)
        company.company_contacts.append(added)
        return self._commit_company(
            project, index, company,
            f'Added contact "{added.name}" to {company.company_name}', acting_user_id,
        )

    def update_company_contact(
        self,
        project_id: int,
        ref: CompanyRef,
        contact_id: int,
        updates: Updates,
        *,
        acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        project, index = self._locate_company(project_id, ref)
        if index is None:
            return None

        company = project.project_companies[index].model_copy(deep=True)
        position = self._find_child_index(company.company_contacts, contact_id, "Contact", project_id)
        if position is None:
            return None
        merged, diff = merge_entity(company.company_contacts[position], updates)
        if not diff:
            return company
        company.company_contacts[position] = merged
        return self._commit_company(
            project, index, company,
            f'Updated contact "{merged.name}" at {company.company_name}', acting_user_id,
        )

    def remove_company_contact(
        self,
        project_id: int,
        ref: CompanyRef,
        contact_id: int,
        *,
        acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        """Remove a contact, keeping ``primary_contact_index`` pointing at a valid entry.

        The last remaining contact cannot be removed.
        """
        project, index = self._locate_company(project_id, ref)
        if index is None:
            return None

        company = project.project_companies[index].model_copy(deep=True)
        position = self._find_child_index(company.company_contacts, contact_id, "Contact", project_id)
        if position is None:
            return None
        if len(company.company_contacts) <= 1:
            logger.debug("Refusing to remove last contact of %s", company.company_name)
            return company

        removed = company.company_contacts.pop(position)
        if position == company.primary_contact_index:
            company.primary_contact_index = 0
        elif position < company.primary_contact_index:
            company.primary_contact_index -= 1
        return self._commit_company(
            project, index, company,
            f'Removed contact "{removed.name}" from {company.company_name}', acting_user_id,
        )

    def set_primary_company_contact(
        self,
        project_id: int,
        ref: CompanyRef,
        contact_id: int,
        *,
        acting_user_id: int,
    ) -> Optional[ProjectCompany]:
        project, index = self._locate_company(project_id, ref)
        if index is None:
            return None

        company = project.project_companies[index].model_copy(deep=True)
        position = self._find_child_index(company.company_contacts, contact_id, "Contact", project_id)
        if position is None:
            return None
        if position == company.primary_contact_index:
            return company

        company.primary_contact_index = position
        contact = company.company_contacts[position]
        return self._commit_company(
            project, index, company,
            f'Set primary contact for {company.company_name} to "{contact.name}"', acting_user_id,
        )

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def add_activity(
        self, project_id: int, activity: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int,
    ) -> Optional[Activity]:
        project = self._find_project(project_id)
        if project is None:
            return None

        added = Activity.model_validate(_as_dict(activity))
        added.id = _next_id(a.id for a in project.activities)
        project.activities.append(added)
        self._record(
            project_id, A.ACTIVITY_ADDED, f"Added {added.activity_type} activity", acting_user_id,
            EntityRef(entity_id=added.id, label=added.activity_type),
        )
        return added.model_copy(deep=True)

    def update_activity(
        self, project_id: int, activity_id: int, updates: Updates, *, acting_user_id: int,
    ) -> Optional[Activity]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.activities, activity_id, "Activity", project_id)
        if index is None:
            return None

        merged, diff = merge_entity(project.activities[index], updates)
        if not diff:
            return merged
        project.activities[index] = merged
        self._record(
            project_id, A.ACTIVITY_UPDATED,
            f"Updated {merged.activity_type} activity: {', '.join(diff)}", acting_user_id,
            MultiFieldChange(changes=diff),
        )
        return merged.model_copy(deep=True)

    def delete_activity(self, project_id: int, activity_id: int, *, acting_user_id: int) -> Optional[Activity]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.activities, activity_id, "Activity", project_id)
        if index is None:
            return None

        removed = project.activities.pop(index)
        self._record(
            project_id, A.ACTIVITY_DELETED, f"Deleted {removed.activity_type} activity", acting_user_id,
            EntityRef(entity_id=removed.id, label=removed.activity_type),
        )
        return removed

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def add_note(
        self, project_id: int, note: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int,
    ) -> Optional[Note]:
        """Create a note authored by the acting user; authorship never changes."""
        project = self._find_project(project_id)
        if project is None:
            return None

        data = update_payload(Note, note)
        added = Note(
            id=_next_id(n.id for n in project.notes),
            content=data.get("content", ""),
            created_at=self._clock(),
            created_by_id=acting_user_id,
            tag_ids=data.get("tag_ids") or [],
            attachments=data.get("attachments") or [],
        )
        project.notes.append(added)
        self._record(
            project_id, A.NOTE_ADDED, f"Added note: {_preview(added.content)}", acting_user_id,
            EntityRef(entity_id=added.id, label=_preview(added.content)),
        )
        return added.model_copy(deep=True)

    def update_note(
        self, project_id: int, note_id: int, updates: Updates, *, acting_user_id: int,
    ) -> Optional[Note]:
        """Apply content/tag/attachment changes and append one history entry.

        Always logs, even when nothing detectably changed.
        """
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.notes, note_id, "Note", project_id)
        if index is None:
            return None

        note = project.notes[index]
        data = {k: v for k, v in update_payload(Note, updates).items() if v is not None}
        candidate = Note.model_validate({
            **note.model_dump(),
            **{k: data[k] for k in ("content", "tag_ids", "attachments") if k in data},
        })

        content_changed = candidate.content != note.content
        tags_changed = candidate.tag_ids != note.tag_ids
        attachments_changed = (
            [a.model_dump() for a in candidate.attachments] != [a.model_dump() for a in note.attachments]
        )

        changes = []
        if content_changed:
            changes.append("Content updated")
        if tags_changed:
            changes.append("Tags changed")
        if attachments_changed:
            changes.append("Attachments changed")
        summary = ", ".join(changes) or "Note updated"

        now = self._clock()
        candidate.modification_history = [
            *note.modification_history,
            NoteModification(
                modified_at=now,
                modified_by_id=acting_user_id,
                summary=summary,
                previous_content=note.content if content_changed else None,
                previous_tag_ids=list(note.tag_ids) if tags_changed else None,
            ),
        ]
        candidate.last_modified_at = now
        candidate.last_modified_by_id = acting_user_id
        project.notes[index] = candidate

        self._record(
            project_id, A.NOTE_UPDATED, f"Updated note: {summary}", acting_user_id,
            NoteChange(note_id=note_id, changes=changes or [summary]),
        )
        return candidate.model_copy(deep=True)

    def delete_note(self, project_id: int, note_id: int, *, acting_user_id: int) -> Optional[Note]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.notes, note_id, "Note", project_id)
        if index is None:
            return None

        removed = project.notes.pop(index)
        self._record(
            project_id, A.NOTE_DELETED, f"Deleted note: {_preview(removed.content)}", acting_user_id,
            EntityRef(entity_id=removed.id, label=_preview(removed.content)),
        )
        return removed

    # ------------------------------------------------------------------
    # Customer equipment
    # ------------------------------------------------------------------

    def add_customer_equipment(
        self, project_id: int, equipment: Union[Mapping[str, Any], BaseModel], *, acting_user_id: int,
    ) -> Optional[CustomerEquipment]:
        project = self._find_project(project_id)
        if project is None:
            return None

        added = CustomerEquipment.model_validate(_as_dict(equipment))
        added.id = _next_id(e.id for e in project.customer_equipment)
        project.customer_equipment.append(added)
        self._record(
            project_id, A.EQUIPMENT_ADDED, f"Added equipment: {equipment_label(added)}", acting_user_id,
            EntityRef(entity_id=added.id, label=equipment_label(added)),
        )
        return added.model_copy(deep=True)

    def update_customer_equipment(
        self, project_id: int, equipment_id: int, updates: Updates, *, acting_user_id: int,
    ) -> Optional[CustomerEquipment]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.customer_equipment, equipment_id, "Equipment", project_id)
        if index is None:
            return None

        merged, diff = merge_entity(project.customer_equipment[index], updates)
        if not diff:
            return merged
        project.customer_equipment[index] = merged
        self._record(
            project_id, A.EQUIPMENT_UPDATED,
            f"Updated equipment {equipment_label(merged)}: {', '.join(diff)}", acting_user_id,
            MultiFieldChange(changes=diff),
        )
        return merged.model_copy(deep=True)

    def delete_customer_equipment(
        self, project_id: int, equipment_id: int, *, acting_user_id: int,
    ) -> Optional[CustomerEquipment]:
        project = self._find_project(project_id)
        if project is None:
            return None
        index = self._find_child_index(project.customer_equipment, equipment_id, "Equipment", project_id)
        if index is None:
            return None

        removed = project.customer_equipment.pop(index)
        self._record(
            project_id, A.EQUIPMENT_DELETED, f"Deleted equipment: {equipment_label(removed)}", acting_user_id,
            EntityRef(entity_id=removed.id, label=equipment_label(removed)),
        )
        return removed

    # ------------------------------------------------------------------
    # Note-tag taxonomy (preference state, not audited)
    # ------------------------------------------------------------------

    def _find_tag(self, tag_id: str) -> Optional[NoteTag]:
        return next((t for t in self._note_tags if t.id == tag_id), None)

    def add_note_tag(self, label: str, color: StatusColor = StatusColor.SLATE) -> Optional[NoteTag]:
        """Add a tag whose id is derived from ``label``. Duplicate ids are ignored."""
        tag_id = derive_tag_id(label)
        if not tag_id or self._find_tag(tag_id) is not None:
            return None
        tag = NoteTag(
            id=tag_id,
            label=label.strip(),
            display_order=_next_id(t.display_order for t in self._note_tags),
            color=StatusColor(color).value,
        )
        self._note_tags.append(tag)
        return tag.model_copy()

    def update_note_tag(
        self,
        tag_id: str,
        label: Optional[str] = None,
        color: Optional[StatusColor] = None,
    ) -> Optional[NoteTag]:
        """Relabel or recolor a tag. The id stays fixed so notes keep referencing it."""
        tag = self._find_tag(tag_id)
        if tag is None:
            return None
        if label is not None and label.strip():
            tag.label = label.strip()
        if color is not None:
            tag.color = StatusColor(color).value
        return tag.model_copy()

    def delete_note_tag(self, tag_id: str) -> Optional[NoteTag]:
        """Remove a tag from the taxonomy. Notes keep the dangling id."""
        tag = self._find_tag(tag_id)
        if tag is None:
            return None
        self._note_tags.remove(tag)
        return tag

    def reorder_note_tags(self, tag_ids: list[str]) -> list[NoteTag]:
        """Renumber display order: listed ids first, in the given order."""
        ordered: list[NoteTag] = []
        for tag_id in tag_ids:
            tag = self._find_tag(tag_id)
            if tag is not None and tag not in ordered:
                ordered.append(tag)
        remaining = sorted(
            (t for t in self._note_tags if t not in ordered), key=lambda t: t.display_order,
        )
        for position, tag in enumerate(ordered + remaining, start=1):
            tag.display_order = position
        return self.note_tags()

    def replace_note_tags(self, tags: Iterable[NoteTag]) -> list[NoteTag]:
        self._note_tags = [t.model_copy(deep=True) for t in tags]
        return self.note_tags()
