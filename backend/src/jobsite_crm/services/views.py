"""Derived views over the entity store.

Every method recomputes from current store state; nothing is cached.
Revenue figures come from the summary rows cached on each project, not
from live opportunity records.
"""

import logging
from typing import Optional

from jobsite_crm.domain.enums import FALLBACK_DIVISION, SALE_TYPE_ID, ProjectStatus
from jobsite_crm.domain.schemas import (
    AvailableCompany,
    Filters,
    Opportunity,
    OpportunitySummary,
    PipelineSummary,
    Project,
    ProjectOpportunityRow,
    RevenueByType,
)
from jobsite_crm.services.entity_store import EntityStore
from jobsite_crm.services.reference_data import UNORDERED, ReferenceData

logger = logging.getLogger(__name__)

# Stage phases treated as closed (won / lost)
CLOSED_PHASE_IDS = frozenset({3, 4})

RENTAL_TYPE_ID = 2

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

STATUS_ORDER = {
    ProjectStatus.ACTIVE.value: 1,
    ProjectStatus.PLANNING.value: 2,
    ProjectStatus.ON_HOLD.value: 3,
    ProjectStatus.COMPLETED.value: 99,
}


def calculate_project_revenue(project: Project) -> float:
    return sum(summary.revenue for summary in project.associated_opportunities)


def is_behind_par(project: Project) -> bool:
    """Fewer associated opportunities than the planned annual rate."""
    return len(project.associated_opportunities) < project.planned_annual_rate


def estimated_close_label(opportunity: Optional[Opportunity]) -> str:
    """``"Mar 2026"``, or ``"-"`` when month or year is missing."""
    if opportunity is None:
        return "-"
    month, year = opportunity.estimate_delivery_month, opportunity.estimate_delivery_year
    if not month or not year or not 1 <= month <= 12:
        return "-"
    return f"{_MONTHS[month - 1]} {year}"


def _close_sort_key(opportunity: Optional[Opportunity]) -> int:
    if opportunity is None:
        return 0
    return (opportunity.estimate_delivery_year or 0) * 100 + (opportunity.estimate_delivery_month or 0)


class ProjectViews:
    """Read-only queries combining store state with reference data."""

    def __init__(self, store: EntityStore, reference: ReferenceData):
        self.store = store
        self.reference = reference

    def _opportunity_index(self) -> dict[int, Opportunity]:
        return {o.id: o for o in self.store.opportunities() if o.id is not None}

    # ------------------------------------------------------------------
    # Project list
    # ------------------------------------------------------------------

    def project_division(self, project: Project, opportunities: Optional[dict[int, Opportunity]] = None) -> str:
        """Division of the first associated opportunity that still resolves."""
        opportunities = opportunities if opportunities is not None else self._opportunity_index()
        for summary in project.associated_opportunities:
            opportunity = opportunities.get(summary.id)
            if opportunity is not None:
                return opportunity.division_id
        return FALLBACK_DIVISION

    def get_filtered_projects(self, filters: Optional[Filters] = None) -> list[Project]:
        """Apply every active filter conjunctively.

        Order: hide completed, sales rep, status, division, general
        contractor substring, behind PAR.
        """
        filters = filters or Filters()
        opportunities = self._opportunity_index()
        gc_needle = filters.general_contractor.lower()

        def keep(project: Project) -> bool:
            if filters.hide_completed and project.status_id == ProjectStatus.COMPLETED.value:
                return False
            if filters.sales_rep_id and filters.sales_rep_id not in {str(r) for r in project.sales_rep_ids}:
                return False
            if filters.status and project.status_id != filters.status:
                return False
            if filters.division and self.project_division(project, opportunities) != filters.division:
                return False
            if gc_needle and not any(
                c.is_general_contractor and gc_needle in c.company_name.lower()
                for c in project.project_companies
            ):
                return False
            if filters.show_behind_par and not is_behind_par(project):
                return False
            return True

        return [p for p in self.store.projects() if keep(p)]

    def unique_statuses(self) -> list[str]:
        """Statuses in use, Active/Planning/On Hold first and Completed last."""
        statuses = {p.status_id for p in self.store.projects()}
        return sorted(statuses, key=lambda s: (STATUS_ORDER.get(s, 50), s))

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------

    def get_total_pipeline_revenue(self, filters: Optional[Filters] = None) -> float:
        return sum(calculate_project_revenue(p) for p in self.get_filtered_projects(filters))

    def _summary_type_id(self, summary: OpportunitySummary, opportunities: dict[int, Opportunity]) -> int:
        opportunity = opportunities.get(summary.id)
        if opportunity is not None:
            return opportunity.type_id
        return SALE_TYPE_ID if summary.type == "Sale" else RENTAL_TYPE_ID

    def get_revenue_by_type(self, filters: Optional[Filters] = None) -> list[RevenueByType]:
        """Filtered revenue grouped by opportunity type, in configured display order.

        Zero-revenue groups are dropped.
        """
        opportunities = self._opportunity_index()
        totals: dict[int, float] = {}
        for project in self.get_filtered_projects(filters):
            for summary in project.associated_opportunities:
                type_id = self._summary_type_id(summary, opportunities)
                totals[type_id] = totals.get(type_id, 0.0) + summary.revenue

        rows = [
            RevenueByType(
                type_id=type_id,
                label=self.reference.get_type_name(type_id),
                display_order=self.reference.type_display_order(type_id),
                revenue=revenue,
            )
            for type_id, revenue in totals.items()
            if revenue != 0
        ]
        return sorted(rows, key=lambda r: (r.display_order, r.type_id))

    def get_pipeline_summary(self, filters: Optional[Filters] = None) -> PipelineSummary:
        projects = self.get_filtered_projects(filters)
        return PipelineSummary(
            project_count=len(projects),
            total_revenue=sum(calculate_project_revenue(p) for p in projects),
            revenue_by_type=self.get_revenue_by_type(filters),
        )

    # ------------------------------------------------------------------
    # Project detail
    # ------------------------------------------------------------------

    def project_opportunities(
        self,
        project: Project,
        open_only: bool = False,
        stage_id: Optional[int] = None,
        division: Optional[str] = None,
        type_label: Optional[str] = None,
        sales_rep_name: Optional[str] = None,
    ) -> list[ProjectOpportunityRow]:
        """Summary rows joined with live opportunities, ordered by stage then close date."""
        opportunities = self._opportunity_index()
        selected: list[tuple[OpportunitySummary, Optional[Opportunity]]] = []
        for summary in project.associated_opportunities:
            stage = self.reference.get_stage(summary.stage_id)
            full = opportunities.get(summary.id)
            if open_only and stage is not None and stage.phase_id in CLOSED_PHASE_IDS:
                continue
            if stage_id is not None and summary.stage_id != stage_id:
                continue
            if type_label and summary.type != type_label:
                continue
            if division and (full is None or full.division_id != division):
                continue
            if sales_rep_name and (
                full is None or self.reference.get_sales_rep_name(full.sales_rep_id) != sales_rep_name
            ):
                continue
            selected.append((summary, full))

        def order(item: tuple[OpportunitySummary, Optional[Opportunity]]) -> tuple[int, int]:
            summary, full = item
            stage = self.reference.get_stage(summary.stage_id)
            return (stage.display_order if stage else UNORDERED, _close_sort_key(full))

        return [
            ProjectOpportunityRow(
                id=summary.id,
                type=summary.type,
                description=summary.description,
                stage_id=summary.stage_id,
                stage_name=self.reference.get_stage_name(summary.stage_id),
                division_id=full.division_id if full else "",
                sales_rep_name=self.reference.get_sales_rep_name(full.sales_rep_id) if full else "",
                estimated_close=estimated_close_label(full),
                revenue=summary.revenue,
            )
            for summary, full in sorted(selected, key=order)
        ]

    def available_companies_for(self, project_id: int) -> list[AvailableCompany]:
        """Companies on other projects that this project could copy in.

        De-duplicated by name (first occurrence wins), sorted by name.
        """
        projects = self.store.projects()
        current = next((p for p in projects if p.id == project_id), None)
        taken = {c.company_name for c in current.project_companies} if current else set()

        found: dict[str, AvailableCompany] = {}
        for project in projects:
            if project.id == project_id:
                continue
            for company in project.project_companies:
                if company.company_name in taken or company.company_name in found:
                    continue
                found[company.company_name] = AvailableCompany(
                    company_id=company.company_id,
                    company_name=company.company_name,
                    company_contacts=company.company_contacts,
                )
        return [found[name] for name in sorted(found, key=str.lower)]
