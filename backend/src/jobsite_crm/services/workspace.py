"""The running application state: store, views, reference data and session settings.

One ``Workspace`` exists per process. It also carries the in-memory copy
of the filter set and status-color map that ``PreferenceService`` mirrors
to disk, and the fallback acting user for callers that name none.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from jobsite_crm.domain.enums import StatusColor
from jobsite_crm.domain.schemas import Filters, Opportunity, Project
from jobsite_crm.infra.seed_loader import SeedData
from jobsite_crm.services.entity_store import EntityStore
from jobsite_crm.services.migration import normalize_opportunity, normalize_project
from jobsite_crm.services.preferences import (
    PreferenceService,
    default_filters,
    default_note_tags,
    default_status_colors,
)
from jobsite_crm.services.reference_data import ReferenceData
from jobsite_crm.services.views import ProjectViews

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(
        self,
        store: EntityStore,
        reference: ReferenceData,
        current_user_id: int = 1,
    ):
        self.store = store
        self.reference = reference
        self.views = ProjectViews(store, reference)
        self.current_user_id = current_user_id
        self.filters: Filters = default_filters()
        self.status_colors: dict[str, StatusColor] = default_status_colors()

    @classmethod
    def from_seed(
        cls,
        seed: SeedData,
        legacy_note_author_id: int,
        current_user_id: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "Workspace":
        """Run the migration normalizer over raw seed records and build the store."""
        migrate_kwargs = {"now": clock} if clock else {}
        projects = [
            Project.model_validate(normalize_project(raw, legacy_note_author_id, **migrate_kwargs))
            for raw in seed.projects
        ]
        opportunities = [Opportunity.model_validate(normalize_opportunity(raw)) for raw in seed.opportunities]
        reference = ReferenceData.from_raw(
            sales_reps=seed.sales_reps,
            stages=seed.opportunity_stages,
            types=seed.opportunity_types,
        )
        store = EntityStore(
            projects=projects,
            opportunities=opportunities,
            note_tags=default_note_tags(),
            clock=clock,
        )
        logger.info("Workspace ready: %d projects, %d opportunities", len(projects), len(opportunities))
        return cls(store, reference, current_user_id=current_user_id)

    # -- status colors -----------------------------------------------------

    def status_color_for(self, status_id: str) -> StatusColor:
        return self.status_colors.get(status_id, StatusColor.SLATE)

    def update_status_color(self, status_id: str, color: StatusColor) -> dict[str, StatusColor]:
        self.status_colors = {**self.status_colors, status_id: StatusColor(color)}
        return dict(self.status_colors)

    def replace_status_colors(self, colors: dict[str, StatusColor]) -> dict[str, StatusColor]:
        self.status_colors = {k: StatusColor(v) for k, v in colors.items()}
        return dict(self.status_colors)

    # -- persistence -------------------------------------------------------

    async def restore_preferences(self, preferences: PreferenceService) -> None:
        """Load every persisted slice, each independently of the others."""
        self.filters = await preferences.load_filters()
        self.store.replace_note_tags(await preferences.load_note_tags())
        self.status_colors = await preferences.load_status_colors()
        logger.info("Restored preferences (%d note tags)", len(self.store.note_tags()))
