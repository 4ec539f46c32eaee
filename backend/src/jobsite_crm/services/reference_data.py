"""Read-only lookup tables: sales reps, opportunity stages/types, divisions.

Lookups never raise; unresolved ids render as ``"Unknown"``.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from pydantic import ValidationError

from jobsite_crm.domain.enums import Division
from jobsite_crm.domain.schemas import DivisionInfo, OpportunityStage, OpportunityType, SalesRep

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# Display order used for a type that has none configured
UNORDERED = 999

DEFAULT_DIVISIONS = [DivisionInfo(code=d.value, name=f"Division {d.value}") for d in Division]


def _parse_rows(model, rows: Iterable[dict], table: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s row %r: %s", table, row, exc)
    return parsed


class ReferenceData:
    """Immutable after construction."""

    def __init__(
        self,
        sales_reps: Iterable[SalesRep] = (),
        stages: Iterable[OpportunityStage] = (),
        types: Iterable[OpportunityType] = (),
        divisions: Optional[Iterable[DivisionInfo]] = None,
    ):
        self._sales_reps = {r.id: r for r in sales_reps}
        self._stages = {s.id: s for s in stages}
        self._types = {t.id: t for t in types}
        self._divisions = list(divisions) if divisions is not None else list(DEFAULT_DIVISIONS)

    @classmethod
    def from_raw(
        cls,
        sales_reps: Iterable[dict] = (),
        stages: Iterable[dict] = (),
        types: Iterable[dict] = (),
    ) -> "ReferenceData":
        return cls(
            sales_reps=_parse_rows(SalesRep, sales_reps, "sales rep"),
            stages=_parse_rows(OpportunityStage, stages, "opportunity stage"),
            types=_parse_rows(OpportunityType, types, "opportunity type"),
        )

    # -- tables ------------------------------------------------------------

    def sales_reps(self) -> list[SalesRep]:
        return sorted(self._sales_reps.values(), key=lambda r: r.display_name)

    def stages(self) -> list[OpportunityStage]:
        return sorted(self._stages.values(), key=lambda s: s.display_order)

    def types(self) -> list[OpportunityType]:
        return sorted(self._types.values(), key=lambda t: t.display_order)

    def divisions(self) -> list[DivisionInfo]:
        return list(self._divisions)

    # -- lookups -----------------------------------------------------------

    def get_sales_rep(self, rep_id: int) -> Optional[SalesRep]:
        return self._sales_reps.get(rep_id)

    def get_sales_rep_name(self, rep_id: int) -> str:
        rep = self._sales_reps.get(rep_id)
        return rep.display_name if rep else UNKNOWN

    def get_sales_rep_names(self, rep_ids: Iterable[int]) -> str:
        return "; ".join(self.get_sales_rep_name(rep_id) for rep_id in rep_ids)

    def get_stage(self, stage_id: int) -> Optional[OpportunityStage]:
        return self._stages.get(stage_id)

    def get_stage_name(self, stage_id: int) -> str:
        stage = self._stages.get(stage_id)
        return stage.name if stage else UNKNOWN

    def get_type(self, type_id: int) -> Optional[OpportunityType]:
        return self._types.get(type_id)

    def get_type_name(self, type_id: int) -> str:
        opp_type = self._types.get(type_id)
        return opp_type.name if opp_type else UNKNOWN

    def type_display_order(self, type_id: int) -> int:
        opp_type = self._types.get(type_id)
        return opp_type.display_order if opp_type else UNORDERED
