"""Explicit shallow merge for entity updates.

``merge_entity`` applies a partial update to a pydantic entity:

- top-level fields named in the update replace the current value;
- lists (notes, tag ids, contacts, attachments, companies, sales reps)
  and nested objects (address, primary contact) are replaced wholesale,
  never merged element by element;
- protected fields (``id`` by default) are never overwritten;
- keys may be attribute names or their camelCase aliases.

The returned diff is keyed by wire (alias) name and holds JSON-mode
before/after values, ready for a change-log entry.
"""

from collections.abc import Mapping
from typing import Any, TypeVar, Union

from pydantic import BaseModel

from jobsite_crm.domain.schemas import ValueChange

M = TypeVar("M", bound=BaseModel)

Updates = Union[Mapping[str, Any], BaseModel]


def _alias_of(model_cls: type[BaseModel], name: str) -> str:
    field = model_cls.model_fields.get(name)
    if field is None:
        return name
    return field.alias or name


def _to_attribute_keys(model_cls: type[BaseModel], updates: Mapping[str, Any]) -> dict[str, Any]:
    by_alias = {
        field.alias: name
        for name, field in model_cls.model_fields.items()
        if field.alias and field.alias != name
    }
    return {by_alias.get(key, key): value for key, value in updates.items()}


def update_payload(model_cls: type[BaseModel], updates: Updates) -> dict[str, Any]:
    """Normalize an update into ``{attribute_name: value}``.

    A full instance of ``model_cls`` replaces every field; any other model
    contributes only the fields that were explicitly set.
    """
    if isinstance(updates, model_cls):
        data = updates.model_dump()
    elif isinstance(updates, BaseModel):
        data = updates.model_dump(exclude_unset=True)
    else:
        data = dict(updates)
    return _to_attribute_keys(model_cls, data)


def merge_entity(
    existing: M,
    updates: Updates,
    protected: tuple[str, ...] = ("id",),
) -> tuple[M, dict[str, ValueChange]]:
    """Return ``(merged_copy, diff)``. ``existing`` is left untouched."""
    model_cls = type(existing)
    data = {
        key: value
        for key, value in update_payload(model_cls, updates).items()
        if key not in protected
    }

    merged = model_cls.model_validate({**existing.model_dump(), **data})

    before = existing.model_dump(mode="json", by_alias=True)
    after = merged.model_dump(mode="json", by_alias=True)
    diff: dict[str, ValueChange] = {}
    for name in data:
        key = _alias_of(model_cls, name)
        if before.get(key) != after.get(key):
            diff[key] = ValueChange(from_=before.get(key), to=after.get(key))
    return merged, diff
