"""Migration normalizer: legacy seed shapes -> canonical entity shapes.

Pure-function module. Runs once at load time over raw JSON records
(camelCase dicts) so nothing downstream special-cases legacy formats.

Handled legacy shapes:
- notes stored as bare strings instead of Note records
- companies carrying a single ``companyContact`` object instead of a
  ``companyContacts`` list
- job-site era keys: ``salesRepId`` (scalar), ``siteCompanies``,
  and ``jobSiteId`` on opportunities

Every function is idempotent and never raises on malformed legacy input;
bad shapes degrade to empty/default values.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_notes(
    raw: Any,
    legacy_author_id: int,
    now: Callable[[], datetime] = _utcnow,
) -> list[dict]:
    """Wrap legacy string notes into Note records.

    Entries that already carry ``content`` pass through untouched. Others
    become ``{id: index+1, content: str(raw), ...}`` attributed to the
    fixed legacy author.
    """
    if not isinstance(raw, list) or not raw:
        return []

    notes: list[dict] = []
    for index, entry in enumerate(raw):
        if isinstance(entry, dict) and "content" in entry:
            notes.append(entry)
            continue
        notes.append({
            "id": index + 1,
            "content": "" if entry is None else str(entry),
            "createdAt": now().isoformat(),
            "createdById": legacy_author_id,
            "tagIds": [],
            "attachments": [],
        })
    return notes


def _legacy_contact(company: dict) -> dict:
    contact = company.get("companyContact")
    if not isinstance(contact, dict):
        contact = {}
    return {
        "id": 1,
        "name": contact.get("name") or "",
        "title": contact.get("title"),
        "phone": contact.get("phone") or "",
        "email": contact.get("email") or "",
    }


def normalize_companies(raw: Any) -> list[dict]:
    """Convert single-contact companies into the contact-list shape.

    Also assigns the per-project ``associationId`` surrogate key to rows
    that lack one, continuing from the highest id already present.
    """
    if not isinstance(raw, list) or not raw:
        return []

    companies: list[dict] = []
    for entry in raw:
        if not isinstance(entry, dict):
            logger.debug("Skipping non-object company entry: %r", entry)
            continue
        if isinstance(entry.get("companyContacts"), list):
            companies.append(dict(entry))
            continue
        migrated = {k: v for k, v in entry.items() if k != "companyContact"}
        migrated["companyContacts"] = [_legacy_contact(entry)]
        migrated["primaryContactIndex"] = 0
        companies.append(migrated)

    next_id = max(
        (c["associationId"] for c in companies if isinstance(c.get("associationId"), int)),
        default=0,
    ) + 1
    for company in companies:
        if not isinstance(company.get("associationId"), int):
            company["associationId"] = next_id
            next_id += 1
    return companies


def normalize_project(
    raw: dict,
    legacy_author_id: int,
    now: Callable[[], datetime] = _utcnow,
) -> dict:
    """Return a canonical copy of one raw project record."""
    project = copy.deepcopy(raw)

    if "salesRepIds" not in project:
        legacy_rep = project.pop("salesRepId", None)
        project["salesRepIds"] = [legacy_rep] if legacy_rep is not None else []
    if "projectCompanies" not in project:
        project["projectCompanies"] = project.pop("siteCompanies", [])

    project["notes"] = normalize_notes(project.get("notes"), legacy_author_id, now)
    project["projectCompanies"] = normalize_companies(project.get("projectCompanies"))

    for key in ("associatedOpportunities", "activities", "customerEquipment"):
        if not isinstance(project.get(key), list):
            project[key] = []
    return project


def normalize_opportunity(raw: dict) -> dict:
    """Return a canonical copy of one raw opportunity record."""
    opportunity = copy.deepcopy(raw)
    if "projectId" not in opportunity and "jobSiteId" in opportunity:
        opportunity["projectId"] = opportunity.pop("jobSiteId")
    return opportunity
