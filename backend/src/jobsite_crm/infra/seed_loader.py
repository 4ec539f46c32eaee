"""Read the static seed JSON files into raw record lists.

Each file is either ``{"content": [...]}`` (the export format) or a bare
JSON array. A missing file yields an empty table; a malformed file is a
startup error.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SEED_FILES = {
    "projects": "projects.json",
    "sales_reps": "sales_reps.json",
    "opportunities": "opportunities.json",
    "opportunity_stages": "opportunity_stages.json",
    "opportunity_types": "opportunity_types.json",
}


class SeedLoadError(Exception):
    """Raised when a seed file exists but cannot be decoded."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load seed file {path}: {reason}")


@dataclass
class SeedData:
    """Raw (pre-migration) records, camelCase dicts as stored on disk."""

    projects: list[dict] = field(default_factory=list)
    sales_reps: list[dict] = field(default_factory=list)
    opportunities: list[dict] = field(default_factory=list)
    opportunity_stages: list[dict] = field(default_factory=list)
    opportunity_types: list[dict] = field(default_factory=list)


def read_seed_file(path: Path) -> list[dict]:
    if not path.exists():
        logger.warning("Seed file %s not found, using empty table", path)
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SeedLoadError(path, str(exc)) from exc

    records = payload.get("content") if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise SeedLoadError(path, "expected a list or an object with a 'content' list")
    return [r for r in records if isinstance(r, dict)]


def load_seed(directory: Path) -> SeedData:
    """Load every seed table from ``directory``."""
    tables = {name: read_seed_file(directory / filename) for name, filename in SEED_FILES.items()}
    logger.info(
        "Loaded seed data from %s: %s",
        directory,
        ", ".join(f"{len(rows)} {name}" for name, rows in tables.items()),
    )
    return SeedData(**tables)
