"""Team catalog loading.

The catalog is a YAML document with a ``teams`` map (key -> name, label,
members) and an ordered ``categories`` list naming team keys. It is parsed
once into an immutable ``TeamCatalog`` and passed to the report builder.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from alliance_report.errors import CatalogError, EmptyCategoryError
from .models import ReportCategory, TeamCatalog, TeamDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("catalog.yaml")


def _parse_team(key: str, raw: Any) -> TeamDefinition:
    if not isinstance(raw, dict):
        raise CatalogError(f"Team {key!r} must be a mapping")
    label = raw.get("label")
    members = raw.get("members")
    if not label or not isinstance(label, str):
        raise CatalogError(f"Team {key!r} is missing a label")
    if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
        raise CatalogError(f"Team {key!r} members must be a list of strings")
    return TeamDefinition(
        label=label,
        name=str(raw.get("name") or label),
        member_ids=tuple(members),
    )


def parse_catalog(data: Any) -> TeamCatalog:
    """Build a ``TeamCatalog`` from already-decoded YAML data.

    Raises:
        EmptyCategoryError: a category lists no teams.
        CatalogError: any other shape problem or an unknown team key.
    """
    if not isinstance(data, dict):
        raise CatalogError("Catalog root must be a mapping")
    raw_teams = data.get("teams") or {}
    raw_categories = data.get("categories") or []
    if not isinstance(raw_teams, dict):
        raise CatalogError("Catalog 'teams' must be a mapping")
    if not isinstance(raw_categories, list) or not raw_categories:
        raise CatalogError("Catalog must define at least one category")

    teams = {str(k): _parse_team(str(k), v) for k, v in raw_teams.items()}

    categories: list[ReportCategory] = []
    for raw in raw_categories:
        if not isinstance(raw, dict) or not raw.get("name"):
            raise CatalogError(f"Category entry must be a mapping with a name: {raw!r}")
        name = str(raw["name"])
        keys = raw.get("teams") or []
        if not isinstance(keys, list):
            raise CatalogError(f"Category {name!r} teams must be a list of team keys")
        if not keys:
            raise EmptyCategoryError(f"Category {name!r} defines no teams")
        missing = [k for k in keys if k not in teams]
        if missing:
            raise CatalogError(f"Category {name!r} references unknown teams: {missing}")
        categories.append(ReportCategory(name=name, teams=tuple(teams[k] for k in keys)))

    return TeamCatalog(version=str(data.get("version") or "0"), categories=tuple(categories))


def load_catalog(path: str | Path | None = None) -> TeamCatalog:
    """Load the team catalog from ``path``, ``$ALLIANCE_REPORT_CATALOG`` or the packaged file."""
    if path is None:
        path = os.environ.get("ALLIANCE_REPORT_CATALOG") or DEFAULT_CATALOG_PATH
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Cannot read team catalog {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in team catalog {path}: {e}") from e
    catalog = parse_catalog(data)
    logger.info(
        "Loaded team catalog %s (version %s, categories: %s)",
        path.name,
        catalog.version,
        ", ".join(catalog.names),
    )
    return catalog
