"""Collection & assembly of per-category team power reports."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from alliance_report.compute import (
    build_roster_index,
    build_table,
    compute_category,
    compute_range,
    sort_rows,
)
from alliance_report.errors import PublishError
from .models import CategoryReport, OwnedItemRecord, ReportCategory, TeamCatalog
from .publish import ReportPublisher

logger = logging.getLogger(__name__)


def build_category_report(
    roster_index: dict[str, list[OwnedItemRecord]], category: ReportCategory
) -> CategoryReport:
    header, totals = compute_category(roster_index, category)
    table = build_table(header, totals)
    table.rows = sort_rows(table.rows)
    address = compute_range(category.name, table.column_count, table.row_count)
    logger.debug(
        "Built %s report: %d owners x %d teams -> %s",
        category.name,
        len(table.rows),
        len(category.teams),
        address,
    )
    return CategoryReport(category=category, range_address=address, table=table)


def build_reports(
    records: Iterable[OwnedItemRecord],
    catalog: TeamCatalog,
    categories: Sequence[str] | None = None,
) -> list[CategoryReport]:
    """Build one ranked report per category.

    ``categories`` selects a subset by name; reports always follow catalog
    order. Unknown names raise ``CatalogError``.
    """
    selected = catalog.categories
    if categories:
        wanted = {catalog.category(name).name for name in categories}
        selected = tuple(c for c in catalog.categories if c.name in wanted)
    roster_index = build_roster_index(records)
    logger.info(
        "Building %d category reports for %d owners", len(selected), len(roster_index)
    )
    return [build_category_report(roster_index, c) for c in selected]


def publish_reports(
    reports: Sequence[CategoryReport],
    publisher: ReportPublisher,
    *,
    keep_going: bool = False,
) -> dict[str, Any]:
    """Hand every report to ``publisher``.

    A ``PublishError`` stops the run unless ``keep_going`` is set, in which
    case it is recorded and the remaining categories are still published.
    """
    results: dict[str, dict[str, Any]] = {}
    failures: dict[str, str] = {}
    for report in reports:
        try:
            results[report.name] = publisher.publish(report)
        except PublishError as e:
            if not keep_going:
                raise
            logger.error("Publishing %s failed: %s", report.name, e)
            failures[report.name] = str(e)
    return {"published": results, "failures": failures}
