from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import Iterable

from alliance_report.report.constants import AVERAGE_LABEL, OWNER_LABEL
from alliance_report.report.models import Cell, OwnedItemRecord, ReportCategory, Table

logger = logging.getLogger(__name__)


def _coerce_int(value: object) -> int | None:
    """Return a table cell that is an int; ``None`` for anything else, strings included."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _trunc_div(total: int, count: int) -> int:
    q = abs(total) // count
    return q if total >= 0 else -q


def build_roster_index(records: Iterable[OwnedItemRecord]) -> dict[str, list[OwnedItemRecord]]:
    groups: dict[str, list[OwnedItemRecord]] = {}
    for rec in records or []:
        groups.setdefault(rec.owner_id, []).append(rec)
    return groups


def compute_category(
    roster_index: dict[str, list[OwnedItemRecord]], category: ReportCategory
) -> tuple[list[str], dict[str, list[int]]]:
    """Sum each owner's power per team of ``category``.

    Every owner in the index gets a totals list, one entry per team in
    category order, even when nothing matches. A record counts once for each
    occurrence of its lower-cased id in a team's member list.
    """
    header = [OWNER_LABEL, *category.labels, AVERAGE_LABEL]
    power_by_item: dict[str, dict[str, int]] = {}
    for owner, records in roster_index.items():
        owned: dict[str, int] = {}
        for rec in records:
            key = rec.item_id.lower()
            owned[key] = owned.get(key, 0) + rec.power
        power_by_item[owner] = owned

    totals: dict[str, list[int]] = {owner: [] for owner in roster_index}
    for team in category.teams:
        for owner, owned in power_by_item.items():
            totals[owner].append(sum(owned.get(m, 0) for m in team.member_ids))
    return header, totals


def build_table(header: list[str], per_owner_totals: dict[str, list[int]]) -> Table:
    """Assemble the rectangular report table, rows in ascending owner order.

    Requires at least one team column; the catalog loader rejects empty
    categories so this only trips on hand-built input.
    """
    team_count = len(header) - 2
    if team_count < 1:
        raise ValueError("Table header must contain at least one team column")
    rows: list[list[Cell]] = []
    for owner in sorted(per_owner_totals):
        team_totals = per_owner_totals[owner]
        if len(team_totals) != team_count:
            raise ValueError(
                f"Owner {owner!r} has {len(team_totals)} team totals, expected {team_count}"
            )
        rows.append([owner, *team_totals, _trunc_div(sum(team_totals), team_count)])
    return Table(header=list(header), rows=rows)


def _compare_by_average(a: list[Cell], b: list[Cell]) -> int:
    # Returns <0 when ``a`` ranks ahead of ``b``.
    av = _coerce_int(a[-1]) if a else None
    bv = _coerce_int(b[-1]) if b else None
    if av is None or bv is None:
        if av is None and bv is None:
            return 0
        return 1 if av is None else -1
    if av > bv:
        return -1
    if av < bv:
        return 1
    return 0


def sort_rows(rows: list[list[Cell]]) -> list[list[Cell]]:
    """Order rows strongest-first by the trailing average cell.

    Rows whose average is not an integer rank below every valid row. The sort
    is stable, so equal averages keep their incoming (owner id) order.
    """
    for row in rows:
        if _coerce_int(row[-1] if row else None) is None:
            logger.warning(
                "Ranking fallback: non-integer average %r for row %r",
                row[-1] if row else None,
                row[0] if row else None,
            )
    return sorted(rows, key=cmp_to_key(_compare_by_average))


def column_letters(index: int) -> str:
    """1-based column number to sheet letters: 1 -> A, 26 -> Z, 27 -> AA."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def compute_range(category_name: str, column_count: int, row_count: int) -> str:
    if row_count < 1:
        raise ValueError(f"Row count must be >= 1, got {row_count}")
    return f"{category_name}!A1:{column_letters(column_count)}{row_count}"
