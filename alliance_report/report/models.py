from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping

from alliance_report.errors import CatalogError

Cell = str | int


@dataclass(frozen=True, slots=True)
class OwnedItemRecord:
    """One character owned by one alliance member, as supplied by the record source."""

    item_id: str
    owner_id: str
    power: int
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class TeamDefinition:
    label: str
    name: str
    member_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        # Members are matched against lower-cased item ids.
        object.__setattr__(self, "member_ids", tuple(m.lower() for m in self.member_ids))


@dataclass(frozen=True, slots=True)
class ReportCategory:
    name: str
    teams: tuple[TeamDefinition, ...]

    @property
    def labels(self) -> list[str]:
        return [t.label for t in self.teams]


@dataclass(frozen=True, slots=True)
class TeamCatalog:
    version: str
    categories: tuple[ReportCategory, ...]

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]

    def category(self, name: str) -> ReportCategory:
        for c in self.categories:
            if c.name == name:
                return c
        raise CatalogError(
            f"Unknown report category {name!r} (known: {', '.join(self.names)})"
        )


@dataclass(slots=True)
class Table:
    header: list[str]
    rows: list[list[Cell]]

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        """Rows including the header row."""
        return len(self.rows) + 1

    def values(self) -> list[list[Cell]]:
        return [list(self.header)] + [list(r) for r in self.rows]


@dataclass(slots=True)
class CategoryReport:
    category: ReportCategory
    range_address: str
    table: Table

    @property
    def name(self) -> str:
        return self.category.name

    def to_json_payload(self, schema_version: str) -> dict[str, Any]:
        return {
            "schema_version": schema_version,
            "category": self.category.name,
            "range": self.range_address,
            "header": list(self.table.header),
            "rows": [list(r) for r in self.table.rows],
            "teams": [
                {"label": t.label, "name": t.name, "members": list(t.member_ids)}
                for t in self.category.teams
            ],
        }
