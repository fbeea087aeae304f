"""Output formatters for category reports.

Markdown is meant for humans skimming a ranking; JSON keeps the table as a
row-major array (header first) plus the team definitions that produced it.
"""

from __future__ import annotations
import json

from .models import CategoryReport
from .render import md_table


def markdown_lines(report: CategoryReport, schema_version: str) -> list[str]:
    table = report.table
    meta_rows = [
        ["schema_version", schema_version],
        ["category", report.name],
        ["range", report.range_address],
        ["owners", str(len(table.rows))],
        ["teams", str(len(report.category.teams))],
    ]
    lines = [f"# {report.name} Team Power", ""]
    lines.extend(md_table(["key", "value"], meta_rows))
    lines.append("")
    lines.append("## Ranking")
    lines.extend(md_table(table.header, table.rows))
    lines.append("")
    lines.append("## Teams")
    team_rows = [[t.label, t.name, ", ".join(t.member_ids)] for t in report.category.teams]
    lines.extend(md_table(["label", "name", "members"], team_rows))
    return lines


def format_markdown(report: CategoryReport, schema_version: str) -> str:
    return "\n".join(markdown_lines(report, schema_version)) + "\n"


def format_json(report: CategoryReport, schema_version: str, *, pretty: bool = False) -> str:
    payload = report.to_json_payload(schema_version)
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True)
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)
