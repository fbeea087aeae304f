"""Markdown rendering helpers with deterministic formatting.

Tables are built with escaped pipe characters and stable column ordering to
ensure reproducible output suitable for parsing.
"""
from __future__ import annotations
from typing import Any, Sequence


def md_escape(s: str) -> str:
    """Escape pipe characters for safe Markdown table rendering."""
    return s.replace("|", "\\|")


def md_table(headers: Sequence[Any], rows: Sequence[Sequence[Any]]) -> list[str]:
    """Render a Markdown table into a list of lines (header, separator, rows).

    Integer cells are right-aligned so power columns line up in rendered views.
    """
    def esc(v: Any) -> str:
        return md_escape(str(v))

    numeric = [
        bool(rows) and all(isinstance(r[i], int) for r in rows) for i in range(len(headers))
    ]
    lines: list[str] = []
    lines.append("| " + " | ".join(esc(h) for h in headers) + " |")
    lines.append("| " + " | ".join("---:" if n else ":---" for n in numeric) + " |")
    for r in rows:
        lines.append("| " + " | ".join(esc(c) for c in r) + " |")
    return lines
