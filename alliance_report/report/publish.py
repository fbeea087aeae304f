"""Report sinks.

Each publisher receives a finished ``CategoryReport`` (range address plus
table) and overwrites the addressed target with it. Failures are raised as
``PublishError`` so the driver can decide whether to continue.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Protocol, Sequence
from urllib.parse import quote

import requests

from alliance_report.errors import PublishError
from .constants import (
    DEFAULT_SHEETS_BASE_URL,
    DEFAULT_TIMEOUT_SEC,
    REPORT_FORMATS,
    SCHEMA_VERSION,
    USER_AGENT,
)
from .formatters import format_json, format_markdown
from .models import CategoryReport

logger = logging.getLogger(__name__)


class ReportPublisher(Protocol):
    """Protocol for report sinks."""

    def publish(self, report: CategoryReport) -> dict[str, Any]: ...


class SheetsPublisher:
    """Overwrites a spreadsheet range through the Google Sheets values API.

    The bearer token is obtained elsewhere and passed in as-is; this class
    never refreshes or stores credentials.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        access_token: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        dry_run: bool = False,
    ) -> None:
        if not spreadsheet_id:
            raise ValueError("A spreadsheet id is required for Sheets publishing")
        if not access_token and not dry_run:
            raise ValueError("A Sheets access token is required unless running dry")
        self.spreadsheet_id = spreadsheet_id
        self.base_url = (
            base_url or os.environ.get("SHEETS_BASE_URL", DEFAULT_SHEETS_BASE_URL)
        ).rstrip("/")
        self.timeout = timeout
        self.dry_run = dry_run
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        if access_token:
            self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _url(self, range_address: str) -> str:
        return (
            f"{self.base_url}/spreadsheets/{self.spreadsheet_id}/values/"
            f"{quote(range_address, safe='')}"
        )

    def publish(self, report: CategoryReport) -> dict[str, Any]:
        body = {
            "range": report.range_address,
            "majorDimension": "ROWS",
            "values": report.table.values(),
        }
        summary = {
            "range": report.range_address,
            "rows": report.table.row_count,
            "columns": report.table.column_count,
            "written": not self.dry_run,
        }
        if self.dry_run:
            logger.info("Dry run: skipping sheet update for %s", report.range_address)
            return summary
        try:
            r = self.session.put(
                self._url(report.range_address),
                params={"valueInputOption": "RAW"},
                json=body,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise PublishError(f"Sheet update failed for {report.range_address}: {e}") from e
        logger.info("Updated sheet range %s", report.range_address)
        return summary


class FilePublisher:
    """Writes each report as markdown and/or JSON under ``out_dir``."""

    def __init__(
        self,
        out_dir: str | Path = "reports",
        formats: Sequence[str] | None = None,
        *,
        json_pretty: bool = True,
        dry_run: bool = False,
        schema_version: str = SCHEMA_VERSION,
    ) -> None:
        self.out_dir = Path(out_dir)
        self.formats = [self._normalize(f) for f in (formats or ["markdown"])]
        self.json_pretty = json_pretty
        self.dry_run = dry_run
        self.schema_version = schema_version

    @staticmethod
    def _normalize(fmt: str) -> str:
        fmt_norm = fmt.strip().lower()
        if fmt_norm == "md":
            fmt_norm = "markdown"
        if fmt_norm not in REPORT_FORMATS:
            raise ValueError(f"Unsupported format: {fmt}")
        return fmt_norm

    def _render(self, report: CategoryReport, fmt: str) -> tuple[str, Path]:
        stem = report.name.replace("/", "_").replace(" ", "_").lower()
        if fmt == "markdown":
            return format_markdown(report, self.schema_version), self.out_dir / f"{stem}.md"
        return (
            format_json(report, self.schema_version, pretty=self.json_pretty),
            self.out_dir / f"{stem}.json",
        )

    def publish(self, report: CategoryReport) -> dict[str, Any]:
        results: dict[str, dict[str, Any]] = {}
        for fmt in self.formats:
            content, path = self._render(report, fmt)
            if not self.dry_run:
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(content, encoding="utf-8")
                except OSError as e:
                    raise PublishError(f"Cannot write {path}: {e}") from e
                logger.info("Wrote %s report -> %s (%d bytes)", fmt, path, len(content))
            results[fmt] = {
                "path": str(path),
                "bytes": len(content),
                "written": not self.dry_run,
            }
        return {"range": report.range_address, "formats": results}


class MultiPublisher:
    """Fans a report out to several publishers, stopping at the first failure."""

    def __init__(self, publishers: Sequence[ReportPublisher]) -> None:
        self.publishers = list(publishers)

    def publish(self, report: CategoryReport) -> dict[str, Any]:
        return {
            type(p).__name__: p.publish(report) for p in self.publishers
        }
