from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Sequence

from alliance_report.api.client import AllianceClient, load_records_file
from alliance_report.errors import (
    CatalogError,
    MalformedRecordError,
    PublishError,
    RecordSourceError,
)
from alliance_report.logging_config import setup_logging
from alliance_report.report.catalog import load_catalog
from alliance_report.report.collect import build_reports, publish_reports
from alliance_report.report.constants import SCHEMA_VERSION
from alliance_report.report.publish import (
    FilePublisher,
    MultiPublisher,
    ReportPublisher,
    SheetsPublisher,
)

logger = logging.getLogger(__name__)

ALLIANCE_ID = os.environ.get("MSF_ALLIANCE_ID")
SPREADSHEET_ID = os.environ.get("SHEETS_SPREADSHEET_ID")


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def _split_csv(value: str | None) -> list[str]:
    return [p.strip() for p in (value or "").split(",") if p.strip()]


def generate_alliance_report(
    *,
    alliance_id: str | None = ALLIANCE_ID,
    records_file: str | None = None,
    catalog_path: str | None = None,
    categories: Sequence[str] | None = None,
    out_dir: str | None = "reports",
    output_formats: Sequence[str] | None = None,
    json_pretty: bool = True,
    sheets: bool = False,
    spreadsheet_id: str | None = SPREADSHEET_ID,
    access_token: str | None = None,
    strict: bool = True,
    keep_going: bool = False,
    dry_run: bool = False,
    client: AllianceClient | None = None,
    publisher: ReportPublisher | None = None,
) -> dict:
    catalog = load_catalog(catalog_path)

    if publisher is None:
        publishers: list[ReportPublisher] = []
        if out_dir:
            publishers.append(
                FilePublisher(
                    out_dir,
                    output_formats,
                    json_pretty=json_pretty,
                    dry_run=dry_run,
                )
            )
        if sheets:
            publishers.append(
                SheetsPublisher(
                    spreadsheet_id or "",
                    access_token or os.environ.get("SHEETS_ACCESS_TOKEN"),
                    dry_run=dry_run,
                )
            )
        publisher = MultiPublisher(publishers)

    if records_file:
        records = load_records_file(records_file, strict=strict)
    else:
        client = client or AllianceClient.from_env()
        records = client.fetch_alliance_records(alliance_id or "", strict=strict)

    reports = build_reports(records, catalog, categories)

    outcome = publish_reports(reports, publisher, keep_going=keep_going)
    return {
        "meta": {
            "schema_version": SCHEMA_VERSION,
            "catalog_version": catalog.version,
            "records": len(records),
            "owners": len({r.owner_id for r in records}),
        },
        "categories": {
            r.name: {"range": r.range_address, "rows": len(r.table.rows)} for r in reports
        },
        "published": outcome["published"],
        "failures": outcome["failures"],
        "written": not dry_run,
    }


def main(argv: list[str] | None = None) -> int:  # pragma: no cover
    parser = argparse.ArgumentParser(
        description="Generate ranked team power reports for every alliance member"
    )
    parser.add_argument(
        "--alliance-id", default=ALLIANCE_ID, help="Alliance id (default from env)"
    )
    parser.add_argument(
        "--records-file",
        default=None,
        help="Read roster records from a JSON export instead of the API",
    )
    parser.add_argument(
        "--catalog", default=None, help="Team catalog YAML (default: packaged catalog)"
    )
    parser.add_argument(
        "--categories",
        default=None,
        help="Comma-separated report categories to build (default: all)",
    )
    parser.add_argument("--out-dir", default="reports", help="Output directory")
    parser.add_argument(
        "--formats",
        default="markdown",
        help="Comma-separated list of output formats (markdown,json)",
    )
    parser.add_argument(
        "--json-compact",
        dest="json_pretty",
        action="store_false",
        help="Use compact JSON (no whitespace)",
    )
    parser.add_argument(
        "--sheets", action="store_true", help="Also overwrite the spreadsheet ranges"
    )
    parser.add_argument(
        "--spreadsheet-id", default=SPREADSHEET_ID, help="Target spreadsheet (default from env)"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Build reports but do not write anything"
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with remaining categories when one fails to publish",
    )
    parser.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Skip malformed roster records (logged) instead of failing",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", default=None, help="Also log to this rotating file")
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    try:
        summary = generate_alliance_report(
            alliance_id=args.alliance_id,
            records_file=args.records_file,
            catalog_path=args.catalog,
            categories=_split_csv(args.categories) or None,
            out_dir=args.out_dir,
            output_formats=_split_csv(args.formats),
            json_pretty=args.json_pretty,
            sheets=args.sheets,
            spreadsheet_id=args.spreadsheet_id,
            strict=not args.skip_malformed,
            keep_going=args.keep_going,
            dry_run=args.dry_run,
        )
    except RecordSourceError as e:
        logger.error("Record source failed: %s", e)
        return 1
    except MalformedRecordError as e:
        logger.error("Malformed roster data: %s", e)
        return 1
    except CatalogError as e:
        logger.error("Team catalog error: %s", e)
        return 1
    except PublishError as e:
        logger.error("Publishing failed: %s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Error: %s", e)
        return 1

    print(_pretty(summary))
    if summary["failures"]:
        print(f"Completed with {len(summary['failures'])} failures.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
