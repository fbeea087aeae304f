"""HTTP client, rate limiter and record parsing for the alliance roster API.

This module centralizes the record source:
- Simple monotonically-timed rate limiting (min interval between calls)
- Resilient requests.Session with retries and backoff for transient errors
- Validation of the roster payload into ``OwnedItemRecord`` values

Network and decode failures surface as ``RecordSourceError``; bad records
surface as ``MalformedRecordError`` so callers can tell the two apart.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from alliance_report.errors import MalformedRecordError, RecordSourceError
from alliance_report.report.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_MIN_INTERVAL_SEC,
    DEFAULT_TIMEOUT_SEC,
    RECORD_ITEM_KEY,
    RECORD_OWNER_KEY,
    RECORD_POWER_KEY,
    RETRY_STATUS_FORCELIST,
    USER_AGENT,
)
from alliance_report.report.models import OwnedItemRecord

logger = logging.getLogger(__name__)


class RateLimiter:
    """Wall-clock based rate limiter using a minimum interval between calls.

    Ensures at least ``min_interval_sec`` seconds elapse between consecutive
    ``wait()`` calls.
    """

    def __init__(self, min_interval_sec: float | None = None) -> None:
        self.min_interval = (
            float(min_interval_sec) if min_interval_sec else DEFAULT_MIN_INTERVAL_SEC
        )
        self._last = 0.0

    def wait(self) -> None:
        now = time.monotonic()
        if self._last:
            elapsed = now - self._last
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
        self._last = time.monotonic()


def _parse_power(value: Any, index: int) -> int:
    # JSON numbers only; numeric strings are rejected, not converted.
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRecordError(f"power must be an integer, got {value!r}", index)
    if value < 0:
        raise MalformedRecordError(f"power must be non-negative, got {value}", index)
    return value


def parse_record(raw: Any, index: int) -> OwnedItemRecord:
    if not isinstance(raw, dict):
        raise MalformedRecordError(f"expected an object, got {type(raw).__name__}", index)
    for key in (RECORD_ITEM_KEY, RECORD_OWNER_KEY, RECORD_POWER_KEY):
        if raw.get(key) is None:
            raise MalformedRecordError(f"missing required field {key!r}", index)
    item_id = raw[RECORD_ITEM_KEY]
    owner_id = raw[RECORD_OWNER_KEY]
    if not isinstance(item_id, str) or not item_id:
        raise MalformedRecordError(f"{RECORD_ITEM_KEY!r} must be a non-empty string", index)
    if not isinstance(owner_id, str) or not owner_id:
        raise MalformedRecordError(f"{RECORD_OWNER_KEY!r} must be a non-empty string", index)
    power = _parse_power(raw[RECORD_POWER_KEY], index)
    extra = {
        k: v
        for k, v in raw.items()
        if k not in (RECORD_ITEM_KEY, RECORD_OWNER_KEY, RECORD_POWER_KEY)
    }
    return OwnedItemRecord(item_id=item_id, owner_id=owner_id, power=power, attributes=extra)


def parse_records(payload: Any, *, strict: bool = True) -> list[OwnedItemRecord]:
    """Validate a decoded roster payload.

    With ``strict`` (the default) the first malformed record raises
    ``MalformedRecordError``. Otherwise malformed records are skipped and
    each one is logged as a warning.
    """
    if not isinstance(payload, list):
        raise MalformedRecordError(
            f"roster payload must be a list of records, got {type(payload).__name__}"
        )
    records: list[OwnedItemRecord] = []
    skipped = 0
    for i, raw in enumerate(payload):
        try:
            records.append(parse_record(raw, i))
        except MalformedRecordError as e:
            if strict:
                raise
            skipped += 1
            logger.warning("Skipping malformed record: %s", e)
    if skipped:
        logger.warning("Skipped %d of %d malformed records", skipped, len(payload))
    logger.info("Parsed %d roster records", len(records))
    return records


def load_records_file(path: str | Path, *, strict: bool = True) -> list[OwnedItemRecord]:
    """Read a JSON export of the roster endpoint from disk."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RecordSourceError(f"Cannot read records file {path}: {e}") from e
    except ValueError as e:
        raise RecordSourceError(f"Records file {path} is not valid JSON: {e}") from e
    return parse_records(payload, strict=strict)


class AllianceClient:
    """Thin wrapper around requests.Session for the alliance roster API.

    Environment variables can flow in via parameters:
    - base_url: defaults to $MSF_PAL_BASE_URL or https://msf.pal.gg/rest/v1
    - api_key: sent as the ``api-key`` header (defaults to $MSF_PAL_API_KEY)
    - rpm_limit: translated to a minimum interval of 60 / rpm seconds
    - min_interval_ms: explicit minimum interval in milliseconds (wins if larger)

    Only GET + JSON is implemented because the report only reads rosters.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        rpm_limit: float | None = None,
        min_interval_ms: float | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self.base_url = (
            base_url or os.environ.get("MSF_PAL_BASE_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self.timeout = timeout
        min_interval = None
        if rpm_limit and rpm_limit > 0:
            min_interval = max(min_interval or 0.0, 60.0 / rpm_limit)
        if min_interval_ms and min_interval_ms > 0:
            ms = float(min_interval_ms) / 1000.0
            min_interval = max(min_interval or 0.0, ms)
        self.rate = RateLimiter(min_interval)

        if session is None:
            session = requests.Session()
            # Configure safe-idempotent retries for transient errors
            retry = Retry(
                total=5,
                connect=3,
                read=3,
                backoff_factor=0.5,
                status_forcelist=RETRY_STATUS_FORCELIST,
                allowed_methods=("GET",),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session
        self.session.headers.update({"User-Agent": USER_AGENT})
        api_key = api_key or os.environ.get("MSF_PAL_API_KEY")
        if api_key:
            self.session.headers.update({"api-key": api_key})

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AllianceClient":
        rpm_raw = os.environ.get("MSF_RPM_LIMIT")
        min_ms_raw = os.environ.get("MSF_MIN_INTERVAL_MS")
        try:
            rpm = float(rpm_raw) if rpm_raw else None
        except ValueError:
            logger.warning("Ignoring non-numeric MSF_RPM_LIMIT=%r", rpm_raw)
            rpm = None
        try:
            min_ms = float(min_ms_raw) if min_ms_raw else None
        except ValueError:
            logger.warning("Ignoring non-numeric MSF_MIN_INTERVAL_MS=%r", min_ms_raw)
            min_ms = None
        return cls(rpm_limit=rpm, min_interval_ms=min_ms, **kwargs)

    def get_json(self, path: str) -> Any:
        """GET ``base_url + path`` and return decoded JSON.

        Raises requests.HTTPError on non-2xx responses (after retries). A
        timeout is applied per request to avoid indefinite hangs.
        """
        self.rate.wait()
        r = self.session.get(self.base_url + path, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def fetch_alliance_records(
        self, alliance_id: str, *, strict: bool = True
    ) -> list[OwnedItemRecord]:
        if not alliance_id:
            raise RecordSourceError("An alliance id is required to fetch roster records")
        path = f"/alliance/{alliance_id}/characters"
        logger.info("Fetching roster records for alliance %s", alliance_id)
        try:
            payload = self.get_json(path)
        except requests.RequestException as e:
            raise RecordSourceError(f"Roster request failed for {path}: {e}") from e
        except ValueError as e:
            raise RecordSourceError(f"Roster response for {path} is not valid JSON: {e}") from e
        return parse_records(payload, strict=strict)
