import json

import pytest
import requests

from alliance_report.api.client import (
    AllianceClient,
    RateLimiter,
    load_records_file,
    parse_records,
)
from alliance_report.errors import MalformedRecordError, RecordSourceError


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self._payload = payload
        self.status_code = status
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.headers = {}
        self.calls = []
        self._response = response
        self._exc = exc

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self._exc is not None:
            raise self._exc
        return self._response


PAYLOAD = [
    {"id": "Thor", "player": "carl", "power": 51, "level": 70, "redStars": 3},
    {"id": "hulk", "player": "alice", "power": 100},
]


def _client(session):
    return AllianceClient(
        base_url="https://roster.test/rest/v1/",
        api_key="secret",
        min_interval_ms=1,
        session=session,
    )


def test_parse_records_maps_fields_and_keeps_extras():
    records = parse_records(PAYLOAD)
    assert [(r.item_id, r.owner_id, r.power) for r in records] == [
        ("Thor", "carl", 51),
        ("hulk", "alice", 100),
    ]
    assert records[0].attributes == {"level": 70, "redStars": 3}


def test_parse_records_rejects_numeric_string_power():
    with pytest.raises(MalformedRecordError, match="must be an integer"):
        parse_records([{"id": "thor", "player": "x", "power": " 42 "}])
    assert parse_records([{"id": "thor", "player": "x", "power": " 42 "}], strict=False) == []


@pytest.mark.parametrize(
    "raw,match",
    [
        ({"player": "x", "power": 1}, "missing required field 'id'"),
        ({"id": "thor", "power": 1}, "missing required field 'player'"),
        ({"id": "thor", "player": "x"}, "missing required field 'power'"),
        ({"id": "thor", "player": "x", "power": "lots"}, "must be an integer"),
        ({"id": "thor", "player": "x", "power": 1.5}, "must be an integer"),
        ({"id": "thor", "player": "x", "power": True}, "must be an integer"),
        ({"id": "thor", "player": "x", "power": -3}, "non-negative"),
        ({"id": 7, "player": "x", "power": 3}, "non-empty string"),
        ("thor", "expected an object"),
    ],
)
def test_parse_records_strict_rejects_malformed(raw, match):
    with pytest.raises(MalformedRecordError, match=match) as exc_info:
        parse_records([PAYLOAD[0], raw])
    assert exc_info.value.index == 1


def test_parse_records_lenient_skips_and_logs(caplog):
    payload = PAYLOAD + [{"id": "loki", "player": "bob", "power": "n/a"}]
    records = parse_records(payload, strict=False)
    assert len(records) == 2
    assert "Skipping malformed record" in caplog.text
    assert "Skipped 1 of 3" in caplog.text


def test_parse_records_rejects_non_list_payload():
    with pytest.raises(MalformedRecordError):
        parse_records({"error": "unauthorized"})


def test_fetch_alliance_records_builds_url_and_headers():
    session = FakeSession(FakeResponse(PAYLOAD))
    records = _client(session).fetch_alliance_records("abc-123")
    assert len(records) == 2
    url, timeout = session.calls[0]
    assert url == "https://roster.test/rest/v1/alliance/abc-123/characters"
    assert timeout == 20
    assert session.headers["api-key"] == "secret"
    assert session.headers["User-Agent"].startswith("alliance-report/")


def test_fetch_alliance_records_wraps_http_errors():
    session = FakeSession(FakeResponse(status=503))
    with pytest.raises(RecordSourceError, match="503"):
        _client(session).fetch_alliance_records("abc-123")


def test_fetch_alliance_records_wraps_connection_errors():
    session = FakeSession(exc=requests.ConnectionError("refused"))
    with pytest.raises(RecordSourceError, match="refused"):
        _client(session).fetch_alliance_records("abc-123")


def test_fetch_alliance_records_wraps_bad_json():
    session = FakeSession(FakeResponse(bad_json=True))
    with pytest.raises(RecordSourceError, match="not valid JSON"):
        _client(session).fetch_alliance_records("abc-123")


def test_fetch_alliance_records_requires_alliance_id():
    with pytest.raises(RecordSourceError):
        _client(FakeSession(FakeResponse(PAYLOAD))).fetch_alliance_records("")


def test_from_env_ignores_bad_throttle_values(monkeypatch):
    monkeypatch.setenv("MSF_RPM_LIMIT", "fast")
    monkeypatch.setenv("MSF_MIN_INTERVAL_MS", "250")
    client = AllianceClient.from_env(session=FakeSession())
    assert client.rate.min_interval == pytest.approx(0.25)


def test_rate_limiter_uses_larger_interval():
    client = AllianceClient(rpm_limit=60, min_interval_ms=100, session=FakeSession())
    assert client.rate.min_interval == pytest.approx(1.0)
    assert RateLimiter().min_interval == pytest.approx(0.10)


def test_load_records_file(tmp_path):
    path = tmp_path / "roster.json"
    path.write_text(json.dumps(PAYLOAD), encoding="utf-8")
    assert len(load_records_file(path)) == 2


def test_load_records_file_errors(tmp_path):
    with pytest.raises(RecordSourceError):
        load_records_file(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(RecordSourceError, match="not valid JSON"):
        load_records_file(bad)
