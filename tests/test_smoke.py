import inspect

from fastapi.testclient import TestClient
from chunkcsv.config import Settings, get_settings
from chunkcsv.main import app, parse_csv_file

client = TestClient(app)


def _upload(raw: bytes, name: str = "test.csv", **params):
    files = {"file": (name, raw, "text/csv")}
    return client.post("/parse", files=files, params=params)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_parse_utf8_upload():
    raw = "name,city\r\nPaul,Montréal\r\n花子,東京\r\n".encode("utf-8")

    r = _upload(raw)
    assert r.status_code == 200

    data = r.json()
    assert data["rows"] == [["name", "city"], ["Paul", "Montréal"], ["花子", "東京"]]
    summary = data["report"]["summary"]
    assert summary["rows"] == 3
    assert summary["max_columns"] == 2
    assert summary["bytes_read"] == len(raw)
    assert data["report"]["options"] == {"strict": True, "allow_bare_lf": False, "allow_bare_cr": False}
    assert data["report"]["warnings"] == []


def test_rejects_non_csv_filename():
    r = _upload(b"a,b\r\n", name="test.txt")
    assert r.status_code == 422
    assert r.json()["detail"] == "Only CSV files are supported"


def test_strict_error_is_reported_with_position():
    r = _upload(b"a,b\nc,d")
    assert r.status_code == 422

    body = r.json()
    assert body["kind"] == "bare_newline_not_allowed"
    assert body["position"] == 3
    assert body["line"] == 1
    assert body["column"] == 4


def test_query_flags_override_defaults():
    r = _upload(b"a,b\nc,d", allow_bare_lf="true")
    assert r.status_code == 200
    assert r.json()["rows"] == [["a", "b"], ["c", "d"]]

    r = _upload(b'a,b"c\r\n', strict="false")
    assert r.status_code == 200
    assert r.json()["rows"] == [["a", 'b"c']]


def test_latin1_upload_fails_with_encoding_hint():
    raw = "name,city\r\nPaul,Montréal\r\n".encode("latin-1")

    r = _upload(raw)
    assert r.status_code == 422

    body = r.json()
    assert body["kind"] == "invalid_utf8"
    assert body["position"] == raw.index(b"\xe9")
    assert "detected_encoding" in body


def test_truncated_upload_is_reported_as_warning():
    raw = "a,東".encode("utf-8")[:-1]

    r = _upload(raw)
    assert r.status_code == 200

    data = r.json()
    assert data["rows"] == [["a", ""]]
    assert data["report"]["warnings"] == [
        {"issue": "truncated_character", "offset": 2, "value": "e69d", "action": "dropped"}
    ]


def test_truncated_upload_rejected_when_configured():
    app.dependency_overrides[get_settings] = lambda: Settings(on_truncated="error", chunk_size=2)
    try:
        r = _upload("a,東".encode("utf-8")[:-1])
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 422
    assert r.json()["kind"] == "truncated_character"
    assert r.json()["position"] == 2


def test_parse_handler_runs_in_threadpool():
    # blocking file reads must not run on the event loop
    assert not inspect.iscoroutinefunction(parse_csv_file)


def test_leading_bom_is_skipped():
    r = _upload(b'\xef\xbb\xbf"city",name\r\n')
    assert r.status_code == 200

    data = r.json()
    assert data["rows"] == [["city", "name"]]
    assert data["report"]["warnings"] == [
        {"issue": "bom_stripped", "offset": 0, "value": "efbbbf", "action": "skipped"}
    ]

    r = _upload(b"\xef\xbb\xbfcity,name\r\n")
    assert r.json()["rows"] == [["city", "name"]]
