"""
Integration tests for the FastAPI boundary.

Covers:
    - index page, health check
    - shorten + redirect round trip through HTTP
    - status mapping for malformed codes, unissued codes and core failures
    - persistence across app instances on the CSV backend
    - refusal to start on a corrupted data file
    - URLs and bytes the CSV file cannot hold
    - importing `main` leaves storage untouched until `app` is used
"""

import importlib
import logging

import pytest
from fastapi.testclient import TestClient

from main import create_app
from surl_platform.errors import Corrupted, StorageFailure
from surl_platform.storage.base import Record
from surl_platform.storage.file_storage import CsvRecordStorage
from surl_platform.storage.storage import MemoryRecordStorage


def test_index_page(client):
    for path in ("/", "/index.html"):
        response = client.get(path)
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "<form" in response.text


def test_health(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "backend": "memory", "next_index": 0}


def test_shorten_and_redirect(client):
    response = client.post("/shorten", json={"url": "https://example.com"})
    assert response.status_code == 200
    data = response.json()
    assert data["code"] == "CjINSn"
    assert data["original_url"] == "https://example.com"
    assert data["short_path"] == "/CjINSn"
    assert data["short_url"].endswith("/CjINSn")

    redirect = client.get("/CjINSn")
    assert redirect.status_code == 302
    assert redirect.headers["location"] == "https://example.com"

    assert client.get("/healthz").json()["next_index"] == 1


def test_shorten_keeps_url_verbatim(client):
    url = "https://example.com/path?query=param&other=äöü#frag"
    code = client.post("/shorten", json={"url": url}).json()["code"]
    redirect = client.get(f"/{code}")
    assert redirect.status_code == 302
    assert redirect.headers["location"].startswith("https://example.com/path?query=param&other=")


def test_shorten_empty_url(client):
    response = client.post("/shorten", json={"url": ""})
    assert response.status_code == 400


def test_shorten_missing_field(client):
    response = client.post("/shorten", json={})
    assert response.status_code == 422


@pytest.mark.parametrize("code", ["abcde", "abcdefg", "ab-def", "abc_ef"])
def test_malformed_code_is_404(client, code):
    response = client.get(f"/{code}")
    assert response.status_code == 404


def test_unissued_code_is_404(client):
    client.post("/shorten", json={"url": "https://example.com"})
    assert client.get("/eDrBKK").status_code == 404
    assert client.get("/000000").status_code == 404


def test_storage_failure_on_shorten_is_500(storage, monkeypatch):
    client = TestClient(create_app(storage=storage), follow_redirects=False)

    def fail(record):
        raise StorageFailure("disk full at /var/data")

    monkeypatch.setattr(storage, "append", fail)
    response = client.post("/shorten", json={"url": "https://example.com"})
    assert response.status_code == 500
    assert "disk full" not in response.text
    assert client.get("/healthz").json()["next_index"] == 0


def test_domain_exhaustion_is_500(client):
    client.app.state.store.limit = 1
    assert client.post("/shorten", json={"url": "https://a.example"}).status_code == 200
    response = client.post("/shorten", json={"url": "https://b.example"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Set of short URLs exhausted"


def test_corrupted_record_on_lookup_is_500(storage, caplog):
    client = TestClient(create_app(storage=storage), follow_redirects=False)
    client.post("/shorten", json={"url": "https://a.example"})
    code = client.post("/shorten", json={"url": "https://b.example"}).json()["code"]
    storage.records[1] = Record(9, "https://evil.example")

    with caplog.at_level(logging.ERROR, logger="surl"):
        response = client.get(f"/{code}")
    assert response.status_code == 500
    assert "evil" not in response.text
    assert "position=1" in caplog.text
    # The intact record still redirects.
    assert client.get("/CjINSn").status_code == 302


def test_app_refuses_to_start_on_corrupted_medium():
    storage = MemoryRecordStorage([Record(0, "https://a.example"), Record(2, "https://b.example")])
    with pytest.raises(Corrupted):
        create_app(storage=storage)


def test_state_survives_restart_on_csv(csv_path):
    first = TestClient(create_app(storage=CsvRecordStorage(csv_path)), follow_redirects=False)
    codes = [first.post("/shorten", json={"url": f"https://example.com/{i}"}).json()["code"] for i in range(3)]

    second = TestClient(create_app(storage=CsvRecordStorage(csv_path)), follow_redirects=False)
    assert second.get("/healthz").json()["next_index"] == 3
    for i, code in enumerate(codes):
        response = second.get(f"/{code}")
        assert response.status_code == 302
        assert response.headers["location"] == f"https://example.com/{i}"
    assert second.post("/shorten", json={"url": "https://example.com/3"}).json()["code"] not in codes


def test_corrupted_csv_refuses_to_start(csv_path):
    csv_path.write_text("0,https://a.example\r\nbogus\r\n", encoding="utf-8")
    with pytest.raises(Corrupted):
        create_app(storage=CsvRecordStorage(csv_path))


def test_unencodable_url_on_csv_is_500(csv_path, caplog):
    client = TestClient(create_app(storage=CsvRecordStorage(csv_path)), follow_redirects=False)
    # A lone surrogate survives JSON decoding but has no UTF-8 form.
    body = b'{"url": "https://x.example/\\ud800"}'

    with caplog.at_level(logging.ERROR, logger="surl"):
        response = client.post("/shorten", content=body, headers={"Content-Type": "application/json"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Unable to save URL"
    assert "cannot be encoded" in caplog.text
    assert client.get("/healthz").json()["next_index"] == 0
    assert csv_path.read_bytes() == b""

    ok = client.post("/shorten", json={"url": "https://example.com"})
    assert ok.status_code == 200
    assert ok.json()["code"] == "CjINSn"


def test_invalid_utf8_on_csv_lookup_is_500(csv_path):
    client = TestClient(create_app(storage=CsvRecordStorage(csv_path)), follow_redirects=False)
    client.post("/shorten", json={"url": "https://a.example"})
    code = client.post("/shorten", json={"url": "https://b.example"}).json()["code"]
    with open(csv_path, "ab") as f:
        f.write(b"2,https://c.example/\xff\r\n")

    response = client.get(f"/{code}")
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal error"


@pytest.mark.parametrize(
    "raw",
    [
        b"0,https://a.example/\xff\xfe\r\n",
        "0,https://a.example\r\n²,https://b.example\r\n".encode("utf-8"),
    ],
)
def test_undecodable_csv_refuses_to_start(csv_path, raw):
    csv_path.write_bytes(raw)
    with pytest.raises(Corrupted):
        create_app(storage=CsvRecordStorage(csv_path))


def test_importing_main_does_not_touch_storage(tmp_path, monkeypatch):
    import main

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SURL_STORAGE_BACKEND", "file")
    monkeypatch.delenv("SURL_DATA_FILE", raising=False)
    importlib.reload(main)
    monkeypatch.setattr(main, "_app", None)
    assert not (tmp_path / "savedURLs.csv").exists()

    app = main.app
    assert (tmp_path / "savedURLs.csv").exists()
    assert main.app is app
    assert TestClient(app).get("/healthz").json() == {"status": "ok", "backend": "file", "next_index": 0}
