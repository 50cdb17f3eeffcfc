"""Tests for the dataset fetch script (no network)."""

import hashlib
import json

import httpx
import pytest

from scripts import fetch_cyclone_data
from scripts.fetch_cyclone_data import create_manifest, get_file_hash, summarize_dataset


def test_summarize_dataset(data_file):
    summary = summarize_dataset(data_file)
    assert summary["records"] == 8
    assert summary["valid_points"] == 7
    assert summary["dropped_records"] == 1
    assert summary["years"]["2001"] == {"points": 5, "storms": 2}
    assert summary["years"]["2002"] == {"points": 2, "storms": 1}
    assert summary["grades"]["CS"] == 4


def test_summarize_rejects_non_array(tmp_path):
    path = tmp_path / "object.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        summarize_dataset(path)


def test_manifest_hash(data_file, tmp_path):
    manifest_path = tmp_path / "manifest.json"
    manifest = create_manifest("https://example.org/data.json", data_file, summarize_dataset(data_file), manifest_path)

    assert manifest["sha256"] == hashlib.sha256(data_file.read_bytes()).hexdigest()
    assert get_file_hash(data_file) == manifest["sha256"]
    assert json.loads(manifest_path.read_text())["file"] == data_file.name


def test_download_http_error(tmp_path, monkeypatch):
    def handler(request):
        return httpx.Response(404)

    real_client = httpx.Client
    monkeypatch.setattr(
        fetch_cyclone_data.httpx, "Client",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    assert fetch_cyclone_data.download_file("https://example.org/x.json", tmp_path / "x.json") is False
    assert not (tmp_path / "x.json").exists()


def test_download_writes_file(tmp_path, monkeypatch):
    def handler(request):
        return httpx.Response(200, content=b"[]")

    real_client = httpx.Client
    monkeypatch.setattr(
        fetch_cyclone_data.httpx, "Client",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    target = tmp_path / "data" / "x.json"
    assert fetch_cyclone_data.download_file("https://example.org/x.json", target) is True
    assert target.read_bytes() == b"[]"


def test_main_skip_download_missing_file(tmp_path):
    with pytest.raises(SystemExit) as exc:
        fetch_cyclone_data.main(["--skip-download", "--output", str(tmp_path / "none.json")])
    assert exc.value.code == 1


def test_main_skip_download_writes_manifest(data_file, tmp_path):
    manifest_path = tmp_path / "manifest.json"
    fetch_cyclone_data.main([
        "--skip-download",
        "--output", str(data_file),
        "--manifest-path", str(manifest_path),
    ])
    manifest = json.loads(manifest_path.read_text())
    assert manifest["summary"]["valid_points"] == 7
