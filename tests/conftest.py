"""
Shared pytest fixtures for Cyclone Tracks tests.

The API client is built without entering the TestClient context, so the
startup hook never runs and no download is attempted; each test gets a
manager loaded from a temporary data file and fresh playback controls.
"""

import json

import pytest
from fastapi.testclient import TestClient

from backend.api import main
from backend.api.controls import PlaybackControls
from backend.api.cyclones import CycloneDataManager, MIN_YEAR, MAX_YEAR


def make_record(serial, date, time, lat, lon, wind="25", grade="D", name="", pressure="1000"):
    return {
        "serialnumberofsystemduringyear": serial,
        "basinoforigin": "BOB",
        "name": name,
        "date-dd-mm-yyyy": date,
        "time-utc": time,
        "latitude-lat": lat,
        "longitude-long": lon,
        "cinoorornot": "1.5",
        "estimatedcentralpressurehpaorecp": pressure,
        "maximumsustainedsurfacewind-kt": wind,
        "grade-text": grade,
    }


@pytest.fixture
def raw_records():
    """Two storms in 2001, one in 2002, and one record with a bad latitude."""
    return [
        make_record("1", "05-06-2001", "0000", "10.5", "75.0", wind="50", grade="CS", pressure="990"),
        make_record("1", "05-06-2001", "0300", "11.0", "74.5", wind="55", grade="SCS", pressure="986"),
        make_record("2", "05-06-2001", "0300", "15.0", "88.0", wind="30", grade="DD", name="TWO"),
        make_record("1", "06-06-2001", "0000", "12.0", "73.0", wind="45", grade="CS", pressure="992"),
        make_record("2", "06-06-2001", "0000", "16.0", "87.0", wind="25", grade="D", name="TWO"),
        make_record("2", "06-06-2001", "0600", "abc", "86.0", wind="25", grade="D", name="TWO"),
        make_record("1", "10-11-2002", "0000", "13.0", "84.0", wind="35", grade="CS", name="OGNI"),
        make_record("1", "10-11-2002", "0600", "14.0", "83.5", wind="", grade="CS", name="OGNI", pressure="NA"),
    ]


@pytest.fixture
def data_file(tmp_path, raw_records):
    path = tmp_path / "cyclonic_events.json"
    path.write_text(json.dumps(raw_records), encoding="utf-8")
    return path


@pytest.fixture
def manager(data_file):
    """Manager loaded from the sample records."""
    m = CycloneDataManager(data_file)
    assert m.load_json_data()
    return m


@pytest.fixture
def controls(manager):
    return PlaybackControls(manager.view, min_year=MIN_YEAR, max_year=MAX_YEAR)


@pytest.fixture
def client(manager, controls, monkeypatch):
    """API client bound to the sample manager and fresh controls."""
    monkeypatch.setattr(main, "cyclone_manager", manager)
    monkeypatch.setattr(main, "controls", controls)
    return TestClient(main.app)
