"""Tests for year filtering, grouping, timestamps and the memoized view."""

import pytest

from backend.processing.aggregation import (
    CycloneView,
    filter_by_year,
    group_by_storm,
    points_at_timestamp,
    summarize_storm,
    summarize_storms,
    unique_timestamps,
)
from backend.processing.normalize import normalize_records

from conftest import make_record


@pytest.fixture
def points(raw_records):
    return normalize_records(raw_records)


class TestFilterByYear:

    def test_selects_year(self, points):
        selected = filter_by_year(points, 2001)
        assert len(selected) == 5
        assert all(p.date.endswith("2001") for p in selected)

    def test_empty_year(self, points):
        assert filter_by_year(points, 2010) == []


class TestGroupByStorm:

    def test_partitions_input(self, points):
        year_points = filter_by_year(points, 2001)
        groups = group_by_storm(year_points)

        flattened = [p for group in groups.values() for p in group]
        assert len(flattened) == len(year_points)
        assert sorted(map(id, flattened)) == sorted(map(id, year_points))

    def test_insertion_order(self, points):
        groups = group_by_storm(filter_by_year(points, 2001))
        assert list(groups.keys()) == [1, 2]
        assert [p.time for p in groups[1]] == ["0000", "0300", "0000"]

    def test_membership_matches_id(self, points):
        for cyclone_id, group in group_by_storm(points).items():
            assert all(p.cyclone_id == cyclone_id for p in group)


class TestUniqueTimestamps:

    def test_no_duplicates(self, points):
        timestamps = unique_timestamps(filter_by_year(points, 2001))
        assert len(timestamps) == len(set(timestamps))
        assert timestamps == ["05-06-2001 0000", "05-06-2001 0300", "06-06-2001 0000"]

    def test_dropped_record_contributes_nothing(self, points):
        assert "06-06-2001 0600" not in unique_timestamps(points)

    def test_first_appearance_not_chronological(self):
        later_first = normalize_records([
            make_record("1", "07-06-2001", "0000", "10", "80"),
            make_record("1", "05-06-2001", "0000", "10", "80"),
        ])
        assert unique_timestamps(later_first) == ["07-06-2001 0000", "05-06-2001 0000"]


class TestPointsAtTimestamp:

    def test_exact_match(self, points):
        frame = points_at_timestamp(filter_by_year(points, 2001), "05-06-2001 0300")
        assert sorted(p.cyclone_id for p in frame) == [1, 2]

    def test_no_selection(self, points):
        assert points_at_timestamp(points, None) == []

    def test_unknown_timestamp(self, points):
        assert points_at_timestamp(points, "01-01-2001 0000") == []


class TestSummarizeStorm:

    def test_peak_and_minimum(self, points):
        storm = summarize_storm(1, group_by_storm(filter_by_year(points, 2001))[1])
        assert storm.observations == 3
        assert storm.peak_wind_kmh == pytest.approx(55 * 1.852)
        assert storm.peak_grade == "SCS"
        assert storm.min_pressure_hpa == 986
        assert storm.start_timestamp == "05-06-2001 0000"
        assert storm.end_timestamp == "06-06-2001 0000"
        assert storm.track[0] == [10.5, 75.0]

    def test_name_prefers_known(self, points):
        storm = summarize_storm(2, group_by_storm(filter_by_year(points, 2001))[2])
        assert storm.name == "TWO"

    def test_zero_pressure_ignored(self, points):
        storm = summarize_storm(1, filter_by_year(points, 2002))
        assert storm.min_pressure_hpa == 1000

    def test_all_pressures_missing(self):
        pts = normalize_records([make_record("1", "05-06-2001", "0000", "10", "80", pressure="")])
        assert summarize_storm(1, pts).min_pressure_hpa is None

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            summarize_storm(1, [])

    def test_summarize_storms(self, points):
        summaries = summarize_storms(filter_by_year(points, 2001))
        assert [s.storm_id for s in summaries] == [1, 2]
        assert summaries[0].to_dict()["peak_grade_name"] == "Severe Cyclonic Storm"


class TestCycloneView:

    def test_views_follow_year(self, points):
        view = CycloneView(points, year=2001)
        assert len(view.filtered) == 5
        view.year = 2002
        assert len(view.filtered) == 2
        assert view.timestamps == ["10-11-2002 0000", "10-11-2002 0600"]

    def test_memoized_until_dependency_changes(self, points):
        view = CycloneView(points, year=2001)
        first = view.filtered
        assert view.filtered is first
        assert view.grouped is view.grouped

        view.timestamp = "05-06-2001 0000"
        assert view.filtered is first

        view.year = 2002
        assert view.filtered is not first

    def test_current_follows_timestamp(self, points):
        view = CycloneView(points, year=2001)
        assert view.current == []
        view.timestamp = "05-06-2001 0300"
        assert len(view.current) == 2
        assert list(view.current_by_storm().keys()) == [1, 2]

    def test_set_points_invalidates(self, points):
        view = CycloneView([], year=2001)
        assert view.timestamps == []
        view.set_points(points)
        assert len(view.timestamps) == 3
