"""
Cyclone Aggregation Module

Year filtering, grouping by storm identifier, timestamp derivation and
per-storm track summaries over normalized observation points.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from .normalize import CycloneDataPoint, DEFAULT_NAME, GRADE_NAMES


@dataclass
class StormSummary:
    """Track summary for one storm within a year"""
    storm_id: Optional[int]
    name: str
    basin: str
    year: Optional[int]
    start_timestamp: str
    end_timestamp: str
    observations: int
    peak_wind_kmh: float
    min_pressure_hpa: Optional[int]
    peak_grade: str
    track: List[List[float]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storm_id": self.storm_id,
            "name": self.name,
            "basin": self.basin,
            "year": self.year,
            "start_timestamp": self.start_timestamp,
            "end_timestamp": self.end_timestamp,
            "observations": self.observations,
            "peak_wind_kmh": round(self.peak_wind_kmh, 1),
            "min_pressure_hpa": self.min_pressure_hpa,
            "peak_grade": self.peak_grade,
            "peak_grade_name": GRADE_NAMES.get(self.peak_grade, self.peak_grade),
            "track": self.track,
        }


def filter_by_year(points: Sequence[CycloneDataPoint], year: int) -> List[CycloneDataPoint]:
    """All points whose date falls in the given year"""
    return [p for p in points if p.year == year]


def group_by_storm(points: Sequence[CycloneDataPoint]) -> Dict[Optional[int], List[CycloneDataPoint]]:
    """Group points by cyclone id, keeping first-seen order of ids and points"""
    groups: Dict[Optional[int], List[CycloneDataPoint]] = {}
    for point in points:
        groups.setdefault(point.cyclone_id, []).append(point)
    return groups


def unique_timestamps(points: Sequence[CycloneDataPoint]) -> List[str]:
    """Distinct timestamps in order of first appearance"""
    return list(dict.fromkeys(p.timestamp for p in points))


def points_at_timestamp(points: Sequence[CycloneDataPoint], timestamp: Optional[str]) -> List[CycloneDataPoint]:
    """Points whose timestamp matches exactly"""
    if timestamp is None:
        return []
    return [p for p in points if p.timestamp == timestamp]


def summarize_storm(storm_id: Optional[int], points: Sequence[CycloneDataPoint]) -> StormSummary:
    """
    Summarize one storm's observations.

    The peak grade is the grade recorded at the strongest wind; ties go to
    the earliest observation. Zero pressures (unparsed) are ignored for the
    minimum.
    """
    if not points:
        raise ValueError("Cannot summarize a storm with no observations")

    winds = np.array([p.wind_speed for p in points], dtype=float)
    pressures = np.array([p.pressure for p in points], dtype=int)
    peak_index = int(np.argmax(winds))
    valid_pressures = pressures[pressures > 0]

    name = next((p.name for p in points if p.name != DEFAULT_NAME), DEFAULT_NAME)

    return StormSummary(
        storm_id=storm_id,
        name=name,
        basin=points[0].basin,
        year=points[0].year,
        start_timestamp=points[0].timestamp,
        end_timestamp=points[-1].timestamp,
        observations=len(points),
        peak_wind_kmh=float(winds[peak_index]),
        min_pressure_hpa=int(valid_pressures.min()) if valid_pressures.size else None,
        peak_grade=points[peak_index].grade,
        track=[[p.latitude, p.longitude] for p in points],
    )


def summarize_storms(points: Sequence[CycloneDataPoint]) -> List[StormSummary]:
    return [summarize_storm(storm_id, group) for storm_id, group in group_by_storm(points).items()]


class CycloneView:
    """
    Derived views over the loaded points for a selected year and timestamp.

    Each view is recomputed only when one of its inputs changed: the
    year-filtered list, the storm groups and the timestamp list depend on
    (data, year); the current frame depends on (data, year, timestamp).
    """

    def __init__(self, points: Optional[Sequence[CycloneDataPoint]] = None, year: int = 2000):
        self._points: List[CycloneDataPoint] = list(points or [])
        self._data_version = 0
        self.year = year
        self.timestamp: Optional[str] = None
        self._cache: Dict[str, Tuple[Hashable, Any]] = {}

    @property
    def points(self) -> List[CycloneDataPoint]:
        return self._points

    def set_points(self, points: Sequence[CycloneDataPoint]) -> None:
        self._points = list(points)
        self._data_version += 1

    def _memo(self, name: str, key: Hashable, compute: Callable[[], Any]) -> Any:
        cached = self._cache.get(name)
        if cached is not None and cached[0] == key:
            return cached[1]
        value = compute()
        self._cache[name] = (key, value)
        return value

    @property
    def filtered(self) -> List[CycloneDataPoint]:
        return self._memo(
            "filtered",
            (self._data_version, self.year),
            lambda: filter_by_year(self._points, self.year),
        )

    @property
    def grouped(self) -> Dict[Optional[int], List[CycloneDataPoint]]:
        return self._memo(
            "grouped",
            (self._data_version, self.year),
            lambda: group_by_storm(self.filtered),
        )

    @property
    def timestamps(self) -> List[str]:
        return self._memo(
            "timestamps",
            (self._data_version, self.year),
            lambda: unique_timestamps(self.filtered),
        )

    @property
    def current(self) -> List[CycloneDataPoint]:
        return self._memo(
            "current",
            (self._data_version, self.year, self.timestamp),
            lambda: points_at_timestamp(self.filtered, self.timestamp),
        )

    def current_by_storm(self) -> Dict[Optional[int], List[CycloneDataPoint]]:
        """Points of the current frame, grouped by storm"""
        return group_by_storm(self.current)
