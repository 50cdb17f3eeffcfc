"""
Cyclone Tracks Processing Module

Contains normalization and aggregation utilities for cyclone observation data.
"""

from .normalize import (
    CycloneDataPoint,
    GRADE_COLORS,
    GRADE_NAMES,
    KNOTS_TO_KMH,
    normalize_record,
    normalize_records,
)
from .aggregation import (
    CycloneView,
    StormSummary,
    filter_by_year,
    group_by_storm,
    points_at_timestamp,
    summarize_storm,
    summarize_storms,
    unique_timestamps,
)

__all__ = [
    "CycloneDataPoint",
    "GRADE_COLORS",
    "GRADE_NAMES",
    "KNOTS_TO_KMH",
    "normalize_record",
    "normalize_records",
    "CycloneView",
    "StormSummary",
    "filter_by_year",
    "group_by_storm",
    "points_at_timestamp",
    "summarize_storm",
    "summarize_storms",
    "unique_timestamps",
]
