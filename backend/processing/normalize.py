"""
Cyclone Record Normalization Module

Converts raw cyclonic-event records (as published in the IMD best track
JSON export) into typed observation points. Coordinates that do not parse
exclude the record; wind speed and pressure fall back to zero.
"""

import logging
import math
import re
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Conversion factor from knots to km/h
KNOTS_TO_KMH = 1.852

DEFAULT_NAME = "Unknown"
DEFAULT_GRADE_COLOR = "#000"

# Raw record field names
FIELD_LATITUDE = "latitude-lat"
FIELD_LONGITUDE = "longitude-long"
FIELD_WIND_KT = "maximumsustainedsurfacewind-kt"
FIELD_PRESSURE = "estimatedcentralpressurehpaorecp"
FIELD_SERIAL = "serialnumberofsystemduringyear"
FIELD_DATE = "date-dd-mm-yyyy"
FIELD_TIME = "time-utc"
FIELD_GRADE = "grade-text"
FIELD_BASIN = "basinoforigin"
FIELD_SHAPE = "cinoorornot"
FIELD_NAME = "name"

# Grade colors for cyclone categories
GRADE_COLORS: Dict[str, str] = {
    "D": "#78c6a3",     # Depression
    "DD": "#61a2de",    # Deep Depression
    "CS": "#f39c12",    # Cyclonic Storm
    "SCS": "#d35400",   # Severe Cyclonic Storm
    "VSCS": "#e74c3c",  # Very Severe Cyclonic Storm
    "ESCS": "#c0392b",  # Extremely Severe Cyclonic Storm
    "SuCS": "#8e44ad",  # Super Cyclonic Storm
}

GRADE_NAMES: Dict[str, str] = {
    "D": "Depression",
    "DD": "Deep Depression",
    "CS": "Cyclonic Storm",
    "SCS": "Severe Cyclonic Storm",
    "VSCS": "Very Severe Cyclonic Storm",
    "ESCS": "Extremely Severe Cyclonic Storm",
    "SuCS": "Super Cyclonic Storm",
}

DATE_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%Y-%m-%d")

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class CycloneDataPoint:
    """A single cyclone observation"""
    date: str
    time: str
    latitude: float
    longitude: float
    grade: str
    wind_speed: float  # km/h
    cyclone_id: Optional[int]
    pressure: int  # hPa
    basin: str
    shape: str
    name: str = DEFAULT_NAME

    @property
    def timestamp(self) -> str:
        """Animation frame key"""
        return f"{self.date} {self.time}"

    @property
    def year(self) -> Optional[int]:
        return parse_year(self.date)

    @property
    def color(self) -> str:
        return grade_color(self.grade)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses"""
        result = asdict(self)
        result["timestamp"] = self.timestamp
        result["color"] = self.color
        return result


def parse_float(value: Any) -> Optional[float]:
    """
    Parse the leading decimal number of a value.

    Args:
        value: Raw JSON value (string or number)

    Returns:
        Finite float, or None if nothing numeric leads the value
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            result = float(value)
        else:
            match = _FLOAT_PREFIX.match(str(value))
            if not match:
                return None
            result = float(match.group(1))
    except OverflowError:
        return None
    return result if math.isfinite(result) else None


def parse_int(value: Any) -> Optional[int]:
    """
    Parse the leading integer of a value ("3.0" -> 3, "1000 hPa" -> 1000).

    Args:
        value: Raw JSON value (string or number)

    Returns:
        Integer, or None if nothing numeric leads the value
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_year(date: str) -> Optional[int]:
    """Year of a dd-mm-yyyy date string, or None if it does not parse"""
    if not date:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date.strip(), fmt).year
        except ValueError:
            continue
    return None


def grade_color(grade: str) -> str:
    return GRADE_COLORS.get(grade, DEFAULT_GRADE_COLOR)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_record(row: Dict[str, Any]) -> Optional[CycloneDataPoint]:
    """
    Convert a raw record into a CycloneDataPoint.

    Returns None when either coordinate fails to parse to a finite number.
    Wind speed is converted from knots to km/h; an unparseable wind speed or
    pressure becomes 0 and a missing name becomes "Unknown".
    """
    latitude = parse_float(row.get(FIELD_LATITUDE))
    longitude = parse_float(row.get(FIELD_LONGITUDE))
    if latitude is None or longitude is None:
        return None

    wind_kt = parse_float(row.get(FIELD_WIND_KT))
    wind_speed = wind_kt * KNOTS_TO_KMH if wind_kt is not None else 0.0

    return CycloneDataPoint(
        date=_text(row.get(FIELD_DATE)),
        time=_text(row.get(FIELD_TIME)),
        latitude=latitude,
        longitude=longitude,
        grade=_text(row.get(FIELD_GRADE)),
        wind_speed=wind_speed,
        cyclone_id=parse_int(row.get(FIELD_SERIAL)),
        pressure=parse_int(row.get(FIELD_PRESSURE)) or 0,
        basin=_text(row.get(FIELD_BASIN)),
        shape=_text(row.get(FIELD_SHAPE)),
        name=_text(row.get(FIELD_NAME)) or DEFAULT_NAME,
    )


def normalize_records(rows: Iterable[Any]) -> List[CycloneDataPoint]:
    """Normalize raw records, keeping only points with valid coordinates"""
    points = []
    skipped = 0
    for row in rows:
        if not isinstance(row, dict):
            skipped += 1
            continue
        point = normalize_record(row)
        if point is None:
            skipped += 1
            continue
        points.append(point)

    if skipped:
        logger.debug(f"Skipped {skipped} records without valid coordinates")
    return points
