"""
Historical Cyclone Data Module
Loads and serves North Indian Ocean cyclonic event observations

Data Source: IMD best track data of cyclonic disturbances over the North
Indian Ocean, exported as a JSON array of observation records.
"""

import os
import json
import aiohttp
from typing import Optional, List, Dict, Any
from pathlib import Path
import logging

from backend.processing.normalize import (
    CycloneDataPoint,
    GRADE_COLORS,
    GRADE_NAMES,
    DEFAULT_GRADE_COLOR,
    normalize_records,
)
from backend.processing.aggregation import (
    CycloneView,
    group_by_storm,
    unique_timestamps,
    points_at_timestamp,
    summarize_storm,
    summarize_storms,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Local data directory
DATA_DIR = Path(__file__).parent.parent / "data"
DATA_FILE = Path(os.getenv("CYCLONE_DATA_FILE", str(DATA_DIR / "cyclonic_events.json")))

# Remote copy of the dataset, used when the local file is missing
DATA_URL = os.getenv("CYCLONE_DATA_URL", "")
DOWNLOAD_TIMEOUT = float(os.getenv("CYCLONE_DOWNLOAD_TIMEOUT", "120"))

# Year slider bounds
MIN_YEAR = 2000
MAX_YEAR = 2022


class CycloneDataManager:
    """Manages the cyclone observation collection"""

    def __init__(self, data_file: Optional[Path] = None):
        self.data_file = Path(data_file) if data_file else DATA_FILE
        self.points: List[CycloneDataPoint] = []
        self.points_by_year: Dict[int, List[CycloneDataPoint]] = {}
        self.view = CycloneView(year=MIN_YEAR)
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def download_data(self, url: Optional[str] = None) -> bool:
        """Download the cyclonic events JSON document"""
        url = url or DATA_URL
        if not url:
            logger.warning("No CYCLONE_DATA_URL configured, skipping download")
            return False

        logger.info(f"Downloading cyclone data from {url}")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, timeout=aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT)) as response:
                    if response.status == 200:
                        content = await response.read()
                        self.data_file.parent.mkdir(parents=True, exist_ok=True)
                        with open(self.data_file, 'wb') as f:
                            f.write(content)
                        logger.info(f"Downloaded {len(content)} bytes to {self.data_file}")
                        return True
                    else:
                        logger.error(f"Failed to download: HTTP {response.status}")
                        return False
        except Exception as e:
            logger.error(f"Download error: {e}")
            return False

    def load_json_data(self, path: Optional[Path] = None, force: bool = False) -> bool:
        """Load cyclone observations from the JSON file"""
        if self._loaded and not force:
            return True

        filepath = Path(path) if path else self.data_file

        if not filepath.exists():
            logger.warning(f"Data file not found: {filepath}")
            return False

        logger.info(f"Loading cyclone data from {filepath}")

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                rows = json.load(f)
            if not isinstance(rows, list):
                raise ValueError(f"expected a JSON array, got {type(rows).__name__}")
            points = normalize_records(rows)
        except (OSError, ValueError, OverflowError) as e:
            logger.error(f"Error fetching cyclone data: {e}")
            return False

        self.set_points(points)
        self._loaded = True
        logger.info(
            f"Loaded {len(self.points)} of {len(rows)} observations "
            f"across {len(self.points_by_year)} years"
        )
        return True

    def set_points(self, points: List[CycloneDataPoint]) -> None:
        """Replace the collection and rebuild the year index"""
        self.points = list(points)
        self.points_by_year = {}
        for point in self.points:
            year = point.year
            if year is None:
                continue
            self.points_by_year.setdefault(year, []).append(point)
        self.view.set_points(self.points)

    def get_available_years(self) -> List[int]:
        """Get list of years with cyclone data"""
        return sorted(self.points_by_year.keys())

    def get_points_for_year(self, year: int) -> List[CycloneDataPoint]:
        return self.points_by_year.get(year, [])

    def get_storms_by_year(self, year: int) -> List[Dict[str, Any]]:
        """Get all observations for a year, grouped by cyclone id"""
        grouped = group_by_storm(self.get_points_for_year(year))
        return [
            {
                "cyclone_id": cyclone_id,
                "points": [p.to_dict() for p in points],
                "count": len(points),
            }
            for cyclone_id, points in grouped.items()
        ]

    def get_timestamps(self, year: int) -> List[str]:
        """Distinct observation timestamps for a year, in source order"""
        return unique_timestamps(self.get_points_for_year(year))

    def get_frame(self, year: int, timestamp: str) -> List[Dict[str, Any]]:
        """All observations of a year at one timestamp"""
        return [p.to_dict() for p in points_at_timestamp(self.get_points_for_year(year), timestamp)]

    def get_storm_summaries(self, year: int) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in summarize_storms(self.get_points_for_year(year))]

    def get_storm(self, year: int, cyclone_id: int) -> Optional[Dict[str, Any]]:
        """Get a single storm's summary and observations"""
        points = group_by_storm(self.get_points_for_year(year)).get(cyclone_id)
        if not points:
            return None
        storm = summarize_storm(cyclone_id, points).to_dict()
        storm["points"] = [p.to_dict() for p in points]
        return storm

    @staticmethod
    def get_grades() -> List[Dict[str, str]]:
        """Grade codes with display names and marker colors"""
        grades = [
            {"code": code, "name": GRADE_NAMES[code], "color": color}
            for code, color in GRADE_COLORS.items()
        ]
        grades.append({"code": "", "name": "Unknown", "color": DEFAULT_GRADE_COLOR})
        return grades


# Global instance
cyclone_manager = CycloneDataManager()


async def initialize_cyclone_data(manager: Optional[CycloneDataManager] = None) -> bool:
    """Initialize cyclone data on startup"""
    manager = manager or cyclone_manager

    # Try to load from the local file first
    if manager.load_json_data():
        return True

    # Download if not available
    if not manager.data_file.exists() and await manager.download_data():
        return manager.load_json_data()

    return False
