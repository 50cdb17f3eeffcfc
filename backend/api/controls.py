"""
Playback Controls

State behind the two range inputs of the cyclone map: the year slider and
the animation (timestamp) slider.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from backend.processing.aggregation import CycloneView
from backend.processing.normalize import CycloneDataPoint


class SliderState(str, Enum):
    """Interaction state of the animation slider"""
    IDLE = "idle"
    SCRUBBING = "scrubbing"


class PlaybackControls:
    """
    Year and timestamp selection over a CycloneView.

    Changing the year keeps the selected timestamp string as-is, so the
    selection can point outside the new year's timestamps; current_index is
    then -1 and the current frame is empty. is_animating follows the slider's
    press/release but nothing advances frames on its own.
    """

    def __init__(self, view: CycloneView, min_year: int = 2000, max_year: int = 2022):
        if min_year > max_year:
            raise ValueError(f"min_year {min_year} is greater than max_year {max_year}")
        self.view = view
        self.min_year = min_year
        self.max_year = max_year
        self.state = SliderState.IDLE
        self.is_animating = False
        self.view.year = self._clamp_year(view.year)

    def _clamp_year(self, year: int) -> int:
        return max(self.min_year, min(year, self.max_year))

    @property
    def year(self) -> int:
        return self.view.year

    def set_year(self, year: int) -> int:
        """Move the year slider; returns the year actually selected"""
        self.view.year = self._clamp_year(year)
        return self.view.year

    @property
    def timestamps(self) -> List[str]:
        return self.view.timestamps

    @property
    def timestamp(self) -> Optional[str]:
        return self.view.timestamp

    @property
    def slider_max(self) -> int:
        return len(self.timestamps) - 1

    @property
    def current_index(self) -> int:
        try:
            return self.timestamps.index(self.view.timestamp)
        except ValueError:
            return -1

    def select_index(self, index: int) -> Optional[str]:
        """Move the animation slider to an index and select its timestamp"""
        timestamps = self.timestamps
        if not timestamps:
            self.view.timestamp = None
            return None
        index = max(0, min(index, len(timestamps) - 1))
        self.view.timestamp = timestamps[index]
        return self.view.timestamp

    def press(self) -> None:
        """Pointer down on the animation slider"""
        self.state = SliderState.SCRUBBING
        self.is_animating = False

    def release(self) -> None:
        """Pointer up on the animation slider"""
        self.state = SliderState.IDLE
        self.is_animating = True

    @property
    def current_points(self) -> List[CycloneDataPoint]:
        return self.view.current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "min_year": self.min_year,
            "max_year": self.max_year,
            "timestamp": self.timestamp,
            "index": self.current_index,
            "slider_max": self.slider_max,
            "timestamp_count": len(self.timestamps),
            "state": self.state.value,
            "is_animating": self.is_animating,
            "point_count": len(self.current_points),
        }
