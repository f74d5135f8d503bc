from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import re

from libs.common.exceptions import InvalidInputError, OutOfRangeCoordinateError

# Persisted "lat,lng" strings as written by save(); no whitespace allowed.
STORED_COORD_RE = re.compile(r"^(-?\d+\.?\d*),(-?\d+\.?\d*)$")

# Accuracy radius ladder in meters. Stored radii are always one of these.
RADIUS_STEPS: Tuple[int, ...] = (0, 20, 50, 100, 200, 300, 500, 700, 900, 1100, 1300, 1500, 2000, 5000, 10000, 25000)

def in_range(lat: float, lng: float) -> bool:
    # NaN fails both comparisons
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0

@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        if not in_range(self.lat, self.lng):
            raise OutOfRangeCoordinateError(self.lat, self.lng)

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Coordinate"]:
        """Parse a persisted "lat,lng" string; None if it isn't one."""
        m = STORED_COORD_RE.match((text or "").strip())
        if not m:
            return None
        try:
            return cls(float(m.group(1)), float(m.group(2)))
        except OutOfRangeCoordinateError:
            return None

    def to_string(self) -> str:
        return f"{self.lat:.6f},{self.lng:.6f}"

    def maps_url(self) -> str:
        return f"https://www.google.com/maps?q={self.lat},{self.lng}"

    def __str__(self) -> str:
        return self.to_string()

@dataclass(frozen=True)
class LandmarkOffset:
    """Position of the public landmark relative to the exact location."""
    bearing_deg: float
    distance_m: float

    def __post_init__(self):
        if not self.distance_m > 0:
            raise InvalidInputError(f"Landmark distance must be positive, got {self.distance_m}", field="distance_m")
        bearing = self.bearing_deg % 360.0
        # tiny negatives round up to 360.0
        object.__setattr__(self, "bearing_deg", 0.0 if bearing >= 360.0 else bearing)

@dataclass
class ExactLocation:
    coordinate: Coordinate
    radius_m: int = 0

    def __post_init__(self):
        self.radius_m = snap_radius(self.radius_m)

@dataclass(frozen=True)
class SearchSuggestion:
    label: str
    coordinate: Coordinate

@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving user input: a point plus the text to redisplay."""
    coordinate: Coordinate
    label: Optional[str] = None
    source: str = ""

def radius_step_index(value: float) -> int:
    # Ties keep the lower step.
    best = 0
    best_diff = abs(RADIUS_STEPS[0] - value)
    for i, step in enumerate(RADIUS_STEPS[1:], start=1):
        diff = abs(step - value)
        if diff < best_diff:
            best, best_diff = i, diff
    return best

def snap_radius(value: Optional[float]) -> int:
    if value is None:
        return 0
    return RADIUS_STEPS[radius_step_index(float(value))]

def radius_for_step(index: int) -> int:
    index = max(0, min(int(index), len(RADIUS_STEPS) - 1))
    return RADIUS_STEPS[index]

def format_radius(value: int) -> str:
    if value == 0:
        return "0 m"
    if value < 1000:
        return f"{value} m"
    return f"{value / 1000:.1f} km"
