from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from libs.common.config import CFG
from libs.common.exceptions import InvalidInputError
from libs.common.settings_store import MapViewPreference, MemorySettingsStore
from .geodesy import haversine_m
from .landmark import LandmarkOffsetManager
from .resolver import LocationResolver
from .types import (
    Coordinate, ExactLocation, LandmarkOffset, Resolution, format_radius, radius_for_step, snap_radius,
)

logger = logging.getLogger("libs.geo.editor")


@dataclass(frozen=True)
class Placement:
    """What the host should render after the exact point moves."""
    exact: Coordinate
    landmark: Optional[Coordinate]
    offset: Optional[LandmarkOffset]
    label: Optional[str] = None
    source: str = ""


class LocationEditor:
    """One editing session for a property's exact point, radius and landmark."""

    def __init__(
        self,
        resolver: Optional[LocationResolver] = None,
        settings=None,
        rng: Optional[random.Random] = None,
        default_city: str = CFG.DEFAULT_CITY,
        default_center: Tuple[float, float] = CFG.DEFAULT_CENTER,
    ):
        self.resolver = resolver
        self.rng = rng or random.Random()
        self.default_city = default_city
        self.default_center = Coordinate(*default_center)
        self.map_view = MapViewPreference(settings if settings is not None else MemorySettingsStore())
        self.offsets = LandmarkOffsetManager(rng=self.rng)
        self.exact: Optional[ExactLocation] = None
        self.landmark: Optional[Coordinate] = None
        self.add_landmark = True
        self._radius_m = 0

    @classmethod
    def open(
        cls,
        location: Optional[str] = None,
        location_accuracy: Optional[str] = None,
        landmark_location: Optional[str] = None,
        **kwargs,
    ) -> "LocationEditor":
        """Start a session from persisted strings; bad values are ignored."""
        editor = cls(**kwargs)
        try:
            editor._radius_m = snap_radius(float(location_accuracy)) if location_accuracy else 0
        except ValueError:
            logger.info("Ignoring unparsable accuracy %r", location_accuracy)
        exact = Coordinate.parse(location)
        landmark = Coordinate.parse(landmark_location)
        if exact is None:
            if landmark is not None:
                logger.info("Ignoring persisted landmark without an exact location")
            return editor
        editor.exact = ExactLocation(exact, editor._radius_m)
        if landmark is not None:
            try:
                editor.offsets = LandmarkOffsetManager.from_points(exact, landmark, rng=editor.rng)
                editor.landmark = landmark
                return editor
            except InvalidInputError:
                logger.info("Persisted landmark coincides with the exact location; synthesizing a new one")
        editor.landmark = editor.offsets.landmark_for(exact)
        return editor

    @property
    def radius_m(self) -> int:
        return self._radius_m

    @property
    def radius_label(self) -> str:
        return format_radius(self._radius_m)

    @property
    def offset(self) -> Optional[LandmarkOffset]:
        return self.offsets.offset

    def place_exact(self, coordinate: Coordinate, source: str = "click", label: Optional[str] = None) -> Placement:
        """Move the exact point (click, drag, search, geolocation or paste)."""
        self.exact = ExactLocation(coordinate, self._radius_m)
        if self.add_landmark:
            self.landmark = self.offsets.landmark_for(coordinate)
        return Placement(coordinate, self.landmark, self.offset if self.add_landmark else None, label, source)

    def apply_resolution(self, resolution: Resolution) -> Placement:
        return self.place_exact(resolution.coordinate, source=resolution.source or "search", label=resolution.label)

    def drag_landmark(self, coordinate: Coordinate) -> Optional[LandmarkOffset]:
        if self.exact is None or not self.add_landmark:
            return None
        try:
            offset = self.offsets.adopt_landmark(self.exact.coordinate, coordinate)
        except InvalidInputError as e:
            logger.info("Landmark drag ignored: %s", e.message)
            return None
        self.landmark = coordinate
        return offset

    def set_add_landmark(self, enabled: bool) -> Optional[Coordinate]:
        self.add_landmark = bool(enabled)
        if not self.add_landmark:
            self.landmark = None
        elif self.exact is not None:
            self.landmark = self.offsets.landmark_for(self.exact.coordinate)
        return self.landmark

    def set_radius(self, meters: float) -> int:
        self._radius_m = snap_radius(meters)
        if self.exact is not None:
            self.exact.radius_m = self._radius_m
        return self._radius_m

    def set_radius_step(self, index: int) -> int:
        return self.set_radius(radius_for_step(index))

    def toggle_map_view(self) -> str:
        return self.map_view.toggle()

    async def initial_center(self, city: Optional[str] = None) -> Coordinate:
        if self.exact is not None:
            return self.exact.coordinate
        if self.resolver is not None:
            coord = await self.resolver.geocode_city(city or self.default_city)
            if coord is not None:
                return coord
        return self.default_center

    def save(self) -> Dict[str, str]:
        if self.exact is None:
            raise InvalidInputError("Please select a location on the map or search for a place", field="location")
        out = {
            "location": self.exact.coordinate.to_string(),
            "location_accuracy": str(self._radius_m),
        }
        if self.add_landmark and self.landmark is not None:
            distance = haversine_m(self.exact.coordinate, self.landmark)
            out["landmark_location"] = self.landmark.to_string()
            out["landmark_distance"] = str(int(math.floor(distance + 0.5)))
        return out
