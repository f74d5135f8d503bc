"""Keeps the public landmark rigidly attached to the private exact point.

The landmark is never stored on its own: it is always the exact point
projected along a (bearing, distance) offset. Once an offset exists, moving
the exact point reuses it; only a manual landmark drag replaces it.
"""
from __future__ import annotations
import logging
import random
from enum import Enum
from typing import Optional, Sequence

from libs.common.exceptions import InvalidInputError
from .geodesy import COMPASS_BEARINGS, destination_point, haversine_m, initial_bearing
from .types import Coordinate, LandmarkOffset

logger = logging.getLogger("libs.geo.landmark")

MIN_LANDMARK_DISTANCE_M = 150
MAX_LANDMARK_DISTANCE_M = 350


class OffsetState(str, Enum):
    NO_OFFSET = "no_offset"
    ESTABLISHED = "offset_established"


def offset_between(exact: Coordinate, landmark: Coordinate) -> LandmarkOffset:
    distance = haversine_m(exact, landmark)
    if distance <= 0:
        raise InvalidInputError("Landmark must not coincide with the exact location", field="landmark")
    return LandmarkOffset(initial_bearing(exact, landmark), distance)


class LandmarkOffsetManager:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        offset: Optional[LandmarkOffset] = None,
        min_distance_m: int = MIN_LANDMARK_DISTANCE_M,
        max_distance_m: int = MAX_LANDMARK_DISTANCE_M,
        bearings: Sequence[float] = tuple(COMPASS_BEARINGS.values()),
    ):
        self.rng = rng or random.Random()
        self.offset = offset
        self.min_distance_m = min_distance_m
        self.max_distance_m = max_distance_m
        self.bearings = tuple(bearings)

    @classmethod
    def from_points(cls, exact: Coordinate, landmark: Coordinate, rng: Optional[random.Random] = None) -> "LandmarkOffsetManager":
        """Resume a session whose landmark was persisted next to the exact point."""
        return cls(rng=rng, offset=offset_between(exact, landmark))

    @property
    def state(self) -> OffsetState:
        return OffsetState.ESTABLISHED if self.offset is not None else OffsetState.NO_OFFSET

    def synthesize(self) -> LandmarkOffset:
        distance = self.rng.randint(self.min_distance_m, self.max_distance_m)
        bearing = self.rng.choice(self.bearings)
        return LandmarkOffset(bearing, float(distance))

    def ensure_offset(self) -> LandmarkOffset:
        if self.offset is None:
            self.offset = self.synthesize()
            logger.debug("Synthesized landmark offset bearing=%.0f distance=%.0f", self.offset.bearing_deg, self.offset.distance_m)
        return self.offset

    def landmark_for(self, exact: Coordinate) -> Coordinate:
        """Landmark for ``exact``, synthesizing the offset the first time."""
        offset = self.ensure_offset()
        return destination_point(exact, offset.bearing_deg, offset.distance_m)

    def adopt_landmark(self, exact: Coordinate, landmark: Coordinate) -> LandmarkOffset:
        """A hand-placed landmark overrides the preserved offset from now on."""
        self.offset = offset_between(exact, landmark)
        return self.offset
