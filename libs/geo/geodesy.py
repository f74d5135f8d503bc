"""
Great-circle helpers on a spherical earth (mean radius 6,371,000 m).

haversine_m, initial_bearing and destination_point are mutually consistent:
projecting from ``a`` along ``initial_bearing(a, b)`` for
``haversine_m(a, b)`` meters lands back on ``b``.
"""
from __future__ import annotations
import math
from typing import Dict

from .types import Coordinate

EARTH_RADIUS_M = 6371000.0

COMPASS_BEARINGS: Dict[str, float] = {
    "north": 0.0,
    "northeast": 45.0,
    "east": 90.0,
    "southeast": 135.0,
    "south": 180.0,
    "southwest": 225.0,
    "west": 270.0,
    "northwest": 315.0,
}

def wrap_lon(lon: float) -> float:
    # Normalize to [-180, 180)
    x = (lon + 180.0) % 360.0 - 180.0
    # Edge case when lon == 180
    if x == -180.0 and lon > 0:
        x = 180.0
    return x

def haversine_m(a: Coordinate, b: Coordinate) -> float:
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))

def initial_bearing(a: Coordinate, b: Coordinate) -> float:
    """Forward azimuth from ``a`` to ``b`` in degrees, in [0, 360)."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dlambda = math.radians(b.lng - a.lng)
    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -0.0 % 360 and tiny negatives can round up to 360.0
    return 0.0 if bearing >= 360.0 else bearing

def destination_point(origin: Coordinate, bearing_deg: float, distance_m: float) -> Coordinate:
    """Point reached travelling ``distance_m`` from ``origin`` on ``bearing_deg``."""
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(origin.lat)
    lambda1 = math.radians(origin.lng)

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    lat = max(-90.0, min(90.0, math.degrees(phi2)))
    return Coordinate(lat, wrap_lon(math.degrees(lambda2)))
