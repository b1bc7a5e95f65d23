"""Geospatial math: great-circle distance, initial bearing and compass labels."""

import math
from dataclasses import dataclass

R = 6_371_000.0  # mean Earth radius in meters

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"lat out of range: {self.lat}")
        if not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"lng out of range: {self.lng}")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def distance(a: Coordinate, b: Coordinate) -> int:
    """Distance in whole meters between two coordinates (haversine formula)."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlam = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    h = min(1.0, h)
    return _round_half_up(2 * R * math.atan2(math.sqrt(h), math.sqrt(1 - h)))


def bearing(start: Coordinate, end: Coordinate) -> int:
    """Initial great-circle bearing from start to end, in whole degrees [0, 360)."""
    phi1, phi2 = math.radians(start.lat), math.radians(end.lat)
    dlam = math.radians(end.lng - start.lng)
    y = math.sin(dlam) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlam)
    deg = math.degrees(math.atan2(y, x))
    if deg < 0:
        deg += 360.0
    # 359.5 and above rounds to 360, which is north again
    return _round_half_up(deg) % 360


def compass_label(bearing_deg: int) -> str:
    """Map a bearing to one of 8 compass points; sector boundaries round up."""
    sector = int(math.floor((bearing_deg % 360) / 45.0 + 0.5))
    return COMPASS_POINTS[sector % 8]


def format_distance(meters: int) -> str:
    if meters < 1000:
        return f"{meters} m"
    return f"{meters / 1000:.1f} km"
