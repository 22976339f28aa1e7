"""Geodesy helpers and straight-line commute estimates.

Usage example:
    from citysieve.domain.geodesy import CommuteMode, GeoPoint, best_commute_time

    home = GeoPoint(lat=51.4613, lng=-0.1156)
    office = GeoPoint(lat=51.5074, lng=-0.1278)
    minutes = best_commute_time(home, office, (CommuteMode.TRAIN, CommuteMode.CYCLE))
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0


class CommuteMode(StrEnum):
    """Transport modes a commuter may use."""

    DRIVE = "drive"
    TRAIN = "train"
    BUS = "bus"
    CYCLE = "cycle"
    WALK = "walk"


# Average door-to-door speeds (km/h) and fixed overheads (minutes).
COMMUTE_SPEEDS_KMH: dict[CommuteMode, float] = {
    CommuteMode.DRIVE: 30.0,
    CommuteMode.TRAIN: 50.0,
    CommuteMode.BUS: 15.0,
    CommuteMode.CYCLE: 15.0,
    CommuteMode.WALK: 5.0,
}
COMMUTE_OVERHEAD_MINUTES: dict[CommuteMode, float] = {
    CommuteMode.TRAIN: 10.0,
}


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 coordinate pair."""

    lat: float
    lng: float


@dataclass(frozen=True)
class GeoLocation(GeoPoint):
    """A point with the label the user typed or picked."""

    label: str = ""

    def as_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


def haversine_distance(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(p2.lat - p1.lat)
    d_lng = math.radians(p2.lng - p1.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(p1.lat)) * math.cos(math.radians(p2.lat)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def km_per_degree_lng(lat: float) -> float:
    """Kilometres per degree of longitude at ``lat`` (local approximation)."""
    return KM_PER_DEGREE * math.cos(math.radians(lat))


def km_to_lat_degrees(km: float) -> float:
    return km / KM_PER_DEGREE


def km_to_lng_degrees(km: float, lat: float) -> float:
    return km / km_per_degree_lng(lat)


def estimate_commute_time(origin: GeoPoint, destination: GeoPoint, mode: CommuteMode) -> float:
    """Estimate one-way commute minutes from straight-line distance."""
    distance_km = haversine_distance(origin, destination)
    speed = COMMUTE_SPEEDS_KMH.get(mode, COMMUTE_SPEEDS_KMH[CommuteMode.DRIVE])
    return (distance_km / speed) * 60 + COMMUTE_OVERHEAD_MINUTES.get(mode, 0.0)


def best_commute_time(
    origin: GeoPoint, destination: GeoPoint, modes: Iterable[CommuteMode]
) -> float:
    """Fastest estimate across ``modes``; driving when no mode is given."""
    times = [estimate_commute_time(origin, destination, mode) for mode in modes]
    if not times:
        return estimate_commute_time(origin, destination, CommuteMode.DRIVE)
    return min(times)


def commute_breakdown(
    origin: GeoPoint, destination: GeoPoint, modes: Iterable[CommuteMode]
) -> dict[CommuteMode, float]:
    """Per-mode commute estimates, in the order the modes were given."""
    return {mode: estimate_commute_time(origin, destination, mode) for mode in modes}


def format_minutes(minutes: float) -> str:
    """Render a duration as ``25 mins``, ``1h`` or ``1h 5m``."""
    whole = int(round(minutes))
    if whole < 60:
        return f"{whole} mins"
    hours, mins = divmod(whole, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
