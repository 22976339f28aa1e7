"""Hexagonal candidate grid and adaptive density policy.

A hex lattice covers an area more uniformly than a square grid, so fewer
candidates (and therefore fewer upstream lookups) are needed for the same
coverage.

Usage example:
    from citysieve.domain.geodesy import GeoPoint
    from citysieve.domain.grid import generate_candidate_areas

    london = GeoPoint(lat=51.5074, lng=-0.1278)
    candidates = generate_candidate_areas(london, radius_km=5, spacing_km=2)
    assert all(c.id.startswith("area_") for c in candidates)
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from ..exceptions import InvalidGeometryError
from .geodesy import (
    KM_PER_DEGREE,
    GeoPoint,
    haversine_distance,
    km_per_degree_lng,
    km_to_lat_degrees,
    km_to_lng_degrees,
)

COORDINATE_DECIMALS = 4
HEX_ROW_FACTOR = math.sqrt(3) / 2

STANDARD_SPACING_KM = 3.0
MINIMUM_ACCEPTABLE_CANDIDATES = 100
MIN_DENSE_SPACING_KM = 1.8
MAX_DENSE_SPACING_KM = 2.5

# Small tolerance so lattice points that sit exactly on the boundary survive
# floating-point noise in the degree conversion.
_EDGE_EPSILON = 1e-9


@dataclass(frozen=True)
class CandidateArea:
    """A single lattice point representing a potential neighbourhood centre."""

    id: str
    coordinates: GeoPoint
    name: str = ""

    @property
    def lat(self) -> float:
        return self.coordinates.lat

    @property
    def lng(self) -> float:
        return self.coordinates.lng


def candidate_id(lat: float, lng: float) -> str:
    """Deterministic id for an already-rounded coordinate pair."""
    return f"area_{lat!r}_{lng!r}"


def make_candidate(lat: float, lng: float) -> CandidateArea:
    """Round a raw coordinate to ~11 m precision and wrap it as a candidate."""
    rounded_lat = round(lat, COORDINATE_DECIMALS)
    rounded_lng = round(lng, COORDINATE_DECIMALS)
    # Normalise negative zero so ids never contain "-0.0".
    rounded_lat = rounded_lat + 0.0
    rounded_lng = rounded_lng + 0.0
    return CandidateArea(
        id=candidate_id(rounded_lat, rounded_lng),
        coordinates=GeoPoint(lat=rounded_lat, lng=rounded_lng),
    )


def _validate_inputs(centre: GeoPoint, radius_km: float, spacing_km: float) -> None:
    if not math.isfinite(centre.lat) or not -90.0 <= centre.lat <= 90.0:
        raise InvalidGeometryError("latitude", centre.lat, "must be a finite value in [-90, 90]")
    if not math.isfinite(centre.lng) or not -180.0 <= centre.lng <= 180.0:
        raise InvalidGeometryError(
            "longitude", centre.lng, "must be a finite value in [-180, 180]"
        )
    if abs(centre.lat) >= 90.0:
        raise InvalidGeometryError("latitude", centre.lat, "must not be a pole")
    if not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidGeometryError("radius_km", radius_km, "must be a positive finite number")
    if not math.isfinite(spacing_km) or spacing_km <= 0:
        raise InvalidGeometryError("spacing_km", spacing_km, "must be a positive finite number")


def generate_candidate_areas(
    centre: GeoPoint,
    radius_km: float,
    spacing_km: float = 2.0,
) -> list[CandidateArea]:
    """Generate a hex lattice of candidates cropped to a circle around ``centre``.

    The lattice is laid out over the bounding box in degree units (111 km per
    degree of latitude, ``111 * cos(lat)`` per degree of longitude) with rows
    ``spacing * sqrt(3) / 2`` apart and every odd row shifted by half a column.
    Points further than ``radius_km`` from the centre are dropped.

    Raises:
        InvalidGeometryError: For non-finite coordinates or non-positive
            radius/spacing, or when the spacing is too coarse for
            any lattice point to land inside the radius.
    """
    _validate_inputs(centre, radius_km, spacing_km)

    lng_scale = km_per_degree_lng(centre.lat)
    spacing_lat = km_to_lat_degrees(spacing_km)
    spacing_lng = km_to_lng_degrees(spacing_km, centre.lat)
    row_spacing_lat = spacing_lat * HEX_ROW_FACTOR
    max_offset_lat = km_to_lat_degrees(radius_km)
    max_offset_lng = km_to_lng_degrees(radius_km, centre.lat)

    row_count = int(math.floor((2 * max_offset_lat) / row_spacing_lat + _EDGE_EPSILON)) + 1
    col_count = int(math.floor((2 * max_offset_lng) / spacing_lng + _EDGE_EPSILON)) + 1

    areas: list[CandidateArea] = []
    for row in range(row_count):
        d_lat = -max_offset_lat + row * row_spacing_lat
        lng_offset = spacing_lng / 2 if row % 2 == 1 else 0.0
        for col in range(col_count):
            d_lng = -max_offset_lng + col * spacing_lng + lng_offset
            dist_km = math.hypot(d_lat * KM_PER_DEGREE, d_lng * lng_scale)
            if dist_km <= radius_km + _EDGE_EPSILON:
                areas.append(make_candidate(centre.lat + d_lat, centre.lng + d_lng))
    if not areas:
        raise InvalidGeometryError(
            "spacing_km", spacing_km, f"leaves no lattice point within radius_km {radius_km!r}"
        )
    return areas


def dedupe_candidates(*groups: Iterable[CandidateArea]) -> list[CandidateArea]:
    """Concatenate candidate groups, keeping the first occurrence of each id."""
    seen: set[str] = set()
    merged: list[CandidateArea] = []
    for group in groups:
        for candidate in group:
            if candidate.id not in seen:
                seen.add(candidate.id)
                merged.append(candidate)
    return merged


def filter_ring(
    candidates: Iterable[CandidateArea], centre: GeoPoint, inner_km: float
) -> list[CandidateArea]:
    """Keep candidates strictly further than ``inner_km`` from ``centre``."""
    return [c for c in candidates if haversine_distance(centre, c.coordinates) > inner_km]


def land_ratio(raw_count: int, valid_count: int) -> float:
    """Fraction of raw lattice points that survived land validation."""
    if raw_count <= 0:
        return 1.0
    return valid_count / raw_count


def densified_spacing(
    ratio: float,
    standard_spacing_km: float = STANDARD_SPACING_KM,
    *,
    min_spacing_km: float = MIN_DENSE_SPACING_KM,
    max_spacing_km: float = MAX_DENSE_SPACING_KM,
) -> float:
    """Spacing that compensates for the share of the grid lost to sea.

    Scales the standard spacing by ``sqrt(ratio)`` (point count grows with the
    inverse square of spacing) and clamps the result so a mostly-sea grid
    cannot explode into thousands of points.
    """
    raw = standard_spacing_km * math.sqrt(max(0.0, ratio))
    return max(min_spacing_km, min(raw, max_spacing_km))


def needs_densification(
    valid_count: int, minimum: int = MINIMUM_ACCEPTABLE_CANDIDATES
) -> bool:
    return valid_count < minimum
