"""Area profiles, amenity categories and set-relative normalisation.

An ``AreaProfile`` is the enriched form of a ``CandidateArea``: raw amenity
counts, derived transport and environment signals, and an optional commute
estimate. Normalisation rescales amenity counts against the whole candidate
set, so normalised values only compare meaningfully within one search.

Usage example:
    from citysieve.domain.areas import build_area_profile, normalize_amenities
    from citysieve.domain.geodesy import GeoPoint
    from citysieve.domain.grid import make_candidate

    anchor = GeoPoint(lat=51.5074, lng=-0.1278)
    candidate = make_candidate(51.52, -0.10)
    profile = build_area_profile(candidate, {"supermarkets": 4}, anchor=anchor)
    [normalised] = normalize_amenities([profile])
    assert normalised.normalized("supermarkets") == 1.0
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType

from .geodesy import CommuteMode, GeoPoint, haversine_distance
from .grid import CandidateArea

AMENITY_SEARCH_RADIUS_M = 1000

SUPERMARKETS = "supermarkets"
HIGH_STREET = "highStreet"
PUBS_BARS = "pubsBars"
RESTAURANTS_CAFES = "restaurantsCafes"
PARKS_GREEN_SPACES = "parksGreenSpaces"
GYMS_LEISURE = "gymsLeisure"
HEALTHCARE = "healthcare"
LIBRARIES_CULTURE = "librariesCulture"
TRAIN_STATION = "trainStation"
BUS_STOP = "busStop"
SCHOOLS = "schools"

AMENITY_CATEGORIES: tuple[str, ...] = (
    SUPERMARKETS,
    HIGH_STREET,
    PUBS_BARS,
    RESTAURANTS_CAFES,
    PARKS_GREEN_SPACES,
    GYMS_LEISURE,
    HEALTHCARE,
    LIBRARIES_CULTURE,
    TRAIN_STATION,
    BUS_STOP,
)
OPTIONAL_AMENITY_CATEGORIES: tuple[str, ...] = (SCHOOLS,)

BUS_STOPS_FOR_FULL_FREQUENCY = 10
PARKS_FOR_FULL_COVERAGE = 5


class AreaType(StrEnum):
    """Distance bands from the search anchor, innermost first."""

    CITY_CENTRE = "city_centre"
    INNER_SUBURB = "inner_suburb"
    OUTER_SUBURB = "outer_suburb"
    TOWN = "town"
    RURAL = "rural"


AREA_TYPE_ORDER: tuple[AreaType, ...] = tuple(AreaType)

# Upper bounds (exclusive, km) for each band; anything further is rural.
_AREA_TYPE_THRESHOLDS_KM: tuple[tuple[float, AreaType], ...] = (
    (3.0, AreaType.CITY_CENTRE),
    (8.0, AreaType.INNER_SUBURB),
    (15.0, AreaType.OUTER_SUBURB),
    (25.0, AreaType.TOWN),
)


def classify_area_type(distance_km: float) -> AreaType:
    for limit, area_type in _AREA_TYPE_THRESHOLDS_KM:
        if distance_km < limit:
            return area_type
    return AreaType.RURAL


def area_type_index(area_type: AreaType) -> int:
    return AREA_TYPE_ORDER.index(area_type)


@dataclass(frozen=True)
class TransportSignals:
    train_station_proximity: int = 0
    bus_frequency: float = 0.0


@dataclass(frozen=True)
class EnvironmentSignals:
    type: AreaType = AreaType.RURAL
    green_space_coverage: float = 0.0


def _empty_counts() -> Mapping[str, int]:
    return MappingProxyType({})


def _empty_scores() -> Mapping[str, float]:
    return MappingProxyType({})


@dataclass(frozen=True)
class AreaProfile:
    """Enriched candidate area ready for normalisation, filtering and scoring."""

    id: str
    name: str
    coordinates: GeoPoint
    amenities: Mapping[str, int] = field(default_factory=_empty_counts)
    normalized_amenities: Mapping[str, float] = field(default_factory=_empty_scores)
    transport: TransportSignals = field(default_factory=TransportSignals)
    environment: EnvironmentSignals = field(default_factory=EnvironmentSignals)
    outcode: str | None = None
    commute_estimate: float | None = None
    commute_breakdown: Mapping[CommuteMode, float] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amenities", MappingProxyType(dict(self.amenities)))
        object.__setattr__(
            self, "normalized_amenities", MappingProxyType(dict(self.normalized_amenities))
        )
        if self.commute_breakdown is not None:
            object.__setattr__(
                self, "commute_breakdown", MappingProxyType(dict(self.commute_breakdown))
            )

    def count(self, category: str) -> int:
        return self.amenities.get(category, 0)

    def normalized(self, category: str) -> float:
        """Normalised value for ``category``; 0 before normalisation has run."""
        return self.normalized_amenities.get(category, 0.0)

    @property
    def area_type(self) -> AreaType:
        return self.environment.type


def derive_transport_signals(amenities: Mapping[str, int]) -> TransportSignals:
    trains = amenities.get(TRAIN_STATION, 0)
    bus_stops = amenities.get(BUS_STOP, 0)
    return TransportSignals(
        train_station_proximity=1 if trains > 0 else 0,
        bus_frequency=min(bus_stops / BUS_STOPS_FOR_FULL_FREQUENCY, 1.0),
    )


def derive_environment_signals(
    amenities: Mapping[str, int], distance_from_anchor_km: float
) -> EnvironmentSignals:
    parks = amenities.get(PARKS_GREEN_SPACES, 0)
    return EnvironmentSignals(
        type=classify_area_type(distance_from_anchor_km),
        green_space_coverage=min(parks / PARKS_FOR_FULL_COVERAGE, 1.0),
    )


def build_area_profile(
    candidate: CandidateArea,
    amenities: Mapping[str, int],
    *,
    anchor: GeoPoint,
    name: str | None = None,
    outcode: str | None = None,
    commute: Mapping[CommuteMode, float] | None = None,
) -> AreaProfile:
    """Turn a candidate plus its amenity counts into an unnormalised profile.

    ``commute`` is a per-mode breakdown; when present and non-empty the
    fastest mode becomes the profile's commute estimate.
    """
    distance_km = haversine_distance(anchor, candidate.coordinates)
    commute_estimate: float | None = None
    breakdown: Mapping[CommuteMode, float] | None = None
    if commute:
        breakdown = commute
        commute_estimate = min(commute.values())
    return AreaProfile(
        id=candidate.id,
        name=name if name is not None else (candidate.name or candidate.id),
        coordinates=candidate.coordinates,
        amenities=amenities,
        transport=derive_transport_signals(amenities),
        environment=derive_environment_signals(amenities, distance_km),
        outcode=outcode,
        commute_estimate=commute_estimate,
        commute_breakdown=breakdown,
    )


def normalize_amenities(areas: Iterable[AreaProfile]) -> list[AreaProfile]:
    """Rescale amenity counts to [0, 1] against the maximum in this set.

    Every category seen in any area gets a maximum with a floor of 1, so an
    all-zero category normalises to 0 rather than dividing by zero. Returns
    new profiles; inputs are untouched.
    """
    area_list = list(areas)
    if not area_list:
        return []

    categories: list[str] = []
    for area in area_list:
        for category in area.amenities:
            if category not in categories:
                categories.append(category)

    max_counts = {
        category: max(1, *(area.count(category) for area in area_list))
        for category in categories
    }
    return [
        replace(
            area,
            normalized_amenities={
                category: area.count(category) / max_counts[category] for category in categories
            },
        )
        for area in area_list
    ]
