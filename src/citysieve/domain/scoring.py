"""Weighted multi-criteria scoring and ranking of candidate areas.

Usage example:
    from citysieve.domain.scoring import score_and_rank_with_details

    result = score_and_rank_with_details(profiles, preferences, top_n=10)
    for scored in result.top_results:
        print(scored.area.name, scored.score, scored.highlights)
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .areas import (
    GYMS_LEISURE,
    HEALTHCARE,
    HIGH_STREET,
    LIBRARIES_CULTURE,
    PARKS_GREEN_SPACES,
    PUBS_BARS,
    RESTAURANTS_CAFES,
    SUPERMARKETS,
    AreaProfile,
    AreaType,
    normalize_amenities,
)
from .filters import RejectedArea, apply_hard_filters_with_reasons
from .geodesy import CommuteMode, best_commute_time
from .preferences import UserPreferenceProfile
from .weights import ScoringWeights, extract_weights

DEFAULT_TOP_N = 10
HIGHLIGHT_COUNT = 3
FAMILY_PROXIMITY_ZERO_MINUTES = 120.0

PUBLIC_TRANSPORT = "publicTransport"
TRAIN_STATION_DIMENSION = "trainStation"
PEACE_AND_QUIET = "peaceAndQuiet"
COMMUTE = "commute"
FAMILY_PROXIMITY = "familyProximity"
SOCIAL_SCENE = "socialScene"

# Amenity dimension -> ScoringWeights attribute.
AMENITY_DIMENSIONS: tuple[tuple[str, str], ...] = (
    (SUPERMARKETS, "supermarkets"),
    (HIGH_STREET, "high_street"),
    (PUBS_BARS, "pubs_bars"),
    (RESTAURANTS_CAFES, "restaurants_cafes"),
    (PARKS_GREEN_SPACES, "parks_green_spaces"),
    (GYMS_LEISURE, "gyms_leisure"),
    (HEALTHCARE, "healthcare"),
    (LIBRARIES_CULTURE, "libraries_culture"),
)

# Heuristic proxy: no acoustic data source exists.
PEACE_AND_QUIET_BY_TYPE: dict[AreaType, float] = {
    AreaType.RURAL: 0.8,
    AreaType.TOWN: 0.8,
    AreaType.OUTER_SUBURB: 0.6,
    AreaType.INNER_SUBURB: 0.3,
    AreaType.CITY_CENTRE: 0.3,
}

DIMENSION_LABELS: dict[str, str] = {
    SUPERMARKETS: "Supermarkets",
    HIGH_STREET: "High street",
    PUBS_BARS: "Pubs & bars",
    RESTAURANTS_CAFES: "Dining out",
    PARKS_GREEN_SPACES: "Green spaces",
    GYMS_LEISURE: "Gyms & leisure",
    HEALTHCARE: "Healthcare",
    LIBRARIES_CULTURE: "Culture",
    PUBLIC_TRANSPORT: "Public transport",
    TRAIN_STATION_DIMENSION: "Train access",
    PEACE_AND_QUIET: "Peace & quiet",
    COMMUTE: "Short commute",
    FAMILY_PROXIMITY: "Near family",
    SOCIAL_SCENE: "Social scene",
}


def _empty_breakdown() -> Mapping[str, int]:
    return MappingProxyType({})


@dataclass(frozen=True)
class DimensionScore:
    name: str
    weight: float
    score: float


@dataclass(frozen=True)
class ScoredArea:
    area: AreaProfile
    score: float
    highlights: tuple[str, ...] = ()
    breakdown: Mapping[str, int] = field(default_factory=_empty_breakdown)
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self) -> None:
        object.__setattr__(self, "breakdown", MappingProxyType(dict(self.breakdown)))


@dataclass(frozen=True)
class ScoringResult:
    top_results: tuple[ScoredArea, ...]
    rejected: tuple[RejectedArea, ...]
    passed_but_not_top: tuple[ScoredArea, ...]


def dimension_label(name: str) -> str:
    return DIMENSION_LABELS.get(name, name)


def peace_and_quiet_score(area_type: AreaType) -> float:
    return PEACE_AND_QUIET_BY_TYPE.get(area_type, 0.3)


def dimension_scores(
    area: AreaProfile, weights: ScoringWeights, profile: UserPreferenceProfile
) -> list[DimensionScore]:
    """Build the (dimension, weight, score) entries for one area, scores in [0, 1]."""
    entries = [
        DimensionScore(name, getattr(weights, attr), area.normalized(name))
        for name, attr in AMENITY_DIMENSIONS
    ]
    entries.append(
        DimensionScore(PUBLIC_TRANSPORT, weights.public_transport, area.transport.bus_frequency)
    )
    entries.append(
        DimensionScore(
            TRAIN_STATION_DIMENSION,
            weights.train_station,
            float(area.transport.train_station_proximity),
        )
    )
    entries.append(
        DimensionScore(
            PEACE_AND_QUIET, weights.peace_and_quiet, peace_and_quiet_score(area.area_type)
        )
    )

    max_commute = profile.commute.max_commute_time
    if area.commute_estimate is not None and max_commute > 0:
        commute_score = max(0.0, 1 - area.commute_estimate / max_commute)
        entries.append(DimensionScore(COMMUTE, weights.commute, commute_score))

    family_location = profile.family.family_location
    if family_location is not None:
        modes = profile.commute.commute_modes or (CommuteMode.DRIVE,)
        minutes = best_commute_time(area.coordinates, family_location, modes)
        family_score = max(0.0, 1 - minutes / FAMILY_PROXIMITY_ZERO_MINUTES)
        entries.append(DimensionScore(FAMILY_PROXIMITY, weights.family_proximity, family_score))

    social_score = (area.normalized(PUBS_BARS) + area.normalized(RESTAURANTS_CAFES)) / 2
    entries.append(DimensionScore(SOCIAL_SCENE, weights.social_scene, social_score))
    return entries


def composite_score(entries: Iterable[DimensionScore]) -> float:
    """Weighted mean scaled to 0-100, rounded to one decimal place.

    A zero total weight scores 0 rather than dividing by zero.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for entry in entries:
        total_weight += entry.weight
        weighted_sum += entry.weight * entry.score
    if total_weight <= 0:
        return 0.0
    raw = weighted_sum / total_weight * 100
    return round_half_up(max(0.0, min(100.0, raw)), 1)


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round with halves going up, so 12.5 becomes 13 rather than 12."""
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def select_highlights(
    entries: Iterable[DimensionScore], count: int = HIGHLIGHT_COUNT
) -> tuple[str, ...]:
    weighted = [entry for entry in entries if entry.weight > 0]
    weighted.sort(key=lambda entry: entry.score, reverse=True)
    return tuple(entry.name for entry in weighted[:count])


def score_area(
    area: AreaProfile, weights: ScoringWeights, profile: UserPreferenceProfile
) -> ScoredArea:
    entries = dimension_scores(area, weights, profile)
    return ScoredArea(
        area=area,
        score=composite_score(entries),
        highlights=select_highlights(entries),
        breakdown={entry.name: int(round_half_up(entry.score * 100)) for entry in entries},
        weights=weights,
    )


def _rank(scored: Iterable[ScoredArea]) -> list[ScoredArea]:
    # sorted() is stable, so equal scores keep their arrival order.
    return sorted(scored, key=lambda item: item.score, reverse=True)


def score_and_rank_with_details(
    areas: Iterable[AreaProfile],
    profile: UserPreferenceProfile,
    *,
    top_n: int = DEFAULT_TOP_N,
) -> ScoringResult:
    """Normalise, filter, score and rank in one pass, keeping every outcome."""
    normalised = normalize_amenities(areas)
    filtered = apply_hard_filters_with_reasons(normalised, profile)
    weights = extract_weights(profile)
    ranked = _rank(score_area(area, weights, profile) for area in filtered.passed)
    return ScoringResult(
        top_results=tuple(ranked[:top_n]),
        rejected=filtered.rejected,
        passed_but_not_top=tuple(ranked[top_n:]),
    )


def score_and_rank_areas(
    areas: Iterable[AreaProfile],
    profile: UserPreferenceProfile,
    *,
    top_n: int = DEFAULT_TOP_N,
) -> list[ScoredArea]:
    """Return the best ``top_n`` areas by descending score; empty when none pass."""
    return list(score_and_rank_with_details(areas, profile, top_n=top_n).top_results)


def get_rejected_areas(
    areas: Iterable[AreaProfile], profile: UserPreferenceProfile
) -> list[RejectedArea]:
    normalised = normalize_amenities(areas)
    return list(apply_hard_filters_with_reasons(normalised, profile).rejected)
