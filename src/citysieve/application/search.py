"""Search orchestration: generate, validate, enrich, score and name.

One call runs a complete search for a preference profile. Collaborators are
injected so tests can drive the whole flow with fakes; the CLI wires the
concrete HTTP adapters in ``citysieve.composition``.

Usage example:
    import asyncio

    from citysieve.application.search import run_search
    from citysieve.config import SearchConfig

    outcome = asyncio.run(
        run_search(
            profile,
            config=SearchConfig(),
            resolver=postcodes,
            amenity_counter=overpass,
            postcode_lookup=postcodes,
            name_resolver=nominatim,
            geocoder=nominatim,
        )
    )
    for scored in outcome.result.top_results:
        print(scored.area.name, scored.score)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from ..config import SearchConfig
from ..domain.area_names import directional_name
from ..domain.geodesy import GeoPoint
from ..domain.grid import dedupe_candidates
from ..domain.preferences import UserPreferenceProfile
from ..domain.scoring import ScoredArea, ScoringResult, score_and_rank_with_details
from ..exceptions import DependencyMissingError
from ..observability import get_logger
from ..protocols import (
    AmenityCounter,
    AreaNameResolver,
    PlaceGeocoder,
    PlaceNameLookup,
    PointResolver,
    PostcodeLookup,
    ProgressReporter,
)
from .candidates import generate_valid_candidates, supplementary_candidates
from .enrichment import enrich_candidates

logger = get_logger("citysieve.search")

# Greater Manchester; used when the user gives neither a work nor a family location.
UK_DEFAULT_CENTRE = GeoPoint(lat=53.48, lng=-2.24)
SEARCH_RING_STEP_KM = 20.0


@dataclass(frozen=True)
class SearchOutcome:
    """Everything a single search produced, for reporting and artefacts."""

    centre: GeoPoint
    radius_km: float
    inner_km: float | None
    spacing_km: float
    densified: bool
    candidate_count: int
    enriched_count: int
    unverified_ids: frozenset[str]
    result: ScoringResult

    @property
    def has_results(self) -> bool:
        return bool(self.result.top_results)


def resolve_search_centre(profile: UserPreferenceProfile) -> GeoPoint:
    """Work location, else family location, else a default in the middle of the UK."""
    if profile.commute.work_location is not None:
        return profile.commute.work_location.as_point()
    if profile.family.family_location is not None:
        return profile.family.family_location.as_point()
    return UK_DEFAULT_CENTRE


def next_ring(radius_km: float, step_km: float = SEARCH_RING_STEP_KM) -> tuple[float, float]:
    """The ``(inner_km, radius_km)`` ring that extends a search one step further out."""
    return radius_km, radius_km + step_km


async def _area_name(
    scored: ScoredArea,
    centre: GeoPoint,
    name_resolver: AreaNameResolver | PlaceNameLookup,
) -> str | None:
    point = scored.area.coordinates
    try:
        if isinstance(name_resolver, PlaceNameLookup):
            place = await asyncio.to_thread(name_resolver.reverse_lookup, point)
            if place is None:
                return None
            return directional_name(place.name, place.address_type, centre, point)
        return await asyncio.to_thread(name_resolver.reverse_geocode, point)
    except Exception as exc:
        logger.debug("Reverse geocoding failed for %s: %s", scored.area.id, exc)
        return None


async def name_top_results(
    top_results: Sequence[ScoredArea],
    centre: GeoPoint,
    name_resolver: AreaNameResolver | PlaceNameLookup | None,
) -> tuple[ScoredArea, ...]:
    """Replace postcode-based names with neighbourhood names where one is found.

    Names never affect scores; a failed lookup keeps the existing name.
    Lookups run one at a time to respect the geocoder's usage policy.
    """
    if name_resolver is None:
        return tuple(top_results)
    named: list[ScoredArea] = []
    for scored in top_results:
        name = await _area_name(scored, centre, name_resolver)
        if name:
            scored = replace(scored, area=replace(scored.area, name=name))
        named.append(scored)
    return tuple(named)


async def run_search(
    profile: UserPreferenceProfile,
    *,
    config: SearchConfig,
    resolver: PointResolver | None,
    amenity_counter: AmenityCounter | None,
    postcode_lookup: PostcodeLookup | None = None,
    name_resolver: AreaNameResolver | PlaceNameLookup | None = None,
    geocoder: PlaceGeocoder | None = None,
    centre: GeoPoint | None = None,
    inner_km: float | None = None,
    progress: ProgressReporter | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> SearchOutcome:
    """Run one search and return the ranked, rejected and leftover areas.

    Args:
        profile: The user's preferences.
        config: Search configuration (radius, top-n, batch sizes).
        resolver: Land validity collaborator (required).
        amenity_counter: Amenity collaborator (required).
        postcode_lookup: Optional; supplies outcode-based display names.
        name_resolver: Optional; renames the top results after ranking.
        geocoder: Optional; needed to add candidates around "considering" areas.
        centre: Overrides the centre derived from the profile.
        inner_km: When set, only the ring ``(inner_km, config.radius_km]`` is searched.
        progress: Optional progress reporter for enrichment.
        should_stop: Optional cancellation check between enrichment batches.

    Returns:
        SearchOutcome with the scoring result and run statistics.
    """
    if resolver is None:
        raise DependencyMissingError("PointResolver", reason="Inject it at the entry point.")
    if amenity_counter is None:
        raise DependencyMissingError("AmenityCounter", reason="Inject it at the entry point.")

    search_centre = centre or resolve_search_centre(profile)
    logger.info(
        "Searching %.1f km around (%.4f, %.4f)",
        config.radius_km,
        search_centre.lat,
        search_centre.lng,
    )

    grid = await generate_valid_candidates(
        search_centre,
        config.radius_km,
        resolver,
        inner_km=inner_km,
        batch_size=config.validation_batch_size,
    )
    candidates = list(grid.candidates)
    unverified = set(grid.unverified)

    considering = profile.environment.considering_areas
    if considering and inner_km is None:
        if geocoder is None:
            logger.info("No geocoder configured; ignoring %s considering areas", len(considering))
        else:
            extras = await supplementary_candidates(
                considering,
                geocoder,
                resolver,
                (candidate.id for candidate in candidates),
                batch_size=config.validation_batch_size,
            )
            logger.info("Added %s candidates around considering areas", len(extras.valid))
            candidates = dedupe_candidates(candidates, extras.valid)
            unverified.update(extras.unverified)

    profiles = await enrich_candidates(
        candidates,
        profile=profile,
        anchor=search_centre,
        amenity_counter=amenity_counter,
        postcode_lookup=postcode_lookup,
        batch_size=config.enrichment_batch_size,
        progress=progress,
        should_stop=should_stop,
    )

    result = score_and_rank_with_details(profiles, profile, top_n=config.top_n)
    top_results = await name_top_results(result.top_results, search_centre, name_resolver)
    result = replace(result, top_results=top_results)

    logger.info(
        "Search complete: %s ranked, %s rejected, %s passed but not top",
        len(result.top_results),
        len(result.rejected),
        len(result.passed_but_not_top),
    )
    return SearchOutcome(
        centre=search_centre,
        radius_km=config.radius_km,
        inner_km=inner_km,
        spacing_km=grid.spacing_km,
        densified=grid.densified,
        candidate_count=len(candidates),
        enriched_count=len(profiles),
        unverified_ids=frozenset(unverified),
        result=result,
    )
