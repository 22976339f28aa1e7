"""Candidate validation against inhabited land, with adaptive grid density.

Concrete resolvers are blocking HTTP clients, so each batch runs on a worker
thread via ``asyncio.to_thread``. A batch that fails is kept in full (fail
open); its ids are reported as unverified so callers can flag them.

Usage example:
    import asyncio

    from citysieve.application.candidates import generate_valid_candidates
    from citysieve.domain.geodesy import GeoPoint

    result = asyncio.run(
        generate_valid_candidates(GeoPoint(lat=50.72, lng=-1.88), 20, resolver)
    )
    print(result.spacing_km, result.densified, len(result.candidates))
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..domain.geodesy import GeoPoint
from ..domain.grid import (
    MINIMUM_ACCEPTABLE_CANDIDATES,
    STANDARD_SPACING_KM,
    CandidateArea,
    densified_spacing,
    filter_ring,
    generate_candidate_areas,
    land_ratio,
    needs_densification,
)
from ..exceptions import DependencyMissingError
from ..observability import get_logger
from ..protocols import PlaceGeocoder, PointResolver

logger = get_logger("citysieve.candidates")

DEFAULT_VALIDATION_BATCH_SIZE = 100
SUPPLEMENTARY_RADIUS_KM = 5.0
SUPPLEMENTARY_SPACING_KM = 2.0


@dataclass(frozen=True)
class ValidationOutcome:
    """Candidates that survived validation, and which of them were never checked."""

    valid: tuple[CandidateArea, ...]
    unverified: frozenset[str]


@dataclass(frozen=True)
class DensifiedCandidates:
    """Result of the generate, validate and densify loop."""

    candidates: tuple[CandidateArea, ...]
    spacing_km: float
    densified: bool
    raw_count: int
    valid_count: int
    unverified: frozenset[str]


def _batches(
    candidates: Sequence[CandidateArea], size: int
) -> Iterable[Sequence[CandidateArea]]:
    for start in range(0, len(candidates), size):
        yield candidates[start : start + size]


async def _resolve_batch(
    batch: Sequence[CandidateArea], resolver: PointResolver
) -> list[bool] | None:
    """Validity flags for ``batch``, or None when the lookup could not be trusted."""
    points = [candidate.coordinates for candidate in batch]
    try:
        flags = await asyncio.to_thread(resolver.resolve_batch, points)
    except Exception as exc:
        logger.warning(
            "Land validation failed for %s candidates; keeping them unverified: %s",
            len(batch),
            exc,
        )
        return None
    if len(flags) != len(batch):
        logger.warning(
            "Land validation returned %s flags for %s candidates; keeping them unverified",
            len(flags),
            len(batch),
        )
        return None
    return flags


async def filter_valid_candidates_detailed(
    candidates: Iterable[CandidateArea],
    resolver: PointResolver | None,
    *,
    batch_size: int = DEFAULT_VALIDATION_BATCH_SIZE,
) -> ValidationOutcome:
    if resolver is None:
        raise DependencyMissingError("PointResolver", reason="Inject it at the entry point.")
    if batch_size <= 0:
        raise ValueError("batch_size must be positive.")

    candidate_list = list(candidates)
    valid: list[CandidateArea] = []
    unverified: set[str] = set()
    for batch in _batches(candidate_list, batch_size):
        flags = await _resolve_batch(batch, resolver)
        if flags is None:
            valid.extend(batch)
            unverified.update(candidate.id for candidate in batch)
            continue
        valid.extend(candidate for candidate, ok in zip(batch, flags, strict=True) if ok)

    logger.debug("Validated %s of %s candidates", len(valid), len(candidate_list))
    return ValidationOutcome(valid=tuple(valid), unverified=frozenset(unverified))


async def filter_valid_candidates(
    candidates: Iterable[CandidateArea],
    resolver: PointResolver | None,
    *,
    batch_size: int = DEFAULT_VALIDATION_BATCH_SIZE,
) -> list[CandidateArea]:
    """Keep candidates that resolve to inhabited land, in their original order."""
    outcome = await filter_valid_candidates_detailed(
        candidates, resolver, batch_size=batch_size
    )
    return list(outcome.valid)


async def generate_valid_candidates(
    centre: GeoPoint,
    radius_km: float,
    resolver: PointResolver | None,
    *,
    inner_km: float | None = None,
    batch_size: int = DEFAULT_VALIDATION_BATCH_SIZE,
) -> DensifiedCandidates:
    """Generate and validate a grid, densifying when too much of it is sea.

    The first pass uses the standard 3 km spacing. When fewer than the minimum
    acceptable candidates survive, the grid is regenerated at a spacing scaled
    by the square root of the land ratio (clamped to 1.8-2.5 km) and validated
    again. With ``inner_km`` both passes are cropped to the ring
    ``(inner_km, radius_km]``.
    """

    def crop(candidates: list[CandidateArea]) -> list[CandidateArea]:
        if inner_km is None:
            return candidates
        return filter_ring(candidates, centre, inner_km)

    raw = crop(generate_candidate_areas(centre, radius_km, STANDARD_SPACING_KM))
    outcome = await filter_valid_candidates_detailed(raw, resolver, batch_size=batch_size)
    if not needs_densification(len(outcome.valid)):
        return DensifiedCandidates(
            candidates=outcome.valid,
            spacing_km=STANDARD_SPACING_KM,
            densified=False,
            raw_count=len(raw),
            valid_count=len(outcome.valid),
            unverified=outcome.unverified,
        )

    ratio = land_ratio(len(raw), len(outcome.valid))
    spacing = densified_spacing(ratio)
    logger.info(
        "Only %s of %s candidates on land (minimum %s); regenerating at %.2f km spacing",
        len(outcome.valid),
        len(raw),
        MINIMUM_ACCEPTABLE_CANDIDATES,
        spacing,
    )
    dense_raw = crop(generate_candidate_areas(centre, radius_km, spacing))
    dense = await filter_valid_candidates_detailed(dense_raw, resolver, batch_size=batch_size)
    return DensifiedCandidates(
        candidates=dense.valid,
        spacing_km=spacing,
        densified=True,
        raw_count=len(dense_raw),
        valid_count=len(dense.valid),
        unverified=dense.unverified,
    )


async def supplementary_candidates(
    place_names: Iterable[str],
    geocoder: PlaceGeocoder | None,
    resolver: PointResolver | None,
    existing_ids: Iterable[str],
    *,
    batch_size: int = DEFAULT_VALIDATION_BATCH_SIZE,
) -> ValidationOutcome:
    """Extra candidates around places the user is already considering.

    Each place is geocoded (UK only) and covered by a small 5 km grid at 2 km
    spacing. Candidates already present, by id, are skipped.
    """
    if geocoder is None:
        raise DependencyMissingError("PlaceGeocoder", reason="Inject it at the entry point.")
    seen = set(existing_ids)
    extras: list[CandidateArea] = []
    unverified: set[str] = set()
    for place in place_names:
        try:
            location = await asyncio.to_thread(geocoder.geocode, place)
        except Exception as exc:
            logger.warning("Could not geocode considering area %r: %s", place, exc)
            continue
        if location is None:
            logger.info("No UK match for considering area %r; skipping", place)
            continue
        grid = generate_candidate_areas(
            location.as_point(), SUPPLEMENTARY_RADIUS_KM, SUPPLEMENTARY_SPACING_KM
        )
        outcome = await filter_valid_candidates_detailed(grid, resolver, batch_size=batch_size)
        fresh = [candidate for candidate in outcome.valid if candidate.id not in seen]
        seen.update(candidate.id for candidate in fresh)
        extras.extend(fresh)
        unverified.update(c.id for c in fresh if c.id in outcome.unverified)
    return ValidationOutcome(valid=tuple(extras), unverified=frozenset(unverified))
