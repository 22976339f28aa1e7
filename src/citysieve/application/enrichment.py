"""Per-candidate enrichment: amenity counts, postcode naming and commute estimates.

Candidates are processed in small concurrent batches to stay within upstream
rate limits. A candidate whose amenity lookup fails is dropped for this run
and never retried; the rest of its batch is unaffected. Scoring accepts any
partial list, so a caller may stop early via ``should_stop``.

Usage example:
    import asyncio

    from citysieve.application.enrichment import enrich_candidates

    profiles = asyncio.run(
        enrich_candidates(
            candidates,
            profile=preferences,
            anchor=centre,
            amenity_counter=counter,
            postcode_lookup=postcodes,
        )
    )
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from ..domain.area_names import PostcodeDistrict, display_name_for
from ..domain.areas import AMENITY_SEARCH_RADIUS_M, AreaProfile, build_area_profile
from ..domain.filters import get_filter_status
from ..domain.geodesy import CommuteMode, GeoPoint, commute_breakdown
from ..domain.grid import CandidateArea
from ..domain.preferences import UserPreferenceProfile
from ..exceptions import DependencyMissingError
from ..observability import get_logger
from ..protocols import AmenityCounter, PostcodeLookup, ProgressReporter

logger = get_logger("citysieve.enrichment")

DEFAULT_ENRICHMENT_BATCH_SIZE = 4


async def _lookup_district(
    candidate: CandidateArea, postcode_lookup: PostcodeLookup | None
) -> PostcodeDistrict | None:
    if postcode_lookup is None:
        return None
    try:
        return await asyncio.to_thread(postcode_lookup.postcode_district, candidate.coordinates)
    except Exception as exc:
        logger.debug("Postcode lookup failed for %s: %s", candidate.id, exc)
        return None


def _commute_for(
    candidate: CandidateArea, profile: UserPreferenceProfile
) -> dict[CommuteMode, float] | None:
    commute = profile.commute
    if commute.work_location is None or not commute.commute_modes:
        return None
    return commute_breakdown(candidate.coordinates, commute.work_location, commute.commute_modes)


async def enrich_candidate(
    candidate: CandidateArea,
    *,
    profile: UserPreferenceProfile,
    anchor: GeoPoint,
    amenity_counter: AmenityCounter,
    postcode_lookup: PostcodeLookup | None = None,
    radius_m: int = AMENITY_SEARCH_RADIUS_M,
) -> AreaProfile:
    """Build one unnormalised profile; raises if the amenity lookup fails."""
    amenities, district = await asyncio.gather(
        asyncio.to_thread(amenity_counter.count, candidate.coordinates, radius_m),
        _lookup_district(candidate, postcode_lookup),
    )
    return build_area_profile(
        candidate,
        amenities,
        anchor=anchor,
        name=display_name_for(candidate.coordinates, district),
        outcode=district.outcode if district else None,
        commute=_commute_for(candidate, profile),
    )


async def enrich_candidates(
    candidates: Sequence[CandidateArea],
    *,
    profile: UserPreferenceProfile,
    anchor: GeoPoint,
    amenity_counter: AmenityCounter | None,
    postcode_lookup: PostcodeLookup | None = None,
    batch_size: int = DEFAULT_ENRICHMENT_BATCH_SIZE,
    progress: ProgressReporter | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> list[AreaProfile]:
    """Enrich candidates batch by batch, keeping only those that succeeded.

    Profiles come back in candidate order. ``should_stop`` is checked before
    each batch; returning True ends enrichment with whatever is done so far.
    """
    if amenity_counter is None:
        raise DependencyMissingError("AmenityCounter", reason="Inject it at the entry point.")
    if batch_size <= 0:
        raise ValueError("batch_size must be positive.")

    profiles: list[AreaProfile] = []
    failed = 0
    viable = 0
    if progress is not None:
        progress.start("Enriching candidates", len(candidates))
    try:
        for start in range(0, len(candidates), batch_size):
            if should_stop is not None and should_stop():
                logger.info(
                    "Enrichment stopped early after %s of %s candidates",
                    start,
                    len(candidates),
                )
                break
            batch = candidates[start : start + batch_size]
            outcomes = await asyncio.gather(
                *(
                    enrich_candidate(
                        candidate,
                        profile=profile,
                        anchor=anchor,
                        amenity_counter=amenity_counter,
                        postcode_lookup=postcode_lookup,
                    )
                    for candidate in batch
                ),
                return_exceptions=True,
            )
            for candidate, outcome in zip(batch, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    failed += 1
                    logger.warning("Dropping candidate %s: %s", candidate.id, outcome)
                    continue
                profiles.append(outcome)
                if get_filter_status(outcome, profile) == "checked":
                    viable += 1
            if progress is not None:
                progress.advance(len(batch))
    finally:
        if progress is not None:
            progress.finish()

    logger.info(
        "Enriched %s candidates (%s dropped, %s viable so far)",
        len(profiles),
        failed,
        viable,
    )
    return profiles
