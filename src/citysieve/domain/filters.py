"""Hard filters: pass/fail constraints applied before scoring.

Each rule is evaluated independently so a rejected area carries every reason
it failed, not just the first.

Usage example:
    from citysieve.domain.filters import apply_hard_filters_with_reasons

    result = apply_hard_filters_with_reasons(areas, profile)
    for rejected in result.rejected:
        print(rejected.area.name, sorted(rejected.reasons))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from .areas import AreaProfile, area_type_index
from .preferences import UserPreferenceProfile

AREA_TYPE_TOLERANCE = 1

FilterStatus = Literal["checked", "filtered"]


class RejectionReason(StrEnum):
    COMMUTE = "commute"
    AREA_TYPE = "areaType"
    EXCLUDED_AREA = "excludedArea"


@dataclass(frozen=True)
class RejectedArea:
    area: AreaProfile
    reasons: frozenset[RejectionReason]


@dataclass(frozen=True)
class FilterResult:
    passed: tuple[AreaProfile, ...]
    rejected: tuple[RejectedArea, ...]


def violates_commute_cap(area: AreaProfile, profile: UserPreferenceProfile) -> bool:
    commute = profile.commute
    if not commute.commute_time_is_hard_cap or area.commute_estimate is None:
        return False
    return area.commute_estimate > commute.max_commute_time


def violates_area_type(area: AreaProfile, profile: UserPreferenceProfile) -> bool:
    """True when the area is more than one band away from every selected type."""
    selected = profile.environment.area_types
    if not selected:
        return False
    area_index = area_type_index(area.area_type)
    return all(
        abs(area_index - area_type_index(wanted)) > AREA_TYPE_TOLERANCE for wanted in selected
    )


def violates_exclusions(area: AreaProfile, profile: UserPreferenceProfile) -> bool:
    lowered = area.name.casefold()
    return any(
        term.strip().casefold() in lowered
        for term in profile.environment.exclude_areas
        if term.strip()
    )


def rejection_reasons(
    area: AreaProfile, profile: UserPreferenceProfile
) -> frozenset[RejectionReason]:
    reasons: set[RejectionReason] = set()
    if violates_commute_cap(area, profile):
        reasons.add(RejectionReason.COMMUTE)
    if violates_area_type(area, profile):
        reasons.add(RejectionReason.AREA_TYPE)
    if violates_exclusions(area, profile):
        reasons.add(RejectionReason.EXCLUDED_AREA)
    return frozenset(reasons)


def apply_hard_filters_with_reasons(
    areas: Iterable[AreaProfile], profile: UserPreferenceProfile
) -> FilterResult:
    passed: list[AreaProfile] = []
    rejected: list[RejectedArea] = []
    for area in areas:
        reasons = rejection_reasons(area, profile)
        if reasons:
            rejected.append(RejectedArea(area=area, reasons=reasons))
        else:
            passed.append(area)
    return FilterResult(passed=tuple(passed), rejected=tuple(rejected))


def apply_hard_filters(
    areas: Iterable[AreaProfile], profile: UserPreferenceProfile
) -> list[AreaProfile]:
    return list(apply_hard_filters_with_reasons(areas, profile).passed)


def get_filter_status(area: AreaProfile, profile: UserPreferenceProfile) -> FilterStatus:
    """Classify a single area for live progress display."""
    return "checked" if apply_hard_filters([area], profile) else "filtered"
