"""User preference profile and quick-survey defaults.

The profile is an immutable snapshot of survey answers. Likert ratings are
validated at construction so downstream weight extraction never has to clamp.

Usage example:
    from citysieve.domain.geodesy import CommuteMode, GeoLocation
    from citysieve.domain.preferences import QuickSurveyAnswers, build_quick_profile

    answers = QuickSurveyAnswers(
        work_location=GeoLocation(lat=51.5074, lng=-0.1278, label="London"),
        commute_modes=(CommuteMode.TRAIN,),
        max_commute_time=45,
        top_priorities=("supermarkets", "parksGreenSpaces"),
    )
    profile = build_quick_profile(answers)
    assert profile.lifestyle.supermarkets == 5
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, fields

from ..exceptions import PreferenceValueError
from .areas import AreaType
from .geodesy import CommuteMode, GeoLocation

LIKERT_MIN = 1
LIKERT_MAX = 5
LIKERT_NEUTRAL = 3
LIKERT_HIGH = 5
LIKERT_LOW = 2

MAX_DAYS_PER_WEEK = 5
MIN_COMMUTE_MINUTES = 15
MAX_COMMUTE_MINUTES = 90
DEFAULT_MAX_COMMUTE_MINUTES = 45


def validate_likert(field_name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PreferenceValueError(field_name, value, f"an integer {LIKERT_MIN}-{LIKERT_MAX}")
    if not LIKERT_MIN <= value <= LIKERT_MAX:
        raise PreferenceValueError(field_name, value, f"an integer {LIKERT_MIN}-{LIKERT_MAX}")
    return value


def _validate_likert_fields(instance: object, prefix: str, names: Iterable[str]) -> None:
    for name in names:
        validate_likert(f"{prefix}.{name}", getattr(instance, name))


@dataclass(frozen=True)
class CommutePreferences:
    work_location: GeoLocation | None = None
    days_per_week: int = 0
    max_commute_time: int = DEFAULT_MAX_COMMUTE_MINUTES
    commute_time_is_hard_cap: bool = True
    commute_modes: tuple[CommuteMode, ...] = ()

    def __post_init__(self) -> None:
        if not 0 <= self.days_per_week <= MAX_DAYS_PER_WEEK:
            raise PreferenceValueError(
                "commute.days_per_week", self.days_per_week, f"between 0 and {MAX_DAYS_PER_WEEK}"
            )
        if self.max_commute_time < 0:
            raise PreferenceValueError(
                "commute.max_commute_time", self.max_commute_time, "zero or more minutes"
            )
        modes = tuple(CommuteMode(mode) for mode in self.commute_modes)
        object.__setattr__(self, "commute_modes", modes)

    @property
    def is_remote(self) -> bool:
        return self.days_per_week == 0


@dataclass(frozen=True)
class FamilyPreferences:
    family_location: GeoLocation | None = None
    family_proximity_importance: int = LIKERT_NEUTRAL
    social_importance: int = LIKERT_NEUTRAL

    def __post_init__(self) -> None:
        _validate_likert_fields(
            self, "family", ("family_proximity_importance", "social_importance")
        )


@dataclass(frozen=True)
class LifestylePreferences:
    supermarkets: int = LIKERT_NEUTRAL
    high_street: int = LIKERT_NEUTRAL
    pubs_bars: int = LIKERT_NEUTRAL
    restaurants_cafes: int = LIKERT_NEUTRAL
    parks_green_spaces: int = LIKERT_NEUTRAL
    gyms_leisure: int = LIKERT_NEUTRAL
    healthcare: int = LIKERT_NEUTRAL
    libraries_culture: int = LIKERT_NEUTRAL

    def __post_init__(self) -> None:
        _validate_likert_fields(self, "lifestyle", (f.name for f in fields(self)))


@dataclass(frozen=True)
class TransportPreferences:
    public_transport_reliance: int = LIKERT_NEUTRAL
    train_station_importance: int = LIKERT_NEUTRAL

    def __post_init__(self) -> None:
        _validate_likert_fields(self, "transport", (f.name for f in fields(self)))


@dataclass(frozen=True)
class EnvironmentPreferences:
    area_types: frozenset[AreaType] = field(default_factory=frozenset)
    peace_and_quiet: int = LIKERT_NEUTRAL
    exclude_areas: tuple[str, ...] = ()
    considering_areas: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_likert("environment.peace_and_quiet", self.peace_and_quiet)
        object.__setattr__(self, "area_types", frozenset(AreaType(t) for t in self.area_types))
        object.__setattr__(self, "exclude_areas", _clean_terms(self.exclude_areas))
        object.__setattr__(self, "considering_areas", _clean_terms(self.considering_areas))


def _clean_terms(terms: Iterable[str]) -> tuple[str, ...]:
    return tuple(term.strip() for term in terms if term.strip())


@dataclass(frozen=True)
class UserPreferenceProfile:
    """Immutable snapshot of everything the user told us."""

    commute: CommutePreferences = field(default_factory=CommutePreferences)
    family: FamilyPreferences = field(default_factory=FamilyPreferences)
    lifestyle: LifestylePreferences = field(default_factory=LifestylePreferences)
    transport: TransportPreferences = field(default_factory=TransportPreferences)
    environment: EnvironmentPreferences = field(default_factory=EnvironmentPreferences)


# Priority chips offered by the quick survey, mapped to the Likert field each
# one drives as (section, field).
QUICK_PRIORITY_FIELDS: dict[str, tuple[str, str]] = {
    "supermarkets": ("lifestyle", "supermarkets"),
    "highStreet": ("lifestyle", "high_street"),
    "pubsBars": ("lifestyle", "pubs_bars"),
    "restaurantsCafes": ("lifestyle", "restaurants_cafes"),
    "parksGreenSpaces": ("lifestyle", "parks_green_spaces"),
    "gymsLeisure": ("lifestyle", "gyms_leisure"),
    "healthcare": ("lifestyle", "healthcare"),
    "librariesCulture": ("lifestyle", "libraries_culture"),
    "publicTransportReliance": ("transport", "public_transport_reliance"),
    "trainStationImportance": ("transport", "train_station_importance"),
    "peaceAndQuiet": ("environment", "peace_and_quiet"),
    "familyProximityImportance": ("family", "family_proximity_importance"),
    "socialImportance": ("family", "social_importance"),
}


@dataclass(frozen=True)
class QuickSurveyAnswers:
    """The short-form survey: where you work, how you travel, what matters."""

    work_location: GeoLocation | None = None
    is_remote: bool = False
    commute_modes: tuple[CommuteMode, ...] = ()
    max_commute_time: int = DEFAULT_MAX_COMMUTE_MINUTES
    area_type: AreaType | None = None
    top_priorities: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        unknown = [p for p in self.top_priorities if p not in QUICK_PRIORITY_FIELDS]
        if unknown:
            allowed = ", ".join(QUICK_PRIORITY_FIELDS)
            raise PreferenceValueError("top_priorities", unknown[0], f"one of: {allowed}")


def build_quick_profile(answers: QuickSurveyAnswers) -> UserPreferenceProfile:
    """Expand quick-survey answers into a full preference profile.

    Selected priorities are rated 5 and the rest 2; with no selection every
    priority is neutral (3). Remote workers get zero commute days and no work
    location.
    """
    selected = set(answers.top_priorities)
    ratings: dict[str, dict[str, int]] = {
        "lifestyle": {},
        "transport": {},
        "environment": {},
        "family": {},
    }
    for key, (section, field_name) in QUICK_PRIORITY_FIELDS.items():
        if key in selected:
            value = LIKERT_HIGH
        elif not selected:
            value = LIKERT_NEUTRAL
        else:
            value = LIKERT_LOW
        ratings[section][field_name] = value

    area_types = frozenset({answers.area_type}) if answers.area_type is not None else frozenset()
    return UserPreferenceProfile(
        commute=CommutePreferences(
            work_location=None if answers.is_remote else answers.work_location,
            days_per_week=0 if answers.is_remote else MAX_DAYS_PER_WEEK,
            max_commute_time=answers.max_commute_time,
            commute_time_is_hard_cap=True,
            commute_modes=answers.commute_modes,
        ),
        family=FamilyPreferences(**ratings["family"]),
        lifestyle=LifestylePreferences(**ratings["lifestyle"]),
        transport=TransportPreferences(**ratings["transport"]),
        environment=EnvironmentPreferences(area_types=area_types, **ratings["environment"]),
    )
