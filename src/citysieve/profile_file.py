"""Load a user preference profile from a TOML file.

Two layouts are accepted. The full survey sets every section explicitly:

    schema_version = 1

    [commute]
    work_location = { lat = 51.5074, lng = -0.1278, label = "London" }
    days_per_week = 3
    max_commute_time = 45
    commute_modes = ["train", "cycle"]

    [lifestyle]
    supermarkets = 5
    parks_green_spaces = 4

    [environment]
    area_types = ["outer_suburb"]
    exclude_areas = ["Croydon"]

The quick survey names a few priorities and lets defaults fill the rest:

    schema_version = 1

    [quick]
    work_location = { lat = 53.4808, lng = -2.2426, label = "Manchester" }
    commute_modes = ["train"]
    top_priorities = ["supermarkets", "parksGreenSpaces"]

Omitted sections and fields take the profile defaults (neutral ratings).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config_file import format_validation_error, load_toml_payload
from .domain.areas import AreaType
from .domain.geodesy import CommuteMode, GeoLocation
from .domain.preferences import (
    DEFAULT_MAX_COMMUTE_MINUTES,
    LIKERT_MAX,
    LIKERT_MIN,
    LIKERT_NEUTRAL,
    MAX_DAYS_PER_WEEK,
    CommutePreferences,
    EnvironmentPreferences,
    FamilyPreferences,
    LifestylePreferences,
    QuickSurveyAnswers,
    TransportPreferences,
    UserPreferenceProfile,
    build_quick_profile,
)
from .exceptions import ConfigFileValidationError, PreferenceValueError
from .protocols import FileSystem

_SCHEMA_VERSION = 1

_Likert = Annotated[int, Field(ge=LIKERT_MIN, le=LIKERT_MAX)]


class _LocationModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    label: str = ""

    def to_domain(self) -> GeoLocation:
        return GeoLocation(lat=self.lat, lng=self.lng, label=self.label.strip())


def _to_location(model: _LocationModel | None) -> GeoLocation | None:
    return model.to_domain() if model is not None else None


class _CommuteModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    work_location: _LocationModel | None = None
    days_per_week: int = Field(default=0, ge=0, le=MAX_DAYS_PER_WEEK)
    max_commute_time: int = Field(default=DEFAULT_MAX_COMMUTE_MINUTES, ge=0)
    commute_time_is_hard_cap: bool = True
    commute_modes: tuple[CommuteMode, ...] = ()


class _FamilyModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    family_location: _LocationModel | None = None
    family_proximity_importance: _Likert = LIKERT_NEUTRAL
    social_importance: _Likert = LIKERT_NEUTRAL


class _LifestyleModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    supermarkets: _Likert = LIKERT_NEUTRAL
    high_street: _Likert = LIKERT_NEUTRAL
    pubs_bars: _Likert = LIKERT_NEUTRAL
    restaurants_cafes: _Likert = LIKERT_NEUTRAL
    parks_green_spaces: _Likert = LIKERT_NEUTRAL
    gyms_leisure: _Likert = LIKERT_NEUTRAL
    healthcare: _Likert = LIKERT_NEUTRAL
    libraries_culture: _Likert = LIKERT_NEUTRAL


class _TransportModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    public_transport_reliance: _Likert = LIKERT_NEUTRAL
    train_station_importance: _Likert = LIKERT_NEUTRAL


class _EnvironmentModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    area_types: tuple[AreaType, ...] = ()
    peace_and_quiet: _Likert = LIKERT_NEUTRAL
    exclude_areas: tuple[str, ...] = ()
    considering_areas: tuple[str, ...] = ()


class _QuickModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    work_location: _LocationModel | None = None
    is_remote: bool = False
    commute_modes: tuple[CommuteMode, ...] = ()
    max_commute_time: int = Field(default=DEFAULT_MAX_COMMUTE_MINUTES, ge=0)
    area_type: AreaType | None = None
    top_priorities: tuple[str, ...] = ()


class _ProfileFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int = Field(ge=_SCHEMA_VERSION, le=_SCHEMA_VERSION)
    quick: _QuickModel | None = None
    commute: _CommuteModel | None = None
    family: _FamilyModel | None = None
    lifestyle: _LifestyleModel | None = None
    transport: _TransportModel | None = None
    environment: _EnvironmentModel | None = None

    @model_validator(mode="after")
    def _quick_is_exclusive(self) -> _ProfileFileModel:
        full_sections = (
            self.commute,
            self.family,
            self.lifestyle,
            self.transport,
            self.environment,
        )
        if self.quick is not None and any(section is not None for section in full_sections):
            raise ValueError("[quick] cannot be combined with full survey sections")
        return self


def _full_profile(model: _ProfileFileModel) -> UserPreferenceProfile:
    commute = model.commute or _CommuteModel()
    family = model.family or _FamilyModel()
    lifestyle = model.lifestyle or _LifestyleModel()
    transport = model.transport or _TransportModel()
    environment = model.environment or _EnvironmentModel()
    return UserPreferenceProfile(
        commute=CommutePreferences(
            work_location=_to_location(commute.work_location),
            days_per_week=commute.days_per_week,
            max_commute_time=commute.max_commute_time,
            commute_time_is_hard_cap=commute.commute_time_is_hard_cap,
            commute_modes=commute.commute_modes,
        ),
        family=FamilyPreferences(
            family_location=_to_location(family.family_location),
            family_proximity_importance=family.family_proximity_importance,
            social_importance=family.social_importance,
        ),
        lifestyle=LifestylePreferences(**lifestyle.model_dump()),
        transport=TransportPreferences(**transport.model_dump()),
        environment=EnvironmentPreferences(
            area_types=frozenset(environment.area_types),
            peace_and_quiet=environment.peace_and_quiet,
            exclude_areas=environment.exclude_areas,
            considering_areas=environment.considering_areas,
        ),
    )


def _quick_profile(quick: _QuickModel) -> UserPreferenceProfile:
    answers = QuickSurveyAnswers(
        work_location=_to_location(quick.work_location),
        is_remote=quick.is_remote,
        commute_modes=quick.commute_modes,
        max_commute_time=quick.max_commute_time,
        area_type=quick.area_type,
        top_priorities=quick.top_priorities,
    )
    return build_quick_profile(answers)


def load_preference_profile(*, path: Path, fs: FileSystem) -> UserPreferenceProfile:
    """Load and validate a preferences TOML file.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigFileParseError: If the file is not valid TOML.
        ConfigFileValidationError: If any value is missing, unknown or out of range.
    """
    payload = load_toml_payload(path=path, fs=fs)
    try:
        model = _ProfileFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), format_validation_error(exc)) from exc

    try:
        if model.quick is not None:
            return _quick_profile(model.quick)
        return _full_profile(model)
    except PreferenceValueError as exc:
        raise ConfigFileValidationError(str(path), str(exc)) from exc
