"""Tests for loading preference profiles from TOML."""

from __future__ import annotations

from pathlib import Path

import pytest

from citysieve.domain.areas import AreaType
from citysieve.domain.geodesy import CommuteMode, GeoLocation
from citysieve.domain.preferences import UserPreferenceProfile
from citysieve.exceptions import ConfigFileNotFoundError, ConfigFileValidationError
from citysieve.profile_file import load_preference_profile
from tests.fakes import InMemoryFileSystem

PATH = Path("preferences.toml")


def _load(content: str) -> UserPreferenceProfile:
    fs = InMemoryFileSystem()
    fs.write_text(content.strip(), PATH)
    return load_preference_profile(path=PATH, fs=fs)


def test_full_survey_file() -> None:
    profile = _load(
        """
schema_version = 1

[commute]
work_location = { lat = 51.5074, lng = -0.1278, label = " London " }
days_per_week = 3
max_commute_time = 50
commute_time_is_hard_cap = false
commute_modes = ["train", "cycle"]

[family]
family_location = { lat = 53.4808, lng = -2.2426 }
family_proximity_importance = 5

[lifestyle]
supermarkets = 5
pubs_bars = 1

[transport]
train_station_importance = 4

[environment]
area_types = ["outer_suburb", "town"]
peace_and_quiet = 4
exclude_areas = ["Croydon"]
considering_areas = ["Didsbury"]
"""
    )

    assert profile.commute.work_location == GeoLocation(lat=51.5074, lng=-0.1278, label="London")
    assert profile.commute.days_per_week == 3
    assert profile.commute.max_commute_time == 50
    assert profile.commute.commute_time_is_hard_cap is False
    assert profile.commute.commute_modes == (CommuteMode.TRAIN, CommuteMode.CYCLE)
    assert profile.family.family_location is not None
    assert profile.family.family_proximity_importance == 5
    assert profile.family.social_importance == 3
    assert profile.lifestyle.supermarkets == 5
    assert profile.lifestyle.pubs_bars == 1
    assert profile.lifestyle.healthcare == 3
    assert profile.transport.train_station_importance == 4
    assert profile.environment.area_types == {AreaType.OUTER_SUBURB, AreaType.TOWN}
    assert profile.environment.exclude_areas == ("Croydon",)
    assert profile.environment.considering_areas == ("Didsbury",)


def test_sections_are_optional() -> None:
    profile = _load("schema_version = 1")

    assert profile.commute.work_location is None
    assert profile.commute.days_per_week == 0
    assert profile.lifestyle.supermarkets == 3


def test_quick_survey_file() -> None:
    profile = _load(
        """
schema_version = 1

[quick]
work_location = { lat = 53.4808, lng = -2.2426, label = "Manchester" }
commute_modes = ["train"]
area_type = "inner_suburb"
top_priorities = ["supermarkets", "parksGreenSpaces"]
"""
    )

    assert profile.commute.days_per_week == 5
    assert profile.lifestyle.supermarkets == 5
    assert profile.lifestyle.parks_green_spaces == 5
    assert profile.lifestyle.gyms_leisure == 2
    assert profile.environment.area_types == {AreaType.INNER_SUBURB}


@pytest.mark.parametrize(
    "body",
    [
        "schema_version = 2",
        "schema_version = 1\n[lifestyle]\nsupermarkets = 6",
        "schema_version = 1\n[lifestyle]\nsupermarkets = 0",
        "schema_version = 1\n[commute]\ndays_per_week = 7",
        "schema_version = 1\n[commute]\ncommute_modes = ['hovercraft']",
        "schema_version = 1\n[commute]\nwork_location = { lat = 95.0, lng = 0.0 }",
        "schema_version = 1\n[environment]\narea_types = ['seaside']",
        "schema_version = 1\n[lifestyle]\nnightclubs = 5",
        "schema_version = 1\n[quick]\ntop_priorities = ['beaches']",
        "schema_version = 1\n[quick]\nis_remote = true\n[lifestyle]\nsupermarkets = 5",
    ],
)
def test_invalid_profiles_fail_fast(body: str) -> None:
    with pytest.raises(ConfigFileValidationError) as exc_info:
        _load(body)
    assert str(PATH) in str(exc_info.value)


def test_missing_file() -> None:
    with pytest.raises(ConfigFileNotFoundError):
        load_preference_profile(path=Path("nope.toml"), fs=InMemoryFileSystem())
