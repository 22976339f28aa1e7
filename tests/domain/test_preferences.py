"""Tests for preference validation and the quick survey."""

import pytest

from citysieve.domain.areas import AreaType
from citysieve.domain.geodesy import CommuteMode
from citysieve.domain.preferences import (
    CommutePreferences,
    EnvironmentPreferences,
    FamilyPreferences,
    LifestylePreferences,
    QuickSurveyAnswers,
    build_quick_profile,
)
from citysieve.exceptions import PreferenceValueError
from tests.support.builders import LONDON


class TestValidation:
    @pytest.mark.parametrize("value", [0, 6, -1])
    def test_likert_out_of_range(self, value: int) -> None:
        with pytest.raises(PreferenceValueError) as excinfo:
            LifestylePreferences(supermarkets=value)
        assert "lifestyle.supermarkets" in str(excinfo.value)

    def test_likert_rejects_bool(self) -> None:
        with pytest.raises(PreferenceValueError):
            FamilyPreferences(social_importance=True)

    @pytest.mark.parametrize("days", [-1, 6])
    def test_days_per_week_range(self, days: int) -> None:
        with pytest.raises(PreferenceValueError):
            CommutePreferences(days_per_week=days)

    def test_negative_commute_cap(self) -> None:
        with pytest.raises(PreferenceValueError):
            CommutePreferences(max_commute_time=-5)

    def test_modes_and_area_types_are_coerced(self) -> None:
        commute = CommutePreferences(commute_modes=("train", "bus"))  # type: ignore[arg-type]
        env = EnvironmentPreferences(area_types=frozenset({"town"}))  # type: ignore[arg-type]
        assert commute.commute_modes == (CommuteMode.TRAIN, CommuteMode.BUS)
        assert env.area_types == frozenset({AreaType.TOWN})

    def test_unknown_commute_mode(self) -> None:
        with pytest.raises(ValueError):
            CommutePreferences(commute_modes=("hovercraft",))  # type: ignore[arg-type]

    def test_blank_exclusion_terms_are_dropped(self) -> None:
        env = EnvironmentPreferences(exclude_areas=(" Croydon ", "", "   "))
        assert env.exclude_areas == ("Croydon",)

    def test_remote_flag(self) -> None:
        assert CommutePreferences().is_remote
        assert not CommutePreferences(days_per_week=2).is_remote


class TestQuickProfile:
    def test_selected_priorities_high_others_low(self) -> None:
        profile = build_quick_profile(
            QuickSurveyAnswers(
                work_location=LONDON,
                commute_modes=(CommuteMode.TRAIN,),
                top_priorities=("supermarkets", "peaceAndQuiet"),
            )
        )
        assert profile.lifestyle.supermarkets == 5
        assert profile.environment.peace_and_quiet == 5
        assert profile.lifestyle.pubs_bars == 2
        assert profile.transport.train_station_importance == 2
        assert profile.commute.days_per_week == 5
        assert profile.commute.work_location == LONDON
        assert profile.commute.commute_time_is_hard_cap

    def test_no_priorities_is_neutral(self) -> None:
        profile = build_quick_profile(QuickSurveyAnswers())
        assert profile.lifestyle == LifestylePreferences()
        assert profile.family.social_importance == 3

    def test_remote_worker_has_no_commute(self) -> None:
        profile = build_quick_profile(QuickSurveyAnswers(work_location=LONDON, is_remote=True))
        assert profile.commute.days_per_week == 0
        assert profile.commute.work_location is None

    def test_area_type_becomes_single_selection(self) -> None:
        profile = build_quick_profile(QuickSurveyAnswers(area_type=AreaType.OUTER_SUBURB))
        assert profile.environment.area_types == frozenset({AreaType.OUTER_SUBURB})

    def test_unknown_priority(self) -> None:
        with pytest.raises(PreferenceValueError) as excinfo:
            QuickSurveyAnswers(top_priorities=("beaches",))
        assert "beaches" in str(excinfo.value)
