"""Tests for hard pass/fail filters."""

import pytest

from citysieve.domain.areas import AreaType
from citysieve.domain.filters import (
    RejectionReason,
    apply_hard_filters,
    apply_hard_filters_with_reasons,
    get_filter_status,
    rejection_reasons,
)
from tests.support.builders import make_area, make_profile


class TestAreaTypeFilter:
    def test_adjacent_band_passes(self) -> None:
        area = make_area(area_type=AreaType.OUTER_SUBURB)
        profile = make_profile(area_types=frozenset({AreaType.INNER_SUBURB}))
        assert apply_hard_filters([area], profile) == [area]

    def test_two_bands_away_fails(self) -> None:
        area = make_area(area_type=AreaType.OUTER_SUBURB)
        profile = make_profile(area_types=frozenset({AreaType.CITY_CENTRE}))
        assert apply_hard_filters([area], profile) == []
        assert rejection_reasons(area, profile) == {RejectionReason.AREA_TYPE}

    def test_any_selected_type_can_admit(self) -> None:
        area = make_area(area_type=AreaType.RURAL)
        profile = make_profile(area_types=frozenset({AreaType.CITY_CENTRE, AreaType.TOWN}))
        assert apply_hard_filters([area], profile) == [area]

    @pytest.mark.parametrize("area_type", list(AreaType))
    def test_no_selection_admits_everything(self, area_type: AreaType) -> None:
        area = make_area(area_type=area_type)
        assert apply_hard_filters([area], make_profile()) == [area]


class TestCommuteFilter:
    def test_over_cap_rejected_when_hard(self) -> None:
        area = make_area(commute_estimate=46)
        profile = make_profile(max_commute_time=45, hard_cap=True)
        assert apply_hard_filters([area], profile) == []
        assert rejection_reasons(area, profile) == {RejectionReason.COMMUTE}

    def test_exactly_at_cap_passes(self) -> None:
        area = make_area(commute_estimate=45)
        profile = make_profile(max_commute_time=45, hard_cap=True)
        assert apply_hard_filters([area], profile) == [area]

    def test_soft_cap_never_rejects(self) -> None:
        area = make_area(commute_estimate=46)
        profile = make_profile(max_commute_time=45, hard_cap=False)
        assert apply_hard_filters([area], profile) == [area]

    def test_unknown_commute_is_not_rejected(self) -> None:
        area = make_area(commute_estimate=None)
        assert apply_hard_filters([area], make_profile(max_commute_time=1)) == [area]


class TestExclusionFilter:
    def test_case_insensitive_substring(self) -> None:
        area = make_area(name="South Croydon, CR2")
        profile = make_profile(exclude_areas=("croydon",))
        assert rejection_reasons(area, profile) == {RejectionReason.EXCLUDED_AREA}

    def test_unrelated_name_passes(self) -> None:
        area = make_area(name="Brixton, SW2")
        profile = make_profile(exclude_areas=("croydon",))
        assert apply_hard_filters([area], profile) == [area]


class TestApplyWithReasons:
    def test_collects_every_reason(self) -> None:
        area = make_area(
            name="Croydon, CR0", area_type=AreaType.RURAL, commute_estimate=120
        )
        profile = make_profile(
            area_types=frozenset({AreaType.CITY_CENTRE}), exclude_areas=("Croydon",)
        )
        result = apply_hard_filters_with_reasons([area], profile)
        assert result.passed == ()
        (rejected,) = result.rejected
        assert rejected.area is area
        assert rejected.reasons == {
            RejectionReason.COMMUTE,
            RejectionReason.AREA_TYPE,
            RejectionReason.EXCLUDED_AREA,
        }
        assert sorted(reason.value for reason in rejected.reasons) == [
            "areaType",
            "commute",
            "excludedArea",
        ]

    def test_partition_preserves_order(self) -> None:
        areas = [
            make_area("a", commute_estimate=10),
            make_area("b", commute_estimate=50),
            make_area("c", commute_estimate=20),
        ]
        result = apply_hard_filters_with_reasons(areas, make_profile(max_commute_time=45))
        assert [a.id for a in result.passed] == ["a", "c"]
        assert [r.area.id for r in result.rejected] == ["b"]

    def test_filter_status(self) -> None:
        profile = make_profile(max_commute_time=45)
        assert get_filter_status(make_area(commute_estimate=30), profile) == "checked"
        assert get_filter_status(make_area(commute_estimate=60), profile) == "filtered"
