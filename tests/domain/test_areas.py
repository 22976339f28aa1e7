"""Tests for area profiles, signals and amenity normalisation."""

import pytest

from citysieve.domain.areas import (
    BUS_STOP,
    PARKS_GREEN_SPACES,
    PUBS_BARS,
    SUPERMARKETS,
    TRAIN_STATION,
    AreaType,
    build_area_profile,
    classify_area_type,
    normalize_amenities,
)
from citysieve.domain.geodesy import CommuteMode, GeoPoint
from citysieve.domain.grid import make_candidate
from tests.support.builders import make_area


class TestClassifyAreaType:
    @pytest.mark.parametrize(
        ("distance_km", "expected"),
        [
            (0.0, AreaType.CITY_CENTRE),
            (2.99, AreaType.CITY_CENTRE),
            (3.0, AreaType.INNER_SUBURB),
            (7.9, AreaType.INNER_SUBURB),
            (8.0, AreaType.OUTER_SUBURB),
            (14.9, AreaType.OUTER_SUBURB),
            (15.0, AreaType.TOWN),
            (24.9, AreaType.TOWN),
            (25.0, AreaType.RURAL),
            (80.0, AreaType.RURAL),
        ],
    )
    def test_distance_bands(self, distance_km: float, expected: AreaType) -> None:
        assert classify_area_type(distance_km) == expected


class TestBuildAreaProfile:
    def test_signals_derived_from_counts(self) -> None:
        candidate = make_candidate(51.5074, -0.1278)
        profile = build_area_profile(
            candidate,
            {TRAIN_STATION: 2, BUS_STOP: 5, PARKS_GREEN_SPACES: 12},
            anchor=GeoPoint(lat=51.5074, lng=-0.1278),
        )
        assert profile.transport.train_station_proximity == 1
        assert profile.transport.bus_frequency == pytest.approx(0.5)
        assert profile.environment.green_space_coverage == 1.0
        assert profile.area_type is AreaType.CITY_CENTRE

    def test_far_from_anchor_is_rural(self) -> None:
        candidate = make_candidate(52.0, -0.1278)
        profile = build_area_profile(candidate, {}, anchor=GeoPoint(lat=51.5074, lng=-0.1278))
        assert profile.area_type is AreaType.RURAL
        assert profile.transport.train_station_proximity == 0
        assert profile.transport.bus_frequency == 0.0

    def test_name_defaults_to_candidate_id(self) -> None:
        candidate = make_candidate(51.5, -0.1)
        profile = build_area_profile(candidate, {}, anchor=candidate.coordinates)
        assert profile.name == candidate.id

    def test_commute_estimate_is_fastest_mode(self) -> None:
        candidate = make_candidate(51.5, -0.1)
        profile = build_area_profile(
            candidate,
            {},
            anchor=candidate.coordinates,
            name="Vauxhall, SE11",
            outcode="SE11",
            commute={CommuteMode.DRIVE: 30.0, CommuteMode.TRAIN: 22.5},
        )
        assert profile.commute_estimate == 22.5
        assert profile.commute_breakdown is not None
        assert profile.commute_breakdown[CommuteMode.DRIVE] == 30.0
        assert profile.outcode == "SE11"
        assert profile.name == "Vauxhall, SE11"

    def test_no_commute_leaves_estimate_unset(self) -> None:
        candidate = make_candidate(51.5, -0.1)
        profile = build_area_profile(candidate, {}, anchor=candidate.coordinates, commute={})
        assert profile.commute_estimate is None
        assert profile.commute_breakdown is None

    def test_amenities_are_read_only(self) -> None:
        area = make_area(amenities={SUPERMARKETS: 2})
        with pytest.raises(TypeError):
            area.amenities[SUPERMARKETS] = 9  # type: ignore[index]


class TestNormalizeAmenities:
    def test_values_are_bounded_and_max_is_one(self) -> None:
        areas = [
            make_area("a", amenities={SUPERMARKETS: 10, PUBS_BARS: 3}),
            make_area("b", amenities={SUPERMARKETS: 5, PUBS_BARS: 0}),
            make_area("c", amenities={SUPERMARKETS: 0, PUBS_BARS: 6}),
        ]
        normalised = normalize_amenities(areas)
        for category in (SUPERMARKETS, PUBS_BARS):
            values = [area.normalized(category) for area in normalised]
            assert all(0.0 <= value <= 1.0 for value in values)
            assert max(values) == 1.0
        assert normalised[1].normalized(SUPERMARKETS) == 0.5

    def test_all_zero_category_normalises_to_zero(self) -> None:
        areas = [make_area("a", amenities={SUPERMARKETS: 0}), make_area("b")]
        normalised = normalize_amenities(areas)
        assert [area.normalized(SUPERMARKETS) for area in normalised] == [0.0, 0.0]

    def test_single_area_gets_full_marks(self) -> None:
        (area,) = normalize_amenities([make_area(amenities={SUPERMARKETS: 4})])
        assert area.normalized(SUPERMARKETS) == 1.0

    def test_inputs_are_untouched(self) -> None:
        original = make_area(amenities={SUPERMARKETS: 4})
        normalize_amenities([original])
        assert original.normalized_amenities == {}

    def test_empty_input(self) -> None:
        assert normalize_amenities([]) == []
