"""Tests for distance and commute heuristics."""

import pytest

from citysieve.domain.geodesy import (
    CommuteMode,
    GeoLocation,
    GeoPoint,
    best_commute_time,
    commute_breakdown,
    estimate_commute_time,
    format_minutes,
    haversine_distance,
    km_per_degree_lng,
    km_to_lat_degrees,
)

LONDON = GeoPoint(lat=51.5074, lng=-0.1278)
MANCHESTER = GeoPoint(lat=53.4808, lng=-2.2426)


class TestHaversine:
    def test_same_point_is_zero(self) -> None:
        assert haversine_distance(LONDON, LONDON) == 0.0

    def test_london_to_manchester(self) -> None:
        """Great-circle distance is about 262 km."""
        assert haversine_distance(LONDON, MANCHESTER) == pytest.approx(262, abs=2)

    def test_symmetric(self) -> None:
        assert haversine_distance(LONDON, MANCHESTER) == pytest.approx(
            haversine_distance(MANCHESTER, LONDON)
        )

    def test_one_degree_of_latitude(self) -> None:
        north = GeoPoint(lat=LONDON.lat + 1, lng=LONDON.lng)
        assert haversine_distance(LONDON, north) == pytest.approx(111.19, abs=0.05)


class TestDegreeConversions:
    def test_longitude_degrees_shrink_with_latitude(self) -> None:
        assert km_per_degree_lng(0.0) == pytest.approx(111.0)
        assert km_per_degree_lng(60.0) == pytest.approx(55.5)

    def test_latitude_conversion(self) -> None:
        assert km_to_lat_degrees(111.0) == pytest.approx(1.0)


class TestCommuteEstimates:
    def test_drive_is_distance_over_thirty_kmh(self) -> None:
        distance = haversine_distance(LONDON, MANCHESTER)
        assert estimate_commute_time(LONDON, MANCHESTER, CommuteMode.DRIVE) == pytest.approx(
            distance / 30 * 60
        )

    def test_train_adds_fixed_overhead(self) -> None:
        """Train is 50 km/h plus 10 minutes for getting to and from stations."""
        distance = haversine_distance(LONDON, MANCHESTER)
        assert estimate_commute_time(LONDON, MANCHESTER, CommuteMode.TRAIN) == pytest.approx(
            distance / 50 * 60 + 10
        )

    def test_zero_distance_train_still_costs_overhead(self) -> None:
        assert estimate_commute_time(LONDON, LONDON, CommuteMode.TRAIN) == pytest.approx(10)
        assert estimate_commute_time(LONDON, LONDON, CommuteMode.WALK) == 0.0

    def test_best_commute_is_fastest_mode(self) -> None:
        modes = (CommuteMode.WALK, CommuteMode.TRAIN, CommuteMode.BUS)
        expected = min(estimate_commute_time(LONDON, MANCHESTER, m) for m in modes)
        assert best_commute_time(LONDON, MANCHESTER, modes) == expected

    def test_best_commute_defaults_to_driving(self) -> None:
        assert best_commute_time(LONDON, MANCHESTER, ()) == estimate_commute_time(
            LONDON, MANCHESTER, CommuteMode.DRIVE
        )

    def test_breakdown_keeps_mode_order(self) -> None:
        breakdown = commute_breakdown(LONDON, MANCHESTER, (CommuteMode.CYCLE, CommuteMode.DRIVE))
        assert list(breakdown) == [CommuteMode.CYCLE, CommuteMode.DRIVE]

    def test_location_label_does_not_affect_distance(self) -> None:
        labelled = GeoLocation(lat=LONDON.lat, lng=LONDON.lng, label="Charing Cross")
        assert haversine_distance(labelled, MANCHESTER) == haversine_distance(LONDON, MANCHESTER)
        assert labelled.as_point() == LONDON


class TestFormatMinutes:
    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [
            (25.4, "25 mins"),
            (59.6, "1h"),
            (60, "1h"),
            (65.2, "1h 5m"),
            (130, "2h 10m"),
        ],
    )
    def test_format(self, minutes: float, expected: str) -> None:
        assert format_minutes(minutes) == expected
