"""Tests for weighted scoring, highlights and ranking."""

import pytest

from citysieve.domain.areas import (
    PARKS_GREEN_SPACES,
    PUBS_BARS,
    RESTAURANTS_CAFES,
    SUPERMARKETS,
    AreaProfile,
    AreaType,
    normalize_amenities,
)
from citysieve.domain.preferences import (
    LifestylePreferences,
    TransportPreferences,
    UserPreferenceProfile,
)
from citysieve.domain.scoring import (
    COMMUTE,
    FAMILY_PROXIMITY,
    PEACE_AND_QUIET,
    PUBLIC_TRANSPORT,
    SOCIAL_SCENE,
    DimensionScore,
    composite_score,
    dimension_label,
    dimension_scores,
    get_rejected_areas,
    round_half_up,
    score_and_rank_areas,
    score_and_rank_with_details,
    select_highlights,
)
from citysieve.domain.weights import extract_weights
from tests.support.builders import LONDON, all_low_lifestyle, make_area, make_profile

LOW_TRANSPORT = TransportPreferences(public_transport_reliance=1, train_station_importance=1)


def _supermarket_only_profile() -> UserPreferenceProfile:
    return make_profile(
        lifestyle=LifestylePreferences(
            supermarkets=5,
            high_street=1,
            pubs_bars=1,
            restaurants_cafes=1,
            parks_green_spaces=1,
            gyms_leisure=1,
            healthcare=1,
            libraries_culture=1,
        ),
        transport=LOW_TRANSPORT,
        peace_and_quiet=1,
        family_proximity_importance=1,
        social_importance=1,
        days_per_week=0,
    )


class TestCompositeScore:
    def test_weighted_mean_scaled_to_hundred(self) -> None:
        entries = [DimensionScore("a", 1.0, 1.0), DimensionScore("b", 1.0, 0.0)]
        assert composite_score(entries) == 50.0

    def test_zero_weight_total_scores_zero(self) -> None:
        assert composite_score([DimensionScore("a", 0.0, 1.0)]) == 0.0
        assert composite_score([]) == 0.0

    def test_rounded_to_one_decimal(self) -> None:
        entries = [DimensionScore("a", 1.0, 1 / 3)]
        assert composite_score(entries) == 33.3

    def test_halves_round_up(self) -> None:
        entries = [DimensionScore("a", 1.0, 0.5), DimensionScore("b", 7.0, 0.0)]
        assert composite_score(entries) == 6.3


class TestSupermarketScenario:
    def test_more_supermarkets_scores_higher(self) -> None:
        """Only supermarkets are weighted, so scores are the normalised counts."""
        rich = make_area("rich", amenities={SUPERMARKETS: 10})
        poor = make_area("poor", amenities={SUPERMARKETS: 5})
        ranked = score_and_rank_areas([poor, rich], _supermarket_only_profile())
        assert [s.area.id for s in ranked] == ["rich", "poor"]
        assert ranked[0].score == 100.0
        assert ranked[1].score == 50.0
        assert ranked[0].highlights == (SUPERMARKETS,)


class TestDimensionScores:
    def test_commute_dimension_only_with_estimate(self) -> None:
        profile = make_profile(days_per_week=5, max_commute_time=40)
        weights = extract_weights(profile)
        with_commute = {
            e.name: e for e in dimension_scores(make_area(commute_estimate=10), weights, profile)
        }
        without = {e.name for e in dimension_scores(make_area(), weights, profile)}
        assert with_commute[COMMUTE].score == pytest.approx(0.75)
        assert with_commute[COMMUTE].weight == 1.0
        assert COMMUTE not in without

    def test_commute_beyond_cap_floors_at_zero(self) -> None:
        profile = make_profile(days_per_week=5, max_commute_time=30, hard_cap=False)
        entries = dimension_scores(
            make_area(commute_estimate=90), extract_weights(profile), profile
        )
        assert {e.name: e.score for e in entries}[COMMUTE] == 0.0

    def test_family_dimension_needs_family_location(self) -> None:
        area = make_area(lat=LONDON.lat, lng=LONDON.lng)
        near = make_profile(family_location=LONDON)
        entries = {e.name: e.score for e in dimension_scores(area, extract_weights(near), near)}
        assert entries[FAMILY_PROXIMITY] == 1.0
        far = make_profile()
        names = {e.name for e in dimension_scores(area, extract_weights(far), far)}
        assert FAMILY_PROXIMITY not in names

    def test_peace_proxy_by_area_type(self) -> None:
        profile = make_profile()
        weights = extract_weights(profile)
        rural = {
            e.name: e.score
            for e in dimension_scores(make_area(area_type=AreaType.RURAL), weights, profile)
        }
        centre = {
            e.name: e.score
            for e in dimension_scores(make_area(area_type=AreaType.CITY_CENTRE), weights, profile)
        }
        assert rural[PEACE_AND_QUIET] == 0.8
        assert centre[PEACE_AND_QUIET] == 0.3

    def test_social_scene_averages_pubs_and_dining(self) -> None:
        (area, other) = normalize_amenities(
            [
                make_area("a", amenities={PUBS_BARS: 4, RESTAURANTS_CAFES: 0}),
                make_area("b", amenities={PUBS_BARS: 4, RESTAURANTS_CAFES: 8}),
            ]
        )
        profile = make_profile()
        entries = dimension_scores(area, extract_weights(profile), profile)
        scores = {e.name: e.score for e in entries}
        assert scores[SOCIAL_SCENE] == pytest.approx(0.5)
        assert other.normalized(RESTAURANTS_CAFES) == 1.0


class TestHighlights:
    def test_top_three_weighted_dimensions(self) -> None:
        entries = [
            DimensionScore("a", 1.0, 0.2),
            DimensionScore("b", 0.0, 1.0),
            DimensionScore("c", 0.5, 0.9),
            DimensionScore("d", 0.5, 0.7),
            DimensionScore("e", 0.25, 0.8),
        ]
        assert select_highlights(entries) == ("c", "e", "d")

    def test_labels(self) -> None:
        assert dimension_label(PARKS_GREEN_SPACES) == "Green spaces"
        assert dimension_label("unknown") == "unknown"


class TestRanking:
    def _areas(self, count: int) -> list[AreaProfile]:
        return [
            make_area(f"area_{i}", amenities={SUPERMARKETS: i, PARKS_GREEN_SPACES: count - i})
            for i in range(count)
        ]

    def test_scores_in_range_and_descending(self) -> None:
        ranked = score_and_rank_areas(self._areas(15), make_profile())
        assert len(ranked) == 10
        scores = [s.score for s in ranked]
        assert all(0.0 <= score <= 100.0 for score in scores)
        assert scores == sorted(scores, reverse=True)

    def test_top_n_respected(self) -> None:
        assert len(score_and_rank_areas(self._areas(8), make_profile(), top_n=3)) == 3

    def test_details_partition_every_area(self) -> None:
        areas = self._areas(14)
        areas.append(make_area("too_far", commute_estimate=200))
        result = score_and_rank_with_details(areas, make_profile(max_commute_time=45))
        assert len(result.top_results) == 10
        assert len(result.passed_but_not_top) == 4
        assert [r.area.id for r in result.rejected] == ["too_far"]
        tail_best = max(s.score for s in result.passed_but_not_top)
        assert tail_best <= min(s.score for s in result.top_results)

    def test_ties_keep_input_order(self) -> None:
        areas = [make_area("first"), make_area("second"), make_area("third")]
        ranked = score_and_rank_areas(areas, make_profile(lifestyle=all_low_lifestyle()))
        assert [s.area.id for s in ranked] == ["first", "second", "third"]

    def test_nothing_passes(self) -> None:
        areas = [make_area(area_type=AreaType.RURAL)]
        profile = make_profile(area_types=frozenset({AreaType.CITY_CENTRE}))
        assert score_and_rank_areas(areas, profile) == []
        assert len(get_rejected_areas(areas, profile)) == 1

    def test_breakdown_uses_whole_percentages(self) -> None:
        (scored,) = score_and_rank_areas(
            [make_area(amenities={SUPERMARKETS: 3})], make_profile()
        )
        assert scored.breakdown[SUPERMARKETS] == 100
        assert all(isinstance(v, int) for v in scored.breakdown.values())

    def test_breakdown_rounds_halves_up(self) -> None:
        (scored,) = score_and_rank_areas([make_area(bus_frequency=0.125)], make_profile())
        assert scored.breakdown[PUBLIC_TRANSPORT] == 13


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "decimals", "expected"),
        [(12.5, 0, 13.0), (0.5, 0, 1.0), (12.25, 1, 12.3), (12.24, 1, 12.2), (7.0, 1, 7.0)],
    )
    def test_values(self, value: float, decimals: int, expected: float) -> None:
        assert round_half_up(value, decimals) == expected
