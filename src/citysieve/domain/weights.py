"""Map survey answers onto a numeric scoring weight vector."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from .preferences import LIKERT_MAX, LIKERT_MIN, MAX_DAYS_PER_WEEK, UserPreferenceProfile


def normalize_likert(value: int) -> float:
    """Map a 1-5 Likert rating onto 0, 0.25, 0.5, 0.75 or 1."""
    return (value - LIKERT_MIN) / (LIKERT_MAX - LIKERT_MIN)


@dataclass(frozen=True)
class ScoringWeights:
    """One weight per scoring dimension, each in [0, 1]."""

    supermarkets: float = 0.0
    high_street: float = 0.0
    pubs_bars: float = 0.0
    restaurants_cafes: float = 0.0
    parks_green_spaces: float = 0.0
    gyms_leisure: float = 0.0
    healthcare: float = 0.0
    libraries_culture: float = 0.0
    public_transport: float = 0.0
    train_station: float = 0.0
    peace_and_quiet: float = 0.0
    family_proximity: float = 0.0
    social_scene: float = 0.0
    commute: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def extract_weights(profile: UserPreferenceProfile) -> ScoringWeights:
    lifestyle = profile.lifestyle
    return ScoringWeights(
        supermarkets=normalize_likert(lifestyle.supermarkets),
        high_street=normalize_likert(lifestyle.high_street),
        pubs_bars=normalize_likert(lifestyle.pubs_bars),
        restaurants_cafes=normalize_likert(lifestyle.restaurants_cafes),
        parks_green_spaces=normalize_likert(lifestyle.parks_green_spaces),
        gyms_leisure=normalize_likert(lifestyle.gyms_leisure),
        healthcare=normalize_likert(lifestyle.healthcare),
        libraries_culture=normalize_likert(lifestyle.libraries_culture),
        public_transport=normalize_likert(profile.transport.public_transport_reliance),
        train_station=normalize_likert(profile.transport.train_station_importance),
        peace_and_quiet=normalize_likert(profile.environment.peace_and_quiet),
        family_proximity=normalize_likert(profile.family.family_proximity_importance),
        social_scene=normalize_likert(profile.family.social_importance),
        # A remote worker's commute carries no weight at all.
        commute=profile.commute.days_per_week / MAX_DAYS_PER_WEEK,
    )
