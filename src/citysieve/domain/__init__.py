"""Pure domain modules: geometry, area profiles, filters and scoring."""

from .areas import AreaProfile, AreaType, normalize_amenities
from .filters import apply_hard_filters, apply_hard_filters_with_reasons, get_filter_status
from .geodesy import CommuteMode, GeoLocation, GeoPoint
from .grid import CandidateArea, generate_candidate_areas
from .preferences import UserPreferenceProfile
from .scoring import ScoredArea, score_and_rank_areas
from .weights import ScoringWeights, extract_weights

__all__ = [
    "AreaProfile",
    "AreaType",
    "CandidateArea",
    "CommuteMode",
    "GeoLocation",
    "GeoPoint",
    "ScoredArea",
    "ScoringWeights",
    "UserPreferenceProfile",
    "apply_hard_filters",
    "apply_hard_filters_with_reasons",
    "extract_weights",
    "generate_candidate_areas",
    "get_filter_status",
    "normalize_amenities",
    "score_and_rank_areas",
]
