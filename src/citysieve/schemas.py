"""Column contracts for search output artefacts.

These define the expected columns of each CSV the search writes, enabling
validation before writing and clear documentation of the outputs.
"""

from __future__ import annotations

# Per-dimension scores, 0-100; commute and family columns are blank when the
# dimension did not apply to the search.
DIMENSION_SCORE_COLUMNS = (
    "score_supermarkets",
    "score_highStreet",
    "score_pubsBars",
    "score_restaurantsCafes",
    "score_parksGreenSpaces",
    "score_gymsLeisure",
    "score_healthcare",
    "score_librariesCulture",
    "score_publicTransport",
    "score_trainStation",
    "score_peaceAndQuiet",
    "score_commute",
    "score_familyProximity",
    "score_socialScene",
)

AREA_COLUMNS = (
    "area_id",
    "name",
    "outcode",
    "lat",
    "lng",
    "area_type",
    "commute_minutes",
)

# ranked_areas.csv: top results in rank order
RANKED_AREA_COLUMNS = (
    "rank",
    *AREA_COLUMNS,
    "score",
    "highlights",  # pipe-separated dimension labels
    *DIMENSION_SCORE_COLUMNS,
)

# rejected_areas.csv: areas removed by the hard filters
REJECTED_AREA_COLUMNS = (
    *AREA_COLUMNS,
    "reasons",  # pipe-separated: commute | areaType | excludedArea
)


def validate_columns(df_columns: list[str], required: frozenset[str], output_name: str) -> None:
    """Validate that DataFrame has required columns.

    Args:
        df_columns: List of column names from DataFrame.
        required: Set of required column names.
        output_name: Name of the output for error messages.

    Raises:
        ValueError: If required columns are missing.
    """
    missing = required - set(df_columns)
    if missing:
        raise ValueError(f"{output_name}: Missing required columns: {sorted(missing)}")
