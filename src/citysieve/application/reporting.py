"""Search artefacts: ranked and rejected CSVs plus a JSON run summary.

Usage example:
    from pathlib import Path

    from citysieve.application.reporting import write_search_outputs
    from citysieve.infrastructure import LocalFileSystem

    outs = write_search_outputs(outcome, out_dir=Path("data/search"), fs=LocalFileSystem())
    print(outs["ranked"])
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from ..domain.areas import AreaProfile
from ..domain.filters import RejectedArea
from ..domain.scoring import ScoredArea, dimension_label
from ..observability import get_logger
from ..protocols import FileSystem
from ..schemas import (
    DIMENSION_SCORE_COLUMNS,
    RANKED_AREA_COLUMNS,
    REJECTED_AREA_COLUMNS,
    validate_columns,
)
from .search import SearchOutcome

logger = get_logger("citysieve.reporting")

RANKED_FILENAME = "ranked_areas.csv"
REJECTED_FILENAME = "rejected_areas.csv"
SUMMARY_FILENAME = "search_summary.json"


def _area_row(area: AreaProfile) -> dict[str, object]:
    commute = area.commute_estimate
    return {
        "area_id": area.id,
        "name": area.name,
        "outcode": area.outcode or "",
        "lat": area.coordinates.lat,
        "lng": area.coordinates.lng,
        "area_type": area.area_type.value,
        "commute_minutes": round(commute, 1) if commute is not None else None,
    }


def ranked_frame(top_results: Iterable[ScoredArea]) -> pd.DataFrame:
    rows: list[dict[str, object]] = []
    for rank, scored in enumerate(top_results, start=1):
        row: dict[str, object] = {"rank": rank, **_area_row(scored.area)}
        row["score"] = scored.score
        row["highlights"] = "|".join(dimension_label(name) for name in scored.highlights)
        for column in DIMENSION_SCORE_COLUMNS:
            row[column] = scored.breakdown.get(column.removeprefix("score_"))
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(RANKED_AREA_COLUMNS))
    validate_columns(list(df.columns), frozenset(RANKED_AREA_COLUMNS), "Ranked areas")
    return df


def rejected_frame(rejected: Iterable[RejectedArea]) -> pd.DataFrame:
    rows = [
        {
            **_area_row(item.area),
            "reasons": "|".join(sorted(reason.value for reason in item.reasons)),
        }
        for item in rejected
    ]
    df = pd.DataFrame(rows, columns=list(REJECTED_AREA_COLUMNS))
    validate_columns(list(df.columns), frozenset(REJECTED_AREA_COLUMNS), "Rejected areas")
    return df


def search_summary(outcome: SearchOutcome) -> dict[str, object]:
    """JSON-ready description of one search run."""
    result = outcome.result
    reason_counts = Counter(
        reason.value for item in result.rejected for reason in item.reasons
    )
    return {
        "generated_at": datetime.now(UTC).isoformat(),
        "centre": {"lat": outcome.centre.lat, "lng": outcome.centre.lng},
        "radius_km": outcome.radius_km,
        "inner_km": outcome.inner_km,
        "spacing_km": outcome.spacing_km,
        "densified": outcome.densified,
        "candidate_count": outcome.candidate_count,
        "enriched_count": outcome.enriched_count,
        "unverified_ids": sorted(outcome.unverified_ids),
        "ranked_count": len(result.top_results),
        "rejected_count": len(result.rejected),
        "passed_but_not_top_count": len(result.passed_but_not_top),
        "rejection_reasons": dict(sorted(reason_counts.items())),
        "top_results": [
            {
                "area_id": scored.area.id,
                "name": scored.area.name,
                "score": scored.score,
                "highlights": [dimension_label(name) for name in scored.highlights],
                "unverified": scored.area.id in outcome.unverified_ids,
            }
            for scored in result.top_results
        ],
    }


def write_search_outputs(
    outcome: SearchOutcome, *, out_dir: str | Path, fs: FileSystem
) -> dict[str, Path]:
    """Write the ranked CSV, rejected CSV and JSON summary into ``out_dir``."""
    out_path = Path(out_dir)
    fs.mkdir(out_path, parents=True)

    outs = {
        "ranked": out_path / RANKED_FILENAME,
        "rejected": out_path / REJECTED_FILENAME,
        "summary": out_path / SUMMARY_FILENAME,
    }
    fs.write_csv(ranked_frame(outcome.result.top_results), outs["ranked"])
    fs.write_csv(rejected_frame(outcome.result.rejected), outs["rejected"])
    fs.write_json(search_summary(outcome), outs["summary"])
    logger.info("Wrote search outputs to %s", out_path)
    return outs
