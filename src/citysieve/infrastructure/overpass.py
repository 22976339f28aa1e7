"""Overpass API adapter: categorised amenity counts around a point.

Public Overpass instances are often overloaded, so each query is tried
against a list of mirrors in turn.

Usage example:
    from citysieve.domain.geodesy import GeoPoint
    from citysieve.infrastructure.overpass import OverpassAmenityCounter

    counter = OverpassAmenityCounter(http_client=http_client)
    counts = counter.count(GeoPoint(lat=51.5074, lng=-0.1278), radius_m=1000)
    assert set(counts) >= {"supermarkets", "busStop"}
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import override

import requests

from ..domain.areas import (
    BUS_STOP,
    GYMS_LEISURE,
    HEALTHCARE,
    HIGH_STREET,
    LIBRARIES_CULTURE,
    PARKS_GREEN_SPACES,
    PUBS_BARS,
    RESTAURANTS_CAFES,
    SCHOOLS,
    SUPERMARKETS,
    TRAIN_STATION,
)
from ..domain.geodesy import GeoPoint
from ..exceptions import AllEndpointsFailedError, RateLimitError, UpstreamResponseError
from ..observability import get_logger
from ..protocols import AmenityCounter, HttpClient
from .io.validation import IncomingDataError, parse_overpass_elements

logger = get_logger("citysieve.infrastructure.overpass")

SERVICE_NAME = "Overpass"
DEFAULT_ENDPOINTS: tuple[str, ...] = (
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.openstreetmap.fr/api/interpreter",
)
MIRROR_BACKOFF_SECONDS = 1.0
QUERY_TIMEOUT_SECONDS = 30
# ~500 m grid so neighbouring lookups share a cache entry.
CACHE_GRID_DEGREES = 0.005

# (category, tag key, accepted values); None accepts any value of the key.
CATEGORY_TAG_RULES: tuple[tuple[str, str, frozenset[str] | None], ...] = (
    (SUPERMARKETS, "shop", frozenset({"supermarket", "convenience"})),
    (HIGH_STREET, "shop", None),
    (PUBS_BARS, "amenity", frozenset({"pub", "bar"})),
    (RESTAURANTS_CAFES, "amenity", frozenset({"restaurant", "cafe"})),
    (PARKS_GREEN_SPACES, "leisure", frozenset({"park", "garden"})),
    (GYMS_LEISURE, "leisure", frozenset({"fitness_centre", "sports_centre"})),
    (HEALTHCARE, "amenity", frozenset({"pharmacy", "hospital", "doctors"})),
    (LIBRARIES_CULTURE, "amenity", frozenset({"library", "theatre", "cinema"})),
    (SCHOOLS, "amenity", frozenset({"school", "kindergarten"})),
    (TRAIN_STATION, "railway", frozenset({"station", "halt"})),
    (BUS_STOP, "highway", frozenset({"bus_stop"})),
)

# Node selectors for the query; "shop" alone covers every shop type.
_QUERY_SELECTORS: tuple[str, ...] = (
    '["shop"]',
    '["amenity"~"^(pub|bar|restaurant|cafe|pharmacy|hospital|doctors|library|theatre|cinema'
    '|school|kindergarten)$"]',
    '["leisure"~"^(park|garden|fitness_centre|sports_centre)$"]',
    '["railway"~"^(station|halt)$"]',
    '["highway"="bus_stop"]',
)


def build_overpass_query(point: GeoPoint, radius_m: int) -> str:
    around = f"(around:{radius_m},{point.lat},{point.lng})"
    body = "\n".join(f"  node{selector}{around};" for selector in _QUERY_SELECTORS)
    return f"[out:json][timeout:{QUERY_TIMEOUT_SECONDS}];\n(\n{body}\n);\nout body;"


def count_amenities(elements: Sequence[Mapping[str, object]]) -> dict[str, int]:
    """Count elements per category; one element may count towards several."""
    counts = {category: 0 for category, _, _ in CATEGORY_TAG_RULES}
    for element in elements:
        tags = element.get("tags")
        if not isinstance(tags, Mapping):
            continue
        for category, key, values in CATEGORY_TAG_RULES:
            value = tags.get(key)
            if not value:
                continue
            if values is None or value in values:
                counts[category] += 1
    return counts


def _snap(value: float) -> float:
    return round(round(value / CACHE_GRID_DEGREES) * CACHE_GRID_DEGREES, 3)


def overpass_cache_key(point: GeoPoint, radius_m: int) -> str:
    return f"overpass:{_snap(point.lat)}:{_snap(point.lng)}:{radius_m}"


def _default_endpoints() -> tuple[str, ...]:
    return DEFAULT_ENDPOINTS


@dataclass
class OverpassAmenityCounter(AmenityCounter):
    """Counts amenities with an Overpass QL ``around`` query."""

    http_client: HttpClient
    endpoints: tuple[str, ...] = field(default_factory=_default_endpoints)
    mirror_backoff_seconds: float = MIRROR_BACKOFF_SECONDS
    sleep: Callable[[float], None] = time.sleep

    @override
    def count(self, point: GeoPoint, radius_m: int) -> dict[str, int]:
        """Raises AllEndpointsFailedError when every mirror fails."""
        query = build_overpass_query(point, radius_m)
        cache_key = overpass_cache_key(point, radius_m)
        for index, endpoint in enumerate(self.endpoints):
            try:
                payload = self.http_client.post_form(endpoint, {"data": query}, cache_key)
                elements = parse_overpass_elements(payload)
            except (
                requests.RequestException,
                RateLimitError,
                UpstreamResponseError,
                IncomingDataError,
            ) as exc:
                logger.warning("Overpass mirror %s failed: %s", endpoint, exc)
                if index < len(self.endpoints) - 1:
                    self.sleep(self.mirror_backoff_seconds * (index + 1))
                continue
            return count_amenities(elements)
        raise AllEndpointsFailedError(SERVICE_NAME, len(self.endpoints))
