"""postcodes.io adapter: land validity and postcode districts.

A point counts as inhabited when postcodes.io can find a postcode near it;
points out at sea come back with no match.

Usage example:
    from citysieve.domain.geodesy import GeoPoint
    from citysieve.infrastructure.postcodes import PostcodesIoClient

    client = PostcodesIoClient(http_client=http_client)
    flags = client.resolve_batch([GeoPoint(lat=51.5074, lng=-0.1278)])
    district = client.postcode_district(GeoPoint(lat=51.5074, lng=-0.1278))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import override
from urllib.parse import urlencode

from ..domain.area_names import PostcodeDistrict
from ..domain.geodesy import GeoPoint
from ..exceptions import UpstreamResponseError
from ..protocols import HttpClient, PointResolver, PostcodeLookup
from .io.validation import IncomingDataError, parse_bulk_reverse, parse_postcode_lookup

SERVICE_NAME = "postcodes.io"
DEFAULT_BASE_URL = "https://api.postcodes.io"
MAX_BULK_GEOLOCATIONS = 100
DEFAULT_LOOKUP_RADIUS_M = 1000
CACHE_KEY_DECIMALS = 4


def postcode_cache_key(point: GeoPoint) -> str:
    return f"postcode:{point.lat:.{CACHE_KEY_DECIMALS}f},{point.lng:.{CACHE_KEY_DECIMALS}f}"


@dataclass
class PostcodesIoClient(PointResolver, PostcodeLookup):
    """Resolves points against postcodes.io."""

    http_client: HttpClient
    base_url: str = DEFAULT_BASE_URL
    lookup_radius_m: int = DEFAULT_LOOKUP_RADIUS_M

    @override
    def resolve_batch(self, points: Sequence[GeoPoint]) -> list[bool]:
        """Flag each point that has a postcode within ``lookup_radius_m``.

        Raises:
            ValueError: If more than 100 points are sent at once.
            UpstreamResponseError: If the response does not line up with the request.
        """
        if not points:
            return []
        if len(points) > MAX_BULK_GEOLOCATIONS:
            raise ValueError(
                f"postcodes.io accepts at most {MAX_BULK_GEOLOCATIONS} points per request; "
                f"got {len(points)}."
            )
        payload: dict[str, object] = {
            "geolocations": [
                {
                    "longitude": point.lng,
                    "latitude": point.lat,
                    "limit": 1,
                    "radius": self.lookup_radius_m,
                }
                for point in points
            ]
        }
        response = self.http_client.post_json(f"{self.base_url}/postcodes", payload)
        try:
            entries = parse_bulk_reverse(response)
        except IncomingDataError as exc:
            raise UpstreamResponseError(SERVICE_NAME, str(exc)) from exc
        if len(entries) != len(points):
            raise UpstreamResponseError(
                SERVICE_NAME, f"expected {len(points)} results, got {len(entries)}"
            )
        return [bool(entry["matches"]) for entry in entries]

    @override
    def postcode_district(self, point: GeoPoint) -> PostcodeDistrict | None:
        """Nearest outcode and ward (or district) name; None when nothing is near."""
        query = urlencode({"lon": point.lng, "lat": point.lat, "limit": 1})
        response = self.http_client.get_json(
            f"{self.base_url}/postcodes?{query}", cache_key=postcode_cache_key(point)
        )
        try:
            matches = parse_postcode_lookup(response)
        except IncomingDataError as exc:
            raise UpstreamResponseError(SERVICE_NAME, str(exc)) from exc
        if not matches or not matches[0]["outcode"]:
            return None
        nearest = matches[0]
        place_name = nearest["admin_ward"] or nearest["admin_district"] or None
        return PostcodeDistrict(outcode=nearest["outcode"], place_name=place_name)
