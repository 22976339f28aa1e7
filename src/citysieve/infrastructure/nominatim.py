"""Nominatim adapter: neighbourhood names and UK place search.

Nominatim's usage policy asks for an identifying User-Agent and no more than
one request per second; the composition root configures both.

Usage example:
    from citysieve.infrastructure.nominatim import NominatimClient

    client = NominatimClient(http_client=http_client)
    location = client.geocode("Brixton")
    name = client.reverse_geocode(location) if location else None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import override
from urllib.parse import urlencode

from ..domain.area_names import PlaceName, extract_area_name, matched_address_type
from ..domain.geodesy import GeoLocation, GeoPoint
from ..exceptions import UpstreamResponseError
from ..io_contracts import NominatimAddressIO
from ..protocols import AreaNameResolver, HttpClient, PlaceGeocoder, PlaceNameLookup
from .io.validation import IncomingDataError, parse_nominatim_reverse, parse_nominatim_search

SERVICE_NAME = "Nominatim"
DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"
REVERSE_ZOOM = 14
COUNTRY_CODES = "gb"


@dataclass
class NominatimClient(AreaNameResolver, PlaceNameLookup, PlaceGeocoder):
    http_client: HttpClient
    base_url: str = DEFAULT_BASE_URL

    @override
    def reverse_lookup(self, point: GeoPoint) -> PlaceName | None:
        """Most specific place name plus the address level it came from."""
        query = urlencode(
            {
                "lat": f"{point.lat:.4f}",
                "lon": f"{point.lng:.4f}",
                "format": "json",
                "addressdetails": 1,
                "zoom": REVERSE_ZOOM,
            }
        )
        payload = self.http_client.get_json(
            f"{self.base_url}/reverse?{query}",
            cache_key=f"nominatim:reverse:{point.lat:.4f},{point.lng:.4f}",
        )
        try:
            result: NominatimAddressIO | None = parse_nominatim_reverse(payload)
        except IncomingDataError as exc:
            raise UpstreamResponseError(SERVICE_NAME, str(exc)) from exc
        if result is None:
            return None
        name = extract_area_name(result["address"], result["display_name"])
        if name is None:
            return None
        return PlaceName(name=name, address_type=matched_address_type(result["address"]))

    @override
    def reverse_geocode(self, point: GeoPoint) -> str | None:
        result = self.reverse_lookup(point)
        return result.name if result else None

    @override
    def geocode(self, query: str) -> GeoLocation | None:
        """First UK match for a free-text place name."""
        cleaned = query.strip()
        if not cleaned:
            return None
        params = urlencode(
            {
                "q": cleaned,
                "format": "json",
                "limit": 1,
                "countrycodes": COUNTRY_CODES,
            }
        )
        payload = self.http_client.get_json(
            f"{self.base_url}/search?{params}",
            cache_key=f"nominatim:search:{cleaned.casefold()}",
        )
        try:
            places = parse_nominatim_search(payload)
        except IncomingDataError as exc:
            raise UpstreamResponseError(SERVICE_NAME, str(exc)) from exc
        if not places:
            return None
        best = places[0]
        return GeoLocation(lat=best["lat"], lng=best["lng"], label=cleaned)
