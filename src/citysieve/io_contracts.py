"""Boundary-neutral IO contracts for infrastructure validation.

Upstream payloads are validated into these shapes before any adapter reads
them, so adapters never index into raw JSON.

Usage example:
    from citysieve.io_contracts import PostcodeMatchIO

    match: PostcodeMatchIO = {
        "postcode": "SW9 8AB",
        "outcode": "SW9",
        "admin_ward": "Stockwell West & Larkhall",
        "admin_district": "Lambeth",
    }
"""

from __future__ import annotations

from typing import TypedDict


class PostcodeMatchIO(TypedDict):
    """postcodes.io nearest-postcode payload shape (fields used here)."""

    postcode: str
    outcode: str
    admin_ward: str
    admin_district: str


class BulkReverseItemIO(TypedDict):
    """One entry of a postcodes.io bulk reverse-geocode response."""

    matches: list[PostcodeMatchIO]


class OverpassElementIO(TypedDict):
    """Overpass element payload shape (only tags are counted)."""

    type: str
    id: int
    tags: dict[str, str]


class NominatimAddressIO(TypedDict):
    """Nominatim reverse-geocode payload shape."""

    display_name: str
    address: dict[str, str]


class NominatimPlaceIO(TypedDict):
    """Nominatim forward search hit."""

    display_name: str
    lat: float
    lng: float

