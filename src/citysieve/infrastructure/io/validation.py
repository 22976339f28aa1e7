"""Pydantic-based validation helpers for inbound IO payloads."""

from __future__ import annotations

from typing import TypedDict

from pydantic import TypeAdapter, ValidationError

from ...io_contracts import (
    BulkReverseItemIO,
    NominatimAddressIO,
    NominatimPlaceIO,
    OverpassElementIO,
    PostcodeMatchIO,
)


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class PostcodeMatchInput(TypedDict, total=False):
    postcode: str | None
    outcode: str | None
    admin_ward: str | None
    admin_district: str | None


class PostcodeLookupInput(TypedDict, total=False):
    status: int
    result: list[PostcodeMatchInput] | None


class BulkReverseEntryInput(TypedDict, total=False):
    query: dict[str, object] | None
    result: list[PostcodeMatchInput] | None


class BulkReverseInput(TypedDict, total=False):
    status: int
    result: list[BulkReverseEntryInput] | None


class OverpassElementInput(TypedDict, total=False):
    type: str | None
    id: int | None
    tags: dict[str, str] | None


class OverpassResponseInput(TypedDict, total=False):
    elements: list[OverpassElementInput] | None


class NominatimReverseInput(TypedDict, total=False):
    display_name: str | None
    address: dict[str, str] | None
    error: str | None


class NominatimSearchItemInput(TypedDict, total=False):
    display_name: str | None
    lat: float | str | None
    lon: float | str | None


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _postcode_match(raw: PostcodeMatchInput) -> PostcodeMatchIO:
    return {
        "postcode": _as_str(raw.get("postcode")),
        "outcode": _as_str(raw.get("outcode")),
        "admin_ward": _as_str(raw.get("admin_ward")),
        "admin_district": _as_str(raw.get("admin_district")),
    }


def parse_postcode_lookup(payload: object) -> list[PostcodeMatchIO]:
    """Nearest-postcode matches from ``GET /postcodes?lon=&lat=``; empty when none."""
    response = validate_as(PostcodeLookupInput, payload)
    return [_postcode_match(item) for item in response.get("result") or []]


def parse_bulk_reverse(payload: object) -> list[BulkReverseItemIO]:
    """One entry per queried point from ``POST /postcodes``, in request order."""
    response = validate_as(BulkReverseInput, payload)
    entries = response.get("result")
    if entries is None:
        raise IncomingDataError("Bulk reverse geocode response has no result list.")
    return [
        {"matches": [_postcode_match(item) for item in entry.get("result") or []]}
        for entry in entries
    ]


def parse_overpass_elements(payload: object) -> list[OverpassElementIO]:
    response = validate_as(OverpassResponseInput, payload)
    elements: list[OverpassElementIO] = []
    for raw in response.get("elements") or []:
        elements.append(
            {
                "type": _as_str(raw.get("type")),
                "id": raw.get("id") or 0,
                "tags": dict(raw.get("tags") or {}),
            }
        )
    return elements


def parse_nominatim_reverse(payload: object) -> NominatimAddressIO | None:
    """Reverse-geocode result, or None when Nominatim reports no match."""
    response = validate_as(NominatimReverseInput, payload)
    if response.get("error"):
        return None
    return {
        "display_name": _as_str(response.get("display_name")),
        "address": dict(response.get("address") or {}),
    }


def parse_nominatim_search(payload: object) -> list[NominatimPlaceIO]:
    items = validate_as(list[NominatimSearchItemInput], payload)
    places: list[NominatimPlaceIO] = []
    for item in items:
        lat = item.get("lat")
        lon = item.get("lon")
        if lat is None or lon is None:
            continue
        try:
            coordinates = validate_as(tuple[float, float], (lat, lon))
        except IncomingDataError:
            continue
        places.append(
            {
                "display_name": _as_str(item.get("display_name")),
                "lat": coordinates[0],
                "lng": coordinates[1],
            }
        )
    return places
