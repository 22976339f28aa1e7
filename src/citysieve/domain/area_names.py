"""Human-readable names for candidate areas.

Names are presentation only; they never influence scores. They do matter for
the excluded-areas filter, which matches against the display name.

Usage example:
    from citysieve.domain.area_names import PostcodeDistrict, display_name_for

    district = PostcodeDistrict(outcode="SW9", place_name="Stockwell")
    assert display_name_for(point, district) == "Stockwell, SW9"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .geodesy import GeoPoint

# Most specific first; the first populated key wins.
ADDRESS_NAME_KEYS: tuple[str, ...] = (
    "suburb",
    "village",
    "hamlet",
    "city_district",
    "town",
    "city",
)
# Coarse matches that cover a large area get a compass prefix.
DIRECTIONAL_ADDRESS_TYPES = frozenset({"city", "town", "city_district"})

DIRECTION_LAT_THRESHOLD = 0.015
DIRECTION_LNG_THRESHOLD = 0.02


@dataclass(frozen=True)
class PlaceName:
    """A reverse-geocoded name and the address level it was taken from."""

    name: str
    address_type: str | None = None


@dataclass(frozen=True)
class PostcodeDistrict:
    """Nearest postcode district (outcode) and its ward or borough name."""

    outcode: str
    place_name: str | None = None


def display_name_for(point: GeoPoint, district: PostcodeDistrict | None) -> str:
    if district is None:
        return f"Area near [{point.lat:.4f}, {point.lng:.4f}]"
    if district.place_name:
        return f"{district.place_name}, {district.outcode}"
    return district.outcode


def matched_address_type(address: Mapping[str, str] | None) -> str | None:
    if not address:
        return None
    for key in ADDRESS_NAME_KEYS:
        if address.get(key):
            return key
    return None


def extract_area_name(address: Mapping[str, str] | None, display_name: str = "") -> str | None:
    """Pick the most specific place name from a reverse-geocoded address.

    Falls back to the first comma-separated part of ``display_name``.
    """
    key = matched_address_type(address)
    if key is not None and address is not None:
        return address[key]
    head = display_name.split(",")[0].strip()
    return head or None


def cardinal_direction(centre: GeoPoint, point: GeoPoint) -> str | None:
    """Compass direction of ``point`` from ``centre``, or None when close by."""
    lat_diff = point.lat - centre.lat
    lng_diff = point.lng - centre.lng

    vertical = ""
    if lat_diff > DIRECTION_LAT_THRESHOLD:
        vertical = "North"
    elif lat_diff < -DIRECTION_LAT_THRESHOLD:
        vertical = "South"

    horizontal = ""
    if lng_diff > DIRECTION_LNG_THRESHOLD:
        horizontal = "East"
    elif lng_diff < -DIRECTION_LNG_THRESHOLD:
        horizontal = "West"

    direction = " ".join(part for part in (vertical, horizontal) if part)
    return direction or None


def directional_name(
    name: str, address_type: str | None, centre: GeoPoint, point: GeoPoint
) -> str:
    """Prefix city/town-level names with a direction so results stay distinct."""
    if address_type not in DIRECTIONAL_ADDRESS_TYPES:
        return name
    direction = cardinal_direction(centre, point)
    return f"{direction} {name}" if direction else name
