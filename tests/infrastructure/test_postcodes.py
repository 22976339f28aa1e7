"""Tests for the postcodes.io adapter."""

import pytest

from citysieve.domain.area_names import PostcodeDistrict
from citysieve.domain.geodesy import GeoPoint
from citysieve.exceptions import UpstreamResponseError
from citysieve.infrastructure import PostcodesIoClient
from citysieve.infrastructure.postcodes import postcode_cache_key
from tests.fakes import FakeHttpClient

LAND = GeoPoint(lat=51.5074, lng=-0.1278)
SEA = GeoPoint(lat=50.5, lng=-1.5)


def _match(
    outcode: str, ward: str | None = None, district: str | None = None
) -> dict[str, str | None]:
    return {
        "postcode": f"{outcode} 1AA",
        "outcode": outcode,
        "admin_ward": ward,
        "admin_district": district,
    }


class TestResolveBatch:
    def test_flags_points_with_nearby_postcodes(self) -> None:
        http = FakeHttpClient(
            responses={
                "/postcodes": {
                    "status": 200,
                    "result": [
                        {"query": {}, "result": [_match("WC2N")]},
                        {"query": {}, "result": None},
                    ],
                }
            }
        )
        client = PostcodesIoClient(http_client=http, base_url="https://pc.test")
        assert client.resolve_batch([LAND, SEA]) == [True, False]
        method, url, body = http.calls[0]
        assert (method, url) == ("POST", "https://pc.test/postcodes")
        assert isinstance(body, dict)
        assert body["geolocations"][0] == {
            "longitude": LAND.lng,
            "latitude": LAND.lat,
            "limit": 1,
            "radius": 1000,
        }

    def test_empty_batch_makes_no_request(self) -> None:
        http = FakeHttpClient()
        assert PostcodesIoClient(http_client=http).resolve_batch([]) == []
        assert http.calls == []

    def test_rejects_oversized_batch(self) -> None:
        client = PostcodesIoClient(http_client=FakeHttpClient())
        with pytest.raises(ValueError):
            client.resolve_batch([LAND] * 101)

    def test_mismatched_result_count(self) -> None:
        http = FakeHttpClient(responses={"/postcodes": {"status": 200, "result": []}})
        with pytest.raises(UpstreamResponseError):
            PostcodesIoClient(http_client=http).resolve_batch([LAND])

    def test_malformed_payload(self) -> None:
        http = FakeHttpClient(responses={"/postcodes": {"status": 200}})
        with pytest.raises(UpstreamResponseError):
            PostcodesIoClient(http_client=http).resolve_batch([LAND])


class TestPostcodeDistrict:
    def test_prefers_ward_name(self) -> None:
        http = FakeHttpClient(
            responses={
                "/postcodes?": {
                    "status": 200,
                    "result": [_match("WC2N", ward="St James's", district="Westminster")],
                }
            }
        )
        district = PostcodesIoClient(http_client=http).postcode_district(LAND)
        assert district == PostcodeDistrict(outcode="WC2N", place_name="St James's")
        assert http.cache_keys == [postcode_cache_key(LAND)]
        assert "lon=-0.1278" in http.calls[0][1]

    def test_falls_back_to_district(self) -> None:
        http = FakeHttpClient(
            responses={
                "/postcodes?": {"status": 200, "result": [_match("M20", None, "Manchester")]}
            }
        )
        district = PostcodesIoClient(http_client=http).postcode_district(LAND)
        assert district == PostcodeDistrict(outcode="M20", place_name="Manchester")

    def test_no_match(self) -> None:
        http = FakeHttpClient(responses={"/postcodes?": {"status": 200, "result": None}})
        assert PostcodesIoClient(http_client=http).postcode_district(SEA) is None

    def test_cache_key_is_rounded(self) -> None:
        assert postcode_cache_key(GeoPoint(lat=51.50741, lng=-0.12779)) == (
            "postcode:51.5074,-0.1278"
        )
