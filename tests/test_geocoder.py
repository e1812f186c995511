"""Tests for the rate-limited geocoder."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from mapper.errors import GeocodingError
from mapper.geocoder import Geocoder, parse_nominatim_response, parse_stadia_response

NOMINATIM_DATA = [
    {"display_name": "Springfield, Sangamon County, Illinois", "lat": "39.7990", "lon": "-89.6440"},
    {"display_name": "Springfield, Greene County, Missouri", "lat": "37.2090", "lon": "-93.2923"},
]

STADIA_DATA = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [-89.644, 39.799]},
            "properties": {"label": "Springfield, IL, USA", "name": "Springfield"},
        },
    ],
}


def make_response(data=None, status=200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = data
    return resp


class TestParseNominatim:
    def test_parses_records(self):
        results = parse_nominatim_response(NOMINATIM_DATA)
        assert len(results) == 2
        assert results[0].name.startswith("Springfield")
        assert results[0].lat == pytest.approx(39.799)
        assert results[0].lon == pytest.approx(-89.644)

    def test_skips_unusable_coords(self):
        data = [{"display_name": "Broken", "lat": "abc", "lon": "1"}, NOMINATIM_DATA[0]]
        results = parse_nominatim_response(data)
        assert len(results) == 1

    def test_missing_name_defaults(self):
        results = parse_nominatim_response([{"lat": "1", "lon": "2"}])
        assert results[0].name == "None"

    def test_empty_list(self):
        assert parse_nominatim_response([]) == []

    def test_wrong_type_raises(self):
        with pytest.raises(GeocodingError):
            parse_nominatim_response({"error": "nope"})


class TestParseStadia:
    def test_coordinates_are_lon_lat(self):
        results = parse_stadia_response(STADIA_DATA)
        assert len(results) == 1
        assert results[0].lat == pytest.approx(39.799)
        assert results[0].lon == pytest.approx(-89.644)
        assert results[0].name == "Springfield, IL, USA"

    def test_feature_without_geometry_skipped(self):
        data = {"features": [{"properties": {"label": "X"}}]}
        assert parse_stadia_response(data) == []


class TestGeocoder:
    @patch("mapper.geocoder.requests.get")
    def test_nominatim_request(self, mock_get):
        mock_get.return_value = make_response(NOMINATIM_DATA)
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=0)

        results = asyncio.run(geocoder.geocode("  Springfield  ", limit=2))

        assert len(results) == 2
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"q": "Springfield", "format": "json", "limit": 2}
        assert "User-Agent" in kwargs["headers"]
        assert kwargs["timeout"] == geocoder.timeout

    @patch("mapper.geocoder.requests.get")
    def test_stadia_request_uses_key(self, mock_get):
        mock_get.return_value = make_response(STADIA_DATA)
        geocoder = Geocoder(provider="stadia", rate_limit_ms=0, api_key="secret")

        results = asyncio.run(geocoder.geocode("Springfield"))

        assert len(results) == 1
        _, kwargs = mock_get.call_args
        assert kwargs["headers"]["Authorization"] == "Stadia-Auth secret"
        assert kwargs["params"] == {"text": "Springfield", "size": 1}

    def test_stadia_without_key_raises(self):
        with pytest.raises(GeocodingError):
            Geocoder(provider="stadia", api_key="")

    def test_unknown_provider_raises(self):
        with pytest.raises(GeocodingError):
            Geocoder(provider="mapquest")

    @patch("mapper.geocoder.requests.get")
    def test_http_error_raises(self, mock_get):
        mock_get.return_value = make_response(status=503)
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=0)

        with pytest.raises(GeocodingError, match="503"):
            asyncio.run(geocoder.geocode("Springfield"))

    @patch("mapper.geocoder.requests.get")
    def test_transport_error_raises(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("connection refused")
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=0)

        with pytest.raises(GeocodingError) as exc_info:
            asyncio.run(geocoder.geocode("Springfield"))
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    @patch("mapper.geocoder.requests.get")
    def test_invalid_json_raises(self, mock_get):
        resp = make_response()
        resp.json.side_effect = ValueError("no JSON")
        mock_get.return_value = resp
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=0)

        with pytest.raises(GeocodingError):
            asyncio.run(geocoder.geocode("Springfield"))

    @pytest.mark.parametrize("address", ["", "   ", None])
    @patch("mapper.geocoder.requests.get")
    def test_blank_address_raises_without_request(self, mock_get, address):
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=0)

        with pytest.raises(ValueError, match="Invalid address"):
            asyncio.run(geocoder.geocode(address))
        mock_get.assert_not_called()

    @patch("mapper.geocoder.requests.get")
    def test_each_call_waits_on_limiter(self, mock_get):
        mock_get.return_value = make_response([])
        geocoder = Geocoder(provider="nominatim", rate_limit_ms=1000)
        calls = []

        async def fake_wait():
            calls.append(1)
            return 0.0

        geocoder.limiter.wait = fake_wait

        async def lookups():
            await geocoder.geocode("a")
            await geocoder.geocode("b")

        asyncio.run(lookups())
        assert len(calls) == 2
        assert mock_get.call_count == 2
