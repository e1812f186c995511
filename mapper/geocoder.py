"""
Rate-limited address lookup.

Supports two providers:
1. Nominatim (default): free OpenStreetMap search, needs a User-Agent
2. Stadia Maps: keyed search, GeoJSON response

Every lookup waits on a minimum-interval gate before the HTTP call, and
the blocking requests call runs in a worker thread so the event loop
keeps serving other coroutines.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import requests

import config
from mapper.errors import GeocodingError
from mapper.models import GeocodeResult
from mapper.utils.geo_utils import parse_coord
from mapper.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

PROVIDERS = ("nominatim", "stadia")


def parse_nominatim_response(data: list) -> List[GeocodeResult]:
    """
    Normalize a Nominatim search response.

    Records without usable lat/lon are skipped.
    """
    if not isinstance(data, list):
        raise GeocodingError(f"Unexpected Nominatim response type: {type(data).__name__}")

    results = []
    for record in data:
        if not isinstance(record, dict):
            continue
        coord = parse_coord(record.get("lat"), record.get("lon"))
        if coord is None:
            logger.debug(f"Skipping record without usable coords: {record.get('display_name')}")
            continue
        name = record.get("display_name") or record.get("name") or "None"
        results.append(GeocodeResult(name=name, lat=coord[0], lon=coord[1]))
    return results


def parse_stadia_response(data: dict) -> List[GeocodeResult]:
    """
    Normalize a Stadia Maps (Pelias GeoJSON) search response.

    GeoJSON coordinates are [lon, lat].
    """
    if not isinstance(data, dict):
        raise GeocodingError(f"Unexpected Stadia response type: {type(data).__name__}")

    results = []
    for feature in data.get("features", []):
        coords = (feature.get("geometry") or {}).get("coordinates") or []
        props = feature.get("properties") or {}
        if len(coords) < 2:
            continue
        coord = parse_coord(coords[1], coords[0])
        if coord is None:
            logger.debug(f"Skipping feature without usable coords: {props.get('label')}")
            continue
        name = props.get("label") or props.get("name") or "None"
        results.append(GeocodeResult(name=name, lat=coord[0], lon=coord[1]))
    return results


class Geocoder:
    """Address-to-coordinate lookup with a minimum interval between calls."""

    def __init__(
        self,
        provider: str = config.GEOCODER_PROVIDER,
        rate_limit_ms: float = config.MIN_GEOCODE_INTERVAL_MS,
        timeout: Optional[float] = config.GEOCODE_TIMEOUT,
        api_key: Optional[str] = None,
        user_agent: str = config.GEOCODER_USER_AGENT,
    ):
        """
        Args:
            provider: "nominatim" or "stadia".
            rate_limit_ms: Minimum milliseconds between two lookups.
            timeout: HTTP timeout in seconds (None disables it).
            api_key: Stadia API key; defaults to STADIA_API_KEY.
            user_agent: User-Agent header sent with every request.
        """
        provider = provider.lower()
        if provider not in PROVIDERS:
            raise GeocodingError(f"Unknown geocoder provider: {provider!r} (expected one of {PROVIDERS})")

        self.provider = provider
        self.timeout = timeout
        self.user_agent = user_agent
        self.api_key = api_key if api_key is not None else config.STADIA_API_KEY
        self.limiter = RateLimiter.from_ms(rate_limit_ms, name=provider)

        if provider == "stadia" and not self.api_key:
            raise GeocodingError("STADIA_API_KEY is required for the stadia provider")

    def _build_request(self, address: str, limit: int) -> tuple:
        headers = {"User-Agent": self.user_agent}
        if self.provider == "stadia":
            headers["Authorization"] = f"Stadia-Auth {self.api_key}"
            return config.STADIA_URL, {"text": address, "size": limit}, headers
        return config.NOMINATIM_URL, {"q": address, "format": "json", "limit": limit}, headers

    def _fetch(self, address: str, limit: int):
        url, params, headers = self._build_request(address, limit)
        try:
            resp = requests.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise GeocodingError(f"Geocoding request failed: {e}") from e

        if not resp.ok:
            raise GeocodingError(f"Geocoding failed: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise GeocodingError(f"Geocoding returned invalid JSON: {e}") from e

    async def geocode(self, address: str, limit: int = 1) -> List[GeocodeResult]:
        """
        Resolve an address to candidate locations.

        Args:
            address: Free-text address.
            limit: Maximum number of results requested from the provider.

        Returns:
            List of GeocodeResult, possibly empty.

        Raises:
            ValueError: If the address is blank.
            GeocodingError: On HTTP or transport failure.
        """
        if not isinstance(address, str) or not address.strip():
            raise ValueError("Invalid address")

        await self.limiter.wait()

        query = address.strip()
        logger.debug(f"Geocoding {query!r} via {self.provider}")
        data = await asyncio.to_thread(self._fetch, query, limit)

        if self.provider == "stadia":
            results = parse_stadia_response(data)
        else:
            results = parse_nominatim_response(data)

        logger.info(f"Geocoded {query!r}: {len(results)} result(s)")
        return results
