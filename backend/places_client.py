"""Places search client using Google Places API (New) searchNearby.

- One POST per search, ranked by distance, bounded result count.
- Field mask limits the payload to id/name/address/location.
- Fixed timeout; any network error, timeout or non-2xx is a SearchServiceFailure.
- No retries: the only retry path is a new filter selection or a new activation.
"""

import asyncio
import logging

import httpx

import config
from errors import SearchServiceFailure
from filters import FilterKey, included_types
from geo import Coordinate
from normalizer import ResultItem, normalize_response

logger = logging.getLogger(__name__)


def build_search_body(origin: Coordinate, types: list[str], radius_m: float, max_results: int, language: str) -> dict:
    return {
        "includedTypes": types,
        "maxResultCount": max_results,
        "rankPreference": "DISTANCE",
        "locationRestriction": {
            "circle": {
                "center": {"latitude": origin.lat, "longitude": origin.lng},
                "radius": radius_m,
            }
        },
        "languageCode": language,
    }


class PlacesClient:
    def __init__(
        self,
        api_key: str | None = None,
        url: str = config.PLACES_SEARCH_URL,
        radius_m: float = config.SEARCH_RADIUS_M,
        max_results: int = config.MAX_RESULT_COUNT,
        language: str = config.LANGUAGE_CODE,
        timeout_s: float = config.PLACES_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = config.GOOGLE_PLACES_API_KEY if api_key is None else api_key
        self.url = url
        self.radius_m = radius_m
        self.max_results = max_results
        self.language = language
        self.timeout_s = timeout_s
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": config.PLACES_FIELD_MASK,
        }

    async def _post(self, body: dict) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_s) as client:
            return await client.post(self.url, json=body, headers=self._headers())

    async def search_nearby(self, origin: Coordinate, types: list[str]) -> dict:
        """POST a searchNearby request and return the decoded JSON body."""
        if not self.api_key:
            raise SearchServiceFailure("GOOGLE_PLACES_API_KEY is not configured")

        body = build_search_body(origin, types, self.radius_m, self.max_results, self.language)
        try:
            # httpx timeouts are per phase; wait_for bounds the whole request
            resp = await asyncio.wait_for(self._post(body), self.timeout_s)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise SearchServiceFailure(f"Places search timed out after {self.timeout_s:g}s") from e
        except httpx.HTTPError as e:
            raise SearchServiceFailure(f"Places search request failed: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise SearchServiceFailure(
                f"Places search returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                detail=resp.text[:500],
            )
        try:
            return resp.json()
        except ValueError as e:
            raise SearchServiceFailure("Places search returned a non-JSON body", status_code=resp.status_code) from e

    async def fetch_results(self, origin: Coordinate, filter_key: FilterKey) -> tuple[ResultItem, ...]:
        """Search for the filter's place types around origin and normalize the response."""
        payload = await self.search_nearby(origin, included_types(filter_key))
        results = normalize_response(payload, origin)
        logger.info(
            "Places search filter=%s lat=%.6f lng=%.6f got %d results",
            filter_key.value, origin.lat, origin.lng, len(results),
        )
        return results
