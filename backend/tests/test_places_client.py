"""Tests for the Places searchNearby client."""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from errors import SearchServiceFailure
from filters import FilterKey
from geo import Coordinate
from places_client import PlacesClient

ORIGIN = Coordinate(51.5, -0.12)

SAMPLE_RESPONSE = {
    "places": [
        {
            "id": "far",
            "displayName": {"text": "Far Station", "languageCode": "en"},
            "formattedAddress": "2 Far Rd",
            "location": {"latitude": 51.51, "longitude": -0.12},
        },
        {
            "id": "near",
            "displayName": {"text": "Near Station"},
            "formattedAddress": "1 Near Rd",
            "location": {"latitude": 51.501, "longitude": -0.12},
        },
        {"id": "broken", "displayName": {"text": "No Lng"}, "location": {"latitude": 51.502}},
    ]
}


def _client(handler, api_key="test-key"):
    return PlacesClient(api_key=api_key, transport=httpx.MockTransport(handler))


def test_request_shape_and_normalized_results():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    results = asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.FIRE_STATION))

    assert seen["method"] == "POST"
    assert seen["url"] == config.PLACES_SEARCH_URL
    assert seen["headers"]["X-Goog-Api-Key"] == "test-key"
    assert seen["headers"]["X-Goog-FieldMask"] == "places.id,places.displayName,places.formattedAddress,places.location"
    assert seen["body"] == {
        "includedTypes": ["fire_station"],
        "maxResultCount": 12,
        "rankPreference": "DISTANCE",
        "locationRestriction": {"circle": {"center": {"latitude": 51.5, "longitude": -0.12}, "radius": 1200.0}},
        "languageCode": "en",
    }
    assert [r.id for r in results] == ["near", "far"]
    assert results[0].compass == "N"


def test_poi_filter_sends_broad_types():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    results = asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.POI))
    assert results == ()
    assert bodies[0]["includedTypes"] == ["tourist_attraction", "point_of_interest", "establishment"]


def test_non_2xx_is_search_failure():
    def handler(request):
        return httpx.Response(403, json={"error": {"message": "API key not valid"}})

    with pytest.raises(SearchServiceFailure) as exc:
        asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.HOSPITAL))
    assert exc.value.status_code == 403
    assert "API key not valid" in exc.value.detail


def test_timeout_is_search_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SearchServiceFailure, match="timed out"):
        asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.POLICE))


def test_connection_error_is_search_failure():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(SearchServiceFailure):
        asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.POLICE))


def test_non_json_body_is_search_failure():
    def handler(request):
        return httpx.Response(200, text="<html>captive portal</html>")

    with pytest.raises(SearchServiceFailure):
        asyncio.run(_client(handler).fetch_results(ORIGIN, FilterKey.POI))


def test_missing_api_key_fails_without_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    with pytest.raises(SearchServiceFailure):
        asyncio.run(_client(handler, api_key="").fetch_results(ORIGIN, FilterKey.POI))
    assert calls == []


def test_default_timeout_is_eight_seconds():
    assert PlacesClient(api_key="k").timeout_s == 8.0


def test_slow_response_fails_at_overall_deadline():
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    client = PlacesClient(api_key="k", timeout_s=0.05, transport=httpx.MockTransport(handler))

    async def timed_fetch():
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(SearchServiceFailure, match="timed out"):
            await client.fetch_results(ORIGIN, FilterKey.HOSPITAL)
        return loop.time() - started

    assert asyncio.run(timed_fetch()) < 0.5
