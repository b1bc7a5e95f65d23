"""Location provider seam: permission, current coordinate and reverse geocoding.

The controller only depends on the LocationProvider protocol. The service
ships ReportedLocationProvider, which serves a coordinate reported by the
client device and resolves addresses through OpenStreetMap Nominatim.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import httpx

import config
from errors import GeocodeFailure, LocationUnavailable
from geo import Coordinate

logger = logging.getLogger(__name__)


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class AddressComponents:
    name: str | None = None
    street: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None

    def format_line(self) -> str:
        parts = [self.name, self.street, self.city, self.region, self.postal_code]
        return ", ".join(p for p in parts if p)


class LocationProvider(Protocol):
    async def request_permission(self) -> PermissionStatus: ...

    async def get_current_coordinate(self) -> Coordinate: ...

    async def reverse_geocode(self, coordinate: Coordinate) -> AddressComponents: ...


def _parse_nominatim(data: dict) -> AddressComponents:
    address = data.get("address")
    if not isinstance(address, dict) or not address:
        raise GeocodeFailure(data.get("error") or "no address in reverse geocode response")
    street_parts = [address.get("house_number"), address.get("road") or address.get("pedestrian")]
    street = " ".join(str(p) for p in street_parts if p) or None
    city = address.get("city") or address.get("town") or address.get("village") or address.get("hamlet")
    name = data.get("name") or None
    # Nominatim repeats the road as the name for plain street addresses
    if name and name == address.get("road"):
        name = None
    return AddressComponents(
        name=name,
        street=street,
        city=city,
        region=address.get("state"),
        postal_code=address.get("postcode"),
    )


class NominatimGeocoder:
    def __init__(
        self,
        url: str = config.NOMINATIM_REVERSE_URL,
        user_agent: str = config.NOMINATIM_USER_AGENT,
        timeout_s: float = config.GEOCODE_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.headers = {"User-Agent": user_agent}
        self.timeout_s = timeout_s
        self._transport = transport

    async def reverse(self, coordinate: Coordinate) -> AddressComponents:
        params = {
            "format": "jsonv2",
            "lat": str(coordinate.lat),
            "lon": str(coordinate.lng),
            "zoom": "18",
            "addressdetails": "1",
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_s) as client:
                resp = await client.get(self.url, params=params, headers=self.headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GeocodeFailure(f"reverse geocode failed: {e}") from e
        if not isinstance(data, dict):
            raise GeocodeFailure("unexpected reverse geocode response")
        return _parse_nominatim(data)


class ReportedLocationProvider:
    """Serves the most recent coordinate and permission reported by the client."""

    def __init__(
        self,
        coordinate: Coordinate | None = None,
        permission: PermissionStatus = PermissionStatus.GRANTED,
        geocoder: NominatimGeocoder | None = None,
    ):
        self.coordinate = coordinate
        self.permission = permission
        self.geocoder = geocoder

    def report(self, coordinate: Coordinate | None, permission: PermissionStatus) -> None:
        self.coordinate = coordinate
        self.permission = permission

    async def request_permission(self) -> PermissionStatus:
        return self.permission

    async def get_current_coordinate(self) -> Coordinate:
        if self.coordinate is None:
            raise LocationUnavailable("no coordinate reported by the device")
        return self.coordinate

    async def reverse_geocode(self, coordinate: Coordinate) -> AddressComponents:
        if self.geocoder is None:
            raise GeocodeFailure("reverse geocoding is disabled")
        return await self.geocoder.reverse(coordinate)


def default_location_provider() -> ReportedLocationProvider:
    geocoder = NominatimGeocoder() if config.REVERSE_GEOCODE_ENABLED else None
    return ReportedLocationProvider(geocoder=geocoder)
