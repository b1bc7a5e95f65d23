"""Normalizer: Places API (v1) search records -> sorted ResultItem list.

This is the only module that knows the searchNearby response shape:

    {"places": [{"id", "displayName": {"text"}, "formattedAddress",
                 "location": {"latitude", "longitude"}}]}

- Records are validated into optional-field models; anything that fails is dropped.
- Records missing latitude or longitude are dropped silently.
- Distance and compass are derived against the origin via geo.
- Output is sorted ascending by distance (stable, ties keep input order).
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from geo import Coordinate, bearing, compass_label, distance

logger = logging.getLogger(__name__)

UNNAMED_PLACE = "Unnamed place"


class RawDisplayName(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    text: str | None = None


class RawLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latitude: float | None = None
    longitude: float | None = None


class RawPlace(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    displayName: RawDisplayName | None = None
    formattedAddress: str | None = None
    location: RawLocation | None = None

    @field_validator("displayName", mode="before")
    @classmethod
    def _display_name(cls, v: Any) -> Any:
        # a bare string is the name itself; any other shape means no usable name
        if isinstance(v, str):
            return {"text": v}
        return v if isinstance(v, dict) else None

    @field_validator("id", "formattedAddress", mode="before")
    @classmethod
    def _scalar_or_none(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (str, int, float)):
            return None
        return v


@dataclass(frozen=True)
class ResultItem:
    id: str
    name: str
    distance_m: int
    compass: str
    vicinity: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "vicinity": self.vicinity,
            "distance": self.distance_m,
            "compass": self.compass,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ResultItem":
        return cls(
            id=str(d["id"]),
            name=d.get("name") or UNNAMED_PLACE,
            vicinity=d.get("vicinity"),
            distance_m=int(d["distance"]),
            compass=d["compass"],
        )


def _to_item(raw: RawPlace, origin: Coordinate) -> ResultItem | None:
    loc = raw.location
    if loc is None or loc.latitude is None or loc.longitude is None:
        return None
    try:
        target = Coordinate(loc.latitude, loc.longitude)
    except ValueError:
        logger.debug("Dropping place %s with invalid location %s", raw.id, loc)
        return None
    name = raw.displayName.text if raw.displayName and raw.displayName.text else UNNAMED_PLACE
    return ResultItem(
        id=raw.id or f"{target.lat},{target.lng}",
        name=name,
        vicinity=raw.formattedAddress,
        distance_m=distance(origin, target),
        compass=compass_label(bearing(origin, target)),
    )


def normalize_places(records: Iterable[Any], origin: Coordinate) -> tuple[ResultItem, ...]:
    """Turn raw place records into a ResultSet sorted by distance from origin."""
    items: list[ResultItem] = []
    seen: set[str] = set()
    dropped = 0
    for record in records:
        try:
            raw = RawPlace.model_validate(record)
        except ValidationError as e:
            logger.debug("Dropping malformed place record: %s", e.errors()[0].get("msg", e))
            dropped += 1
            continue
        item = _to_item(raw, origin)
        if item is None:
            dropped += 1
            continue
        if item.id in seen:
            continue
        seen.add(item.id)
        items.append(item)

    if dropped:
        logger.debug("Dropped %d place records without a usable location", dropped)
    # sorted() is stable, so equal distances keep input order
    return tuple(sorted(items, key=lambda it: it.distance_m))


def normalize_response(payload: Any, origin: Coordinate) -> tuple[ResultItem, ...]:
    """Normalize a full searchNearby response body."""
    if not isinstance(payload, dict):
        return ()
    places = payload.get("places") or []
    if not isinstance(places, list):
        return ()
    return normalize_places(places, origin)
