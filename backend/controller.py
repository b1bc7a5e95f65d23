"""Reconciliation controller: show the cached snapshot now, replace it with live data.

Startup pipeline:
    cache load -> permission -> coordinate -> [reverse geocode | places fetch] -> snapshot save

- The snapshot (if any) is published immediately with stale=True.
- Permission or coordinate failure ends location attempts for this activation;
  whatever was shown stays shown.
- Reverse geocoding is a best-effort side channel; failures keep the old address.
- A places failure keeps the previous results and marks them stale; only a
  successful fetch writes a new snapshot.
- Filter changes re-run the fetch step only, against the last known coordinate.
  Overlapping fetches are not cancelled: the last one to resolve wins.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

import config
from errors import GeocodeFailure, LocationUnavailable, PermissionDenied, SearchServiceFailure
from filters import FilterKey, parse_filter
from geo import Coordinate
from location import LocationProvider, PermissionStatus
from normalizer import ResultItem
from places_client import PlacesClient
from snapshot_cache import Snapshot, SnapshotCache

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "Permission to access location was denied"
LOCATION_UNAVAILABLE_MESSAGE = "Current location is unavailable"


class Phase(str, Enum):
    EMPTY = "empty"
    SHOWING_CACHED = "showing_cached"
    REFRESHING = "refreshing"
    LIVE = "live"
    STALE_AFTER_FAILURE = "stale_after_failure"


@dataclass(frozen=True)
class ControllerState:
    phase: Phase = Phase.EMPTY
    coordinate: Coordinate | None = None
    coordinate_updated_at: datetime | None = None
    address: str = ""
    results: tuple[ResultItem, ...] = ()
    stale: bool = False
    filter_key: FilterKey = FilterKey.POI
    loading: bool = False
    error: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationController:
    def __init__(
        self,
        location: LocationProvider,
        places: PlacesClient,
        cache: SnapshotCache,
        filter_key: FilterKey | str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._location = location
        self._places = places
        self._cache = cache
        self._clock = clock
        self._subscribers: list[Callable[[ControllerState], None]] = []
        self._in_flight = 0
        self._state = ControllerState(filter_key=parse_filter(filter_key or config.DEFAULT_FILTER))

    @property
    def state(self) -> ControllerState:
        return self._state

    def subscribe(self, callback: Callable[[ControllerState], None]) -> Callable[[], None]:
        """Register a state-change listener. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:
                logger.exception("State subscriber %r failed", callback)

    # ---------- startup ----------

    async def activate(self) -> ControllerState:
        snapshot = await asyncio.to_thread(self._cache.load)
        if snapshot is not None:
            self._publish(
                phase=Phase.SHOWING_CACHED,
                coordinate=snapshot.coordinate,
                coordinate_updated_at=snapshot.captured_at,
                address=snapshot.address,
                results=snapshot.results,
                stale=True,
                error=None,
            )
            logger.info("Showing cached snapshot from %s (%d results)", snapshot.captured_at.isoformat(), len(snapshot.results))

        try:
            coordinate = await self._acquire_coordinate()
        except PermissionDenied as e:
            self._location_failed(PERMISSION_DENIED_MESSAGE, e)
            return self._state
        except LocationUnavailable as e:
            self._location_failed(LOCATION_UNAVAILABLE_MESSAGE, e)
            return self._state

        self._publish(coordinate=coordinate, coordinate_updated_at=self._clock(), phase=Phase.REFRESHING, error=None)

        results, _ = await asyncio.gather(
            self._run_fetch(coordinate, self._state.filter_key),
            self._refresh_address(coordinate),
        )
        if results is not None:
            await self._persist(coordinate, results)
        return self._state

    async def _acquire_coordinate(self) -> Coordinate:
        try:
            status = await self._location.request_permission()
        except PermissionDenied:
            raise
        except Exception as e:
            raise LocationUnavailable(f"permission request failed: {e}") from e
        if status != PermissionStatus.GRANTED:
            raise PermissionDenied(PERMISSION_DENIED_MESSAGE)
        try:
            return await self._location.get_current_coordinate()
        except LocationUnavailable:
            raise
        except Exception as e:
            raise LocationUnavailable(str(e) or type(e).__name__) from e

    def _location_failed(self, message: str, error: Exception) -> None:
        logger.warning("Location not acquired: %s: %s", type(error).__name__, error)
        phase = Phase.EMPTY if self._state.phase == Phase.EMPTY else Phase.STALE_AFTER_FAILURE
        self._publish(phase=phase, error=message)

    async def _refresh_address(self, coordinate: Coordinate) -> None:
        try:
            components = await self._location.reverse_geocode(coordinate)
        except GeocodeFailure as e:
            logger.info("Keeping previous address: %s", e)
            return
        except Exception as e:
            logger.info("Keeping previous address: %s", GeocodeFailure(str(e) or type(e).__name__))
            return
        line = components.format_line()
        if line:
            self._publish(address=line)

    # ---------- places ----------

    async def _run_fetch(self, coordinate: Coordinate, filter_key: FilterKey) -> tuple[ResultItem, ...] | None:
        self._in_flight += 1
        self._publish(phase=Phase.REFRESHING, loading=True)
        try:
            results = await self._places.fetch_results(coordinate, filter_key)
        except SearchServiceFailure as e:
            logger.warning(
                "Places fetch failed for filter=%s (status=%s): %s %s",
                filter_key.value, e.status_code, e, e.detail or "",
            )
            results = None
        finally:
            self._in_flight -= 1

        if results is None:
            self._publish(phase=Phase.STALE_AFTER_FAILURE, stale=True, loading=self._in_flight > 0)
            return None
        self._publish(phase=Phase.LIVE, results=results, stale=False, loading=self._in_flight > 0)
        return results

    async def _persist(self, coordinate: Coordinate, results: tuple[ResultItem, ...]) -> None:
        snapshot = Snapshot(
            coordinate=coordinate,
            captured_at=self._clock(),
            address=self._state.address,
            results=results,
        )
        await asyncio.to_thread(self._cache.save, snapshot)

    async def select_filter(self, filter_key: FilterKey | str) -> ControllerState:
        """Switch category and re-run the fetch step against the last known coordinate."""
        key = parse_filter(filter_key)
        self._publish(filter_key=key)
        coordinate = self._state.coordinate
        if coordinate is None:
            return self._state
        results = await self._run_fetch(coordinate, key)
        if results is not None:
            await self._persist(coordinate, results)
        return self._state
