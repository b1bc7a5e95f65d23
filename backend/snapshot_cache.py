"""Snapshot cache: the single last-known {location, address, results} record.

Stored as three independent string-keyed entries in a local libsql database:
- cache:lastLocation  JSON {lat, lng, updatedAt}
- cache:lastAddress   plain string
- cache:lastPlaces    JSON array of result items

There is no cross-key transaction: each entry is written and committed on its
own, so an interrupted save can leave a partially updated snapshot.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import libsql_experimental as libsql

import config
from errors import CacheIOFailure
from geo import Coordinate
from normalizer import ResultItem

logger = logging.getLogger(__name__)

KEY_LOCATION = "cache:lastLocation"
KEY_ADDRESS = "cache:lastAddress"
KEY_PLACES = "cache:lastPlaces"


@dataclass(frozen=True)
class Snapshot:
    coordinate: Coordinate | None
    captured_at: datetime
    address: str = ""
    results: tuple[ResultItem, ...] = field(default_factory=tuple)


class SnapshotCache:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or config.SNAPSHOT_DB_PATH

    def _connect(self):
        conn = libsql.connect(self.db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key        TEXT PRIMARY KEY,
                value      TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.commit()
        return conn

    # ---- raw key-value access ----

    def _read_entries(self) -> dict[str, tuple[str, str]]:
        try:
            conn = self._connect()
            cursor = conn.execute(
                "SELECT key, value, updated_at FROM kv WHERE key IN (?, ?, ?)",
                (KEY_LOCATION, KEY_ADDRESS, KEY_PLACES),
            )
            rows = cursor.fetchall()
            conn.close()
        except Exception as e:
            raise CacheIOFailure(f"snapshot read failed: {e}") from e
        return {key: (value, updated_at) for key, value, updated_at in rows}

    def _write_entry(self, conn, key: str, value: str, now: str) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
            (key, value, now),
        )
        conn.commit()

    # ---- snapshot ----

    def load(self) -> Snapshot | None:
        """Return the last saved snapshot, or None on first run or unreadable storage."""
        try:
            entries = self._read_entries()
        except CacheIOFailure as e:
            logger.warning("Treating snapshot as absent: %s", e)
            return None
        if not entries:
            return None

        coordinate = None
        captured_at = None
        if KEY_LOCATION in entries:
            try:
                loc = json.loads(entries[KEY_LOCATION][0])
                if loc.get("lat") is not None and loc.get("lng") is not None:
                    coordinate = Coordinate(float(loc["lat"]), float(loc["lng"]))
                if loc.get("updatedAt"):
                    captured_at = datetime.fromisoformat(loc["updatedAt"])
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Ignoring corrupt %s entry: %s", KEY_LOCATION, e)

        address = entries[KEY_ADDRESS][0] if KEY_ADDRESS in entries else ""

        results: tuple[ResultItem, ...] = ()
        if KEY_PLACES in entries:
            try:
                results = tuple(ResultItem.from_dict(d) for d in json.loads(entries[KEY_PLACES][0]))
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning("Ignoring corrupt %s entry: %s", KEY_PLACES, e)

        if captured_at is None:
            captured_at = max(datetime.fromisoformat(updated_at) for _, updated_at in entries.values())

        return Snapshot(coordinate=coordinate, captured_at=captured_at, address=address, results=results)

    def _write_entries(self, entries: list[tuple[str, str]]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            conn = self._connect()
            for key, value in entries:
                self._write_entry(conn, key, value, now)
            conn.close()
        except Exception as e:
            raise CacheIOFailure(f"snapshot write failed: {e}") from e

    def save(self, snapshot: Snapshot) -> bool:
        """Best-effort write of all three entries. Returns False on failure."""
        location: dict = {"updatedAt": snapshot.captured_at.isoformat()}
        if snapshot.coordinate is not None:
            location = {"lat": snapshot.coordinate.lat, "lng": snapshot.coordinate.lng, **location}
        try:
            self._write_entries([
                (KEY_LOCATION, json.dumps(location)),
                (KEY_ADDRESS, snapshot.address or ""),
                (KEY_PLACES, json.dumps([r.to_dict() for r in snapshot.results])),
            ])
        except CacheIOFailure as e:
            logger.warning("Snapshot not saved: %s", e)
            return False
        return True
