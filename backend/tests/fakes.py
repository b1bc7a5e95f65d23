"""In-memory stand-ins for the controller's collaborators."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from location import AddressComponents, PermissionStatus
from normalizer import ResultItem


def make_item(item_id: str, distance_m: int = 100, compass: str = "N", name: str | None = None) -> ResultItem:
    return ResultItem(id=item_id, name=name or item_id.title(), distance_m=distance_m, compass=compass)


class FakeLocation:
    def __init__(
        self,
        coordinate=None,
        permission=PermissionStatus.GRANTED,
        coordinate_error: Exception | None = None,
        address: AddressComponents | None = None,
        geocode_error: Exception | None = None,
    ):
        self.coordinate = coordinate
        self.permission = permission
        self.coordinate_error = coordinate_error
        self.address = address or AddressComponents()
        self.geocode_error = geocode_error
        self.permission_calls = 0
        self.coordinate_calls = 0
        self.geocode_calls = 0

    async def request_permission(self):
        self.permission_calls += 1
        return self.permission

    async def get_current_coordinate(self):
        self.coordinate_calls += 1
        if self.coordinate_error:
            raise self.coordinate_error
        return self.coordinate

    async def reverse_geocode(self, coordinate):
        self.geocode_calls += 1
        if self.geocode_error:
            raise self.geocode_error
        return self.address

    def report(self, coordinate, permission):
        self.coordinate = coordinate
        self.permission = permission


class FakePlaces:
    """Returns queued outcomes in order; an Exception outcome is raised."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []

    async def fetch_results(self, origin, filter_key):
        self.calls.append((origin, filter_key))
        outcome = self.outcomes.pop(0) if self.outcomes else ()
        if isinstance(outcome, Exception):
            raise outcome
        return tuple(outcome)


class FakeCache:
    def __init__(self, snapshot=None):
        self.snapshot = snapshot
        self.saved = []

    def load(self):
        return self.snapshot

    def save(self, snapshot):
        self.saved.append(snapshot)
        self.snapshot = snapshot
        return True
