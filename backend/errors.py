"""Failure taxonomy for location, search and snapshot operations."""


class WhereError(Exception):
    """Base class for every classified failure."""


class PermissionDenied(WhereError):
    """Location access was refused. Ends the session's location attempts."""


class LocationUnavailable(WhereError):
    """The location provider could not produce a fix."""


class GeocodeFailure(WhereError):
    """Reverse geocoding failed; the previous address stays in place."""


class SearchServiceFailure(WhereError):
    """Network error, timeout or non-2xx response from the places service."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class CacheIOFailure(WhereError):
    """Reading or writing the persisted snapshot failed."""
