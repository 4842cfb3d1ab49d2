# ABOUTME: Exception types for collection invariants and weather fetch failures.
# ABOUTME: Fetch errors carry the ErrorKind stored in a Failed cache entry.

from weather_tracker.models import ErrorKind


class TrackerError(Exception):
    """Base class for every recoverable error raised by the tracker."""


class AlreadyExists(TrackerError):
    def __init__(self, identifier: str):
        super().__init__(f"Location already tracked: {identifier}")
        self.identifier = identifier


class LastLocation(TrackerError):
    def __init__(self):
        super().__init__("At least one location must remain tracked")


class FetchError(TrackerError):
    """A geocoding or weather request that did not produce data."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR


class CityNotFound(FetchError):
    kind = ErrorKind.CITY_NOT_FOUND

    def __init__(self, query: str):
        super().__init__(f"Could not find location: {query}")
        self.query = query


class UpstreamError(FetchError):
    kind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, status_code: int):
        super().__init__(f"Weather API returned status {status_code}")
        self.status_code = status_code


class NetworkError(FetchError):
    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, reason: str):
        super().__init__(f"Network failure: {reason}")
        self.reason = reason
