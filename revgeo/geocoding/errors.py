"""Errors surfaced by a reverse geocoding resolution."""
from typing import Optional


class GeocodingError(Exception):
    """
    Base exception for failed resolutions.

    Cache faults never show up here; they degrade to a cache miss or a skipped store.
    """

    default_message = "Geocoding failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class TransportFailure(GeocodingError):
    """The request did not complete with HTTP 200, or the connection itself failed."""

    default_message = "Query failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceError(GeocodingError):
    """The provider answered, but its payload reports the query as invalid or unsupported."""

    default_message = "Query not supported"


class ParseFailure(GeocodingError):
    """The response body could not be decoded as a JSON object."""

    default_message = "Invalid JSON response"
