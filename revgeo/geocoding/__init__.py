"""
Geocoding Module
--------------
Handles reverse geocoding operations to convert geographic coordinates to structured addresses.
Uses OpenStreetMap's Nominatim API with an on-disk response cache and rate limiting.
"""
from revgeo.geocoding.errors import GeocodingError, ParseFailure, ServiceError, TransportFailure
from revgeo.geocoding.nominatim import (
    ReverseGeocoder,
    batch_geocode,
    get_address_from_coordinates,
    get_default_geocoder,
)

__all__ = [
    "GeocodingError",
    "ParseFailure",
    "ReverseGeocoder",
    "ServiceError",
    "TransportFailure",
    "batch_geocode",
    "get_address_from_coordinates",
    "get_default_geocoder",
]
