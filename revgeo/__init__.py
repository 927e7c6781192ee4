"""Reverse geocoding against OpenStreetMap Nominatim with an on-disk response cache."""
