"""
Query Builder
-----------
Turns caller parameters into a canonical Nominatim request. The same request object
is used to hit the network and to derive the cache key, so the two can never diverge.
"""
import hashlib
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from revgeo.geocoding.locale import system_language

LANGUAGE_PARAM = "accept-language"

LanguageProvider = Callable[[], Optional[str]]


@dataclass(frozen=True)
class GeocodeRequest:
    base_url: str
    params: Tuple[Tuple[str, str], ...]
    method: str = "GET"

    @property
    def url(self) -> str:
        return f"{self.base_url}?{urlencode(self.params)}"

    def as_dict(self) -> Dict[str, str]:
        return dict(self.params)

    def cache_key(self) -> str:
        """Filesystem-safe digest identifying this exact query."""
        canonical = f"{self.method} {self.url}"
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def format_coordinate(value) -> str:
    return repr(float(value))


def reverse_params(latitude, longitude) -> Dict[str, str]:
    return {
        "lat": format_coordinate(latitude),
        "lon": format_coordinate(longitude),
    }


def build_request(
    params: Mapping[str, Optional[str]],
    *,
    base_url: str,
    contact_email: str,
    language_provider: Optional[LanguageProvider] = system_language,
) -> GeocodeRequest:
    """
    Build a GeocodeRequest from caller parameters.

    The caller's mapping is copied, never modified. format, email and addressdetails
    always take the fixed values. accept-language is only looked up when the caller
    did not pass one, and only added when the provider returns something.
    """
    merged = {str(key): str(value) for key, value in params.items() if value is not None}

    merged["format"] = "json"
    merged["email"] = contact_email
    merged["addressdetails"] = "1"

    if LANGUAGE_PARAM not in merged and language_provider is not None:
        language = language_provider()
        if language:
            merged[LANGUAGE_PARAM] = language

    return GeocodeRequest(base_url=base_url, params=tuple(sorted(merged.items())))
