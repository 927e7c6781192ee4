"""
Response Parser
-------------
Decodes a Nominatim reverse response into a flat mapping of canonical attribute
names to string values.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from revgeo.geocoding.errors import ParseFailure, ServiceError

logger = logging.getLogger(__name__)

AttributeMap = Dict[str, str]

# (nominatim attribute, canonical attribute); None keeps the Nominatim name
ATTRIBUTE_TRANSLATIONS: Tuple[Tuple[str, Optional[str]], ...] = (
    ("license", None),
    ("osm_type", None),
    ("osm_id", None),
    ("lat", None),
    ("lon", None),
    ("display_name", "description"),
    ("house_number", "building"),
    ("road", "street"),
    ("suburb", "area"),
    ("city", "locality"),
    ("county", None),
    ("state_district", None),
    ("state", "region"),
    ("postcode", "postalcode"),
    ("country", "country"),
    ("country_code", "countrycode"),
    ("continent", None),
    ("address", None),
)


def translate_attribute(name: str) -> str:
    for nominatim_attr, canonical_attr in ATTRIBUTE_TRANSLATIONS:
        if nominatim_attr == name:
            return canonical_attr or name

    logger.debug(f"Can't convert unknown attribute '{name}'")
    return name


def _add_attributes(members: Mapping[str, Any], attributes: AttributeMap) -> None:
    for name, value in members.items():
        # Only non-empty strings carry data; objects and arrays are not flattened.
        if not isinstance(value, str) or not value:
            continue
        attributes[translate_attribute(name)] = value


def _error_message(error: Any) -> Optional[str]:
    if isinstance(error, str):
        return error or None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"] or None
    return None


def parse_response(body: Union[bytes, str]) -> AttributeMap:
    """
    Parse a raw response body.

    Raises ParseFailure when the body is not a JSON object and ServiceError when the
    provider reports an error. Otherwise returns the translated attributes, with
    values from the nested "address" object overriding top-level ones.
    """
    try:
        text = body.decode("utf-8") if isinstance(body, bytes) else body
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise ParseFailure(str(e)) from e

    if not isinstance(data, dict):
        raise ParseFailure(f"Expected a JSON object, got {type(data).__name__}")

    if "error" in data:
        raise ServiceError(_error_message(data["error"]))

    attributes: AttributeMap = {}
    _add_attributes(data, attributes)

    # Nested address values overwrite top-level ones with the same canonical name.
    address = data.get("address")
    if isinstance(address, dict):
        _add_attributes(address, attributes)

    return attributes
