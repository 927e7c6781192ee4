"""
Data Models Module
----------------
Contains Pydantic models for data validation and serialization.
Defines the shape of reverse geocoding requests and results exposed over the API.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ReverseGeocodeResult(BaseModel):
    latitude: float
    longitude: float
    address: Optional[str] = Field(default=None, description="Display name of the place, if any.")
    attributes: Dict[str, str] = Field(default_factory=dict)
    resolved: bool = True


class BatchReverseRequest(BaseModel):
    coordinates: List[Coordinates] = Field(..., min_length=1, max_length=500)
    max_workers: int = Field(default=4, ge=1, le=16)


class BatchReverseResult(BaseModel):
    results: List[ReverseGeocodeResult] = Field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
