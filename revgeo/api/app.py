from fastapi import FastAPI, HTTPException, Depends, Query
import logging

from revgeo.config import get_settings
from revgeo.geocoding.errors import ParseFailure, ServiceError, TransportFailure
from revgeo.geocoding.nominatim import ReverseGeocoder, get_default_geocoder
from revgeo.models import BatchReverseRequest, BatchReverseResult, ReverseGeocodeResult

# Configure logging - Adjust format to remove INFO/WARNING prefixes
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Reverse Geocoding API",
    description="Turns coordinates into structured addresses using OpenStreetMap Nominatim",
    version="1.0.0"
)


def get_geocoder() -> ReverseGeocoder:
    return get_default_geocoder()


@app.get("/")
def read_root():
    return {"message": "Welcome to the Reverse Geocoding API"}


@app.get("/reverse", response_model=ReverseGeocodeResult)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    geocoder: ReverseGeocoder = Depends(get_geocoder)
):
    """Resolve a single coordinate pair to its address and place attributes."""
    try:
        attributes = await geocoder.resolve_reverse_async(lat, lon)
    except ServiceError as e:
        logger.warning(f"Nominatim rejected ({lat}, {lon}): {e.message}")
        raise HTTPException(status_code=404, detail=e.message)
    except (TransportFailure, ParseFailure) as e:
        logger.error(f"Error geocoding ({lat}, {lon}): {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    return ReverseGeocodeResult(
        latitude=lat,
        longitude=lon,
        address=attributes.get("description"),
        attributes=attributes
    )


@app.post("/reverse/batch", response_model=BatchReverseResult)
def reverse_geocode_batch(
    payload: BatchReverseRequest,
    geocoder: ReverseGeocoder = Depends(get_geocoder)
):
    """
    Resolve many coordinate pairs using parallel workers.
    Pairs that fail are reported with resolved=false instead of failing the whole batch.

    Args:
        payload: Coordinates to resolve and the number of parallel workers (default: 4)
    """
    coords_list = [(c.latitude, c.longitude) for c in payload.coordinates]
    resolved = geocoder.batch_resolve_reverse(coords_list, max_workers=payload.max_workers)

    results = []
    for lat, lon in coords_list:
        attributes = resolved.get((lat, lon))
        if attributes is None:
            results.append(ReverseGeocodeResult(latitude=lat, longitude=lon, resolved=False))
        else:
            results.append(ReverseGeocodeResult(
                latitude=lat,
                longitude=lon,
                address=attributes.get("description"),
                attributes=attributes
            ))

    succeeded = sum(1 for r in results if r.resolved)
    logger.info(f"Batch completed: {succeeded} resolved, {len(results) - succeeded} failed")
    return BatchReverseResult(results=results, succeeded=succeeded, failed=len(results) - succeeded)
