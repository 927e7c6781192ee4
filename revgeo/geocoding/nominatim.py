"""
Geocoding Module
--------------
Handles reverse geocoding operations to convert geographic coordinates to structured addresses.
Uses OpenStreetMap's Nominatim API with an on-disk response cache, for both blocking
and asyncio callers.

A resolution always runs the same steps: cache lookup, network fetch on a miss, parse,
and cache fill when a network response parsed cleanly. Those steps live in a single
generator; the blocking and asyncio drivers only carry out the I/O it asks for.
"""
import asyncio
import concurrent.futures
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Generator, Iterable, Mapping, Optional, Tuple, Union

from revgeo.config import Settings, get_settings
from revgeo.geocoding.cache import ResponseCache
from revgeo.geocoding.errors import GeocodingError, TransportFailure
from revgeo.geocoding.locale import system_language
from revgeo.geocoding.parser import AttributeMap, parse_response
from revgeo.geocoding.query import GeocodeRequest, LanguageProvider, build_request, reverse_params
from revgeo.geocoding.transport import (
    AsyncTransport,
    HttpxTransport,
    RequestsTransport,
    Transport,
)

# Get logger
logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]
ResolveCallback = Callable[[Optional[AttributeMap], Optional[BaseException]], None]


@dataclass(frozen=True)
class CacheLookup:
    request: GeocodeRequest


@dataclass(frozen=True)
class Fetch:
    request: GeocodeRequest


@dataclass(frozen=True)
class CacheStore:
    request: GeocodeRequest
    body: bytes


Step = Union[CacheLookup, Fetch, CacheStore]


def resolution_steps(request: GeocodeRequest) -> Generator[Step, object, AttributeMap]:
    """
    Resolve request, yielding each I/O step and receiving its outcome.

    CacheLookup expects the cached bytes or None, Fetch expects a TransportResponse
    and CacheStore's outcome is ignored. Returns the attributes or raises
    TransportFailure, ServiceError or ParseFailure.
    """
    body = yield CacheLookup(request)
    from_network = body is None

    if from_network:
        response = yield Fetch(request)
        if not response.ok:
            raise TransportFailure(response.reason, status_code=response.status_code)
        body = response.body
    else:
        logger.debug(f"Cache hit for {request.url}")

    # Raises before anything is stored, so error payloads never reach the cache
    attributes = parse_response(body)

    if from_network:
        yield CacheStore(request, body)

    return attributes


class ReverseGeocoder:
    """
    Reverse geocoder for one Nominatim endpoint.

    Holds configuration and collaborators only; every call builds its own request and
    hands a fresh attribute dict back to the caller.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        cache: Optional[ResponseCache] = None,
        transport: Optional[Transport] = None,
        async_transport: Optional[AsyncTransport] = None,
        language_provider: Optional[LanguageProvider] = system_language,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else ResponseCache(self.settings.cache_root)
        self.transport = transport if transport is not None else RequestsTransport(self.settings)
        self.async_transport = async_transport
        self.language_provider = language_provider

    def build_request(self, params: Mapping[str, Optional[str]]) -> GeocodeRequest:
        return build_request(
            params,
            base_url=self.settings.base_url,
            contact_email=self.settings.contact_email,
            language_provider=self.language_provider,
        )

    # Blocking path

    def _perform(self, step: Step, transport: Transport) -> object:
        if isinstance(step, CacheLookup):
            return self.cache.lookup(step.request)
        if isinstance(step, Fetch):
            return transport.send(step.request)
        return self.cache.store(step.request, step.body)

    def _run(self, request: GeocodeRequest, transport: Transport) -> AttributeMap:
        steps = resolution_steps(request)
        outcome = None
        try:
            while True:
                try:
                    step = steps.send(outcome)
                except StopIteration as done:
                    return done.value
                outcome = self._perform(step, transport)
        finally:
            steps.close()

    def resolve(self, params: Mapping[str, Optional[str]]) -> AttributeMap:
        """Resolve a parameter mapping, blocking the calling thread."""
        return self._run(self.build_request(params), self.transport)

    def resolve_reverse(self, latitude, longitude) -> AttributeMap:
        """
        Resolve a coordinate pair to its place attributes.

        Args:
            latitude: Latitude of the location
            longitude: Longitude of the location

        Returns:
            Dictionary of canonical attribute names (street, locality, postalcode,
            countrycode, description, ...) to values.

        Raises:
            TransportFailure, ServiceError or ParseFailure. Cache problems are never raised.
        """
        attributes = self.resolve(reverse_params(latitude, longitude))
        logger.info(f"Successfully geocoded coordinates ({latitude}, {longitude})")
        return attributes

    # asyncio path

    @asynccontextmanager
    async def _open_async_transport(self):
        if self.async_transport is not None:
            yield self.async_transport
        else:
            async with HttpxTransport(self.settings) as transport:
                yield transport

    async def _perform_async(self, step: Step, transport: AsyncTransport) -> object:
        if isinstance(step, CacheLookup):
            return await self.cache.lookup_async(step.request)
        if isinstance(step, Fetch):
            return await transport.send(step.request)
        return await self.cache.store_async(step.request, step.body)

    async def _run_async(self, request: GeocodeRequest, transport: AsyncTransport) -> AttributeMap:
        steps = resolution_steps(request)
        outcome = None
        try:
            while True:
                try:
                    step = steps.send(outcome)
                except StopIteration as done:
                    return done.value
                outcome = await self._perform_async(step, transport)
        finally:
            steps.close()

    async def resolve_async(self, params: Mapping[str, Optional[str]]) -> AttributeMap:
        """Resolve a parameter mapping without blocking the event loop."""
        request = self.build_request(params)
        async with self._open_async_transport() as transport:
            return await self._run_async(request, transport)

    async def resolve_reverse_async(self, latitude, longitude) -> AttributeMap:
        """asyncio twin of resolve_reverse."""
        attributes = await self.resolve_async(reverse_params(latitude, longitude))
        logger.info(f"Successfully geocoded coordinates ({latitude}, {longitude})")
        return attributes

    def resolve_reverse_in_background(self, latitude, longitude, callback: ResolveCallback) -> asyncio.Task:
        """
        Start resolve_reverse_async as a task on the running loop.

        callback(attributes, error) runs exactly once when the task finishes: with the
        attributes on success, with the raised error on failure, and with a
        CancelledError if the task is cancelled.
        """
        task = asyncio.get_running_loop().create_task(self.resolve_reverse_async(latitude, longitude))

        def _deliver(done: asyncio.Task) -> None:
            if done.cancelled():
                callback(None, asyncio.CancelledError())
                return
            error = done.exception()
            if error is not None:
                callback(None, error)
            else:
                callback(done.result(), None)

        task.add_done_callback(_deliver)
        return task

    # Batches

    def batch_resolve_reverse(
        self, coordinates_list: Iterable[Coordinates], max_workers: int = 4
    ) -> Dict[Coordinates, Optional[AttributeMap]]:
        """
        Resolve many coordinate pairs in parallel threads.

        Failed pairs are logged and mapped to None instead of aborting the batch.
        """
        coordinates_list = list(coordinates_list)
        results = {}
        success_count = 0
        failure_count = 0

        total_coords = len(coordinates_list)
        logger.info(f"Starting parallel batch geocoding for {total_coords} coordinate pairs with {max_workers} workers")

        # Use ThreadPoolExecutor to geocode in parallel
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_coords = {
                executor.submit(self.resolve_reverse, lat, lon): (lat, lon)
                for lat, lon in coordinates_list
            }

            for i, future in enumerate(concurrent.futures.as_completed(future_to_coords)):
                coords = future_to_coords[future]
                try:
                    results[coords] = future.result()
                    success_count += 1
                except GeocodingError as e:
                    failure_count += 1
                    logger.error(f"Error geocoding coordinates {coords}: {e}")
                    results[coords] = None

                # Log progress every 10 coordinates or at the end
                if (i + 1) % 10 == 0 or (i + 1) == total_coords:
                    logger.info(f"Geocoding progress: {i+1}/{total_coords} ({((i+1)/total_coords*100):.1f}%)")

        _log_batch_summary(success_count, failure_count)
        return results

    async def batch_resolve_reverse_async(
        self, coordinates_list: Iterable[Coordinates], max_concurrency: int = 4
    ) -> Dict[Coordinates, Optional[AttributeMap]]:
        """asyncio twin of batch_resolve_reverse, sharing one transport across the batch."""
        coordinates_list = list(coordinates_list)
        semaphore = asyncio.Semaphore(max_concurrency)
        logger.info(f"Starting async batch geocoding for {len(coordinates_list)} coordinate pairs (concurrency {max_concurrency})")

        async with self._open_async_transport() as transport:

            async def _resolve_one(lat, lon):
                async with semaphore:
                    try:
                        request = self.build_request(reverse_params(lat, lon))
                        return (lat, lon), await self._run_async(request, transport)
                    except GeocodingError as e:
                        logger.error(f"Error geocoding coordinates {(lat, lon)}: {e}")
                        return (lat, lon), None

            pairs = await asyncio.gather(*(_resolve_one(lat, lon) for lat, lon in coordinates_list))

        results = dict(pairs)
        success_count = sum(1 for value in results.values() if value is not None)
        _log_batch_summary(success_count, len(results) - success_count)
        return results


def _log_batch_summary(success_count: int, failure_count: int) -> None:
    total = success_count + failure_count
    if total > 0:
        success_rate = (success_count / total) * 100
        logger.info(f"Batch geocoding completed: {success_rate:.1f}% success rate ({success_count}/{total})")


@lru_cache()
def get_default_geocoder() -> ReverseGeocoder:
    return ReverseGeocoder(get_settings())


def get_address_from_coordinates(latitude, longitude, geocoder: Optional[ReverseGeocoder] = None) -> Optional[str]:
    """Return the display name for a coordinate pair, or None if it cannot be resolved."""
    geocoder = geocoder or get_default_geocoder()
    try:
        attributes = geocoder.resolve_reverse(latitude, longitude)
    except GeocodingError as e:
        logger.error(f"Failed to geocode coordinates ({latitude}, {longitude}): {e}")
        return None

    address = attributes.get("description")
    if not address:
        logger.warning(f"No address found for coordinates ({latitude}, {longitude})")
    return address


def batch_geocode(
    coordinates_list: Iterable[Coordinates], max_workers: int = 4, geocoder: Optional[ReverseGeocoder] = None
) -> Dict[Coordinates, Optional[str]]:
    """Map each coordinate pair to its display name (None where geocoding failed)."""
    geocoder = geocoder or get_default_geocoder()
    resolved = geocoder.batch_resolve_reverse(coordinates_list, max_workers=max_workers)
    return {
        coords: (attributes.get("description") if attributes else None)
        for coords, attributes in resolved.items()
    }


__all__ = [
    "CacheLookup",
    "CacheStore",
    "Fetch",
    "ReverseGeocoder",
    "batch_geocode",
    "get_address_from_coordinates",
    "get_default_geocoder",
    "resolution_steps",
]
