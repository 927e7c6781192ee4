"""
HTTP Transports
-------------
Blocking (requests) and asyncio (httpx) transports for Nominatim. Both follow the
service's usage policy: an identifying User-Agent, a pause before every request and
a bounded number of retries on rate limiting, server errors and connection errors.
"""
import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
import requests

from revgeo.config import Settings, get_settings
from revgeo.geocoding.errors import TransportFailure
from revgeo.geocoding.query import GeocodeRequest

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    reason: Optional[str]
    body: bytes

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class Transport(Protocol):
    def send(self, request: GeocodeRequest) -> TransportResponse:
        ...


class AsyncTransport(Protocol):
    async def send(self, request: GeocodeRequest) -> TransportResponse:
        ...


class RequestsTransport:
    """Blocking transport on a shared requests.Session."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        settings = settings or get_settings()
        self.user_agent = settings.user_agent
        self.timeout = settings.request_timeout
        self.rate_limit_delay = settings.rate_limit_delay
        self.max_retries = settings.max_retries
        self.session = session or requests.Session()
        self._throttle = threading.Lock()

    def _wait_turn(self) -> None:
        # Threads sharing this transport start requests at least rate_limit_delay apart
        with self._throttle:
            time.sleep(self.rate_limit_delay)

    def send(self, request: GeocodeRequest) -> TransportResponse:
        retries = 0
        while True:
            self._wait_turn()
            try:
                response = self.session.get(
                    request.url,
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                if retries >= self.max_retries:
                    raise TransportFailure(str(e)) from e
                retries += 1
                wait_time = self.rate_limit_delay * (retries + 1)
                logger.warning(f"Network error for {request.url}: {e}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                time.sleep(wait_time)
                continue

            if response.status_code in RETRY_STATUSES and retries < self.max_retries:
                retries += 1
                wait_time = self.rate_limit_delay * (retries + 1)
                logger.warning(f"HTTP error ({response.status_code}) for {request.url}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                time.sleep(wait_time)
                continue

            return TransportResponse(response.status_code, response.reason or None, response.content)


class HttpxTransport:
    """
    asyncio transport on httpx.AsyncClient.

    When no client is passed in, the transport owns one and closes it on exit, so use
    it as an async context manager.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        settings = settings or get_settings()
        self.rate_limit_delay = settings.rate_limit_delay
        self.max_retries = settings.max_retries
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout),
            headers={"User-Agent": settings.user_agent},
        )
        self._throttle: Optional[asyncio.Lock] = None

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _wait_turn(self) -> None:
        # Created on first use so the lock belongs to the running loop
        if self._throttle is None:
            self._throttle = asyncio.Lock()
        async with self._throttle:
            await asyncio.sleep(self.rate_limit_delay)

    async def send(self, request: GeocodeRequest) -> TransportResponse:
        retries = 0
        while True:
            await self._wait_turn()
            try:
                response = await self.client.get(request.url)
            except httpx.HTTPError as e:
                if retries >= self.max_retries:
                    raise TransportFailure(str(e) or type(e).__name__) from e
                retries += 1
                wait_time = self.rate_limit_delay * (retries + 1)
                logger.warning(f"Network error for {request.url}: {e}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                await asyncio.sleep(wait_time)
                continue

            if response.status_code in RETRY_STATUSES and retries < self.max_retries:
                retries += 1
                wait_time = self.rate_limit_delay * (retries + 1)
                logger.warning(f"HTTP error ({response.status_code}) for {request.url}. Retrying in {wait_time}s... (Attempt {retries}/{self.max_retries})")
                await asyncio.sleep(wait_time)
                continue

            return TransportResponse(response.status_code, response.reason_phrase or None, response.content)
