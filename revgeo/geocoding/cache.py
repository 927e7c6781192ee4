"""
Response Cache
------------
Stores raw provider responses on disk, one file per query, named after the
request's cache key. The cache is purely an optimization: every fault on read is
a miss and every fault on write is skipped.
"""
import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from revgeo.geocoding.query import GeocodeRequest

logger = logging.getLogger(__name__)


class ResponseCache:
    def __init__(self, root: Optional[Union[str, Path]]):
        self.root = Path(root) if root is not None else None

    @property
    def enabled(self) -> bool:
        return self.root is not None

    def path_for(self, request: GeocodeRequest) -> Optional[Path]:
        """Location of the entry for request, or None when the cache root is unusable."""
        if self.root is None:
            return None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug(f"Cache directory {self.root} unavailable: {e}")
            return None
        return self.root / request.cache_key()

    def lookup(self, request: GeocodeRequest) -> Optional[bytes]:
        path = self.path_for(request)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug(f"Cache read failed for {path}: {e}")
            return None

    def store(self, request: GeocodeRequest, body: bytes) -> bool:
        """
        Write body for request atomically. Returns False instead of raising when the
        entry could not be written.
        """
        path = self.path_for(request)
        if path is None:
            return False

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(dir=path.parent, prefix=".tmp-", delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(body)
            os.replace(tmp_name, path)
            return True
        except OSError as e:
            logger.debug(f"Cache write failed for {path}: {e}")
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False

    async def lookup_async(self, request: GeocodeRequest) -> Optional[bytes]:
        return await asyncio.to_thread(self.lookup, request)

    async def store_async(self, request: GeocodeRequest, body: bytes) -> bool:
        return await asyncio.to_thread(self.store, request, body)
