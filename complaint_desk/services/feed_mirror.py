"""
Server side of the complaint feed: sheet rows served from an in-memory TTL cache
"""
import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from complaint_desk.clients.sheets_client import GoogleSheetsClient
from complaint_desk.config import settings
from complaint_desk.logging_config import logger


class FeedMirror:
    """Mirrors the response sheet as a JSON array, re-reading it at most once per TTL"""

    def __init__(
        self,
        source: Optional[GoogleSheetsClient] = None,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize feed mirror

        Args:
            source: Sheet reader
            ttl_seconds: Lifetime of the in-memory copy
            clock: Monotonic time source
        """
        self.source = source or GoogleSheetsClient()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.FEED_SERVER_CACHE_TTL
        self.clock = clock
        self._records: Optional[List[Dict[str, Any]]] = None
        self._fetched_at: Optional[float] = None
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return (
            self._records is not None
            and self._fetched_at is not None
            and self.clock() - self._fetched_at < self.ttl_seconds
        )

    async def get_complaints(self, refresh: bool = False) -> List[Dict[str, Any]]:
        """
        Current feed records

        Args:
            refresh: Bypass the TTL and re-read the sheet

        Returns:
            Feed records
        """
        if not refresh and self._is_fresh():
            logger.debug("Serving feed from memory")
            return self._records

        async with self._lock:
            # Another request may have refreshed while we waited
            if not refresh and self._is_fresh():
                return self._records

            records = await self.source.fetch_complaints()
            self._records = records
            self._fetched_at = self.clock()
            logger.info(f"Feed mirror refreshed with {len(records)} records")
            return records

    def invalidate(self) -> None:
        self._records = None
        self._fetched_at = None

    def get_status(self) -> dict:
        return {
            "cached_records": len(self._records) if self._records is not None else 0,
            "age_seconds": round(self.clock() - self._fetched_at, 1) if self._fetched_at is not None else None,
            "ttl_seconds": self.ttl_seconds
        }
