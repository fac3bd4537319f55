"""
Local cache of the last fetched raw complaint snapshot
"""
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from complaint_desk.exceptions import CacheError
from complaint_desk.logging_config import logger
from complaint_desk.models import Complaint
from complaint_desk.services.age_classifier import Timestamp, parse_timestamp
from complaint_desk.services.complaint_processor import ComplaintProcessor
from complaint_desk.storage.key_value import KeyValueStore

CACHE_KEY = "complaints_cache"
CACHE_TIMESTAMP_KEY = "complaints_cache_timestamp"
DEFAULT_CACHE_TTL = timedelta(minutes=5)


def _reference_time(now: Optional[Timestamp]) -> datetime:
    return parse_timestamp(now) if now is not None else datetime.now(timezone.utc)


class LocalCacheStore:
    """
    Persists the raw snapshot verbatim plus its write time

    The cache is an optimization only: write failures are logged and
    swallowed, read failures behave as an empty cache.
    """

    def __init__(
        self,
        store: KeyValueStore,
        processor: ComplaintProcessor,
        ttl: timedelta = DEFAULT_CACHE_TTL
    ):
        """
        Initialize local cache store

        Args:
            store: Key-value backend
            processor: Pipeline used to normalize and tag cached records on read
            ttl: Age after which the snapshot counts as stale
        """
        self.store = store
        self.processor = processor
        self.ttl = ttl

    def put(self, snapshot: List[Dict[str, Any]], now: Optional[Timestamp] = None) -> bool:
        """
        Replace the cached snapshot

        Returns:
            True if the snapshot was persisted
        """
        written_at = _reference_time(now)
        try:
            self.store.set_items({
                CACHE_KEY: json.dumps(snapshot, ensure_ascii=False),
                CACHE_TIMESTAMP_KEY: str(int(written_at.timestamp() * 1000)),
            })
            logger.debug(f"Cached snapshot of {len(snapshot)} records")
            return True
        except (CacheError, OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving to cache: {str(e)}")
            return False

    def get_raw(self) -> Optional[List[Dict[str, Any]]]:
        """Raw snapshot as last written, or None"""
        try:
            cached = self.store.get_item(CACHE_KEY)
            if cached is None:
                return None
            snapshot = json.loads(cached)
        except (CacheError, OSError, ValueError) as e:
            logger.error(f"Error loading from cache: {str(e)}")
            return None

        if not isinstance(snapshot, list):
            logger.error("Error loading from cache: snapshot is not a list")
            return None
        return snapshot

    def get(self, now: Optional[Timestamp] = None) -> Optional[List[Complaint]]:
        """
        Cached complaints, re-normalized and re-tagged against now

        Returns:
            Visible complaints in feed order, or None when nothing usable is cached
        """
        snapshot = self.get_raw()
        if snapshot is None:
            return None
        complaints, _ = self.processor.prepare(snapshot, now)
        return complaints

    def written_at(self) -> Optional[datetime]:
        try:
            raw = self.store.get_item(CACHE_TIMESTAMP_KEY)
            if raw is None:
                return None
            return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
        except (CacheError, OSError, ValueError, OverflowError) as e:
            logger.error(f"Error reading cache timestamp: {str(e)}")
            return None

    def age(self, now: Optional[Timestamp] = None) -> Optional[timedelta]:
        """Elapsed time since the last put, or None if never written"""
        written_at = self.written_at()
        if written_at is None:
            return None
        return _reference_time(now) - written_at

    def is_stale(self, now: Optional[Timestamp] = None) -> bool:
        age = self.age(now)
        return age is not None and age > self.ttl

    def clear(self) -> None:
        try:
            self.store.remove_item(CACHE_KEY)
            self.store.remove_item(CACHE_TIMESTAMP_KEY)
        except (CacheError, OSError) as e:
            logger.error(f"Error clearing cache: {str(e)}")
