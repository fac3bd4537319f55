"""
Complaint list lifecycle: cache-first load, foreground fetch, background refresh
"""
import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from complaint_desk.clients.feed_client import CancellationHandle, FeedClient, FetchMode
from complaint_desk.exceptions import FeedCancelledError, FeedError, FeedTimeoutError
from complaint_desk.logging_config import logger
from complaint_desk.models import Complaint
from complaint_desk.services.complaint_processor import ComplaintProcessor
from complaint_desk.services.priority_sorter import sort_by_priority

if TYPE_CHECKING:
    # storage imports the services package
    from complaint_desk.storage.local_cache import LocalCacheStore


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"
    BACKGROUND_REFRESHING = "background_refreshing"


class Notice(BaseModel):
    """User-facing message produced by a load or refresh"""
    title: str
    description: str
    variant: str = "default"
    retryable: bool = False


TIMEOUT_NOTICE = Notice(
    title="הבקשה בוטלה",
    description="זמן הטעינה ארך מדי, נסה שוב",
    variant="destructive",
    retryable=True,
)
LOAD_FAILED_NOTICE = Notice(
    title="שגיאה",
    description="נכשל בטעינת התלונות",
    variant="destructive",
    retryable=True,
)
REFRESH_FAILED_NOTICE = Notice(
    title="שגיאה",
    description="נכשל בעדכון הרשימה",
    variant="destructive",
    retryable=True,
)
REFRESH_SUCCEEDED_NOTICE = Notice(
    title="עודכן בהצלחה",
    description="הרשימה עודכנה מהשרת",
)


class ComplaintSyncService:
    """
    Keeps the displayed complaint list in step with the feed

    One cancellation handle is live at a time: starting any fetch cancels the
    previous one first, so the last cache write always belongs to the most
    recently started fetch. Cancelled fetches are dropped silently.
    """

    def __init__(
        self,
        feed_client: FeedClient,
        cache: "LocalCacheStore",
        processor: Optional[ComplaintProcessor] = None,
        foreground_timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize complaint sync service

        Args:
            feed_client: Client for the complaint feed
            cache: Local snapshot cache
            processor: Processing pipeline, defaults to the cache's processor
            foreground_timeout: Deadline for blocking loads, defaults to the client's timeout
            clock: Source of the current time
        """
        self.feed_client = feed_client
        self.cache = cache
        self.processor = processor or cache.processor
        self.foreground_timeout = foreground_timeout if foreground_timeout is not None else feed_client.timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = SyncState.IDLE
        self.complaints: List[Complaint] = []
        self.last_error: Optional[FeedError] = None
        self._notices: List[Notice] = []
        self._snapshot: Optional[List[Dict[str, Any]]] = None
        self._serialized = self.processor.serialize([])
        self._handle: Optional[CancellationHandle] = None
        self._background_task: Optional[asyncio.Task] = None
        logger.info("Complaint sync service initialized")

    # ---- state helpers ----

    def _begin_fetch(self) -> CancellationHandle:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = CancellationHandle()
        return self._handle

    def _publish(self, complaints: List[Complaint]) -> bool:
        """Replace the displayed list unless it is byte-identical to the current one"""
        serialized = self.processor.serialize(complaints)
        if serialized == self._serialized:
            return False
        self.complaints = complaints
        self._serialized = serialized
        return True

    def _accept(self, snapshot: List[Dict[str, Any]]) -> bool:
        now = self.clock()
        self.cache.put(snapshot, now)
        self._snapshot = snapshot
        return self._publish(self.processor.process_snapshot(snapshot, now))

    def _fall_back_to_cache(self) -> bool:
        cached = self.cache.get(self.clock())
        if cached is None:
            return False
        self._snapshot = self.cache.get_raw()
        self._publish(sort_by_priority(cached))
        logger.info(f"Falling back to {len(cached)} cached complaints")
        return True

    def pop_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    @property
    def is_background_refreshing(self) -> bool:
        return self._background_task is not None and not self._background_task.done()

    # ---- lifecycle ----

    async def load_with_cache(self) -> List[Complaint]:
        """
        Show cached complaints immediately, refreshing in the background when stale

        Falls through to a foreground load when nothing is cached.
        """
        now = self.clock()
        cached = self.cache.get(now)
        if not cached:
            return await self.load()

        self._snapshot = self.cache.get_raw()
        self._publish(sort_by_priority(cached))
        if self.state in (SyncState.IDLE, SyncState.FAILED):
            self.state = SyncState.LOADED

        if self.cache.is_stale(now) and not self.is_background_refreshing:
            logger.info("Cached complaints are stale, refreshing in background")
            self._background_task = asyncio.create_task(self.refresh_in_background())
        return self.complaints

    async def load(self) -> List[Complaint]:
        """
        Foreground load with the foreground deadline

        On failure a retryable notice is queued and the cache, if any, is shown.
        """
        self.state = SyncState.LOADING
        handle = self._begin_fetch()
        try:
            snapshot = await self.feed_client.fetch_snapshot(
                FetchMode.NORMAL,
                timeout=self.foreground_timeout,
                token=handle
            )
        except FeedCancelledError:
            logger.debug("Foreground load superseded by a newer fetch")
            return self.complaints
        except FeedError as e:
            self._fail(e, TIMEOUT_NOTICE if isinstance(e, FeedTimeoutError) else LOAD_FAILED_NOTICE)
            self._fall_back_to_cache()
            return self.complaints

        self._accept(snapshot)
        self.state = SyncState.LOADED
        self.last_error = None
        return self.complaints

    async def refresh_in_background(self) -> bool:
        """
        Refresh without a deadline, silently replacing the list when it changed

        Returns:
            True if the displayed list changed
        """
        resting_state = self.state if self.state in (SyncState.LOADED, SyncState.FAILED) else SyncState.LOADED
        self.state = SyncState.BACKGROUND_REFRESHING
        handle = self._begin_fetch()
        try:
            snapshot = await self.feed_client.fetch_snapshot(FetchMode.NORMAL, timeout=None, token=handle)
        except FeedCancelledError:
            logger.debug("Background refresh cancelled")
            if self.state == SyncState.BACKGROUND_REFRESHING:
                self.state = resting_state
            return False
        except FeedError as e:
            logger.warning(f"Background refresh failed, keeping cached complaints: {e.message}")
            self.last_error = e
            self.state = resting_state
            return False

        changed = self._accept(snapshot)
        self.state = SyncState.LOADED
        if changed:
            logger.info(f"Background refresh updated list to {len(self.complaints)} complaints")
        else:
            logger.debug("Background refresh found no changes")
        return changed

    async def refresh(self) -> List[Complaint]:
        """Manual refresh: forces the feed to bypass its server-side cache"""
        self.state = SyncState.LOADING
        handle = self._begin_fetch()
        try:
            snapshot = await self.feed_client.fetch_snapshot(
                FetchMode.FORCE_REFRESH,
                timeout=self.foreground_timeout,
                token=handle
            )
        except FeedCancelledError:
            logger.debug("Manual refresh superseded by a newer fetch")
            return self.complaints
        except FeedError as e:
            self._fail(e, TIMEOUT_NOTICE if isinstance(e, FeedTimeoutError) else REFRESH_FAILED_NOTICE)
            if not self.complaints:
                self._fall_back_to_cache()
            return self.complaints

        self._accept(snapshot)
        self.state = SyncState.LOADED
        self.last_error = None
        self._notices.append(REFRESH_SUCCEEDED_NOTICE)
        return self.complaints

    def _fail(self, error: FeedError, notice: Notice) -> None:
        self.state = SyncState.FAILED
        self.last_error = error
        self._notices.append(notice)
        logger.error(f"Error loading complaints: {error.code} {error.details}")

    def update_categories(self, categories: Iterable[str]) -> bool:
        """
        Swap the canonical vocabulary and re-normalize the last raw snapshot

        Returns:
            True if the displayed list changed
        """
        if not self.processor.normalizer.update_known(categories):
            return False
        if self._snapshot is None:
            return False
        return self._publish(self.processor.process_snapshot(self._snapshot, self.clock()))

    def get_complaint(self, complaint_id: str) -> Optional[Complaint]:
        for complaint in self.complaints:
            if complaint.id == str(complaint_id):
                return complaint
        return None

    def cancel(self) -> None:
        """Cancel the in-flight fetch; its outcome is dropped silently"""
        if self._handle is not None:
            self._handle.cancel()

    async def close(self) -> None:
        """Cancel any in-flight fetch and wait for the background task to settle"""
        self.cancel()
        if self._background_task is not None and not self._background_task.done():
            await asyncio.gather(self._background_task, return_exceptions=True)
        logger.info("Complaint sync service closed")

    def get_status(self) -> dict:
        cache_age = self.cache.age(self.clock())
        return {
            "state": self.state.value,
            "complaints": len(self.complaints),
            "cache_age_seconds": round(cache_age.total_seconds(), 1) if cache_age is not None else None,
            "background_refreshing": self.is_background_refreshing,
            "last_error": self.last_error.to_dict() if self.last_error else None
        }
