"""
HTTP client for the complaint JSON feed with timeout and cancellation support
"""
import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from complaint_desk.config import settings
from complaint_desk.exceptions import (
    FeedCancelledError,
    FeedNetworkError,
    FeedServerError,
    FeedTimeoutError,
)
from complaint_desk.logging_config import logger


class FetchMode(str, Enum):
    NORMAL = "normal"
    FORCE_REFRESH = "force_refresh"


class CancellationHandle:
    """
    Cancellation token for a single fetch

    The owner invalidates the handle before issuing the next fetch so that
    at most one request can complete and update shared state.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class FeedClient:
    """Fetches the raw complaint snapshot from the feed endpoint"""

    def __init__(
        self,
        feed_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize feed client

        Args:
            feed_url: Feed endpoint, defaults to the configured FEED_URL
            timeout: Default foreground timeout in seconds
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.feed_url = feed_url or settings.FEED_URL
        self.timeout = timeout if timeout is not None else settings.FEED_TIMEOUT
        self.transport = transport
        logger.info(f"Feed client initialized for {self.feed_url}")

    async def _request(self, params: Optional[Dict[str, str]]) -> httpx.Response:
        # Deadlines are enforced by fetch_snapshot, not by httpx
        async with httpx.AsyncClient(transport=self.transport, timeout=None) as client:
            return await client.get(
                self.feed_url,
                params=params,
                headers={"Accept": "application/json"}
            )

    async def fetch_snapshot(
        self,
        mode: FetchMode = FetchMode.NORMAL,
        timeout: Optional[float] = None,
        token: Optional[CancellationHandle] = None
    ) -> List[Dict[str, Any]]:
        """
        Issue one request to the feed and return the raw records

        Args:
            mode: FORCE_REFRESH asks the feed to bypass its own server-side cache
            timeout: Deadline in seconds, None for no deadline
            token: Cancellation handle; cancelling it aborts the request

        Returns:
            Raw complaint records

        Raises:
            FeedCancelledError: The handle was cancelled before the response was accepted
            FeedTimeoutError: The deadline passed
            FeedNetworkError: Transport failure
            FeedServerError: Non-2xx status or a body that is not a JSON array
        """
        token = token or CancellationHandle()
        if token.cancelled:
            raise FeedCancelledError()

        params = {"refresh": "true"} if mode == FetchMode.FORCE_REFRESH else None
        request_task = asyncio.ensure_future(self._request(params))
        cancel_task = asyncio.ensure_future(token.wait())

        try:
            await asyncio.wait(
                {request_task, cancel_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            pending = [task for task in (request_task, cancel_task) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if token.cancelled:
            if not request_task.cancelled():
                # Retrieve the outcome so a late failure is not reported as unhandled
                request_task.exception()
            logger.debug(f"Feed request to {self.feed_url} cancelled")
            raise FeedCancelledError()

        if request_task.cancelled():
            logger.warning(f"Feed request timed out after {timeout}s")
            raise FeedTimeoutError(timeout)

        try:
            response = request_task.result()
        except httpx.TimeoutException as e:
            logger.warning(f"Feed transport timeout: {str(e)}")
            raise FeedTimeoutError(timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"Feed network error: {type(e).__name__}: {str(e)}")
            raise FeedNetworkError(str(e) or type(e).__name__) from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> List[Dict[str, Any]]:
        """
        Validate the feed response

        Args:
            response: HTTP response from the feed

        Returns:
            The decoded JSON array
        """
        if not response.is_success:
            logger.error(f"Feed returned status {response.status_code}")
            raise FeedServerError(response.status_code, "Failed to fetch complaints")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Feed returned malformed JSON (status {response.status_code}): {str(e)}")
            raise FeedServerError(response.status_code, "Malformed feed body") from e

        if not isinstance(data, list):
            logger.error(f"Feed returned {type(data).__name__} instead of a list")
            raise FeedServerError(response.status_code, "Feed body is not a list")

        logger.debug(f"Fetched {len(data)} feed records")
        return data
