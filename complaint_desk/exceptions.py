"""
Exception hierarchy for the complaint desk

Feed errors are raised by the feed client and caught at the sync service
boundary; cache errors never leave the cache layer.
"""
from typing import Any, Dict, Optional


class ComplaintDeskError(Exception):
    """Base exception for all complaint desk errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class FeedError(ComplaintDeskError):
    """Fetching the complaint feed failed"""

    def __init__(self, message: str, code: str = "FEED_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class FeedNetworkError(FeedError):
    """Transport-level failure (DNS, refused connection, dropped socket)"""

    def __init__(self, message: str = "Feed unreachable", code: str = "FEED_NETWORK_ERROR"):
        super().__init__(message, code=code)


class FeedCancelledError(FeedNetworkError):
    """The request was superseded by a newer fetch or explicitly cancelled"""

    def __init__(self):
        super().__init__("Feed request cancelled", code="FEED_CANCELLED")


class FeedTimeoutError(FeedError):
    """The foreground fetch exceeded its deadline"""

    def __init__(self, timeout: Optional[float] = None):
        super().__init__(
            "Feed request timed out",
            code="FEED_TIMEOUT",
            details={"timeout": timeout}
        )
        self.timeout = timeout


class FeedServerError(FeedError):
    """Non-2xx response or a body that is not a JSON array"""

    def __init__(self, status: int, message: str = "Feed returned an invalid response"):
        super().__init__(message, code="FEED_SERVER_ERROR", details={"status": status})
        self.status = status


class CacheError(ComplaintDeskError):
    """Local cache read, write or parse failure"""

    def __init__(self, message: str):
        super().__init__(message, code="CACHE_ERROR")


class DirectoryError(ComplaintDeskError):
    """Category vocabulary or assignment lookup failed"""

    def __init__(self, message: str):
        super().__init__(message, code="DIRECTORY_ERROR")


class AuthenticationError(ComplaintDeskError):
    """User authentication failed"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")
