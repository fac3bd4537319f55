# HTTP clients for the complaint feed and its Google Sheets source
from .feed_client import FeedClient, FetchMode, CancellationHandle
from .sheets_client import GoogleSheetsClient

__all__ = [
    "FeedClient",
    "FetchMode",
    "CancellationHandle",
    "GoogleSheetsClient"
]
