"""
Google Sheets reader that turns form responses into feed records
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx

from complaint_desk.config import settings
from complaint_desk.exceptions import FeedNetworkError, FeedServerError
from complaint_desk.logging_config import logger

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"

# Form column headers mapped to feed keys
FIELD_MAP = {
    "חותמת זמן": "timestamp",
    "מגיש הפנייה": "submitter",
    "תפקיד": "role",
    "מחלקה": "department",
    "שם פונה (שם פרטי + שם משפחה)": "name",
    "מספר טלפון": "phone",
    "נושא הפנייה": "topic",
    "כותרת הפנייה": "title",
    "פרטי הפנייה": "details",
    "שכבה": "grade_level",
    "כיתה": "class_name",
}

TIMESTAMP_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
    "%d/%m/%Y",
)


def parse_form_timestamp(value: str, tz_name: str) -> str:
    """
    Convert a form timestamp into ISO-8601

    Args:
        value: Timestamp cell as written by Google Forms
        tz_name: Timezone the naive form timestamp is expressed in

    Returns:
        ISO-8601 string, or the input unchanged when it matches no known format
    """
    text = value.strip()
    if not text:
        return ""

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        logger.warning(f"Unrecognized form timestamp: {text!r}")
        return text

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(tz_name))
    return parsed.isoformat()


def map_rows(rows: List[List[Any]], tz_name: str = "Asia/Jerusalem") -> List[Dict[str, Any]]:
    """
    Map raw sheet rows to feed records

    The first row holds the headers. When a header appears twice the first
    non-empty value wins. Rows without a title and without details are dropped.
    Ids are 1-based row positions.

    Args:
        rows: Values returned by the Sheets API, header row first
        tz_name: Timezone of the form timestamps

    Returns:
        Feed records
    """
    if not rows:
        return []

    headers = rows[0]
    records = []
    for index, row in enumerate(rows[1:]):
        entry: Dict[str, str] = {}
        for column, header in enumerate(headers):
            key = FIELD_MAP.get(str(header).strip())
            if not key:
                continue
            value = str(row[column]).strip() if column < len(row) and row[column] is not None else ""
            if not entry.get(key):
                entry[key] = value

        if not entry.get("title") and not entry.get("details"):
            continue

        records.append({
            "id": index + 1,
            "created_at": parse_form_timestamp(entry.get("timestamp", ""), tz_name),
            "title": entry.get("title", ""),
            "details": entry.get("details", ""),
            "category": entry.get("topic", ""),
            "visible": True,
            "submitter_id": "external",
            "submitter": entry.get("submitter", ""),
            "role": entry.get("role", ""),
            "department": entry.get("department", ""),
            "name": entry.get("name", ""),
            "phone": entry.get("phone", ""),
            "grade_level": entry.get("grade_level", ""),
            "class_name": entry.get("class_name", ""),
        })

    return records


class GoogleSheetsClient:
    """Reads form responses through the Sheets values API"""

    def __init__(
        self,
        sheet_id: Optional[str] = None,
        sheet_range: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.sheet_id = sheet_id or settings.SHEET_ID
        self.sheet_range = sheet_range or settings.SHEET_RANGE
        self.api_key = api_key or settings.GOOGLE_SHEETS_API_KEY
        self.timezone = settings.SHEET_TIMEZONE
        self.transport = transport

    async def fetch_rows(self) -> List[List[Any]]:
        """Raw cell values of the response sheet, header row first"""
        if not self.sheet_id or not self.api_key:
            raise FeedServerError(503, "Google Sheets source is not configured")

        url = f"{SHEETS_API_URL}/{self.sheet_id}/values/{quote(self.sheet_range, safe='')}"
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=settings.FEED_TIMEOUT) as client:
                response = await client.get(url, params={"key": self.api_key})
        except httpx.HTTPError as e:
            logger.error(f"Sheets request failed: {type(e).__name__}: {str(e)}")
            raise FeedNetworkError(str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.error(f"Sheets API returned status {response.status_code}")
            raise FeedServerError(response.status_code, "Sheets API request failed")

        try:
            payload = response.json()
        except ValueError as e:
            raise FeedServerError(response.status_code, "Malformed Sheets API body") from e
        return payload.get("values", []) if isinstance(payload, dict) else []

    async def fetch_complaints(self) -> List[Dict[str, Any]]:
        rows = await self.fetch_rows()
        records = map_rows(rows, self.timezone)
        logger.info(f"Read {len(records)} complaints from {max(len(rows) - 1, 0)} sheet rows")
        return records
