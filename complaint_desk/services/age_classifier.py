"""
Freshness classification of complaints by whole days since submission
"""
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional, Union

from complaint_desk.models import ComplaintAge

Timestamp = Union[datetime, str, int, float]

WARNING_DAYS = 4
CRITICAL_DAYS = 7


class AgeClassification(NamedTuple):
    tier: ComplaintAge
    days_old: int


def parse_timestamp(value: Timestamp) -> datetime:
    """
    Coerce a feed timestamp into an aware UTC datetime

    Args:
        value: datetime, ISO-8601 string or epoch milliseconds

    Returns:
        Timezone-aware datetime in UTC; naive inputs are taken as UTC

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty timestamp")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def days_between(created_at: datetime, now: datetime) -> int:
    """Whole elapsed days from created_at to now, truncated toward zero"""
    delta = now - created_at
    if delta >= timedelta(0):
        return delta.days
    return -((-delta).days)


def classify(created_at: Timestamp, now: Optional[Timestamp] = None) -> AgeClassification:
    """
    Map a creation timestamp to a freshness tier

    Args:
        created_at: When the complaint was submitted
        now: Reference time, defaults to the current UTC time

    Returns:
        AgeClassification with the tier and the whole days elapsed. Future
        timestamps classify as new and keep their negative day count.
    """
    reference = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    days_old = days_between(parse_timestamp(created_at), reference)

    if days_old >= CRITICAL_DAYS:
        return AgeClassification(ComplaintAge.CRITICAL, days_old)
    if days_old >= WARNING_DAYS:
        return AgeClassification(ComplaintAge.WARNING, days_old)
    return AgeClassification(ComplaintAge.NEW, days_old)


def format_time_ago(created_at: Timestamp, now: Optional[Timestamp] = None) -> str:
    """Hebrew relative label: today, yesterday, or N days ago"""
    days_old = classify(created_at, now).days_old
    if days_old == 0:
        return "היום"
    if days_old == 1:
        return "אתמול"
    return f"לפני {days_old} ימים"
