"""
Priority ordering of tagged complaints: most urgent tier first, oldest first within a tier
"""
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from complaint_desk.models import Complaint, ComplaintAge

TIER_RANK = {
    ComplaintAge.CRITICAL: 0,
    ComplaintAge.WARNING: 1,
    ComplaintAge.NEW: 2,
}

# Records without a usable timestamp go last within their tier
_UNKNOWN_CREATED_AT = datetime.max.replace(tzinfo=timezone.utc)


def priority_key(complaint: Complaint) -> Tuple[int, datetime]:
    return TIER_RANK[complaint.age], complaint.created_at or _UNKNOWN_CREATED_AT


def sort_by_priority(complaints: Iterable[Complaint]) -> List[Complaint]:
    # sorted() is stable, so equal keys keep feed order
    return sorted(complaints, key=priority_key)
