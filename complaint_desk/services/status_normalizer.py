"""
Collapse free-text complaint statuses into the three workflow statuses
"""
from typing import Any, Optional

STATUS_UNASSIGNED = "לא שויך"
STATUS_IN_PROGRESS = "בטיפול"
STATUS_COMPLETED = "הושלם"

STATUS_OPTIONS = (STATUS_UNASSIGNED, STATUS_IN_PROGRESS, STATUS_COMPLETED)

_IN_PROGRESS_MARKERS = ("בטיפול", "פתוח", "claimed")
_COMPLETED_MARKERS = ("הושלם", "completed", "סגור")


def normalize_status(raw: Optional[Any]) -> str:
    """
    Normalize a raw status to one of STATUS_OPTIONS

    Args:
        raw: Status text from the feed, possibly empty

    Returns:
        In-progress or completed when a known marker appears, unassigned otherwise
    """
    value = str(raw or "").lower()
    if any(marker in value for marker in _IN_PROGRESS_MARKERS):
        return STATUS_IN_PROGRESS
    if any(marker in value for marker in _COMPLETED_MARKERS):
        return STATUS_COMPLETED
    return STATUS_UNASSIGNED
