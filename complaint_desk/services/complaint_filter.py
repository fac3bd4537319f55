"""
List filtering and pagination for the complaints view

The explicit category filter and the assigned-category restriction are
independent predicates; a complaint is listed only when both accept it.
"""
import math
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from complaint_desk.models import Complaint
from complaint_desk.services.category_normalizer import canonical_form, is_within_assignment

ALL_OPTION = "הכל"


class ComplaintQuery(BaseModel):
    """User-selected list filters"""
    search: str = ""
    category: str = ALL_OPTION
    status: str = ALL_OPTION
    page: int = Field(default=1, ge=1)


class ComplaintPage(BaseModel):
    """One page of filtered complaints"""
    items: List[Complaint]
    page: int
    page_size: int
    total: int
    total_pages: int


class ComplaintFilter:
    """Applies search, category, status and assignment predicates"""

    def __init__(self, assigned_categories: Optional[Iterable[str]] = None):
        """
        Initialize complaint filter

        Args:
            assigned_categories: Categories assigned to the current user; empty means unrestricted
        """
        self.assigned_categories = set(assigned_categories or [])

    @staticmethod
    def matches_search(complaint: Complaint, search: str) -> bool:
        term = search.strip().lower()
        if not term:
            return True
        return term in complaint.title.lower() or term in complaint.description.lower()

    @staticmethod
    def matches_category_filter(complaint: Complaint, category: str) -> bool:
        if not category or category == ALL_OPTION:
            return True
        return canonical_form(complaint.category) == canonical_form(category)

    @staticmethod
    def matches_status_filter(complaint: Complaint, status: str) -> bool:
        if not status or status == ALL_OPTION:
            return True
        return complaint.status == status

    def matches_assignment(self, complaint: Complaint) -> bool:
        return is_within_assignment(complaint.category, self.assigned_categories)

    def matches(self, complaint: Complaint, query: ComplaintQuery) -> bool:
        return (
            self.matches_assignment(complaint)
            and self.matches_category_filter(complaint, query.category)
            and self.matches_status_filter(complaint, query.status)
            and self.matches_search(complaint, query.search)
        )

    def apply(self, complaints: Sequence[Complaint], query: ComplaintQuery) -> List[Complaint]:
        """Filter complaints, preserving their order"""
        return [complaint for complaint in complaints if self.matches(complaint, query)]


def paginate(complaints: Sequence[Complaint], page: int = 1, page_size: int = 25) -> ComplaintPage:
    """
    Slice a filtered list into a page

    Args:
        complaints: Filtered complaints in display order
        page: 1-based page number; pages past the end are empty
        page_size: Complaints per page

    Returns:
        ComplaintPage with the slice and totals
    """
    total = len(complaints)
    start = (page - 1) * page_size
    return ComplaintPage(
        items=list(complaints[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size) if page_size else 0,
    )


def available_categories(known: Sequence[str], assigned: Iterable[str]) -> List[str]:
    """Dropdown options: the vocabulary, narrowed to the user's assignment when there is one"""
    assigned = set(assigned)
    return [name for name in known if is_within_assignment(name, assigned)]
