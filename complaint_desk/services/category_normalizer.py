"""
Canonicalization of free-text complaint categories against the known vocabulary
"""
import unicodedata
from typing import Collection, Dict, Iterable, List, Optional

from complaint_desk.logging_config import logger

OTHER_CATEGORY = "אחר"


def canonical_form(value: Optional[str]) -> str:
    """
    Trim and NFC-normalize a label so visually identical Hebrew strings compare equal

    Args:
        value: Raw label, possibly None

    Returns:
        Normalized label, empty string for missing input
    """
    if value is None:
        return ""
    return unicodedata.normalize("NFC", str(value).strip())


class CategoryNormalizer:
    """Maps raw category labels onto the canonical category set"""

    def __init__(self, known_categories: Optional[Iterable[str]] = None):
        """
        Initialize category normalizer

        Args:
            known_categories: Canonical category names, in display order
        """
        self._known: List[str] = []
        self._lookup: Dict[str, str] = {}
        self.update_known(known_categories or [])

    @property
    def known_categories(self) -> List[str]:
        return list(self._known)

    def update_known(self, categories: Iterable[str]) -> bool:
        """
        Replace the canonical vocabulary

        Returns:
            True if the vocabulary changed
        """
        names = [name for name in categories if canonical_form(name)]
        if names == self._known:
            return False

        self._known = names
        self._lookup = {canonical_form(name): name for name in names}
        logger.info(f"Category vocabulary updated with {len(names)} categories")
        return True

    def is_known(self, category: Optional[str]) -> bool:
        return canonical_form(category) in self._lookup

    def normalize(self, raw: Optional[str]) -> str:
        """
        Normalize a raw category label

        Empty labels become the "other" sentinel, exact matches return the
        canonical member, anything else is returned trimmed and NFC-normalized
        so identical unknown categories still group together.
        """
        value = canonical_form(raw)
        if not value:
            return OTHER_CATEGORY

        canonical = self._lookup.get(value)
        if canonical is not None:
            return canonical

        if self._known:
            logger.debug(f"Category not in vocabulary: {value!r}")
        return value


def normalize_category(raw: Optional[str], known: Optional[Iterable[str]] = None) -> str:
    """Functional form of CategoryNormalizer.normalize"""
    return CategoryNormalizer(known).normalize(raw)


def is_within_assignment(category: Optional[str], assigned: Collection[str]) -> bool:
    """
    Assigned-category restriction

    An empty assignment means unrestricted visibility; otherwise the
    normalized category must be one of the assigned categories.
    """
    if not assigned:
        return True
    return canonical_form(category) in {canonical_form(name) for name in assigned}
