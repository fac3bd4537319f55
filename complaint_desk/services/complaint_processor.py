"""
Complaint processing pipeline: visibility filter, category and status normalization,
age tagging and priority ordering
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from complaint_desk.logging_config import logger
from complaint_desk.models import Complaint, ComplaintAge
from complaint_desk.services.age_classifier import Timestamp, classify, parse_timestamp
from complaint_desk.services.category_normalizer import CategoryNormalizer
from complaint_desk.services.priority_sorter import sort_by_priority
from complaint_desk.services.status_normalizer import normalize_status

# Feed fields mapped onto Complaint attributes; everything else lands in extra_data
_KNOWN_FIELDS = {
    "id", "title", "details", "description", "category", "status", "visible",
    "created_at", "submitter_id", "name", "phone", "email", "assigned_to",
}


def _text(value: Any) -> Optional[str]:
    """Feed cells may arrive as numbers; empty values become None"""
    if value is None or value == "":
        return None
    return str(value)


def is_visible(record: Dict[str, Any]) -> bool:
    """Missing visibility means visible; only an explicit false hides a record"""
    value = record.get("visible", True)
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no")
    return bool(value)


class ComplaintProcessor:
    """Turns raw feed records into tagged, display-ready complaints"""

    def __init__(self, normalizer: Optional[CategoryNormalizer] = None):
        """
        Initialize complaint processor

        Args:
            normalizer: Category normalizer holding the known vocabulary
        """
        self.normalizer = normalizer or CategoryNormalizer()
        logger.info("Complaint processor initialized")

    def to_complaint(self, record: Dict[str, Any], now: datetime) -> Complaint:
        """
        Build a Complaint from one raw feed record

        Args:
            record: Raw feed record
            now: Reference time for age classification

        Returns:
            Complaint with normalized category/status and its age tier

        Raises:
            ValueError: If the record has no id
        """
        record_id = record.get("id")
        if record_id is None or str(record_id).strip() == "":
            raise ValueError("Record has no id")

        created_at: Optional[datetime] = None
        age, days_old = ComplaintAge.NEW, 0
        raw_created_at = record.get("created_at")
        try:
            created_at = parse_timestamp(raw_created_at)
            age, days_old = classify(created_at, now)
        except (TypeError, ValueError) as e:
            logger.warning(f"Complaint {record_id} has unusable created_at {raw_created_at!r}: {str(e)}")

        return Complaint(
            id=str(record_id),
            title=_text(record.get("title")) or "",
            description=_text(record.get("description")) or _text(record.get("details")) or "",
            category=self.normalizer.normalize(record.get("category")),
            status=normalize_status(record.get("status")),
            created_at=created_at,
            visible=True,
            submitter_id=_text(record.get("submitter_id")) or "external",
            name=_text(record.get("name")),
            phone=_text(record.get("phone")),
            email=_text(record.get("email")),
            assigned_to=_text(record.get("assigned_to")),
            age=age,
            days_old=days_old,
            extra_data={key: value for key, value in record.items() if key not in _KNOWN_FIELDS},
        )

    def prepare(
        self,
        records: Sequence[Any],
        now: Optional[Timestamp] = None
    ) -> Tuple[List[Complaint], Dict[str, int]]:
        """
        Filter, normalize and tag a raw snapshot, keeping feed order

        Args:
            records: Raw feed records
            now: Reference time, defaults to the current UTC time

        Returns:
            Tuple of (complaints in feed order, statistics dictionary)
        """
        reference = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        stats = {
            'total': len(records),
            'visible': 0,
            'hidden': 0,
            'recategorized': 0,
            'errors': 0
        }

        complaints = []
        for record in records:
            if not isinstance(record, dict):
                stats['errors'] += 1
                continue
            if not is_visible(record):
                stats['hidden'] += 1
                continue

            try:
                complaint = self.to_complaint(record, reference)
            except ValueError as e:
                logger.warning(f"Skipping feed record: {str(e)}")
                stats['errors'] += 1
                continue

            if complaint.category != (record.get("category") or ""):
                stats['recategorized'] += 1
            complaints.append(complaint)
            stats['visible'] += 1

        logger.debug(f"Prepared snapshot - Total: {stats['total']}, Visible: {stats['visible']}, Hidden: {stats['hidden']}, Recategorized: {stats['recategorized']}, Errors: {stats['errors']}")
        return complaints, stats

    def process_snapshot(self, records: Sequence[Any], now: Optional[Timestamp] = None) -> List[Complaint]:
        """Full pipeline: prepare then order by priority"""
        complaints, stats = self.prepare(records, now)
        ordered = sort_by_priority(complaints)
        logger.info(f"Processed {stats['visible']} visible complaints out of {stats['total']} feed records")
        return ordered

    @staticmethod
    def serialize(complaints: Sequence[Complaint]) -> str:
        """Canonical JSON used to detect whether a refresh changed anything"""
        return json.dumps(
            [complaint.model_dump(mode="json") for complaint in complaints],
            ensure_ascii=False,
            sort_keys=True
        )
