"""
Unit tests for models, errors and log formatting
"""
import json
import logging
from datetime import datetime, timezone
from uuid import uuid4
from complaint_desk.config import get_settings
from complaint_desk.exceptions import FeedCancelledError, FeedNetworkError, FeedTimeoutError
from complaint_desk.logging_config import CustomJsonFormatter
from complaint_desk.models import Category, Complaint, ComplaintAge, Profile, UserCategory


class TestComplaintModel:
    """Test Complaint model defaults and serialization"""

    def test_complaint_defaults(self):
        complaint = Complaint(id="1", category="אחר", status="לא שויך")

        assert complaint.age == ComplaintAge.NEW
        assert complaint.days_old == 0
        assert complaint.visible is True
        assert complaint.submitter_id == "external"
        assert complaint.extra_data == {}

    def test_complaint_json_dump(self):
        complaint = Complaint(
            id="7",
            category="תחבורה",
            status="בטיפול",
            created_at=datetime(2026, 10, 10, 8, 0, tzinfo=timezone.utc),
            age=ComplaintAge.CRITICAL,
            days_old=8,
            extra_data={"grade_level": "ט"}
        )

        data = complaint.model_dump(mode="json")

        assert data["age"] == "critical"
        assert data["created_at"].startswith("2026-10-10T08:00:00")
        assert data["extra_data"] == {"grade_level": "ט"}


class TestDirectoryModels:
    """Test category directory table models"""

    def test_category_creation(self):
        category = Category(name="ניקיון")

        assert category.name == "ניקיון"
        assert category.id is not None
        assert isinstance(category.created_at, datetime)

    def test_user_category_links(self):
        profile = Profile(email="staff@school.test")
        category = Category(id=uuid4(), name="תחבורה")

        link = UserCategory(user_id=profile.id, category_id=category.id)

        assert link.user_id == profile.id
        assert link.category_id == category.id

    def test_table_names(self):
        assert Category.__tablename__ == "categories"
        assert Profile.__tablename__ == "profiles"
        assert UserCategory.__tablename__ == "user_categories"


class TestExceptions:
    """Test feed error hierarchy"""

    def test_cancelled_is_a_network_error(self):
        assert isinstance(FeedCancelledError(), FeedNetworkError)

    def test_timeout_to_dict(self):
        error = FeedTimeoutError(10.0)

        assert error.to_dict() == {
            "code": "FEED_TIMEOUT",
            "message": "Feed request timed out",
            "details": {"timeout": 10.0}
        }


class TestJsonFormatter:
    def test_adds_service_and_environment(self):
        formatter = CustomJsonFormatter('%(name)s %(levelname)s %(message)s')
        record = logging.LogRecord("complaint_desk", logging.INFO, __file__, 1, "hello", None, None)
        record.complaint_id = "7"

        payload = json.loads(formatter.format(record))

        assert payload["service"] == "complaint-desk"
        assert payload["environment"] == get_settings().ENVIRONMENT
        assert payload["complaint_id"] == "7"
        assert payload["message"] == "hello"
