from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlmodel import Field, SQLModel


class ComplaintAge(str, Enum):
    NEW = "new"
    WARNING = "warning"
    CRITICAL = "critical"


class Complaint(SQLModel):
    """A feed record after normalization and age tagging. Never persisted."""

    id: str
    title: str = ""
    description: str = ""
    category: str
    status: str
    created_at: Optional[datetime] = None
    visible: bool = True
    submitter_id: str = "external"
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    assigned_to: Optional[str] = None
    age: ComplaintAge = ComplaintAge.NEW
    days_old: int = 0
    extra_data: Dict[str, Any] = Field(default_factory=dict)
