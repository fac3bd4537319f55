# Data models package
from .complaint import Complaint, ComplaintAge
from .category import Category, Profile, UserCategory

__all__ = ["Complaint", "ComplaintAge", "Category", "Profile", "UserCategory"]
