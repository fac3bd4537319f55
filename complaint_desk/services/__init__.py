# Business logic services package
from .age_classifier import classify, format_time_ago, AgeClassification
from .priority_sorter import sort_by_priority
from .category_normalizer import CategoryNormalizer, normalize_category, is_within_assignment
from .status_normalizer import normalize_status
from .complaint_processor import ComplaintProcessor
from .complaint_filter import ComplaintFilter, ComplaintQuery, ComplaintPage, paginate, available_categories
from .complaint_sync import ComplaintSyncService, SyncState, Notice
from .category_directory import (
    CategoryDirectory,
    StaticCategoryDirectory,
    SqlCategoryDirectory,
    SupabaseCategoryDirectory
)
from .feed_mirror import FeedMirror

__all__ = [
    "classify",
    "format_time_ago",
    "AgeClassification",
    "sort_by_priority",
    "CategoryNormalizer",
    "normalize_category",
    "is_within_assignment",
    "normalize_status",
    "ComplaintProcessor",
    "ComplaintFilter",
    "ComplaintQuery",
    "ComplaintPage",
    "paginate",
    "available_categories",
    "ComplaintSyncService",
    "SyncState",
    "Notice",
    "CategoryDirectory",
    "StaticCategoryDirectory",
    "SqlCategoryDirectory",
    "SupabaseCategoryDirectory",
    "FeedMirror"
]
