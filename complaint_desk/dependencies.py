"""
Shared service instances and FastAPI dependencies
"""
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from complaint_desk.clients.feed_client import FeedClient
from complaint_desk.config import settings
from complaint_desk.database import db_manager
from complaint_desk.exceptions import AuthenticationError
from complaint_desk.logging_config import logger
from complaint_desk.services.auth import (
    CredentialVerifier,
    SupabaseCredentialVerifier,
    UserIdentity,
    parse_bearer_token,
)
from complaint_desk.services.category_directory import (
    CategoryDirectory,
    SqlCategoryDirectory,
    StaticCategoryDirectory,
    SupabaseCategoryDirectory,
)
from complaint_desk.services.category_normalizer import CategoryNormalizer
from complaint_desk.services.complaint_processor import ComplaintProcessor
from complaint_desk.services.complaint_sync import ComplaintSyncService
from complaint_desk.services.feed_mirror import FeedMirror
from complaint_desk.storage.key_value import FileKeyValueStore
from complaint_desk.storage.local_cache import LocalCacheStore


@lru_cache()
def get_sync_service() -> ComplaintSyncService:
    """Application-wide complaint sync service"""
    processor = ComplaintProcessor(CategoryNormalizer(settings.KNOWN_CATEGORIES))
    cache = LocalCacheStore(
        FileKeyValueStore(settings.CACHE_PATH),
        processor,
        ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS)
    )
    return ComplaintSyncService(FeedClient(), cache, processor)


@lru_cache()
def get_feed_mirror() -> FeedMirror:
    return FeedMirror()


async def get_category_directory() -> CategoryDirectory:
    """Pick the category source: Supabase, then SQL database, then static configuration"""
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
        await db_manager.initialize()
        return SupabaseCategoryDirectory(db_manager.supabase_client)
    if settings.DATABASE_URL:
        return SqlCategoryDirectory(db_manager.get_session)
    return StaticCategoryDirectory(settings.KNOWN_CATEGORIES)


async def get_credential_verifier() -> Optional[CredentialVerifier]:
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
        await db_manager.initialize()
        return SupabaseCredentialVerifier(db_manager.supabase_client)
    return None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    verifier: Optional[CredentialVerifier] = Depends(get_credential_verifier)
) -> UserIdentity:
    """Authenticated user for the request"""
    try:
        if verifier is None:
            raise AuthenticationError("Authentication is not configured")
        return await verifier.verify(parse_bearer_token(authorization))
    except AuthenticationError as e:
        logger.info(f"Rejected request: {e.message}")
        raise HTTPException(status_code=401, detail=e.message)
