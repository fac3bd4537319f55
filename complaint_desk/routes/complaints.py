"""
API routes for the staff complaint list
"""
from datetime import datetime
from typing import List, Set

from fastapi import APIRouter, Depends, HTTPException, Query

from complaint_desk.config import settings
from complaint_desk.dependencies import get_category_directory, get_current_user, get_sync_service
from complaint_desk.exceptions import DirectoryError
from complaint_desk.logging_config import logger
from complaint_desk.models import Complaint
from complaint_desk.services.age_classifier import format_time_ago
from complaint_desk.services.auth import UserIdentity
from complaint_desk.services.category_directory import CategoryDirectory
from complaint_desk.services.complaint_filter import (
    ALL_OPTION,
    ComplaintFilter,
    ComplaintQuery,
    available_categories,
    paginate,
)
from complaint_desk.services.complaint_sync import ComplaintSyncService

router = APIRouter(prefix="/complaints", tags=["complaints"])
categories_router = APIRouter(prefix="/categories", tags=["categories"])


def _serialize(complaint: Complaint, now: datetime) -> dict:
    data = complaint.model_dump(mode="json")
    data["time_ago"] = format_time_ago(complaint.created_at, now) if complaint.created_at else None
    return data


async def _sync_vocabulary(directory: CategoryDirectory, service: ComplaintSyncService) -> List[str]:
    """Load the vocabulary and re-normalize the current snapshot if it changed"""
    try:
        names = await directory.list_category_names()
    except DirectoryError as e:
        # Without a vocabulary every category is treated as non-canonical
        logger.warning(f"Category vocabulary unavailable: {e.message}")
        return service.processor.normalizer.known_categories
    service.update_categories(names)
    return names


async def _assigned_for(directory: CategoryDirectory, user: UserIdentity) -> Set[str]:
    try:
        return await directory.assigned_categories(user.email)
    except DirectoryError as e:
        # Fail closed
        logger.error(f"Could not resolve category assignment for {user.email}: {e.message}")
        raise HTTPException(status_code=503, detail="User permissions unavailable")


@router.get("/")
async def list_complaints(
    search: str = Query(""),
    category: str = Query(ALL_OPTION),
    status: str = Query(ALL_OPTION),
    page: int = Query(1, ge=1),
    user: UserIdentity = Depends(get_current_user),
    service: ComplaintSyncService = Depends(get_sync_service),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """Get the filtered, priority-ordered, paginated complaint list"""
    known = await _sync_vocabulary(directory, service)
    assigned = await _assigned_for(directory, user)

    try:
        complaints = await service.load_with_cache()
        query = ComplaintQuery(search=search, category=category, status=status, page=page)
        filtered = ComplaintFilter(assigned).apply(complaints, query)
        result = paginate(filtered, page=query.page, page_size=settings.PAGE_SIZE)
        now = service.clock()
    except Exception as e:
        logger.error(f"Error listing complaints: {str(e)}")
        raise HTTPException(status_code=500, detail="Error listing complaints")

    return {
        "complaints": [_serialize(complaint, now) for complaint in result.items],
        "page": result.page,
        "page_size": result.page_size,
        "total": result.total,
        "total_pages": result.total_pages,
        "state": service.state.value,
        "notices": [notice.model_dump() for notice in service.pop_notices()],
        "assigned_categories": sorted(assigned),
        "available_categories": available_categories(known, assigned)
    }


@router.post("/refresh")
async def refresh_complaints(
    user: UserIdentity = Depends(get_current_user),
    service: ComplaintSyncService = Depends(get_sync_service)
):
    """Manually refresh the list, bypassing the feed's server-side cache"""
    complaints = await service.refresh()
    logger.info(f"Manual refresh by {user.email}: {len(complaints)} complaints")
    return {
        "state": service.state.value,
        "total": len(complaints),
        "notices": [notice.model_dump() for notice in service.pop_notices()]
    }


@router.get("/status")
async def get_sync_status(
    user: UserIdentity = Depends(get_current_user),
    service: ComplaintSyncService = Depends(get_sync_service)
):
    """Sync state and cache age"""
    return service.get_status()


@router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: str,
    user: UserIdentity = Depends(get_current_user),
    service: ComplaintSyncService = Depends(get_sync_service),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """Get a single complaint the user is allowed to see"""
    assigned = await _assigned_for(directory, user)
    await service.load_with_cache()

    complaint = service.get_complaint(complaint_id)
    if complaint is None or not ComplaintFilter(assigned).matches_assignment(complaint):
        raise HTTPException(status_code=404, detail="Complaint not found")
    return _serialize(complaint, service.clock())


@categories_router.get("/")
async def list_categories(
    user: UserIdentity = Depends(get_current_user),
    service: ComplaintSyncService = Depends(get_sync_service),
    directory: CategoryDirectory = Depends(get_category_directory)
):
    """Category options available to the current user"""
    known = await _sync_vocabulary(directory, service)
    assigned = await _assigned_for(directory, user)
    return {
        "categories": available_categories(known, assigned),
        "assigned_categories": sorted(assigned)
    }
