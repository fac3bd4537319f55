"""
Feed endpoint mirroring the complaint sheet as a JSON array
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from complaint_desk.dependencies import get_feed_mirror
from complaint_desk.exceptions import FeedError
from complaint_desk.logging_config import logger
from complaint_desk.services.feed_mirror import FeedMirror

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("/complaints")
async def get_feed(
    refresh: bool = Query(False),
    mirror: FeedMirror = Depends(get_feed_mirror)
):
    """Raw complaint records; refresh=true bypasses the in-memory cache"""
    try:
        return await mirror.get_complaints(refresh=refresh)
    except FeedError as e:
        logger.error(f"Error reading complaint sheet: {e.code} {e.details}")
        raise HTTPException(status_code=502, detail="Error reading complaint source")


@router.get("/status")
async def get_feed_status(mirror: FeedMirror = Depends(get_feed_mirror)):
    """In-memory cache size, age and TTL"""
    return mirror.get_status()


@router.post("/invalidate")
async def invalidate_feed(mirror: FeedMirror = Depends(get_feed_mirror)):
    """Drop the in-memory copy so the next read goes to the sheet"""
    mirror.invalidate()
    logger.info("Feed mirror cache invalidated")
    return {"status": "invalidated"}
