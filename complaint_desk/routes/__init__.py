# API routers
from .complaints import router as complaints_router, categories_router
from .feed import router as feed_router

__all__ = ["complaints_router", "categories_router", "feed_router"]
