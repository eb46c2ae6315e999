"""
app/api/routers package marker.
"""

from app.api.routers.search_router import router as search_router

__all__ = [
    "search_router",
]
