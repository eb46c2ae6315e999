"""
app/schemas package marker.
"""

from app.schemas.search import (
    BikeRecord,
    RegionsResponse,
    SearchCompleteEvent,
    ShopRecord,
    ShopResultEvent,
    StreamingUrlEvent,
)

__all__ = [
    "BikeRecord",
    "RegionsResponse",
    "SearchCompleteEvent",
    "ShopRecord",
    "ShopResultEvent",
    "StreamingUrlEvent",
]
