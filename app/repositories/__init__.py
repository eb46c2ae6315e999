"""
app/repositories package marker.
"""

from app.repositories.shop_cache_repository import ShopCacheRepository

__all__ = ["ShopCacheRepository"]
