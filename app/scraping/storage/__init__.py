"""
Storage layer exports.
"""

from app.scraping.storage.base import NullShopCacheStore, ShopCacheStore
from app.scraping.storage.factory import build_shop_cache_store
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyShopCacheStore

__all__ = [
    "NullShopCacheStore",
    "SQLAlchemyShopCacheStore",
    "ShopCacheStore",
    "build_shop_cache_store",
]
