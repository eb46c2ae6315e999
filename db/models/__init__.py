"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.shop_cache_entry import ShopCacheEntry

__all__ = [
    "ShopCacheEntry",
]
