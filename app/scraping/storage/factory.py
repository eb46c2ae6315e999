"""
Startup selection of the shop cache implementation.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from app.config import SearchSettings
from app.scraping.storage.base import NullShopCacheStore, ShopCacheStore
from app.scraping.storage.sqlalchemy_storage import SQLAlchemyShopCacheStore
from db.session import get_session_factory

logger = logging.getLogger(__name__)


def build_shop_cache_store(settings: SearchSettings) -> ShopCacheStore:
    """
    Return a database-backed store, or the no-op store when no database is
    configured or the engine cannot be created.
    """

    try:
        session_factory = get_session_factory()
    except Exception as exc:
        logger.warning("Shop cache disabled; database engine unavailable: %s", exc)
        return NullShopCacheStore()

    if session_factory is None:
        logger.info("Shop cache disabled; no database URL configured")
        return NullShopCacheStore()

    return SQLAlchemyShopCacheStore(
        session_factory=session_factory,
        ttl=timedelta(hours=settings.cache_ttl_hours),
        read_timeout=settings.cache_read_timeout_seconds,
    )
