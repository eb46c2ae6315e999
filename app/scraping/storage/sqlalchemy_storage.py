"""
SQLAlchemy-backed shop cache store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.search import CachedShop
from app.repositories.shop_cache_repository import ShopCacheRepository
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import ShopCacheStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemyShopCacheStore(ShopCacheStore):
    """
    Persist shop payloads through the repository, one session per operation.

    Blocking database work runs in a worker thread so the event loop keeps
    relaying other sites while a read or write is in progress. Reads are
    bounded by ``read_timeout``; a read that overruns counts as a miss.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        ttl: timedelta,
        read_timeout: float | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = ttl
        self._read_timeout = read_timeout
        self._clock = clock

    async def read_fresh(self, city: str) -> dict[str, CachedShop]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._read_fresh_sync, city),
                timeout=self._read_timeout,
            )
        except asyncio.TimeoutError:
            log_event(
                logger,
                logging.WARNING,
                "cache_read_failed",
                city=city,
                error=f"timed out after {self._read_timeout:g}s",
            )
            return {}
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "cache_read_failed",
                city=city,
                error=str(exc),
            )
            return {}

    async def upsert(self, city: str, site: str, shop: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._upsert_sync, city, site, shop)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "cache_write_failed",
                city=city,
                site=site,
                error=str(exc),
            )
            return
        log_event(logger, logging.DEBUG, "cache_write_completed", city=city, site=site)

    def _read_fresh_sync(self, city: str) -> dict[str, CachedShop]:
        cutoff = self._clock() - self._ttl
        with self._session_factory() as session:
            rows = ShopCacheRepository(session).list_fresh(city=city, scraped_after=cutoff)
            fresh: dict[str, CachedShop] = {}
            for row in rows:
                # Newest first; keep the first row seen per site.
                fresh.setdefault(
                    row.site_url,
                    CachedShop(
                        site=row.site_url,
                        shop=dict(row.shop_data),
                        scraped_at=_as_utc(row.scraped_at),
                    ),
                )
            return fresh

    def _upsert_sync(self, city: str, site: str, shop: dict[str, Any]) -> None:
        with self._session_factory() as session:
            try:
                ShopCacheRepository(session).upsert(
                    city=city,
                    site_url=site,
                    shop_data=shop,
                    scraped_at=self._clock(),
                )
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
