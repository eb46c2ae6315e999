"""
Storage layer interface for the shop result cache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from app.domain.search import CachedShop


class ShopCacheStore(ABC):
    """
    Cache-aside store keyed by (city, site URL).

    Both operations are advisory: implementations log backing-store failures
    and never raise them to the caller.
    """

    enabled: bool = True

    @abstractmethod
    async def read_fresh(self, city: str) -> dict[str, CachedShop]:
        """
        Return fresh entries for ``city`` keyed by site URL.

        An unavailable backing store yields an empty mapping.
        """

    @abstractmethod
    async def upsert(self, city: str, site: str, shop: dict[str, Any]) -> None:
        """
        Replace or insert the entry for (city, site), timestamped now.
        """


class NullShopCacheStore(ShopCacheStore):
    """
    Store used when no cache database is configured.
    """

    enabled = False

    async def read_fresh(self, city: str) -> dict[str, CachedShop]:
        return {}

    async def upsert(self, city: str, site: str, shop: dict[str, Any]) -> None:
        return None
