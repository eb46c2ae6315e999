"""
tests/test_shop_cache_store.py

Pytest tests for the shop cache stores.

SQLAlchemyShopCacheStore runs against in-memory SQLite (StaticPool, so the
worker threads used by the store share one connection). Time is injected
through a controllable clock.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import FakeSiteScraper, decode_frames, run_search, shop_for

from app.config import SearchSettings
from app.scraping.storage import NullShopCacheStore, SQLAlchemyShopCacheStore, build_shop_cache_store
from app.scraping.storage import factory as storage_factory
from app.services.search_orchestrator import SearchOrchestrator
from db.base import Base
from db.models import ShopCacheEntry
from db.session import build_session_factory

SITE_A = "https://alpha-one.example/prices"
SITE_B = "https://alpha-two.example/"
T0 = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)
TTL = timedelta(hours=6)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture()
def clock() -> Clock:
    return Clock(T0)


@pytest.fixture()
def store(session_factory: sessionmaker, clock: Clock) -> SQLAlchemyShopCacheStore:
    return SQLAlchemyShopCacheStore(session_factory=session_factory, ttl=TTL, clock=clock)


def _row_count(session_factory: sessionmaker) -> int:
    with session_factory() as session:
        return session.scalar(select(func.count()).select_from(ShopCacheEntry))


# ---------------------------------------------------------------------------
# SQLAlchemyShopCacheStore
# ---------------------------------------------------------------------------


class TestSQLAlchemyStore:
    def test_written_entry_is_read_back_fresh(self, store: SQLAlchemyShopCacheStore) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))

        fresh = asyncio.run(store.read_fresh("alpha"))

        assert set(fresh) == {SITE_A}
        assert fresh[SITE_A].shop == shop_for(SITE_A)
        assert fresh[SITE_A].scraped_at == T0
        assert fresh[SITE_A].scraped_at.tzinfo is not None

    def test_second_upsert_replaces_first(
        self, store: SQLAlchemyShopCacheStore, session_factory: sessionmaker, clock: Clock
    ) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A, name="First")))
        clock.now = T0 + timedelta(minutes=30)
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A, name="Second")))

        fresh = asyncio.run(store.read_fresh("alpha"))

        assert _row_count(session_factory) == 1
        assert fresh[SITE_A].shop["shop_name"] == "Second"
        assert fresh[SITE_A].scraped_at == T0 + timedelta(minutes=30)

    def test_entries_are_scoped_by_city(self, store: SQLAlchemyShopCacheStore, session_factory) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        asyncio.run(store.upsert("beta", SITE_A, shop_for(SITE_A)))

        assert _row_count(session_factory) == 2
        assert set(asyncio.run(store.read_fresh("beta"))) == {SITE_A}
        assert asyncio.run(store.read_fresh("gamma")) == {}

    def test_stale_entry_is_invisible_but_kept(
        self, store: SQLAlchemyShopCacheStore, session_factory: sessionmaker, clock: Clock
    ) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        clock.now = T0 + TTL + timedelta(seconds=1)

        assert asyncio.run(store.read_fresh("alpha")) == {}
        assert _row_count(session_factory) == 1

    def test_entry_at_exact_ttl_is_stale(self, store: SQLAlchemyShopCacheStore, clock: Clock) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        clock.now = T0 + TTL

        assert asyncio.run(store.read_fresh("alpha")) == {}

    def test_entry_just_inside_ttl_is_fresh(self, store: SQLAlchemyShopCacheStore, clock: Clock) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        clock.now = T0 + TTL - timedelta(seconds=1)

        assert set(asyncio.run(store.read_fresh("alpha"))) == {SITE_A}

    def test_rewrite_makes_stale_entry_fresh_again(self, store: SQLAlchemyShopCacheStore, clock: Clock) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        clock.now = T0 + timedelta(hours=7)
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A, name="Refreshed")))

        fresh = asyncio.run(store.read_fresh("alpha"))
        assert fresh[SITE_A].shop["shop_name"] == "Refreshed"

    def test_read_failure_returns_empty(self, caplog: pytest.LogCaptureFixture) -> None:
        def broken_factory():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        store = SQLAlchemyShopCacheStore(session_factory=broken_factory, ttl=TTL)
        with caplog.at_level(logging.WARNING):
            assert asyncio.run(store.read_fresh("alpha")) == {}
        assert "cache_read_failed" in caplog.text

    def test_slow_read_times_out_as_miss(self, caplog: pytest.LogCaptureFixture) -> None:
        release = threading.Event()

        def stalled_factory():
            release.wait(5)
            raise OperationalError("SELECT 1", {}, Exception("connection timed out"))

        store = SQLAlchemyShopCacheStore(session_factory=stalled_factory, ttl=TTL, read_timeout=0.1)

        async def scenario() -> tuple[dict, float]:
            loop = asyncio.get_running_loop()
            started = loop.time()
            try:
                fresh = await store.read_fresh("alpha")
            finally:
                release.set()
            return fresh, loop.time() - started

        with caplog.at_level(logging.WARNING):
            fresh, waited = asyncio.run(scenario())

        assert fresh == {}
        assert waited < 2
        assert "cache_read_failed" in caplog.text
        assert "timed out after 0.1s" in caplog.text

    def test_write_failure_is_logged_not_raised(
        self, engine: Engine, session_factory: sessionmaker, caplog: pytest.LogCaptureFixture
    ) -> None:
        Base.metadata.drop_all(engine)
        store = SQLAlchemyShopCacheStore(session_factory=session_factory, ttl=TTL)

        with caplog.at_level(logging.WARNING):
            asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        assert "cache_write_failed" in caplog.text


# ---------------------------------------------------------------------------
# NullShopCacheStore and startup selection
# ---------------------------------------------------------------------------


class TestNullStoreAndFactory:
    def test_null_store_reads_nothing_and_accepts_writes(self) -> None:
        store = NullShopCacheStore()
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A)))
        assert asyncio.run(store.read_fresh("alpha")) == {}
        assert store.enabled is False

    def test_factory_without_database_selects_null_store(self, monkeypatch) -> None:
        monkeypatch.setattr(storage_factory, "get_session_factory", lambda: None)
        assert isinstance(build_shop_cache_store(SearchSettings()), NullShopCacheStore)

    def test_factory_with_broken_engine_selects_null_store(self, monkeypatch) -> None:
        def boom():
            raise RuntimeError("Only PostgreSQL URLs are supported.")

        monkeypatch.setattr(storage_factory, "get_session_factory", boom)
        assert isinstance(build_shop_cache_store(SearchSettings()), NullShopCacheStore)

    def test_factory_with_database_selects_sqlalchemy_store(self, monkeypatch, session_factory) -> None:
        monkeypatch.setattr(storage_factory, "get_session_factory", lambda: session_factory)
        store = build_shop_cache_store(SearchSettings(cache_ttl_hours=2.0))
        assert isinstance(store, SQLAlchemyShopCacheStore)
        assert store.enabled is True

    def test_factory_passes_read_timeout(self, monkeypatch, session_factory) -> None:
        monkeypatch.setattr(storage_factory, "get_session_factory", lambda: session_factory)
        store = build_shop_cache_store(SearchSettings(cache_read_timeout_seconds=0.75))
        assert store._read_timeout == 0.75


# ---------------------------------------------------------------------------
# Orchestrator over the real store
# ---------------------------------------------------------------------------


class TestOrchestratorWithStore:
    def test_stale_entry_is_scraped_live_and_refreshed(
        self, store: SQLAlchemyShopCacheStore, clock: Clock
    ) -> None:
        asyncio.run(store.upsert("alpha", SITE_A, shop_for(SITE_A, name="Old")))
        clock.now = T0 + timedelta(hours=5)
        asyncio.run(store.upsert("alpha", SITE_B, shop_for(SITE_B, name="Recent")))
        clock.now = T0 + timedelta(hours=7)

        scraper = FakeSiteScraper({SITE_A: shop_for(SITE_A, name="New")})
        orchestrator = SearchOrchestrator(
            scraper=scraper,
            cache_store=store,
            stagger_seconds=0.0,
            regions={"alpha": (SITE_A, SITE_B)},
        )

        frames, summary = asyncio.run(run_search(orchestrator, "alpha"))
        events = [e for e in decode_frames(frames) if e["type"] == "SHOP_RESULT"]

        assert scraper.calls == [SITE_A]
        assert [(e["source"], e["shop"]["shop_name"]) for e in events] == [
            ("cache", "Recent"),
            ("live", "New"),
        ]
        assert (summary.total, summary.cached, summary.succeeded) == (2, 1, 2)
        assert asyncio.run(store.read_fresh("alpha"))[SITE_A].shop["shop_name"] == "New"
