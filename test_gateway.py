#!/usr/bin/env python3
"""
test the cache-aside gateway, its stores, the semantic scholar provider
and the http surface.

run with: pytest test_gateway.py -v
"""

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from scholarimpact.core.config import ScholarImpactConfig
from scholarimpact.core.db import MemoryCacheStore, SqliteCacheStore
from scholarimpact.core.errors import NetworkError, UpstreamError
from scholarimpact.core.gateway import (
    AUTHOR_DETAILS, AUTHOR_SEARCH, PAPER_CITATIONS, CacheAsideGateway
)
from scholarimpact.core.models import CacheEntry
from scholarimpact.providers.base import UpstreamProvider
from scholarimpact.providers.semantic_scholar import (
    SemanticScholarProvider, author_endpoint, author_search_endpoint, paper_citations_endpoint
)
from scholarimpact.web.app import create_app


# =============================================================================
# Test Fixtures
# =============================================================================

START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeProvider(UpstreamProvider):
    """upstream stub; returns a payload per call or raises queued errors."""

    def __init__(self, errors=None):
        self.calls = []
        self.errors = list(errors or [])
        self.closed = False

    @property
    def name(self):
        return "fake"

    async def get(self, endpoint):
        self.calls.append(endpoint)
        if self.errors:
            raise self.errors.pop(0)
        return {"endpoint": endpoint, "call": len(self.calls)}

    async def close(self):
        self.closed = True


class Clock:
    """settable clock."""

    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """both store implementations."""
    if request.param == "memory":
        yield MemoryCacheStore()
    else:
        db = SqliteCacheStore(str(tmp_path / "cache.db"))
        yield db
        db.close()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def gateway(provider, store, clock):
    return CacheAsideGateway(provider, store, clock=clock)


def resolve(gateway, type, query, endpoint="/x"):
    return asyncio.run(gateway.resolve(type, query, endpoint))


# =============================================================================
# Cache-Aside Gateway
# =============================================================================

class TestCacheAsideGateway:
    """test hit/miss/expiry behaviour."""

    def test_miss_then_hit_within_ttl(self, gateway, provider, clock):
        first = resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=23, minutes=59)
        second = resolve(gateway, AUTHOR_SEARCH, "turing")

        assert second == first
        assert len(provider.calls) == 1
        assert gateway.stats()["hits"] == 1
        assert gateway.stats()["misses"] == 1

    def test_hit_does_not_refresh_timestamp(self, gateway, store, clock):
        resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=12)
        resolve(gateway, AUTHOR_SEARCH, "turing")

        rows = store.entries(AUTHOR_SEARCH, "turing")
        assert len(rows) == 1
        assert rows[0].timestamp == START

    def test_expired_entry_appends_new_row(self, gateway, provider, store, clock):
        first = resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=24, seconds=1)
        second = resolve(gateway, AUTHOR_SEARCH, "turing")

        assert len(provider.calls) == 2
        assert second != first

        rows = store.entries(AUTHOR_SEARCH, "turing")
        assert len(rows) == 2
        # old row untouched
        assert rows[0].data == first
        assert rows[0].timestamp == START
        assert rows[1].data == second

    def test_exactly_24h_is_stale(self, gateway, provider, clock):
        resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=24)
        resolve(gateway, AUTHOR_SEARCH, "turing")
        assert len(provider.calls) == 2

    def test_newest_fresh_row_wins(self, gateway, store, clock):
        resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=30)
        newest = resolve(gateway, AUTHOR_SEARCH, "turing")
        clock.advance(hours=1)
        assert resolve(gateway, AUTHOR_SEARCH, "turing") == newest

    def test_failure_caches_nothing(self, store, clock):
        provider = FakeProvider(errors=[UpstreamError(500, "API Error: 500")])
        gateway = CacheAsideGateway(provider, store, clock=clock)

        with pytest.raises(UpstreamError) as exc:
            resolve(gateway, AUTHOR_DETAILS, "1741101")
        assert exc.value.status == 500
        assert store.count() == 0
        assert gateway.stats()["upstream_failures"] == 1

        # no retry at this layer; the next call goes upstream again
        resolve(gateway, AUTHOR_DETAILS, "1741101")
        assert len(provider.calls) == 2
        assert store.count() == 1

    def test_key_is_exact_string(self, gateway, provider):
        resolve(gateway, AUTHOR_SEARCH, "Turing")
        resolve(gateway, AUTHOR_SEARCH, "turing")
        resolve(gateway, AUTHOR_SEARCH, "turing ")
        assert len(provider.calls) == 3

    def test_type_is_part_of_key(self, gateway, provider):
        resolve(gateway, AUTHOR_DETAILS, "42")
        resolve(gateway, PAPER_CITATIONS, "42")
        assert len(provider.calls) == 2


class TestSqliteCacheStore:
    """test sqlite persistence specifics."""

    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "cache.db")
        db = SqliteCacheStore(path)
        db.insert(CacheEntry(AUTHOR_SEARCH, "turing", {"data": [1, 2]}, START))
        db.close()

        reopened = SqliteCacheStore(path)
        entry = reopened.find_fresh(AUTHOR_SEARCH, "turing", 86400, START + timedelta(hours=1))
        assert entry.data == {"data": [1, 2]}
        assert entry.timestamp == START
        reopened.close()

    def test_naive_timestamps_are_utc(self):
        db = SqliteCacheStore(":memory:")
        db.insert(CacheEntry(AUTHOR_SEARCH, "q", 1, datetime(2026, 3, 1, 12, 0)))
        assert db.find_fresh(AUTHOR_SEARCH, "q", 60, START + timedelta(seconds=30)).data == 1
        assert db.find_fresh(AUTHOR_SEARCH, "q", 60, START + timedelta(seconds=61)) is None
        db.close()

    def test_sub_second_ordering(self):
        db = SqliteCacheStore(":memory:")
        db.insert(CacheEntry(AUTHOR_SEARCH, "q", "old", START))
        db.insert(CacheEntry(AUTHOR_SEARCH, "q", "new", START + timedelta(microseconds=500)))
        assert db.find_fresh(AUTHOR_SEARCH, "q", 60, START + timedelta(seconds=1)).data == "new"
        assert db.count() == 2
        db.close()


# =============================================================================
# Semantic Scholar Provider
# =============================================================================

class TestSemanticScholarProvider:
    """test the upstream client against a mock transport."""

    def test_endpoint_builders(self):
        assert author_search_endpoint("A. Turing", "authorId,name") == \
            "/author/search?query=A.+Turing&fields=authorId,name"
        assert author_endpoint("17/41", "papers.title") == "/author/17%2F41?fields=papers.title"
        assert paper_citations_endpoint("abc", "citingPaper.paperId") == \
            "/paper/abc/citations?fields=citingPaper.paperId"

    def test_sends_api_key(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-api-key")
            return httpx.Response(200, json={"data": []})

        provider = SemanticScholarProvider(
            api_key="secret",
            base_url="https://s2.test/graph/v1",
            transport=httpx.MockTransport(handler)
        )

        async def go():
            try:
                return await provider.get("/author/search?query=turing")
            finally:
                await provider.close()

        assert asyncio.run(go()) == {"data": []}
        assert seen["url"] == "https://s2.test/graph/v1/author/search?query=turing"
        assert seen["key"] == "secret"

    def test_non_2xx_raises(self):
        provider = SemanticScholarProvider(
            api_key="k",
            base_url="https://s2.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(404, json={}))
        )
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(provider.get("/author/0"))
        assert exc.value.status == 404
        assert exc.value.message == "API Error: 404"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = SemanticScholarProvider(
            api_key="k",
            base_url="https://s2.test",
            transport=httpx.MockTransport(handler)
        )
        with pytest.raises(NetworkError):
            asyncio.run(provider.get("/author/0"))


# =============================================================================
# HTTP Surface
# =============================================================================

class TestGatewayApp:
    """test the fastapi routes."""

    @pytest.fixture
    def app_gateway(self, clock):
        return CacheAsideGateway(FakeProvider(), MemoryCacheStore(), clock=clock)

    @pytest.fixture
    def config(self):
        return ScholarImpactConfig.from_env({})

    def test_author_search_cached(self, app_gateway, config):
        with TestClient(create_app(gateway=app_gateway, config=config)) as client:
            first = client.get("/api/author/search", params={"query": "A. Turing"})
            second = client.get("/api/author/search", params={"query": "A. Turing"})

        assert first.status_code == 200
        assert second.json() == first.json()
        assert app_gateway.provider.calls == [
            author_search_endpoint("A. Turing", config.api.fields.author_search)
        ]
        entry = app_gateway.store.entries(AUTHOR_SEARCH, "A. Turing")
        assert len(entry) == 1

    def test_author_details_and_citations(self, app_gateway, config):
        with TestClient(create_app(gateway=app_gateway, config=config)) as client:
            detail = client.get("/api/author/1741101")
            cites = client.get("/api/paper/p1/citations", params={"fields": "citingPaper.paperId"})

        assert detail.status_code == 200
        assert cites.status_code == 200
        assert app_gateway.provider.calls == [
            author_endpoint("1741101", config.api.fields.author_details),
            paper_citations_endpoint("p1", "citingPaper.paperId")
        ]
        assert len(app_gateway.store.entries(AUTHOR_DETAILS, "1741101")) == 1
        assert len(app_gateway.store.entries(PAPER_CITATIONS, "p1")) == 1

    def test_upstream_failure_is_500(self, clock, config):
        gw = CacheAsideGateway(
            FakeProvider(errors=[UpstreamError(404, "API Error: 404")]),
            MemoryCacheStore(),
            clock=clock
        )
        with TestClient(create_app(gateway=gw, config=config)) as client:
            resp = client.get("/api/author/nope")

        assert resp.status_code == 500
        assert resp.json() == {"error": "API Error: 404"}
        assert gw.store.count() == 0

    def test_health(self, app_gateway, config):
        with TestClient(create_app(gateway=app_gateway, config=config)) as client:
            resp = client.get("/health")

        body = resp.json()
        assert resp.status_code == 200
        assert body["status"] == "healthy"
        assert body["cache"]["entries"] == 0

    def test_shutdown_closes_provider(self, app_gateway, config):
        with TestClient(create_app(gateway=app_gateway, config=config)):
            pass
        assert app_gateway.provider.closed

    def test_shutdown_closes_built_store(self, tmp_path):
        config = ScholarImpactConfig.from_env({})
        config.cache.db_path = str(tmp_path / "gateway.db")
        app = create_app(config=config)

        with TestClient(app) as client:
            assert client.get("/health").json()["cache"]["entries"] == 0
            store = app.state.gateway.store

        assert isinstance(store, SqliteCacheStore)
        with pytest.raises(sqlite3.ProgrammingError):
            store.count()
