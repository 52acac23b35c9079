"""
scholarimpact gateway - caching proxy in front of semantic scholar.

run:
    scholarimpact serve --port 3000
    # or
    uvicorn scholarimpact.web.app:app --port 3000

endpoints:
    GET /api/author/search?query=&fields=        → cached as author_search/<query>
    GET /api/author/{author_id}?fields=          → cached as author_details/<author_id>
    GET /api/paper/{paper_id}/citations?fields=  → cached as paper_citations/<paper_id>
    GET /health                                  → liveness + cache stats

every failure is a 500 with {"error": message}.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..core.config import ScholarImpactConfig
from ..core.db import SqliteCacheStore
from ..core.errors import ScholarImpactError
from ..core.gateway import AUTHOR_DETAILS, AUTHOR_SEARCH, PAPER_CITATIONS, CacheAsideGateway
from ..providers.semantic_scholar import (
    SemanticScholarProvider, author_endpoint, author_search_endpoint, paper_citations_endpoint
)

logger = logging.getLogger("scholarimpact.web")


# models
class ErrorResponse(BaseModel):
    error: str


class HealthStatus(BaseModel):
    status: str
    version: str
    cache: Dict[str, Any] = {}


def build_gateway(config: ScholarImpactConfig) -> CacheAsideGateway:
    """wire the default provider and sqlite store from config."""
    provider = SemanticScholarProvider(
        api_key=config.api.api_key,
        base_url=config.api.upstream_url
    )
    store = SqliteCacheStore(config.cache.db_path)
    return CacheAsideGateway(provider, store, max_age_seconds=config.cache.max_age_seconds)


def _error_response(error: Exception) -> JSONResponse:
    message = error.message if isinstance(error, ScholarImpactError) else str(error)
    return JSONResponse(status_code=500, content=ErrorResponse(error=message).model_dump())


def create_app(
    gateway: Optional[CacheAsideGateway] = None,
    config: Optional[ScholarImpactConfig] = None
) -> FastAPI:
    """
    build the gateway app.
    without an explicit gateway, one is built from config at startup.
    """
    config = config or ScholarImpactConfig.from_env()

    app = FastAPI(
        title="scholarimpact gateway",
        description="Caching proxy for scholarly graph lookups",
        version=__version__
    )
    app.state.gateway = gateway
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup():
        if app.state.gateway is None:
            app.state.gateway = build_gateway(config)
            logger.info(f"cache store: {config.cache.db_path}")

    @app.on_event("shutdown")
    async def shutdown():
        if app.state.gateway is not None:
            await app.state.gateway.provider.close()
            app.state.gateway.store.close()

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.error(f"unhandled error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Something went wrong!"})

    async def _resolve(request: Request, type: str, query: str, endpoint: str):
        try:
            data = await request.app.state.gateway.resolve(type, query, endpoint)
        except Exception as e:
            logger.error(f"cache/fetch error: {e}")
            return _error_response(e)
        return JSONResponse(content=data)

    @app.get("/health", response_model=HealthStatus)
    async def health(request: Request):
        """health check."""
        gw = request.app.state.gateway
        return HealthStatus(
            status="healthy",
            version=__version__,
            cache=gw.stats() if gw is not None else {}
        )

    @app.get("/api/author/search")
    async def author_search(request: Request, query: str = "", fields: Optional[str] = None):
        """search authors by name."""
        fields = fields or config.api.fields.author_search
        endpoint = author_search_endpoint(query, fields)
        return await _resolve(request, AUTHOR_SEARCH, query, endpoint)

    @app.get("/api/author/{author_id}")
    async def author_details(request: Request, author_id: str, fields: Optional[str] = None):
        """author profile with papers."""
        fields = fields or config.api.fields.author_details
        endpoint = author_endpoint(author_id, fields)
        return await _resolve(request, AUTHOR_DETAILS, author_id, endpoint)

    @app.get("/api/paper/{paper_id}/citations")
    async def paper_citations(request: Request, paper_id: str, fields: Optional[str] = None):
        """papers citing paper_id."""
        fields = fields or config.api.fields.paper_citations
        endpoint = paper_citations_endpoint(paper_id, fields)
        return await _resolve(request, PAPER_CITATIONS, paper_id, endpoint)

    return app


app = create_app()
