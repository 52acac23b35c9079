"""
configuration for scholarimpact.
all settings in one place, easily tunable.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class RateLimitConfig:
    """pacing for calls through the gateway (seconds)."""
    delay: float = 1.0          # before each author detail fetch
    batch_delay: float = 2.0    # between citation batches
    max_retries: int = 3        # retries after the first attempt
    retry_delay: float = 3.0    # fixed, no backoff


@dataclass
class FieldsConfig:
    """field projections sent upstream."""
    author_search: str = "authorId,name,paperCount,citationCount,hIndex,affiliations,homepage"
    author_details: str = (
        "papers.paperId,papers.title,papers.year,papers.citationCount,"
        "papers.fieldsOfStudy,papers.venue,papers.authors"
    )
    paper_citations: str = (
        "citingPaper.paperId,citingPaper.title,citingPaper.year,citingPaper.citationCount,"
        "citingPaper.fieldsOfStudy,citingPaper.venue,citingPaper.authors"
    )


@dataclass
class ApiConfig:
    """where the client and the gateway talk to."""
    # the gateway this process (or another) serves
    gateway_url: str = "http://localhost:3000/api"

    # what the gateway forwards misses to
    upstream_url: str = "https://api.semanticscholar.org/graph/v1"
    api_key: Optional[str] = None

    headers: Dict[str, str] = field(default_factory=lambda: {
        "Accept": "application/json",
        "Content-Type": "application/json"
    })

    # endpoint paths, relative to gateway_url
    author_search_endpoint: str = "/author/search"
    author_endpoint: str = "/author"
    paper_endpoint: str = "/paper"

    # transport timeout; None leaves httpx's default in place
    timeout: Optional[float] = None

    fields: FieldsConfig = field(default_factory=FieldsConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)


@dataclass
class CacheConfig:
    """cache-aside gateway settings."""
    db_path: str = "scholar_cache.db"
    max_age_seconds: float = 24 * 60 * 60  # 24h


@dataclass
class DisplayConfig:
    """limits for ranked output."""
    max_authors: int = 20
    top_domains: int = 8
    top_venues: int = 5
    top_collaborators: int = 10


@dataclass
class TraversalConfig:
    """second-hop citation walk."""
    batch_size: int = 5


@dataclass
class ScholarImpactConfig:
    """
    main configuration object.

    usage:
        config = ScholarImpactConfig.from_env()
        config.api.rate_limit.retry_delay = 0.5
    """
    api: ApiConfig = field(default_factory=ApiConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    traversal: TraversalConfig = field(default_factory=TraversalConfig)

    # gateway server
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ScholarImpactConfig":
        """build config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        if env.get("SCHOLARIMPACT_GATEWAY_URL"):
            config.api.gateway_url = env["SCHOLARIMPACT_GATEWAY_URL"].rstrip("/")
        if env.get("SCHOLARIMPACT_UPSTREAM_URL"):
            config.api.upstream_url = env["SCHOLARIMPACT_UPSTREAM_URL"].rstrip("/")
        if env.get("SEMANTIC_SCHOLAR_API_KEY"):
            config.api.api_key = env["SEMANTIC_SCHOLAR_API_KEY"]
        if env.get("SCHOLARIMPACT_CACHE_DB"):
            config.cache.db_path = env["SCHOLARIMPACT_CACHE_DB"]
        if env.get("SCHOLARIMPACT_PORT"):
            config.port = int(env["SCHOLARIMPACT_PORT"])

        return config
