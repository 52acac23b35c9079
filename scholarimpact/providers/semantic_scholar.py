"""
semantic scholar provider.
https://api.semanticscholar.org/
"""

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from .base import UpstreamProvider
from ..core.errors import NetworkError, UpstreamError

logger = logging.getLogger("scholarimpact.s2")


def _query_string(params: Dict[str, Any]) -> str:
    # keep field lists readable; S2 accepts literal commas and dots
    return urlencode(params, safe=",.")


def author_search_endpoint(query: str, fields: str) -> str:
    return f"/author/search?{_query_string({'query': query, 'fields': fields})}"


def author_endpoint(author_id: str, fields: str) -> str:
    return f"/author/{quote(author_id, safe='')}?{_query_string({'fields': fields})}"


def paper_citations_endpoint(paper_id: str, fields: str) -> str:
    return f"/paper/{quote(paper_id, safe='')}/citations?{_query_string({'fields': fields})}"


class SemanticScholarProvider(UpstreamProvider):
    """
    semantic scholar graph api client.
    single attempt per call; no retry, no rate limiting here.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
        self.timeout = timeout
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "semantic_scholar"

    @property
    def session(self) -> httpx.AsyncClient:
        """lazy session initialization."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._session

    async def close(self):
        """close the http session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()
        self._session = None

    async def get(self, endpoint: str) -> Any:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key

        url = f"{self.base_url}{endpoint}"
        logger.info(f"[s2] fetching from API: {url}")

        try:
            resp = await self.session.get(url, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"[s2] transport error for {endpoint}: {e}")
            raise NetworkError(f"Failed to fetch {url}: {e}") from e

        if not resp.is_success:
            if resp.status_code == 429:
                logger.warning(f"[s2] rate limited on {endpoint}")
            else:
                logger.warning(f"[s2] {resp.status_code} for {endpoint}")
            raise UpstreamError(resp.status_code, f"API Error: {resp.status_code}", url=url)

        return resp.json()
