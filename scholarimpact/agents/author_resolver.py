"""
author resolver agent - turn a typed name into ranked author candidates,
then fetch full detail for the ones the user picks.

handles the challenge of author name disambiguation:
- name variations (e.g., "A. Turing" vs "Alan Turing")
- aliases recorded upstream
- several people sharing a name (affiliations shown to tell them apart)

input: search string, later a list of selected author ids
output: ranked AuthorCandidate list / AuthorDetail list
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

from .base import Agent, AgentResult
from ..core.config import ApiConfig, DisplayConfig
from ..core.errors import NoResultsError, ValidationError
from ..core.models import AffiliationDetail, AuthorDetail, AuthorRecord, parse_affiliations
from ..core.resilience import ResilientFetchClient
from ..core.text import name_match_score


@dataclass
class AuthorCandidate:
    """
    a candidate author match.
    """
    author: AuthorRecord

    # match quality, 0-100
    similarity_score: int = 0

    affiliation_details: List[AffiliationDetail] = field(default_factory=list)

    @property
    def author_id(self) -> str:
        return self.author.author_id

    @property
    def name(self) -> str:
        return self.author.name

    def matches_text(self, text: str) -> bool:
        """case-insensitive containment in name or any affiliation."""
        needle = text.lower()
        if needle in self.author.name.lower():
            return True
        return any(needle in a.full.lower() for a in self.affiliation_details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.author.to_dict(),
            "similarityScore": self.similarity_score,
            "affiliationDetails": [a.to_dict() for a in self.affiliation_details]
        }


class AuthorResolver(Agent):
    """
    rank author search results by name similarity and fetch details.

    ranking:
    1. levenshtein similarity of the query against name and every alias
    2. exact match after normalization is always 100
    3. ties keep upstream order; list truncated to max_authors

    detail fetches are sequential with a fixed pause before each one.

    usage:
        resolver = AuthorResolver(client)
        candidates = await resolver.search("A. Turing")
        details = await resolver.get_details([candidates[0].author_id])
    """

    def __init__(
        self,
        client: ResilientFetchClient,
        api: Optional[ApiConfig] = None,
        display: Optional[DisplayConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger)
        self.client = client
        self.api = api or ApiConfig()
        self.max_authors = (display or DisplayConfig()).max_authors
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "AuthorResolver"

    async def execute(self, query: str) -> List[AuthorCandidate]:
        return await self.search(query)

    async def search(self, query: str) -> List[AuthorCandidate]:
        """
        search authors and rank by similarity to query.

        raises:
            ValidationError: query empty after trimming
            NoResultsError: upstream returned no candidates
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError()

        data = await self.client.fetch(
            self.api.author_search_endpoint,
            {"query": query, "fields": self.api.fields.author_search}
        )

        raw = data.get("data") if isinstance(data, dict) else None
        if not isinstance(raw, list) or not raw:
            raise NoResultsError()

        candidates = []
        dropped = 0
        for item in raw:
            author = AuthorRecord.from_api(item)
            if author is None:
                dropped += 1
                continue
            candidates.append(AuthorCandidate(
                author=author,
                similarity_score=name_match_score(query, author.name, author.aliases),
                affiliation_details=parse_affiliations(list(author.affiliations))
            ))

        if dropped:
            self.log(f"dropped {dropped} malformed candidates for '{query}'", "warning")

        # sorted() is stable, so equal scores keep upstream order
        ranked = sorted(candidates, key=lambda c: c.similarity_score, reverse=True)
        return ranked[:self.max_authors]

    async def get_details(self, author_ids: Iterable[str]) -> List[AuthorDetail]:
        """
        fetch author details one at a time.

        a failed or malformed fetch is logged and skipped.

        raises:
            NoResultsError: nothing usable came back for any id
        """
        details = []
        delay = self.api.rate_limit.delay

        for author_id in author_ids:
            await self._sleep(delay)
            try:
                data = await self.client.fetch(
                    f"{self.api.author_endpoint}/{quote(author_id, safe='')}",
                    {"fields": self.api.fields.author_details}
                )
            except Exception as e:
                self.log(f"error fetching author {author_id}: {e}", "error")
                self.warn(f"no details for author {author_id}")
                continue

            detail = AuthorDetail.from_api(data)
            if detail is None:
                self.warn(f"no details for author {author_id}: malformed payload")
                continue

            if detail.skipped_papers:
                self.log(
                    f"author {author_id}: skipped {detail.skipped_papers} papers without paperId",
                    "debug"
                )
            details.append(detail)

        if not details:
            raise NoResultsError()

        return details

    async def fetch_details(self, author_ids: Iterable[str]) -> AgentResult:
        """get_details() as an AgentResult; skipped ids become warnings."""
        return await self.guarded(self.get_details, list(author_ids))

    @staticmethod
    def filter_candidates(candidates: List[AuthorCandidate], text: str) -> List[AuthorCandidate]:
        """keep candidates whose name or affiliation contains text."""
        text = (text or "").strip()
        if not text:
            return list(candidates)
        return [c for c in candidates if c.matches_text(text)]
