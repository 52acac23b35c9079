"""
citation walker agent - one extra hop out from an author's papers.

answers key questions:
- who cites the author's papers?
- how much impact do those citing papers carry themselves?
- which fields does the author's work reach beyond its own?

input: PaperRecord list (deduplicated, from MetricsAggregator)
output: CitedPaper list, folded into SecondaryImpact downstream
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

from .base import Agent
from ..core.config import ApiConfig
from ..core.models import CitationEdge, PaperRecord
from ..core.resilience import ResilientFetchClient


@dataclass
class CitedPaper:
    """one of the author's papers with the papers citing it."""
    paper_id: str
    title: Optional[str] = None
    year: Optional[int] = None
    citations: List[CitationEdge] = field(default_factory=list)

    # citing entries dropped for a missing citingPaper or paperId
    dropped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paperId": self.paper_id,
            "title": self.title,
            "year": self.year,
            "citations": [c.to_dict() for c in self.citations]
        }


@dataclass
class SecondaryImpact:
    """citation weight and field spread of the citing papers."""
    total_citations: int = 0
    domain_breakdown: Dict[str, int] = field(default_factory=dict)

    def top_domains(self, n: int = 8):
        return sorted(self.domain_breakdown.items(), key=lambda kv: kv[1], reverse=True)[:n]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCitations": self.total_citations,
            "domainBreakdown": dict(self.domain_breakdown)
        }


def fold_secondary_impact(cited_papers: List[CitedPaper]) -> SecondaryImpact:
    """
    sum citing-paper citation counts and tally their fields of study.
    a paper citing two of the author's papers is counted twice.
    """
    impact = SecondaryImpact()
    for cited in cited_papers:
        for edge in cited.citations:
            impact.total_citations += edge.citation_count or 0
            for domain in edge.fields_of_study:
                impact.domain_breakdown[domain] = impact.domain_breakdown.get(domain, 0) + 1
    return impact


class CitationWalker(Agent):
    """
    fetch citing papers for each paper, in small concurrent batches.

    pacing:
    - batch_size fetches run together
    - batch_delay pause between batches (not before the first, not after the last)
    - a failed paper is logged and left out; its batch still completes

    usage:
        walker = CitationWalker(client)
        cited = await walker.traverse(metrics.papers)
        impact = fold_secondary_impact(cited)
    """

    def __init__(
        self,
        client: ResilientFetchClient,
        api: Optional[ApiConfig] = None,
        batch_size: int = 5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger)
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.client = client
        self.api = api or ApiConfig()
        self.batch_size = batch_size
        self._sleep = sleep

        # stats
        self.papers_fetched = 0
        self.papers_failed = 0

    @property
    def name(self) -> str:
        return "CitationWalker"

    async def execute(self, papers: List[PaperRecord]) -> List[CitedPaper]:
        return await self.traverse(papers)

    async def traverse(self, papers: List[PaperRecord]) -> List[CitedPaper]:
        """
        fetch citations for every paper with a paperId.
        results keep input order; failed papers are absent.
        """
        with_ids = [p for p in papers if p.paper_id]
        batches = [
            with_ids[i:i + self.batch_size]
            for i in range(0, len(with_ids), self.batch_size)
        ]

        self.log(f"walking citations for {len(with_ids)} papers in {len(batches)} batches")

        results: List[CitedPaper] = []
        for index, batch in enumerate(batches):
            if index > 0:
                await self._sleep(self.api.rate_limit.batch_delay)

            outcomes = await asyncio.gather(
                *(self._fetch_citations(paper) for paper in batch),
                return_exceptions=True
            )

            for paper, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    self.papers_failed += 1
                    self.log(f"error fetching citations for {paper.paper_id}: {outcome}", "error")
                    self.warn(f"citations unavailable for {paper.paper_id}")
                    continue
                self.papers_fetched += 1
                results.append(outcome)

        return results

    async def _fetch_citations(self, paper: PaperRecord) -> CitedPaper:
        data = await self.client.fetch(
            f"{self.api.paper_endpoint}/{quote(paper.paper_id, safe='')}/citations",
            {"fields": self.api.fields.paper_citations}
        )

        raw = data.get("data") if isinstance(data, dict) else None
        cited = CitedPaper(paper_id=paper.paper_id, title=paper.title, year=paper.year)

        for item in raw if isinstance(raw, list) else []:
            edge = CitationEdge.from_api(item)
            if edge is None:
                cited.dropped += 1
                continue
            cited.citations.append(edge)

        if cited.dropped:
            self.log(f"{paper.paper_id}: dropped {cited.dropped} citing entries", "debug")

        return cited

    def stats(self) -> dict:
        return {
            "papers_fetched": self.papers_fetched,
            "papers_failed": self.papers_failed
        }
