"""
metrics aggregator agent - fold several authors' papers into one impact profile.

answers key questions:
- how many distinct papers and citations across the selected authors?
- how does output and impact move year by year?
- which fields of study and venues dominate?
- who are the outside collaborators, and how much impact do they share?

input: AuthorDetail list (from AuthorResolver.get_details)
output: AggregatedMetrics
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .base import Agent
from ..core.models import UNKNOWN_AUTHOR, AuthorDetail, PaperRecord

UNKNOWN_YEAR = "Unknown"

YearKey = Union[int, str]


@dataclass
class YearlyMetric:
    """papers and citations for one year (or "Unknown")."""
    year: YearKey
    paper_count: int = 0
    citation_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"papers": self.paper_count, "citations": self.citation_count}


@dataclass
class CollaboratorSummary:
    """
    a co-author outside the selected set.

    paper_count counts distinct shared papers; citations sums the
    citation counts of those same papers.
    """
    id: str
    name: str
    paper_count: int = 0
    citations: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "paperCount": self.paper_count,
            "citations": self.citations
        }


@dataclass
class AggregatedMetrics:
    """
    deduplicated cross-author statistics.
    papers keeps first-seen order and feeds the citation walker.
    """
    papers: List[PaperRecord] = field(default_factory=list)
    total_citations: int = 0
    yearly_metrics: Dict[YearKey, YearlyMetric] = field(default_factory=dict)
    domains: Dict[str, int] = field(default_factory=dict)
    venues: Dict[str, int] = field(default_factory=dict)
    collaborators: List[CollaboratorSummary] = field(default_factory=list)

    @property
    def total_papers(self) -> int:
        return len(self.papers)

    @property
    def average_citations(self) -> float:
        if not self.papers:
            return 0.0
        return self.total_citations / len(self.papers)

    def top_domains(self, n: int = 8) -> List[Tuple[str, int]]:
        return sorted(self.domains.items(), key=lambda kv: kv[1], reverse=True)[:n]

    def top_venues(self, n: int = 5) -> List[Tuple[str, int]]:
        return sorted(self.venues.items(), key=lambda kv: kv[1], reverse=True)[:n]

    def top_collaborators(self, n: int = 10) -> List[CollaboratorSummary]:
        return sorted(self.collaborators, key=lambda c: c.paper_count, reverse=True)[:n]

    def papers_in_domain(self, domain: str) -> List[PaperRecord]:
        """papers tagged with domain, most cited first."""
        tagged = [p for p in self.papers if domain in p.fields_of_study]
        return sorted(tagged, key=lambda p: p.citations, reverse=True)

    def yearly_series(self) -> List[YearlyMetric]:
        """years ascending, "Unknown" last."""
        known = sorted(
            (m for k, m in self.yearly_metrics.items() if k != UNKNOWN_YEAR),
            key=lambda m: m.year
        )
        if UNKNOWN_YEAR in self.yearly_metrics:
            known.append(self.yearly_metrics[UNKNOWN_YEAR])
        return known

    def to_dict(self) -> Dict[str, Any]:
        return {
            "papers": [p.to_dict() for p in self.papers],
            "totalPapers": self.total_papers,
            "totalCitations": self.total_citations,
            "yearlyMetrics": {
                str(k): m.to_dict() for k, m in self.yearly_metrics.items()
            },
            "domains": dict(self.domains),
            "venues": dict(self.venues),
            "collaborators": [c.to_dict() for c in self.collaborators]
        }


@dataclass
class _CollaboratorTally:
    name: str
    paper_ids: Set[str] = field(default_factory=set)
    citations: int = 0


class MetricsAggregator(Agent):
    """
    merge the paper sets of several authors.

    rules:
    - papers without a paperId are skipped
    - a paperId is counted once; the first record seen wins, even if a
      later duplicate carries different counts
    - a paper with k fields of study adds 1 to each of k domains
    - selected authors never show up as collaborators

    usage:
        aggregator = MetricsAggregator()
        metrics = aggregator.aggregate(details)
        print(metrics.total_papers, metrics.top_domains(5))
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

    @property
    def name(self) -> str:
        return "MetricsAggregator"

    async def execute(self, author_details: List[AuthorDetail]) -> AggregatedMetrics:
        return self.aggregate(author_details)

    def aggregate(self, author_details: List[AuthorDetail]) -> AggregatedMetrics:
        metrics = AggregatedMetrics()
        seen: Set[str] = set()
        selected_ids = {d.author_id for d in author_details}
        tallies: Dict[str, _CollaboratorTally] = {}
        duplicates = 0

        for author in author_details:
            for paper in author.papers:
                if not paper.paper_id:
                    continue
                if paper.paper_id in seen:
                    duplicates += 1
                    continue
                seen.add(paper.paper_id)

                metrics.papers.append(paper)
                metrics.total_citations += paper.citations

                self._count_year(metrics, paper)
                self._count_domains(metrics, paper)
                if paper.venue:
                    metrics.venues[paper.venue] = metrics.venues.get(paper.venue, 0) + 1
                self._count_collaborators(tallies, paper, selected_ids)

        metrics.collaborators = [
            CollaboratorSummary(
                id=author_id,
                name=tally.name,
                paper_count=len(tally.paper_ids),
                citations=tally.citations
            )
            for author_id, tally in tallies.items()
        ]

        self.log(
            f"aggregated {metrics.total_papers} papers from {len(author_details)} authors "
            f"({duplicates} duplicates skipped, {len(metrics.collaborators)} collaborators)"
        )
        return metrics

    def _count_year(self, metrics: AggregatedMetrics, paper: PaperRecord):
        year = paper.year if paper.year else UNKNOWN_YEAR
        entry = metrics.yearly_metrics.get(year)
        if entry is None:
            entry = metrics.yearly_metrics[year] = YearlyMetric(year=year)
        entry.paper_count += 1
        entry.citation_count += paper.citations

    def _count_domains(self, metrics: AggregatedMetrics, paper: PaperRecord):
        for domain in paper.fields_of_study:
            if domain:
                metrics.domains[domain] = metrics.domains.get(domain, 0) + 1

    def _count_collaborators(
        self,
        tallies: Dict[str, _CollaboratorTally],
        paper: PaperRecord,
        selected_ids: Set[str]
    ):
        # one visit per collaborator per paper, however many slots they fill
        on_this_paper: Set[str] = set()

        for coauthor in paper.authors:
            author_id = coauthor.author_id
            if not author_id or author_id in selected_ids or author_id in on_this_paper:
                continue
            on_this_paper.add(author_id)

            tally = tallies.get(author_id)
            if tally is None:
                tally = tallies[author_id] = _CollaboratorTally(
                    name=coauthor.name or UNKNOWN_AUTHOR
                )
            elif tally.name == UNKNOWN_AUTHOR and coauthor.name:
                tally.name = coauthor.name

            tally.paper_ids.add(paper.paper_id)
            tally.citations += paper.citations
