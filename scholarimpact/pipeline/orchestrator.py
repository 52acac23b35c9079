"""
pipeline orchestrator - coordinates agents from a typed name to an impact report.

usage:
    async with ImpactPipeline.from_config(config) as pipeline:
        candidates = await pipeline.search("A. Turing")
        report = await pipeline.analyze([c.author_id for c in candidates[:2]])

    print(report.summary())
"""

import logging
import time
from typing import Iterable, List, Optional

from ..agents import (
    Agent, AgentResult, AgentStatus, AuthorCandidate, AuthorResolver, CitationWalker,
    MetricsAggregator
)
from ..agents.citation_walker import fold_secondary_impact
from ..core.config import ScholarImpactConfig
from ..core.errors import StepFailed
from ..core.resilience import ResilientFetchClient
from .results import ImpactReport


logger = logging.getLogger("scholarimpact.pipeline")


class ImpactPipeline:
    """
    orchestrates author impact analysis.

    flow:
    1. search: rank candidates for a name
    2. details: sequential, paced fetch for the selected ids
    3. aggregate: dedup papers, yearly/domain/venue/collaborator tallies
    4. walk: one hop of citing papers, batched
    5. fold: secondary impact from the citing papers

    every step runs through its agent's run() wrapper. a failed step
    raises StepFailed carrying the fixed user-facing message;
    skipped authors or papers only add warnings.
    """

    def __init__(
        self,
        resolver: AuthorResolver,
        aggregator: Optional[MetricsAggregator] = None,
        walker: Optional[CitationWalker] = None,
        client: Optional[ResilientFetchClient] = None
    ):
        self.resolver = resolver
        self.aggregator = aggregator or MetricsAggregator()
        self.walker = walker or CitationWalker(resolver.client, resolver.api)
        self.client = client or resolver.client

    @classmethod
    def from_config(cls, config: Optional[ScholarImpactConfig] = None, **client_kwargs) -> "ImpactPipeline":
        """wire all agents to one fetch client pointed at the gateway."""
        config = config or ScholarImpactConfig.from_env()
        client = ResilientFetchClient.from_config(config.api, **client_kwargs)
        sleep = client_kwargs.get("sleep")
        extra = {"sleep": sleep} if sleep is not None else {}

        resolver = AuthorResolver(client, api=config.api, display=config.display, **extra)
        walker = CitationWalker(
            client,
            api=config.api,
            batch_size=config.traversal.batch_size,
            **extra
        )
        return cls(resolver, MetricsAggregator(), walker, client=client)

    async def close(self):
        await self.client.close()

    async def __aenter__(self) -> "ImpactPipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def search(self, query: str) -> List[AuthorCandidate]:
        """ranked author candidates for query."""
        result = await self.resolver.run(query)
        candidates = self._unwrap(self.resolver, result)
        logger.info(f"search '{query}': {len(candidates)} candidates")
        return candidates

    async def analyze(self, author_ids: Iterable[str]) -> ImpactReport:
        """
        build the impact report for the selected author ids.

        skipped authors and papers end up in report.warnings and mark
        the report PARTIAL.

        raises:
            StepFailed: no detail could be fetched for any id
        """
        start = time.time()
        report = ImpactReport(requested_ids=list(author_ids))

        logger.info(f"analyzing {len(report.requested_ids)} authors")
        result = await self.resolver.fetch_details(report.requested_ids)
        report.authors = self._unwrap(self.resolver, result, report)
        report.primary_author = report.authors[0]

        result = await self.aggregator.run(report.authors)
        report.metrics = self._unwrap(self.aggregator, result, report)

        result = await self.walker.run(report.metrics.papers)
        report.cited_papers = self._unwrap(self.walker, result, report)

        report.secondary_impact = fold_secondary_impact(report.cited_papers)

        report.status = AgentStatus.PARTIAL if report.warnings else AgentStatus.SUCCESS
        report.elapsed_seconds = time.time() - start
        logger.info(
            f"analysis complete ({report.status.value}): {report.metrics.total_papers} papers, "
            f"{report.secondary_impact.total_citations} secondary citations "
            f"in {report.elapsed_seconds:.1f}s"
        )
        return report

    @staticmethod
    def _unwrap(agent: Agent, result: AgentResult, report: Optional[ImpactReport] = None):
        """data from a step result; raises StepFailed when the step failed."""
        if result.failed:
            raise StepFailed(agent.name, result.errors[0].code, result.message)
        if report is not None:
            for warning in result.warnings:
                report.add_warning(warning)
        return result.data
