# agents - one task, one agent, done well
from .base import Agent, AgentResult, AgentError, AgentStatus
from .author_resolver import AuthorResolver, AuthorCandidate
from .metrics_aggregator import (
    MetricsAggregator, AggregatedMetrics, YearlyMetric, CollaboratorSummary
)
from .citation_walker import CitationWalker, CitedPaper, SecondaryImpact, fold_secondary_impact
