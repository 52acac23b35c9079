"""
scholarimpact - author impact metrics over the semantic scholar graph.
"""

__version__ = "0.1.0"

from .core.config import ScholarImpactConfig
from .core.models import AuthorRecord, AuthorDetail, PaperRecord, CitationEdge
from .core.gateway import CacheAsideGateway
from .core.resilience import ResilientFetchClient
from .agents import AuthorResolver, MetricsAggregator, CitationWalker
from .pipeline import ImpactPipeline, ImpactReport

__all__ = [
    "ScholarImpactConfig",
    "AuthorRecord",
    "AuthorDetail",
    "PaperRecord",
    "CitationEdge",
    "CacheAsideGateway",
    "ResilientFetchClient",
    "AuthorResolver",
    "MetricsAggregator",
    "CitationWalker",
    "ImpactPipeline",
    "ImpactReport"
]
