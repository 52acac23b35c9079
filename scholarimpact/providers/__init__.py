from .base import UpstreamProvider
from .semantic_scholar import (
    SemanticScholarProvider, author_search_endpoint, author_endpoint, paper_citations_endpoint
)
