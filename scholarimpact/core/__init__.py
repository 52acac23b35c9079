from .errors import (
    ErrorMessages, ScholarImpactError, ValidationError, NoResultsError,
    UpstreamError, NetworkError, StepFailed, user_message
)
from .text import normalize, edit_distance, similarity, name_match_score
from .models import (
    AuthorRecord, AffiliationDetail, AuthorDetail, CoAuthor, PaperRecord,
    CitationEdge, CacheEntry, parse_affiliations
)
from .config import ScholarImpactConfig, ApiConfig, RateLimitConfig, CacheConfig, DisplayConfig
from .db import CacheStore, MemoryCacheStore, SqliteCacheStore
from .resilience import ResilientFetchClient, setup_logging
from .gateway import CacheAsideGateway
