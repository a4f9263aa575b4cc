"""Full-text search backends and the combined search aggregator."""

from .aggregator import SearchAggregator, normalize_search_text
from .base import FreeTextClause, PrefixClause, SearchHits, SearchIndex, ShouldQuery
from .http_index import HttpSearchIndex

__all__ = [
    "FreeTextClause",
    "HttpSearchIndex",
    "PrefixClause",
    "SearchAggregator",
    "SearchHits",
    "SearchIndex",
    "ShouldQuery",
    "normalize_search_text",
]
