"""Full-text search facade over FTS5 backing stores."""
from objindex.search.index import is_valid_expression, search
from objindex.search.schemas import (
    SearchFailure,
    SearchFailureKind,
    SearchResponse,
    SearchResult,
)

__all__ = [
    "SearchFailure",
    "SearchFailureKind",
    "SearchResponse",
    "SearchResult",
    "is_valid_expression",
    "search",
]
