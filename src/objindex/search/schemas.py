"""Pydantic schemas for search results and failures."""
from enum import Enum

from pydantic import BaseModel, Field


class SearchFailureKind(str, Enum):
    """Why a search could not be answered."""

    INVALID_QUERY = "invalid_query"
    MISSING_INDEX = "missing_index"
    PARSE_ERROR = "parse_error"
    IO_ERROR = "io_error"


class SearchFailure(BaseModel):
    """Failure detail attached to an unsuccessful search.

    Attributes:
        kind: Failure category.
        message: Backend or validation message.
    """

    kind: SearchFailureKind
    message: str


class SearchResult(BaseModel):
    """One materialized search hit.

    Attributes:
        doc_id: Internal document id.
        score: BM25 relevance score (lower is better).
        fields: Stored field values of the document.
    """

    doc_id: int
    score: float
    fields: dict[str, str] = Field(description="Stored field values")

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.fields.get(name, default)

    def __getitem__(self, name: str) -> str:
        return self.fields[name]


class SearchResponse(BaseModel):
    """Search response envelope.

    A failed search has ``error`` set and no results; a search that
    matched nothing is successful with an empty result list.

    Attributes:
        query: The original search expression.
        results: Hits, best first.
        total: Total number of matching documents.
        error: Failure detail, None on success.
    """

    query: str
    results: list[SearchResult] = []
    total: int = 0
    error: SearchFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
