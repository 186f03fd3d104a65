"""Object indexing and full-text search over SQLite FTS5."""
from objindex.config import Settings
from objindex.documents import Document, ExtractionFailure, IndexedField, build_document
from objindex.engine import ObjectIndex
from objindex.errors import (
    ConfigurationError,
    ExtractionError,
    IndexLockedError,
    ObjIndexError,
    SearchError,
)
from objindex.events import ProgressEvent, ProgressReporter
from objindex.indexing import IndexJob
from objindex.logging import configure_logging
from objindex.registry import (
    FieldDefinition,
    IndexMode,
    TypeDefinition,
    TypeRegistry,
    default_registry,
    define,
)
from objindex.search import SearchFailure, SearchFailureKind, SearchResponse, SearchResult

__all__ = [
    "ConfigurationError",
    "Document",
    "ExtractionError",
    "ExtractionFailure",
    "FieldDefinition",
    "IndexJob",
    "IndexLockedError",
    "IndexMode",
    "IndexedField",
    "ObjIndexError",
    "ObjectIndex",
    "ProgressEvent",
    "ProgressReporter",
    "SearchError",
    "SearchFailure",
    "SearchFailureKind",
    "SearchResponse",
    "SearchResult",
    "Settings",
    "TypeDefinition",
    "TypeRegistry",
    "configure_logging",
    "default_registry",
    "define",
]
