"""Batch indexing of registered record types."""
from objindex.indexing.job import INDEXING, OPTIMIZING, IndexJob

__all__ = [
    "INDEXING",
    "OPTIMIZING",
    "IndexJob",
]
