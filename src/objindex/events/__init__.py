"""Progress reporting for indexing jobs."""
from objindex.events.reporter import ProgressCallback, ProgressReporter
from objindex.events.types import ProgressEvent

__all__ = [
    "ProgressCallback",
    "ProgressEvent",
    "ProgressReporter",
]
