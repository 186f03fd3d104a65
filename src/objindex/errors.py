"""Exception hierarchy for indexing and search."""
from collections.abc import Hashable


class ObjIndexError(Exception):
    """Base class for all objindex errors."""


class ConfigurationError(ObjIndexError):
    """Raised when a type registration or indexing call is misconfigured."""

    def __init__(
        self,
        message: str,
        type_id: Hashable | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error description.
            type_id: Record type the error relates to, if any.
            field: Field name the error relates to, if any.
        """
        super().__init__(message)
        self.type_id = type_id
        self.field = field


class ExtractionError(ObjIndexError):
    """A field extractor failed while a document was being built.

    Never raised to callers; attached to ``ExtractionFailure`` diagnostics.
    """

    def __init__(self, field: str, cause: BaseException | None = None) -> None:
        if cause is None:
            message = f"Extractor for field '{field}' returned None"
        else:
            message = f"Extractor for field '{field}' failed: {cause!r}"
        super().__init__(message)
        self.field = field
        self.cause = cause


class SearchError(ObjIndexError):
    """Raised inside the search path when a query cannot be answered."""

    def __init__(self, message: str, kind: str, query: str) -> None:
        """Initialize search error.

        Args:
            message: Error description.
            kind: Failure category (see ``SearchFailureKind``).
            query: The expression that failed.
        """
        super().__init__(message)
        self.kind = kind
        self.query = query


class IndexLockedError(ObjIndexError):
    """Raised when another write session holds the backing store."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
