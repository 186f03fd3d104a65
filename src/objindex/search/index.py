"""Read-only full-text search over a backing store."""

import re
import sqlite3

import structlog

from objindex.errors import SearchError
from objindex.search.schemas import (
    SearchFailure,
    SearchFailureKind,
    SearchResponse,
    SearchResult,
)
from objindex.store.sqlite import IndexStore, exact_token

logger = structlog.get_logger()

_PHRASE = re.compile(r'"(?:[^"]|"")*"')

# Column filters: `title:`, `{title body}:`, `-title:`
_COLUMN_FILTER = re.compile(r"(?:\{[^}]*\}|[A-Za-z_][A-Za-z0-9_]*)\s*:")

# A quoted phrase, or a single-field qualifier with its bareword or phrase
_QUALIFIED_TERM = re.compile(
    r'"(?:[^"]|"")*"'
    r'|(?<![\w])([A-Za-z_][A-Za-z0-9_]*)(\s*:\s*)("(?:[^"]|"")*"|[^\s(){}":]+)'
)


def is_valid_expression(expression: str) -> bool:
    """Reject blank expressions and ones starting with a fuzzy operator."""
    return bool(expression.strip()) and not expression.startswith("~")


def has_column_filter(expression: str) -> bool:
    """Whether the expression names a field outside of quoted phrases."""
    return bool(_COLUMN_FILTER.search(_PHRASE.sub('""', expression)))


def rewrite_exact_terms(expression: str, exact_fields: list[str]) -> str:
    """Turn `field:value` on exact-term fields into the stored token.

    Exact-term fields hold each value as one token, so a qualified
    bareword or phrase only matches the whole value.

    Args:
        expression: FTS5 query expression.
        exact_fields: Names of non-analyzed indexed fields.

    Returns:
        Expression with those qualified values encoded.
    """
    exact = {name.lower() for name in exact_fields}
    if not exact:
        return expression

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name is None or name.lower() not in exact:
            return match.group(0)
        value = match.group(3)
        if value.startswith('"'):
            value = value[1:-1].replace('""', '"')
        return f"{name}{match.group(2)}{exact_token(value)}"

    return _QUALIFIED_TERM.sub(replace, expression)


def scope_to_field(expression: str, default_field: str | None, columns: list[str]) -> str:
    """Scope an unqualified expression to the default field.

    Expressions with their own column filters, and default fields the
    index has no column for, leave the expression matching every
    indexed field.

    Args:
        expression: FTS5 query expression.
        default_field: Field unqualified terms should match.
        columns: Indexed field names of the store.

    Returns:
        Expression to hand to FTS5 MATCH.
    """
    if not default_field or has_column_filter(expression):
        return expression
    if default_field.lower() not in {column.lower() for column in columns}:
        return expression
    return f"{default_field} : ({expression})"


_IO_MARKERS: tuple[str, ...] = (
    "locked",
    "unable to open",
    "disk i/o",
    "no such table",
    "malformed",
    "not a database",
    "readonly",
)


def _classify(exc: sqlite3.Error) -> SearchFailureKind:
    message = str(exc).lower()
    if not isinstance(exc, sqlite3.OperationalError):
        return SearchFailureKind.IO_ERROR
    if any(marker in message for marker in _IO_MARKERS):
        return SearchFailureKind.IO_ERROR
    return SearchFailureKind.PARSE_ERROR


def _execute(
    store: IndexStore,
    expression: str,
    max_results: int,
    default_field: str | None,
) -> tuple[list[SearchResult], int]:
    if not store.exists():
        raise SearchError(
            f"No index at {store.path}", SearchFailureKind.MISSING_INDEX.value, expression
        )
    try:
        with store.open_reader() as reader:
            columns = reader.columns()
            if not columns:
                return [], 0
            match = rewrite_exact_terms(expression, reader.exact_fields())
            match = scope_to_field(match, default_field, columns)
            total = reader.count(match)
            hits = reader.search(match, max_results)
    except sqlite3.Error as exc:
        raise SearchError(str(exc), _classify(exc).value, expression) from exc

    results = [
        SearchResult(doc_id=hit.doc_id, score=round(hit.score, 4), fields=hit.fields)
        for hit in hits
    ]
    return results, total


def search(
    store: IndexStore,
    expression: str,
    max_results: int = 100,
    default_field: str | None = "headline",
) -> SearchResponse:
    """Execute a full-text query with BM25 ranking.

    Never raises for bad queries or unreadable stores; those come back
    as a response with ``error`` set.

    Args:
        store: Store to search.
        expression: FTS5 query expression.
        max_results: Maximum number of hits to return.
        default_field: Field unqualified terms are matched against.

    Returns:
        SearchResponse with ranked results or failure detail.

    Raises:
        ValueError: If expression is None or max_results is below 1.
    """
    if expression is None:
        raise ValueError("expression is required")
    if max_results < 1:
        raise ValueError(f"max_results must be at least 1, got {max_results}")

    if not is_valid_expression(expression):
        logger.warning("search_failed", query=expression, kind="invalid_query")
        return SearchResponse(
            query=expression,
            error=SearchFailure(
                kind=SearchFailureKind.INVALID_QUERY,
                message="Search expression is blank or starts with '~'",
            ),
        )

    try:
        results, total = _execute(store, expression, max_results, default_field)
    except SearchError as exc:
        logger.warning(
            "search_failed", query=expression, kind=exc.kind, error=str(exc)
        )
        return SearchResponse(
            query=expression,
            error=SearchFailure(kind=SearchFailureKind(exc.kind), message=str(exc)),
        )

    logger.debug("search_completed", query=expression, total=total, returned=len(results))
    return SearchResponse(query=expression, results=results, total=total)
