"""SQLite FTS5 backing store for indexed documents.

Each named index is a directory holding a single SQLite database with
three tables:

- ``documents``: one row per document with its stored fields as JSON.
- ``exact_terms``: non-analyzed field values, used as upsert identity.
- ``fts_fields``: FTS5 table with one column per indexed field name.

FTS5 columns are fixed when the table is created, so the table is
rebuilt with a wider column set when a batch introduces new fields.
"""

import json
import sqlite3
import threading
from pathlib import Path
from types import TracebackType

import structlog
from pydantic import BaseModel

from objindex.documents import Document
from objindex.errors import ConfigurationError, IndexLockedError
from objindex.store.paths import DATABASE_FILENAME

logger = structlog.get_logger()

FTS_TABLE = "fts_fields"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    doc_id INTEGER PRIMARY KEY AUTOINCREMENT,
    stored TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS exact_terms (
    field TEXT NOT NULL,
    value TEXT NOT NULL,
    doc_id INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS exact_terms_lookup ON exact_terms (field, value);
CREATE INDEX IF NOT EXISTS exact_terms_doc ON exact_terms (doc_id);
CREATE TABLE IF NOT EXISTS field_modes (
    name TEXT PRIMARY KEY COLLATE NOCASE,
    analyzed INTEGER NOT NULL
);
"""

# One writer per store path within the process
_write_locks: dict[str, threading.Lock] = {}
_write_locks_guard = threading.Lock()


def _write_lock_for(path: Path) -> threading.Lock:
    with _write_locks_guard:
        lock = _write_locks.get(str(path))
        if lock is None:
            lock = threading.Lock()
            _write_locks[str(path)] = lock
        return lock


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def exact_token(value: str) -> str:
    """Encode a non-analyzed value as one FTS5 token.

    The hex form survives tokenization as a single bareword; the trailing
    digit keeps the stemmer from touching it.
    """
    return "xt" + value.encode("utf-8").hex() + "0"


def _fts_columns(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(f"PRAGMA table_info({FTS_TABLE})").fetchall()
    return [row[1] for row in rows]


class StoredHit(BaseModel):
    """A ranked match read back from the store.

    Attributes:
        doc_id: Internal document id.
        score: BM25 score (lower is better).
        fields: Stored field values.
    """

    doc_id: int
    score: float
    fields: dict[str, str]


class IndexStore:
    """Location and connection settings of one backing store."""

    def __init__(
        self,
        path: Path,
        tokenizer: str = "porter unicode61",
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize store handle (no files are touched).

        Args:
            path: Backing store directory.
            tokenizer: FTS5 tokenizer specification.
            busy_timeout_ms: SQLite busy timeout for connections.
        """
        self.path = Path(path)
        self.tokenizer = tokenizer
        self.busy_timeout_ms = busy_timeout_ms

    @property
    def db_path(self) -> Path:
        return self.path / DATABASE_FILENAME

    def exists(self) -> bool:
        """Whether an index has been committed to this store."""
        return self.db_path.is_file()

    def open_writer(self, lock_timeout: float = 5.0) -> "WriteSession":
        """Open the exclusive write session for this store."""
        return WriteSession(self, lock_timeout)

    def open_reader(self) -> "ReadView":
        """Open an independent read-only view of this store."""
        return ReadView(self)

    def __repr__(self) -> str:
        return f"IndexStore({str(self.path)!r})"


class WriteSession:
    """Exclusive transaction over a backing store.

    Holds the process-wide write lock for the store and an immediate
    SQLite transaction until ``close()``. Closing without ``commit()``
    rolls everything back; a store created by an uncommitted session is
    removed again.
    """

    def __init__(self, store: IndexStore, lock_timeout: float = 5.0) -> None:
        """Acquire the write lock and begin the transaction.

        Args:
            store: Store to write to.
            lock_timeout: Seconds to wait for another session to finish.

        Raises:
            IndexLockedError: If the store stays locked past the timeout.
        """
        self.store = store
        self._lock = _write_lock_for(store.path)
        if not self._lock.acquire(timeout=lock_timeout):
            raise IndexLockedError(
                "Another write session holds this index", str(store.path)
            )
        self._lock_held = True

        self._conn: sqlite3.Connection | None = None
        self.committed = False
        self.created = False
        try:
            self.created = not store.exists()
            store.path.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                store.db_path,
                timeout=store.busy_timeout_ms / 1000,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.execute(f"PRAGMA busy_timeout = {int(store.busy_timeout_ms)}")
            self._conn.execute("BEGIN IMMEDIATE")
            self._create_schema()
        except BaseException:
            self.close()
            raise

        logger.info("index_store_opened", path=str(store.path), create=self.created)

    def _create_schema(self) -> None:
        # executescript() would commit the open transaction
        assert self._conn is not None
        for statement in _SCHEMA.split(";"):
            if statement.strip():
                self._conn.execute(statement)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Write session is closed")
        return self._conn

    def columns(self) -> list[str]:
        """Current FTS5 column names, empty before the first indexed field."""
        return _fts_columns(self._connection())

    def ensure_columns(self, names: list[str]) -> None:
        """Make sure every name is an FTS5 column, widening the table if needed.

        Args:
            names: Indexed field names required by the batch.
        """
        conn = self._connection()
        current = self.columns()
        known = {name.lower() for name in current}
        missing = [name for name in dict.fromkeys(names) if name.lower() not in known]
        if not missing:
            return

        wanted = current + missing
        column_sql = ", ".join(_quote(name) for name in wanted)
        tokenize = self.store.tokenizer.replace("'", "''")

        if not current:
            conn.execute(
                f"CREATE VIRTUAL TABLE {FTS_TABLE} USING fts5("
                f"{column_sql}, tokenize='{tokenize}')"
            )
            return

        widened = f"{FTS_TABLE}_widened"
        old_sql = ", ".join(_quote(name) for name in current)
        conn.execute(
            f"CREATE VIRTUAL TABLE {widened} USING fts5("
            f"{column_sql}, tokenize='{tokenize}')"
        )
        conn.execute(
            f"INSERT INTO {widened} (rowid, {old_sql}) "
            f"SELECT rowid, {old_sql} FROM {FTS_TABLE}"
        )
        conn.execute(f"DROP TABLE {FTS_TABLE}")
        conn.execute(f"ALTER TABLE {widened} RENAME TO {FTS_TABLE}")
        logger.info(
            "index_schema_widened", path=str(self.store.path), added=missing
        )

    def ensure_fields(self, fields: dict[str, bool]) -> None:
        """Record how each indexed field is analyzed and add missing columns.

        Args:
            fields: Indexed field names mapped to their analyzed flag.

        Raises:
            ConfigurationError: If a field was indexed with the other flag
                before; one FTS5 column cannot hold both forms.
        """
        conn = self._connection()
        for name, analyzed in fields.items():
            row = conn.execute(
                "SELECT analyzed FROM field_modes WHERE name = ?", (name,)
            ).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO field_modes (name, analyzed) VALUES (?, ?)",
                    (name, int(analyzed)),
                )
            elif bool(row[0]) != analyzed:
                raise ConfigurationError(
                    f"Field '{name}' is already indexed "
                    f"{'analyzed' if row[0] else 'as an exact term'} in this index",
                    field=name,
                )
        self.ensure_columns(list(fields))

    def delete_term(self, field: str, value: str) -> int:
        """Delete every document holding an exact term.

        Returns:
            Number of documents removed.
        """
        conn = self._connection()
        doc_ids = [
            row[0]
            for row in conn.execute(
                "SELECT DISTINCT doc_id FROM exact_terms WHERE field = ? AND value = ?",
                (field, value),
            ).fetchall()
        ]
        has_fts = bool(self.columns())
        for doc_id in doc_ids:
            if has_fts:
                conn.execute(f"DELETE FROM {FTS_TABLE} WHERE rowid = ?", (doc_id,))
            conn.execute("DELETE FROM exact_terms WHERE doc_id = ?", (doc_id,))
            conn.execute("DELETE FROM documents WHERE doc_id = ?", (doc_id,))
        return len(doc_ids)

    def add_document(self, document: Document) -> int:
        """Insert a document unconditionally.

        Returns:
            The new document id.
        """
        conn = self._connection()
        cursor = conn.execute(
            "INSERT INTO documents (stored) VALUES (?)",
            (json.dumps(document.stored_fields),),
        )
        doc_id = cursor.lastrowid
        assert doc_id is not None

        indexed = {
            f.name: f.value if f.analyzed else exact_token(f.value)
            for f in document.fields
            if f.indexed
        }
        if indexed:
            self.ensure_fields(
                {f.name: f.analyzed for f in document.fields if f.indexed}
            )
            names = ", ".join(_quote(name) for name in indexed)
            placeholders = ", ".join("?" for _ in indexed)
            conn.execute(
                f"INSERT INTO {FTS_TABLE} (rowid, {names}) VALUES (?, {placeholders})",
                (doc_id, *indexed.values()),
            )

        conn.executemany(
            "INSERT INTO exact_terms (field, value, doc_id) VALUES (?, ?, ?)",
            [(name, value, doc_id) for name, value in document.exact_terms],
        )
        return doc_id

    def update_document(self, term: tuple[str, str], document: Document) -> int:
        """Replace the documents holding ``term`` with ``document``.

        Returns:
            The new document id.
        """
        self.delete_term(*term)
        return self.add_document(document)

    def optimize(self) -> None:
        """Merge the FTS5 index segments into one."""
        conn = self._connection()
        if self.columns():
            conn.execute(f"INSERT INTO {FTS_TABLE} ({FTS_TABLE}) VALUES ('optimize')")

    def commit(self) -> None:
        """Commit the transaction; the session stays open until close()."""
        conn = self._connection()
        conn.execute("COMMIT")
        self.committed = True

    def close(self) -> None:
        """Roll back anything uncommitted and release the store.

        Idempotent.
        """
        conn, self._conn = self._conn, None
        try:
            if conn is not None:
                try:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                finally:
                    conn.close()
            if self.created and not self.committed:
                self._discard_created_store()
        finally:
            if self._lock_held:
                self._lock_held = False
                self._lock.release()

    def _discard_created_store(self) -> None:
        db_path = self.store.db_path
        db_path.unlink(missing_ok=True)
        for suffix in ("-journal", "-wal", "-shm"):
            db_path.with_name(db_path.name + suffix).unlink(missing_ok=True)
        try:
            self.store.path.rmdir()
        except OSError:
            pass

    def __enter__(self) -> "WriteSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class ReadView:
    """Read-only connection to a committed backing store."""

    def __init__(self, store: IndexStore) -> None:
        """Open the store read-only.

        Raises:
            sqlite3.Error: If the database cannot be opened.
        """
        self.store = store
        uri = f"{store.db_path.as_uri()}?mode=ro"
        self._conn = sqlite3.connect(
            uri, uri=True, timeout=store.busy_timeout_ms / 1000
        )

    def columns(self) -> list[str]:
        return _fts_columns(self._conn)

    def exact_fields(self) -> list[str]:
        """Indexed fields holding exact terms rather than analyzed text."""
        rows = self._conn.execute(
            "SELECT name FROM field_modes WHERE analyzed = 0"
        ).fetchall()
        return [row[0] for row in rows]

    def count(self, match: str) -> int:
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM {FTS_TABLE} WHERE {FTS_TABLE} MATCH ?", (match,)
        ).fetchone()
        return int(row[0])

    def search(self, match: str, limit: int) -> list[StoredHit]:
        """Run an FTS5 match and materialize the best hits.

        Args:
            match: FTS5 query expression.
            limit: Maximum number of hits.

        Returns:
            Hits ordered by BM25 score, best first.
        """
        rows = self._conn.execute(
            f"SELECT d.doc_id, bm25({FTS_TABLE}) AS score, d.stored "
            f"FROM {FTS_TABLE} JOIN documents AS d ON d.doc_id = {FTS_TABLE}.rowid "
            f"WHERE {FTS_TABLE} MATCH ? "
            "ORDER BY score "
            "LIMIT ?",
            (match, limit),
        ).fetchall()
        return [
            StoredHit(doc_id=doc_id, score=score, fields=json.loads(stored))
            for doc_id, score, stored in rows
        ]

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "ReadView":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
