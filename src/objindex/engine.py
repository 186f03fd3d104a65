"""Object index facade: registration, indexing and search for one named index."""
from collections.abc import Callable, Collection, Hashable, Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from objindex.config import Settings
from objindex.errors import ConfigurationError
from objindex.events.reporter import ProgressCallback, ProgressReporter
from objindex.indexing.job import IndexJob
from objindex.registry.registry import TypeRegistry, default_registry
from objindex.registry.types import FieldDefinition, IndexMode
from objindex.search.index import search as search_store
from objindex.search.schemas import SearchResponse
from objindex.store.paths import resolve_store
from objindex.store.sqlite import IndexStore


def _is_batch(records: Any) -> bool:
    if isinstance(records, Iterator):
        return True
    return isinstance(records, Collection) and not isinstance(
        records, (str, bytes, bytearray, Mapping)
    )


class ObjectIndex:
    """A named full-text index of application records.

    Field rules live in a TypeRegistry, the process-wide default one
    unless another is given. Documents live in a backing store
    directory under ``settings.data_root``.

    Attributes:
        name: Index name.
        settings: Configuration in effect.
        registry: Field rules used for indexing.
        progress: Reporter receiving indexing progress events.
    """

    def __init__(
        self,
        name: str | None = None,
        settings: Settings | None = None,
        registry: TypeRegistry | None = None,
    ) -> None:
        """Initialize the index (no files are touched).

        Args:
            name: Index name; defaults to ``settings.index_name``.
            settings: Configuration; loaded from the environment if omitted.
            registry: Field rules; defaults to the process-wide registry.

        Raises:
            ConfigurationError: If the name is not a valid index name.
        """
        self.settings = settings or Settings()
        self.name = name or self.settings.index_name
        self.registry = registry if registry is not None else default_registry
        self.progress = ProgressReporter()
        self.store = IndexStore(
            resolve_store(self.settings.data_root, self.name),
            tokenizer=self.settings.tokenizer,
            busy_timeout_ms=self.settings.busy_timeout_ms,
        )

    @property
    def path(self) -> Path:
        """Backing store directory."""
        return self.store.path

    @property
    def exists(self) -> bool:
        return self.store.exists()

    def define(
        self,
        type_id: Hashable,
        name: str,
        extractor: Callable[[Any], Any] | None,
        mode: IndexMode = IndexMode.INDEX_AND_STORE,
    ) -> FieldDefinition:
        """Register a field for a record type. See TypeRegistry.define()."""
        return self.registry.define(type_id, name, extractor, mode)

    def subscribe(self, callback: ProgressCallback) -> str:
        return self.progress.subscribe(callback)

    def unsubscribe(self, subscriber_id: str) -> None:
        self.progress.unsubscribe(subscriber_id)

    def _job(
        self, type_id: Hashable, records: Iterable[Any], time_slice_ms: int
    ) -> IndexJob:
        return IndexJob(
            self.store,
            self.registry.get(type_id),
            records,
            reporter=self.progress,
            time_slice_ms=time_slice_ms,
            lock_timeout=self.settings.write_lock_timeout,
        )

    def index(self, type_id: Hashable, records: Any) -> IndexJob:
        """Index one record or a batch synchronously.

        Args:
            type_id: Registered record type.
            records: A single record, or a collection or iterator of them.
                Strings, bytes and mappings count as single records.

        Returns:
            The finished job, with counts and extraction failures.

        Raises:
            ConfigurationError: If the type has no fields or a single record
                is None.
            IndexLockedError: If another session holds the store.
        """
        if records is None:
            raise ConfigurationError("A record is required", type_id=type_id)
        if not _is_batch(records):
            records = [records]

        job = self._job(type_id, records, self.settings.time_slice_ms)
        job.run()
        return job

    def index_incremental(
        self,
        type_id: Hashable,
        records: Iterable[Any],
        time_slice_ms: int | None = None,
    ) -> IndexJob:
        """Create a resumable job for a batch.

        Nothing is written until the caller drives the job with
        ``step()``, iteration or ``run_async()``.

        Args:
            type_id: Registered record type.
            records: Records to index.
            time_slice_ms: Work budget between suspensions; defaults to
                ``settings.time_slice_ms``.

        Raises:
            ConfigurationError: If the type has no fields or records is None.
        """
        if time_slice_ms is None:
            time_slice_ms = self.settings.time_slice_ms
        return self._job(type_id, records, time_slice_ms)

    def search(
        self,
        expression: str,
        max_results: int | None = None,
        default_field: str | None = None,
    ) -> SearchResponse:
        """Search the index. See objindex.search.search()."""
        return search_store(
            self.store,
            expression,
            max_results=(
                self.settings.max_results if max_results is None else max_results
            ),
            default_field=default_field or self.settings.default_field,
        )

    def __repr__(self) -> str:
        return f"ObjectIndex({self.name!r}, path={str(self.path)!r})"
