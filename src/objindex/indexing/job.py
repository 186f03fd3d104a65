"""Batch indexing jobs that can run to completion or in time slices."""
import asyncio
import time
from collections.abc import Generator, Iterable, Iterator
from types import TracebackType
from typing import Any

import structlog

from objindex.documents import ExtractionFailure, build_document
from objindex.errors import ConfigurationError
from objindex.events.reporter import ProgressReporter
from objindex.events.types import ProgressEvent
from objindex.registry.types import TypeDefinition
from objindex.store.sqlite import IndexStore

logger = structlog.get_logger()

INDEXING = "Indexing"
OPTIMIZING = "Optimizing"


class IndexJob:
    """Writes one batch of records to a backing store.

    The work is a generator that suspends each time a time slice is used
    up. ``run()`` drives it to completion in one call; ``step()`` advances
    it to the next suspension point so a latency-sensitive host can spread
    the batch over several iterations of its own loop. The write session
    is opened on the first step and closed when the job finishes, fails
    or is cancelled.

    Attributes:
        total: Number of non-None records in the batch.
        indexed: Records written so far.
        failures: Extraction diagnostics collected so far.
        last_event: Most recent progress event, if any.
        cancelled: Whether cancel() stopped the job.
    """

    def __init__(
        self,
        store: IndexStore,
        definition: TypeDefinition,
        records: Iterable[Any],
        reporter: ProgressReporter | None = None,
        time_slice_ms: int = 13,
        lock_timeout: float = 5.0,
    ) -> None:
        """Prepare a job; nothing is written until the first step.

        Args:
            store: Store to write to.
            definition: Registered fields of the records' type.
            records: Records to index; None entries are skipped.
            reporter: Receives progress events.
            time_slice_ms: Work budget between progress reports.
            lock_timeout: Seconds to wait for the store's write lock.

        Raises:
            ConfigurationError: If records is None or the type has no fields.
        """
        if records is None:
            raise ConfigurationError(
                "A batch of records is required", type_id=definition.type_id
            )
        if not definition.fields:
            raise ConfigurationError(
                "At least one field must be defined for a type before it can be indexed",
                type_id=definition.type_id,
            )

        self.store = store
        self.definition = definition
        self.reporter = reporter or ProgressReporter()
        self.time_slice_ms = time_slice_ms
        self.lock_timeout = lock_timeout

        self._records = [record for record in records if record is not None]
        self.total = len(self._records)
        self.indexed = 0
        self.failures: list[ExtractionFailure] = []
        self.last_event: ProgressEvent | None = None
        self.cancelled = False

        self._steps = self._work()
        self._done = False

    @property
    def done(self) -> bool:
        """Whether the job has committed, failed or been cancelled."""
        return self._done

    def _progress(self, title: str, count: int, total: int) -> ProgressEvent:
        self.last_event = self.reporter.emit(title, count, total)
        return self.last_event

    def _work(self) -> Generator[ProgressEvent, None, None]:
        session = self.store.open_writer(self.lock_timeout)
        logger.info(
            "index_batch_started",
            type_id=str(self.definition.type_id),
            path=str(self.store.path),
            total=self.total,
            create=session.created,
        )
        try:
            session.ensure_fields(self.definition.indexed_fields)
            self._progress(INDEXING, 0, self.total)

            slice_started = time.monotonic()
            for record in self._records:
                document = build_document(record, self.definition)
                self.failures.extend(document.failures)
                if document.key_term is not None:
                    session.update_document(document.key_term, document)
                else:
                    session.add_document(document)
                self.indexed += 1

                if (time.monotonic() - slice_started) * 1000 >= self.time_slice_ms:
                    yield self._progress(INDEXING, self.indexed, self.total)
                    slice_started = time.monotonic()

            yield self._progress(INDEXING, self.indexed, self.total)

            yield self._progress(OPTIMIZING, 0, 1)
            session.optimize()
            session.commit()
            logger.info("index_optimized", path=str(self.store.path))
            self._progress(OPTIMIZING, 1, 1)

            logger.info(
                "index_batch_completed",
                type_id=str(self.definition.type_id),
                indexed=self.indexed,
                failures=len(self.failures),
            )
        except GeneratorExit:
            logger.info(
                "index_batch_cancelled",
                type_id=str(self.definition.type_id),
                indexed=self.indexed,
                total=self.total,
            )
            raise
        finally:
            session.close()

    def step(self) -> ProgressEvent | None:
        """Advance the job to its next suspension point.

        Returns:
            The latest progress event.

        Raises:
            IndexLockedError: If another session holds the store.
        """
        if self._done:
            return self.last_event
        try:
            next(self._steps)
        except StopIteration:
            self._done = True
        except BaseException:
            self._done = True
            raise
        return self.last_event

    def run(self) -> int:
        """Run the job to completion without suspending.

        Returns:
            Number of records indexed.
        """
        while not self._done:
            self.step()
        return self.indexed

    async def run_async(self) -> int:
        """Run the job on an asyncio loop, yielding to it between slices.

        Cancelling the awaiting task cancels the job.

        Returns:
            Number of records indexed.
        """
        try:
            while not self._done:
                self.step()
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancel()
            raise
        return self.indexed

    def cancel(self) -> None:
        """Stop the job, rolling back and releasing the write session.

        Has no effect on a job that already finished.
        """
        if self._done:
            return
        self.cancelled = True
        self._done = True
        self._steps.close()

    def __iter__(self) -> Iterator[ProgressEvent]:
        while not self._done:
            event = self.step()
            if event is not None:
                yield event

    def __enter__(self) -> "IndexJob":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()
