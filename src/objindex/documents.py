"""Build indexable documents from records using registered field rules."""
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from objindex.errors import ExtractionError
from objindex.registry.types import TypeDefinition

logger = structlog.get_logger()


class IndexedField(BaseModel):
    """One extracted field value with its storage flags."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    stored: bool
    indexed: bool
    analyzed: bool


class ExtractionFailure(BaseModel):
    """Diagnostic for a field that was left out of a document.

    Attributes:
        field: Name of the field whose extractor failed.
        error: The wrapped extractor failure.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field: str
    error: ExtractionError

    @property
    def message(self) -> str:
        return str(self.error)


class Document(BaseModel):
    """Field bag handed to the store for one record.

    Attributes:
        fields: Successfully extracted fields, in definition order.
        key_term: ``(field, value)`` identifying the record for upserts.
        failures: Fields omitted because their extractor failed.
    """

    fields: list[IndexedField] = []
    key_term: tuple[str, str] | None = None
    failures: list[ExtractionFailure] = []

    @property
    def stored_fields(self) -> dict[str, str]:
        return {f.name: f.value for f in self.fields if f.stored}

    @property
    def indexed_fields(self) -> dict[str, str]:
        return {f.name: f.value for f in self.fields if f.indexed}

    @property
    def exact_terms(self) -> list[tuple[str, str]]:
        """Non-analyzed indexed values, matched verbatim on upsert."""
        return [(f.name, f.value) for f in self.fields if f.indexed and not f.analyzed]


def _as_text(value: Any) -> str:
    """Convert an extracted value to text the store can encode."""
    text = value if isinstance(value, str) else str(value)
    # Lone surrogates (e.g. surrogateescape-decoded names) cannot be stored
    text.encode("utf-8")
    return text


def build_document(record: Any, definition: TypeDefinition) -> Document:
    """Extract every registered field of a record.

    A failing extractor only drops its own field; the failure is logged
    and kept on the document so the record is still indexed.

    Args:
        record: The record to extract values from.
        definition: Registered fields of the record's type.

    Returns:
        Document with the extracted fields, key term and failures.
    """
    document = Document()
    for field in definition.fields:
        try:
            value = field.extractor(record)
            text = None if value is None else _as_text(value)
        except Exception as exc:
            error = ExtractionError(field.name, exc)
        else:
            if text is not None:
                document.fields.append(
                    IndexedField(
                        name=field.name,
                        value=text,
                        stored=field.mode.stored,
                        indexed=field.mode.indexed,
                        analyzed=field.mode.analyzed,
                    )
                )
                if field.is_primary_key:
                    document.key_term = (field.name, text)
                continue
            error = ExtractionError(field.name)

        document.failures.append(ExtractionFailure(field=field.name, error=error))
        logger.warning(
            "field_extraction_failed",
            type_id=str(definition.type_id),
            field=field.name,
            error=str(error),
        )
    return document
