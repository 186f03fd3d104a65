"""Field definitions and index modes for registered record types."""
import re
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Names the FTS5 table reserves for itself
RESERVED_FIELD_NAMES: frozenset[str] = frozenset({"rowid", "oid", "_rowid_", "rank", "fts_fields"})


class IndexMode(str, Enum):
    """How a field value is stored and indexed."""

    INDEX_ONLY = "index_only"
    INDEX_AND_STORE = "index_and_store"
    TEXT_AND_STORE = "text_and_store"
    STORE_ONLY = "store_only"
    PRIMARY_KEY = "primary_key"

    @property
    def stored(self) -> bool:
        """Whether the value can be read back from search results."""
        return self is not IndexMode.INDEX_ONLY

    @property
    def indexed(self) -> bool:
        """Whether the value is searchable at all."""
        return self is not IndexMode.STORE_ONLY

    @property
    def analyzed(self) -> bool:
        """Whether the value is tokenized rather than kept as one exact term."""
        return self in (IndexMode.INDEX_ONLY, IndexMode.INDEX_AND_STORE)


class FieldDefinition(BaseModel):
    """A named rule extracting a string value from a record.

    Attributes:
        name: Field name, also the FTS5 column and query qualifier.
        extractor: Callable turning a record into the field value.
        mode: Storage and indexing mode.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=FIELD_NAME_PATTERN.pattern)
    extractor: Callable[[Any], Any]
    mode: IndexMode = IndexMode.INDEX_AND_STORE

    @property
    def is_primary_key(self) -> bool:
        return self.mode is IndexMode.PRIMARY_KEY


class TypeDefinition:
    """Registered fields of one record type.

    Attributes:
        type_id: Identifier of the record type.
        fields: Field definitions in registration order.
        primary_key: The field used as upsert identity, if any.
    """

    def __init__(self, type_id: Any) -> None:
        self.type_id = type_id
        self.fields: list[FieldDefinition] = []
        self.primary_key: FieldDefinition | None = None

    @property
    def indexed_fields(self) -> dict[str, bool]:
        """Fields that become FTS5 columns, mapped to their analyzed flag."""
        return {f.name: f.mode.analyzed for f in self.fields if f.mode.indexed}

    def field_names(self) -> set[str]:
        return {f.name for f in self.fields}

    def __repr__(self) -> str:
        return f"TypeDefinition({self.type_id!r}, fields={[f.name for f in self.fields]})"
