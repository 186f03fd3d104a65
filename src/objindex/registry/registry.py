"""Process-wide registry mapping record types to field definitions."""
from collections.abc import Callable, Hashable
from typing import Any

import structlog

from objindex.errors import ConfigurationError
from objindex.registry.types import (
    FIELD_NAME_PATTERN,
    RESERVED_FIELD_NAMES,
    FieldDefinition,
    IndexMode,
    TypeDefinition,
)

logger = structlog.get_logger()


class TypeRegistry:
    """Collection of field definitions keyed by record type.

    Not thread-safe; a single owner is expected to register types,
    typically at startup.
    """

    def __init__(self) -> None:
        self._types: dict[Hashable, TypeDefinition] = {}

    def define(
        self,
        type_id: Hashable,
        name: str,
        extractor: Callable[[Any], Any] | None,
        mode: IndexMode = IndexMode.INDEX_AND_STORE,
    ) -> FieldDefinition:
        """Register a named extraction rule for a record type.

        Args:
            type_id: Record type, usually the record's class.
            name: Field name.
            extractor: Callable returning the field value for a record.
            mode: Storage and indexing mode.

        Returns:
            The new field definition.

        Raises:
            ConfigurationError: If the extractor is missing, the name is not
                an identifier or already used for this type, or a second
                primary key is defined.
        """
        if extractor is None or not callable(extractor):
            raise ConfigurationError(
                "An extractor callable is required", type_id=type_id, field=name
            )
        if (
            not isinstance(name, str)
            or not FIELD_NAME_PATTERN.match(name)
            or name.lower() in RESERVED_FIELD_NAMES
        ):
            raise ConfigurationError(
                f"Invalid field name: {name!r}", type_id=type_id, field=name
            )
        try:
            mode = IndexMode(mode)
        except ValueError:
            raise ConfigurationError(
                f"Unknown index mode: {mode!r}", type_id=type_id, field=name
            ) from None

        definition = self._types.get(type_id)
        if definition is None:
            definition = TypeDefinition(type_id)
            self._types[type_id] = definition

        if name.lower() in {existing.lower() for existing in definition.field_names()}:
            raise ConfigurationError(
                f"Field '{name}' is already defined for this type",
                type_id=type_id,
                field=name,
            )

        field = FieldDefinition(name=name, extractor=extractor, mode=mode)
        if field.is_primary_key:
            if definition.primary_key is not None:
                raise ConfigurationError(
                    "Only one primary key per type",
                    type_id=type_id,
                    field=name,
                )
            definition.primary_key = field
        definition.fields.append(field)

        logger.debug(
            "field_defined", type_id=str(type_id), field=name, mode=mode.value
        )
        return field

    def get(self, type_id: Hashable) -> TypeDefinition:
        """Look up the definition of a type that can be indexed.

        Raises:
            ConfigurationError: If no field has been defined for the type.
        """
        definition = self._types.get(type_id)
        if definition is None or not definition.fields:
            raise ConfigurationError(
                "At least one field must be defined for a type before it can be indexed",
                type_id=type_id,
            )
        return definition

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __len__(self) -> int:
        return len(self._types)

    def clear(self) -> None:
        """Forget every registered type."""
        self._types.clear()


default_registry = TypeRegistry()


def define(
    type_id: Hashable,
    name: str,
    extractor: Callable[[Any], Any] | None,
    mode: IndexMode = IndexMode.INDEX_AND_STORE,
) -> FieldDefinition:
    """Register a field on the process-wide default registry."""
    return default_registry.define(type_id, name, extractor, mode)
