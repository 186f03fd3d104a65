"""Type registry: per-type field extraction rules."""
from objindex.registry.registry import TypeRegistry, default_registry, define
from objindex.registry.types import FieldDefinition, IndexMode, TypeDefinition

__all__ = [
    "FieldDefinition",
    "IndexMode",
    "TypeDefinition",
    "TypeRegistry",
    "default_registry",
    "define",
]
