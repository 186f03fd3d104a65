"""Type registry tests."""

import pytest

from objindex.errors import ConfigurationError
from objindex.registry import IndexMode, TypeRegistry, default_registry, define


class Note:
    pass


def test_define_creates_type_entry(registry: TypeRegistry) -> None:
    """First definition creates the type's entry."""
    registry.define(Note, "body", lambda n: "text")
    definition = registry.get(Note)
    assert Note in registry
    assert [f.name for f in definition.fields] == ["body"]
    assert definition.primary_key is None


def test_fields_keep_registration_order(registry: TypeRegistry) -> None:
    """Fields are kept in the order they were defined."""
    for name in ("c", "a", "b"):
        registry.define(Note, name, lambda n: name)
    assert [f.name for f in registry.get(Note).fields] == ["c", "a", "b"]


def test_missing_extractor_raises(registry: TypeRegistry) -> None:
    """A field without an extractor is rejected immediately."""
    with pytest.raises(ConfigurationError) as excinfo:
        registry.define(Note, "body", None)
    assert excinfo.value.field == "body"
    assert Note not in registry


def test_second_primary_key_raises(registry: TypeRegistry) -> None:
    """Only one primary key may be defined per type."""
    registry.define(Note, "id", lambda n: "1", IndexMode.PRIMARY_KEY)
    with pytest.raises(ConfigurationError, match="one primary key"):
        registry.define(Note, "slug", lambda n: "x", IndexMode.PRIMARY_KEY)

    definition = registry.get(Note)
    assert definition.primary_key is not None
    assert definition.primary_key.name == "id"
    assert [f.name for f in definition.fields] == ["id"]


def test_primary_keys_are_per_type(registry: TypeRegistry) -> None:
    """Different types each get their own primary key."""
    registry.define(Note, "id", lambda n: "1", IndexMode.PRIMARY_KEY)
    registry.define(str, "id", lambda s: s, IndexMode.PRIMARY_KEY)
    assert registry.get(str).primary_key is not None


def test_duplicate_field_name_raises(registry: TypeRegistry) -> None:
    """A field name can only be used once per type, ignoring case."""
    registry.define(Note, "title", lambda n: "a")
    with pytest.raises(ConfigurationError):
        registry.define(Note, "Title", lambda n: "b")


@pytest.mark.parametrize("name", ["", "two words", "1st", "a-b", "rank", "rowid"])
def test_invalid_field_names_raise(registry: TypeRegistry, name: str) -> None:
    """Field names must be identifiers the FTS5 table can use as columns."""
    with pytest.raises(ConfigurationError):
        registry.define(Note, name, lambda n: "x")


def test_unknown_mode_raises(registry: TypeRegistry) -> None:
    """Modes outside IndexMode are configuration errors."""
    with pytest.raises(ConfigurationError):
        registry.define(Note, "body", lambda n: "x", "sometimes")  # type: ignore[arg-type]


def test_get_unregistered_type_raises(registry: TypeRegistry) -> None:
    """Looking up a type without fields is a configuration error."""
    with pytest.raises(ConfigurationError):
        registry.get(Note)


def test_index_mode_flags() -> None:
    """Each mode maps to its stored/indexed/analyzed flags."""
    assert not IndexMode.INDEX_ONLY.stored
    assert IndexMode.INDEX_ONLY.analyzed
    assert IndexMode.INDEX_AND_STORE.stored and IndexMode.INDEX_AND_STORE.analyzed
    assert IndexMode.TEXT_AND_STORE.indexed and not IndexMode.TEXT_AND_STORE.analyzed
    assert not IndexMode.STORE_ONLY.indexed
    assert IndexMode.PRIMARY_KEY.stored and not IndexMode.PRIMARY_KEY.analyzed


def test_module_level_define_uses_default_registry() -> None:
    """define() registers on the process-wide registry."""

    class Ephemeral:
        pass

    try:
        define(Ephemeral, "name", lambda e: "x")
        assert Ephemeral in default_registry
    finally:
        default_registry.clear()
