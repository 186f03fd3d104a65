"""Document builder tests."""

from conftest import Recipe

from objindex.documents import build_document
from objindex.errors import ExtractionError
from objindex.registry import IndexMode, TypeRegistry


def test_builds_all_fields(recipe_registry: TypeRegistry) -> None:
    """Every successful extractor contributes a field."""
    document = build_document(Recipe(1, "apple pie"), recipe_registry.get(Recipe))
    assert document.stored_fields == {"id": "1", "title": "apple pie"}
    assert document.key_term == ("id", "1")
    assert document.failures == []


def test_failing_extractor_omits_only_its_field(recipe_registry: TypeRegistry) -> None:
    """A raising extractor drops its field and records a diagnostic."""
    recipe_registry.define(Recipe, "notes", lambda r: r.missing)
    document = build_document(Recipe(1, "apple pie"), recipe_registry.get(Recipe))

    assert set(document.stored_fields) == {"id", "title"}
    assert len(document.failures) == 1
    failure = document.failures[0]
    assert failure.field == "notes"
    assert isinstance(failure.error, ExtractionError)
    assert isinstance(failure.error.cause, AttributeError)


def test_none_value_is_a_failure(registry: TypeRegistry) -> None:
    """An extractor returning None is treated as a failed extraction."""
    registry.define(Recipe, "title", lambda r: None)
    document = build_document(Recipe(1, "x"), registry.get(Recipe))
    assert document.fields == []
    assert document.failures[0].error.cause is None


def test_non_string_values_are_converted(registry: TypeRegistry) -> None:
    """Extracted values are stringified."""
    registry.define(Recipe, "id", lambda r: r.id, IndexMode.TEXT_AND_STORE)
    document = build_document(Recipe(42, "x"), registry.get(Recipe))
    assert document.stored_fields == {"id": "42"}
    assert document.exact_terms == [("id", "42")]


def test_failed_primary_key_leaves_no_key_term(registry: TypeRegistry) -> None:
    """Without an extractable key the document is a plain insert."""
    registry.define(Recipe, "id", lambda r: 1 / 0, IndexMode.PRIMARY_KEY)
    registry.define(Recipe, "title", lambda r: r.title)
    document = build_document(Recipe(1, "soup"), registry.get(Recipe))
    assert document.key_term is None
    assert document.stored_fields == {"title": "soup"}


def test_modes_shape_field_flags(registry: TypeRegistry) -> None:
    """Index-only values are not stored; store-only values are not indexed."""
    registry.define(Recipe, "title", lambda r: r.title, IndexMode.INDEX_ONLY)
    registry.define(Recipe, "notes", lambda r: r.notes, IndexMode.STORE_ONLY)
    document = build_document(Recipe(1, "soup", "hot"), registry.get(Recipe))
    assert document.stored_fields == {"notes": "hot"}
    assert document.indexed_fields == {"title": "soup"}


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no text")


def test_failing_str_conversion_is_isolated(registry: TypeRegistry) -> None:
    """A value that cannot be turned into text only drops its field."""
    registry.define(Recipe, "title", lambda r: r.title)
    registry.define(Recipe, "notes", lambda r: _Unprintable())
    document = build_document(Recipe(1, "soup"), registry.get(Recipe))

    assert document.stored_fields == {"title": "soup"}
    assert document.failures[0].field == "notes"
    assert isinstance(document.failures[0].error.cause, RuntimeError)


def test_unencodable_text_is_isolated(registry: TypeRegistry) -> None:
    """Text with lone surrogates is rejected as an extraction failure."""
    registry.define(Recipe, "id", lambda r: str(r.id), IndexMode.PRIMARY_KEY)
    registry.define(Recipe, "title", lambda r: r.title)
    document = build_document(Recipe(2, "st\udcffew"), registry.get(Recipe))

    assert document.stored_fields == {"id": "2"}
    assert document.key_term == ("id", "2")
    assert isinstance(document.failures[0].error.cause, UnicodeEncodeError)
