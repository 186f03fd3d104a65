"""Pytest configuration and fixtures."""

import sys
from dataclasses import dataclass
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from objindex.config import Settings
from objindex.engine import ObjectIndex
from objindex.registry import IndexMode, TypeRegistry


@dataclass
class Recipe:
    """Record type used throughout the tests."""

    id: int
    title: str
    notes: str = ""


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings rooted in a temporary directory."""
    return Settings(data_root=tmp_path / "data", time_slice_ms=10_000)


@pytest.fixture
def registry() -> TypeRegistry:
    """Create an empty registry isolated from the process-wide one."""
    return TypeRegistry()


@pytest.fixture
def recipe_registry(registry: TypeRegistry) -> TypeRegistry:
    """Registry with Recipe keyed by id and a searchable title."""
    registry.define(Recipe, "id", lambda r: str(r.id), IndexMode.PRIMARY_KEY)
    registry.define(Recipe, "title", lambda r: r.title, IndexMode.INDEX_AND_STORE)
    return registry


@pytest.fixture
def engine(settings: Settings, recipe_registry: TypeRegistry) -> ObjectIndex:
    """Create an object index over the Recipe registry."""
    return ObjectIndex("recipes", settings=settings, registry=recipe_registry)
