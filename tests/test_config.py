"""Settings and logging configuration tests."""

from pathlib import Path

import pytest
import structlog

from objindex.config import Settings
from objindex.logging import configure_logging


def test_defaults() -> None:
    """Defaults match the documented values."""
    settings = Settings()
    assert settings.index_name == "index"
    assert settings.default_field == "headline"
    assert settings.max_results == 100
    assert settings.time_slice_ms == 13


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """OBJINDEX_ variables override defaults."""
    monkeypatch.setenv("OBJINDEX_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("OBJINDEX_TIME_SLICE_MS", "5")
    monkeypatch.setenv("OBJINDEX_DEFAULT_FIELD", "title")

    settings = Settings()

    assert settings.data_root == tmp_path
    assert settings.time_slice_ms == 5
    assert settings.default_field == "title"


@pytest.mark.parametrize("json_output", [True, False])
def test_configure_logging(capsys: pytest.CaptureFixture[str], json_output: bool) -> None:
    """Configured loggers write events to stderr."""
    configure_logging(debug=True, json_output=json_output)
    try:
        structlog.get_logger().info("search_completed", total=3)
        assert "search_completed" in capsys.readouterr().err
    finally:
        structlog.reset_defaults()
