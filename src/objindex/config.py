"""Index configuration loaded from environment variables."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Index configuration loaded from environment variables.

    Attributes:
        data_root: Directory holding one backing store per named index.
        index_name: Name of the index used when none is given.
        default_field: Field that unqualified query terms are matched against.
        max_results: Default cap on the number of search hits.
        time_slice_ms: Work budget between progress reports when indexing.
        write_lock_timeout: Seconds to wait for another write session to end.
        busy_timeout_ms: SQLite busy timeout for store connections.
        tokenizer: FTS5 tokenizer specification for analyzed fields.
        debug: Enable debug-level logging.
    """

    model_config = SettingsConfigDict(
        env_prefix="OBJINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_root: Path = Field(default_factory=lambda: Path.home() / ".objindex")
    index_name: str = "index"
    default_field: str = "headline"
    max_results: int = Field(default=100, gt=0)
    time_slice_ms: int = Field(default=13, ge=0)
    write_lock_timeout: float = 5.0
    busy_timeout_ms: int = 5000
    tokenizer: str = "porter unicode61"
    debug: bool = False
