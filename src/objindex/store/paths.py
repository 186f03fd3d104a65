"""Resolution of named indexes to backing store locations."""
import re
from pathlib import Path

from objindex.errors import ConfigurationError

INDEX_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

DATABASE_FILENAME = "index.db"


def resolve_store(data_root: Path, name: str) -> Path:
    """Resolve an index name to its directory under the data root.

    Args:
        data_root: Directory holding all backing stores.
        name: Index name, a single path component.

    Returns:
        Absolute path of the backing store directory.

    Raises:
        ConfigurationError: If the name is empty, contains path separators
            or traversal sequences, or resolves outside the data root.
    """
    if not name or "\0" in name:
        raise ConfigurationError(f"Invalid index name: {name!r}")

    if ".." in name or not INDEX_NAME_PATTERN.match(name):
        raise ConfigurationError(f"Invalid index name: {name!r}")

    root = Path(data_root).expanduser().resolve()
    resolved = (root / name).resolve()

    if resolved.parent != root:
        raise ConfigurationError(f"Index name resolves outside data root: {name!r}")

    return resolved
