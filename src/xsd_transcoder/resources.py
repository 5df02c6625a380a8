"""Schema resource loading."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import SchemaResourceNotFoundError
from .logger import LogLevel, create_logger


class SchemaResourceLoader:
    """Resolves a schema resource identifier to its XSD text.

    An identifier is either a path to an existing file or a file name
    looked up in the configured search paths, in order.
    """

    def __init__(self, search_paths: Optional[Iterable[Union[str, Path]]] = None,
                 level: LogLevel = LogLevel.INFO):
        self.search_paths: List[Path] = [Path(p) for p in (search_paths or [])]
        self.logger = create_logger(level=level, component="resources")

    def locate(self, resource: str) -> Path:
        """Find the file backing a schema resource identifier."""
        candidate = Path(resource)
        if candidate.is_file():
            return candidate

        for directory in self.search_paths:
            path = directory / resource
            if path.is_file():
                return path

        self.logger.error(
            "Schema resource not found",
            schema=resource,
            searchPaths=[str(p) for p in self.search_paths],
        )
        raise SchemaResourceNotFoundError(f"Schema resource not found: {resource}")

    def load(self, resource: str) -> str:
        """Return the schema text for ``resource``."""
        path = self.locate(resource)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Cannot read schema resource", schema=str(path), error=str(e))
            raise SchemaResourceNotFoundError(f"Cannot read schema resource {path}: {e}") from e

        self.logger.schema_event("loaded", str(path), size=len(text))
        return text
