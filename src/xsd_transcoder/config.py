"""Configuration management for the XSD transcoder."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .logger import LogLevel

DEFAULT_NAMESPACE_MARKER = "opennms"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO


@dataclass
class SerializerConfig:
    """Output serialization configuration."""
    pretty: bool = False


@dataclass
class TranscoderConfig:
    """Configuration for one configuration kind handled by the transcoder."""

    # Schema wiring
    schema_resource: Optional[str] = None
    root_element: Optional[str] = None
    overrides: Dict[str, str] = field(default_factory=dict)
    root_type_name: Optional[str] = None  # explicit qualified name, bypasses namespace mapping
    namespace_marker: str = DEFAULT_NAMESPACE_MARKER
    schema_paths: List[Path] = field(default_factory=list)

    # System Configuration
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    serializer: SerializerConfig = field(default_factory=SerializerConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return any errors."""
        errors = []

        if not self.schema_resource:
            errors.append("schema_resource is required")

        if not self.root_element:
            errors.append("root_element is required")

        if not self.namespace_marker:
            errors.append("namespace_marker must not be empty")

        for element_name, value_name in self.overrides.items():
            if not element_name or not value_name:
                errors.append(f"Invalid override entry: {element_name!r} -> {value_name!r}")

        for path in self.schema_paths:
            if not Path(path).is_dir():
                errors.append(f"Schema search path is not a directory: {path}")

        return errors

    @classmethod
    def from_cli_args(cls, **kwargs) -> "TranscoderConfig":
        """Create config from CLI arguments."""
        config = cls()

        # Update with provided arguments
        for key, value in kwargs.items():
            if hasattr(config, key) and value is not None:
                setattr(config, key, value)

        if kwargs.get("schema_paths"):
            config.schema_paths = [Path(p) for p in kwargs["schema_paths"]]

        if kwargs.get("pretty") is not None:
            config.serializer.pretty = kwargs["pretty"]

        # Handle logging level
        if kwargs.get("log_level"):
            config.logging.level = LogLevel(kwargs["log_level"])

        return config


def parse_overrides(entries: List[str]) -> Dict[str, str]:
    """Parse ``element=valueKey`` override entries into a mapping."""
    overrides = {}
    for entry in entries:
        element_name, sep, value_name = entry.partition("=")
        if not sep or not element_name.strip() or not value_name.strip():
            raise ValueError(f"Override must look like element=valueKey: {entry!r}")
        overrides[element_name.strip()] = value_name.strip()
    return overrides
