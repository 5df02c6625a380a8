"""Configuration definitions and the per-kind transcoder registry."""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .config import DEFAULT_NAMESPACE_MARKER, LoggingConfig, TranscoderConfig
from .converter import Transcoder
from .logger import LogLevel, create_logger
from .resources import SchemaResourceLoader


@dataclass(frozen=True)
class ConfigDefinition:
    """Wiring for one configuration kind, as supplied by the configuration store."""
    config_name: str
    schema_resource: str
    root_element: str
    overrides: Mapping[str, str] = field(default_factory=dict)
    root_type_name: Optional[str] = None
    namespace_marker: str = DEFAULT_NAMESPACE_MARKER

    def to_config(self, schema_paths: Optional[List[Path]] = None,
                  level: LogLevel = LogLevel.INFO) -> TranscoderConfig:
        return TranscoderConfig(
            schema_resource=self.schema_resource,
            root_element=self.root_element,
            overrides=dict(self.overrides),
            root_type_name=self.root_type_name,
            namespace_marker=self.namespace_marker,
            schema_paths=list(schema_paths or []),
            logging=LoggingConfig(level=level),
        )


class _Entry:
    """A definition plus its lazily built transcoder."""

    __slots__ = ("definition", "transcoder", "lock")

    def __init__(self, definition: ConfigDefinition):
        self.definition = definition
        self.transcoder: Optional[Transcoder] = None
        self.lock = threading.Lock()


class TranscoderRegistry:
    """Holds configuration definitions and builds each transcoder at most once.

    Construction happens on first use. Concurrent first uses of the same
    definition wait for a single build; a failed build is not cached.
    """

    def __init__(self, schema_paths: Optional[List[Path]] = None, level: LogLevel = LogLevel.INFO):
        self.schema_paths = [Path(p) for p in (schema_paths or [])]
        self.level = level
        self.logger = create_logger(level=level, component="definitions")
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def register(self, definition: ConfigDefinition) -> None:
        """Register or replace a definition; replacing drops the built transcoder."""
        with self._lock:
            replaced = definition.config_name in self._entries
            self._entries[definition.config_name] = _Entry(definition)
        self.logger.info(
            "Config definition replaced" if replaced else "Config definition registered",
            configName=definition.config_name,
            schema=definition.schema_resource,
        )

    def unregister(self, config_name: str) -> None:
        with self._lock:
            self._entries.pop(config_name, None)
        self.logger.info("Config definition unregistered", configName=config_name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def get_definition(self, config_name: str) -> ConfigDefinition:
        return self._entry(config_name).definition

    def get_transcoder(self, config_name: str) -> Transcoder:
        """Transcoder for ``config_name``, building it on first use."""
        entry = self._entry(config_name)
        transcoder = entry.transcoder
        if transcoder is not None:
            return transcoder

        with entry.lock:
            if entry.transcoder is None:
                self.logger.info("Building transcoder", configName=config_name)
                config = entry.definition.to_config(self.schema_paths, self.level)
                loader = SchemaResourceLoader(self.schema_paths, level=self.level)
                entry.transcoder = Transcoder.from_config(config, loader)
            return entry.transcoder

    def xml_to_json(self, config_name: str, source_xml: str) -> str:
        return self.get_transcoder(config_name).xml_to_json(source_xml)

    def json_to_xml(self, config_name: str, json_str: str) -> str:
        return self.get_transcoder(config_name).json_to_xml(json_str)

    def _entry(self, config_name: str) -> _Entry:
        with self._lock:
            try:
                return self._entries[config_name]
            except KeyError:
                raise KeyError(f"No config definition registered for {config_name!r}") from None
