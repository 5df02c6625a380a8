"""Transcoder between configuration XML documents and their JSON form."""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .config import TranscoderConfig
from .errors import ConversionError, SchemaError
from .logger import LogLevel, create_logger
from .marshaller import JsonMarshaller, JsonUnmarshaller, XmlMarshaller, XmlUnmarshaller
from .parser import XSDParser
from .registry import DynamicTypeRegistry
from .resources import SchemaResourceLoader
from .schema_model import SchemaDefinition, TypeDescriptor
from .value_tags import ValueTagProcessor, dump_json, load_json


@dataclass(frozen=True)
class ConversionContext:
    """Everything a conversion needs, built once per configuration kind."""
    definition: SchemaDefinition
    registry: DynamicTypeRegistry
    overrides: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    @property
    def root_type(self) -> TypeDescriptor:
        return self.registry.resolve_root_type()


def build_context(config: TranscoderConfig, loader: Optional[SchemaResourceLoader] = None) -> ConversionContext:
    """Load the schema resource and derive a conversion context from it.

    Any failure is a SchemaError; no partial context is returned.
    """
    errors = config.validate()
    if errors:
        raise SchemaError("Invalid transcoder configuration: " + "; ".join(errors))

    level = config.logging.level
    loader = loader or SchemaResourceLoader(config.schema_paths, level=level)

    path = loader.locate(config.schema_resource)
    schema_text = loader.load(str(path))

    parser = XSDParser(namespace_marker=config.namespace_marker, level=level)
    definition = parser.load(schema_text, config.root_element, base_url=str(path.resolve().parent))

    registry = DynamicTypeRegistry(definition, root_type=config.root_type_name, level=level)
    registry.resolve_root_type()

    return ConversionContext(definition=definition, registry=registry, overrides=config.overrides)


class Transcoder:
    """Converts documents of one configuration kind between XML and JSON.

    Instances are immutable after construction and safe to share between
    threads; every call allocates its own marshalling state.
    """

    def __init__(self, context: ConversionContext, pretty: bool = False, level: LogLevel = LogLevel.INFO):
        self.context = context
        self.pretty = pretty
        self.logger = create_logger(level=level, component="converter")

        # fail at construction when the root type cannot be resolved
        self.root_type = context.registry.resolve_root_type()
        self.value_tags = ValueTagProcessor(context.overrides, level=level)

        # marshallers keep no per-call state
        self._xml_reader = XmlUnmarshaller(context.registry, level=level)
        self._json_reader = JsonUnmarshaller(context.registry, level=level)
        self._json_writer = JsonMarshaller()
        self._xml_writer = XmlMarshaller(
            context.definition.namespace,
            context.definition.root_element,
            pretty=pretty,
        )

        self.logger.info(
            "Transcoder initialized",
            namespace=context.definition.namespace,
            rootElement=context.definition.root_element,
            typeName=self.root_type.qualified_name,
            overrides=dict(context.overrides),
        )

    @classmethod
    def from_config(cls, config: TranscoderConfig, loader: Optional[SchemaResourceLoader] = None) -> "Transcoder":
        """Build a transcoder from configuration, loading the schema resource."""
        context = build_context(config, loader)
        return cls(context, pretty=config.serializer.pretty, level=config.logging.level)

    @property
    def root_element(self) -> str:
        return self.context.definition.root_element

    def xml_to_json(self, source_xml: str) -> str:
        """Convert an XML document to JSON without a root wrapper.

        Text content of elements that also carry attributes or children
        appears under the value sentinel, renamed per the override map;
        blank sentinel values are dropped.
        """
        start_time = time.time()
        try:
            entity = self._xml_reader.unmarshal(source_xml)
            tree = self._json_writer.marshal(entity)
            json_text = dump_json(tree, pretty=self.pretty)
            result = self.value_tags.process(json_text, pretty=self.pretty, tree=tree)
        except ConversionError as e:
            self.logger.error("XML to JSON conversion failed", error=str(e))
            raise
        except (ValueError, TypeError, KeyError, RecursionError) as e:
            self.logger.error("XML to JSON conversion failed", error=str(e), errorType=type(e).__name__)
            raise ConversionError("XML to JSON conversion failed", e) from e

        self.logger.performance_metric("xmlToJson", time.time() - start_time, unit="s")
        return result

    def json_to_xml(self, json_str: str) -> str:
        """Convert JSON shaped like :meth:`xml_to_json` output back to XML.

        The override map is not applied in reverse; text content is read
        from the default sentinel key.
        """
        start_time = time.time()
        try:
            tree = load_json(json_str)
            entity = self._json_reader.unmarshal(tree, self.root_type)
            result = self._xml_writer.marshal(entity)
        except ConversionError as e:
            self.logger.error("JSON to XML conversion failed", error=str(e))
            raise
        except (ValueError, TypeError, KeyError, RecursionError) as e:
            self.logger.error("JSON to XML conversion failed", error=str(e), errorType=type(e).__name__)
            raise ConversionError("JSON to XML conversion failed", e) from e

        self.logger.performance_metric("jsonToXml", time.time() - start_time, unit="s")
        return result
