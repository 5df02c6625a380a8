"""Schema loading using the xmlschema library."""

from typing import List, Optional, Set
from xml.etree.ElementTree import ParseError

import xmlschema

from .config import DEFAULT_NAMESPACE_MARKER
from .errors import AmbiguousNamespaceError, SchemaParseError
from .logger import LogLevel, create_logger
from .schema_model import SchemaDefinition


def build_xmlschema(xsd_content: str, base_url: Optional[str] = None) -> xmlschema.XMLSchema:
    """Build an xmlschema object from XSD text, mapping failures to SchemaParseError."""
    try:
        return xmlschema.XMLSchema(xsd_content, base_url=base_url)
    except (xmlschema.XMLSchemaException, ParseError, ValueError, TypeError, OSError) as e:
        raise SchemaParseError(f"Cannot parse schema: {e}") from e


class XSDParser:
    """Turns XSD text into a SchemaDefinition.

    The platform namespace is the single target namespace, among the schema
    and everything it imports or includes, that contains the marker.
    """

    def __init__(self, namespace_marker: str = DEFAULT_NAMESPACE_MARKER, level: LogLevel = LogLevel.INFO):
        self.namespace_marker = namespace_marker
        self.logger = create_logger(level=level, component="parser")

    def load(self, schema_text: str, root_element: str, base_url: Optional[str] = None) -> SchemaDefinition:
        """Parse ``schema_text`` and resolve its platform namespace."""
        self.logger.info("Starting XSD parsing", rootElement=root_element)

        try:
            xsd = build_xmlschema(schema_text, base_url)
        except SchemaParseError as e:
            self.logger.error("XMLSchema parsing error", error=str(e.__cause__), errorType=type(e.__cause__).__name__)
            raise

        namespaces = self.find_platform_namespaces(xsd)
        if len(namespaces) != 1:
            self.logger.error(
                f"XSD must contain exactly one '{self.namespace_marker}' namespace",
                namespaces=namespaces,
            )
            raise AmbiguousNamespaceError(
                f"XSD must contain exactly one '{self.namespace_marker}' namespace, found {len(namespaces)}: {namespaces}"
            )

        self.logger.info("XSD parsed", namespace=namespaces[0], rootElement=root_element)
        return SchemaDefinition(
            xsd_content=schema_text,
            namespace=namespaces[0],
            root_element=root_element,
            location=base_url,
        )

    def find_platform_namespaces(self, xsd: xmlschema.XMLSchema) -> List[str]:
        """Sorted target namespaces containing the marker."""
        return sorted(ns for ns in self._collect_namespaces(xsd) if self.namespace_marker in ns)

    def _collect_namespaces(self, xsd: xmlschema.XMLSchema) -> Set[str]:
        namespaces: Set[str] = set()
        pending = [xsd]
        seen = set()

        while pending:
            schema = pending.pop()
            if id(schema) in seen:
                continue
            seen.add(id(schema))

            if schema.target_namespace:
                namespaces.add(schema.target_namespace)

            pending.extend(s for s in schema.imports.values() if s is not None)
            pending.extend(s for s in schema.includes.values() if s is not None)

        self.logger.debug("Collected schema namespaces", namespaces=sorted(namespaces))
        return namespaces
