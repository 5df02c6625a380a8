"""Marshalling between XML text, dynamic entities and JSON trees."""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from xml.etree import ElementTree
from xml.etree.ElementTree import ParseError

import xmlschema

from .errors import ConversionError
from .logger import LogLevel, create_logger
from .registry import DynamicTypeRegistry
from .schema_model import VALUE_TAG, DynamicEntity, FieldDescriptor, ScalarKind, TypeDescriptor

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

_INTEGRAL_LITERAL = re.compile(r"^[+-]?\d+$")
# xs:decimal has no exponent form
_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

# xs:double/xs:float special values, kept as their lexical form in JSON
NON_FINITE_LITERALS = {"INF": "INF", "+INF": "INF", "-INF": "-INF", "NaN": "NaN"}


def split_tag(tag: str):
    """Split ``{namespace}local`` into ``(namespace, local)``."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


def parse_scalar(text: str, kind: ScalarKind, where: str) -> Optional[Any]:
    """Convert XML text to the Python scalar for ``kind``.

    Blank text of a non-string kind is treated as absent. Decimals keep
    every digit; ``INF``, ``-INF`` and ``NaN`` doubles stay strings.
    """
    if kind == ScalarKind.STRING:
        return text

    literal = text.strip()
    if not literal:
        return None

    try:
        if kind == ScalarKind.INTEGER:
            return int(literal)
        if kind == ScalarKind.DECIMAL:
            if not _DECIMAL_LITERAL.match(literal):
                raise ValueError(literal)
            return Decimal(literal)
        if kind == ScalarKind.NUMBER:
            if literal in NON_FINITE_LITERALS:
                return NON_FINITE_LITERALS[literal]
            if _INTEGRAL_LITERAL.match(literal):
                return int(literal)
            number = float(literal)
            if not math.isfinite(number):
                raise ValueError(literal)
            return number
    except (ValueError, InvalidOperation) as e:
        raise ConversionError(f"Invalid {kind.value} value for {where}: {literal!r}", e) from e

    if literal in ("true", "1"):
        return True
    if literal in ("false", "0"):
        return False
    raise ConversionError(f"Invalid boolean value for {where}: {literal!r}")


def coerce_json_scalar(node: Any, kind: ScalarKind, where: str) -> Any:
    """Validate a JSON scalar against ``kind``, converting string literals."""
    if isinstance(node, (dict, list)):
        raise ConversionError(f"Expected a {kind.value} for {where}, got {type(node).__name__}")

    if kind == ScalarKind.STRING:
        return node
    if isinstance(node, str):
        return parse_scalar(node, kind, where)
    if kind == ScalarKind.BOOLEAN:
        if isinstance(node, bool):
            return node
    elif not isinstance(node, bool):
        if kind == ScalarKind.DECIMAL:
            number = node if isinstance(node, (int, Decimal)) else Decimal(repr(node))
            if isinstance(number, int) or number.is_finite():
                return number
        elif kind == ScalarKind.NUMBER:
            if isinstance(node, int):
                return node
            number = float(node)
            if math.isfinite(number):
                return number
        elif isinstance(node, int):
            return node
        elif isinstance(node, float) and math.isfinite(node) and node.is_integer():
            return int(node)
        elif isinstance(node, Decimal) and node.is_finite() and node == node.to_integral_value():
            return int(node)
    raise ConversionError(f"Expected a {kind.value} for {where}, got {node!r}")


def format_scalar(value: Any) -> str:
    """Render a scalar as XML text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return "NaN"
        return "INF" if value > 0 else "-INF"
    return str(value)
class XmlUnmarshaller:
    """Reads XML documents into dynamic entities."""

    def __init__(self, registry: DynamicTypeRegistry, level: LogLevel = LogLevel.INFO):
        self.registry = registry
        self.namespace = registry.definition.namespace
        self.root_element = registry.definition.root_element
        self.logger = create_logger(level=level, component="xml_unmarshaller")

    def unmarshal(self, xml_text: str) -> DynamicEntity:
        # XMLResource treats non-markup strings as locations
        if not isinstance(xml_text, str) or not xml_text.lstrip().startswith("<"):
            raise ConversionError("Malformed XML document: input is not XML markup")

        try:
            resource = xmlschema.XMLResource(xml_text)
        except (xmlschema.XMLSchemaException, ParseError, OSError, ValueError, TypeError) as e:
            raise ConversionError("Malformed XML document", e) from e

        root = resource.root
        self.rebind_namespace(root)

        _, local = split_tag(root.tag)
        if local != self.root_element:
            raise ConversionError(f"Expected root element {self.root_element!r}, found {local!r}")

        return self._read_entity(root, self.registry.resolve_root_type(), local)

    def rebind_namespace(self, root: ElementTree.Element) -> None:
        """Move every element into the target namespace."""
        for elem in root.iter():
            if isinstance(elem.tag, str):
                _, local = split_tag(elem.tag)
                elem.tag = f"{{{self.namespace}}}{local}"

    def _read_entity(self, elem: ElementTree.Element, descriptor: TypeDescriptor, path: str) -> DynamicEntity:
        entity = DynamicEntity(descriptor)

        for key, raw in elem.attrib.items():
            namespace, name = split_tag(key)
            if namespace == XSI_NAMESPACE:
                continue
            field = descriptor.get_field(name)
            if field is None or not field.is_attribute:
                self.logger.debug("Ignoring undeclared attribute", typeName=descriptor.qualified_name, attribute=name)
                continue
            entity.set(name, parse_scalar(raw, field.scalar, f"{path}/@{name}"))

        for child in elem:
            if not isinstance(child.tag, str):
                continue
            _, name = split_tag(child.tag)
            field = descriptor.get_field(name)
            if field is None or field.is_attribute:
                self.logger.debug("Ignoring undeclared element", typeName=descriptor.qualified_name, element=name)
                continue

            child_path = f"{path}/{name}"
            if field.is_complex:
                value = self._read_entity(child, self.registry.resolve(field.type_name), child_path)
            else:
                value = parse_scalar(child.text or "", field.scalar, child_path)
            if value is None:
                continue

            if field.multiple:
                entity.append(name, value)
            else:
                entity.set(name, value)

        if descriptor.has_value:
            text = (elem.text or "") + "".join(child.tail or "" for child in elem)
            entity.value = parse_scalar(text, descriptor.value_scalar, f"{path}/text()")

        return entity


class JsonMarshaller:
    """Turns dynamic entities into JSON trees without a root wrapper."""

    def __init__(self, value_tag: str = VALUE_TAG):
        self.value_tag = value_tag

    def marshal(self, entity: DynamicEntity) -> Dict[str, Any]:
        tree: Dict[str, Any] = {}
        for field, value in entity.items():
            if field.multiple:
                tree[field.name] = [self._node(item) for item in value]
            else:
                tree[field.name] = self._node(value)

        if entity.descriptor.has_value and entity.value is not None:
            tree[self.value_tag] = entity.value
        return tree

    def _node(self, value: Any) -> Any:
        if isinstance(value, DynamicEntity):
            return self.marshal(value)
        return value


class JsonUnmarshaller:
    """Reads JSON trees into dynamic entities."""

    def __init__(self, registry: DynamicTypeRegistry, value_tag: str = VALUE_TAG,
                 level: LogLevel = LogLevel.INFO):
        self.registry = registry
        self.value_tag = value_tag
        self.logger = create_logger(level=level, component="json_unmarshaller")

    def unmarshal(self, tree: Any, descriptor: TypeDescriptor, path: str = "$") -> DynamicEntity:
        if not isinstance(tree, dict):
            raise ConversionError(f"Expected a JSON object at {path}, got {type(tree).__name__}")

        entity = DynamicEntity(descriptor)
        for key, node in tree.items():
            node_path = f"{path}.{key}"
            if key == self.value_tag and descriptor.has_value:
                if node is not None:
                    entity.value = coerce_json_scalar(node, descriptor.value_scalar, node_path)
                continue

            field = descriptor.get_field(key)
            if field is None:
                self.logger.warn("Ignoring undeclared JSON key", typeName=descriptor.qualified_name, key=key)
                continue
            if node is None:
                continue

            if field.multiple:
                items = node if isinstance(node, list) else [node]
                values = [self._read(field, item, f"{node_path}[{i}]") for i, item in enumerate(items) if item is not None]
                entity.set(key, [v for v in values if v is not None] or None)
            elif isinstance(node, list):
                raise ConversionError(f"Expected a single value at {node_path}, got an array")
            else:
                entity.set(key, self._read(field, node, node_path))

        return entity

    def _read(self, field: FieldDescriptor, node: Any, path: str) -> Any:
        if not field.is_complex:
            return coerce_json_scalar(node, field.scalar, path)

        descriptor = self.registry.resolve(field.type_name)
        if isinstance(node, dict):
            return self.unmarshal(node, descriptor, path)
        if descriptor.has_value and not isinstance(node, list):
            # bare scalar for an element that only carries text
            entity = DynamicEntity(descriptor)
            entity.value = coerce_json_scalar(node, descriptor.value_scalar, path)
            return entity
        raise ConversionError(f"Expected a JSON object at {path}, got {type(node).__name__}")


class XmlMarshaller:
    """Writes dynamic entities as canonical XML text."""

    def __init__(self, namespace: str, root_element: str, pretty: bool = False, xml_declaration: bool = True):
        self.namespace = namespace
        self.root_element = root_element
        self.pretty = pretty
        self.xml_declaration = xml_declaration

    def marshal(self, entity: DynamicEntity) -> str:
        # the target namespace is declared as a plain attribute: ElementTree's
        # default_namespace option rejects unqualified attribute names
        root = ElementTree.Element(self.root_element, {"xmlns": self.namespace})
        self._write_entity(root, entity)

        if self.pretty:
            ElementTree.indent(root)

        body = ElementTree.tostring(root, encoding="unicode")
        if self.xml_declaration:
            return '<?xml version="1.0" encoding="UTF-8"?>\n' + body
        return body

    def _tag(self, field: FieldDescriptor) -> str:
        if field.namespace is None or field.namespace == self.namespace:
            return field.name
        return f"{{{field.namespace}}}{field.name}"

    def _write_entity(self, elem: ElementTree.Element, entity: DynamicEntity) -> None:
        for field, value in entity.items():
            if field.is_attribute:
                elem.set(field.name, format_scalar(value))

        if entity.descriptor.has_value and entity.value is not None:
            elem.text = format_scalar(entity.value)

        for field, value in entity.items():
            if field.is_attribute:
                continue
            tag = self._tag(field)
            for item in (value if field.multiple else [value]):
                child = ElementTree.SubElement(elem, tag)
                if field.namespace is None:
                    child.set("xmlns", "")
                if isinstance(item, DynamicEntity):
                    self._write_entity(child, item)
                else:
                    child.text = format_scalar(item)
