"""Runtime type registry derived from an XSD via the xmlschema component model."""

from typing import Dict, Iterator, List, Optional

import xmlschema
from xmlschema.validators import XsdAttribute, XsdElement, XsdGroup

from .errors import SchemaError, UnknownRootTypeError, ValueTagCollisionError
from .logger import LogLevel, create_logger
from .namespace import element_to_class_name, namespace_to_identifier, root_type_name
from .parser import build_xmlschema
from .schema_model import (
    VALUE_TAG, DynamicEntity, FieldDescriptor, FieldKind, ScalarKind,
    SchemaDefinition, TypeDescriptor,
)

XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema"

_BUILTIN_SCALARS = {
    "boolean": ScalarKind.BOOLEAN,
    "decimal": ScalarKind.DECIMAL,
    "double": ScalarKind.NUMBER,
    "float": ScalarKind.NUMBER,
}
_BUILTIN_SCALARS.update(
    (name, ScalarKind.INTEGER) for name in (
        "integer", "int", "long", "short", "byte",
        "nonNegativeInteger", "positiveInteger", "nonPositiveInteger", "negativeInteger",
        "unsignedLong", "unsignedInt", "unsignedShort", "unsignedByte",
    )
)


def scalar_kind(simple_type) -> ScalarKind:
    """Map an XSD simple type to its JSON scalar kind by walking its base types."""
    if getattr(simple_type, "item_type", None) is not None or getattr(simple_type, "member_types", None):
        return ScalarKind.STRING  # lists and unions

    current = simple_type
    while current is not None:
        name = getattr(current, "name", None)
        if name and name.startswith(f"{{{XSD_NAMESPACE}}}"):
            kind = _BUILTIN_SCALARS.get(current.local_name)
            if kind is not None:
                return kind
        current = getattr(current, "base_type", None)
    return ScalarKind.STRING


class DynamicTypeRegistry:
    """Table of type descriptors keyed by qualified type name.

    Named complex types register as ``<package>.<ClassName>``; anonymous
    types nest under their owner (``<package>.<Owner>.<Child>``). Global
    elements of a named type get an alias under the element-derived name,
    which no type-derived name may take.
    """

    def __init__(self, definition: SchemaDefinition, root_type: Optional[str] = None,
                 level: LogLevel = LogLevel.INFO):
        self.definition = definition
        self.logger = create_logger(level=level, component="registry")
        self.root_type_name = root_type_name(definition.namespace, definition.root_element, root_type)
        self.package = namespace_to_identifier(definition.namespace)

        self._types: Dict[str, TypeDescriptor] = {}
        self._names_by_id: Dict[int, str] = {}
        self._reserved: Dict[str, object] = {}

        xsd = build_xmlschema(definition.xsd_content, definition.location)
        self._build(xsd)

        self.logger.info(
            "Type registry built",
            namespace=definition.namespace,
            types=len(self._types),
            rootType=self.root_type_name,
        )

    @classmethod
    def from_definition(cls, definition: SchemaDefinition, root_type: Optional[str] = None,
                        level: LogLevel = LogLevel.INFO) -> "DynamicTypeRegistry":
        return cls(definition, root_type=root_type, level=level)

    def resolve_root_type(self) -> TypeDescriptor:
        """Descriptor of the schema's root type."""
        return self.resolve(self.root_type_name)

    def resolve(self, qualified_name: str) -> TypeDescriptor:
        try:
            return self._types[qualified_name]
        except KeyError:
            self.logger.error("Unknown type", typeName=qualified_name)
            raise UnknownRootTypeError(f"Type {qualified_name!r} is not declared by the schema") from None

    def instantiate(self, qualified_name: str) -> DynamicEntity:
        """Create an empty entity of the named type."""
        return DynamicEntity(self.resolve(qualified_name))

    def type_names(self) -> List[str]:
        return sorted(self._types)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    # -- construction -----------------------------------------------------

    def _package_for(self, namespace: Optional[str]) -> str:
        if not namespace or namespace == self.definition.namespace:
            return self.package
        try:
            return namespace_to_identifier(namespace)
        except SchemaError:
            self.logger.debug("Namespace cannot be mapped, using schema package", namespace=namespace)
            return self.package

    def _element_type_name(self, element) -> str:
        return f"{self._package_for(element.target_namespace)}.{element_to_class_name(element.local_name)}"

    def _build(self, xsd: xmlschema.XMLSchema) -> None:
        elements = []
        for element in xsd.elements.values():
            if not element.type.is_complex():
                self.logger.debug("Skipping simple global element", elementName=element.local_name)
                continue
            elements.append(element)
            # element-derived names win over type-derived ones
            self._reserved.setdefault(self._element_type_name(element), element.type)

        for xsd_type in xsd.types.values():
            if xsd_type.is_complex():
                name = f"{self._package_for(xsd_type.target_namespace)}.{element_to_class_name(xsd_type.local_name)}"
                self._register_type(xsd_type, name)

        for element in elements:
            alias = self._element_type_name(element)
            actual = self._register_type(element.type, alias)
            if actual != alias and alias not in self._types:
                self._types[alias] = self._types[actual]
                self.logger.mapping_decision("element alias", element.local_name, alias, typeName=actual)

    def _unique_name(self, name: str, xsd_type) -> str:
        candidate, counter = name, 2
        taken = set(self._names_by_id.values()) | set(self._types)
        taken.update(reserved for reserved, owner in self._reserved.items() if owner is not xsd_type)
        while candidate in taken:
            candidate = f"{name}{counter}"
            counter += 1
        if candidate != name:
            self.logger.warn("Type name already taken, adding suffix", typeName=name, registeredAs=candidate)
        return candidate

    def _register_type(self, xsd_type, name: str) -> str:
        """Register a complex type (once) and return its qualified name."""
        known = self._names_by_id.get(id(xsd_type))
        if known is not None:
            return known

        name = self._unique_name(name, xsd_type)
        self._names_by_id[id(xsd_type)] = name

        fields: List[FieldDescriptor] = []
        self._add_attributes(xsd_type, fields)

        has_value = False
        value_scalar = ScalarKind.STRING
        if xsd_type.has_simple_content():
            has_value = True
            value_scalar = scalar_kind(xsd_type.content)
        else:
            if getattr(xsd_type, "mixed", False):
                has_value = True
            content = xsd_type.content
            if isinstance(content, XsdGroup):
                self._add_elements(content, name, fields, repeated=False, optional=False)

        seen = set()
        unique_fields = []
        for field_descriptor in fields:
            if field_descriptor.name == VALUE_TAG:
                self.logger.error("Schema field collides with value tag", typeName=name)
                raise ValueTagCollisionError(f"Type {name} declares a field named {VALUE_TAG!r}")
            if field_descriptor.name in seen:
                self.logger.warn("Duplicate field name ignored", typeName=name, field=field_descriptor.name)
                continue
            seen.add(field_descriptor.name)
            unique_fields.append(field_descriptor)

        self._types[name] = TypeDescriptor(
            qualified_name=name,
            xml_name=xsd_type.local_name or name.rsplit(".", 1)[-1],
            namespace=xsd_type.target_namespace or None,
            fields=tuple(unique_fields),
            has_value=has_value,
            value_scalar=value_scalar,
        )
        self.logger.debug("Registered type", typeName=name, fields=[str(f) for f in unique_fields])
        return name

    def _add_attributes(self, xsd_type, fields: List[FieldDescriptor]) -> None:
        for attribute in xsd_type.attributes.values():
            if not isinstance(attribute, XsdAttribute):
                continue  # anyAttribute wildcard
            fields.append(FieldDescriptor(
                name=attribute.local_name,
                kind=FieldKind.ATTRIBUTE,
                scalar=scalar_kind(attribute.type),
                required=attribute.use == "required",
            ))

    def _add_elements(self, group: XsdGroup, owner: str, fields: List[FieldDescriptor],
                      repeated: bool, optional: bool) -> None:
        repeated = repeated or group.is_multiple()
        optional = optional or group.min_occurs == 0

        for particle in group:
            if isinstance(particle, XsdGroup):
                self._add_elements(particle, owner, fields, repeated, optional or group.model == "choice")
            elif isinstance(particle, XsdElement):
                fields.append(self._element_field(particle, owner, repeated, optional or group.model == "choice"))
            else:
                self.logger.debug("Skipping wildcard particle", typeName=owner, particle=repr(particle))

    def _element_field(self, element: XsdElement, owner: str, repeated: bool, optional: bool) -> FieldDescriptor:
        namespace = element.target_namespace if getattr(element, "qualified", True) else None
        multiple = repeated or element.is_multiple()
        required = not optional and element.min_occurs > 0

        if element.type.is_complex():
            if element.type.is_global() or element.ref is not None or element.is_global():
                type_name = self._register_global_owner(element)
            else:
                type_name = self._register_type(element.type, f"{owner}.{element_to_class_name(element.local_name)}")
            return FieldDescriptor(
                name=element.local_name,
                kind=FieldKind.ELEMENT,
                scalar=None,
                type_name=type_name,
                multiple=multiple,
                required=required,
                namespace=namespace or None,
            )

        return FieldDescriptor(
            name=element.local_name,
            kind=FieldKind.ELEMENT,
            scalar=scalar_kind(element.type),
            multiple=multiple,
            required=required,
            namespace=namespace or None,
        )

    def _register_global_owner(self, element: XsdElement) -> str:
        """Qualified name for the type of a global element or of a named type."""
        xsd_type = element.type
        if xsd_type.is_global():
            base = xsd_type.local_name
            namespace = xsd_type.target_namespace
        else:
            base = element.local_name
            namespace = element.target_namespace
        return self._register_type(xsd_type, f"{self._package_for(namespace)}.{element_to_class_name(base)}")
