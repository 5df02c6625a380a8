"""Runtime schema model: schema definition, type descriptors and dynamic entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

# Key standing in for an element's own text content in marshalled JSON.
VALUE_TAG = "__VALUE__"


@dataclass(frozen=True)
class SchemaDefinition:
    """A loaded schema: raw XSD text, its platform namespace and root element."""
    xsd_content: str
    namespace: str
    root_element: str
    location: Optional[str] = None  # base URL for resolving includes and imports


class FieldKind(str, Enum):
    """Where a field lives in the XML form."""
    ATTRIBUTE = "attribute"
    ELEMENT = "element"


class ScalarKind(str, Enum):
    """JSON representation of simple XSD content."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class FieldDescriptor:
    """A single attribute or child element of a complex type."""
    name: str
    kind: FieldKind
    scalar: Optional[ScalarKind] = ScalarKind.STRING
    type_name: Optional[str] = None  # qualified name when the field is complex
    multiple: bool = False
    required: bool = False
    namespace: Optional[str] = None

    @property
    def is_complex(self) -> bool:
        """Whether the field holds a nested entity."""
        return self.type_name is not None

    @property
    def is_attribute(self) -> bool:
        return self.kind == FieldKind.ATTRIBUTE

    def __str__(self) -> str:
        suffix = "[]" if self.multiple else ""
        target = self.type_name or (self.scalar.value if self.scalar else "?")
        return f"{self.kind.value} {self.name}: {target}{suffix}"


@dataclass(frozen=True)
class TypeDescriptor:
    """Schema-derived description of one complex type."""
    qualified_name: str
    xml_name: str
    namespace: Optional[str]
    fields: Tuple[FieldDescriptor, ...] = ()
    has_value: bool = False
    value_scalar: ScalarKind = ScalarKind.STRING
    _by_name: Dict[str, FieldDescriptor] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        by_name = {f.name: f for f in self.fields}
        object.__setattr__(self, "_by_name", by_name)

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """Look up a field by its XML local name."""
        return self._by_name.get(name)

    @property
    def attributes(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.kind == FieldKind.ATTRIBUTE]

    @property
    def elements(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.kind == FieldKind.ELEMENT]


class DynamicEntity:
    """Instance of a schema-described type created at run time.

    Field values are scalars, nested entities or lists of either. The
    element's own text content lives in ``value``, never in the field map.
    """

    __slots__ = ("descriptor", "_values", "value")

    def __init__(self, descriptor: TypeDescriptor):
        self.descriptor = descriptor
        self._values: Dict[str, Any] = {}
        self.value: Optional[Any] = None

    @property
    def type_name(self) -> str:
        return self.descriptor.qualified_name

    def _check(self, name: str) -> FieldDescriptor:
        descriptor = self.descriptor.get_field(name)
        if descriptor is None:
            raise KeyError(f"{self.type_name} has no field {name!r}")
        return descriptor

    def set(self, name: str, value: Any) -> "DynamicEntity":
        """Set a declared field; ``None`` clears it."""
        self._check(name)
        if value is None:
            self._values.pop(name, None)
        else:
            self._values[name] = value
        return self

    def get(self, name: str, default: Any = None) -> Any:
        self._check(name)
        return self._values.get(name, default)

    def append(self, name: str, value: Any) -> "DynamicEntity":
        """Append to a multiple-valued field."""
        descriptor = self._check(name)
        if not descriptor.multiple:
            raise ValueError(f"Field {name!r} of {self.type_name} is not multiple")
        self._values.setdefault(name, []).append(value)
        return self

    def is_set(self, name: str) -> bool:
        return name in self._values

    def items(self) -> Iterator[Tuple[FieldDescriptor, Any]]:
        """Yield set fields in schema order."""
        for descriptor in self.descriptor.fields:
            if descriptor.name in self._values:
                yield descriptor, self._values[descriptor.name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicEntity):
            return NotImplemented
        return (
            self.type_name == other.type_name
            and self._values == other._values
            and self.value == other.value
        )

    def __repr__(self) -> str:
        return f"DynamicEntity({self.type_name}, {self._values!r}, value={self.value!r})"
