"""Post-processing of the value sentinel in marshalled JSON."""

import json
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from .logger import LogLevel, create_logger
from .schema_model import VALUE_TAG


def dump_json(tree: Any, pretty: bool = False, indent: int = 2) -> str:
    """Serialize a JSON tree the same way on every code path.

    ``Decimal`` values are written as bare JSON numbers with every digit
    kept. Non-finite numbers are rejected.
    """
    literals: Dict[str, str] = {}
    marker = uuid4().hex

    def encode_decimal(value: Any) -> str:
        if not isinstance(value, Decimal):
            raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
        if not value.is_finite():
            raise ValueError(f"Out of range decimal value is not JSON compliant: {value}")
        placeholder = f"\x00{marker}.{len(literals)}\x00"
        literals[json.dumps(placeholder)] = str(value)
        return placeholder

    text = json.dumps(
        tree,
        ensure_ascii=False,
        indent=indent if pretty else None,
        allow_nan=False,
        default=encode_decimal,
    )
    for placeholder, literal in literals.items():
        text = text.replace(placeholder, literal, 1)
    return text


def load_json(json_text: str) -> Any:
    """Parse JSON text, keeping fractional numbers as ``Decimal``."""
    return json.loads(json_text, parse_float=Decimal, parse_constant=_reject_constant)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a valid JSON number")


class ValueTagProcessor:
    """Renames and prunes the value sentinel in JSON produced from XML.

    ``overrides`` maps a top-level element name to the key its text
    content should use instead of the sentinel.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None, value_tag: str = VALUE_TAG,
                 level: LogLevel = LogLevel.INFO):
        self.overrides = MappingProxyType(dict(overrides or {}))
        self.value_tag = value_tag
        self.logger = create_logger(level=level, component="value_tags")

    def process(self, json_text: str, pretty: bool = False, tree: Optional[Dict[str, Any]] = None) -> str:
        """Apply renaming and pruning to marshalled JSON text.

        ``tree`` may carry the already-built tree behind ``json_text`` so it
        is not parsed again; it is modified in place.
        """
        if self.value_tag not in json_text:
            return json_text

        if tree is None:
            tree = load_json(json_text)
        return dump_json(self.process_tree(tree), pretty=pretty)

    def process_tree(self, tree: Dict[str, Any]) -> Dict[str, Any]:
        """Rename then prune, in place; returns ``tree``."""
        if self.overrides:
            self.replace_value_tag_names(tree)
        self.remove_empty_value_tags(tree)
        return tree

    def replace_value_tag_names(self, tree: Dict[str, Any]) -> Dict[str, Any]:
        """Rename the sentinel inside top-level elements that have an override.

        Blank text is dropped instead of renamed.
        """
        for element_name, value_name in self.overrides.items():
            if element_name not in tree:
                continue
            value = tree[element_name]
            if isinstance(value, list):
                for item in value:
                    if isinstance(item, dict):
                        self._replace_key(item, self.value_tag, value_name)
            elif isinstance(value, dict):
                self._replace_key(value, self.value_tag, value_name)
        return tree

    def _replace_key(self, node: Dict[str, Any], old_key: str, new_key: str) -> None:
        if old_key not in node:
            return
        value = node.pop(old_key)
        if _is_blank(value):
            self.logger.debug("Removing blank value entry", key=old_key)
            return
        node[new_key] = value

    def remove_empty_value_tags(self, tree: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively drop sentinel entries that are blank strings."""
        for key in list(tree):
            value = tree[key]
            if key == self.value_tag and _is_blank(value):
                self.logger.debug("Removing blank value entry", key=key)
                del tree[key]
            elif isinstance(value, dict):
                self.remove_empty_value_tags(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict):
                        self.remove_empty_value_tags(item)
        return tree


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()
