"""Naming helpers mapping namespaces and element names to registry type names."""

import re
from typing import Optional
from urllib.parse import urlparse

from .errors import MalformedNamespaceError

_WORD_SEPARATORS = re.compile(r"[-_.:\s]+")


def namespace_to_identifier(namespace_uri: str) -> str:
    """Map a namespace URI to a dotted identifier.

    The host labels are reversed and the non-empty path segments appended,
    ``-`` becomes ``_``::

        >>> namespace_to_identifier("http://xmlns.opennms.org/xsd/config/vacuumd")
        'org.opennms.xmlns.xsd.config.vacuumd'
    """
    if not isinstance(namespace_uri, str) or not namespace_uri.strip():
        raise MalformedNamespaceError(f"Namespace URI is empty: {namespace_uri!r}")

    try:
        url = urlparse(namespace_uri.strip())
        host = url.hostname
    except ValueError as e:
        raise MalformedNamespaceError(f"Malformed namespace URI {namespace_uri!r}: {e}") from e

    if not url.scheme or not host:
        raise MalformedNamespaceError(f"Namespace URI has no scheme or host: {namespace_uri!r}")

    parts = list(reversed(host.split(".")))
    parts.extend(segment for segment in url.path.split("/") if segment)

    return ".".join(parts).replace("-", "_")


def element_to_class_name(element_name: str) -> str:
    """Convert an XML element or type name to the registry's class naming convention.

    ``vacuumd-configuration`` becomes ``VacuumdConfiguration``.
    """
    words = [w for w in _WORD_SEPARATORS.split(element_name) if w]
    if not words:
        raise ValueError(f"Cannot derive a type name from {element_name!r}")
    return "".join(w[0].upper() + w[1:] for w in words)


def root_type_name(namespace_uri: str, root_element: str, explicit: Optional[str] = None) -> str:
    """Qualified name of the root type.

    An explicitly configured name wins; the namespace mapping is the fallback.
    """
    if explicit:
        return explicit
    return f"{namespace_to_identifier(namespace_uri)}.{element_to_class_name(root_element)}"
