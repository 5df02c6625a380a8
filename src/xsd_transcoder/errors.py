"""Exception hierarchy for the XSD transcoder."""

from typing import Optional


class TranscoderError(Exception):
    """Base class for all transcoder errors."""


class SchemaError(TranscoderError):
    """Raised while building a conversion context from a schema.

    These errors mean the configuration wiring is wrong, not the payload.
    """


class SchemaResourceNotFoundError(SchemaError):
    """The schema resource could not be located."""


class SchemaParseError(SchemaError):
    """The schema text could not be parsed."""


class AmbiguousNamespaceError(SchemaError):
    """Zero or several target namespaces carry the platform marker."""


class MalformedNamespaceError(SchemaError):
    """A namespace URI cannot be mapped to a dotted identifier."""


class UnknownRootTypeError(SchemaError):
    """The root type name is not present in the type registry."""


class ValueTagCollisionError(SchemaError):
    """The schema declares a field named like the value sentinel."""


class ConversionError(TranscoderError):
    """Raised when a single XML/JSON conversion call fails."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message
