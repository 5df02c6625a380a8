"""xsd-transcoder: schema-driven XML <-> JSON transcoding for configuration documents."""

__version__ = "0.1.0"

from .config import TranscoderConfig
from .converter import ConversionContext, Transcoder, build_context
from .definitions import ConfigDefinition, TranscoderRegistry
from .errors import ConversionError, SchemaError
from .schema_model import VALUE_TAG

__all__ = [
    "TranscoderConfig",
    "ConversionContext",
    "Transcoder",
    "build_context",
    "ConfigDefinition",
    "TranscoderRegistry",
    "ConversionError",
    "SchemaError",
    "VALUE_TAG",
]
