"""schemata: schema-driven validation and type coercion."""

__version__ = "0.1.0"

from schemata.config import settings, get_settings
from schemata.logging import (
    configure_logging,
    configure_from_settings,
    get_logger,
    bind_context,
    clear_context,
    unbind_context,
)
from schemata.validation import (
    AttributeSpec,
    ConfigurationError,
    ConversionOptions,
    ParseResult,
    Schema,
    SchemaBuilder,
)

__all__ = [
    "__version__",
    "settings",
    "get_settings",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "unbind_context",
    "AttributeSpec",
    "ConfigurationError",
    "ConversionOptions",
    "ParseResult",
    "Schema",
    "SchemaBuilder",
]
