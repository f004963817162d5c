"""Schema-driven Validation and Type Coercion

Declarative attribute specs are composed into immutable Schemas that
turn untyped input mappings (decoded JSON, query parameters) into typed,
validated output mappings, or report the first violated rule.

Key Features:
- Format-configurable casters (string, integer, float, decimal, symbol,
  time, date, datetime, bool)
- Fixed-order rules: required, type, enumeration, pattern, predicate
- Nested and inline schemas
- Raise-or-report failure modes via `raise_on_error`
- Boundary validators for request parameters and response payloads

Usage:
    from schemata.validation import Schema

    schema = Schema.build({
        "age": {"type": "integer"},
        "email": {"type": "string", "match": r".+@.+"},
        "address": {"required": False, "spec": {"street": {"type": "string"}}},
    })

    schema.parse({"age": "42", "email": "a@b.c"}).data
    # {"age": 42, "email": "a@b.c", "address": None}
"""

from .casters import (
    DEFAULT_REGISTRY,
    Caster,
    CasterRegistry,
    FormatOptions,
    Symbol,
)

from .rules import (
    AtomicValidator,
    Assurance,
    Containment,
    Matcher,
    Membership,
    PatternMatch,
    Predicate,
    RegexMatcher,
    ValidationResult,
)

from .pipeline import RuleSet, enforce, evaluate

from .attribute import AttributeOptions, AttributeSpec

from .schema import (
    ConversionOptions,
    ParseBinding,
    ParseResult,
    Schema,
    SchemaBuilder,
    deep_merge,
)

from .errors import (
    AttributeValidationError,
    ConfigurationError,
    ErrorKind,
    InvalidAttributeValue,
    MissingRequiredAttribute,
    SchemaError,
    TypeCastingError,
    TypeMismatched,
)

from .boundaries import (
    DEFAULT_RESULT_SPEC,
    BoundaryError,
    BoundaryValidator,
    InvalidRequest,
    InvalidResult,
    parse_batch,
)

__all__ = [
    # Casters
    "DEFAULT_REGISTRY",
    "Caster",
    "CasterRegistry",
    "FormatOptions",
    "Symbol",
    # Rules
    "AtomicValidator",
    "Assurance",
    "Containment",
    "Matcher",
    "Membership",
    "PatternMatch",
    "Predicate",
    "RegexMatcher",
    "ValidationResult",
    "RuleSet",
    "enforce",
    "evaluate",
    # Attributes and schemas
    "AttributeOptions",
    "AttributeSpec",
    "ConversionOptions",
    "ParseBinding",
    "ParseResult",
    "Schema",
    "SchemaBuilder",
    "deep_merge",
    # Errors
    "AttributeValidationError",
    "ConfigurationError",
    "ErrorKind",
    "InvalidAttributeValue",
    "MissingRequiredAttribute",
    "SchemaError",
    "TypeCastingError",
    "TypeMismatched",
    # Boundaries
    "DEFAULT_RESULT_SPEC",
    "BoundaryError",
    "BoundaryValidator",
    "InvalidRequest",
    "InvalidResult",
    "parse_batch",
]
