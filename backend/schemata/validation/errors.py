"""Validation Error Taxonomy

Closed set of parse-time failures plus the construction-time category.

Parse-time errors carry the attribute display name, the error kind and a
human-readable reason, and are either raised or returned as data
depending on the caller's `raise_on_error` choice:

    {
        "kind": "InvalidAttributeValue",
        "attribute": "STATUS",
        "reason": "'pending' is NOT one of active, inactive",
        "message": "Invalid value for attribute STATUS: 'pending' is NOT one of active, inactive"
    }

Construction-time errors (`ConfigurationError`) are always raised
immediately while a Schema or AttributeSpec is being built.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from schemata.errors import AppError, ErrorCode, schema_definition_error, validation_error


class ErrorKind(str, Enum):
    """Kinds of parse-time validation failures."""
    MISSING_REQUIRED_ATTRIBUTE = "MissingRequiredAttribute"
    TYPE_MISMATCHED = "TypeMismatched"
    INVALID_ATTRIBUTE_VALUE = "InvalidAttributeValue"
    TYPE_CASTING_ERROR = "TypeCastingError"


class SchemaError(Exception):
    """Base class for every error raised by the schema engine."""


class ConfigurationError(SchemaError, ValueError):
    """Invalid attribute or schema definition, raised at build time."""

    def __init__(self, message: str, *, attribute: str | None = None, details: list[str] | None = None):
        self.attribute = attribute
        self.details = details or []
        super().__init__(message)

    def to_app_error(self) -> AppError:
        return schema_definition_error(str(self), attribute=self.attribute, details=self.details or None).error


@dataclass(eq=False)
class AttributeValidationError(SchemaError):
    """Parse-time failure of a single attribute."""
    attribute: str
    reason: str = ""

    kind: ClassVar[ErrorKind]
    code: ClassVar[ErrorCode] = ErrorCode.E2000_VALIDATION_GENERIC
    template: ClassVar[str] = "Attribute {attribute} is invalid: {reason}"

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return self.template.format(attribute=self.attribute, reason=self.reason)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "kind": self.kind.value,
            "attribute": self.attribute,
            "reason": self.reason,
            "message": self.message,
        }

    def to_app_error(self, origin: str = "") -> AppError:
        """Convert to AppError for the Result-based error flow."""
        return validation_error(
            self.message,
            code=self.code,
            field=self.attribute,
            origin=origin,
            kind=self.kind.value,
            reason=self.reason,
        ).error


@dataclass(eq=False)
class MissingRequiredAttribute(AttributeValidationError):
    reason: str = "attribute is absent"

    kind: ClassVar[ErrorKind] = ErrorKind.MISSING_REQUIRED_ATTRIBUTE
    code: ClassVar[ErrorCode] = ErrorCode.E2001_REQUIRED_FIELD_MISSING
    template: ClassVar[str] = "Missing required attribute {attribute}"


@dataclass(eq=False)
class TypeMismatched(AttributeValidationError):
    kind: ClassVar[ErrorKind] = ErrorKind.TYPE_MISMATCHED
    code: ClassVar[ErrorCode] = ErrorCode.E2004_INVALID_TYPE
    template: ClassVar[str] = "Type MISMATCHED for attribute {attribute}: {reason}"


@dataclass(eq=False)
class InvalidAttributeValue(AttributeValidationError):
    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_ATTRIBUTE_VALUE
    code: ClassVar[ErrorCode] = ErrorCode.E2005_CONSTRAINT_VIOLATION
    template: ClassVar[str] = "Invalid value for attribute {attribute}: {reason}"


@dataclass(eq=False)
class TypeCastingError(AttributeValidationError):
    kind: ClassVar[ErrorKind] = ErrorKind.TYPE_CASTING_ERROR
    code: ClassVar[ErrorCode] = ErrorCode.E2002_INVALID_FORMAT
    template: ClassVar[str] = "Failed to cast attribute {attribute}: {reason}"

    @classmethod
    def wrap(cls, attribute: str, exc: BaseException) -> TypeCastingError:
        """Wrap a lower-level conversion failure."""
        return cls(attribute, f"{type(exc).__name__} - {exc}")
