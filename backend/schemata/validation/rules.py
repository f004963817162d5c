"""Value Rules

Three small capability interfaces back the value constraints of an
attribute:

- Containment: anything supporting `value in collection` (any_of)
- Matcher: anything with `match(text)` returning a truthy match (match)
- Predicate: any callable returning a truthy result (assure)

Each is wrapped by an immutable AtomicValidator adapter that produces a
ValidationResult with a human-readable reason.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sized
from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

from .errors import ConfigurationError


@runtime_checkable
class Containment(Protocol):
    def __contains__(self, value: Any) -> bool: ...


@runtime_checkable
class Matcher(Protocol):
    def match(self, text: str) -> Any: ...


Predicate = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of a single rule check."""
    is_valid: bool
    reason: str | None = None
    constraint: str | None = None

    @classmethod
    def valid(cls) -> ValidationResult: return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str, *, constraint: str | None = None) -> ValidationResult:
        return cls(is_valid=False, reason=reason, constraint=constraint)


class AtomicValidator(ABC):
    """Base class for value rules."""

    @abstractmethod
    def validate(self, value: Any) -> ValidationResult:
        """Validate a value. Returns ValidationResult."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Short constraint name for error metadata."""

    def __call__(self, value: Any) -> ValidationResult: return self.validate(value)


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    """Matcher adapter for regular expressions.

    Matches anywhere in the text, like `re.search`.
    """
    pattern: re.Pattern

    @classmethod
    def compile(cls, pattern: str | re.Pattern, flags: int = 0) -> RegexMatcher:
        return cls(pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags))

    def match(self, text: str) -> re.Match | None:
        return self.pattern.search(text)

    def __repr__(self) -> str:
        return f"/{self.pattern.pattern}/"


@dataclass(frozen=True, slots=True)
class Membership(AtomicValidator):
    """Value must be a member of the configured collection."""
    options: Containment

    @property
    def constraint_name(self) -> str:
        return "any_of"

    def describe(self) -> str:
        if isinstance(self.options, Iterable) and not isinstance(self.options, (str, bytes)):
            return ", ".join(str(o) for o in self.options)
        return repr(self.options)

    def validate(self, value: Any) -> ValidationResult:
        try:
            found = value in self.options
        except TypeError:
            found = False
        if not found:
            return ValidationResult.invalid(f"{value!r} is NOT one of {self.describe()}", constraint=self.constraint_name)
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class PatternMatch(AtomicValidator):
    """The value's string form must satisfy the matcher."""
    matcher: Matcher

    @property
    def constraint_name(self) -> str:
        return "match"

    def validate(self, value: Any) -> ValidationResult:
        if not self.matcher.match(str(value)):
            return ValidationResult.invalid(f"{value!r} does NOT match {self.matcher!r}", constraint=self.constraint_name)
        return ValidationResult.valid()


@dataclass(frozen=True, slots=True)
class Assurance(AtomicValidator):
    """The predicate must hold for the value."""
    predicate: Predicate

    @property
    def constraint_name(self) -> str:
        return "assure"

    def validate(self, value: Any) -> ValidationResult:
        if not self.predicate(value):
            return ValidationResult.invalid(f"{value!r} does NOT meet the assurance", constraint=self.constraint_name)
        return ValidationResult.valid()


# ============================================================================
# Construction-time adapters
# ============================================================================

def membership(options: Any, attribute: str) -> Membership | None:
    """Wrap an enumeration, or None when nothing is configured."""
    if options is None:
        return None
    if not isinstance(options, Containment):
        raise ConfigurationError(
            f"List of values for attribute {attribute} MUST support membership testing", attribute=attribute
        )
    if isinstance(options, Sized) and len(options) == 0:
        return None
    if isinstance(options, list):
        options = tuple(options)
    elif isinstance(options, set):
        options = frozenset(options)
    return Membership(options)


def pattern_match(pattern: Any, attribute: str) -> PatternMatch | None:
    """Wrap a pattern; strings and compiled regexes become RegexMatcher."""
    if pattern is None:
        return None
    if isinstance(pattern, (str, re.Pattern)):
        try:
            return PatternMatch(RegexMatcher.compile(pattern))
        except re.error as e:
            raise ConfigurationError(
                f"Matching pattern of attribute {attribute} is not a valid regular expression: {e}",
                attribute=attribute,
            ) from e
    if not isinstance(pattern, Matcher):
        raise ConfigurationError(f"Matching pattern of attribute {attribute} MUST provide match()", attribute=attribute)
    return PatternMatch(pattern)


def assurance(predicate: Any, attribute: str) -> Assurance | None:
    """Wrap a predicate after checking it is callable."""
    if predicate is None:
        return None
    if not callable(predicate):
        raise ConfigurationError(f"Assurance of attribute {attribute} MUST be callable", attribute=attribute)
    return Assurance(predicate)
