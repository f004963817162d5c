"""Validation Pipeline

One static evaluator over an attribute's RuleSet. Rules run in a fixed
order and the first failing rule decides the reported error:

    required -> type -> enumeration -> pattern -> predicate

An absent optional value passes every rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .errors import (
    AttributeValidationError,
    InvalidAttributeValue,
    MissingRequiredAttribute,
    TypeMismatched,
)
from .rules import Assurance, Membership, PatternMatch


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Declared rules of one attribute; every rule except `required` is optional."""
    required: bool = True
    type_name: str | None = None
    type_check: Callable[[Any], bool] | None = None
    enumeration: Membership | None = None
    pattern: PatternMatch | None = None
    predicate: Assurance | None = None

    @property
    def typed(self) -> bool:
        return self.type_check is not None


def evaluate(rules: RuleSet, value: Any, attribute: str) -> AttributeValidationError | None:
    """Return the first violated rule as an error, or None."""
    if value is None:
        return MissingRequiredAttribute(attribute) if rules.required else None

    if rules.typed and not rules.type_check(value):
        return TypeMismatched(attribute, f"MUST be an instance of {rules.type_name}")

    for rule in (rules.enumeration, rules.pattern, rules.predicate):
        if rule is None:
            continue
        if not (result := rule.validate(value)).is_valid:
            return InvalidAttributeValue(attribute, result.reason or "")

    return None


def enforce(rules: RuleSet, value: Any, attribute: str) -> None:
    """Raise the first violated rule."""
    if (error := evaluate(rules, value, attribute)) is not None:
        raise error
