"""Tests for value rules and the fixed-order validation pipeline."""

from __future__ import annotations

import re

import pytest

from schemata.validation import (
    ConfigurationError,
    InvalidAttributeValue,
    MissingRequiredAttribute,
    RegexMatcher,
    RuleSet,
    TypeMismatched,
    enforce,
    evaluate,
)
from schemata.validation.casters import IntegerCaster
from schemata.validation.rules import assurance, membership, pattern_match


class PrefixMatcher:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def match(self, text: str) -> bool:
        return text.startswith(self.prefix)

    def __repr__(self) -> str:
        return f"prefix {self.prefix}"


class TestMembership:
    def test_rejects_unlisted_value(self) -> None:
        rule = membership(["active", "inactive"], "STATUS")
        result = rule.validate("pending")
        assert not result.is_valid
        assert result.reason == "'pending' is NOT one of active, inactive"
        assert result.constraint == "any_of"

    def test_accepts_listed_value(self) -> None:
        assert membership(["active"], "STATUS").validate("active").is_valid

    def test_list_is_stored_as_tuple(self) -> None:
        assert membership(["a", "b"], "X").options == ("a", "b")

    def test_empty_is_not_configured(self) -> None:
        assert membership([], "X") is None
        assert membership(None, "X") is None

    def test_any_container(self) -> None:
        rule = membership(range(1, 5), "N")
        assert rule.validate(3).is_valid
        assert rule.validate(9).reason == "9 is NOT one of 1, 2, 3, 4"

    def test_requires_membership_testing(self) -> None:
        with pytest.raises(ConfigurationError, match="attribute N"):
            membership(42, "N")


class TestPatternMatch:
    def test_search_semantics(self) -> None:
        assert pattern_match("b", "X").validate("abc").is_valid

    def test_reason_shows_pattern(self) -> None:
        result = pattern_match(r".+@.+", "EMAIL").validate("foo")
        assert result.reason == "'foo' does NOT match /.+@.+/"

    def test_checks_string_form(self) -> None:
        assert pattern_match(r"^\d+$", "N").validate(123).is_valid

    def test_compiled_pattern(self) -> None:
        rule = pattern_match(re.compile("^a", re.IGNORECASE), "X")
        assert isinstance(rule.matcher, RegexMatcher)
        assert rule.validate("ABC").is_valid

    def test_custom_matcher(self) -> None:
        rule = pattern_match(PrefixMatcher("id-"), "ID")
        assert rule.validate("id-1").is_valid
        assert rule.validate("x-1").reason == "'x-1' does NOT match prefix id-"

    def test_invalid_regex(self) -> None:
        with pytest.raises(ConfigurationError, match="not a valid regular expression"):
            pattern_match("(", "X")

    def test_requires_match(self) -> None:
        with pytest.raises(ConfigurationError, match="MUST provide match"):
            pattern_match(42, "X")


class TestAssurance:
    def test_predicate(self) -> None:
        rule = assurance(lambda v: v > 0, "N")
        assert rule.validate(1).is_valid
        assert rule.validate(-1).reason == "-1 does NOT meet the assurance"

    def test_requires_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="MUST be callable"):
            assurance("nope", "N")


class TestPipeline:
    def test_missing_required(self) -> None:
        error = evaluate(RuleSet(required=True), None, "AGE")
        assert isinstance(error, MissingRequiredAttribute)
        assert error.attribute == "AGE"

    def test_absent_optional_passes_every_rule(self) -> None:
        rules = RuleSet(
            required=False,
            enumeration=membership([1], "N"),
            predicate=assurance(lambda v: False, "N"),
        )
        assert evaluate(rules, None, "N") is None

    def test_type_checked_before_enumeration(self) -> None:
        rules = RuleSet(
            type_name="integer",
            type_check=IntegerCaster().matches,
            enumeration=membership([1, 2], "AGE"),
        )
        error = evaluate(rules, "x", "AGE")
        assert isinstance(error, TypeMismatched)
        assert error.reason == "MUST be an instance of integer"

    def test_enumeration_before_pattern_before_predicate(self) -> None:
        rules = RuleSet(
            enumeration=membership(["a"], "X"),
            pattern=pattern_match("^a$", "X"),
            predicate=assurance(lambda v: False, "X"),
        )
        assert "is NOT one of" in evaluate(rules, "b", "X").reason
        assert "does NOT meet the assurance" in evaluate(rules, "a", "X").reason

    def test_enforce_raises_first_error(self) -> None:
        rules = RuleSet(pattern=pattern_match("@", "EMAIL"))
        with pytest.raises(InvalidAttributeValue, match="Invalid value for attribute EMAIL"):
            enforce(rules, "foo", "EMAIL")

    def test_enforce_passes(self) -> None:
        enforce(RuleSet(), "anything", "X")
