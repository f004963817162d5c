"""Shared pytest fixtures for schemata tests."""

from __future__ import annotations

import os

import pytest

from schemata.config import get_settings
from schemata.validation import Schema


@pytest.fixture(autouse=True)
def _default_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate every test from SCHEMATA_* variables in the environment."""
    for key in [k for k in os.environ if k.upper().startswith("SCHEMATA_")]:
        monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def age_schema() -> Schema:
    """Single required integer attribute."""
    return Schema.build({"age": {"type": "integer"}})


@pytest.fixture
def address_schema() -> Schema:
    """Optional composite `address` with a required street."""
    return Schema.build({
        "address": {
            "required": False,
            "spec": {
                "street": {"type": "string"},
                "city": {"type": "string"},
            },
        },
    })


@pytest.fixture
def user_schema() -> Schema:
    """Mixed schema used across parse and boundary tests."""
    return Schema.build({
        "name": {"type": "string"},
        "age": {"type": "integer", "assure": lambda v: v >= 0},
        "status": {"type": "string", "any_of": ["active", "inactive"], "default": "active"},
        "email": {"type": "string", "match": r".+@.+", "required": False},
        "admin": {"type": "bool", "map": {True: "Y", False: "N"}, "bind_to": "is_admin", "default": False},
    })
