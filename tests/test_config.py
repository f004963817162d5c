"""Tests for settings and logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from schemata import __version__
from schemata.config import Settings, get_settings
from schemata.logging import (
    LoggerRegistry,
    _add_service_info,
    _censor_sensitive_keys,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_shared_processors,
    unbind_context,
)
from schemata.validation import FormatOptions, Schema


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.DATE_FORMAT == "%Y-%m-%d"
        assert s.TIME_FORMAT == s.DATETIME_FORMAT == "%Y-%m-%dT%H:%M:%S.%L"
        assert s.DECIMAL_PRECISION == 2
        assert s.RAISE_ON_ERROR is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHEMATA_DECIMAL_PRECISION", "4")
        assert Settings(_env_file=None).DECIMAL_PRECISION == 4

    def test_seeds_format_options(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHEMATA_DATE_FORMAT", "%d/%m/%Y")
        get_settings.cache_clear()
        assert FormatOptions.from_settings().date_format == "%d/%m/%Y"

    def test_seeds_raise_on_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHEMATA_RAISE_ON_ERROR", "false")
        get_settings.cache_clear()
        result = Schema.build({"age": {"type": "integer"}}).parse({})
        assert not result.ok


class TestLoggingProcessors:
    def test_censors_nested_keys(self) -> None:
        event = _censor_sensitive_keys(None, "info", {"event": "x", "token": "t", "ctx": {"Password": "p", "a": 1}})
        assert event == {"event": "x", "token": "[REDACTED]", "ctx": {"Password": "[REDACTED]", "a": 1}}

    def test_service_info(self) -> None:
        event = _add_service_info(None, "info", {"event": "x"})
        assert event["service"] == "schemata"
        assert event["version"] == __version__

    def test_shared_processors(self) -> None:
        processors = get_shared_processors()
        assert _censor_sensitive_keys in processors
        assert _add_service_info in processors

    def test_registry_caches_loggers(self) -> None:
        assert LoggerRegistry.get("schema") is LoggerRegistry.get("schema")


class TestContext:
    def test_bind_and_unbind(self) -> None:
        try:
            bind_context(request_id="r1", route="/users")
            assert structlog.contextvars.get_contextvars() == {"request_id": "r1", "route": "/users"}
            unbind_context("route")
            assert structlog.contextvars.get_contextvars() == {"request_id": "r1"}
        finally:
            clear_context()
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self) -> None:
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        structlog.reset_defaults()
        root.handlers, root.level = handlers, level

    def test_json_output_is_censored(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="DEBUG", json_logs=True)
        structlog.get_logger("schemata.test").info("login", token="abc", user="ann")
        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "login"
        assert line["token"] == "[REDACTED]"
        assert line["user"] == "ann"
        assert line["service"] == "schemata"
        assert line["level"] == "info"

    def test_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCHEMATA_LOG_LEVEL", "WARNING")
        get_settings.cache_clear()
        configure_from_settings()
        assert logging.getLogger().level == logging.WARNING
