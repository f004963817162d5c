"""Tests for request/result boundary validation."""

from __future__ import annotations

from datetime import date

import pytest
from structlog.testing import capture_logs

from schemata.errors import ErrorCode, Ok
from schemata.validation import (
    DEFAULT_RESULT_SPEC,
    BoundaryValidator,
    InvalidRequest,
    InvalidResult,
    MissingRequiredAttribute,
    Schema,
    parse_batch,
)


@pytest.fixture
def boundary() -> BoundaryValidator:
    return BoundaryValidator.from_specs(
        parameters=[{"page": {"type": "integer", "default": 1}}, {"age": {"type": "integer"}}],
        result=[{"data": {"spec": {"total": {"type": "integer"}}}}],
    )


class TestFromSpecs:
    def test_layers_parameter_specs(self) -> None:
        boundary = BoundaryValidator.from_specs(
            parameters=[{"page": {"type": "integer", "default": 1}}, {"page": {"default": 2}}],
        )
        assert boundary.convert_params({}) == {"page": 2}

    def test_default_result_spec(self) -> None:
        boundary = BoundaryValidator.from_specs()
        assert set(boundary.result.names) == set(DEFAULT_RESULT_SPEC)
        assert boundary.convert_result({"code": "OK", "message": "done"}) == {
            "code": "OK",
            "message": "done",
            "data": None,
        }

    def test_result_spec_layers_over_default(self, boundary: BoundaryValidator) -> None:
        payload = boundary.convert_result({"code": "OK", "message": "done", "data": {"total": "3"}})
        assert payload["data"] == {"total": 3}

    def test_accepts_schemas(self) -> None:
        boundary = BoundaryValidator.from_specs(parameters=[Schema.build({"q": {"type": "string"}})])
        assert boundary.convert_params({"q": 1}) == {"q": "1"}

    def test_conversion_options(self) -> None:
        boundary = BoundaryValidator.from_specs(parameters=[{"on": {"type": "date"}}], date_format="%d/%m/%Y")
        assert boundary.convert_params({"on": "01/02/2024"}) == {"on": date(2024, 2, 1)}

    def test_default_result_schema(self) -> None:
        boundary = BoundaryValidator(Schema.build({"q": {}}))
        assert boundary.result.names == ("code", "message", "data")


class TestConvert:
    def test_params(self, boundary: BoundaryValidator) -> None:
        assert boundary.convert_params({"age": "30"}) == {"page": 1, "age": 30}

    def test_invalid_request(self, boundary: BoundaryValidator) -> None:
        with capture_logs() as logs:
            with pytest.raises(InvalidRequest) as exc_info:
                boundary.convert_params({})
        assert str(exc_info.value) == "Missing required attribute AGE (MissingRequiredAttribute)"
        assert isinstance(exc_info.value.reason, MissingRequiredAttribute)
        assert {"event": "request_rejected", "kind": "MissingRequiredAttribute", "attribute": "AGE",
                "log_level": "warning"} in logs

    def test_raise_on_error_is_always_disabled(self) -> None:
        boundary = BoundaryValidator.from_specs(parameters=[{"age": {"type": "integer"}}], raise_on_error=True)
        with pytest.raises(InvalidRequest):
            boundary.convert_params({})

    def test_invalid_result(self, boundary: BoundaryValidator) -> None:
        with capture_logs() as logs:
            with pytest.raises(InvalidResult, match="CODE"):
                boundary.convert_result({"message": "done"})
        assert logs[-1]["event"] == "result_rejected"
        assert logs[-1]["log_level"] == "error"

    def test_error_payload(self, boundary: BoundaryValidator) -> None:
        with pytest.raises(InvalidRequest) as exc_info:
            boundary.convert_params({})
        payload = boundary.error_payload(exc_info.value)
        assert payload == {
            "code": "InvalidRequest",
            "message": "Missing required attribute AGE (MissingRequiredAttribute)",
            "data": None,
        }


class TestResultFlow:
    def test_ingress_ok(self, boundary: BoundaryValidator) -> None:
        assert boundary.parse_ingress({"age": 5}) == Ok({"page": 1, "age": 5})

    def test_ingress_err(self, boundary: BoundaryValidator) -> None:
        error = boundary.parse_ingress({"age": "x"}).unwrap_err()
        assert error.code is ErrorCode.E2010_INVALID_REQUEST
        assert error.code.http_status == 400
        assert error.context.origin == "ingress"
        assert error.metadata == {"field": "AGE", "kind": "TypeCastingError"}

    def test_ingress_non_mapping(self, boundary: BoundaryValidator) -> None:
        error = boundary.parse_ingress("age=5").unwrap_err()
        assert error.code is ErrorCode.E2010_INVALID_REQUEST
        assert error.message.startswith("Ingress validation failed")

    def test_egress_err(self, boundary: BoundaryValidator) -> None:
        error = boundary.parse_egress({"code": "OK"}).unwrap_err()
        assert error.code is ErrorCode.E2011_INVALID_RESULT
        assert error.code.http_status == 500
        assert error.context.origin == "egress"
        assert isinstance(error.cause, InvalidResult)


class TestParseBatch:
    def test_all_valid(self, age_schema: Schema) -> None:
        assert parse_batch(age_schema, [{"age": "1"}, {"age": 2}]) == Ok([{"age": 1}, {"age": 2}])

    def test_collects_first_error_per_item(self, age_schema: Schema) -> None:
        errors = parse_batch(age_schema, [{"age": "1"}, {"age": "x"}, {}]).unwrap_err()
        assert [e.metadata["index"] for e in errors] == [1, 2]
        assert [e.code for e in errors] == [ErrorCode.E2002_INVALID_FORMAT, ErrorCode.E2001_REQUIRED_FIELD_MISSING]
        assert all(e.context.origin == "batch" for e in errors)
