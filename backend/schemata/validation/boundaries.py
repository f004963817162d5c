"""Validation at System Boundaries

Schemas applied where data crosses into or out of a service:
- Ingress: request parameters parsed into typed values
- Egress: handler results shaped into the response payload

Every boundary parse runs with `raise_on_error=False`; the first error is
then either raised as InvalidRequest / InvalidResult or returned as an
AppError inside `Err`.

Usage:
    boundary = BoundaryValidator.from_specs(
        parameters=[GLOBAL_PARAMS, {"page": {"type": "integer", "default": 1}}],
        result=[{"data": {"spec": {"items": {}}}}],
    )

    try:
        payload = boundary.convert_result(handler(boundary.convert_params(request_params)))
    except InvalidRequest as e:
        payload = boundary.error_payload(e)
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import reduce
from types import MappingProxyType
from typing import Any, ClassVar

from schemata.errors import AppError, Err, ErrorCode, Ok, Result, collect_results, validation_error
from schemata.logging import boundary_logger

from .casters import DEFAULT_REGISTRY, CasterRegistry
from .errors import AttributeValidationError, SchemaError
from .schema import ConversionOptions, Schema, deep_merge

log = boundary_logger()

DEFAULT_RESULT_SPEC: Mapping[str, Any] = MappingProxyType({
    "code": {"type": "string"},
    "message": {"type": "string"},
    "data": {"required": False},
})


class BoundaryError(SchemaError):
    """First attribute error of a boundary parse, tagged with its kind."""

    code: ClassVar[ErrorCode] = ErrorCode.E2000_VALIDATION_GENERIC
    origin: ClassVar[str] = ""

    def __init__(self, reason: AttributeValidationError):
        self.reason = reason
        super().__init__(f"{reason.message} ({reason.kind.value})")

    def to_app_error(self) -> AppError:
        return validation_error(
            str(self),
            code=self.code,
            field=self.reason.attribute,
            origin=self.origin,
            cause=self,
            kind=self.reason.kind.value,
        ).error


class InvalidRequest(BoundaryError):
    code = ErrorCode.E2010_INVALID_REQUEST
    origin = "ingress"


class InvalidResult(BoundaryError):
    code = ErrorCode.E2011_INVALID_RESULT
    origin = "egress"


def _layer(specs: Iterable[Schema | Mapping[str, Any]], base: Mapping[str, Any]) -> dict[str, Any]:
    return reduce(deep_merge, (s.spec if isinstance(s, Schema) else s for s in specs), dict(base))


class BoundaryValidator:
    """Stateless request/result validator for one route.

    Usage:
        boundary = BoundaryValidator(params_schema, result_schema, date_format="%d/%m/%Y")
        params = boundary.convert_params(raw)  # raises InvalidRequest
    """

    __slots__ = ("parameters", "result", "conversion")

    def __init__(self, parameters: Schema, result: Schema | None = None, **conversion):
        self.parameters = parameters
        self.result = result if result is not None else Schema.build(DEFAULT_RESULT_SPEC)
        self.conversion = ConversionOptions.coerce(None, **{**conversion, "raise_on_error": False})

    @classmethod
    def from_specs(
        cls,
        parameters: Iterable[Schema | Mapping[str, Any]] = (),
        result: Iterable[Schema | Mapping[str, Any]] = (),
        *,
        registry: CasterRegistry = DEFAULT_REGISTRY,
        **conversion,
    ) -> BoundaryValidator:
        """Deep-merge specs left to right; result specs layer over DEFAULT_RESULT_SPEC."""
        return cls(
            Schema.build(_layer(parameters, {}), registry=registry),
            Schema.build(_layer(result, DEFAULT_RESULT_SPEC), registry=registry),
            **conversion,
        )

    def convert_params(self, params: Mapping[Any, Any]) -> dict[Any, Any]:
        """Typed parameters, or raise InvalidRequest."""
        data, error = self.parameters.parse(params, self.conversion)
        if error is not None:
            log.warning("request_rejected", kind=error.kind.value, attribute=error.attribute)
            raise InvalidRequest(error)
        return data

    def convert_result(self, payload: Mapping[Any, Any]) -> dict[Any, Any]:
        """Response payload, or raise InvalidResult."""
        data, error = self.result.parse(payload, self.conversion)
        if error is not None:
            log.error("result_rejected", kind=error.kind.value, attribute=error.attribute)
            raise InvalidResult(error)
        return data

    def parse_ingress(self, params: Mapping[Any, Any]) -> Result[dict[Any, Any], AppError]:
        """Parse request parameters. Use for: query strings, decoded JSON bodies."""
        try: return Ok(self.convert_params(params))
        except InvalidRequest as e: return Err(e.to_app_error())
        except TypeError as e:
            return validation_error(
                f"Ingress validation failed: {e}", code=ErrorCode.E2010_INVALID_REQUEST, origin="ingress", cause=e
            )

    def parse_egress(self, payload: Mapping[Any, Any]) -> Result[dict[Any, Any], AppError]:
        """Shape a handler result for the response."""
        try: return Ok(self.convert_result(payload))
        except InvalidResult as e: return Err(e.to_app_error())
        except TypeError as e:
            return validation_error(
                f"Egress validation failed: {e}", code=ErrorCode.E2011_INVALID_RESULT, origin="egress", cause=e
            )

    def error_payload(self, exc: BaseException) -> dict[Any, Any]:
        """Shape an exception as a `{code, message}` response payload."""
        return self.convert_result({"code": type(exc).__name__, "message": str(exc)})


def parse_batch(
    schema: Schema,
    items: Iterable[Mapping[Any, Any]],
    options: ConversionOptions | Mapping[str, Any] | None = None,
    **conversion,
) -> Result[list[dict[Any, Any]], list[AppError]]:
    """Parse every item; Err collects each failing item's first error.

    Errors carry the item position as `index` metadata.
    """
    return collect_results([
        schema.parse_result(item, options, **conversion).map_err(
            lambda e, i=i: e.to_app_error(origin="batch").with_metadata(index=i)
        )
        for i, item in enumerate(items)
    ])
