"""Caster Registry

A fixed table of named type casters. Each caster knows the native
representation of its type (`matches`) and how to convert a raw value
into it (`convert`). Casting is idempotent: `apply` never converts a
value that already matches.

Features:
- Frozen dataclass casters configured from FormatOptions
- Format-configurable dates, decimals and integers
- Lower-level conversion failures wrapped as TypeCastingError
- Registry is immutable; `register` returns a new instance
"""
from __future__ import annotations

import operator
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from types import MappingProxyType
from typing import Any, Mapping

from schemata.config import get_settings
from schemata.logging import caster_logger

from .errors import TypeCastingError

log = caster_logger()

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%L"
DEFAULT_TIME_FORMAT = DEFAULT_DATETIME_FORMAT
DEFAULT_DECIMAL_PRECISION = 2
DEFAULT_INTEGER_BASE = 10


class Symbol(str):
    """Identifier-like value, distinct from free text.

    Compares and hashes equal to the plain string with the same
    characters, so it can be used interchangeably as a mapping key.
    """
    __slots__ = ()

    def __repr__(self) -> str:
        return f":{str.__str__(self)}"


@dataclass(frozen=True, slots=True)
class FormatOptions:
    """Formatting knobs consulted by the casters."""
    date_format: str = DEFAULT_DATE_FORMAT
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    time_format: str = DEFAULT_TIME_FORMAT
    decimal_precision: int = DEFAULT_DECIMAL_PRECISION
    integer_base: int = DEFAULT_INTEGER_BASE

    @classmethod
    def names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_settings(cls) -> FormatOptions:
        s = get_settings()
        return cls(
            date_format=s.DATE_FORMAT,
            datetime_format=s.DATETIME_FORMAT,
            time_format=s.TIME_FORMAT,
            decimal_precision=s.DECIMAL_PRECISION,
            integer_base=s.INTEGER_BASE,
        )

    def merge(self, overrides: Mapping[str, Any]) -> FormatOptions:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if k in self.names() and v is not None}
        return replace(self, **changes) if changes else self


class Caster(ABC):
    """Base class for type casters.

    Each caster defines:
    - The declared type name it serves
    - Whether a value is already in native form
    - The actual conversion logic
    """

    type_name: str = ""

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> Caster:
        return cls()

    @abstractmethod
    def matches(self, value: Any) -> bool:
        """Check if value is already the native representation."""

    @abstractmethod
    def convert(self, value: Any) -> Any:
        """Convert value to the native representation. May raise."""

    def apply(self, value: Any, attribute: str) -> Any:
        """Cast value for `attribute`, wrapping conversion failures."""
        if self.matches(value):
            return value
        try:
            return self.convert(value)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise TypeCastingError.wrap(attribute, e) from e

    def __call__(self, value: Any, attribute: str = "") -> Any:
        return self.apply(value, attribute)


def _text(value: Any) -> Any:
    return value.decode("utf-8") if isinstance(value, (bytes, bytearray)) else value


# %L: milliseconds, three digits
_MILLIS = re.compile(r"(?<!%)%L")


def _format(value: date, fmt: str) -> str:
    if isinstance(value, datetime):
        fmt = _MILLIS.sub(f"{value.microsecond // 1000:03d}", fmt)
    return value.strftime(fmt)


def _parse(value: Any, fmt: str) -> datetime:
    return datetime.strptime(_text(value), _MILLIS.sub("%f", fmt))


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, datetime) and value.tzinfo is not None


def _reject_bool(value: Any, type_name: str) -> None:
    if isinstance(value, bool):
        raise TypeError(f"cannot convert bool to {type_name}")


@dataclass(frozen=True, slots=True)
class StringCaster(Caster):
    """Cast to str; temporal values use the configured format strings."""
    date_format: str = DEFAULT_DATE_FORMAT
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    time_format: str = DEFAULT_TIME_FORMAT

    type_name = "string"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> StringCaster:
        return cls(date_format=fmt.date_format, datetime_format=fmt.datetime_format, time_format=fmt.time_format)

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and not isinstance(value, Symbol)

    def convert(self, value: Any) -> str:
        if _is_timestamp(value):
            return _format(value, self.time_format)
        if isinstance(value, datetime):
            return _format(value, self.datetime_format)
        if isinstance(value, date):
            return _format(value, self.date_format)
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8")
        return str(value)


@dataclass(frozen=True, slots=True)
class IntegerCaster(Caster):
    """Cast to int; text is parsed in the configured base."""
    base: int = DEFAULT_INTEGER_BASE

    type_name = "integer"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> IntegerCaster:
        return cls(base=fmt.integer_base)

    def matches(self, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def convert(self, value: Any) -> int:
        _reject_bool(value, self.type_name)
        if isinstance(value, (str, bytes, bytearray)):
            return int(value, self.base)
        return operator.index(value)


@dataclass(frozen=True, slots=True)
class FloatCaster(Caster):
    type_name = "float"

    def matches(self, value: Any) -> bool:
        return isinstance(value, float)

    def convert(self, value: Any) -> float:
        _reject_bool(value, self.type_name)
        return float(_text(value))


@dataclass(frozen=True, slots=True)
class DecimalCaster(Caster):
    """Cast through float, then round half-up to the configured precision."""
    precision: int = DEFAULT_DECIMAL_PRECISION

    type_name = "decimal"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> DecimalCaster:
        return cls(precision=fmt.decimal_precision)

    def matches(self, value: Any) -> bool:
        return isinstance(value, Decimal)

    def convert(self, value: Any) -> Decimal:
        _reject_bool(value, self.type_name)
        number = Decimal(repr(float(_text(value))))
        if not number.is_finite():
            raise ValueError(f"{value!r} is not a finite number")
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, number.adjusted() + self.precision + 2)
            return number.quantize(Decimal(1).scaleb(-self.precision), rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class SymbolCaster(Caster):
    type_name = "symbol"

    def matches(self, value: Any) -> bool:
        return isinstance(value, Symbol)

    def convert(self, value: Any) -> Symbol:
        value = _text(value)
        if not isinstance(value, str):
            raise TypeError(f"{type(value).__name__} cannot be converted to a symbol")
        return Symbol(value)


@dataclass(frozen=True, slots=True)
class TimeCaster(Caster):
    """Timestamp in a definite zone; naive input is taken as local time."""
    format: str = DEFAULT_TIME_FORMAT

    type_name = "time"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> TimeCaster:
        return cls(format=fmt.time_format)

    def matches(self, value: Any) -> bool:
        return _is_timestamp(value)

    def convert(self, value: Any) -> datetime:
        parsed = value if isinstance(value, datetime) else _parse(value, self.format)
        return parsed if parsed.tzinfo is not None else parsed.astimezone()


@dataclass(frozen=True, slots=True)
class DateCaster(Caster):
    format: str = DEFAULT_DATE_FORMAT

    type_name = "date"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> DateCaster:
        return cls(format=fmt.date_format)

    def matches(self, value: Any) -> bool:
        return isinstance(value, date) and not isinstance(value, datetime)

    def convert(self, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        return _parse(value, self.format).date()


@dataclass(frozen=True, slots=True)
class DateTimeCaster(Caster):
    format: str = DEFAULT_DATETIME_FORMAT

    type_name = "datetime"

    @classmethod
    def from_format(cls, fmt: FormatOptions) -> DateTimeCaster:
        return cls(format=fmt.datetime_format)

    def matches(self, value: Any) -> bool:
        return isinstance(value, datetime)

    def convert(self, value: Any) -> datetime:
        return _parse(value, self.format)


@dataclass(frozen=True, slots=True)
class BoolCaster(Caster):
    """Literal "true"/"false" are special; anything else uses truthiness."""
    type_name = "bool"

    def matches(self, value: Any) -> bool:
        return isinstance(value, bool)

    def convert(self, value: Any) -> bool:
        if value == "false":
            return False
        if value == "true":
            return True
        return bool(value)


class CasterRegistry:
    """Immutable table of type name -> caster class.

    Usage:
        registry = DEFAULT_REGISTRY
        caster = registry.get("integer", FormatOptions(integer_base=16))
        caster.apply("ff", attribute="MASK")  # 255
    """

    __slots__ = ("_casters",)

    def __init__(self, casters: Mapping[str, type[Caster]]):
        self._casters = MappingProxyType({name.lower(): cls for name, cls in casters.items()})

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._casters)

    def has(self, type_name: str) -> bool:
        return type_name.lower() in self._casters

    def get(self, type_name: str, fmt: FormatOptions | None = None) -> Caster:
        """Build the caster for `type_name` configured by `fmt`.

        Raises KeyError for unknown type names.
        """
        return self._casters[type_name.lower()].from_format(fmt or FormatOptions.from_settings())

    def matches(self, type_name: str, value: Any) -> bool:
        return self.get(type_name, FormatOptions()).matches(value)

    def register(self, type_name: str, caster: type[Caster]) -> CasterRegistry:
        """Add or replace a caster, returning a new registry."""
        log.debug("caster_registered", type_name=type_name.lower(), caster=caster.__name__)
        return CasterRegistry({**self._casters, type_name: caster})


DEFAULT_REGISTRY = CasterRegistry({
    caster.type_name: caster
    for caster in (
        StringCaster,
        IntegerCaster,
        FloatCaster,
        DecimalCaster,
        SymbolCaster,
        TimeCaster,
        DateCaster,
        DateTimeCaster,
        BoolCaster,
    )
})
