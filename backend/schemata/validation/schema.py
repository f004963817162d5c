"""Schema

An ordered, immutable collection of AttributeSpecs: the unit of parsing.

Key Features:
- Build from a declarative mapping, a composition block, or both
- Recursive nesting (attribute `spec` / `type` may be a Schema)
- `merge` layers override specs over a base spec without mutation
- First-failure-wins parse, raised or returned per `raise_on_error`
- Per-call output lives in a ParseBinding, never on the Schema

Usage:
    schema = Schema.build({
        "age": {"type": "integer"},
        "status": {"type": "string", "any_of": ["active", "inactive"]},
    })

    data, error = schema.parse(payload, raise_on_error=False)

    def address(s: SchemaBuilder) -> None:
        s.attribute("street", type="string")
        s.attribute("city", type="string", required=False)

    schema = Schema.build(block=lambda s: s.schema("address", block=address, required=False))
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schemata.config import get_settings
from schemata.errors import Err, Ok, Result
from schemata.logging import schema_logger

from .attribute import AttributeOptions, AttributeSpec, pydantic_details
from .casters import DEFAULT_REGISTRY, CasterRegistry, FormatOptions
from .errors import AttributeValidationError, ConfigurationError

log = schema_logger()


def deep_merge(base: Mapping[Any, Any], override: Mapping[Any, Any]) -> dict[Any, Any]:
    """Recursively merge `override` into a copy of `base`.

    Mapping values merge key by key; anything else (lists included) is
    replaced by the override. Neither operand is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


# ============================================================================
# Per-call records
# ============================================================================

class ConversionOptions(BaseModel):
    """Per-call parse options; format fields override unpinned attribute formats."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    raise_on_error: bool = Field(default_factory=lambda: get_settings().RAISE_ON_ERROR)
    date_format: str | None = None
    datetime_format: str | None = None
    time_format: str | None = None
    decimal_precision: int | None = Field(default=None, ge=0)
    integer_base: int | None = Field(default=None, ge=2, le=36)

    @classmethod
    def coerce(cls, options: ConversionOptions | Mapping[str, Any] | None = None, /, **overrides) -> ConversionOptions:
        if isinstance(options, cls) and not overrides:
            return options
        if isinstance(options, cls):
            options = {k: getattr(options, k) for k in options.model_fields_set}
        try:
            return cls(**{**(options or {}), **overrides})
        except ValidationError as e:
            details = pydantic_details(e)
            raise ConfigurationError(f"Invalid conversion options: {'; '.join(details)}", details=details) from e

    def format_overrides(self) -> dict[str, Any]:
        return {k: getattr(self, k) for k in FormatOptions.names() if getattr(self, k) is not None}


@dataclass(slots=True)
class ParseBinding:
    """Output mapping under construction for one parse call."""
    output: dict[Any, Any] = field(default_factory=dict)

    def write(self, fragment: Mapping[Any, Any]) -> None:
        self.output.update(fragment)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of `Schema.parse`: exactly one of `data` / `error` is set.

    Unpacks as a pair:
        data, error = schema.parse(payload, raise_on_error=False)
    """
    data: dict[Any, Any] | None = None
    error: AttributeValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> dict[Any, Any]:
        if self.error is not None:
            raise self.error
        return self.data

    def to_result(self) -> Result[dict[Any, Any], AttributeValidationError]:
        return Ok(self.data) if self.error is None else Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "error": self.error.to_dict() if self.error is not None else None}

    def __iter__(self) -> Iterator[Any]:
        yield self.data
        yield self.error


# ============================================================================
# Schema
# ============================================================================

class SchemaBuilder:
    """Composition block target; collects attributes in declaration order."""

    __slots__ = ("registry", "options", "pinned", "_attributes", "_declared")

    def __init__(
        self, registry: CasterRegistry = DEFAULT_REGISTRY, pinned: Mapping[str, Any] | None = None, **options
    ):
        self.registry, self.options = registry, options
        self.pinned = dict(pinned or {})
        self._attributes: dict[str, AttributeSpec] = {}
        self._declared: dict[str, dict[str, Any]] = {}

    def _claim(self, name: Any) -> None:
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Attribute name MUST be a non-empty string, got {name!r}")
        if name in self._attributes:
            raise ConfigurationError(f"Attribute {name.upper()} is declared more than once", attribute=name.upper())

    def attribute(self, name: str, options: AttributeOptions | Mapping[str, Any] | None = None, /, **opts) -> SchemaBuilder:
        self._claim(name)
        record = AttributeOptions.coerce(name, options, **opts)
        self._attributes[name] = AttributeSpec.build(
            name, record, schema_options=self.options, pinned_options=self.pinned, registry=self.registry
        )
        self._declared[name] = record.declared()
        return self

    def schema(
        self,
        name: str,
        spec: Mapping[str, Any] | None = None,
        /,
        *,
        block: Callable[[SchemaBuilder], Any] | None = None,
        inline: bool = False,
        **opts,
    ) -> SchemaBuilder:
        """Declare a nested schema attribute from a spec, a block, or both."""
        self._claim(name)
        own_formats = {k: v for k, v in opts.items() if k in FormatOptions.names() and v is not None}
        nested = Schema.build(
            spec, block=block, registry=self.registry, pinned={**self.pinned, **own_formats}, **self.options
        )
        self.attribute(name, spec=nested, inline=inline, **opts)
        self._declared[name] = {**opts, "spec": dict(nested.spec), "inline": inline}
        return self

    def build(self) -> Schema:
        return Schema(
            attributes=MappingProxyType(dict(self._attributes)),
            spec=MappingProxyType(dict(self._declared)),
            format_options=MappingProxyType({**self.options, **self.pinned}),
        )


@dataclass(frozen=True, eq=False)
class Schema:
    attributes: Mapping[str, AttributeSpec]
    spec: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    format_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        spec: Mapping[str, Any] | None = None,
        *,
        block: Callable[[SchemaBuilder], Any] | None = None,
        registry: CasterRegistry = DEFAULT_REGISTRY,
        pinned: Mapping[str, Any] | None = None,
        **options,
    ) -> Schema:
        """Build from a declarative spec and/or a composition block.

        `options` are format options inherited by every attribute; per-call
        conversion options override them. `pinned` formats are inherited too
        but win over per-call options, as for a composite attribute's own
        formats reaching its nested schema.
        Raises ConfigurationError on any invalid definition.
        """
        if unknown := (set(options) | set(pinned or {})) - FormatOptions.names():
            raise ConfigurationError(f"Unknown schema options: {', '.join(sorted(unknown))}")
        if spec is not None and not isinstance(spec, Mapping):
            raise ConfigurationError(f"Schema spec MUST be a mapping, got {type(spec).__name__}")

        builder = SchemaBuilder(
            registry,
            pinned={k: v for k, v in (pinned or {}).items() if v is not None},
            **{k: v for k, v in options.items() if v is not None},
        )
        for name, opts in (spec or {}).items():
            builder.attribute(name, opts)
        if block is not None:
            block(builder)

        schema = builder.build()
        log.debug(
            "schema_built",
            attributes=len(schema),
            nested=sum(1 for a in schema.attributes.values() if a.composite),
        )
        return schema

    @classmethod
    def parse_with(
        cls,
        spec: Mapping[str, Any],
        data: Mapping[Any, Any],
        options: ConversionOptions | Mapping[str, Any] | None = None,
        **conversion,
    ) -> ParseResult:
        """One-shot build and parse."""
        return cls.build(spec).parse(data, options, **conversion)

    def merge(self, other: Schema | Mapping[str, Any]) -> dict[str, Any]:
        """New declarative spec with `other`'s options layered over this one's."""
        return deep_merge(self.spec, other.spec if isinstance(other, Schema) else other)

    def bind(self, data: Mapping[Any, Any], conversion: ConversionOptions | None = None) -> dict[Any, Any]:
        """Process every attribute into a fresh binding; raises the first error."""
        binding = ParseBinding()
        for attr in self.attributes.values():
            binding.write(attr.process(data, conversion))
        return binding.output

    def parse(
        self,
        data: Mapping[Any, Any],
        options: ConversionOptions | Mapping[str, Any] | None = None,
        **conversion,
    ) -> ParseResult:
        """Parse `data` into a typed output mapping.

        Raises the first AttributeValidationError when `raise_on_error` is
        set (the default); otherwise returns it inside the ParseResult.
        Raises TypeError when `data` is not a mapping.
        """
        conv = ConversionOptions.coerce(options, **conversion)
        if not isinstance(data, Mapping):
            raise TypeError(f"Schema input MUST be a mapping, got {type(data).__name__}")
        try:
            return ParseResult(data=self.bind(data, conv))
        except AttributeValidationError as e:
            log.debug("parse_failed", kind=e.kind.value, attribute=e.attribute)
            if conv.raise_on_error:
                raise
            return ParseResult(error=e)

    def parse_result(
        self,
        data: Mapping[Any, Any],
        options: ConversionOptions | Mapping[str, Any] | None = None,
        **conversion,
    ) -> Result[dict[Any, Any], AttributeValidationError]:
        return self.parse(data, options, **{**conversion, "raise_on_error": False}).to_result()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def __contains__(self, name: object) -> bool:
        return name in self.attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    def __getitem__(self, name: str) -> AttributeSpec:
        return self.attributes[name]
