"""Attribute Spec

Immutable blueprint of one named field. Every configuration invariant is
checked when the blueprint is built, so a constructed AttributeSpec is
always usable and can be shared by any number of concurrent parses:

- declared type must have a registered caster
- enumeration / pattern / predicate must provide their capability
- the default value must pass the full cast + validation pipeline
- `type` and `spec` are mutually exclusive; `inline` needs a nested schema

Per-value processing is a fixed chain:

    extract -> resolve_default -> cast (+ transform) -> validate -> serialize
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .casters import DEFAULT_REGISTRY, CasterRegistry, FormatOptions
from .errors import AttributeValidationError, ConfigurationError, TypeMismatched
from .pipeline import RuleSet, enforce, evaluate
from .rules import assurance, membership, pattern_match

if TYPE_CHECKING:
    from .schema import ConversionOptions, Schema


def pydantic_details(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in err['loc']) or '<options>'}: {err['msg']}" for err in exc.errors()]


class AttributeOptions(BaseModel):
    """Declarative options of one attribute.

    Usage:
        AttributeOptions(type="integer", required=False, default=10)
        AttributeOptions(type="bool", map={True: "Y", False: "N"}, bind_to="flag")
        AttributeOptions(spec={"street": {"type": "string"}})
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    bind_to: str | None = None
    map: Mapping[Any, Any] | None = None
    type: Any = None
    required: bool = True
    default: Any = None
    any_of: Any = None
    match: Any = None
    assure: Any = None
    spec: Any = None
    inline: bool = False
    transform: Callable[[Any], Any] | None = None

    # Format options pinned on this attribute
    date_format: str | None = None
    datetime_format: str | None = None
    time_format: str | None = None
    decimal_precision: int | None = Field(default=None, ge=0)
    integer_base: int | None = Field(default=None, ge=2, le=36)

    @classmethod
    def coerce(cls, name: str, options: Any = None, /, **overrides) -> AttributeOptions:
        """Normalise a mapping / AttributeOptions / None plus keyword overrides."""
        if isinstance(options, cls) and not overrides:
            return options
        if isinstance(options, cls):
            options = options.declared()
        elif options is None:
            options = {}
        elif not isinstance(options, Mapping):
            raise ConfigurationError(
                f"Options of attribute {name.upper()} MUST be a mapping, got {type(options).__name__}",
                attribute=name.upper(),
            )
        try:
            return cls(**{**options, **overrides})
        except ValidationError as e:
            details = pydantic_details(e)
            raise ConfigurationError(
                f"Invalid options for attribute {name.upper()}: {'; '.join(details)}",
                attribute=name.upper(),
                details=details,
            ) from e

    def declared(self) -> dict[str, Any]:
        """Options that were explicitly given, as a plain dict."""
        return {k: getattr(self, k) for k in self.model_fields_set}

    def format_overrides(self) -> dict[str, Any]:
        return {k: getattr(self, k) for k in FormatOptions.names() if getattr(self, k) is not None}


def _is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


@dataclass(frozen=True, slots=True, eq=False)
class AttributeSpec:
    """Blueprint of one field; see module docstring for the processing chain."""
    name: str
    display_name: str
    rules: RuleSet
    formats: FormatOptions
    registry: CasterRegistry = DEFAULT_REGISTRY
    bind_to: str | None = None
    value_map: Mapping[Any, Any] | None = None
    default: Any = None
    nested: Schema | None = None
    inline: bool = False
    transform: Callable[[Any], Any] | None = None
    pinned: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        name: str,
        options: AttributeOptions | Mapping[str, Any] | None = None,
        *,
        schema_options: Mapping[str, Any] | None = None,
        pinned_options: Mapping[str, Any] | None = None,
        registry: CasterRegistry = DEFAULT_REGISTRY,
        **opts,
    ) -> AttributeSpec:
        """Construct and fully check an attribute blueprint.

        `schema_options` are inherited formats that per-call conversion
        options may override; `pinned_options` and the attribute's own
        formats are fixed.

        Raises ConfigurationError on any invalid option.
        """
        from .schema import Schema

        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Attribute name MUST be a non-empty string, got {name!r}")
        display = name.upper()
        record = AttributeOptions.coerce(name, options, **opts)
        pinned = {k: v for k, v in (pinned_options or {}).items() if v is not None} | record.format_overrides()
        formats = FormatOptions.from_settings().merge(schema_options or {}).merge(pinned)

        nested: Schema | None = None
        type_name: str | None = None
        type_check: Callable[[Any], bool] | None = None

        if isinstance(record.type, Schema):
            if record.spec is not None:
                raise ConfigurationError(
                    f"Attribute {display} cannot declare both a nested type and a spec", attribute=display
                )
            nested = record.type
        elif record.spec is not None:
            if record.type is not None:
                raise ConfigurationError(
                    f"Attribute {display} cannot declare both type {record.type!r} and a spec", attribute=display
                )
            if isinstance(record.spec, Schema):
                nested = record.spec
            elif isinstance(record.spec, Mapping):
                nested = Schema.build(record.spec, registry=registry, pinned=pinned, **(schema_options or {}))
            else:
                raise ConfigurationError(
                    f"Spec of attribute {display} MUST be a mapping or a Schema", attribute=display
                )
        elif record.type is not None:
            if not isinstance(record.type, str) or not registry.has(record.type):
                raise ConfigurationError(
                    f"Unknown type {record.type!r} for attribute {display}; expected one of "
                    f"{', '.join(sorted(registry.names))}",
                    attribute=display,
                )
            type_name = record.type.lower()
            type_check = registry.get(type_name, formats).matches

        if nested is not None:
            type_name, type_check = "schema", _is_mapping
        elif record.inline:
            raise ConfigurationError(f"Inline attribute {display} MUST declare a nested schema", attribute=display)

        rules = RuleSet(
            required=record.required,
            type_name=type_name,
            type_check=type_check,
            enumeration=membership(record.any_of, display),
            pattern=pattern_match(record.match, display),
            predicate=assurance(record.assure, display),
        )
        spec = cls(
            name=name,
            display_name=display,
            rules=rules,
            formats=formats,
            registry=registry,
            bind_to=record.bind_to,
            value_map=MappingProxyType(dict(record.map)) if record.map is not None else None,
            nested=nested,
            inline=record.inline,
            transform=record.transform,
            pinned=frozenset(pinned),
        )

        if record.default is None:
            return spec
        try:
            spec.validate(spec.cast(record.default))
        except AttributeValidationError as e:
            raise ConfigurationError(
                f"Default value of attribute {display} is invalid: {e.message}", attribute=display
            ) from e
        return replace(spec, default=record.default)

    @property
    def output_key(self) -> str:
        return self.bind_to or self.name

    @property
    def composite(self) -> bool:
        return self.nested is not None

    def format_for(self, conversion: ConversionOptions | None = None) -> FormatOptions:
        """Effective formats: per-call overrides apply to options this attribute did not pin."""
        if conversion is None:
            return self.formats
        overrides = {k: v for k, v in conversion.format_overrides().items() if k not in self.pinned}
        return self.formats.merge(overrides)

    def extract(self, data: Mapping[Any, Any]) -> Any:
        """Raw value for this attribute, or None when absent."""
        if self.inline:
            return self._extract_inline(data)
        for key in (self.name, self.name.encode("utf-8")):
            try:
                value = data[key]
            except KeyError:
                continue
            if value is not None:
                return value
        return None

    def _extract_inline(self, data: Mapping[Any, Any]) -> dict[str, Any] | None:
        assembled: dict[str, Any] = {}
        for attr in self.nested.attributes.values():
            value = attr.extract(data)
            if value is None:
                continue
            if attr.inline:
                assembled.update(value)
            else:
                assembled[attr.name] = value
        return assembled or None

    def resolve_default(self, value: Any) -> Any:
        return self.default if value is None and self.default is not None else value

    def cast(self, value: Any, conversion: ConversionOptions | None = None) -> Any:
        """Cast to the declared type, then apply the transform.

        Absent values pass through. Nested attributes are parsed by their
        schema with the same conversion options.
        """
        if value is None:
            return None
        if self.nested is not None:
            if not isinstance(value, Mapping):
                raise TypeMismatched(self.display_name, "MUST be a mapping")
            value = self.nested.bind(value, conversion)
        elif self.rules.type_name is not None:
            value = self.registry.get(self.rules.type_name, self.format_for(conversion)).apply(value, self.display_name)
        return self.transform(value) if self.transform is not None else value

    def validate(self, value: Any) -> None:
        enforce(self.rules, value, self.display_name)

    def check(self, value: Any) -> AttributeValidationError | None:
        return evaluate(self.rules, value, self.display_name)

    def is_valid(self, value: Any) -> bool:
        return self.check(value) is None

    def serialize(self, value: Any) -> dict[Any, Any]:
        """Output fragment for `value`; inline attributes emit the nested mapping itself."""
        if self.inline:
            return dict(value) if value is not None else {}
        if self.value_map is not None and value is not None:
            try:
                value = self.value_map.get(value)
            except TypeError:
                # unhashable: cannot be a key, so a miss
                value = None
        return {self.output_key: value}

    def process(self, data: Mapping[Any, Any], conversion: ConversionOptions | None = None) -> dict[Any, Any]:
        value = self.cast(self.resolve_default(self.extract(data)), conversion)
        self.validate(value)
        return self.serialize(value)
