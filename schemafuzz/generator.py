"""Per-kind strategy builders."""

import decimal
from typing import Any, Callable, Dict

from hypothesis import strategies as st

from .config import CheckKind, GenerationConfig, Kind
from .constraints import (
    fold_bigint_checks,
    fold_length_checks,
    fold_number_checks,
    fold_string_checks,
)
from .errors import UnsupportedSchemaError
from .guard import filter_by_schema
from .refinements import detect_refinement
from .schema import Schema, Symbol, freeze
from . import values


Recurse = Callable[[Schema, str], st.SearchStrategy]

# Builders that interpret custom checks themselves
_REFINEMENT_AWARE = frozenset({Kind.STRING, Kind.NUMBER, Kind.BIGINT})


class StrategyBuilder:
    """Builds a hypothesis strategy for one schema node.

    Children are compiled through the ``recurse`` callback so that
    overrides registered further down the tree are honoured.
    """

    def __init__(self, config: GenerationConfig, log: Callable[[str], None]):
        self.config = config
        self._log = log
        self.builders: Dict[Kind, Callable[[Schema, str, Recurse], st.SearchStrategy]] = {
            Kind.STRING: self._build_string,
            Kind.NUMBER: self._build_number,
            Kind.BIGINT: self._build_bigint,
            Kind.BOOLEAN: lambda s, p, r: st.booleans(),
            Kind.DATE: lambda s, p, r: st.datetimes(),
            Kind.NULL: lambda s, p, r: st.none(),
            Kind.UNDEFINED: lambda s, p, r: st.none(),
            Kind.VOID: lambda s, p, r: st.none(),
            Kind.NAN: lambda s, p, r: st.just(float("nan")),
            Kind.SYMBOL: lambda s, p, r: st.text().map(Symbol),
            Kind.ANY: lambda s, p, r: values.anything(),
            Kind.UNKNOWN: lambda s, p, r: values.anything(),
            Kind.NEVER: self._build_never,
            Kind.LITERAL: lambda s, p, r: st.sampled_from(s.values),
            Kind.ENUM: lambda s, p, r: st.sampled_from(s.values),
            Kind.ARRAY: self._build_array,
            Kind.OBJECT: self._build_object,
            Kind.UNION: self._build_union,
            Kind.DISCRIMINATED_UNION: self._build_discriminated_union,
            Kind.TUPLE: self._build_tuple,
            Kind.RECORD: self._build_record,
            Kind.MAP: self._build_map,
            Kind.SET: self._build_set,
            Kind.FUNCTION: self._build_function,
            Kind.OPTIONAL: self._build_optional,
            Kind.NULLABLE: self._build_optional,
            Kind.DEFAULT: self._build_optional,
            Kind.TRANSFORM: self._build_transform,
            Kind.PIPE: self._build_transform,
            Kind.CATCH: self._build_catch,
            Kind.READONLY: self._build_readonly,
            Kind.PROMISE: self._build_promise,
        }
        missing = set(Kind) - set(self.builders)
        if missing:
            raise RuntimeError(f"No strategy builder for {sorted(k.value for k in missing)}")

    def build(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        """Dispatch on the schema kind."""
        strategy = self.builders[schema.kind](schema, path, recurse)
        if schema.kind not in _REFINEMENT_AWARE and any(
            check.kind == CheckKind.CUSTOM for check in schema.checks
        ):
            self._log(f"Filtering refined {schema.kind.value} at '{path or '.'}'")
            strategy = filter_by_schema(strategy, schema, path, self.config)
        return strategy

    # Scalars

    def _build_string(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        if not schema.checks:
            return st.text()

        bounds = fold_string_checks(schema.checks, path)

        if bounds.format is not None:
            strategy = self._format_strategy(bounds.format)
            if len(schema.checks) > 1:
                strategy = filter_by_schema(strategy, schema, path, self.config)
            return strategy

        if bounds.email:
            strategy = values.emails(path, self.config)
            if len(schema.checks) > 1:
                strategy = filter_by_schema(strategy, schema, path, self.config)
            return strategy

        # Affixes count towards the length bounds
        affix = bounds.affix_length
        max_length = bounds.max_length
        if max_length is None:
            max_length = max(2 * bounds.min_length, affix) + self.config.string_padding
        strategy = st.text(
            min_size=max(0, bounds.min_length - affix),
            max_size=max_length - affix,
        )
        for prefix in bounds.prefixes:
            strategy = strategy.map(lambda s, prefix=prefix: prefix + s)
        for suffix in bounds.suffixes:
            strategy = strategy.map(lambda s, suffix=suffix: s + suffix)

        if bounds.has_unsupported:
            self._log(f"Filtering string at '{path or '.'}' by schema")
            return filter_by_schema(strategy, schema, path, self.config)
        return strategy

    def _format_strategy(self, check) -> st.SearchStrategy:
        if check.format == "datetime":
            return values.datetime_strings(check.precision, check.offset)
        if check.format == "url":
            return values.urls()
        if check.format == "uuid":
            return values.uuids()
        if check.format == "cuid":
            return values.cuids()
        return values.pattern_strings(check.value)

    def _build_number(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        config = self.config
        bounds = fold_number_checks(schema.checks, config, path)

        if bounds.multiple_of is not None:
            factor = bounds.multiple_of
            strategy = st.integers(
                min_value=bounds.integer_low, max_value=bounds.integer_high
            ).map(lambda k: _scale(k, factor))
        else:
            strategy = st.floats(
                min_value=bounds.low,
                max_value=bounds.high,
                allow_nan=False,
                allow_infinity=False,
            ).filter(lambda x: abs(x) >= config.min_magnitude or x == 0)

        if bounds.refinements:
            detected = self._detect(bounds.refinements, bounds.low, bounds.high)
            if detected is not None:
                pattern, smart = detected
                self._log(f"Detected {pattern.name} refinement at '{path or '.'}'")
                if len(bounds.refinements) == 1 and bounds.multiple_of is None:
                    return smart
                return filter_by_schema(smart, schema, path, config)
            self._log(f"No refinement pattern at '{path or '.'}', filtering")
            return filter_by_schema(strategy, schema, path, config)

        if bounds.has_unsupported:
            return filter_by_schema(strategy, schema, path, config)
        return strategy

    def _detect(self, refinements, low, high):
        for check in refinements:
            detected = detect_refinement(check.fn, low, high)
            if detected is not None:
                return detected
        return None

    def _build_bigint(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        if not schema.checks:
            return st.integers()

        bounds = fold_bigint_checks(schema.checks, path)
        if bounds.multiple_of is None:
            strategy = st.integers(min_value=bounds.low, max_value=bounds.high)
        else:
            factor = bounds.multiple_of
            strategy = st.integers(
                min_value=None if bounds.low is None else bounds.low // factor,
                max_value=None if bounds.high is None else bounds.high // factor,
            ).map(lambda k: k * factor)

        if bounds.has_unsupported:
            return filter_by_schema(strategy, schema, path, self.config)
        return strategy

    def _build_never(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        raise UnsupportedSchemaError("never", path)

    # Collections

    def _build_array(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        bounds = fold_length_checks(schema.checks, path)
        return st.lists(
            recurse(schema.element, path + "[*]"),
            min_size=bounds.min_length,
            max_size=bounds.max_length,
        )

    def _build_set(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        bounds = fold_length_checks(schema.checks, path, sized=True)
        return st.lists(
            recurse(schema.element, path + ".(value)"),
            min_size=bounds.min_length,
            max_size=bounds.max_length,
            unique=True,
        ).map(set)

    def _build_object(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return st.fixed_dictionaries({
            name: recurse(field_schema, f"{path}.{name}")
            for name, field_schema in schema.shape.items()
        })

    def _build_union(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return st.one_of(*[recurse(option, path) for option in schema.options])

    def _build_discriminated_union(self, schema: Schema, path: str,
                                   recurse: Recurse) -> st.SearchStrategy:
        variants = schema.variants()
        return st.one_of(*[recurse(option, path) for option in variants.values()])

    def _build_tuple(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return st.tuples(*[
            recurse(item, f"{path}[{index}]") for index, item in enumerate(schema.items)
        ])

    def _build_record(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return st.dictionaries(recurse(schema.key, path), recurse(schema.value, path + "[*]"))

    def _build_map(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        key = recurse(schema.key, path + ".(key)")
        value = recurse(schema.value, path + ".(value)")
        return st.lists(st.tuples(key, value)).map(dict)

    # Wrappers

    def _build_function(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return recurse(schema.output, path + ".(return type)").map(values.constant_function)

    def _build_promise(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return recurse(schema.inner, path + ".(resolved type)").map(values.Resolved)

    def _build_optional(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        # optional, nullable and default all accept None in place of the inner value
        return st.none() | recurse(schema.inner, path)

    def _build_transform(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return filter_by_schema(recurse(schema.input, path), schema, path, self.config)

    def _build_catch(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return st.one_of(recurse(schema.inner, path), values.anything())

    def _build_readonly(self, schema: Schema, path: str, recurse: Recurse) -> st.SearchStrategy:
        return recurse(schema.inner, path).map(freeze)


def _scale(k: int, factor) -> Any:
    """k * factor, computed in decimal so float factors land on exact multiples."""
    if isinstance(factor, int):
        return k * factor
    return float(decimal.Decimal(k) * decimal.Decimal(repr(factor)))
