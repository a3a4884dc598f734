"""Schema nodes and their validation.

A small declarative schema library: nodes carry a kind, an ordered list of
checks and kind-specific children, and know how to parse a value. Every
fluent method returns a new node, so node identity is stable once built.
"""

import datetime as _datetime
import decimal
import inspect
import math
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from .config import (
    Check,
    CheckKind,
    Kind,
    INT32_RANGE,
    MAX_SAFE_INTEGER,
    MIN_SAFE_INTEGER,
    UINT32_RANGE,
)


EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Z0-9_'+\-\.]*)[A-Z0-9_+-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)
UUID_PATTERN = re.compile(
    r"^([0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-8][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}"
    r"|00000000-0000-0000-0000-000000000000)$"
)
CUID_PATTERN = re.compile(r"^[cC][^\s-]{8,}$")

NUMBER_FORMAT_RANGES = {
    "safeint": (MIN_SAFE_INTEGER, MAX_SAFE_INTEGER),
    "int32": INT32_RANGE,
    "uint32": UINT32_RANGE,
}

_INVALID = object()


class SchemaValidationError(ValueError):
    """Raised by Schema.parse when a value does not match."""

    def __init__(self, issues: List[str]):
        self.issues = issues
        super().__init__("; ".join(issues))


class Symbol:
    """Unique token value for symbol schemas."""

    __slots__ = ("description",)

    def __init__(self, description: str = ""):
        self.description = description

    def __repr__(self) -> str:
        return f"Symbol({self.description!r})"


@dataclass
class ParseResult:
    """Outcome of Schema.safe_parse"""
    success: bool
    value: Any = None
    issues: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Schema:
    """A node in a schema tree.

    Equality and hashing are by identity: two structurally identical
    nodes are different schemas.
    """
    kind: Kind
    checks: Tuple[Check, ...] = ()
    element: Optional["Schema"] = None
    shape: Optional[Dict[str, "Schema"]] = None
    options: Optional[Tuple["Schema", ...]] = None
    discriminator: Optional[str] = None
    items: Optional[Tuple["Schema", ...]] = None
    key: Optional["Schema"] = None
    value: Optional["Schema"] = None
    inner: Optional["Schema"] = None
    input: Optional["Schema"] = None
    output: Optional["Schema"] = None
    values: Optional[Tuple[Any, ...]] = None
    fn: Optional[Callable[[Any], Any]] = None
    default_value: Any = None
    catch_value: Any = None

    def __repr__(self) -> str:
        return f"Schema({self.kind.value}, checks={len(self.checks)})"

    # Parsing

    def safe_parse(self, value: Any) -> ParseResult:
        """Parse a value, reporting failure instead of raising."""
        issues: List[str] = []
        result = _parse(self, value, issues, "")
        if result is _INVALID:
            return ParseResult(False, None, issues)
        return ParseResult(True, result)

    def parse(self, value: Any) -> Any:
        """Parse a value and return the output, raising on failure."""
        result = self.safe_parse(value)
        if not result.success:
            raise SchemaValidationError(result.issues)
        return result.value

    def variants(self) -> Dict[Any, "Schema"]:
        """Map discriminator values to options of a discriminated union."""
        mapping = {}
        for option in self.options or ():
            tag = (option.shape or {}).get(self.discriminator)
            if tag is None or tag.kind not in (Kind.LITERAL, Kind.ENUM):
                raise ValueError(
                    f"Every option needs a literal '{self.discriminator}' field"
                )
            for tag_value in tag.values:
                mapping[tag_value] = option
        return mapping

    # Checks

    def with_check(self, check: Check) -> "Schema":
        return replace(self, checks=self.checks + (check,))

    def min(self, value, message: Optional[str] = None) -> "Schema":
        if self.kind in (Kind.STRING, Kind.ARRAY):
            return self.with_check(Check(CheckKind.MIN_LENGTH, value, message=message))
        if self.kind == Kind.SET:
            return self.with_check(Check(CheckKind.MIN_SIZE, value, message=message))
        return self.gte(value, message)

    def max(self, value, message: Optional[str] = None) -> "Schema":
        if self.kind in (Kind.STRING, Kind.ARRAY):
            return self.with_check(Check(CheckKind.MAX_LENGTH, value, message=message))
        if self.kind == Kind.SET:
            return self.with_check(Check(CheckKind.MAX_SIZE, value, message=message))
        return self.lte(value, message)

    def length(self, value: int) -> "Schema":
        return self.with_check(Check(CheckKind.LENGTH_EQUALS, value))

    def size(self, value: int) -> "Schema":
        return self.with_check(Check(CheckKind.SIZE_EQUALS, value))

    def nonempty(self) -> "Schema":
        return self.min(1)

    def gt(self, value, message: Optional[str] = None) -> "Schema":
        self._require(Kind.NUMBER, Kind.BIGINT)
        return self.with_check(Check(CheckKind.GREATER_THAN, value, inclusive=False, message=message))

    def gte(self, value, message: Optional[str] = None) -> "Schema":
        self._require(Kind.NUMBER, Kind.BIGINT)
        return self.with_check(Check(CheckKind.GREATER_THAN, value, inclusive=True, message=message))

    def lt(self, value, message: Optional[str] = None) -> "Schema":
        self._require(Kind.NUMBER, Kind.BIGINT)
        return self.with_check(Check(CheckKind.LESS_THAN, value, inclusive=False, message=message))

    def lte(self, value, message: Optional[str] = None) -> "Schema":
        self._require(Kind.NUMBER, Kind.BIGINT)
        return self.with_check(Check(CheckKind.LESS_THAN, value, inclusive=True, message=message))

    def positive(self) -> "Schema":
        return self.gt(0)

    def nonnegative(self) -> "Schema":
        return self.gte(0)

    def negative(self) -> "Schema":
        return self.lt(0)

    def nonpositive(self) -> "Schema":
        return self.lte(0)

    def multiple_of(self, value) -> "Schema":
        self._require(Kind.NUMBER, Kind.BIGINT)
        return self.with_check(Check(CheckKind.MULTIPLE_OF, value))

    def email(self) -> "Schema":
        return self._string_format("email")

    def url(self) -> "Schema":
        return self._string_format("url")

    def uuid(self) -> "Schema":
        return self._string_format("uuid")

    def cuid(self) -> "Schema":
        return self._string_format("cuid")

    def lowercase(self) -> "Schema":
        return self._string_format("lowercase")

    def uppercase(self) -> "Schema":
        return self._string_format("uppercase")

    def datetime(self, precision: Optional[int] = None, offset: bool = False) -> "Schema":
        self._require(Kind.STRING)
        return self.with_check(Check(
            CheckKind.STRING_FORMAT, format="datetime", precision=precision, offset=offset
        ))

    def regex(self, pattern: str) -> "Schema":
        return self._string_format("regex", pattern)

    def starts_with(self, prefix: str) -> "Schema":
        return self._string_format("starts_with", prefix)

    def ends_with(self, suffix: str) -> "Schema":
        return self._string_format("ends_with", suffix)

    def refine(self, fn: Callable[[Any], Any], message: Optional[str] = None) -> "Schema":
        return self.with_check(Check(CheckKind.CUSTOM, fn=fn, message=message))

    # Must follow every method annotated with the builtin int

    def int(self) -> "Schema":
        return self._number_format("safeint")

    def int32(self) -> "Schema":
        return self._number_format("int32")

    def uint32(self) -> "Schema":
        return self._number_format("uint32")

    # Wrappers

    def optional(self) -> "Schema":
        return optional(self)

    def nullable(self) -> "Schema":
        return nullable(self)

    def default(self, value: Any) -> "Schema":
        return Schema(Kind.DEFAULT, inner=self, default_value=value)

    def catch(self, value: Any) -> "Schema":
        return Schema(Kind.CATCH, inner=self, catch_value=value)

    def readonly(self) -> "Schema":
        return Schema(Kind.READONLY, inner=self)

    def transform(self, fn: Callable[[Any], Any]) -> "Schema":
        return transform(self, fn)

    def pipe(self, output: "Schema") -> "Schema":
        return pipe(self, output)

    def _require(self, *kinds: Kind) -> None:
        if self.kind not in kinds:
            raise TypeError(f"Check not supported on {self.kind.value} schemas")

    def _number_format(self, name: str) -> "Schema":
        self._require(Kind.NUMBER)
        return self.with_check(Check(CheckKind.NUMBER_FORMAT, format=name))

    def _string_format(self, name: str, value: Any = None) -> "Schema":
        self._require(Kind.STRING)
        return self.with_check(Check(CheckKind.STRING_FORMAT, value, format=name))


# Constructors

def string() -> Schema:
    return Schema(Kind.STRING)


def number() -> Schema:
    return Schema(Kind.NUMBER)


def bigint() -> Schema:
    return Schema(Kind.BIGINT)


def boolean() -> Schema:
    return Schema(Kind.BOOLEAN)


def date() -> Schema:
    return Schema(Kind.DATE)


def null() -> Schema:
    return Schema(Kind.NULL)


def undefined() -> Schema:
    return Schema(Kind.UNDEFINED)


def void() -> Schema:
    return Schema(Kind.VOID)


def any_() -> Schema:
    return Schema(Kind.ANY)


def unknown() -> Schema:
    return Schema(Kind.UNKNOWN)


def never() -> Schema:
    return Schema(Kind.NEVER)


def nan() -> Schema:
    return Schema(Kind.NAN)


def symbol() -> Schema:
    return Schema(Kind.SYMBOL)


def literal(*values: Any) -> Schema:
    return Schema(Kind.LITERAL, values=values)


def enum(values: Any) -> Schema:
    """Enum of plain values, or of the values of an ``enum.Enum`` class."""
    if inspect.isclass(values) and issubclass(values, Enum):
        values = [member.value for member in values]
    return Schema(Kind.ENUM, values=tuple(values))


def array(element: Schema) -> Schema:
    return Schema(Kind.ARRAY, element=element)


def object_(shape: Mapping[str, Schema]) -> Schema:
    return Schema(Kind.OBJECT, shape=dict(shape))


def union(options: Iterable[Schema]) -> Schema:
    return Schema(Kind.UNION, options=tuple(options))


def discriminated_union(discriminator: str, options: Iterable[Schema]) -> Schema:
    schema = Schema(Kind.DISCRIMINATED_UNION, options=tuple(options), discriminator=discriminator)
    schema.variants()
    return schema


def tuple_(items: Iterable[Schema]) -> Schema:
    return Schema(Kind.TUPLE, items=tuple(items))


def record(key: Schema, value: Schema) -> Schema:
    return Schema(Kind.RECORD, key=key, value=value)


def map_(key: Schema, value: Schema) -> Schema:
    return Schema(Kind.MAP, key=key, value=value)


def set_(element: Schema) -> Schema:
    return Schema(Kind.SET, element=element)


def function(output: Optional[Schema] = None) -> Schema:
    return Schema(Kind.FUNCTION, output=output if output is not None else unknown())


def promise(inner: Schema) -> Schema:
    return Schema(Kind.PROMISE, inner=inner)


def optional(inner: Schema) -> Schema:
    return Schema(Kind.OPTIONAL, inner=inner)


def nullable(inner: Schema) -> Schema:
    return Schema(Kind.NULLABLE, inner=inner)


def transform(input: Schema, fn: Callable[[Any], Any]) -> Schema:
    return Schema(Kind.TRANSFORM, input=input, fn=fn)


def pipe(input: Schema, output: Schema) -> Schema:
    return Schema(Kind.PIPE, input=input, output=output)


def freeze(value: Any) -> Any:
    """Return a read-only view of a list, mapping or set."""
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, set):
        return frozenset(value)
    if isinstance(value, dict):
        return MappingProxyType(value)
    return value


# Validation

def _fail(issues: List[str], path: str, message: str) -> Any:
    issues.append(f"{path or '.'}: {message}")
    return _INVALID


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    return isinstance(value, int) or float(value).is_integer()


def _same_literal(expected: Any, value: Any) -> bool:
    return type(expected) is type(value) and expected == value


def _is_multiple(value: Any, step: Any) -> bool:
    with decimal.localcontext() as ctx:
        ctx.prec = 60
        return decimal.Decimal(repr(value)) % decimal.Decimal(repr(step)) == 0


def _datetime_pattern(precision: Optional[int], offset: bool):
    if precision is None:
        fraction = r"(?:\.\d+)?"
    elif precision == 0:
        fraction = ""
    else:
        fraction = rf"\.\d{{{precision}}}"
    zone = r"(?:Z|[+-]\d{2}:\d{2})" if offset else "Z"
    return re.compile(rf"^(\d{{4}})-(\d{{2}})-(\d{{2}})T(\d{{2}}):(\d{{2}}):(\d{{2}}){fraction}{zone}$")


def _is_datetime(value: str, precision: Optional[int], offset: bool) -> bool:
    match = _datetime_pattern(precision, offset).match(value)
    if not match:
        return False
    try:
        _datetime.datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return False
    return True


def _is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def _string_format_ok(check: Check, value: str) -> bool:
    fmt = check.format
    if fmt == "email":
        return bool(EMAIL_PATTERN.match(value))
    if fmt == "url":
        return _is_url(value)
    if fmt == "uuid":
        return bool(UUID_PATTERN.match(value))
    if fmt == "cuid":
        return bool(CUID_PATTERN.match(value))
    if fmt == "datetime":
        return _is_datetime(value, check.precision, check.offset)
    if fmt == "regex":
        return re.search(check.value, value) is not None
    if fmt == "starts_with":
        return value.startswith(check.value)
    if fmt == "ends_with":
        return value.endswith(check.value)
    if fmt == "lowercase":
        return value == value.lower()
    if fmt == "uppercase":
        return value == value.upper()
    raise ValueError(f"Unknown string format: {fmt}")


def _check_ok(check: Check, value: Any) -> bool:
    kind = check.kind
    if kind in (CheckKind.MIN_LENGTH, CheckKind.MIN_SIZE):
        return len(value) >= check.value
    if kind in (CheckKind.MAX_LENGTH, CheckKind.MAX_SIZE):
        return len(value) <= check.value
    if kind in (CheckKind.LENGTH_EQUALS, CheckKind.SIZE_EQUALS):
        return len(value) == check.value
    if kind == CheckKind.GREATER_THAN:
        return value >= check.value if check.inclusive else value > check.value
    if kind == CheckKind.LESS_THAN:
        return value <= check.value if check.inclusive else value < check.value
    if kind == CheckKind.MULTIPLE_OF:
        return _is_multiple(value, check.value)
    if kind == CheckKind.NUMBER_FORMAT:
        low, high = NUMBER_FORMAT_RANGES[check.format]
        return _is_integral(value) and low <= value <= high
    if kind == CheckKind.STRING_FORMAT:
        return _string_format_ok(check, value)
    return bool(check.fn(value))


def _run_checks(schema: Schema, value: Any, issues: List[str], path: str) -> Any:
    failed = False
    for check in schema.checks:
        if not _check_ok(check, value):
            label = check.format or check.kind.value
            _fail(issues, path, check.message or f"failed {label} check")
            failed = True
    return _INVALID if failed else value


def _parse(schema: Schema, value: Any, issues: List[str], path: str) -> Any:
    result = _PARSERS[schema.kind](schema, value, issues, path)
    if result is _INVALID or not schema.checks:
        return result
    return _run_checks(schema, result, issues, path)


def _parse_string(schema, value, issues, path):
    if not isinstance(value, str):
        return _fail(issues, path, "expected string")
    return value


def _parse_number(schema, value, issues, path):
    if not _is_number(value) or not math.isfinite(value):
        return _fail(issues, path, "expected finite number")
    return value


def _parse_bigint(schema, value, issues, path):
    if not isinstance(value, int) or isinstance(value, bool):
        return _fail(issues, path, "expected integer")
    return value


def _parse_boolean(schema, value, issues, path):
    if not isinstance(value, bool):
        return _fail(issues, path, "expected boolean")
    return value


def _parse_date(schema, value, issues, path):
    if not isinstance(value, _datetime.datetime):
        return _fail(issues, path, "expected datetime")
    return value


def _parse_none(schema, value, issues, path):
    if value is not None:
        return _fail(issues, path, "expected None")
    return value


def _parse_nan(schema, value, issues, path):
    if not isinstance(value, float) or not math.isnan(value):
        return _fail(issues, path, "expected NaN")
    return value


def _parse_symbol(schema, value, issues, path):
    if not isinstance(value, Symbol):
        return _fail(issues, path, "expected symbol")
    return value


def _parse_anything(schema, value, issues, path):
    return value


def _parse_never(schema, value, issues, path):
    return _fail(issues, path, "no value is allowed")


def _parse_literal(schema, value, issues, path):
    if not any(_same_literal(expected, value) for expected in schema.values):
        return _fail(issues, path, f"expected one of {list(schema.values)!r}")
    return value


def _parse_array(schema, value, issues, path):
    if not isinstance(value, (list, tuple)):
        return _fail(issues, path, "expected list")
    parsed = [_parse(schema.element, item, issues, f"{path}[{i}]") for i, item in enumerate(value)]
    if any(item is _INVALID for item in parsed):
        return _INVALID
    return parsed


def _parse_object(schema, value, issues, path):
    if not isinstance(value, Mapping):
        return _fail(issues, path, "expected mapping")
    parsed = {
        name: _parse(field_schema, value.get(name), issues, f"{path}.{name}")
        for name, field_schema in schema.shape.items()
    }
    if any(item is _INVALID for item in parsed.values()):
        return _INVALID
    return parsed


def _parse_union(schema, value, issues, path):
    for option in schema.options:
        option_issues: List[str] = []
        result = _parse(option, value, option_issues, path)
        if result is not _INVALID:
            return result
    return _fail(issues, path, "no union option matched")


def _parse_discriminated_union(schema, value, issues, path):
    if not isinstance(value, Mapping):
        return _fail(issues, path, "expected mapping")
    tag = value.get(schema.discriminator)
    for tag_value, option in schema.variants().items():
        if _same_literal(tag_value, tag):
            return _parse(option, value, issues, path)
    return _fail(issues, path, f"invalid discriminator value {tag!r}")


def _parse_tuple(schema, value, issues, path):
    if not isinstance(value, (list, tuple)) or len(value) != len(schema.items):
        return _fail(issues, path, f"expected sequence of length {len(schema.items)}")
    parsed = [_parse(item, part, issues, f"{path}[{i}]") for i, (item, part) in enumerate(zip(schema.items, value))]
    if any(item is _INVALID for item in parsed):
        return _INVALID
    return tuple(parsed)


def _parse_mapping(schema, value, issues, path):
    if not isinstance(value, Mapping):
        return _fail(issues, path, "expected mapping")
    parsed = {}
    failed = False
    for key, item in value.items():
        parsed_key = _parse(schema.key, key, issues, f"{path}.(key)")
        parsed_item = _parse(schema.value, item, issues, f"{path}[{key!r}]")
        if parsed_key is _INVALID or parsed_item is _INVALID:
            failed = True
        else:
            parsed[parsed_key] = parsed_item
    return _INVALID if failed else parsed


def _parse_set(schema, value, issues, path):
    if not isinstance(value, (set, frozenset)):
        return _fail(issues, path, "expected set")
    parsed = [_parse(schema.element, item, issues, f"{path}.(value)") for item in value]
    if any(item is _INVALID for item in parsed):
        return _INVALID
    return set(parsed)


def _parse_function(schema, value, issues, path):
    if not callable(value):
        return _fail(issues, path, "expected callable")
    return value


def _parse_optional(schema, value, issues, path):
    if value is None:
        return None
    return _parse(schema.inner, value, issues, path)


def _parse_default(schema, value, issues, path):
    if value is None:
        default = schema.default_value
        return default() if callable(default) else default
    return _parse(schema.inner, value, issues, path)


def _parse_transform(schema, value, issues, path):
    result = _parse(schema.input, value, issues, path)
    if result is _INVALID:
        return _INVALID
    return schema.fn(result)


def _parse_pipe(schema, value, issues, path):
    result = _parse(schema.input, value, issues, path)
    if result is _INVALID:
        return _INVALID
    return _parse(schema.output, result, issues, path)


def _parse_catch(schema, value, issues, path):
    result = _parse(schema.inner, value, [], path)
    if result is _INVALID:
        fallback = schema.catch_value
        return fallback() if callable(fallback) else fallback
    return result


def _parse_readonly(schema, value, issues, path):
    result = _parse(schema.inner, value, issues, path)
    if result is _INVALID:
        return _INVALID
    return freeze(result)


def _parse_promise(schema, value, issues, path):
    if not inspect.isawaitable(value):
        return _fail(issues, path, "expected awaitable")
    return value


_PARSERS = {
    Kind.STRING: _parse_string,
    Kind.NUMBER: _parse_number,
    Kind.BIGINT: _parse_bigint,
    Kind.BOOLEAN: _parse_boolean,
    Kind.DATE: _parse_date,
    Kind.NULL: _parse_none,
    Kind.UNDEFINED: _parse_none,
    Kind.VOID: _parse_none,
    Kind.NAN: _parse_nan,
    Kind.SYMBOL: _parse_symbol,
    Kind.ANY: _parse_anything,
    Kind.UNKNOWN: _parse_anything,
    Kind.NEVER: _parse_never,
    Kind.LITERAL: _parse_literal,
    Kind.ENUM: _parse_literal,
    Kind.ARRAY: _parse_array,
    Kind.OBJECT: _parse_object,
    Kind.UNION: _parse_union,
    Kind.DISCRIMINATED_UNION: _parse_discriminated_union,
    Kind.TUPLE: _parse_tuple,
    Kind.RECORD: _parse_mapping,
    Kind.MAP: _parse_mapping,
    Kind.SET: _parse_set,
    Kind.FUNCTION: _parse_function,
    Kind.OPTIONAL: _parse_optional,
    Kind.NULLABLE: _parse_optional,
    Kind.DEFAULT: _parse_default,
    Kind.TRANSFORM: _parse_transform,
    Kind.PIPE: _parse_pipe,
    Kind.CATCH: _parse_catch,
    Kind.READONLY: _parse_readonly,
    Kind.PROMISE: _parse_promise,
}
