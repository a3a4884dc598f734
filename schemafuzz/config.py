"""Configuration and data classes for schemafuzz."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


MAX_SAFE_INTEGER = 2 ** 53 - 1
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER
INT32_RANGE = (-2 ** 31, 2 ** 31 - 1)
UINT32_RANGE = (0, 2 ** 32 - 1)


class Kind(Enum):
    """Schema kinds understood by the strategy builders"""
    STRING = "string"
    NUMBER = "number"
    BIGINT = "bigint"
    BOOLEAN = "boolean"
    DATE = "date"
    NULL = "null"
    UNDEFINED = "undefined"
    ARRAY = "array"
    OBJECT = "object"
    UNION = "union"
    DISCRIMINATED_UNION = "discriminated_union"
    TUPLE = "tuple"
    RECORD = "record"
    MAP = "map"
    SET = "set"
    FUNCTION = "function"
    LITERAL = "literal"
    ENUM = "enum"
    OPTIONAL = "optional"
    NULLABLE = "nullable"
    DEFAULT = "default"
    TRANSFORM = "transform"
    PIPE = "pipe"
    CATCH = "catch"
    READONLY = "readonly"
    PROMISE = "promise"
    NAN = "nan"
    SYMBOL = "symbol"
    ANY = "any"
    UNKNOWN = "unknown"
    VOID = "void"
    NEVER = "never"


# Kinds whose parsed output is the input value itself
SCALAR_KINDS = frozenset({
    Kind.STRING,
    Kind.NUMBER,
    Kind.BIGINT,
    Kind.BOOLEAN,
    Kind.DATE,
    Kind.UNDEFINED,
    Kind.NULL,
    Kind.LITERAL,
    Kind.ENUM,
    Kind.ANY,
    Kind.UNKNOWN,
    Kind.VOID,
})


class CheckKind(Enum):
    """Constraint tags attached to a schema's checks list"""
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    LENGTH_EQUALS = "length_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    MULTIPLE_OF = "multiple_of"
    NUMBER_FORMAT = "number_format"
    STRING_FORMAT = "string_format"
    MIN_SIZE = "min_size"
    MAX_SIZE = "max_size"
    SIZE_EQUALS = "size_equals"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Check:
    """A single constraint or refinement on a schema node.

    ``value`` holds the bound, length, factor or affix depending on the
    kind; ``format`` names a string or number format.
    """
    kind: CheckKind
    value: Any = None
    inclusive: bool = True
    format: Optional[str] = None
    precision: Optional[int] = None
    offset: bool = False
    fn: Optional[Callable[[Any], Any]] = None
    message: Optional[str] = None


@dataclass
class GenerationConfig:
    """Configuration for strategy generation"""
    min_success_rate: float = 0.01
    min_runs: int = 1000
    float_min: float = -1e6
    float_max: float = 1e6
    min_magnitude: float = 1e-10  # floats closer to zero than this are dropped
    exclusive_offset: float = 0.001
    string_padding: int = 10
    verbose: bool = False
