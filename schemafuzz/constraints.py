"""Constraint interpretation.

Folds a schema's ordered checks into the bounds and directives the
strategy builders need. Later checks only ever tighten: minimums keep the
largest value seen, maximums the smallest. Bounds that cannot be satisfied
raise GenerationError here, before any value is drawn.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import (
    Check,
    CheckKind,
    GenerationConfig,
    MAX_SAFE_INTEGER,
    MIN_SAFE_INTEGER,
    INT32_RANGE,
    UINT32_RANGE,
)
from .errors import GenerationError


# String formats with a dedicated strategy
SHORT_CIRCUIT_FORMATS = frozenset({"datetime", "url", "uuid", "cuid", "regex"})

FORMAT_RANGES = {
    "safeint": (MIN_SAFE_INTEGER, MAX_SAFE_INTEGER),
    "int32": INT32_RANGE,
    "uint32": UINT32_RANGE,
}

Bound = Tuple[float, bool]  # (value, inclusive)


@dataclass
class StringConstraints:
    """Effective parameters for a string schema"""
    min_length: int = 0
    max_length: Optional[int] = None
    format: Optional[Check] = None
    email: bool = False
    prefixes: List[str] = field(default_factory=list)
    suffixes: List[str] = field(default_factory=list)
    has_unsupported: bool = False

    @property
    def affix_length(self) -> int:
        return sum(len(p) for p in self.prefixes) + sum(len(s) for s in self.suffixes)


@dataclass
class NumberConstraints:
    """Effective parameters for a number schema.

    ``low``/``high`` are closed value bounds. On the integer path
    (``multiple_of`` set) values are ``k * multiple_of`` for
    ``integer_low <= k <= integer_high``.
    """
    low: float
    high: float
    multiple_of: Optional[float] = None
    integer_low: Optional[int] = None
    integer_high: Optional[int] = None
    safe_integer: bool = False
    refinements: List[Check] = field(default_factory=list)
    has_unsupported: bool = False


@dataclass
class BigIntConstraints:
    """Effective parameters for a bigint schema; None means unbounded."""
    low: Optional[int] = None
    high: Optional[int] = None
    multiple_of: Optional[int] = None
    has_unsupported: bool = False


@dataclass
class LengthConstraints:
    """Element count bounds for arrays and sets"""
    min_length: int = 0
    max_length: Optional[int] = None
    has_unsupported: bool = False


def _inverted(path: str, low, high) -> GenerationError:
    return GenerationError(
        f"Unable to generate valid values for schema at '{path or '.'}': "
        f"computed min ({low}) is greater than max ({high}). "
        "The constraints cannot be satisfied; an override must be provided for this schema.",
        path,
    )


def ceil_div(value, factor) -> int:
    return int(-((-value) // factor))


def floor_div(value, factor) -> int:
    return int(value // factor)


def _above(value, offset: float) -> float:
    """Smallest usable value above an exclusive lower bound."""
    moved = value + offset
    if moved <= value:
        # offset lost to float precision at this magnitude
        moved = math.nextafter(float(value), math.inf)
    return moved


def _below(value, offset: float) -> float:
    """Largest usable value below an exclusive upper bound."""
    moved = value - offset
    if moved >= value:
        moved = math.nextafter(float(value), -math.inf)
    return moved


def _tighter_lower(current: Optional[Bound], candidate: Bound) -> Bound:
    if current is None or candidate[0] > current[0]:
        return candidate
    if candidate[0] == current[0] and not candidate[1]:
        return candidate
    return current


def _tighter_upper(current: Optional[Bound], candidate: Bound) -> Bound:
    if current is None or candidate[0] < current[0]:
        return candidate
    if candidate[0] == current[0] and not candidate[1]:
        return candidate
    return current


def fold_string_checks(checks: Sequence[Check], path: str = "") -> StringConstraints:
    """Fold string checks into length bounds, format and affixes."""
    result = StringConstraints()

    for check in checks:
        if check.kind == CheckKind.MIN_LENGTH:
            result.min_length = max(result.min_length, check.value)
        elif check.kind == CheckKind.MAX_LENGTH:
            result.max_length = (check.value if result.max_length is None
                                 else min(result.max_length, check.value))
        elif check.kind == CheckKind.LENGTH_EQUALS:
            result.min_length = check.value
            result.max_length = check.value
        elif check.kind == CheckKind.STRING_FORMAT:
            if check.format == "starts_with":
                result.prefixes.append(check.value)
            elif check.format == "ends_with":
                result.suffixes.append(check.value)
            elif check.format == "email":
                result.email = True
            elif check.format in SHORT_CIRCUIT_FORMATS and result.format is None:
                result.format = check
            else:
                result.has_unsupported = True
        else:
            result.has_unsupported = True

    if result.max_length is not None and result.min_length > result.max_length:
        raise _inverted(path, result.min_length, result.max_length)
    if result.max_length is not None and result.affix_length > result.max_length:
        raise _inverted(path, result.affix_length, result.max_length)
    return result


def fold_number_checks(checks: Sequence[Check], config: GenerationConfig,
                       path: str = "") -> NumberConstraints:
    """Fold number checks into closed bounds.

    Default bounds only fill in for missing explicit ones; when a default
    would cross an explicit bound the default window is slid past it.
    Integer formats clamp after the explicit bounds are applied.
    """
    lower: Optional[Bound] = None
    upper: Optional[Bound] = None
    factor = None
    formats: List[str] = []
    refinements: List[Check] = []
    has_unsupported = False

    for check in checks:
        if check.kind == CheckKind.GREATER_THAN:
            lower = _tighter_lower(lower, (check.value, check.inclusive))
        elif check.kind == CheckKind.LESS_THAN:
            upper = _tighter_upper(upper, (check.value, check.inclusive))
        elif check.kind == CheckKind.MULTIPLE_OF:
            factor = (factor or 1) * check.value
        elif check.kind == CheckKind.NUMBER_FORMAT:
            formats.append(check.format)
        elif check.kind == CheckKind.CUSTOM:
            refinements.append(check)
        else:
            has_unsupported = True

    # The multiples of -f and f are the same set
    if factor is not None:
        factor = abs(factor)
    if formats and factor is None:
        factor = 1

    width = config.float_max - config.float_min
    default_low = config.float_min
    default_high = MAX_SAFE_INTEGER if "safeint" in formats else config.float_max
    if lower is None and upper is not None and upper[0] < default_low:
        default_low = upper[0] - width
    if upper is None and lower is not None and lower[0] > default_high:
        default_high = lower[0] + width

    if factor is None:
        offset = config.exclusive_offset
        low = default_low if lower is None else (lower[0] if lower[1] else _above(lower[0], offset))
        high = default_high if upper is None else (upper[0] if upper[1] else _below(upper[0], offset))
        if low > high:
            raise _inverted(path, low, high)
        return NumberConstraints(low, high, refinements=refinements,
                                 has_unsupported=has_unsupported)

    if lower is None:
        integer_low = ceil_div(default_low, factor)
    elif lower[1]:
        integer_low = ceil_div(lower[0], factor)
    else:
        integer_low = floor_div(lower[0], factor) + 1

    if upper is None:
        integer_high = floor_div(default_high, factor)
    elif upper[1]:
        integer_high = floor_div(upper[0], factor)
    else:
        integer_high = ceil_div(upper[0], factor) - 1

    for name in formats:
        format_low, format_high = FORMAT_RANGES[name]
        integer_low = max(integer_low, ceil_div(format_low, factor))
        integer_high = min(integer_high, floor_div(format_high, factor))

    if integer_low > integer_high:
        raise _inverted(path, integer_low, integer_high)

    return NumberConstraints(
        low=integer_low * factor,
        high=integer_high * factor,
        multiple_of=factor,
        integer_low=integer_low,
        integer_high=integer_high,
        safe_integer="safeint" in formats,
        refinements=refinements,
        has_unsupported=has_unsupported,
    )


def fold_bigint_checks(checks: Sequence[Check], path: str = "") -> BigIntConstraints:
    """Fold bigint checks into exact integer bounds."""
    result = BigIntConstraints()

    for check in checks:
        if check.kind == CheckKind.GREATER_THAN:
            value = check.value if check.inclusive else check.value + 1
            result.low = value if result.low is None else max(result.low, value)
        elif check.kind == CheckKind.LESS_THAN:
            value = check.value if check.inclusive else check.value - 1
            result.high = value if result.high is None else min(result.high, value)
        elif check.kind == CheckKind.MULTIPLE_OF:
            result.multiple_of = (result.multiple_of or 1) * check.value
        else:
            result.has_unsupported = True

    if result.multiple_of is not None:
        result.multiple_of = abs(result.multiple_of)
        factor = result.multiple_of
        if result.low is not None:
            result.low = ceil_div(result.low, factor) * factor
        if result.high is not None:
            result.high = floor_div(result.high, factor) * factor

    if result.low is not None and result.high is not None and result.low > result.high:
        raise _inverted(path, result.low, result.high)
    return result


_LENGTH_CHECKS = {
    False: (CheckKind.MIN_LENGTH, CheckKind.MAX_LENGTH, CheckKind.LENGTH_EQUALS),
    True: (CheckKind.MIN_SIZE, CheckKind.MAX_SIZE, CheckKind.SIZE_EQUALS),
}


def fold_length_checks(checks: Sequence[Check], path: str = "",
                       sized: bool = False) -> LengthConstraints:
    """Fold array length (or, with ``sized``, set size) checks."""
    min_kind, max_kind, equals_kind = _LENGTH_CHECKS[sized]
    result = LengthConstraints()

    for check in checks:
        if check.kind == min_kind:
            result.min_length = max(result.min_length, check.value)
        elif check.kind == max_kind:
            result.max_length = (check.value if result.max_length is None
                                 else min(result.max_length, check.value))
        elif check.kind == equals_kind:
            result.min_length = check.value
            result.max_length = check.value
        else:
            result.has_unsupported = True

    if result.max_length is not None and result.min_length > result.max_length:
        raise _inverted(path, result.min_length, result.max_length)
    return result
