"""Refinement pattern detection.

Calls an opaque refinement predicate with a few sentinel values to spot
the two most common shapes, divisibility and exact equality, so that
matching values can be generated directly instead of by rejection.
Anything else, including a predicate that raises on a sentinel, is left
to filtering.
"""

from typing import Any, Callable, List, Optional, Sequence

from hypothesis import strategies as st

from .constraints import ceil_div, floor_div


Predicate = Callable[[Any], Any]


class RefinementPattern:
    """A recognisable refinement shape."""

    name = "pattern"

    def detect(self, fn: Predicate, low: float, high: float) -> Optional[st.SearchStrategy]:
        """Return a strategy producing only accepted values in [low, high], or None."""
        raise NotImplementedError


class ModuloPattern(RefinementPattern):
    """``x % divisor == 0``"""

    name = "modulo"
    SENTINELS = (0, 1, 2, 3, 6, 9, 12, -3, -6)
    NON_MULTIPLES = (1, 2, 4)

    def __init__(self, divisor: int = 3):
        self.divisor = divisor

    def detect(self, fn: Predicate, low: float, high: float) -> Optional[st.SearchStrategy]:
        multiples = [v for v in self.SENTINELS if v % self.divisor == 0]
        if not all(fn(v) for v in multiples):
            return None
        if any(fn(v) for v in self.NON_MULTIPLES):
            return None

        integer_low = ceil_div(low, self.divisor)
        integer_high = floor_div(high, self.divisor)
        if integer_low > integer_high:
            return None
        divisor = self.divisor
        return st.integers(min_value=integer_low, max_value=integer_high).map(
            lambda x: x * divisor
        )


class EqualityPattern(RefinementPattern):
    """``x == value`` for one of a few common constants"""

    name = "equality"
    SENTINELS = (-42, 0, 42, 100, -100)

    def detect(self, fn: Predicate, low: float, high: float) -> Optional[st.SearchStrategy]:
        accepted = [value for value in self.SENTINELS if fn(value)]
        if len(accepted) != 1:
            return None
        value = accepted[0]
        if fn(value - 1) or fn(value + 1) or not low <= value <= high:
            return None
        return st.just(value)


DEFAULT_PATTERNS: List[RefinementPattern] = [ModuloPattern(3), EqualityPattern()]


def detect_refinement(fn: Predicate, low: float, high: float,
                      patterns: Sequence[RefinementPattern] = DEFAULT_PATTERNS):
    """Find the first pattern matching ``fn``.

    Returns:
        Tuple of (pattern, strategy), or None when nothing matched.
    """
    if not callable(fn):
        return None
    for pattern in patterns:
        try:
            strategy = pattern.detect(fn, low, high)
        except Exception:
            # A predicate that raises on a sentinel does not match the shape
            continue
        if strategy is not None:
            return pattern, strategy
    return None
