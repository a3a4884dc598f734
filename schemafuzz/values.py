"""Value strategies for string formats and dynamic kinds."""

import datetime
from typing import Any, Callable, Optional

from hypothesis import provisional
from hypothesis import strategies as st

from .config import GenerationConfig
from .guard import guarded
from .schema import EMAIL_PATTERN


HEX_DIGITS = "0123456789abcdef"

# UTC-12:00 is the furthest behind UTC, UTC+14:00 the furthest ahead.
# Half-hour and quarter-hour zones are not generated.
OFFSET_HOURS = (-12, 14)

_EMAIL_DOMAINS = st.from_regex(r"[a-z0-9][a-z0-9-]{0,14}\.[a-z]{2,6}", fullmatch=True)


class Resolved:
    """Awaitable that resolves immediately to a fixed value."""

    def __init__(self, value: Any):
        self.value = value

    def __await__(self):
        if False:
            yield
        return self.value

    def __repr__(self) -> str:
        return f"Resolved({self.value!r})"


def constant_function(value: Any) -> Callable[..., Any]:
    """Function ignoring its arguments and returning value."""
    def fn(*args, **kwargs):
        return value
    return fn


def _iso_utc(moment: datetime.datetime) -> str:
    return moment.isoformat(timespec="milliseconds") + "Z"


def _with_fraction(iso: str, digits: str) -> str:
    base = iso[:-len(".000Z")]
    return f"{base}.{digits}Z" if digits else f"{base}Z"


def _with_offset(iso: str, hours: int) -> str:
    if hours == 0:
        return iso
    sign = "+" if hours > 0 else "-"
    return f"{iso[:-1]}{sign}{abs(hours):02d}:00"


def datetime_strings(precision: Optional[int] = None, offset: bool = False) -> st.SearchStrategy:
    """Calendar-valid ISO-8601 datetimes.

    Args:
        precision: Digits of fractional seconds; None keeps milliseconds,
                   0 drops the fraction.
        offset: Also produce whole-hour timezone offsets instead of Z.
    """
    strategy = st.datetimes(
        min_value=datetime.datetime(1, 1, 1),
        max_value=datetime.datetime(9999, 12, 31, 23, 59, 59),
    ).map(_iso_utc)

    if precision == 0:
        strategy = strategy.map(lambda iso: _with_fraction(iso, ""))
    elif precision is not None:
        fractions = st.integers(min_value=0, max_value=10 ** precision - 1).map(
            lambda x: str(x).zfill(precision)
        )
        strategy = st.tuples(strategy, fractions).map(lambda pair: _with_fraction(*pair))

    if offset:
        hours = st.integers(min_value=OFFSET_HOURS[0], max_value=OFFSET_HOURS[1])
        strategy = st.tuples(strategy, hours).map(lambda pair: _with_offset(*pair))

    return strategy


def emails(path: str, config: GenerationConfig) -> st.SearchStrategy:
    """Addresses from hypothesis that also pass the stricter email pattern."""
    return st.emails(domains=_EMAIL_DOMAINS).filter(
        guarded(lambda address: EMAIL_PATTERN.match(address) is not None, path, config)
    )


def urls() -> st.SearchStrategy:
    return provisional.urls()


def uuids() -> st.SearchStrategy:
    return st.uuids(version=4).map(str)


def cuids() -> st.SearchStrategy:
    """Strings shaped like a cuid: c, timestamp, counter, fingerprint, random."""
    def hex_text(size: int) -> st.SearchStrategy:
        return st.text(alphabet=HEX_DIGITS, min_size=size, max_size=size)

    return st.tuples(
        hex_text(8),
        st.integers(min_value=0, max_value=9999).map(lambda n: str(n).zfill(4)),
        hex_text(4),
        hex_text(8),
    ).map(lambda parts: "c" + "".join(parts))


def pattern_strings(pattern: str) -> st.SearchStrategy:
    """Strings containing a match for pattern, the way re.search checks them."""
    return st.from_regex(pattern)


def anything() -> st.SearchStrategy:
    """Arbitrary JSON-like values, nested."""
    primitives = (
        st.none()
        | st.booleans()
        | st.integers()
        | st.floats(allow_nan=False)
        | st.text(max_size=20)
    )
    return st.recursive(
        primitives,
        lambda children: (
            st.lists(children, max_size=5)
            | st.dictionaries(st.text(max_size=10), children, max_size=5)
        ),
        max_leaves=20,
    )
