"""Folding checks into bounds, and construction-time bound errors."""

from __future__ import annotations

import math

import pytest

from schemafuzz import GenerationConfig, GenerationError, SchemaFuzz
from schemafuzz import schema as s
from schemafuzz.config import INT32_RANGE, MAX_SAFE_INTEGER, UINT32_RANGE
from schemafuzz.constraints import (
    ceil_div,
    floor_div,
    fold_bigint_checks,
    fold_length_checks,
    fold_number_checks,
    fold_string_checks,
)


CONFIG = GenerationConfig()


def test_division_helpers_round_outwards_and_inwards() -> None:
    assert ceil_div(7, 3) == 3
    assert ceil_div(-7, 3) == -2
    assert floor_div(7, 3) == 2
    assert floor_div(-7, 3) == -3
    assert ceil_div(6, 3) == floor_div(6, 3) == 2


def test_string_bounds_keep_tightest_values() -> None:
    bounds = fold_string_checks(s.string().min(3).min(1).max(10).max(20).checks)
    assert bounds.min_length == 3
    assert bounds.max_length == 10


def test_string_length_sets_both_bounds() -> None:
    bounds = fold_string_checks(s.string().length(4).checks)
    assert (bounds.min_length, bounds.max_length) == (4, 4)


def test_string_format_and_affixes() -> None:
    bounds = fold_string_checks(
        s.string().uuid().url().starts_with("ab").ends_with("yz").checks
    )
    assert bounds.format.format == "uuid"
    assert bounds.prefixes == ["ab"]
    assert bounds.suffixes == ["yz"]
    assert bounds.affix_length == 4
    assert not bounds.has_unsupported


def test_string_unsupported_checks_are_flagged() -> None:
    assert fold_string_checks(s.string().lowercase().checks).has_unsupported
    assert fold_string_checks(s.string().refine(str.isalpha).checks).has_unsupported


def test_number_defaults_fill_missing_bounds() -> None:
    bounds = fold_number_checks((), CONFIG)
    assert (bounds.low, bounds.high) == (CONFIG.float_min, CONFIG.float_max)
    assert bounds.multiple_of is None


def test_number_exclusive_bounds_use_offset() -> None:
    bounds = fold_number_checks(s.number().gt(0).lt(1).checks, CONFIG)
    assert bounds.low == pytest.approx(0.001)
    assert bounds.high == pytest.approx(0.999)


def test_exclusive_bounds_stay_exclusive_at_large_magnitudes() -> None:
    bounds = fold_number_checks(s.number().gt(1e16).checks, CONFIG)
    assert bounds.low > 1e16
    assert bounds.low == math.nextafter(1e16, math.inf)

    bounds = fold_number_checks(s.number().lt(-1e16).checks, CONFIG)
    assert bounds.high < -1e16


def test_number_default_window_slides_past_explicit_bound() -> None:
    bounds = fold_number_checks(s.number().gte(5e6).checks, CONFIG)
    assert bounds.low == 5e6
    assert bounds.high == 5e6 + 2e6

    bounds = fold_number_checks(s.number().lte(-5e6).checks, CONFIG)
    assert bounds.high == -5e6
    assert bounds.low == -5e6 - 2e6


def test_integer_exclusive_bounds_step_to_next_integer() -> None:
    bounds = fold_number_checks(s.number().int().gt(0).lt(10).checks, CONFIG)
    assert (bounds.integer_low, bounds.integer_high) == (1, 9)
    assert bounds.safe_integer


def test_integer_defaults_keep_the_float_minimum() -> None:
    bounds = fold_number_checks(s.number().int().checks, CONFIG)
    assert bounds.integer_low == -1000000
    assert bounds.integer_high == MAX_SAFE_INTEGER


def test_multiple_of_scales_integer_bounds() -> None:
    bounds = fold_number_checks(s.number().multiple_of(5).gte(-12).lte(12).checks, CONFIG)
    assert (bounds.integer_low, bounds.integer_high) == (-2, 2)
    assert (bounds.low, bounds.high) == (-10, 10)


def test_negative_multiple_of_uses_its_magnitude() -> None:
    bounds = fold_number_checks(s.number().multiple_of(-5).gte(-12).lte(12).checks, CONFIG)
    assert bounds.multiple_of == 5
    assert (bounds.integer_low, bounds.integer_high) == (-2, 2)


def test_multiple_of_with_exclusive_bounds_on_multiples() -> None:
    bounds = fold_number_checks(s.number().multiple_of(5).gt(5).lt(20).checks, CONFIG)
    assert (bounds.integer_low, bounds.integer_high) == (2, 3)


def test_integer_formats_clamp_to_their_ranges() -> None:
    bounds = fold_number_checks(s.number().int32().checks, CONFIG)
    assert bounds.integer_low >= INT32_RANGE[0]
    assert bounds.integer_high <= INT32_RANGE[1]

    bounds = fold_number_checks(s.number().uint32().lte(10).checks, CONFIG)
    assert (bounds.integer_low, bounds.integer_high) == (UINT32_RANGE[0], 10)


def test_number_refinements_are_collected() -> None:
    bounds = fold_number_checks(s.number().refine(lambda x: x > 1).checks, CONFIG)
    assert len(bounds.refinements) == 1


def test_bigint_exclusive_bounds_and_multiple() -> None:
    bounds = fold_bigint_checks(s.bigint().gt(10).lt(100).multiple_of(7).checks)
    assert (bounds.low, bounds.high) == (14, 98)
    assert bounds.multiple_of == 7


def test_bigint_negative_multiple_of_uses_its_magnitude() -> None:
    bounds = fold_bigint_checks(s.bigint().gte(0).lte(10).multiple_of(-3).checks)
    assert (bounds.low, bounds.high) == (0, 9)
    assert bounds.multiple_of == 3


def test_bigint_is_unbounded_without_checks() -> None:
    bounds = fold_bigint_checks(s.bigint().multiple_of(3).checks)
    assert bounds.low is None
    assert bounds.high is None


def test_length_checks_for_arrays_and_sets() -> None:
    assert fold_length_checks(s.array(s.number()).min(2).max(5).checks).max_length == 5
    bounds = fold_length_checks(s.set_(s.number()).size(3).checks, sized=True)
    assert (bounds.min_length, bounds.max_length) == (3, 3)


@pytest.mark.parametrize(
    "schema",
    [
        pytest.param(s.string().min(5).max(2), id="string"),
        pytest.param(s.string().starts_with("abc").max(2), id="string-affix"),
        pytest.param(s.array(s.number()).min(4).max(1), id="array"),
        pytest.param(s.set_(s.number()).min(4).max(1), id="set"),
        pytest.param(s.number().gt(10).lt(5), id="number"),
        pytest.param(s.number().gt(1).lt(1), id="number-exclusive"),
        pytest.param(s.number().multiple_of(10).gte(1).lte(9), id="number-multiple"),
        pytest.param(s.number().uint32().lt(0), id="number-format"),
        pytest.param(s.bigint().gte(10).lte(5), id="bigint"),
        pytest.param(s.bigint().multiple_of(10).gte(1).lte(9), id="bigint-multiple"),
    ],
)
def test_inverted_bounds_fail_at_construction(schema: s.Schema) -> None:
    with pytest.raises(GenerationError, match="computed min"):
        SchemaFuzz().input_of(schema)


def test_inverted_bounds_report_nested_path() -> None:
    schema = s.object_({"tags": s.array(s.string().min(3).max(1))})
    with pytest.raises(GenerationError) as excinfo:
        SchemaFuzz().input_of(schema)
    assert excinfo.value.path == ".tags[*]"
