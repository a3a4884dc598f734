"""Schema validation semantics."""

from __future__ import annotations

import datetime
from enum import Enum
from types import MappingProxyType

import pytest

from schemafuzz import SchemaValidationError
from schemafuzz import schema as s
from schemafuzz.config import CheckKind, Kind


def test_fluent_methods_return_new_nodes() -> None:
    base = s.string()
    bounded = base.min(1)

    assert bounded is not base
    assert base.checks == ()
    assert bounded.checks[0].kind == CheckKind.MIN_LENGTH


def test_min_max_depend_on_kind() -> None:
    assert s.array(s.string()).min(1).checks[0].kind == CheckKind.MIN_LENGTH
    assert s.set_(s.string()).max(1).checks[0].kind == CheckKind.MAX_SIZE
    assert s.number().min(1).checks[0].kind == CheckKind.GREATER_THAN


def test_numeric_checks_reject_other_kinds() -> None:
    with pytest.raises(TypeError):
        s.string().gt(1)
    with pytest.raises(TypeError):
        s.number().email()


@pytest.mark.parametrize("value", [True, float("nan"), float("inf"), "1", None])
def test_number_rejects_non_numbers(value: object) -> None:
    assert not s.number().safe_parse(value).success


def test_bigint_rejects_floats_and_bools() -> None:
    assert s.bigint().safe_parse(10).success
    assert not s.bigint().safe_parse(10.0).success
    assert not s.bigint().safe_parse(False).success


def test_integer_formats() -> None:
    assert s.number().int().safe_parse(3.0).success
    assert not s.number().int().safe_parse(3.5).success
    assert not s.number().int32().safe_parse(2 ** 31).success
    assert not s.number().uint32().safe_parse(-1).success


def test_multiple_of_uses_decimal_arithmetic() -> None:
    schema = s.number().multiple_of(0.1)
    assert schema.safe_parse(0.3).success
    assert not schema.safe_parse(0.35).success


@pytest.mark.parametrize("address", ["a.b@example.com", "first+tag@mail.co.uk", "X_Y@DOMAIN.ORG"])
def test_email_accepts(address: str) -> None:
    assert s.string().email().safe_parse(address).success


@pytest.mark.parametrize("address", [".a@example.com", "a..b@example.com", "a@b", "a@-b.com", "a.@b.com"])
def test_email_rejects(address: str) -> None:
    assert not s.string().email().safe_parse(address).success


def test_datetime_formats() -> None:
    plain = s.string().datetime()
    assert plain.safe_parse("2020-02-29T12:00:00Z").success
    assert plain.safe_parse("2020-02-29T12:00:00.123456Z").success
    assert not plain.safe_parse("2021-02-29T12:00:00Z").success
    assert not plain.safe_parse("2020-02-29T12:00:00+01:00").success

    exact = s.string().datetime(precision=3, offset=True)
    assert exact.safe_parse("2020-01-01T00:00:00.000+05:00").success
    assert not exact.safe_parse("2020-01-01T00:00:00Z").success


def test_url_uuid_cuid() -> None:
    assert s.string().url().safe_parse("https://example.com/a").success
    assert not s.string().url().safe_parse("example.com").success
    assert s.string().uuid().safe_parse("123e4567-e89b-42d3-a456-426614174000").success
    assert not s.string().uuid().safe_parse("123e4567").success
    assert s.string().cuid().safe_parse("cjld2cjxh0000qzrmn831i7rn").success
    assert not s.string().cuid().safe_parse("xjld2cjxh").success


def test_regex_uses_search() -> None:
    assert s.string().regex(r"\d").safe_parse("abc1").success
    assert not s.string().regex(r"^\d").safe_parse("abc1").success


def test_object_strips_unknown_keys_and_reports_paths() -> None:
    schema = s.object_({"name": s.string(), "age": s.number()})

    assert schema.parse({"name": "a", "age": 1, "extra": True}) == {"name": "a", "age": 1}

    result = schema.safe_parse({"name": 1})
    assert not result.success
    assert any(issue.startswith(".name:") for issue in result.issues)
    assert any(issue.startswith(".age:") for issue in result.issues)


def test_parse_raises_validation_error() -> None:
    with pytest.raises(SchemaValidationError) as excinfo:
        s.string().min(3).parse("ab")
    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.issues == [".: failed min_length check"]


def test_refine_message_is_reported() -> None:
    result = s.number().refine(lambda x: x > 0, "must be positive").safe_parse(-1)
    assert result.issues == [".: must be positive"]


def test_literal_compares_types() -> None:
    schema = s.literal(1)
    assert schema.safe_parse(1).success
    assert not schema.safe_parse(True).success
    assert not schema.safe_parse(1.0).success


def test_enum_from_enum_class() -> None:
    class Size(Enum):
        SMALL = "s"
        LARGE = "l"

    schema = s.enum(Size)
    assert schema.values == ("s", "l")
    assert schema.kind == Kind.ENUM


def test_discriminated_union_requires_literal_tags() -> None:
    with pytest.raises(ValueError, match="literal 'kind' field"):
        s.discriminated_union("kind", [s.object_({"kind": s.string()})])


def test_discriminated_union_dispatches_on_tag() -> None:
    schema = s.discriminated_union("kind", [
        s.object_({"kind": s.literal("n"), "n": s.number()}),
        s.object_({"kind": s.literal("t"), "t": s.string()}),
    ])
    assert schema.parse({"kind": "t", "t": "x"}) == {"kind": "t", "t": "x"}
    assert not schema.safe_parse({"kind": "t", "n": 1}).success
    assert not schema.safe_parse({"kind": "z"}).success


def test_union_returns_first_match() -> None:
    schema = s.union([s.string().transform(str.upper), s.string()])
    assert schema.parse("ab") == "AB"


def test_wrappers() -> None:
    assert s.string().optional().parse(None) is None
    assert s.string().nullable().parse("x") == "x"
    assert s.string().default("d").parse(None) == "d"
    assert s.number().catch(0).parse("oops") == 0
    assert s.string().transform(len).parse("abc") == 3
    assert s.string().pipe(s.string().min(2)).safe_parse("a").success is False


def test_collections() -> None:
    assert s.tuple_([s.string(), s.number()]).parse(["a", 1]) == ("a", 1)
    assert not s.tuple_([s.string()]).safe_parse(["a", "b"]).success
    assert s.set_(s.number()).parse({1, 2}) == {1, 2}
    assert not s.set_(s.number()).safe_parse([1, 2]).success
    assert s.map_(s.number(), s.string()).parse({1: "a"}) == {1: "a"}
    assert not s.record(s.string(), s.number()).safe_parse({"a": "b"}).success


def test_dynamic_kinds() -> None:
    assert s.date().safe_parse(datetime.datetime(2020, 1, 1)).success
    assert not s.date().safe_parse("2020-01-01").success
    assert s.function().safe_parse(len).success
    assert s.symbol().safe_parse(s.Symbol("x")).success
    assert s.nan().safe_parse(float("nan")).success
    assert not s.never().safe_parse(None).success


def test_freeze() -> None:
    assert s.freeze([1, 2]) == (1, 2)
    assert s.freeze({1}) == frozenset({1})
    assert isinstance(s.freeze({"a": 1}), MappingProxyType)
    assert s.freeze("text") == "text"
