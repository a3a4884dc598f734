"""Schema trees from JSON descriptions."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import validate, ValidationError

from .config import Check, CheckKind, Kind
from .schema import Schema


DEFAULT_META_SCHEMA = Path(__file__).parent / "description-schema.json"

# Fields holding a single child description
_CHILD_FIELDS = ("element", "key", "value", "inner", "input", "output")


class DescriptionLoader:
    """Validates data-only schema descriptions and builds Schema trees.

    Descriptions cannot carry callables, so refinements and transforms
    only exist on schemas built in code.
    """

    def __init__(self, meta_schema_path: Optional[Path] = None):
        with open(meta_schema_path or DEFAULT_META_SCHEMA, 'r') as f:
            self.meta_schema = json.load(f)

    def load(self, description_path: Path) -> Schema:
        """Read a description file and build its schema"""
        with open(description_path, 'r') as f:
            description = json.load(f)
        return self.build(description)

    def build(self, description: Dict[str, Any]) -> Schema:
        """Validate a parsed description and build its schema"""
        try:
            validate(instance=description, schema=self.meta_schema)
        except ValidationError as e:
            raise ValueError(f"Invalid schema description: {e.message}")

        return self._node(description)

    def _node(self, description: Dict[str, Any]) -> Schema:
        kind = Kind(description["type"])
        fields: Dict[str, Any] = {
            "checks": tuple(self._check(kind, c) for c in description.get("checks", [])),
        }

        for name in _CHILD_FIELDS:
            if name in description:
                fields[name] = self._node(description[name])

        if "shape" in description:
            fields["shape"] = {
                name: self._node(child) for name, child in description["shape"].items()
            }
        if "options" in description:
            fields["options"] = tuple(self._node(child) for child in description["options"])
        if "items" in description:
            fields["items"] = tuple(self._node(child) for child in description["items"])
        if "values" in description:
            fields["values"] = tuple(description["values"])
        if "discriminator" in description:
            fields["discriminator"] = description["discriminator"]
        if "default" in description:
            fields["default_value"] = description["default"]
        if "catch" in description:
            fields["catch_value"] = description["catch"]

        schema = Schema(kind, **fields)
        if kind == Kind.DISCRIMINATED_UNION:
            schema.variants()
        return schema

    def _check(self, kind: Kind, description: Dict[str, Any]) -> Check:
        check_kind = CheckKind(description["check"])
        value = description.get("value")
        if kind == Kind.BIGINT and isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Invalid schema description: bigint bound {value} is not whole")
            value = int(value)

        if check_kind == CheckKind.STRING_FORMAT and description["format"] in (
            "regex", "starts_with", "ends_with"
        ) and not isinstance(value, str):
            raise ValueError(
                f"Invalid schema description: '{description['format']}' needs a string value"
            )

        return Check(
            check_kind,
            value,
            inclusive=description.get("inclusive", True),
            format=description.get("format"),
            precision=description.get("precision"),
            offset=description.get("offset", False),
            message=description.get("message"),
        )
