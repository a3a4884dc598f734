"""Main entry point: schemas in, hypothesis strategies out."""

from typing import Any, Optional

from hypothesis import strategies as st

from .config import GenerationConfig, Kind, SCALAR_KINDS
from .errors import UnsupportedSchemaError
from .generator import StrategyBuilder
from .guard import guarded
from .registry import OverrideEntry, OverrideRegistry
from .schema import Schema


class SchemaFuzz:
    """Builds strategies for schema inputs and parsed outputs.

    Instances are immutable with respect to overrides: ``override`` returns
    a new SchemaFuzz and leaves this one untouched.
    """

    def __init__(self, config: Optional[GenerationConfig] = None,
                 registry: Optional[OverrideRegistry] = None):
        self.config = config or GenerationConfig()
        self.registry = registry or OverrideRegistry()
        self.verbose = self.config.verbose
        self.builder = StrategyBuilder(self.config, self._log)

    def input_of(self, schema: Schema) -> st.SearchStrategy:
        """Strategy for values the schema accepts as input."""
        return self._input_with_path(schema, "")

    def output_of(self, schema: Schema) -> st.SearchStrategy:
        """Strategy for values the schema produces after parsing."""
        input_strategy = self.input_of(schema)

        # Scalars parse to themselves
        if schema.kind in SCALAR_KINDS:
            return input_strategy

        return (
            input_strategy
            .map(schema.safe_parse)
            .filter(guarded(lambda parsed: parsed.success, "", self.config))
            .map(lambda parsed: parsed.value)
        )

    def override(self, schema: Schema, strategy: OverrideEntry) -> "SchemaFuzz":
        """Return a SchemaFuzz that uses strategy for this exact schema node.

        Args:
            schema: Node to override, matched by identity
            strategy: A strategy, or a factory taking the SchemaFuzz in use
                      and returning one
        """
        return SchemaFuzz(self.config, self.registry.with_override(schema, strategy))

    def _input_with_path(self, schema: Any, path: str) -> st.SearchStrategy:
        override = self.registry.find(schema, self)
        if override is not None:
            self._log(f"Using override at '{path or '.'}'")
            return override

        if not isinstance(getattr(schema, "kind", None), Kind):
            raise UnsupportedSchemaError(type(schema).__name__, path)

        return self.builder.build(schema, path, self._input_with_path)

    def _log(self, message: str) -> None:
        """Log message if verbose mode is enabled."""
        if self.verbose:
            print(message)
