"""Override registry for per-schema strategies."""

from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple, Union

from hypothesis import strategies as st

from .schema import Schema

if TYPE_CHECKING:
    from .fuzzer import SchemaFuzz


# Either a ready strategy, or a factory receiving the live SchemaFuzz so the
# override can itself recurse through the same overrides.
OverrideEntry = Union[st.SearchStrategy, Callable[["SchemaFuzz"], st.SearchStrategy]]


class OverrideRegistry:
    """Strategies that replace compiled generation for specific schema nodes.

    Entries are keyed by node identity, never by structure: two equal-looking
    schemas are overridden independently. Registries are never mutated;
    adding an entry returns a new registry.
    """

    def __init__(self, entries: Optional[Dict[int, Tuple[Schema, OverrideEntry]]] = None):
        # id() -> (schema, entry); the schema reference keeps the id valid
        self._entries: Dict[int, Tuple[Schema, OverrideEntry]] = dict(entries or {})

    def with_override(self, schema: Schema, entry: OverrideEntry) -> "OverrideRegistry":
        """Return a copy of this registry with an override for schema."""
        if not isinstance(entry, st.SearchStrategy) and not callable(entry):
            raise TypeError(
                f"Override must be a strategy or a factory, got {type(entry).__name__}"
            )
        entries = dict(self._entries)
        entries[id(schema)] = (schema, entry)
        return OverrideRegistry(entries)

    def get(self, schema: Schema) -> Optional[OverrideEntry]:
        """Get the raw override entry for schema."""
        found = self._entries.get(id(schema))
        if found is None or found[0] is not schema:
            return None
        return found[1]

    def find(self, schema: Schema, fuzz: "SchemaFuzz") -> Optional[st.SearchStrategy]:
        """Resolve the override for schema, calling factories with fuzz."""
        entry = self.get(schema)
        if entry is None:
            return None
        if isinstance(entry, st.SearchStrategy):
            return entry
        return entry(fuzz)

    def list_overrides(self) -> List[Schema]:
        """List all overridden schema nodes."""
        return [schema for schema, _ in self._entries.values()]

    def __contains__(self, schema: object) -> bool:
        return self.get(schema) is not None

    def __len__(self) -> int:
        return len(self._entries)
