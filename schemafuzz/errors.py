"""Exceptions raised while turning schemas into strategies."""


class SchemaFuzzError(Exception):
    """Base class for all schemafuzz errors."""


class UnsupportedSchemaError(SchemaFuzzError):
    """A schema kind has no strategy builder."""
    
    def __init__(self, kind_name: str, path: str):
        self.kind_name = kind_name
        self.path = path
        super().__init__(
            "Unable to generate valid values for schema. "
            f"'{kind_name}' schemas are not supported (at path '{path or '.'}')."
        )


class GenerationError(SchemaFuzzError):
    """Valid values cannot be generated for the schema at a path.
    
    Raised at construction time for impossible bounds, and at draw time
    when the success-rate floor of a filter is breached.
    """
    
    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)
