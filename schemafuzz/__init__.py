"""
schemafuzz - Hypothesis strategies from declarative schemas

Turns a schema tree into a strategy for valid inputs, or for the values
the schema produces after parsing.
"""

from .config import (
    Check,
    CheckKind,
    GenerationConfig,
    Kind,
)
from .errors import GenerationError, SchemaFuzzError, UnsupportedSchemaError
from .fuzzer import SchemaFuzz
from .guard import SuccessRateGuard
from .loader import DescriptionLoader
from .registry import OverrideRegistry
from .schema import ParseResult, Schema, SchemaValidationError, Symbol


__version__ = '1.0.0'

__all__ = [
    # Main entry point
    'SchemaFuzz',

    # Configuration
    'GenerationConfig',

    # Schema model
    'Schema',
    'Check',
    'CheckKind',
    'Kind',
    'ParseResult',
    'Symbol',
    'DescriptionLoader',

    # Components
    'OverrideRegistry',
    'SuccessRateGuard',

    # Errors
    'SchemaFuzzError',
    'UnsupportedSchemaError',
    'GenerationError',
    'SchemaValidationError',
]
