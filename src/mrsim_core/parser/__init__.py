# src/mrsim_core/parser/__init__.py
from .parser import ConfigParser, EnhancedValidator
from .exceptions import ConfigParsingError, ConfigFileError, SchemaValidationError

__all__ = [
    "ConfigParser",
    "EnhancedValidator",
    "ConfigParsingError",
    "ConfigFileError",
    "SchemaValidationError",
]
