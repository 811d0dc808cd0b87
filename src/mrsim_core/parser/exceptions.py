# src/mrsim_core/parser/exceptions.py
"""
Diagnosable exceptions for the configuration loading and schema validation stage.

`ConfigParsingError` is the catchable base of the family. `ConfigFileError`
covers file-system and YAML syntax problems; `SchemaValidationError` covers
documents that load but do not conform to the Cerberus schema, or whose
quantities cannot be converted to the canonical units.
"""
from dataclasses import dataclass
from typing import Any, Dict

from ..errors import DiagnosableError, format_diagnostic_report


class ConfigParsingError(DiagnosableError):
    """Base class for all YAML loading and schema validation errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Configuration Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the relevant YAML document.",
            context={}
        )


@dataclass()
class ConfigFileError(ConfigParsingError):
    """
    Raised when a document cannot be loaded at all: a missing or unreadable
    file, invalid YAML syntax, or a root that is not a mapping.
    """
    details: str
    source_file: str = "<string>"

    def __str__(self):
        return f"Parsing error in '{self.source_file}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, has the correct read permissions, and contains valid YAML syntax.",
            context={'source_file': self.source_file}
        )


@dataclass()
class SchemaValidationError(ConfigParsingError):
    """
    Raised when a syntactically valid document does not conform to the required
    structure (missing keys, values out of range, unknown units, profile
    samples out of order).
    """
    errors: Dict[str, Any]
    source_file: str = "<string>"

    def _error_lines(self):
        lines = []
        for key, messages in sorted(self.errors.items(), key=lambda item: str(item[0])):
            message = messages[0] if isinstance(messages, list) and messages else messages
            lines.append(f"  - Field '{key}': {message}")
        return lines

    def __str__(self):
        return f"Schema validation failed for '{self.source_file}':\n" + "\n".join(self._error_lines())

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the document does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="YAML Schema Validation Error",
            details=details,
            suggestion="Correct the specified fields to match the documented format. Quantities accept a bare number in canonical units or a unit string such as '120 km/h'.",
            context={'source_file': self.source_file}
        )
