# src/mrsim_core/errors.py
import logging
from typing import Any, Dict, Protocol, abstractmethod
from typing import runtime_checkable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class MRSimError(Exception):
    """Base class for all custom, user-facing errors in MRSim Core."""
    pass

class TestRunError(MRSimError):
    """
    Raised when a test-vehicle run fails for any reason, from configuration
    resolution to the step loop itself. The message is a pre-formatted,
    user-friendly diagnostic report.
    """
    __test__ = False  # Not a pytest test class despite the name.


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    A protocol for exceptions that can generate their own rich diagnostic report.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...

class DiagnosableError(Exception, Diagnosable):
    """
    A common, concrete base class for all internal exceptions that are diagnosable.

    It inherits from `Exception`, so it can be used in `except` clauses, and it
    declares `get_diagnostic_report` abstract so every subclass must provide a
    user-facing report.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """
        Abstract method to generate the diagnostic report.
        Subclasses MUST implement this.
        """
        raise NotImplementedError


@dataclass()
class ConfigurationError(DiagnosableError):
    """
    Raised when a fluid formulation is unknown or a composition is invalid.

    Fatal to the operation that requested it; the state held by the caller
    before the request is left intact.
    """
    details: str
    formulation_id: str = ""

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Configuration Error",
            details=self.details,
            suggestion="Check the selected formulation id against the formulation catalog, or validate the composition constants.",
            context={'formulation': self.formulation_id}
        )


@dataclass()
class InvalidOperationError(DiagnosableError):
    """Raised when an operation is not allowed in the current run state."""
    details: str
    current_status: str = ""

    def __str__(self):
        return self.details

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Operation",
            details=self.details,
            suggestion="Stop the current test (or wait for it to complete) before starting a new one.",
            context={'status': self.current_status}
        )


@dataclass()
class ScenarioError(DiagnosableError):
    """Raised when a test scenario carries values outside their physical domain."""
    scenario_id: str
    details: str

    def __str__(self):
        return f"Scenario '{self.scenario_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Test Scenario",
            details=self.details,
            suggestion="Speed profile samples must be finite and time-ascending; roughness, load factor and braking intensity must lie in [0, 1].",
            context={'scenario': self.scenario_id}
        )


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    A stateless helper to format the final multi-line report string, ensuring a
    consistent look and feel for all user-facing diagnostics.

    Args:
        error_type: The high-level category of the error (e.g., "Configuration Error").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user to resolve the issue.
        context: A dictionary of contextual information (scenario, formulation, status, source file).

    Returns:
        A formatted, user-friendly diagnostic report string ready for display.
    """
    lines = [
        "\n",
        "================ MRSim Core: Actionable Diagnostic Report ================",
        f"Error Type:     {error_type}",
    ]
    if scenario := context.get('scenario'):
        lines.append(f"Scenario:       {scenario}")
    if formulation := context.get('formulation'):
        lines.append(f"Formulation:    {formulation}")
    if status := context.get('status'):
        lines.append(f"Run Status:     {status}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("========================================================================")
    return "\n".join(lines)
