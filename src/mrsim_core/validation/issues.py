# src/mrsim_core/validation/issues.py
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .issue_codes import SafetyIssueCode

logger = logging.getLogger(__name__)


class IssueLevel(Enum):
    """Severity level of a safety or functionality issue."""
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class SafetyEvent:
    """
    A single safety-limit breach observed during a test run.

    Warnings never interrupt a run. An ERROR-level event (the temperature
    emergency stop) is the last event of its run.
    """
    level: IssueLevel
    code: str
    message: str
    step: Optional[int] = None
    elapsed_s: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_code(cls, issue_code: SafetyIssueCode, level: IssueLevel, step: Optional[int] = None,
                  elapsed_s: Optional[float] = None, **details) -> "SafetyEvent":
        return cls(
            level=level,
            code=issue_code.code,
            message=issue_code.format_message(**details),
            step=step,
            elapsed_s=elapsed_s,
            details=details,
        )

    def __str__(self) -> str:
        parts = [f"[{self.level.name} - {self.code}]"]
        if self.step is not None:
            parts.append(f"Step: {self.step}")
        if self.elapsed_s is not None:
            parts.append(f"t={self.elapsed_s:.1f}s")
        parts.append(f"Message: {self.message}")
        return " ".join(parts)


@dataclass(frozen=True)
class FunctionalityReport:
    """Outcome of a static functionality check of a test vehicle."""
    is_valid: bool
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
