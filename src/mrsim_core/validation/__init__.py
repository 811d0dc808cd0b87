# src/mrsim_core/validation/__init__.py
import logging
logger = logging.getLogger(__name__)

from .issues import SafetyEvent, IssueLevel, FunctionalityReport
from .issue_codes import SafetyIssueCode

__all__ = [
    "SafetyEvent",
    "IssueLevel",
    "FunctionalityReport",
    "SafetyIssueCode",
]
