# src/mrsim_core/braking/__init__.py
import logging
logger = logging.getLogger(__name__)

from .controller import (
    BrakingDecision,
    BrakingController,
    FuzzyBrakingController,
    FuzzyRule,
    DEFAULT_RULES,
)

__all__ = [
    "BrakingDecision",
    "BrakingController",
    "FuzzyBrakingController",
    "FuzzyRule",
    "DEFAULT_RULES",
]
