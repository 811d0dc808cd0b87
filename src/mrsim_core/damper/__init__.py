# src/mrsim_core/damper/__init__.py
from .model import (
    DamperInputs,
    DamperOutputs,
    DamperConfiguration,
    DamperConstraints,
    DamperModel,
    RegenerativeDamper,
)

__all__ = [
    "DamperInputs",
    "DamperOutputs",
    "DamperConfiguration",
    "DamperConstraints",
    "DamperModel",
    "RegenerativeDamper",
]
