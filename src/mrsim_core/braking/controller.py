# src/mrsim_core/braking/controller.py
"""
Braking-controller collaborator used by the MR-fluid integration.

The fluid model only depends on the `BrakingController` protocol. The
`FuzzyBrakingController` shipped here is a compact Mamdani-style rule base
(trapezoidal memberships, min activation, weighted-centroid defuzzification)
that maps the driving state to a regenerative braking ratio and a motor
torque.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)

MAX_MOTOR_TORQUE_NM = 800.0
WHEEL_RADIUS_M = 0.35


@dataclass(frozen=True)
class BrakingDecision:
    regen_ratio: float       # 0-1, regenerative share of the front-axle braking
    motor_torque: float      # Nm
    front_axle_force: float  # N


@runtime_checkable
class BrakingController(Protocol):
    def compute_braking(
        self,
        driving_speed: float,
        braking_intensity: float,
        battery_soc: float,
        motor_temperature: float,
    ) -> BrakingDecision:
        ...


def trapezoid(x: float, a: float, b: float, c: float, d: float) -> float:
    """Trapezoidal membership; shoulders (a == b or c == d) are full membership."""
    if b <= x <= c:
        return 1.0
    if (a == b and x < b) or (c == d and x > c):
        return 1.0
    if not a < x < d:
        # Also rejects NaN.
        return 0.0
    if x < b:
        return (x - a) / (b - a)
    return (d - x) / (d - c)


# Membership functions for each linguistic input variable.
SPEED_SETS: Dict[str, Tuple[float, float, float, float]] = {
    'very_low': (0, 0, 10, 20),
    'low': (10, 20, 30, 40),
    'medium': (30, 40, 60, 80),
    'high': (60, 80, 100, 120),
    'very_high': (100, 120, 150, 150),
}
INTENSITY_SETS = {
    'light': (0, 0, 0.2, 0.4),
    'moderate': (0.2, 0.4, 0.6, 0.8),
    'heavy': (0.6, 0.8, 1.0, 1.0),
}
SOC_SETS = {
    'low': (0, 0, 0.2, 0.4),
    'medium': (0.2, 0.4, 0.6, 0.8),
    'high': (0.6, 0.8, 1.0, 1.0),
}
TEMPERATURE_SETS = {
    'normal': (-40, -40, 60, 80),
    'warm': (60, 80, 100, 120),
    'hot': (100, 120, 200, 200),
}

# Output centroids, shared by the ratio and torque universes (normalized).
CENTROIDS = {'very_low': 0.05, 'low': 0.25, 'medium': 0.5, 'high': 0.75, 'very_high': 0.95}


@dataclass(frozen=True)
class FuzzyRule:
    conditions: Dict[str, str]
    ratio: str
    torque: str
    weight: float = 1.0


DEFAULT_RULES: List[FuzzyRule] = [
    # High speed: maximize regeneration unless braking hard
    FuzzyRule({'speed': 'high', 'intensity': 'light', 'soc': 'low'}, 'very_high', 'medium'),
    FuzzyRule({'speed': 'high', 'intensity': 'light', 'soc': 'medium'}, 'high', 'medium'),
    FuzzyRule({'speed': 'high', 'intensity': 'light', 'soc': 'high'}, 'medium', 'low'),
    FuzzyRule({'speed': 'high', 'intensity': 'moderate', 'soc': 'low'}, 'high', 'high'),
    FuzzyRule({'speed': 'high', 'intensity': 'moderate', 'soc': 'medium'}, 'medium', 'high'),
    FuzzyRule({'speed': 'high', 'intensity': 'moderate', 'soc': 'high'}, 'low', 'medium'),
    FuzzyRule({'speed': 'high', 'intensity': 'heavy'}, 'low', 'very_high'),
    # Medium speed
    FuzzyRule({'speed': 'medium', 'intensity': 'light', 'soc': 'low'}, 'very_high', 'low'),
    FuzzyRule({'speed': 'medium', 'intensity': 'moderate', 'soc': 'low'}, 'high', 'medium'),
    FuzzyRule({'speed': 'medium', 'intensity': 'heavy'}, 'medium', 'high'),
    # Low speed: limited regeneration potential
    FuzzyRule({'speed': 'low', 'intensity': 'light'}, 'medium', 'very_low'),
    FuzzyRule({'speed': 'low', 'intensity': 'moderate'}, 'low', 'low'),
    FuzzyRule({'speed': 'low', 'intensity': 'heavy'}, 'very_low', 'medium'),
    FuzzyRule({'speed': 'very_low', 'intensity': 'light'}, 'low', 'very_low'),
    FuzzyRule({'speed': 'very_low', 'intensity': 'moderate'}, 'very_low', 'very_low'),
    FuzzyRule({'speed': 'very_low', 'intensity': 'heavy'}, 'very_low', 'low'),
    # Motor protection
    FuzzyRule({'temperature': 'hot'}, 'very_low', 'very_low', weight=1.5),
]


class FuzzyBrakingController:
    """Rule-based regenerative braking controller for in-wheel motors."""

    _INPUT_SETS = {
        'speed': SPEED_SETS,
        'intensity': INTENSITY_SETS,
        'soc': SOC_SETS,
        'temperature': TEMPERATURE_SETS,
    }

    def __init__(self, rules: Optional[List[FuzzyRule]] = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def compute_braking(
        self,
        driving_speed: float,
        braking_intensity: float,
        battery_soc: float,
        motor_temperature: float,
    ) -> BrakingDecision:
        crisp = {
            'speed': float(np.clip(driving_speed, 0.0, 200.0)),
            'intensity': float(np.clip(braking_intensity, 0.0, 1.0)),
            'soc': float(np.clip(battery_soc, 0.0, 1.0)),
            'temperature': float(np.clip(motor_temperature, -40.0, 200.0)),
        }
        ratio, torque_norm = self._evaluate(crisp)
        motor_torque = torque_norm * MAX_MOTOR_TORQUE_NM

        # Safety overrides
        if crisp['soc'] > 0.95:
            ratio = min(ratio, 0.1)
        if crisp['temperature'] > 120:
            ratio *= 0.5
            motor_torque *= 0.5
        if crisp['intensity'] > 0.8:
            ratio = min(ratio, 0.6)
        motor_torque = min(motor_torque, MAX_MOTOR_TORQUE_NM)

        return BrakingDecision(
            regen_ratio=ratio,
            motor_torque=motor_torque,
            front_axle_force=motor_torque * ratio / WHEEL_RADIUS_M,
        )

    def _evaluate(self, crisp: Dict[str, float]) -> Tuple[float, float]:
        activations = []
        for rule in self.rules:
            activation = 1.0
            for variable, set_name in rule.conditions.items():
                activation = min(activation, trapezoid(crisp[variable], *self._INPUT_SETS[variable][set_name]))
            activation *= rule.weight
            if activation > 0:
                activations.append((rule, activation))

        if not activations:
            logger.debug(f"No braking rule fired for inputs {crisp}; using neutral output.")
            return 0.5, 0.5

        total = sum(a for _, a in activations)
        ratio = sum(CENTROIDS[r.ratio] * a for r, a in activations) / total
        torque = sum(CENTROIDS[r.torque] * a for r, a in activations) / total
        return ratio, torque
