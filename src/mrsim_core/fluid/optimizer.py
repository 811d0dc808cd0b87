# src/mrsim_core/fluid/optimizer.py
"""
Formulation scoring, selection and performance-trend detection.

A formulation's score is a weighted sum of five normalized (0-1) sub-scores
derived from composition constants through fixed saturation curves:

- energy:      base efficiency / 100 (saturates at concentration 0.4,
               yield stress 100 kPa, dynamic range 200)
- response:    1 - response_time / 50 ms, floored at 0
- durability:  sedimentation stability / 3000 h, capped at 1
- temperature: temperature stability / 200 degC, capped at 1
- cost:        1 - 0.8 * particle concentration

The first four are weighted by caller-supplied `PriorityWeights`; the cost
weight is fixed at `COST_WEIGHT`.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, Dict, Optional, Sequence, Tuple

from ..clock import Clock, SystemClock
from ..constants import COST_WEIGHT, TREND_THRESHOLD, TREND_WINDOW
from ..errors import ConfigurationError
from .catalog import FormulationCatalog, MRFluidComposition
from .properties import EnergyRecoveryMetrics, base_efficiency

logger = logging.getLogger(__name__)


class Trend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class PriorityWeights:
    energy_recovery: float = 0.25
    response_time: float = 0.25
    durability: float = 0.25
    temperature_stability: float = 0.25


@dataclass(frozen=True)
class OperatingConditions:
    """Operating envelope used to pick the formulation best suited to it."""
    temperature_range: Tuple[float, float] = (-20.0, 80.0)     # degC
    magnetic_field_range: Tuple[float, float] = (0.0, 1.0e5)   # A/m
    frequency_range: Tuple[float, float] = (0.5, 10.0)         # Hz
    priority_weights: PriorityWeights = field(default_factory=PriorityWeights)


@dataclass(frozen=True)
class OptimizationParameters:
    target_application: str = "hybrid_system"  # regenerative_braking | suspension_damping | hybrid_system
    temperature_range: Tuple[float, float] = (-20.0, 80.0)
    magnetic_field_range: Tuple[float, float] = (0.0, 1.0e5)
    shear_rate_range: Tuple[float, float] = (10.0, 1000.0)
    frequency_range: Tuple[float, float] = (0.5, 10.0)
    weights: PriorityWeights = field(default_factory=PriorityWeights)

    @classmethod
    def from_conditions(cls, conditions: OperatingConditions) -> "OptimizationParameters":
        return cls(
            temperature_range=conditions.temperature_range,
            magnetic_field_range=conditions.magnetic_field_range,
            frequency_range=conditions.frequency_range,
            weights=conditions.priority_weights,
        )


@dataclass(frozen=True)
class OptimizationResult:
    best_formulation: str
    score: float
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OptimizationRecord:
    timestamp: datetime
    parameters: OptimizationParameters
    best_formulation: str
    score: float


@dataclass(frozen=True)
class SwitchRecommendation:
    current_formulation: str
    recommended_formulation: str
    expected_improvement: float  # %
    recommendation: str


def sub_scores(composition: MRFluidComposition) -> Dict[str, float]:
    """The five normalized sub-scores of a composition."""
    performance = composition.performance
    return {
        'energy': min(1.0, base_efficiency(composition) / 100.0),
        'response': max(0.0, 1.0 - performance.response_time / 50.0),
        'durability': min(1.0, performance.sedimentation_stability / 3000.0),
        'temperature': min(1.0, performance.temperature_stability / 200.0),
        'cost': 1.0 - composition.magnetic_particles.concentration * 0.8,
    }


def score_composition(composition: MRFluidComposition, weights: PriorityWeights) -> float:
    scores = sub_scores(composition)
    return (weights.energy_recovery * scores['energy']
            + weights.response_time * scores['response']
            + weights.durability * scores['durability']
            + weights.temperature_stability * scores['temperature']
            + COST_WEIGHT * scores['cost'])


def recommendation_band(expected_improvement: float) -> str:
    if expected_improvement > 10:
        return "Highly recommended - significant performance improvement expected"
    if expected_improvement > 5:
        return "Recommended - moderate performance improvement expected"
    if expected_improvement > 0:
        return "Optional - minor performance improvement expected"
    return "Not recommended - current formulation is optimal"


def calculate_trend(values: Sequence[float], window: int = TREND_WINDOW, threshold: float = TREND_THRESHOLD) -> Trend:
    """
    Compares the mean of the most recent `window` values with the mean of the
    `window` values before them.

    Returns `Trend.STABLE` when either side holds fewer than `window` values or
    when the older mean is zero.
    """
    values = list(values)
    recent = values[-window:]
    older = values[-2 * window:-window]
    if len(recent) < window or len(older) < window:
        return Trend.STABLE

    older_mean = sum(older) / len(older)
    if older_mean == 0:
        return Trend.STABLE
    change = (sum(recent) / len(recent) - older_mean) / older_mean

    if change > threshold:
        return Trend.IMPROVING
    if change < -threshold:
        return Trend.DECLINING
    return Trend.STABLE


class FormulationOptimizer:
    """Scores catalog formulations and recommends formulation switches."""

    def __init__(
        self,
        catalog: FormulationCatalog,
        history_limit: Optional[int] = 1000,
        clock: Optional[Clock] = None,
        evaluation_limit: Optional[int] = 1000,
    ):
        self.catalog = catalog
        self._clock = clock if clock is not None else SystemClock()
        self._history: Deque[OptimizationRecord] = deque(maxlen=history_limit)
        self._evaluation_limit = evaluation_limit
        self._evaluations: Dict[str, Deque[EnergyRecoveryMetrics]] = {}

    @property
    def optimization_history(self) -> Tuple[OptimizationRecord, ...]:
        return tuple(self._history)

    def record_evaluation(self, metrics: EnergyRecoveryMetrics) -> None:
        """Appends `metrics` to the bounded evaluation record of its formulation."""
        if metrics.formulation_id not in self._evaluations:
            self._evaluations[metrics.formulation_id] = deque(maxlen=self._evaluation_limit)
        self._evaluations[metrics.formulation_id].append(metrics)

    def evaluation_history(self, formulation_id: str) -> Tuple[EnergyRecoveryMetrics, ...]:
        """Recorded property evaluations of one formulation, oldest first; empty if none."""
        return tuple(self._evaluations.get(formulation_id, ()))

    def score(self, composition: MRFluidComposition, weights: PriorityWeights) -> float:
        return score_composition(composition, weights)

    def optimize(self, parameters: OptimizationParameters) -> OptimizationResult:
        best_id, best_score = "", 0.0
        for formulation_id, composition in self.catalog.list_all().items():
            score = self.score(composition, parameters.weights)
            if score > best_score:
                best_id, best_score = formulation_id, score

        recommendations = []
        if parameters.weights.energy_recovery > 0.7:
            recommendations.append("Consider high particle concentration formulations for maximum energy recovery")
        if parameters.weights.response_time > 0.7:
            recommendations.append("Use smaller particle sizes and lower viscosity base fluids for faster response")
        if parameters.temperature_range[1] > 100:
            recommendations.append("Select temperature-stable base fluids and additives for high-temperature operation")

        self._history.append(OptimizationRecord(self._clock.now(), parameters, best_id, best_score))
        logger.debug(f"Formulation optimization selected '{best_id}' with score {best_score:.4f}.")
        return OptimizationResult(best_formulation=best_id, score=best_score, recommendations=tuple(recommendations))

    def recommend_switch(self, current_id: str, conditions: OperatingConditions) -> SwitchRecommendation:
        """
        Compares the formulation `current_id` with the best catalog formulation
        for `conditions`.

        Raises:
            ConfigurationError: If `current_id` is not in the catalog.
        """
        current = self.catalog.lookup(current_id)
        if current is None:
            raise ConfigurationError(f"MR fluid formulation '{current_id}' not found.", formulation_id=current_id)
        parameters = OptimizationParameters.from_conditions(conditions)
        result = self.optimize(parameters)
        current_score = self.score(current, parameters.weights)

        if current_score > 0:
            improvement = (result.score - current_score) / current_score * 100.0
        else:
            improvement = 100.0 if result.score > 0 else 0.0

        return SwitchRecommendation(
            current_formulation=current.id,
            recommended_formulation=result.best_formulation,
            expected_improvement=improvement,
            recommendation=recommendation_band(improvement),
        )
