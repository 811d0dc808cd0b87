# src/mrsim_core/fluid/integration.py
"""
MR-fluid response model coupled to the regenerative braking controller.

`MRFluidIntegration` owns exactly one current `MRFluidComposition`. It is
resolved from the catalog at construction and on every switch, and a failed
resolution raises `ConfigurationError` without touching the previous
composition. Consequently the current composition is always valid once an
instance exists.

`calculate_optimal_response` is a recording operation: besides returning the
system outputs, it appends one `PerformanceRecord` to the performance
history, which feeds the analytics and the diagnostic trend analysis.
"""
import logging
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Deque, Dict, Optional, Tuple

from ..clock import Clock, SystemClock
from ..constants import (
    DERATING_FLOOR,
    FREQUENCY_FACTOR_FLOOR,
    TARGET_RECOVERY_EFFICIENCY_PERCENT,
)
from ..errors import ConfigurationError
from ..braking import BrakingController, BrakingDecision, FuzzyBrakingController
from .catalog import FormulationCatalog, MRFluidComposition
from .optimizer import (
    FormulationOptimizer,
    OperatingConditions,
    SwitchRecommendation,
    Trend,
    calculate_trend,
)
from .properties import EnergyRecoveryMetrics, critical_frequency, evaluate_energy_recovery

logger = logging.getLogger(__name__)

#: Braking shear rate per (intensity * km/h).
BRAKING_SHEAR_SCALE = 2.78
#: Suspension shear rate per m/s of suspension velocity.
SUSPENSION_SHEAR_SCALE = 100.0
#: Fraction of the saturation field added per unit of efficiency gap.
ADAPTIVE_FIELD_GAIN = 0.5
#: Performance records assumed per operating hour by the analytics.
RECORDS_PER_HOUR = 60


# --- Configuration ---

@dataclass(frozen=True)
class BrakingSystemConfig:
    enable_mr_fluid_braking: bool = True
    mr_fluid_braking_ratio: float = 0.4  # 0-1, MR-fluid share of the braking
    adaptive_field_control: bool = True


@dataclass(frozen=True)
class SuspensionSystemConfig:
    enable_mr_fluid_suspension: bool = True
    suspension_energy_recovery: bool = True
    damping_adaptation: bool = True


@dataclass(frozen=True)
class ThermalManagementConfig:
    enable_cooling: bool = True
    max_operating_temperature: float = 130.0  # degC
    thermal_derating: bool = True


@dataclass(frozen=True)
class MRFluidSystemConfiguration:
    selected_formulation: str = "HP-IC-001"
    braking: BrakingSystemConfig = field(default_factory=BrakingSystemConfig)
    suspension: SuspensionSystemConfig = field(default_factory=SuspensionSystemConfig)
    thermal: ThermalManagementConfig = field(default_factory=ThermalManagementConfig)


# --- Inputs / Outputs ---

@dataclass(frozen=True)
class MRFluidSystemInputs:
    driving_speed: float           # km/h
    braking_intensity: float       # 0-1
    battery_soc: float             # 0-1
    motor_temperature: float       # degC
    magnetic_field_strength: float  # A/m
    suspension_velocity: float     # m/s
    damping_force: float           # N
    ambient_temperature: float     # degC
    operating_frequency: float     # Hz


@dataclass(frozen=True)
class MRFluidSystemOutputs:
    regen_ratio: float
    motor_torque: float                 # Nm
    front_axle_force: float             # N
    mr_fluid_viscosity: float           # Pa*s
    damping_coefficient: float          # N*s/m
    energy_recovery_rate: float         # W
    fluid_temperature: float            # degC
    magnetic_field_required: float      # A/m
    braking_energy_recovery: float      # W
    suspension_energy_recovery: float   # W
    total_energy_recovery: float        # W
    thermal_derating_factor: float = 1.0
    efficiency: float = 0.0             # %, fluid energy-recovery efficiency


@dataclass(frozen=True)
class PerformanceRecord:
    timestamp: datetime
    inputs: MRFluidSystemInputs
    outputs: MRFluidSystemOutputs
    efficiency: float  # %


# --- Analytics / Diagnostics ---

class SystemHealth(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class TemperatureProfile:
    min: float = 0.0
    max: float = 0.0
    average: float = 0.0


@dataclass(frozen=True)
class PerformanceAnalytics:
    average_energy_recovery: float = 0.0  # W
    average_efficiency: float = 0.0       # %
    temperature_profile: TemperatureProfile = field(default_factory=TemperatureProfile)
    operating_hours: float = 0.0
    formulation_utilization: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PerformanceTrends:
    energy_recovery: Trend = Trend.STABLE
    efficiency: Trend = Trend.STABLE
    temperature: Trend = Trend.STABLE


@dataclass(frozen=True)
class SystemDiagnostics:
    system_health: SystemHealth
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    trends: PerformanceTrends = field(default_factory=PerformanceTrends)


class MRFluidIntegration:
    """
    The MR-Fluid Response Model.

    Args:
        configuration: System configuration; its `selected_formulation` must
            exist in `catalog`.
        catalog: The formulation catalog. Defaults to the standard catalog.
        braking_controller: Collaborator producing the base braking decision.
            Defaults to `FuzzyBrakingController`.
        history_limit: Maximum number of performance records retained;
            `None` keeps every record.
        clock: Source of record timestamps.

    Raises:
        ConfigurationError: If the selected formulation is not in the catalog.
    """
    def __init__(
        self,
        configuration: Optional[MRFluidSystemConfiguration] = None,
        catalog: Optional[FormulationCatalog] = None,
        braking_controller: Optional[BrakingController] = None,
        history_limit: Optional[int] = 10000,
        clock: Optional[Clock] = None,
    ):
        self._configuration = configuration if configuration is not None else MRFluidSystemConfiguration()
        self.catalog = catalog if catalog is not None else FormulationCatalog()
        self.braking_controller = braking_controller if braking_controller is not None else FuzzyBrakingController()
        self._clock = clock if clock is not None else SystemClock()
        self._history: Deque[PerformanceRecord] = deque(maxlen=history_limit)
        self.optimizer = FormulationOptimizer(self.catalog, clock=self._clock, evaluation_limit=history_limit)
        self._current = self._resolve(self._configuration.selected_formulation)
        logger.info(f"MR fluid system initialized with formulation '{self._current.id}' ({self._current.name}).")

    # --- Accessors ---

    @property
    def current_formulation(self) -> MRFluidComposition:
        return self._current

    @property
    def configuration(self) -> MRFluidSystemConfiguration:
        return self._configuration

    @property
    def performance_history(self) -> Tuple[PerformanceRecord, ...]:
        return tuple(self._history)

    # --- Response computation ---

    def calculate_optimal_response(self, inputs: MRFluidSystemInputs) -> MRFluidSystemOutputs:
        composition = self._current

        decision = self.braking_controller.compute_braking(
            inputs.driving_speed, inputs.braking_intensity, inputs.battery_soc, inputs.motor_temperature
        )
        metrics = evaluate_energy_recovery(
            composition,
            inputs.magnetic_field_strength,
            inputs.ambient_temperature,
            self.shear_rate(inputs),
            inputs.operating_frequency,
        )
        self.optimizer.record_evaluation(metrics)
        efficiency = metrics.energy_recovery_efficiency

        braking_recovery = self._braking_energy_recovery(decision, metrics, inputs)
        suspension_recovery = self._suspension_energy_recovery(metrics, inputs)
        fluid_temperature = (inputs.ambient_temperature
                             + metrics.power_density * 0.001 / composition.base_fluid.thermal_conductivity)
        damping_coefficient = metrics.damping_coefficient

        derating = self.thermal_derating_factor(fluid_temperature)
        if derating < 1.0:
            logger.debug(f"Thermal derating active: fluid at {fluid_temperature:.1f} degC, factor {derating:.3f}.")
            braking_recovery *= derating
            suspension_recovery *= derating
            damping_coefficient *= derating
        total_recovery = braking_recovery + suspension_recovery

        outputs = MRFluidSystemOutputs(
            regen_ratio=decision.regen_ratio,
            motor_torque=decision.motor_torque,
            front_axle_force=decision.front_axle_force,
            mr_fluid_viscosity=composition.base_fluid.viscosity * metrics.viscosity_ratio,
            damping_coefficient=damping_coefficient,
            energy_recovery_rate=total_recovery,
            fluid_temperature=fluid_temperature,
            magnetic_field_required=min(self._required_field(inputs, efficiency), composition.saturation_field),
            braking_energy_recovery=braking_recovery,
            suspension_energy_recovery=suspension_recovery,
            total_energy_recovery=total_recovery,
            thermal_derating_factor=derating,
            efficiency=efficiency,
        )
        self._history.append(PerformanceRecord(self._clock.now(), inputs, outputs, efficiency))
        return outputs

    @staticmethod
    def shear_rate(inputs: MRFluidSystemInputs) -> float:
        """The dominant of the braking and suspension shear regimes (1/s)."""
        braking = inputs.braking_intensity * inputs.driving_speed * BRAKING_SHEAR_SCALE
        suspension = abs(inputs.suspension_velocity) * SUSPENSION_SHEAR_SCALE
        return max(braking, suspension)

    def frequency_efficiency_factor(self, frequency: float) -> float:
        critical = critical_frequency(self._current)
        if frequency <= critical:
            return 1.0
        return max(FREQUENCY_FACTOR_FLOOR, critical / frequency)

    def thermal_derating_factor(self, fluid_temperature: float) -> float:
        """1.0 unless derating is enabled and the fluid is above its ceiling."""
        thermal = self._configuration.thermal
        if not thermal.thermal_derating or fluid_temperature <= thermal.max_operating_temperature:
            return 1.0
        return max(DERATING_FLOOR, thermal.max_operating_temperature / fluid_temperature)

    def _braking_energy_recovery(self, decision: BrakingDecision, metrics: EnergyRecoveryMetrics,
                                 inputs: MRFluidSystemInputs) -> float:
        braking = self._configuration.braking
        if not braking.enable_mr_fluid_braking:
            return 0.0
        braking_power = decision.front_axle_force * inputs.driving_speed / 3.6
        return braking_power * metrics.energy_recovery_efficiency / 100.0 * braking.mr_fluid_braking_ratio

    def _suspension_energy_recovery(self, metrics: EnergyRecoveryMetrics, inputs: MRFluidSystemInputs) -> float:
        suspension = self._configuration.suspension
        if not (suspension.enable_mr_fluid_suspension and suspension.suspension_energy_recovery):
            return 0.0
        suspension_power = abs(inputs.damping_force * inputs.suspension_velocity)
        return (suspension_power * metrics.energy_recovery_efficiency / 100.0
                * self.frequency_efficiency_factor(inputs.operating_frequency))

    def _required_field(self, inputs: MRFluidSystemInputs, efficiency: float) -> float:
        if not self._configuration.braking.adaptive_field_control or efficiency >= TARGET_RECOVERY_EFFICIENCY_PERCENT:
            return inputs.magnetic_field_strength
        saturation_field = self._current.saturation_field
        increase = (TARGET_RECOVERY_EFFICIENCY_PERCENT - efficiency) / 100.0 * saturation_field * ADAPTIVE_FIELD_GAIN
        return min(inputs.magnetic_field_strength + increase, saturation_field)

    # --- Formulation management ---

    def _resolve(self, formulation_id: str) -> MRFluidComposition:
        composition = self.catalog.lookup(formulation_id)
        if composition is None:
            raise ConfigurationError(
                f"MR fluid formulation '{formulation_id}' not found. Available: {sorted(self.catalog.list_all())}.",
                formulation_id=formulation_id,
            )
        return composition

    def switch_formulation(self, formulation_id: str) -> None:
        """Atomically replaces the current formulation; no change on failure."""
        composition = self._resolve(formulation_id)
        self._current = composition
        self._configuration = replace(self._configuration, selected_formulation=formulation_id)
        logger.info(f"Switched MR fluid formulation to '{formulation_id}'.")

    def update_configuration(self, **changes) -> None:
        """
        Replaces top-level configuration fields (`selected_formulation`,
        `braking`, `suspension`, `thermal`). A new `selected_formulation` is
        resolved first, so an unknown id leaves the configuration unchanged.
        """
        new_configuration = replace(self._configuration, **changes)
        composition = self._resolve(new_configuration.selected_formulation)
        self._configuration = new_configuration
        self._current = composition
        logger.debug(f"MR fluid configuration updated: {sorted(changes)}.")

    def optimize_formulation_for_conditions(self, conditions: OperatingConditions) -> SwitchRecommendation:
        return self.optimizer.recommend_switch(self._current.id, conditions)

    # --- Analytics / Diagnostics ---

    def get_performance_analytics(self) -> PerformanceAnalytics:
        if not self._history:
            return PerformanceAnalytics()

        count = len(self._history)
        temperatures = [record.outputs.fluid_temperature for record in self._history]
        return PerformanceAnalytics(
            average_energy_recovery=sum(r.outputs.total_energy_recovery for r in self._history) / count,
            average_efficiency=sum(r.efficiency for r in self._history) / count,
            temperature_profile=TemperatureProfile(
                min=min(temperatures), max=max(temperatures), average=sum(temperatures) / count
            ),
            operating_hours=count / RECORDS_PER_HOUR,
            formulation_utilization={self._configuration.selected_formulation: 100.0},
        )

    def generate_system_diagnostics(self) -> SystemDiagnostics:
        analytics = self.get_performance_analytics()
        issues = []
        recommendations = []

        health = SystemHealth.EXCELLENT
        if analytics.average_efficiency < 60:
            health = SystemHealth.POOR
            issues.append("Low energy recovery efficiency")
            recommendations.append("Consider switching to a higher-performance MR fluid formulation")
        elif analytics.average_efficiency < 75:
            health = SystemHealth.FAIR
            issues.append("Moderate energy recovery efficiency")
            recommendations.append("Optimize operating conditions or consider formulation upgrade")
        elif analytics.average_efficiency < 85:
            health = SystemHealth.GOOD

        if analytics.temperature_profile.max > self._configuration.thermal.max_operating_temperature:
            if health is SystemHealth.EXCELLENT:
                health = SystemHealth.GOOD
            issues.append("High operating temperatures detected")
            recommendations.append("Improve cooling system or enable thermal derating")

        history = self._history
        trends = PerformanceTrends(
            energy_recovery=calculate_trend([r.outputs.total_energy_recovery for r in history]),
            efficiency=calculate_trend([r.efficiency for r in history]),
            temperature=calculate_trend([r.outputs.fluid_temperature for r in history]),
        )
        return SystemDiagnostics(
            system_health=health,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
            trends=trends,
        )
