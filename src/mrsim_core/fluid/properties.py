# src/mrsim_core/fluid/properties.py
"""
Empirical MR-fluid property model.

Every function here is a pure function of a composition and an operating
point. `evaluate_energy_recovery` bundles them into one `EnergyRecoveryMetrics`
record, which is what the integration layer consumes each step.
"""
import logging
import math
from dataclasses import dataclass

import numpy as np

from .catalog import MRFluidComposition

logger = logging.getLogger(__name__)

OPTIMAL_TEMPERATURE_C = 25.0
OPTIMAL_SHEAR_RATE = 100.0  # 1/s


@dataclass(frozen=True)
class EnergyRecoveryMetrics:
    formulation_id: str
    magnetic_field: float              # A/m
    temperature: float                 # degC
    shear_rate: float                  # 1/s
    frequency: float                   # Hz
    energy_recovery_efficiency: float  # %, clipped to [0, 100]
    power_density: float               # W/kg
    damping_coefficient: float         # N*s/m
    viscosity_ratio: float             # on-state / off-state
    thermal_stability: float           # % efficiency retained
    durability_index: float            # h


def temperature_factor(composition: MRFluidComposition, temperature: float) -> float:
    max_temp = composition.performance.temperature_stability
    if temperature <= OPTIMAL_TEMPERATURE_C:
        return 1.0
    if temperature <= max_temp:
        return 1.0 - (temperature - OPTIMAL_TEMPERATURE_C) / (max_temp - OPTIMAL_TEMPERATURE_C) * 0.3
    # Severe degradation past the stable range
    return 0.7 * math.exp(-(temperature - max_temp) / 50.0)


def field_factor(composition: MRFluidComposition, magnetic_field: float) -> float:
    saturation_field = composition.saturation_field
    if magnetic_field <= 0:
        return 0.1
    if magnetic_field >= saturation_field:
        return 1.0
    return 0.1 + 0.9 * (1.0 - math.exp(-magnetic_field / (saturation_field * 0.3)))


def shear_rate_factor(shear_rate: float) -> float:
    if shear_rate <= 0:
        return 0.5
    if shear_rate <= OPTIMAL_SHEAR_RATE:
        return 0.5 + 0.5 * shear_rate / OPTIMAL_SHEAR_RATE
    # Shear thinning
    return (OPTIMAL_SHEAR_RATE / shear_rate) ** 0.2


def critical_frequency(composition: MRFluidComposition) -> float:
    """Frequency (Hz) above which the fluid can no longer follow the excitation."""
    response_time_s = composition.performance.response_time / 1000.0
    return 1.0 / (2.0 * math.pi * response_time_s)


def frequency_factor(composition: MRFluidComposition, frequency: float) -> float:
    critical = critical_frequency(composition)
    if frequency <= critical:
        return 1.0
    return critical / frequency


def base_efficiency(composition: MRFluidComposition) -> float:
    """Formulation-intrinsic energy-recovery efficiency in percent (60 to 95)."""
    concentration_factor = min(1.0, composition.magnetic_particles.concentration / 0.4)
    yield_stress_factor = min(1.0, composition.performance.yield_stress / 100000.0)
    dynamic_range_factor = min(1.0, composition.performance.dynamic_range / 200.0)
    return 60.0 + 35.0 * concentration_factor * yield_stress_factor * dynamic_range_factor


def power_density(composition: MRFluidComposition, magnetic_field: float, shear_rate: float) -> float:
    return (composition.performance.yield_stress * field_factor(composition, magnetic_field) * shear_rate
            / composition.base_fluid.density)


def damping_coefficient(composition: MRFluidComposition, magnetic_field: float, temperature: float) -> float:
    dynamic_range = composition.performance.dynamic_range
    return (composition.base_fluid.viscosity
            * (1.0 + (dynamic_range - 1.0) * field_factor(composition, magnetic_field))
            * temperature_factor(composition, temperature))


def thermal_stability(composition: MRFluidComposition, temperature: float) -> float:
    max_temp = composition.performance.temperature_stability
    if temperature <= OPTIMAL_TEMPERATURE_C:
        return 100.0
    if temperature <= max_temp:
        return 100.0 - (temperature - OPTIMAL_TEMPERATURE_C) / (max_temp - OPTIMAL_TEMPERATURE_C) * 20.0
    return max(0.0, 80.0 - (temperature - max_temp) * 2.0)


def durability_index(composition: MRFluidComposition, magnetic_field: float, temperature: float) -> float:
    temperature_stress = max(0.0, temperature - OPTIMAL_TEMPERATURE_C) / 100.0
    field_stress = magnetic_field / 1.0e6
    stress_factor = 1.0 - (temperature_stress + field_stress) * 0.3
    return composition.performance.sedimentation_stability * max(0.1, stress_factor)


def evaluate_energy_recovery(
    composition: MRFluidComposition,
    magnetic_field: float,
    temperature: float,
    shear_rate: float,
    frequency: float,
) -> EnergyRecoveryMetrics:
    """
    Evaluates the full set of fluid metrics at one operating point.

    Args:
        composition: The MR-fluid formulation to evaluate.
        magnetic_field: Applied field strength in A/m.
        temperature: Fluid temperature in degC.
        shear_rate: Shear rate in 1/s.
        frequency: Oscillation frequency in Hz.

    Returns:
        The metrics record. The efficiency is clipped to [0, 100] %.
    """
    efficiency = (base_efficiency(composition)
                  * temperature_factor(composition, temperature)
                  * field_factor(composition, magnetic_field)
                  * shear_rate_factor(shear_rate)
                  * frequency_factor(composition, frequency))

    return EnergyRecoveryMetrics(
        formulation_id=composition.id,
        magnetic_field=magnetic_field,
        temperature=temperature,
        shear_rate=shear_rate,
        frequency=frequency,
        energy_recovery_efficiency=float(np.clip(efficiency, 0.0, 100.0)),
        power_density=power_density(composition, magnetic_field, shear_rate),
        damping_coefficient=damping_coefficient(composition, magnetic_field, temperature),
        viscosity_ratio=composition.performance.dynamic_range * field_factor(composition, magnetic_field),
        thermal_stability=thermal_stability(composition, temperature),
        durability_index=durability_index(composition, magnetic_field, temperature),
    )
