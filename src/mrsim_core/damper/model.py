# src/mrsim_core/damper/model.py
"""
Hydraulic / electromagnetic regenerative damper response model.

The model maps the kinematic and thermal state of one suspension corner to a
damping force and the electrical power harvested by the damper's
electromagnetic stage. It is a first-order empirical model: a hydraulic
velocity/spring term plus an induced-current electromagnetic term.

The model is a pure function of its inputs. Out-of-range physical inputs are
never rejected; they are saturated into the ranges held by
`DamperConstraints` before any computation takes place.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Protocol, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)

#: Effective sprung mass used to estimate the kinetic power available at a corner (kg).
EFFECTIVE_CORNER_MASS_KG = 1000.0
#: Velocity at which the electromagnetic stage is most effective (m/s).
OPTIMAL_EM_VELOCITY = 0.5
#: Below this absolute velocity the damper is considered stationary (m/s).
STATIONARY_VELOCITY = 0.01
#: Spring rate of the position-dependent hydraulic term (N/m).
HYDRAULIC_SPRING_RATE = 25000.0


@dataclass(frozen=True)
class DamperInputs:
    compression_velocity: float  # m/s, positive in compression
    displacement: float          # m, positive in compression
    vehicle_speed: float         # km/h
    road_roughness: float        # 0-1
    damper_temperature: float    # degC
    battery_soc: float           # 0-1
    load_factor: float           # 0-1


@dataclass(frozen=True)
class DamperOutputs:
    damping_force: float          # N
    harvested_energy: float       # J, over one integration interval
    generated_power: float        # W
    energy_efficiency: float      # 0-1
    electromagnetic_force: float = 0.0  # N
    hydraulic_pressure: float = 0.0     # Pa
    system_temperature: float = 0.0     # degC

    @property
    def is_idle(self) -> bool:
        """The canonical failed/idle signal used by reliability accounting."""
        return self.generated_power == 0 and self.damping_force == 0

    @classmethod
    def idle(cls) -> "DamperOutputs":
        return cls(damping_force=0.0, harvested_energy=0.0, generated_power=0.0, energy_efficiency=0.0)


@dataclass(frozen=True)
class DamperConfiguration:
    max_damping_force: float = 8000.0          # N
    max_electromagnetic_force: float = 2000.0  # N
    coil_resistance: float = 0.5               # ohm
    magnetic_flux_density: float = 1.2         # T
    coil_length: float = 0.15                  # m
    cylinder_diameter: float = 0.05            # m
    max_operating_temperature: float = 120.0   # degC
    conversion_efficiency: float = 0.85
    energy_integration_interval: float = 0.01  # s


@dataclass(frozen=True)
class DamperConstraints:
    """Saturation ranges applied to inputs and outputs of the damper model."""
    max_compression_velocity: float = 2.0   # m/s
    max_extension_velocity: float = 2.0     # m/s
    max_displacement: float = 0.15          # m
    min_displacement: float = -0.15         # m
    max_vehicle_speed: float = 300.0        # km/h
    min_temperature: float = -40.0          # degC
    max_temperature: float = 200.0          # degC
    max_power_output: float = 1500.0        # W
    temperature_derating_threshold: float = 100.0  # degC


@runtime_checkable
class DamperModel(Protocol):
    """Anything that maps corner inputs to damper outputs."""
    def calculate(self, inputs: DamperInputs) -> DamperOutputs:
        ...


class RegenerativeDamper:
    """
    A stateless damper response model for one corner.

    Instances only hold immutable configuration; `calculate` returns the same
    outputs for the same inputs and may be shared between corners.
    """
    def __init__(self, config: Optional[DamperConfiguration] = None, constraints: Optional[DamperConstraints] = None):
        self.config = config if config is not None else DamperConfiguration()
        self.constraints = constraints if constraints is not None else DamperConstraints()

    def calculate(self, inputs: DamperInputs) -> DamperOutputs:
        inputs = self.clamp_inputs(inputs)

        em_force = self._electromagnetic_force(inputs)
        hydraulic_force = self._hydraulic_force(inputs)
        damping_force = min(hydraulic_force + em_force, self.config.max_damping_force)

        generated_power = self._generated_power(inputs, em_force)
        efficiency = self._energy_efficiency(inputs, generated_power)
        pressure = self._hydraulic_pressure(inputs, hydraulic_force)
        system_temperature = self._system_temperature(inputs, generated_power)

        # Thermal protection: the EM stage drops to 10 % above its operating limit.
        if system_temperature > self.config.max_operating_temperature:
            generated_power *= 0.1
            em_force *= 0.1

        generated_power = max(0.0, min(generated_power, self.constraints.max_power_output))
        harvested_energy = generated_power * self.config.energy_integration_interval

        return DamperOutputs(
            damping_force=damping_force,
            harvested_energy=harvested_energy,
            generated_power=generated_power,
            energy_efficiency=float(np.clip(efficiency, 0.0, 1.0)),
            electromagnetic_force=min(em_force, self.config.max_electromagnetic_force),
            hydraulic_pressure=pressure,
            system_temperature=system_temperature,
        )

    def clamp_inputs(self, inputs: DamperInputs) -> DamperInputs:
        """Saturates every input into its configured physical range."""
        c = self.constraints
        return replace(
            inputs,
            compression_velocity=float(np.clip(inputs.compression_velocity, -c.max_extension_velocity, c.max_compression_velocity)),
            displacement=float(np.clip(inputs.displacement, c.min_displacement, c.max_displacement)),
            vehicle_speed=float(np.clip(inputs.vehicle_speed, 0.0, c.max_vehicle_speed)),
            road_roughness=float(np.clip(inputs.road_roughness, 0.0, 1.0)),
            damper_temperature=float(np.clip(inputs.damper_temperature, c.min_temperature, c.max_temperature)),
            battery_soc=float(np.clip(inputs.battery_soc, 0.0, 1.0)),
            load_factor=float(np.clip(inputs.load_factor, 0.0, 1.0)),
        )

    # --- Force terms ---

    def _electromagnetic_force(self, inputs: DamperInputs) -> float:
        """F = B * I * L with the induced current I = B * L * v / R."""
        cfg = self.config
        velocity = abs(inputs.compression_velocity)
        induced_current = cfg.magnetic_flux_density * cfg.coil_length * velocity / cfg.coil_resistance
        force = cfg.magnetic_flux_density * induced_current * cfg.coil_length
        return min(force * self._velocity_scaling(velocity), cfg.max_electromagnetic_force)

    def _hydraulic_force(self, inputs: DamperInputs) -> float:
        velocity = inputs.compression_velocity
        velocity_damping = math.copysign(abs(velocity) ** 1.8, velocity) * 1000.0 if velocity else 0.0
        spring_force = inputs.displacement * HYDRAULIC_SPRING_RATE
        load_adjustment = 1.0 + inputs.load_factor * 0.3
        roughness_adjustment = 1.0 + inputs.road_roughness * 0.2
        total = (velocity_damping + spring_force) * load_adjustment * roughness_adjustment
        return min(abs(total), self.config.max_damping_force)

    @staticmethod
    def _velocity_scaling(velocity: float) -> float:
        if velocity <= OPTIMAL_EM_VELOCITY:
            return velocity / OPTIMAL_EM_VELOCITY
        # Eddy-current losses at high velocity
        return max(0.3, 1.0 - (velocity - OPTIMAL_EM_VELOCITY) * 0.2)

    # --- Power and efficiency ---

    def _generated_power(self, inputs: DamperInputs, em_force: float) -> float:
        mechanical_power = em_force * abs(inputs.compression_velocity)
        electrical_power = mechanical_power * self.config.conversion_efficiency
        adjusted = electrical_power * self._soc_factor(inputs.battery_soc) * self._thermal_derating(inputs.damper_temperature)
        return min(adjusted, self.constraints.max_power_output)

    @staticmethod
    def _soc_factor(battery_soc: float) -> float:
        if battery_soc >= 0.95:
            return 0.1
        if battery_soc >= 0.85:
            return 0.5
        if battery_soc >= 0.7:
            return 0.8
        return 1.0

    def _thermal_derating(self, temperature: float) -> float:
        threshold = self.constraints.temperature_derating_threshold
        max_temp = self.config.max_operating_temperature
        if temperature <= threshold:
            return 1.0
        if temperature >= max_temp:
            return 0.1
        return 1.0 - (temperature - threshold) / (max_temp - threshold) * 0.9

    def _energy_efficiency(self, inputs: DamperInputs, generated_power: float) -> float:
        velocity = abs(inputs.compression_velocity)
        if velocity < STATIONARY_VELOCITY:
            return 0.0
        kinetic_power = 0.5 * EFFECTIVE_CORNER_MASS_KG * velocity ** 2
        if kinetic_power < 1.0:
            return 0.0
        return min(generated_power / kinetic_power, 1.0) * self._operating_efficiency(inputs)

    @staticmethod
    def _operating_efficiency(inputs: DamperInputs) -> float:
        efficiency = 1.0
        if inputs.damper_temperature > 80:
            efficiency *= 0.95
        if inputs.damper_temperature < 0:
            efficiency *= 0.9
        efficiency *= 1.0 - inputs.road_roughness * 0.1
        if inputs.vehicle_speed > 120:
            efficiency *= 0.98
        return max(efficiency, 0.5)

    # --- Hydraulic and thermal side outputs ---

    def _hydraulic_pressure(self, inputs: DamperInputs, hydraulic_force: float) -> float:
        cylinder_area = math.pi * (self.config.cylinder_diameter / 2) ** 2
        dynamic_pressure = inputs.compression_velocity ** 2 * 500.0
        return hydraulic_force / cylinder_area + dynamic_pressure

    def _system_temperature(self, inputs: DamperInputs, generated_power: float) -> float:
        electrical_losses = generated_power * (1.0 - self.config.conversion_efficiency)
        hydraulic_losses = abs(inputs.compression_velocity) * 100.0
        # 1000 J/K thermal capacity, up to 30 % relief from air cooling
        temperature_rise = (electrical_losses + hydraulic_losses) / 1000.0
        cooling = min(inputs.vehicle_speed / 100.0, 1.0)
        return inputs.damper_temperature + temperature_rise * (1.0 - cooling * 0.3)
