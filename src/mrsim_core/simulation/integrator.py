# src/mrsim_core/simulation/integrator.py
"""
The Vehicle State Integrator.

Owns the single mutable `VehicleState` of a simulation run and advances it by
one fixed step from a scripted `TestScenario`:

1. target speed by linear interpolation of the speed profile (clamped to the
   boundary samples); acceleration from the speed difference over one step;
2. per corner, a deterministic road excitation made of two sinusoids whose
   frequencies are offset by the corner index and whose amplitude scales with
   road roughness;
3. corner velocity as the backward difference of the displacement against the
   previous step (a plain finite difference, no filtering);
4. corner temperature as ambient plus heat proportional to |velocity|;
5. a fixed battery state-of-charge decrement, floored.

Corner `force` is written by the damper model after each step and is never
read here: the kinematics are open loop with respect to damping force.
"""
import logging
import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from ..clock import Clock, SystemClock
from ..constants import (
    DAMPING_HEAT_COEFFICIENT,
    DISPLACEMENT_REFERENCE_SPEED_KMH,
    INITIAL_BATTERY_SOC,
    INITIAL_TEMPERATURE_C,
    SOC_DECREMENT_PER_STEP,
    SOC_FLOOR,
    STEP_INTERVAL_S,
)
from ..data_structures import (
    DamperPosition,
    Motion,
    SpeedSample,
    SuspensionCorner,
    SystemStatus,
    TestScenario,
    VehicleState,
)

logger = logging.getLogger(__name__)

KMH_PER_MPS = 3.6


class TestStatus(Enum):
    """Run state machine: IDLE -> RUNNING -> COMPLETED | STOPPED."""
    __test__ = False

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"

    def __str__(self):
        return self.value


def interpolate_speed(profile: Sequence[SpeedSample], t: float) -> float:
    """
    Linear interpolation of a time-ascending speed profile at time `t`.

    Outside the covered range the boundary sample's speed is returned; an empty
    profile yields 0.
    """
    if not profile:
        return 0.0
    times = np.fromiter((sample.time for sample in profile), dtype=float, count=len(profile))
    speeds = np.fromiter((sample.speed for sample in profile), dtype=float, count=len(profile))
    return float(np.interp(t, times, speeds))


def road_excitation(roughness: float, t: float, corner_index: int) -> float:
    """Deterministic stand-in for a road profile at one corner (m)."""
    f1 = 2.0 + corner_index * 0.5  # Hz
    f2 = 5.0 + corner_index * 0.3  # Hz
    return (math.sin(2 * math.pi * f1 * t) * roughness * 0.02
            + math.sin(2 * math.pi * f2 * t) * roughness * 0.01)


class VehicleStateIntegrator:
    def __init__(
        self,
        positions: Sequence[DamperPosition] = tuple(DamperPosition),
        step_interval_s: float = STEP_INTERVAL_S,
        clock: Optional[Clock] = None,
    ):
        if not positions:
            raise ValueError("At least one damper position is required.")
        if step_interval_s <= 0:
            raise ValueError(f"Step interval must be positive, got {step_interval_s}.")
        self.positions = tuple(positions)
        self.step_interval_s = step_interval_s
        self._clock = clock if clock is not None else SystemClock()
        self.state = self._initial_state()

    def _initial_state(self) -> VehicleState:
        return VehicleState(
            timestamp=self._clock.now(),
            motion=Motion(),
            suspension=tuple(
                SuspensionCorner(position=position, temperature=INITIAL_TEMPERATURE_C) for position in self.positions
            ),
            system_status=SystemStatus(battery_soc=INITIAL_BATTERY_SOC, system_temperature=INITIAL_TEMPERATURE_C),
        )

    def reset(self) -> VehicleState:
        self.state = self._initial_state()
        return self.state

    def advance(self, scenario: TestScenario, elapsed_s: float) -> VehicleState:
        """Advances the owned state by one step to simulation time `elapsed_s`."""
        state = self.state
        dt = self.step_interval_s

        speed = interpolate_speed(scenario.speed_profile, elapsed_s)
        state.motion.acceleration = (speed - state.motion.speed) / KMH_PER_MPS / dt
        state.motion.speed = speed
        state.timestamp = self._clock.now()

        incline = math.radians(scenario.road.incline_angle)
        distance = speed / KMH_PER_MPS * dt
        state.motion.position.x += distance * math.cos(incline)
        state.motion.position.z += distance * math.sin(incline)
        state.motion.orientation.pitch = scenario.road.incline_angle

        amplification = 1.0 + 0.5 * min(speed / DISPLACEMENT_REFERENCE_SPEED_KMH, 1.0)
        for index, corner in enumerate(state.suspension):
            displacement = road_excitation(scenario.road.roughness, elapsed_s, index) * amplification
            corner.velocity = (displacement - corner.displacement) / dt
            corner.displacement = displacement
            corner.temperature = scenario.environment.temperature + abs(corner.velocity) * DAMPING_HEAT_COEFFICIENT

        status = state.system_status
        status.battery_soc = max(SOC_FLOOR, status.battery_soc - SOC_DECREMENT_PER_STEP)
        status.system_temperature = state.max_corner_temperature

        logger.debug(f"t={elapsed_s:.1f}s speed={speed:.2f} km/h soc={status.battery_soc:.4f}")
        return state
