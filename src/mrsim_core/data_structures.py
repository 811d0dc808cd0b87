# src/mrsim_core/data_structures.py
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple

from .errors import ScenarioError

logger = logging.getLogger(__name__)


class DamperPosition(Enum):
    """The four fixed suspension corners, in storage order."""
    FRONT_LEFT = "front-left"
    FRONT_RIGHT = "front-right"
    REAR_LEFT = "rear-left"
    REAR_RIGHT = "rear-right"

    def __str__(self):
        return self.value

    @property
    def index(self) -> int:
        return list(DamperPosition).index(self)


@dataclass
class SuspensionCorner:
    """
    Mutable per-corner suspension state, owned by the VehicleState.

    `force` is written back from the damper model each step and is never read
    by the kinematics of the following step.
    """
    position: DamperPosition
    displacement: float = 0.0   # m
    velocity: float = 0.0       # m/s
    force: float = 0.0          # N
    temperature: float = 25.0   # degC


@dataclass
class Position3D:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Orientation:
    roll: float = 0.0   # deg
    pitch: float = 0.0  # deg
    yaw: float = 0.0    # deg


@dataclass
class Motion:
    speed: float = 0.0          # km/h
    acceleration: float = 0.0   # m/s^2
    position: Position3D = field(default_factory=Position3D)
    orientation: Orientation = field(default_factory=Orientation)


@dataclass
class SystemStatus:
    battery_soc: float = 0.8            # 0-1
    system_temperature: float = 25.0    # degC
    power_draw: float = 0.0             # W
    recovered_power: float = 0.0        # W


@dataclass
class VehicleState:
    """
    The complete mutable state of one simulation run.

    Exactly one SuspensionCorner exists per configured damper position, stored
    in DamperPosition order.
    """
    timestamp: datetime
    motion: Motion
    suspension: Tuple[SuspensionCorner, ...]
    system_status: SystemStatus

    def corner(self, position: DamperPosition) -> SuspensionCorner:
        for corner in self.suspension:
            if corner.position is position:
                return corner
        raise KeyError(f"No suspension corner configured at '{position}'.")

    @property
    def max_corner_temperature(self) -> float:
        return max((c.temperature for c in self.suspension), default=self.system_status.system_temperature)

    def snapshot(self) -> VehicleState:
        """Returns a fully independent copy, safe to store in a log."""
        return copy.deepcopy(self)


# --- Test Scenario (immutable input) ---

@dataclass(frozen=True)
class SpeedSample:
    time: float   # s
    speed: float  # km/h


@dataclass(frozen=True)
class RoadConditions:
    surface_type: str = "smooth"
    roughness: float = 0.1      # 0-1
    incline_angle: float = 0.0  # deg


@dataclass(frozen=True)
class BrakingEvent:
    time: float       # s
    intensity: float  # 0-1
    duration: float   # s

    def is_active(self, t: float) -> bool:
        return self.time <= t < self.time + self.duration


@dataclass(frozen=True)
class Environment:
    temperature: float = 25.0  # degC
    humidity: float = 50.0     # %
    wind_speed: float = 0.0    # m/s


@dataclass(frozen=True)
class TestScenario:
    """
    A scripted driving scenario. Read-only for the duration of a run.
    """
    __test__ = False

    scenario_id: str
    duration: float  # s
    road: RoadConditions = field(default_factory=RoadConditions)
    speed_profile: Tuple[SpeedSample, ...] = ()
    load_factor: float = 0.5
    environment: Environment = field(default_factory=Environment)
    braking_events: Tuple[BrakingEvent, ...] = ()
    name: str = ""
    description: str = ""

    def __post_init__(self):
        # Accept any iterable from callers but store tuples.
        object.__setattr__(self, 'speed_profile', tuple(self.speed_profile))
        object.__setattr__(self, 'braking_events', tuple(self.braking_events))

        if not math.isfinite(self.duration) or self.duration < 0:
            raise ScenarioError(self.scenario_id, f"Duration must be a non-negative number of seconds, got {self.duration}.")
        if not 0.0 <= self.road.roughness <= 1.0:
            raise ScenarioError(self.scenario_id, f"Road roughness {self.road.roughness} is outside [0, 1].")
        if not 0.0 <= self.load_factor <= 1.0:
            raise ScenarioError(self.scenario_id, f"Load factor {self.load_factor} is outside [0, 1].")
        for sample in self.speed_profile:
            if not (math.isfinite(sample.time) and math.isfinite(sample.speed)):
                raise ScenarioError(self.scenario_id, f"Speed profile sample {sample} is not finite.")
        times = [sample.time for sample in self.speed_profile]
        if any(later <= earlier for earlier, later in zip(times, times[1:])):
            raise ScenarioError(self.scenario_id, f"Speed profile times must be strictly ascending, got {times}.")
        for event in self.braking_events:
            if not all(math.isfinite(v) for v in (event.time, event.intensity, event.duration)):
                raise ScenarioError(self.scenario_id, f"Braking event {event} is not finite.")
            if not 0.0 <= event.intensity <= 1.0 or event.duration < 0:
                raise ScenarioError(
                    self.scenario_id,
                    f"Braking event {event} needs an intensity in [0, 1] and a non-negative duration.",
                )

    def step_count(self, step_interval_s: float) -> int:
        """Number of fixed steps covering the scenario duration."""
        return int(round(self.duration / step_interval_s))

    def braking_intensity_at(self, t: float) -> float:
        """The strongest scripted braking event active at time `t`, or 0."""
        return max((e.intensity for e in self.braking_events if e.is_active(t)), default=0.0)

    @classmethod
    def from_profile(
        cls,
        scenario_id: str,
        duration: float,
        profile: Iterable[Tuple[float, float]],
        roughness: float = 0.1,
        ambient_temperature: float = 25.0,
        load_factor: float = 0.5,
        name: Optional[str] = None,
    ) -> TestScenario:
        """Convenience constructor from plain (time, speed) pairs."""
        return cls(
            scenario_id=scenario_id,
            duration=duration,
            road=RoadConditions(roughness=roughness),
            speed_profile=tuple(SpeedSample(t, v) for t, v in profile),
            load_factor=load_factor,
            environment=Environment(temperature=ambient_temperature),
            name=name or scenario_id,
        )
