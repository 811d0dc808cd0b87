# src/mrsim_core/simulation/results.py
"""
Immutable data contracts produced by a test-vehicle run.

A run produces one `DataLogEntry` per logged step and, once it completes or is
stopped, exactly one `TestResults` reduced from those entries. Both are frozen
dataclasses: a log entry is never mutated after it is appended, and results
are derived values that consumers (report generators, analyzers) only read.

Per-damper outputs are stored as a tuple in suspension-corner order, matching
`VehicleState.suspension`; `DataLogEntry.damper_output` provides lookup by
`DamperPosition`.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

from ..damper import DamperOutputs
from ..data_structures import DamperPosition, VehicleState
from ..fluid import MRFluidSystemOutputs, SystemHealth
from ..validation import IssueLevel, SafetyEvent
from .integrator import TestStatus


@dataclass(frozen=True)
class DataLogEntry:
    """
    One logged simulation step.

    Attributes:
        timestamp: Clock time at which the step's state was produced.
        step: Zero-based step index within the run.
        elapsed_s: Simulation time of the step.
        state: An independent snapshot of the vehicle state after the step.
        damper_outputs: Damper model outputs, in corner order.
        fluid_outputs: The MR-fluid system output of the step.
    """
    timestamp: datetime
    step: int
    elapsed_s: float
    state: VehicleState
    damper_outputs: Tuple[DamperOutputs, ...]
    fluid_outputs: MRFluidSystemOutputs

    def damper_output(self, position: DamperPosition) -> DamperOutputs:
        for corner, outputs in zip(self.state.suspension, self.damper_outputs):
            if corner.position is position:
                return outputs
        raise KeyError(f"No damper installed at '{position}'.")


@dataclass(frozen=True)
class ExecutionSummary:
    start_time: datetime
    end_time: datetime
    duration: float               # s, wall clock
    simulated_duration: float     # s, steps executed x step interval
    steps_executed: int
    samples_collected: int


@dataclass(frozen=True)
class PerformanceMetrics:
    average_damping_force: float = 0.0          # N
    max_damping_force: float = 0.0              # N
    total_energy_recovered: float = 0.0         # J
    average_energy_recovery_rate: float = 0.0   # W
    damping_efficiency: float = 0.0             # %
    system_reliability: float = 0.0             # %


@dataclass(frozen=True)
class FluidPerformanceMetrics:
    average_viscosity: float = 0.0           # Pa*s
    temperature_min: float = 0.0             # degC
    temperature_max: float = 0.0             # degC
    magnetic_field_utilization: float = 0.0  # %
    formulation_efficiency: float = 0.0      # %


@dataclass(frozen=True)
class DiagnosticsSummary:
    system_health: SystemHealth
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    maintenance_required: bool = False


@dataclass(frozen=True)
class TestResults:
    """
    The final, user-facing result of one test run.

    Attributes:
        test_id: Unique id of the run, `test_<scenario_id>_<epoch ms>`.
        scenario_id: Id of the scenario that was run.
        execution: Wall-clock window and sample counts.
        performance: Damper performance reduced from the data log.
        fluid_performance: MR-fluid performance reduced from the data log.
        diagnostics: Health band, issues and recommendations of the fluid system.
        status: COMPLETED if every scheduled step ran, STOPPED otherwise.
        safety_events: Every safety-limit breach recorded during the run.
    """
    __test__ = False

    test_id: str
    scenario_id: str
    execution: ExecutionSummary
    performance: PerformanceMetrics
    fluid_performance: FluidPerformanceMetrics
    diagnostics: DiagnosticsSummary
    status: TestStatus
    safety_events: Tuple[SafetyEvent, ...] = field(default_factory=tuple)

    @property
    def emergency_stopped(self) -> bool:
        return any(event.level is IssueLevel.ERROR for event in self.safety_events)
