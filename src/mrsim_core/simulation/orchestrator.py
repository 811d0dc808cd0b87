# src/mrsim_core/simulation/orchestrator.py
"""
The Test Orchestrator: drives a test vehicle through a scripted scenario.

Each step runs, in order: vehicle-state update, damper response per corner
(the damping force is written back onto the corner), MR-fluid response over
the aggregated corners, conditional data-log append, and the safety check.
The loop then suspends for one step interval scaled by the pacing factor.

Concurrency model: the step loop is the only writer of the vehicle state,
the data log and the fluid system's history. At most one test runs per
instance; `start_test` on a running instance is rejected before any state is
touched. `stop_test` only raises a flag and wakes the pacing sleep; the loop
honors it at the next step boundary, never mid-step.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Deque, Dict, List, Optional, Tuple

import numpy as np

from ..braking import BrakingController
from ..clock import Clock, SystemClock
from ..constants import (
    BRAKING_INTENSITY_REFERENCE_ACCEL,
    NOMINAL_MAGNETIC_FIELD_A_PER_M,
    NOMINAL_OPERATING_FREQUENCY_HZ,
    STEP_INTERVAL_S,
)
from ..damper import DamperConfiguration, DamperConstraints, DamperInputs, DamperModel, DamperOutputs, RegenerativeDamper
from ..data_structures import DamperPosition, TestScenario, VehicleState
from ..errors import InvalidOperationError
from ..fluid import (
    FormulationCatalog,
    MRFluidIntegration,
    MRFluidSystemConfiguration,
    MRFluidSystemInputs,
    MRFluidSystemOutputs,
    SystemDiagnostics,
    SystemHealth,
)
from ..validation import FunctionalityReport, IssueLevel, SafetyEvent, SafetyIssueCode
from .aggregation import reduce_data_log
from .config import TestVehicleConfiguration
from .integrator import TestStatus, VehicleStateIntegrator
from .results import DataLogEntry, TestResults

logger = logging.getLogger(__name__)


@dataclass
class CornerStatistics:
    """Lifetime counters of one installed damper."""
    total_energy_harvested: float = 0.0  # J
    operation_cycles: int = 0

    @property
    def average_energy_per_cycle(self) -> float:
        return self.total_energy_harvested / self.operation_cycles if self.operation_cycles else 0.0


@dataclass(frozen=True)
class DamperStatus:
    position: DamperPosition
    total_energy_harvested: float
    operation_cycles: int
    average_energy_per_cycle: float
    temperature: float
    is_operational: bool


@dataclass(frozen=True)
class VehicleDiagnostics:
    vehicle_status: str  # "Testing" | "Ready"
    damper_status: Tuple[DamperStatus, ...]
    fluid_status: SystemDiagnostics
    testing_capability: bool


class MRDamperTestVehicle:
    """
    A four-corner test vehicle fitted with regenerative MR dampers.

    Args:
        vehicle_config: Static vehicle configuration and safety limits.
        fluid_config: MR-fluid system configuration.
        catalog: Formulation catalog; defaults to the standard catalog.
        damper_config: Configuration of the default damper model.
        damper_constraints: Saturation ranges of the default damper model.
        damper_model: A `DamperModel` used at every corner instead of one
            `RegenerativeDamper` per corner.
        braking_controller: Braking collaborator of the fluid system.
        clock: Source of every timestamp and of the test id.
        step_interval_s: Fixed simulation step.

    Raises:
        ConfigurationError: If the selected formulation is not in the catalog.
    """
    def __init__(
        self,
        vehicle_config: Optional[TestVehicleConfiguration] = None,
        fluid_config: Optional[MRFluidSystemConfiguration] = None,
        catalog: Optional[FormulationCatalog] = None,
        damper_config: Optional[DamperConfiguration] = None,
        damper_constraints: Optional[DamperConstraints] = None,
        damper_model: Optional[DamperModel] = None,
        braking_controller: Optional[BrakingController] = None,
        clock: Optional[Clock] = None,
        step_interval_s: float = STEP_INTERVAL_S,
    ):
        self.vehicle_config = vehicle_config if vehicle_config is not None else TestVehicleConfiguration()
        self._clock = clock if clock is not None else SystemClock()
        self.step_interval_s = step_interval_s

        self.fluid_system = MRFluidIntegration(
            fluid_config,
            catalog=catalog,
            braking_controller=braking_controller,
            history_limit=self.vehicle_config.performance_history_limit,
            clock=self._clock,
        )

        positions = self.vehicle_config.positions
        self._damper_config = damper_config if damper_config is not None else DamperConfiguration()
        if damper_model is not None:
            self._dampers: Tuple[DamperModel, ...] = tuple(damper_model for _ in positions)
        else:
            self._dampers = tuple(RegenerativeDamper(self._damper_config, damper_constraints) for _ in positions)
        self._corner_stats = tuple(CornerStatistics() for _ in positions)

        self._integrator = VehicleStateIntegrator(positions, step_interval_s, clock=self._clock)
        self._status = TestStatus.IDLE
        self._data_log: Deque[DataLogEntry] = deque(maxlen=self.vehicle_config.data_log_limit)
        self._test_history: Deque[TestResults] = deque(maxlen=self.vehicle_config.test_history_limit)
        self._safety_events: List[SafetyEvent] = []
        self._stop_requested = False
        self._emergency_stop = False
        self._stop_event: Optional[asyncio.Event] = None

        logger.info(
            f"Test vehicle '{self.vehicle_config.vehicle_id}' ({self.vehicle_config.vehicle_type}) initialized "
            f"with {len(positions)} damper(s)."
        )

    # --- Accessors ---

    @property
    def status(self) -> TestStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status is TestStatus.RUNNING

    @property
    def current_state(self) -> VehicleState:
        """An independent snapshot of the current vehicle state."""
        return self._integrator.state.snapshot()

    @property
    def data_log(self) -> Tuple[DataLogEntry, ...]:
        """The logged steps of the latest run; each entry carries its own state copy."""
        return tuple(replace(entry, state=entry.state.snapshot()) for entry in self._data_log)

    @property
    def safety_events(self) -> Tuple[SafetyEvent, ...]:
        return tuple(self._safety_events)

    @property
    def test_history(self) -> Tuple[TestResults, ...]:
        return tuple(self._test_history)

    @property
    def latest_test_results(self) -> Optional[TestResults]:
        return self._test_history[-1] if self._test_history else None

    # --- Run control ---

    async def start_test(self, scenario: TestScenario) -> str:
        """
        Runs `scenario` to completion (or until stopped) and returns the test id.

        Raises:
            InvalidOperationError: If a test is already running. The running
                test's state and data log are left untouched.
        """
        if self._status is TestStatus.RUNNING:
            raise InvalidOperationError(
                "Test is already running. Stop current test before starting a new one.",
                current_status=str(self._status),
            )

        start_time = self._clock.now()
        base_id = f"test_{scenario.scenario_id}_{int(start_time.timestamp() * 1000)}"
        test_id, suffix = base_id, 1
        # Same scenario started twice within one clock millisecond.
        while any(r.test_id == test_id for r in self._test_history):
            test_id = f"{base_id}_{suffix}"
            suffix += 1
        self._status = TestStatus.RUNNING
        self._stop_requested = False
        self._emergency_stop = False
        self._stop_event = asyncio.Event()
        self._data_log.clear()
        self._safety_events = []
        self._integrator.reset()

        logger.info(f"Starting test: {test_id} - {scenario.name or scenario.scenario_id}")
        logger.info(f"Duration: {scenario.duration}s")
        logger.info(f"Road conditions: {scenario.road.surface_type} (roughness: {scenario.road.roughness})")

        total_steps = scenario.step_count(self.step_interval_s)
        try:
            steps_executed = await self._run_steps(scenario, total_steps)
        except BaseException:
            self._status = TestStatus.STOPPED
            logger.error(f"Test {test_id} aborted by an unexpected error.")
            raise

        completed = steps_executed == total_steps and not self._emergency_stop
        self._status = TestStatus.COMPLETED if completed else TestStatus.STOPPED

        results = reduce_data_log(
            self._data_log,
            test_id=test_id,
            scenario_id=scenario.scenario_id,
            start_time=start_time,
            end_time=self._clock.now(),
            steps_executed=steps_executed,
            step_interval_s=self.step_interval_s,
            saturation_field=self.fluid_system.current_formulation.saturation_field,
            analytics=self.fluid_system.get_performance_analytics(),
            diagnostics=self.fluid_system.generate_system_diagnostics(),
            status=self._status,
            safety_events=self._safety_events,
        )
        self._test_history.append(results)

        logger.info(f"Test {self._status}: {test_id} after {steps_executed}/{total_steps} steps")
        logger.info(f"Total energy recovered: {results.performance.total_energy_recovered:.2f} J")
        logger.info(f"Average damping efficiency: {results.performance.damping_efficiency:.1f}%")
        return test_id

    def stop_test(self) -> None:
        """Requests the running test to stop at the next step boundary."""
        if self._status is not TestStatus.RUNNING:
            return
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()
        logger.info("Test stop requested")

    async def _run_steps(self, scenario: TestScenario, total_steps: int) -> int:
        environment = self.vehicle_config.test_environment
        log_every = max(1, int(round(environment.log_interval / self.step_interval_s)))
        pause = self.step_interval_s * self.vehicle_config.pacing_factor

        steps_executed = 0
        for step in range(total_steps):
            if self._stop_requested:
                break
            elapsed = step * self.step_interval_s

            state = self._integrator.advance(scenario, elapsed)
            damper_outputs = self._compute_damper_responses(scenario, state)
            fluid_outputs = self._compute_fluid_response(scenario, state, elapsed)
            state.system_status.recovered_power = (
                sum(output.generated_power for output in damper_outputs) + fluid_outputs.total_energy_recovery
            )

            if environment.enable_data_logging and step % log_every == 0:
                self._data_log.append(DataLogEntry(
                    timestamp=state.timestamp,
                    step=step,
                    elapsed_s=elapsed,
                    state=state.snapshot(),
                    damper_outputs=damper_outputs,
                    fluid_outputs=fluid_outputs,
                ))

            self._check_safety_limits(state, step, elapsed)
            steps_executed += 1
            if self._stop_requested:
                break
            await self._pace(pause)
        return steps_executed

    async def _pace(self, delay: float) -> None:
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass  # Full step elapsed without a stop request.

    # --- Per-step computation ---

    def _compute_damper_responses(self, scenario: TestScenario, state: VehicleState) -> Tuple[DamperOutputs, ...]:
        outputs = []
        for index, corner in enumerate(state.suspension):
            inputs = DamperInputs(
                compression_velocity=corner.velocity,
                displacement=corner.displacement,
                vehicle_speed=state.motion.speed,
                road_roughness=scenario.road.roughness,
                damper_temperature=corner.temperature,
                battery_soc=state.system_status.battery_soc,
                load_factor=scenario.load_factor,
            )
            result = self._dampers[index].calculate(inputs)
            corner.force = result.damping_force

            stats = self._corner_stats[index]
            stats.total_energy_harvested += result.harvested_energy
            stats.operation_cycles += 1
            outputs.append(result)
        return tuple(outputs)

    def _compute_fluid_response(self, scenario: TestScenario, state: VehicleState, elapsed_s: float) -> MRFluidSystemOutputs:
        corners = state.suspension
        intensity = max(
            abs(state.motion.acceleration) / BRAKING_INTENSITY_REFERENCE_ACCEL,
            scenario.braking_intensity_at(elapsed_s),
        )
        inputs = MRFluidSystemInputs(
            driving_speed=state.motion.speed,
            braking_intensity=float(np.clip(intensity, 0.0, 1.0)),
            battery_soc=state.system_status.battery_soc,
            motor_temperature=state.system_status.system_temperature,
            magnetic_field_strength=NOMINAL_MAGNETIC_FIELD_A_PER_M,
            suspension_velocity=sum(abs(c.velocity) for c in corners) / len(corners),
            damping_force=sum(c.force for c in corners) / len(corners),
            ambient_temperature=scenario.environment.temperature,
            operating_frequency=NOMINAL_OPERATING_FREQUENCY_HZ,
        )
        return self.fluid_system.calculate_optimal_response(inputs)

    def _check_safety_limits(self, state: VehicleState, step: int, elapsed_s: float) -> None:
        limits = self.vehicle_config.operational_limits

        if state.motion.speed > limits.max_test_speed:
            self._record(SafetyEvent.from_code(
                SafetyIssueCode.SPEED_LIMIT, IssueLevel.WARNING, step, elapsed_s,
                speed=state.motion.speed, limit=limits.max_test_speed,
            ))
        if abs(state.motion.acceleration) > limits.max_acceleration:
            self._record(SafetyEvent.from_code(
                SafetyIssueCode.ACCEL_LIMIT, IssueLevel.WARNING, step, elapsed_s,
                acceleration=state.motion.acceleration, limit=limits.max_acceleration,
            ))
        for corner in state.suspension:
            if corner.force > limits.max_damper_force:
                self._record(SafetyEvent.from_code(
                    SafetyIssueCode.FORCE_LIMIT, IssueLevel.WARNING, step, elapsed_s,
                    position=corner.position, force=corner.force, limit=limits.max_damper_force,
                ))

        max_temperature = state.max_corner_temperature
        if max_temperature > limits.emergency_stop_threshold:
            self._record(SafetyEvent.from_code(
                SafetyIssueCode.EMERGENCY_STOP, IssueLevel.ERROR, step, elapsed_s,
                temperature=max_temperature, limit=limits.emergency_stop_threshold,
            ))
            self._emergency_stop = True
            self._stop_requested = True

    def _record(self, event: SafetyEvent) -> None:
        self._safety_events.append(event)
        if event.level is IssueLevel.ERROR:
            logger.error(str(event))
        else:
            logger.warning(str(event))

    # --- Diagnostics / Export ---

    def get_system_diagnostics(self) -> VehicleDiagnostics:
        max_temperature = self._damper_config.max_operating_temperature
        damper_status = tuple(
            DamperStatus(
                position=corner.position,
                total_energy_harvested=stats.total_energy_harvested,
                operation_cycles=stats.operation_cycles,
                average_energy_per_cycle=stats.average_energy_per_cycle,
                temperature=corner.temperature,
                is_operational=corner.temperature <= max_temperature,
            )
            for corner, stats in zip(self._integrator.state.suspension, self._corner_stats)
        )
        return VehicleDiagnostics(
            vehicle_status="Testing" if self.is_running else "Ready",
            damper_status=damper_status,
            fluid_status=self.fluid_system.generate_system_diagnostics(),
            testing_capability=not self.is_running,
        )

    def validate_functionality(self) -> FunctionalityReport:
        issues = []
        recommendations = []

        diagnostics = self.get_system_diagnostics()
        for status in diagnostics.damper_status:
            if not status.is_operational:
                issues.append(SafetyIssueCode.DAMPER_NOT_OPERATIONAL.format_message(position=status.position))
                recommendations.append(f"Check damper {status.position} configuration and constraints")

        if diagnostics.fluid_status.system_health is SystemHealth.POOR:
            issues.append(SafetyIssueCode.FLUID_HEALTH_POOR.format_message())
            recommendations.extend(diagnostics.fluid_status.recommendations)

        installed = len(self._dampers)
        if self.vehicle_config.damper_count != installed:
            issues.append(SafetyIssueCode.DAMPER_COUNT_MISMATCH.format_message(
                configured=self.vehicle_config.damper_count, installed=installed,
            ))
            recommendations.append("Verify damper installation and configuration")

        return FunctionalityReport(is_valid=not issues, issues=tuple(issues), recommendations=tuple(recommendations))

    def export_test_data(self, test_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Collects test data into an in-memory dictionary.

        With a `test_id`, returns that test's results (None if unknown) and the
        data log of the most recent run; otherwise the full test history and the
        current system diagnostics.
        """
        if test_id is not None:
            result = next((r for r in reversed(self._test_history) if r.test_id == test_id), None)
            return {
                'test_result': result,
                'data_log': self.data_log,
                'vehicle_config': self.vehicle_config,
                'fluid_config': self.fluid_system.configuration,
            }
        return {
            'test_history': self.test_history,
            'vehicle_config': self.vehicle_config,
            'fluid_config': self.fluid_system.configuration,
            'system_diagnostics': self.get_system_diagnostics(),
        }
