# src/mrsim_core/simulation/aggregation.py
"""
Reduction of a run's data log into `TestResults`.

Every reducer is total: an empty log (for example a zero-duration scenario)
yields zero-valued metrics, never a division by zero or a NaN.
"""
import logging
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np

from ..fluid import PerformanceAnalytics, SystemDiagnostics
from ..validation import SafetyEvent
from .integrator import TestStatus
from .results import (
    DataLogEntry,
    DiagnosticsSummary,
    ExecutionSummary,
    FluidPerformanceMetrics,
    PerformanceMetrics,
    TestResults,
)

logger = logging.getLogger(__name__)


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def summarize_performance(entries: Sequence[DataLogEntry], simulated_duration_s: float) -> PerformanceMetrics:
    """
    Damper performance over all per-damper samples of the log.

    The mean recovery rate is the harvested energy divided by the simulated
    time of the run. Damping efficiency is the mean over steps of the per-step
    mean damper efficiency, in percent. Reliability is the share of
    per-damper samples that are not the idle signal, in percent.
    """
    outputs = [output for entry in entries for output in entry.damper_outputs]
    if not outputs:
        return PerformanceMetrics()

    forces = np.array([output.damping_force for output in outputs], dtype=float)
    total_energy = float(sum(output.harvested_energy for output in outputs))
    step_efficiencies = [
        _mean([output.energy_efficiency for output in entry.damper_outputs]) for entry in entries
    ]
    active = sum(1 for output in outputs if not output.is_idle)

    return PerformanceMetrics(
        average_damping_force=float(forces.mean()),
        max_damping_force=float(forces.max()),
        total_energy_recovered=total_energy,
        average_energy_recovery_rate=total_energy / simulated_duration_s if simulated_duration_s > 0 else 0.0,
        damping_efficiency=_mean(step_efficiencies) * 100.0,
        system_reliability=active / len(outputs) * 100.0,
    )


def summarize_fluid_performance(
    entries: Sequence[DataLogEntry],
    saturation_field: float,
    analytics: PerformanceAnalytics,
) -> FluidPerformanceMetrics:
    if not entries:
        return FluidPerformanceMetrics(formulation_efficiency=analytics.average_efficiency)

    temperatures = [entry.fluid_outputs.fluid_temperature for entry in entries]
    if saturation_field > 0:
        utilization = _mean([entry.fluid_outputs.magnetic_field_required / saturation_field for entry in entries]) * 100.0
    else:
        utilization = 0.0

    return FluidPerformanceMetrics(
        average_viscosity=_mean([entry.fluid_outputs.mr_fluid_viscosity for entry in entries]),
        temperature_min=min(temperatures),
        temperature_max=max(temperatures),
        magnetic_field_utilization=utilization,
        formulation_efficiency=analytics.average_efficiency,
    )


def summarize_diagnostics(diagnostics: SystemDiagnostics) -> DiagnosticsSummary:
    return DiagnosticsSummary(
        system_health=diagnostics.system_health,
        issues=tuple(diagnostics.issues),
        recommendations=tuple(diagnostics.recommendations),
        maintenance_required=bool(diagnostics.issues),
    )


def reduce_data_log(
    entries: Iterable[DataLogEntry],
    *,
    test_id: str,
    scenario_id: str,
    start_time: datetime,
    end_time: datetime,
    steps_executed: int,
    step_interval_s: float,
    saturation_field: float,
    analytics: PerformanceAnalytics,
    diagnostics: SystemDiagnostics,
    status: TestStatus,
    safety_events: Iterable[SafetyEvent] = (),
) -> TestResults:
    """
    Reduces a run's data log into its final `TestResults`.

    Args:
        entries: The run's logged steps, in time order.
        test_id: Id of the run.
        scenario_id: Id of the scenario that was run.
        start_time: Clock time at which the run started.
        end_time: Clock time at which the run finished.
        steps_executed: Number of simulation steps executed (logged or not).
        step_interval_s: Fixed simulation step.
        saturation_field: Saturation field of the run's formulation (A/m).
        analytics: Performance analytics of the fluid system after the run.
        diagnostics: Diagnostic pass of the fluid system after the run.
        status: Terminal status of the run.
        safety_events: Safety-limit breaches recorded during the run.

    Returns:
        The immutable results record.
    """
    entries = list(entries)
    simulated_duration = steps_executed * step_interval_s

    results = TestResults(
        test_id=test_id,
        scenario_id=scenario_id,
        execution=ExecutionSummary(
            start_time=start_time,
            end_time=end_time,
            duration=(end_time - start_time).total_seconds(),
            simulated_duration=simulated_duration,
            steps_executed=steps_executed,
            samples_collected=len(entries),
        ),
        performance=summarize_performance(entries, simulated_duration),
        fluid_performance=summarize_fluid_performance(entries, saturation_field, analytics),
        diagnostics=summarize_diagnostics(diagnostics),
        status=status,
        safety_events=tuple(safety_events),
    )
    logger.debug(f"Reduced {len(entries)} log entries for test '{test_id}'.")
    return results
