# tests/test_aggregation.py
from types import SimpleNamespace

import pytest

from mrsim_core.damper import DamperOutputs
from mrsim_core.simulation.aggregation import summarize_diagnostics, summarize_performance
from mrsim_core.fluid import SystemDiagnostics, SystemHealth


def active(force, power, efficiency):
    return DamperOutputs(damping_force=force, harvested_energy=power * 0.01, generated_power=power,
                         energy_efficiency=efficiency)


def test_empty_log_yields_zero_metrics():
    performance = summarize_performance([], 0.0)
    assert performance.damping_efficiency == 0.0
    assert performance.system_reliability == 0.0
    assert performance.average_energy_recovery_rate == 0.0


def test_reliability_counts_idle_samples():
    entries = [
        SimpleNamespace(damper_outputs=(active(100.0, 10.0, 0.2), DamperOutputs.idle())),
        SimpleNamespace(damper_outputs=(active(300.0, 30.0, 0.6), DamperOutputs.idle())),
    ]
    performance = summarize_performance(entries, simulated_duration_s=0.2)
    assert performance.system_reliability == pytest.approx(50.0)
    assert performance.max_damping_force == pytest.approx(300.0)
    assert performance.average_damping_force == pytest.approx(100.0)
    assert performance.total_energy_recovered == pytest.approx(0.4)
    assert performance.average_energy_recovery_rate == pytest.approx(2.0)
    # Per-step means 0.1 and 0.3
    assert performance.damping_efficiency == pytest.approx(20.0)


def test_maintenance_flag_follows_issues():
    healthy = summarize_diagnostics(SystemDiagnostics(system_health=SystemHealth.EXCELLENT))
    assert not healthy.maintenance_required
    degraded = summarize_diagnostics(SystemDiagnostics(system_health=SystemHealth.FAIR,
                                                       issues=("Moderate energy recovery efficiency",)))
    assert degraded.maintenance_required
    assert degraded.system_health is SystemHealth.FAIR
