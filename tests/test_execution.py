# tests/test_execution.py
import pytest

from mrsim_core import TestRunError, run_test
from mrsim_core.clock import ManualClock
from mrsim_core.errors import ConfigurationError
from mrsim_core.fluid import MRFluidSystemConfiguration
from mrsim_core.simulation import TestStatus


def test_run_test_returns_results_and_vehicle(urban_scenario, fast_config):
    results, vehicle = run_test(urban_scenario, fast_config, clock=ManualClock())
    assert results.status is TestStatus.COMPLETED
    assert results.scenario_id == "urban"
    assert vehicle.latest_test_results is results


def test_vehicle_is_reusable(urban_scenario, fast_config):
    _, vehicle = run_test(urban_scenario, fast_config, clock=ManualClock())
    run_test(urban_scenario, vehicle=vehicle)
    assert len(vehicle.test_history) == 2


def test_configuration_error_is_wrapped(urban_scenario, fast_config):
    with pytest.raises(TestRunError) as exc_info:
        run_test(urban_scenario, fast_config, MRFluidSystemConfiguration(selected_formulation="XX-000"))
    report = str(exc_info.value)
    assert "Configuration Error" in report
    assert "XX-000" in report
    assert isinstance(exc_info.value.__cause__, ConfigurationError)


def test_unexpected_error_is_wrapped(urban_scenario, fast_config):
    class BrokenDamper:
        def calculate(self, inputs):
            raise ZeroDivisionError("bad calibration")

    with pytest.raises(TestRunError) as exc_info:
        run_test(urban_scenario, fast_config, damper_model=BrokenDamper(), clock=ManualClock())
    assert "ZeroDivisionError" in str(exc_info.value)
    assert "urban" in str(exc_info.value)
