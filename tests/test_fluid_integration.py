# tests/test_fluid_integration.py
import pytest
from dataclasses import replace

from mrsim_core.clock import ManualClock
from mrsim_core.errors import ConfigurationError
from mrsim_core.fluid import (
    BrakingSystemConfig,
    MRFluidIntegration,
    MRFluidSystemConfiguration,
    MRFluidSystemInputs,
    OperatingConditions,
    SystemHealth,
    Trend,
)
from mrsim_core.fluid.integration import ThermalManagementConfig


def make_inputs(**overrides):
    values = dict(
        driving_speed=60.0,
        braking_intensity=0.5,
        battery_soc=0.5,
        motor_temperature=40.0,
        magnetic_field_strength=50000.0,
        suspension_velocity=0.3,
        damping_force=1200.0,
        ambient_temperature=25.0,
        operating_frequency=2.5,
    )
    values.update(overrides)
    return MRFluidSystemInputs(**values)


@pytest.fixture
def fluid_system():
    return MRFluidIntegration(clock=ManualClock())


class TestFormulationManagement:
    def test_default_formulation(self, fluid_system):
        assert fluid_system.current_formulation.id == "HP-IC-001"

    def test_unknown_formulation_at_construction(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MRFluidIntegration(MRFluidSystemConfiguration(selected_formulation="XX-000"))
        assert exc_info.value.formulation_id == "XX-000"
        assert "Configuration Error" in exc_info.value.get_diagnostic_report()

    def test_switch_formulation(self, fluid_system):
        fluid_system.switch_formulation("TS-CF-002")
        assert fluid_system.current_formulation.id == "TS-CF-002"
        assert fluid_system.configuration.selected_formulation == "TS-CF-002"

    def test_failed_switch_keeps_previous_formulation(self, fluid_system):
        with pytest.raises(ConfigurationError):
            fluid_system.switch_formulation("XX-000")
        assert fluid_system.current_formulation.id == "HP-IC-001"
        assert fluid_system.configuration.selected_formulation == "HP-IC-001"

    def test_failed_configuration_update_is_atomic(self, fluid_system):
        before = fluid_system.configuration
        with pytest.raises(ConfigurationError):
            fluid_system.update_configuration(selected_formulation="XX-000",
                                              braking=BrakingSystemConfig(enable_mr_fluid_braking=False))
        assert fluid_system.configuration == before

    def test_configuration_update(self, fluid_system):
        fluid_system.update_configuration(braking=BrakingSystemConfig(mr_fluid_braking_ratio=0.7))
        assert fluid_system.configuration.braking.mr_fluid_braking_ratio == 0.7
        assert fluid_system.current_formulation.id == "HP-IC-001"

    def test_optimize_for_conditions(self, fluid_system):
        recommendation = fluid_system.optimize_formulation_for_conditions(OperatingConditions())
        assert recommendation.current_formulation == "HP-IC-001"
        assert recommendation.recommended_formulation in fluid_system.catalog


class TestOptimalResponse:
    def test_total_is_sum_of_paths(self, fluid_system):
        outputs = fluid_system.calculate_optimal_response(make_inputs())
        assert outputs.total_energy_recovery == pytest.approx(
            outputs.braking_energy_recovery + outputs.suspension_energy_recovery)
        assert outputs.energy_recovery_rate == outputs.total_energy_recovery
        assert outputs.total_energy_recovery > 0

    def test_required_field_never_exceeds_saturation(self, fluid_system):
        for field_strength in (0.0, 500.0, 50000.0, 1.0e7):
            outputs = fluid_system.calculate_optimal_response(make_inputs(magnetic_field_strength=field_strength))
            assert outputs.magnetic_field_required <= fluid_system.current_formulation.saturation_field

    def test_disabled_braking_recovers_nothing(self):
        configuration = MRFluidSystemConfiguration(braking=BrakingSystemConfig(enable_mr_fluid_braking=False))
        system = MRFluidIntegration(configuration, clock=ManualClock())
        outputs = system.calculate_optimal_response(make_inputs())
        assert outputs.braking_energy_recovery == 0.0
        assert outputs.total_energy_recovery == pytest.approx(outputs.suspension_energy_recovery)

    def test_thermal_derating_scales_recovery(self):
        reference = MRFluidIntegration(
            MRFluidSystemConfiguration(thermal=ThermalManagementConfig(thermal_derating=False)), clock=ManualClock())
        derated = MRFluidIntegration(
            MRFluidSystemConfiguration(thermal=ThermalManagementConfig(max_operating_temperature=10.0)),
            clock=ManualClock())

        inputs = make_inputs()
        full = reference.calculate_optimal_response(inputs)
        limited = derated.calculate_optimal_response(inputs)

        assert full.thermal_derating_factor == 1.0
        assert 0.3 <= limited.thermal_derating_factor < 1.0
        assert limited.fluid_temperature == pytest.approx(full.fluid_temperature)
        factor = limited.thermal_derating_factor
        assert limited.braking_energy_recovery == pytest.approx(full.braking_energy_recovery * factor)
        assert limited.suspension_energy_recovery == pytest.approx(full.suspension_energy_recovery * factor)
        assert limited.damping_coefficient == pytest.approx(full.damping_coefficient * factor)

    def test_frequency_factor_has_floor(self, fluid_system):
        assert fluid_system.frequency_efficiency_factor(1.0) == 1.0
        assert fluid_system.frequency_efficiency_factor(1.0e4) == pytest.approx(0.3)

    def test_every_response_is_recorded(self, fluid_system):
        for _ in range(3):
            fluid_system.calculate_optimal_response(make_inputs())
        assert len(fluid_system.performance_history) == 3

    def test_history_is_bounded(self):
        system = MRFluidIntegration(history_limit=5, clock=ManualClock())
        for _ in range(8):
            system.calculate_optimal_response(make_inputs())
        assert len(system.performance_history) == 5

    def test_evaluations_are_recorded_per_formulation(self, fluid_system):
        fluid_system.calculate_optimal_response(make_inputs())
        fluid_system.switch_formulation("TS-CF-002")
        fluid_system.calculate_optimal_response(make_inputs(ambient_temperature=60.0))
        fluid_system.calculate_optimal_response(make_inputs())

        first = fluid_system.optimizer.evaluation_history("HP-IC-001")
        second = fluid_system.optimizer.evaluation_history("TS-CF-002")
        assert len(first) == 1
        assert [m.temperature for m in second] == [60.0, 25.0]
        assert all(m.formulation_id == "TS-CF-002" for m in second)
        assert fluid_system.optimizer.evaluation_history("FR-IO-003") == ()

    def test_evaluation_history_is_bounded(self):
        system = MRFluidIntegration(history_limit=5, clock=ManualClock())
        for _ in range(8):
            system.calculate_optimal_response(make_inputs())
        assert len(system.optimizer.evaluation_history("HP-IC-001")) == 5


class TestAnalyticsAndDiagnostics:
    def test_empty_analytics(self, fluid_system):
        analytics = fluid_system.get_performance_analytics()
        assert analytics.average_efficiency == 0.0
        assert analytics.operating_hours == 0.0

    def test_analytics_over_history(self, fluid_system):
        outputs = [fluid_system.calculate_optimal_response(make_inputs()) for _ in range(6)]
        analytics = fluid_system.get_performance_analytics()
        assert analytics.average_energy_recovery == pytest.approx(outputs[0].total_energy_recovery)
        assert analytics.average_efficiency == pytest.approx(outputs[0].efficiency)
        assert analytics.operating_hours == pytest.approx(6 / 60)
        assert analytics.formulation_utilization == {"HP-IC-001": 100.0}

    def test_high_temperature_is_reported(self):
        system = MRFluidIntegration(
            MRFluidSystemConfiguration(thermal=ThermalManagementConfig(max_operating_temperature=10.0)),
            clock=ManualClock())
        system.calculate_optimal_response(make_inputs())
        diagnostics = system.generate_system_diagnostics()
        assert "High operating temperatures detected" in diagnostics.issues
        assert diagnostics.system_health is not SystemHealth.EXCELLENT

    def test_trends_need_twenty_records(self, fluid_system):
        for _ in range(5):
            fluid_system.calculate_optimal_response(make_inputs())
        trends = fluid_system.generate_system_diagnostics().trends
        assert trends.energy_recovery is Trend.STABLE
        assert trends.efficiency is Trend.STABLE

    def test_increasing_load_is_an_improving_trend(self, fluid_system):
        for force in [500.0] * 10 + [2000.0] * 10:
            fluid_system.calculate_optimal_response(make_inputs(damping_force=force))
        trends = fluid_system.generate_system_diagnostics().trends
        assert trends.energy_recovery is Trend.IMPROVING
