# tests/test_integrator.py
import pytest
import numpy as np

from mrsim_core.clock import ManualClock
from mrsim_core.errors import ScenarioError
from mrsim_core.constants import INITIAL_BATTERY_SOC, SOC_DECREMENT_PER_STEP
from mrsim_core.data_structures import (
    BrakingEvent,
    DamperPosition,
    Environment,
    RoadConditions,
    SpeedSample,
    TestScenario,
)
from mrsim_core.simulation import VehicleStateIntegrator, interpolate_speed, road_excitation


PROFILE = (SpeedSample(0.0, 0.0), SpeedSample(10.0, 100.0), SpeedSample(20.0, 60.0))


class TestInterpolateSpeed:
    @pytest.mark.parametrize("t, expected", [(0.0, 0.0), (10.0, 100.0), (20.0, 60.0)])
    def test_exact_at_sample_times(self, t, expected):
        assert interpolate_speed(PROFILE, t) == expected

    def test_linear_between_samples(self):
        assert interpolate_speed(PROFILE, 5.0) == pytest.approx(50.0)
        assert interpolate_speed(PROFILE, 15.0) == pytest.approx(80.0)

    def test_clamped_outside_profile(self):
        assert interpolate_speed(PROFILE, -3.0) == 0.0
        assert interpolate_speed(PROFILE, 99.0) == 60.0

    def test_empty_profile_is_standstill(self):
        assert interpolate_speed((), 4.2) == 0.0


NAN = float("nan")


class TestScenarioValidation:
    @pytest.mark.parametrize("sample", [SpeedSample(0.0, NAN), SpeedSample(NAN, 20.0), SpeedSample(0.0, float("inf"))])
    def test_non_finite_profile_sample_is_rejected(self, sample):
        with pytest.raises(ScenarioError) as exc_info:
            TestScenario("n", 1.0, speed_profile=(sample,))
        assert "not finite" in str(exc_info.value)

    def test_nan_among_ascending_times_is_rejected(self):
        profile = (SpeedSample(0.0, 0.0), SpeedSample(NAN, 10.0), SpeedSample(2.0, 20.0))
        with pytest.raises(ScenarioError):
            TestScenario("n", 3.0, speed_profile=profile)

    @pytest.mark.parametrize("event", [
        BrakingEvent(NAN, 0.5, 1.0),
        BrakingEvent(1.0, NAN, 1.0),
        BrakingEvent(1.0, 0.5, float("inf")),
        BrakingEvent(1.0, 1.5, 1.0),
        BrakingEvent(1.0, 0.5, -1.0),
    ])
    def test_invalid_braking_event_is_rejected(self, event):
        with pytest.raises(ScenarioError):
            TestScenario("n", 3.0, braking_events=(event,))

    def test_nan_roughness_is_rejected(self):
        with pytest.raises(ScenarioError):
            TestScenario("n", 1.0, road=RoadConditions(roughness=NAN))


def make_scenario(roughness=0.6, ambient=20.0, profile=((0.0, 0.0), (1.0, 36.0))):
    return TestScenario(
        scenario_id="kinematics",
        duration=2.0,
        road=RoadConditions(roughness=roughness),
        speed_profile=tuple(SpeedSample(t, v) for t, v in profile),
        environment=Environment(temperature=ambient),
    )


class TestVehicleStateIntegrator:
    def test_initial_state(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        state = integrator.state
        assert [corner.position for corner in state.suspension] == list(DamperPosition)
        assert state.system_status.battery_soc == INITIAL_BATTERY_SOC
        assert state.motion.speed == 0.0

    def test_rejects_empty_positions(self):
        with pytest.raises(ValueError):
            VehicleStateIntegrator(positions=())

    def test_rejects_non_positive_step(self):
        with pytest.raises(ValueError):
            VehicleStateIntegrator(step_interval_s=0.0)

    def test_subset_of_positions(self):
        integrator = VehicleStateIntegrator(positions=(DamperPosition.FRONT_LEFT, DamperPosition.FRONT_RIGHT))
        assert len(integrator.state.suspension) == 2
        with pytest.raises(KeyError):
            integrator.state.corner(DamperPosition.REAR_LEFT)

    def test_acceleration_from_speed_difference(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario()
        integrator.advance(scenario, 0.0)
        state = integrator.advance(scenario, 0.1)
        # 0 -> 3.6 km/h in 0.1 s
        assert state.motion.speed == pytest.approx(3.6)
        assert state.motion.acceleration == pytest.approx(10.0)

    def test_velocity_is_backward_difference_of_displacement(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario(roughness=0.6)
        integrator.advance(scenario, 0.0)
        previous = [corner.displacement for corner in integrator.state.suspension]
        state = integrator.advance(scenario, 0.1)

        amplification = 1.0 + 0.5 * min(3.6 / 60.0, 1.0)
        for index, corner in enumerate(state.suspension):
            expected = road_excitation(0.6, 0.1, index) * amplification
            assert corner.displacement == pytest.approx(expected)
            assert corner.velocity == pytest.approx((expected - previous[index]) / 0.1)

    def test_corner_temperature_follows_velocity(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario(ambient=30.0)
        for step in range(5):
            state = integrator.advance(scenario, step * 0.1)
        for corner in state.suspension:
            assert corner.temperature == pytest.approx(30.0 + abs(corner.velocity) * 10.0)
        assert state.system_status.system_temperature == pytest.approx(state.max_corner_temperature)

    def test_smooth_road_has_no_excitation(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario(roughness=0.0)
        for step in range(10):
            state = integrator.advance(scenario, step * 0.1)
        assert all(corner.displacement == 0.0 for corner in state.suspension)
        assert all(corner.velocity == 0.0 for corner in state.suspension)

    def test_battery_soc_decrements_each_step(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario()
        for step in range(10):
            state = integrator.advance(scenario, step * 0.1)
        assert state.system_status.battery_soc == pytest.approx(INITIAL_BATTERY_SOC - 10 * SOC_DECREMENT_PER_STEP)

    def test_force_is_not_read_by_kinematics(self):
        scenario = make_scenario(roughness=0.8)
        plain = VehicleStateIntegrator(clock=ManualClock())
        loaded = VehicleStateIntegrator(clock=ManualClock())
        for step in range(8):
            a = plain.advance(scenario, step * 0.1)
            b = loaded.advance(scenario, step * 0.1)
            for corner in b.suspension:
                corner.force = 7000.0
        np.testing.assert_allclose(
            [c.displacement for c in a.suspension], [c.displacement for c in b.suspension]
        )
        np.testing.assert_allclose([c.velocity for c in a.suspension], [c.velocity for c in b.suspension])

    def test_reset_restores_initial_state(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        scenario = make_scenario()
        for step in range(3):
            integrator.advance(scenario, step * 0.1)
        state = integrator.reset()
        assert state.motion.speed == 0.0
        assert state.system_status.battery_soc == INITIAL_BATTERY_SOC

    def test_snapshot_is_independent(self):
        integrator = VehicleStateIntegrator(clock=ManualClock())
        snapshot = integrator.state.snapshot()
        integrator.advance(make_scenario(), 0.5)
        assert snapshot.motion.speed == 0.0
        assert snapshot.suspension[0] is not integrator.state.suspension[0]
