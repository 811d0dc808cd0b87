# tests/test_braking.py
import pytest

from mrsim_core.braking import BrakingController, FuzzyBrakingController, FuzzyRule
from mrsim_core.braking.controller import MAX_MOTOR_TORQUE_NM, WHEEL_RADIUS_M, trapezoid


class TestTrapezoid:
    def test_plateau_and_edges(self):
        assert trapezoid(5.0, 0, 2, 8, 10) == 1.0
        assert trapezoid(0.0, 0, 2, 8, 10) == 0.0
        assert trapezoid(1.0, 0, 2, 8, 10) == pytest.approx(0.5)
        assert trapezoid(9.0, 0, 2, 8, 10) == pytest.approx(0.5)

    def test_shoulder_is_full_membership(self):
        assert trapezoid(0.0, 0, 0, 10, 20) == 1.0

    def test_shoulders_extend_past_the_universe(self):
        assert trapezoid(-5.0, 0, 0, 10, 20) == 1.0
        assert trapezoid(150.0, 100, 120, 150, 150) == 1.0
        assert trapezoid(180.0, 100, 120, 150, 150) == 1.0
        assert trapezoid(25.0, 0, 0, 10, 20) == 0.0

    def test_nan_has_no_membership(self):
        assert trapezoid(float("nan"), 100, 120, 150, 150) == 0.0
        assert trapezoid(float("nan"), 0, 2, 8, 10) == 0.0


class TestFuzzyBrakingController:
    @pytest.fixture
    def controller(self):
        return FuzzyBrakingController()

    def test_satisfies_protocol(self, controller):
        assert isinstance(controller, BrakingController)

    @pytest.mark.parametrize("speed", [150.0, 180.0])
    def test_neutral_output_when_no_rule_fires(self, controller, speed):
        # Speeds from 120 km/h up are fully 'very_high', which no default rule covers.
        decision = controller.compute_braking(speed, 0.5, 0.5, 25.0)
        assert decision.regen_ratio == pytest.approx(0.5)
        assert decision.motor_torque == pytest.approx(0.5 * MAX_MOTOR_TORQUE_NM)

    def test_front_axle_force_from_torque_and_ratio(self, controller):
        decision = controller.compute_braking(90.0, 0.5, 0.5, 25.0)
        assert decision.front_axle_force == pytest.approx(decision.motor_torque * decision.regen_ratio / WHEEL_RADIUS_M)

    def test_full_battery_caps_regeneration(self, controller):
        decision = controller.compute_braking(150.0, 0.5, 0.99, 25.0)
        assert decision.regen_ratio == pytest.approx(0.1)

    def test_hot_motor_halves_ratio_and_torque(self, controller):
        decision = controller.compute_braking(150.0, 0.5, 0.5, 150.0)
        # Only the motor-protection rule fires: very_low / very_low.
        assert decision.regen_ratio == pytest.approx(0.05 * 0.5)
        assert decision.motor_torque == pytest.approx(0.05 * MAX_MOTOR_TORQUE_NM * 0.5)

    def test_very_high_speed_rule_fires_past_the_plateau(self):
        controller = FuzzyBrakingController(rules=[FuzzyRule({'speed': 'very_high'}, 'high', 'low')])
        decision = controller.compute_braking(180.0, 0.5, 0.5, 25.0)
        assert decision.regen_ratio == pytest.approx(0.75)
        assert decision.motor_torque == pytest.approx(0.25 * MAX_MOTOR_TORQUE_NM)

    def test_heavy_braking_caps_ratio(self):
        controller = FuzzyBrakingController(rules=[FuzzyRule({'intensity': 'heavy'}, 'very_high', 'medium')])
        decision = controller.compute_braking(50.0, 0.9, 0.5, 25.0)
        assert decision.regen_ratio == pytest.approx(0.6)

    @pytest.mark.parametrize("speed, intensity, soc, temperature", [
        (0.0, 0.0, 0.0, -40.0),
        (90.0, 1.0, 0.1, 25.0),
        (300.0, 2.0, -1.0, 500.0),
        (35.0, 0.3, 0.7, 110.0),
    ])
    def test_outputs_stay_in_range(self, controller, speed, intensity, soc, temperature):
        decision = controller.compute_braking(speed, intensity, soc, temperature)
        assert 0.0 <= decision.regen_ratio <= 1.0
        assert 0.0 <= decision.motor_torque <= MAX_MOTOR_TORQUE_NM
        assert decision.front_axle_force >= 0.0
