# tests/conftest.py
import pytest

from mrsim_core.clock import ManualClock
from mrsim_core.damper import DamperInputs, DamperOutputs
from mrsim_core.data_structures import (
    BrakingEvent,
    Environment,
    RoadConditions,
    SpeedSample,
    TestScenario,
)
from mrsim_core.simulation import MRDamperTestVehicle, TestVehicleConfiguration


class IdleDamper:
    """Damper model that always reports the idle signal."""
    def calculate(self, inputs: DamperInputs) -> DamperOutputs:
        return DamperOutputs.idle()


class ConstantDamper:
    """Damper model that always produces the same non-idle output."""
    def __init__(self, force: float = 500.0, power: float = 50.0, efficiency: float = 0.4):
        self.outputs = DamperOutputs(
            damping_force=force,
            harvested_energy=power * 0.01,
            generated_power=power,
            energy_efficiency=efficiency,
        )
        self.calls = 0

    def calculate(self, inputs: DamperInputs) -> DamperOutputs:
        self.calls += 1
        return self.outputs


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fast_config():
    """A default vehicle that runs without real-time pacing."""
    return TestVehicleConfiguration(pacing_factor=0.0)


@pytest.fixture
def vehicle(fast_config, clock):
    return MRDamperTestVehicle(fast_config, clock=clock)


@pytest.fixture
def urban_scenario():
    return TestScenario(
        scenario_id="urban",
        duration=3.0,
        road=RoadConditions(surface_type="rough", roughness=0.5),
        speed_profile=(SpeedSample(0.0, 0.0), SpeedSample(1.0, 30.0), SpeedSample(3.0, 50.0)),
        environment=Environment(temperature=25.0),
        braking_events=(BrakingEvent(time=2.0, intensity=0.6, duration=0.5),),
        name="Urban Stop-and-Go",
    )


@pytest.fixture
def zero_duration_scenario():
    return TestScenario(scenario_id="empty", duration=0.0)


@pytest.fixture
def idle_damper():
    return IdleDamper()


@pytest.fixture
def constant_damper():
    return ConstantDamper()
