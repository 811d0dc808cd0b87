# src/mrsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("MRSim Core package initialized.")

from .units import ureg, pint, Quantity
from .clock import Clock, SystemClock, ManualClock
from .data_structures import (
    DamperPosition,
    VehicleState,
    SpeedSample,
    RoadConditions,
    BrakingEvent,
    Environment,
    TestScenario,
)
from .damper import RegenerativeDamper, DamperConfiguration, DamperConstraints
from .braking import FuzzyBrakingController
from .fluid import FormulationCatalog, MRFluidIntegration, MRFluidSystemConfiguration, FormulationOptimizer
from .parser import ConfigParser
from .simulation import (
    MRDamperTestVehicle,
    TestVehicleConfiguration,
    OperationalLimits,
    TestEnvironmentConfig,
    TestResults,
    TestStatus,
    run_test,
)
from .errors import MRSimError, TestRunError

__all__ = [
    # Units
    "ureg", "pint", "Quantity",
    # Time
    "Clock", "SystemClock", "ManualClock",
    # Data Structures
    "DamperPosition", "VehicleState", "SpeedSample", "RoadConditions", "BrakingEvent",
    "Environment", "TestScenario",
    # Models
    "RegenerativeDamper", "DamperConfiguration", "DamperConstraints",
    "FuzzyBrakingController",
    "FormulationCatalog", "MRFluidIntegration", "MRFluidSystemConfiguration", "FormulationOptimizer",
    # Parser
    "ConfigParser",
    # Simulation
    "MRDamperTestVehicle", "TestVehicleConfiguration", "OperationalLimits", "TestEnvironmentConfig",
    "TestResults", "TestStatus", "run_test",
    # Top-Level Errors (Actionable Diagnostics)
    "MRSimError", "TestRunError",
]
