# src/mrsim_core/simulation/__init__.py
from .config import OperationalLimits, TestEnvironmentConfig, TestVehicleConfiguration, VEHICLE_TYPES
from .integrator import TestStatus, VehicleStateIntegrator, interpolate_speed, road_excitation
from .results import (
    DataLogEntry,
    ExecutionSummary,
    PerformanceMetrics,
    FluidPerformanceMetrics,
    DiagnosticsSummary,
    TestResults,
)
from .aggregation import reduce_data_log
from .orchestrator import MRDamperTestVehicle, CornerStatistics, DamperStatus, VehicleDiagnostics
from .execution import run_test

__all__ = [
    # Configuration
    "OperationalLimits",
    "TestEnvironmentConfig",
    "TestVehicleConfiguration",
    "VEHICLE_TYPES",
    # State integration
    "TestStatus",
    "VehicleStateIntegrator",
    "interpolate_speed",
    "road_excitation",
    # Results
    "DataLogEntry",
    "ExecutionSummary",
    "PerformanceMetrics",
    "FluidPerformanceMetrics",
    "DiagnosticsSummary",
    "TestResults",
    "reduce_data_log",
    # Orchestration
    "MRDamperTestVehicle",
    "CornerStatistics",
    "DamperStatus",
    "VehicleDiagnostics",
    "run_test",
]
