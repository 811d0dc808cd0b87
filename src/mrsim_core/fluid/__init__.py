# src/mrsim_core/fluid/__init__.py
import logging
logger = logging.getLogger(__name__)

from .catalog import (
    BaseFluid,
    MagneticParticles,
    Additive,
    Additives,
    FluidPerformance,
    MRFluidComposition,
    FormulationCatalog,
    STANDARD_FORMULATIONS,
)
from .properties import EnergyRecoveryMetrics, evaluate_energy_recovery
from .optimizer import (
    Trend,
    PriorityWeights,
    OperatingConditions,
    OptimizationParameters,
    OptimizationResult,
    SwitchRecommendation,
    FormulationOptimizer,
    calculate_trend,
)
from .integration import (
    BrakingSystemConfig,
    SuspensionSystemConfig,
    ThermalManagementConfig,
    MRFluidSystemConfiguration,
    MRFluidSystemInputs,
    MRFluidSystemOutputs,
    PerformanceRecord,
    PerformanceAnalytics,
    SystemHealth,
    SystemDiagnostics,
    MRFluidIntegration,
)

__all__ = [
    # Catalog
    "BaseFluid", "MagneticParticles", "Additive", "Additives", "FluidPerformance",
    "MRFluidComposition", "FormulationCatalog", "STANDARD_FORMULATIONS",
    # Property model
    "EnergyRecoveryMetrics", "evaluate_energy_recovery",
    # Optimizer
    "Trend", "PriorityWeights", "OperatingConditions", "OptimizationParameters",
    "OptimizationResult", "SwitchRecommendation", "FormulationOptimizer", "calculate_trend",
    # Integration
    "BrakingSystemConfig", "SuspensionSystemConfig", "ThermalManagementConfig",
    "MRFluidSystemConfiguration", "MRFluidSystemInputs", "MRFluidSystemOutputs",
    "PerformanceRecord", "PerformanceAnalytics", "SystemHealth", "SystemDiagnostics",
    "MRFluidIntegration",
]
