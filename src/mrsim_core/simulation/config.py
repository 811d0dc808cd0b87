# src/mrsim_core/simulation/config.py
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..constants import STEP_INTERVAL_S
from ..data_structures import DamperPosition
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

VEHICLE_TYPES = ("sedan", "suv", "truck", "sports", "electric")


@dataclass(frozen=True)
class TestEnvironmentConfig:
    __test__ = False

    enable_data_logging: bool = True
    log_interval: float = STEP_INTERVAL_S  # s, rounded to a whole number of steps


@dataclass(frozen=True)
class OperationalLimits:
    max_test_speed: float = 120.0           # km/h
    max_acceleration: float = 8.0           # m/s^2
    max_damper_force: float = 8000.0        # N
    emergency_stop_threshold: float = 140.0  # degC, hottest corner


@dataclass(frozen=True)
class TestVehicleConfiguration:
    """
    Static configuration of one MR-damper test vehicle.

    `data_log_limit`, `performance_history_limit` and `test_history_limit`
    bound the in-memory logs (`None` means unbounded). The data log defaults
    to unbounded because post-run aggregation reduces every sample of a run.
    `pacing_factor` scales the real-time sleep between steps; 0 runs the
    simulation as fast as possible.
    """
    __test__ = False

    vehicle_id: str = "MR-TEST-001"
    vehicle_type: str = "sedan"
    damper_count: int = 4
    test_environment: TestEnvironmentConfig = field(default_factory=TestEnvironmentConfig)
    operational_limits: OperationalLimits = field(default_factory=OperationalLimits)
    data_log_limit: Optional[int] = None
    performance_history_limit: Optional[int] = 10000
    test_history_limit: Optional[int] = 100
    pacing_factor: float = 1.0

    def __post_init__(self):
        if self.damper_count < 1:
            raise ConfigurationError(f"Vehicle '{self.vehicle_id}' needs at least one damper, got {self.damper_count}.")
        if self.vehicle_type not in VEHICLE_TYPES:
            raise ConfigurationError(f"Unknown vehicle type '{self.vehicle_type}'. Expected one of {VEHICLE_TYPES}.")
        if self.pacing_factor < 0:
            raise ConfigurationError(f"Pacing factor must be non-negative, got {self.pacing_factor}.")
        if self.test_environment.log_interval <= 0:
            raise ConfigurationError(f"Log interval must be positive, got {self.test_environment.log_interval} s.")
        for name in ('data_log_limit', 'performance_history_limit', 'test_history_limit'):
            limit = getattr(self, name)
            if limit is not None and limit < 1:
                raise ConfigurationError(f"'{name}' must be a positive integer or None, got {limit}.")

    @property
    def positions(self) -> Tuple[DamperPosition, ...]:
        """The installed damper positions; a vehicle carries at most four."""
        installed = min(self.damper_count, len(DamperPosition))
        return tuple(DamperPosition)[:installed]
