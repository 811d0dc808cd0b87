# --- src/mrsim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

# --- Simulation Timing ---

#: Fixed integration step of the test-vehicle simulation (100 ms).
STEP_INTERVAL_S: float = 0.1

#: Per-step state-of-charge decrement and the floor it can never go below.
SOC_DECREMENT_PER_STEP: float = 0.0001
SOC_FLOOR: float = 0.1

#: Initial battery state and ambient temperature of a freshly reset vehicle.
INITIAL_BATTERY_SOC: float = 0.8
INITIAL_TEMPERATURE_C: float = 25.0

#: Speed used to normalize the displacement amplification (km/h).
DISPLACEMENT_REFERENCE_SPEED_KMH: float = 60.0

#: Corner temperature rise per m/s of absolute suspension velocity (degC·s/m).
DAMPING_HEAT_COEFFICIENT: float = 10.0

# --- Fluid System Operating Point ---

#: Magnetic field requested from the fluid system every step (A/m).
NOMINAL_MAGNETIC_FIELD_A_PER_M: float = 50000.0

#: Typical suspension oscillation frequency fed to the fluid system (Hz).
NOMINAL_OPERATING_FREQUENCY_HZ: float = 2.5

#: Acceleration mapped to a braking intensity of 1.0 (m/s^2): a speed change of 10 km/h per second.
BRAKING_INTENSITY_REFERENCE_ACCEL: float = 10.0 / 3.6

#: Saturation magnetization (A/m) to saturation field scale used by the fluid models.
SATURATION_FIELD_SCALE: float = 0.001

#: Energy-recovery efficiency (%) below which adaptive field control boosts the field.
TARGET_RECOVERY_EFFICIENCY_PERCENT: float = 85.0

#: Lower bound of the thermal derating factor and of the frequency efficiency factor.
DERATING_FLOOR: float = 0.3
FREQUENCY_FACTOR_FLOOR: float = 0.3

# --- Formulation Scoring ---

#: Weight of the cost sub-score in every formulation score. Not configurable.
COST_WEIGHT: float = 0.05

#: Window and relative-change threshold for performance trend detection.
TREND_WINDOW: int = 10
TREND_THRESHOLD: float = 0.05

logger.debug("Defined core constants: STEP_INTERVAL_S, DERATING_FLOOR, COST_WEIGHT")
