# src/mrsim_core/validation/issue_codes.py
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class SafetyIssueCode(Enum):
    """
    Registry of safety and functionality issue codes and their message templates.
    Each enum member's value is a tuple: (code_str, message_template_str).
    """

    # --- Operational Limit Warnings (SAFETY_...) ---
    SPEED_LIMIT = ("SAFETY_SPEED_001", "Speed limit exceeded: {speed:.2f} km/h (limit {limit:.2f} km/h).")
    ACCEL_LIMIT = ("SAFETY_ACCEL_001", "Acceleration limit exceeded: {acceleration:.2f} m/s^2 (limit {limit:.2f} m/s^2).")
    FORCE_LIMIT = ("SAFETY_FORCE_001", "Damper force limit exceeded on {position}: {force:.1f} N (limit {limit:.1f} N).")

    # --- Emergency Conditions (SAFETY_TEMP_...) ---
    EMERGENCY_STOP = ("SAFETY_TEMP_001", "Emergency stop triggered: corner temperature {temperature:.2f} degC exceeds {limit:.2f} degC.")

    # --- Functionality Checks (FUNC_...) ---
    DAMPER_NOT_OPERATIONAL = ("FUNC_DAMPER_001", "Damper {position} is not operational")
    FLUID_HEALTH_POOR = ("FUNC_FLUID_001", "MR fluid system health is poor")
    DAMPER_COUNT_MISMATCH = ("FUNC_CONFIG_001", "Damper count mismatch in configuration: {configured} configured, {installed} installed")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def template(self) -> str:
        return self.value[1]

    def format_message(self, **kwargs) -> str:
        """Formats the message template with provided keyword arguments."""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.error(f"Missing key {e} for formatting message template of {self.name} (code: {self.code}): '{self.template}'. Provided args: {kwargs}")
            return f"Error formatting message for {self.code}: Missing key {e}. Template: '{self.template}' Args: {kwargs}"
