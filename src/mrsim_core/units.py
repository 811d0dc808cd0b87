# --- src/mrsim_core/units.py ---
import logging
from typing import Union

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.info("Pint Unit Registry initialized.")

# Canonical units used throughout the vehicle models. Bare numbers supplied by
# callers are always interpreted in these units.
SPEED_UNIT = "km/h"
TIME_UNIT = "s"
FORCE_UNIT = "N"
ACCELERATION_UNIT = "m/s**2"
logger.debug(f"Canonical units: {SPEED_UNIT}, {TIME_UNIT}, {FORCE_UNIT}, {ACCELERATION_UNIT}")


def to_canonical(value: Union[str, int, float, Quantity], unit: str) -> float:
    """
    Converts a user-supplied value into a plain float in the given canonical unit.

    Numbers are assumed to already be expressed in `unit`. Strings such as
    '120 km/h' or '8 kN' are parsed by pint and converted.

    Raises:
        pint.DimensionalityError: If the value cannot be expressed in `unit`.
        pint.UndefinedUnitError: If the string names an unknown unit.
        ValueError: If the value is of an unsupported type.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean value '{value}' is not a valid quantity.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        value = ureg.Quantity(value)
    if isinstance(value, Quantity):
        if value.dimensionless and not ureg.parse_expression(unit).dimensionless:
            # A unitless string like '30' means the canonical unit.
            return float(value.magnitude)
        return float(value.to(unit).magnitude)
    raise ValueError(f"Unsupported quantity value of type '{type(value).__name__}'.")
