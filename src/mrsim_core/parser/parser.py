# src/mrsim_core/parser/parser.py
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import cerberus
import pint
import yaml

from ..data_structures import BrakingEvent, Environment, RoadConditions, SpeedSample, TestScenario
from ..fluid import (
    BrakingSystemConfig,
    MRFluidSystemConfiguration,
    SuspensionSystemConfig,
    ThermalManagementConfig,
)
from ..simulation.config import (
    OperationalLimits,
    TestEnvironmentConfig,
    TestVehicleConfiguration,
    VEHICLE_TYPES,
)
from ..units import (
    ACCELERATION_UNIT,
    FORCE_UNIT,
    SPEED_UNIT,
    TIME_UNIT,
    to_canonical,
)
from .exceptions import ConfigFileError, SchemaValidationError

logger = logging.getLogger(__name__)

ConfigSource = Union[Path, str, Mapping[str, Any]]

# Errors a quantity conversion may raise for a value that passed the schema.
_CONVERSION_ERRORS = (KeyError, ValueError, TypeError, pint.DimensionalityError, pint.UndefinedUnitError)


class EnhancedValidator(cerberus.Validator):
    """Custom Cerberus validator for unit-bearing quantities and time-ordered profiles."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['quantity'] = {'schema': {'type': 'string'}}
        self.rules['ascending_times'] = {'schema': {'type': 'boolean'}}

    def _validate_quantity(self, unit: str, field: str, value: Any):
        """
        Validates that a value is a number or a unit string convertible to `unit`.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        try:
            to_canonical(value, unit)
        except _CONVERSION_ERRORS as e:
            self._error(field, f"Value '{value}' cannot be expressed in '{unit}': {e}")

    def _validate_ascending_times(self, constraint: bool, field: str, value: Any):
        """
        Validates that the 'time' entries of a list of samples are strictly ascending.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint or not isinstance(value, list):
            return
        times = []
        for item in value:
            if not isinstance(item, dict) or 'time' not in item:
                return  # Let sub-schema validation handle this.
            try:
                times.append(to_canonical(item['time'], TIME_UNIT))
            except _CONVERSION_ERRORS:
                return  # Reported by the 'quantity' rule of the item.
        out_of_order = [(a, b) for a, b in zip(times, times[1:]) if b <= a]
        if out_of_order:
            self._error(field, f"Sample times must be strictly ascending; found out-of-order pairs {out_of_order}.")


def _quantity(unit: str, **extra) -> Dict[str, Any]:
    rule = {"type": ["string", "number"], "quantity": unit}
    rule.update(extra)
    return rule


def _fraction(**extra) -> Dict[str, Any]:
    rule = {"type": "number", "min": 0.0, "max": 1.0}
    rule.update(extra)
    return rule


def _limit() -> Dict[str, Any]:
    return {"type": "integer", "nullable": True, "min": 1}


class ConfigParser:
    """
    Loads scenarios and configurations from YAML documents.

    A source is a `Path` to a YAML file, a string of YAML text, or an
    already-loaded mapping. Quantities accept a bare number in the canonical
    unit (km/h, s, N, m/s^2) or a unit string such as '120 km/h' or '8 kN'.
    Temperatures are always plain degrees Celsius.
    """
    _scenario_schema = {
        "scenario_id": {"type": "string", "required": True, "empty": False},
        "name": {"type": "string", "required": False},
        "description": {"type": "string", "required": False},
        "duration": _quantity(TIME_UNIT, required=True),
        "load_factor": _fraction(),
        "road": {
            "type": "dict", "required": False, "schema": {
                "surface_type": {"type": "string", "empty": False},
                "roughness": _fraction(),
                "incline_angle": {"type": "number", "min": -90.0, "max": 90.0},
            },
        },
        "environment": {
            "type": "dict", "required": False, "schema": {
                "temperature": {"type": "number"},
                "humidity": {"type": "number", "min": 0.0, "max": 100.0},
                "wind_speed": _quantity("m/s"),
            },
        },
        "speed_profile": {
            "type": "list", "required": False, "ascending_times": True,
            "schema": {"type": "dict", "schema": {
                "time": _quantity(TIME_UNIT, required=True),
                "speed": _quantity(SPEED_UNIT, required=True),
            }},
        },
        "braking_events": {
            "type": "list", "required": False,
            "schema": {"type": "dict", "schema": {
                "time": _quantity(TIME_UNIT, required=True),
                "intensity": _fraction(required=True),
                "duration": _quantity(TIME_UNIT, required=True),
            }},
        },
    }

    _vehicle_schema = {
        "vehicle_id": {"type": "string", "empty": False},
        "vehicle_type": {"type": "string", "allowed": list(VEHICLE_TYPES)},
        "damper_count": {"type": "integer", "min": 1},
        "pacing_factor": {"type": "number", "min": 0.0},
        "data_log_limit": _limit(),
        "performance_history_limit": _limit(),
        "test_history_limit": _limit(),
        "test_environment": {
            "type": "dict", "schema": {
                "enable_data_logging": {"type": "boolean"},
                "log_interval": _quantity(TIME_UNIT),
            },
        },
        "operational_limits": {
            "type": "dict", "schema": {
                "max_test_speed": _quantity(SPEED_UNIT),
                "max_acceleration": _quantity(ACCELERATION_UNIT),
                "max_damper_force": _quantity(FORCE_UNIT),
                "emergency_stop_threshold": {"type": "number"},
            },
        },
    }

    _fluid_schema = {
        "selected_formulation": {"type": "string", "empty": False},
        "braking": {
            "type": "dict", "schema": {
                "enable_mr_fluid_braking": {"type": "boolean"},
                "mr_fluid_braking_ratio": _fraction(),
                "adaptive_field_control": {"type": "boolean"},
            },
        },
        "suspension": {
            "type": "dict", "schema": {
                "enable_mr_fluid_suspension": {"type": "boolean"},
                "suspension_energy_recovery": {"type": "boolean"},
                "damping_adaptation": {"type": "boolean"},
            },
        },
        "thermal": {
            "type": "dict", "schema": {
                "enable_cooling": {"type": "boolean"},
                "max_operating_temperature": {"type": "number"},
                "thermal_derating": {"type": "boolean"},
            },
        },
    }

    def __init__(self):
        self._validators = {}
        for kind, schema in (("scenario", self._scenario_schema),
                             ("vehicle", self._vehicle_schema),
                             ("fluid", self._fluid_schema)):
            validator = EnhancedValidator(schema)
            validator.allow_unknown = False
            self._validators[kind] = validator
        logger.info("ConfigParser initialized with strict structural validation rules.")

    # --- Public API ---

    def parse_scenario(self, source: ConfigSource) -> TestScenario:
        """
        Parses a test scenario.

        Raises:
            ConfigParsingError: If the document cannot be loaded or fails validation.
            ScenarioError: If the scenario values are outside their physical domain.
        """
        data, source_name = self._load_and_validate("scenario", source)
        try:
            road = RoadConditions(**data.get("road", {}))
            environment_data = dict(data.get("environment", {}))
            if "wind_speed" in environment_data:
                environment_data["wind_speed"] = to_canonical(environment_data["wind_speed"], "m/s")
            profile = tuple(
                SpeedSample(time=to_canonical(s["time"], TIME_UNIT), speed=to_canonical(s["speed"], SPEED_UNIT))
                for s in data.get("speed_profile", [])
            )
            events = tuple(
                BrakingEvent(
                    time=to_canonical(e["time"], TIME_UNIT),
                    intensity=float(e["intensity"]),
                    duration=to_canonical(e["duration"], TIME_UNIT),
                )
                for e in data.get("braking_events", [])
            )
            duration = to_canonical(data["duration"], TIME_UNIT)
        except _CONVERSION_ERRORS as e:
            raise SchemaValidationError({"scenario": [f"Could not convert value: {e}"]}, source_name) from e

        scenario = TestScenario(
            scenario_id=data["scenario_id"],
            duration=duration,
            road=road,
            speed_profile=profile,
            load_factor=data.get("load_factor", 0.5),
            environment=Environment(**environment_data),
            braking_events=events,
            name=data.get("name", data["scenario_id"]),
            description=data.get("description", ""),
        )
        logger.info(f"Parsed scenario '{scenario.scenario_id}' from {source_name} "
                    f"({len(profile)} speed samples, {len(events)} braking events).")
        return scenario

    def parse_vehicle_config(self, source: ConfigSource) -> TestVehicleConfiguration:
        """
        Parses a test vehicle configuration. Absent keys take their defaults.

        Raises:
            ConfigParsingError: If the document cannot be loaded or fails validation.
            ConfigurationError: If the values are rejected by the configuration itself.
        """
        data, source_name = self._load_and_validate("vehicle", source)
        try:
            kwargs = {k: v for k, v in data.items() if k not in ("test_environment", "operational_limits")}

            environment = dict(data.get("test_environment", {}))
            if "log_interval" in environment:
                environment["log_interval"] = to_canonical(environment["log_interval"], TIME_UNIT)
            kwargs["test_environment"] = TestEnvironmentConfig(**environment)

            units = {
                "max_test_speed": SPEED_UNIT,
                "max_acceleration": ACCELERATION_UNIT,
                "max_damper_force": FORCE_UNIT,
            }
            limits = {
                key: to_canonical(value, units[key]) if key in units else float(value)
                for key, value in data.get("operational_limits", {}).items()
            }
            kwargs["operational_limits"] = OperationalLimits(**limits)
        except _CONVERSION_ERRORS as e:
            raise SchemaValidationError({"vehicle": [f"Could not convert value: {e}"]}, source_name) from e

        config = TestVehicleConfiguration(**kwargs)
        logger.info(f"Parsed vehicle configuration '{config.vehicle_id}' from {source_name}.")
        return config

    def parse_fluid_config(self, source: ConfigSource) -> MRFluidSystemConfiguration:
        """Parses an MR-fluid system configuration. Absent keys take their defaults."""
        data, source_name = self._load_and_validate("fluid", source)
        kwargs = {}
        if "selected_formulation" in data:
            kwargs["selected_formulation"] = data["selected_formulation"]
        if "braking" in data:
            kwargs["braking"] = BrakingSystemConfig(**data["braking"])
        if "suspension" in data:
            kwargs["suspension"] = SuspensionSystemConfig(**data["suspension"])
        if "thermal" in data:
            kwargs["thermal"] = ThermalManagementConfig(**data["thermal"])

        config = MRFluidSystemConfiguration(**kwargs)
        logger.info(f"Parsed fluid configuration (formulation '{config.selected_formulation}') from {source_name}.")
        return config

    # --- Loading ---

    def _load_and_validate(self, kind: str, source: ConfigSource) -> Tuple[Dict[str, Any], str]:
        content, source_name = self._load(source)
        validator = self._validators[kind]
        if not validator.validate(content):
            raise SchemaValidationError(validator.errors, source_name)
        return validator.document, source_name

    def _load(self, source: ConfigSource) -> Tuple[Dict[str, Any], str]:
        """Loads a source into a mapping and names it for diagnostics."""
        if isinstance(source, Mapping):
            return dict(source), "<mapping>"
        if isinstance(source, Path):
            return self._load_yaml_file(source), str(source)
        if isinstance(source, str):
            return self._load_yaml_text(source, "<string>"), "<string>"
        raise ConfigFileError(f"Unsupported configuration source of type '{type(source).__name__}'.", "<unknown>")

    def _load_yaml_file(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise ConfigFileError(f"Configuration file not found at path: {path}", str(path))
        try:
            text = path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise ConfigFileError(f"Permission denied when trying to read file: {e}", str(path)) from e
        logger.debug(f"Loaded configuration file: {path}")
        return self._load_yaml_text(text, str(path))

    @staticmethod
    def _load_yaml_text(text: str, source_name: str) -> Dict[str, Any]:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigFileError(f"Invalid YAML syntax: {e}", source_name) from e
        if content is None:
            raise ConfigFileError("The YAML document is empty or contains no valid content.", source_name)
        if not isinstance(content, dict):
            raise ConfigFileError("The root of the YAML document must be a dictionary (mapping).", source_name)
        return content
