# src/mrsim_core/simulation/execution.py
"""
Provides the primary public API function for running a test scenario.

`run_test` is a thin facade over `MRDamperTestVehicle`: it builds (or reuses)
a vehicle, drives the asynchronous step loop to completion on a fresh event
loop, and returns the run's `TestResults`. Any diagnosable error raised on
the way is presented to the user as a single, actionable `TestRunError`.
"""
import asyncio
import logging
from typing import Optional, Tuple

from ..data_structures import TestScenario
from ..errors import DiagnosableError, TestRunError, format_diagnostic_report
from ..fluid import MRFluidSystemConfiguration
from .config import TestVehicleConfiguration
from .orchestrator import MRDamperTestVehicle
from .results import TestResults

logger = logging.getLogger(__name__)


def run_test(
    scenario: TestScenario,
    vehicle_config: Optional[TestVehicleConfiguration] = None,
    fluid_config: Optional[MRFluidSystemConfiguration] = None,
    vehicle: Optional[MRDamperTestVehicle] = None,
    **vehicle_kwargs,
) -> Tuple[TestResults, MRDamperTestVehicle]:
    """
    Runs one scenario synchronously on a test vehicle.

    Args:
        scenario: The scripted scenario to run.
        vehicle_config: Configuration of a new vehicle. Ignored when `vehicle`
            is given.
        fluid_config: MR-fluid configuration of a new vehicle. Ignored when
            `vehicle` is given.
        vehicle: An existing vehicle to reuse; its test history accumulates
            across calls.
        **vehicle_kwargs: Further keyword arguments for `MRDamperTestVehicle`
            (clock, catalog, damper model, ...).

    Returns:
        A tuple of the run's results and the vehicle that ran it.

    Raises:
        TestRunError: A user-friendly, diagnosable error if the run fails at
            any stage. The underlying exception is chained for debugging.
    """
    try:
        if vehicle is None:
            vehicle = MRDamperTestVehicle(vehicle_config, fluid_config, **vehicle_kwargs)
        logger.info(f"--- Starting test run for scenario '{scenario.scenario_id}' ---")

        asyncio.run(vehicle.start_test(scenario))
        results = vehicle.latest_test_results

        logger.info(f"Test run finished with status '{results.status}'.")
        return results, vehicle

    except DiagnosableError as e:
        logger.error(f"A diagnosable error occurred during the test run: {e}")
        raise TestRunError(e.get_diagnostic_report()) from e

    except Exception as e:
        logger.critical(f"An unexpected internal error occurred during the test run: {e}", exc_info=True)
        report = format_diagnostic_report(
            error_type=f"An Unexpected Test Run Error Occurred ({type(e).__name__})",
            details=f"The test vehicle encountered an unexpected internal error: {e}",
            suggestion="This may be a bug. Review the traceback and consider filing a bug report.",
            context={'scenario': scenario.scenario_id},
        )
        raise TestRunError(report) from e
