# src/mrsim_core/fluid/catalog.py
"""
The MR-fluid formulation catalog.

Compositions are immutable reference data. The catalog maps a formulation id
to its `MRFluidComposition`; switching the formulation used by an integration
instance replaces a reference, it never mutates a catalog entry.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from ..constants import SATURATION_FIELD_SCALE
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

MAX_PARTICLE_CONCENTRATION = 0.6


@dataclass(frozen=True)
class BaseFluid:
    type: str                    # silicone | mineral_oil | synthetic_oil | water_glycol
    viscosity: float             # Pa*s at 25 degC
    density: float               # kg/m^3
    thermal_conductivity: float  # W/(m*K)


@dataclass(frozen=True)
class MagneticParticles:
    material: str                    # iron_carbonyl | iron_oxide | cobalt_ferrite | nickel_zinc_ferrite
    concentration: float             # volume fraction
    average_size: float              # um
    saturation_magnetization: float  # A/m


@dataclass(frozen=True)
class Additive:
    type: str
    concentration: float  # weight %


@dataclass(frozen=True)
class Additives:
    surfactant: Additive
    antioxidant: Additive
    stabilizer: Additive


@dataclass(frozen=True)
class FluidPerformance:
    yield_stress: float             # Pa, at saturation
    dynamic_range: float            # on-state / off-state viscosity ratio
    response_time: float            # ms
    temperature_stability: float    # degC, upper limit of stable operation
    sedimentation_stability: float  # h


@dataclass(frozen=True)
class MRFluidComposition:
    id: str
    name: str
    description: str
    base_fluid: BaseFluid
    magnetic_particles: MagneticParticles
    additives: Additives
    performance: FluidPerformance

    @property
    def saturation_field(self) -> float:
        """Field strength (A/m) beyond which the fluid response no longer grows."""
        return self.magnetic_particles.saturation_magnetization * SATURATION_FIELD_SCALE


def validate_composition(composition: MRFluidComposition) -> None:
    """Raises ConfigurationError if the composition constants are not physical."""
    concentration = composition.magnetic_particles.concentration
    if not 0.0 <= concentration <= MAX_PARTICLE_CONCENTRATION:
        raise ConfigurationError(
            f"Magnetic particle concentration must be between 0 and {MAX_PARTICLE_CONCENTRATION}, got {concentration}.",
            formulation_id=composition.id,
        )
    if composition.base_fluid.viscosity <= 0:
        raise ConfigurationError(
            f"Base fluid viscosity must be positive, got {composition.base_fluid.viscosity} Pa*s.",
            formulation_id=composition.id,
        )
    if composition.performance.yield_stress < 0:
        raise ConfigurationError(
            f"Yield stress must be non-negative, got {composition.performance.yield_stress} Pa.",
            formulation_id=composition.id,
        )


STANDARD_FORMULATIONS = (
    MRFluidComposition(
        id="HP-IC-001",
        name="High-Performance Iron Carbonyl",
        description="Optimized for maximum energy recovery efficiency",
        base_fluid=BaseFluid("silicone", viscosity=0.1, density=970.0, thermal_conductivity=0.16),
        magnetic_particles=MagneticParticles("iron_carbonyl", concentration=0.35, average_size=3.5, saturation_magnetization=1.7e6),
        additives=Additives(Additive("oleic_acid", 2.0), Additive("BHT", 0.5), Additive("fumed_silica", 1.0)),
        performance=FluidPerformance(yield_stress=85000.0, dynamic_range=150.0, response_time=8.0,
                                     temperature_stability=120.0, sedimentation_stability=2000.0),
    ),
    MRFluidComposition(
        id="TS-CF-002",
        name="Temperature-Stable Cobalt Ferrite",
        description="Optimized for high-temperature applications",
        base_fluid=BaseFluid("synthetic_oil", viscosity=0.05, density=850.0, thermal_conductivity=0.14),
        magnetic_particles=MagneticParticles("cobalt_ferrite", concentration=0.30, average_size=2.8, saturation_magnetization=8.0e5),
        additives=Additives(Additive("stearic_acid", 1.5), Additive("TBHP", 0.8), Additive("organoclay", 1.5)),
        performance=FluidPerformance(yield_stress=65000.0, dynamic_range=120.0, response_time=12.0,
                                     temperature_stability=180.0, sedimentation_stability=1500.0),
    ),
    MRFluidComposition(
        id="FR-IO-003",
        name="Fast-Response Iron Oxide",
        description="Optimized for rapid response applications",
        base_fluid=BaseFluid("mineral_oil", viscosity=0.02, density=880.0, thermal_conductivity=0.13),
        magnetic_particles=MagneticParticles("iron_oxide", concentration=0.25, average_size=1.5, saturation_magnetization=9.2e5),
        additives=Additives(Additive("lecithin", 1.0), Additive("vitamin_E", 0.3), Additive("xanthan_gum", 0.5)),
        performance=FluidPerformance(yield_stress=45000.0, dynamic_range=80.0, response_time=3.0,
                                     temperature_stability=100.0, sedimentation_stability=1000.0),
    ),
    MRFluidComposition(
        id="EF-NZF-004",
        name="Eco-Friendly Nickel-Zinc Ferrite",
        description="Environmentally friendly water-based formulation",
        base_fluid=BaseFluid("water_glycol", viscosity=0.001, density=1050.0, thermal_conductivity=0.5),
        magnetic_particles=MagneticParticles("nickel_zinc_ferrite", concentration=0.20, average_size=2.0, saturation_magnetization=4.5e5),
        additives=Additives(Additive("sodium_oleate", 3.0), Additive("ascorbic_acid", 1.0), Additive("carrageenan", 2.0)),
        performance=FluidPerformance(yield_stress=25000.0, dynamic_range=50.0, response_time=15.0,
                                     temperature_stability=80.0, sedimentation_stability=500.0),
    ),
)


class FormulationCatalog:
    """
    Id-keyed registry of MR-fluid compositions.

    A default-constructed catalog holds the four standard formulations.
    """
    def __init__(self, formulations: Optional[Iterable[MRFluidComposition]] = None):
        self._formulations: Dict[str, MRFluidComposition] = {}
        for composition in (STANDARD_FORMULATIONS if formulations is None else formulations):
            self.add(composition)

    def lookup(self, formulation_id: str) -> Optional[MRFluidComposition]:
        return self._formulations.get(formulation_id)

    def list_all(self) -> Dict[str, MRFluidComposition]:
        return dict(self._formulations)

    def add(self, composition: MRFluidComposition) -> None:
        validate_composition(composition)
        if composition.id in self._formulations:
            logger.info(f"Replacing catalog entry for formulation '{composition.id}'.")
        self._formulations[composition.id] = composition

    def __contains__(self, formulation_id: str) -> bool:
        return formulation_id in self._formulations

    def __len__(self) -> int:
        return len(self._formulations)
