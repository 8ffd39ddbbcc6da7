"""Coupling interfaces and partner domains."""

from solidcoupling.coupling.base import CouplingInterface
from solidcoupling.coupling.mechanical import MechanicalCouplingInterface
from solidcoupling.coupling.partners import (
    ConductingSlabPartner,
    LinearPressurePartner,
    PartnerDomain,
)
from solidcoupling.coupling.thermal import ThermalCouplingInterface

__all__ = [
    "CouplingInterface",
    "MechanicalCouplingInterface",
    "ThermalCouplingInterface",
    "PartnerDomain",
    "ConductingSlabPartner",
    "LinearPressurePartner",
]
