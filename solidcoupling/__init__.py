"""
solidcoupling: Convergence control and relaxation for partitioned
solid coupling.

Subpackages
-----------
relaxation
    Fixed, Aitken and Quasi-Newton relaxation of coupled iterates.
convergence
    Residual norms, convergence policy and residual logs.
solid
    Solid models and their inner corrector loop.
coupling
    Dirichlet-Neumann coupling interfaces and partner domains.
time
    Time-step sequencing.
visualization
    Residual history plots.

Modules
-------
config
    Settings dataclasses read from case dictionaries.
errors
    Exception types.
fields
    Coupled interface fields with time history.
parallel
    Communicators and collective reductions.
zones
    Globally ordered interface face zones.
"""

import logging

from solidcoupling import (
    relaxation,
    convergence,
    solid,
    coupling,
    time,
    visualization,
)
from solidcoupling.config import CorrectorSettings, CouplingSettings, RelaxationSettings

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "relaxation",
    "convergence",
    "solid",
    "coupling",
    "time",
    "visualization",
    "CorrectorSettings",
    "CouplingSettings",
    "RelaxationSettings",
]
