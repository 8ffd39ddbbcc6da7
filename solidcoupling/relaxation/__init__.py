"""Relaxation: fixed, Aitken and Quasi-Newton iterate updates."""

from solidcoupling.relaxation.base import (
    RelaxationStrategy,
    available_methods,
    make_relaxation,
    register_relaxation,
)
from solidcoupling.relaxation.fixed import FixedRelaxation
from solidcoupling.relaxation.aitken import AitkenRelaxation
from solidcoupling.relaxation.quasi_newton import QuasiNewtonRelaxation
from solidcoupling.relaxation.history import ResidualHistory

__all__ = [
    "RelaxationStrategy",
    "available_methods",
    "make_relaxation",
    "register_relaxation",
    "FixedRelaxation",
    "AitkenRelaxation",
    "QuasiNewtonRelaxation",
    "ResidualHistory",
]
