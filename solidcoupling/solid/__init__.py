"""Solid models and their corrector loop."""

from solidcoupling.solid.base import SolidModel
from solidcoupling.solid.columns import ColumnMesh, assemble_columns
from solidcoupling.solid.corrector import CorrectorResult, SolidEquationCorrectorLoop
from solidcoupling.solid.elastic_bar import ElasticBar
from solidcoupling.solid.linear_solver import (
    SolverPerformance,
    normalised_residual,
    solve_linear_system,
)
from solidcoupling.solid.thermal_slab import ThermalSlab, series_interface_temperature

__all__ = [
    "SolidModel",
    "ColumnMesh",
    "assemble_columns",
    "CorrectorResult",
    "SolidEquationCorrectorLoop",
    "ElasticBar",
    "SolverPerformance",
    "normalised_residual",
    "solve_linear_system",
    "ThermalSlab",
    "series_interface_temperature",
]
