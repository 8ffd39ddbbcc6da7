"""Inner corrector loop of a solid model.

Classes
-------
CorrectorResult
    Final iterate and convergence outcome of one loop.
SolidEquationCorrectorLoop
    Repeatedly assemble, solve and relax the solid equation.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple

import numpy as np

from solidcoupling.config import CorrectorSettings
from solidcoupling.convergence.monitor import ConvergenceMonitor, ConvergenceStatus
from solidcoupling.convergence.norms import relative_residual
from solidcoupling.parallel import Communicator, SerialCommunicator
from solidcoupling.relaxation.base import RelaxationStrategy
from solidcoupling.solid.linear_solver import SolverPerformance

logger = logging.getLogger(__name__)


class CorrectorResult(NamedTuple):
    """Outcome of :meth:`SolidEquationCorrectorLoop.run`.

    Attributes:
        field: Last (relaxed) iterate.
        iterations: Number of correctors performed.
        status: Final convergence status.
        residuals: Relative residual of every corrector.
    """

    field: np.ndarray
    iterations: int
    status: ConvergenceStatus
    residuals: list[float]


class SolidEquationCorrectorLoop:
    """Segregated corrector loop for the solid momentum (or energy) equation.

    Each corrector calls *solve_step* with the current iterate, relaxes
    the returned solution and compares the change with the increment
    over the time step::

        residual = max|x - x_prevIter| / max|x - x_oldTime|

    The loop stops when the :class:`ConvergenceMonitor` says so: at
    convergence, or after ``n_corr`` correctors (counted as
    "maximum iterations reached", not an error).

    Args:
        settings: Tolerances and corrector bounds.
        relaxation: Relaxation of the primary field.
        monitor: Convergence policy and residual records.
        comm: Communicator of the decomposition.
    """

    def __init__(
        self,
        settings: CorrectorSettings,
        relaxation: RelaxationStrategy,
        monitor: ConvergenceMonitor,
        comm: Communicator | None = None,
    ) -> None:
        self.settings = settings
        self.relaxation = relaxation
        self.monitor = monitor
        self.comm = comm or SerialCommunicator()

    def run(
        self,
        solve_step: Callable[[np.ndarray], SolverPerformance],
        field: np.ndarray,
        old_time_field: np.ndarray,
    ) -> CorrectorResult:
        """Iterate until converged or out of correctors.

        Args:
            solve_step: Assembles the equation about the given iterate and
                solves it.
            field: Starting iterate.
            old_time_field: Converged field of the previous time step.

        Returns:
            A :class:`CorrectorResult`.
        """
        field = np.array(field, dtype=float)
        shape = field.shape
        residuals: list[float] = []
        status = ConvergenceStatus.CONTINUE
        i_corr = 0

        for i_corr in range(self.settings.n_corr):
            perf = solve_step(field)
            if not perf.converged:
                logger.debug(
                    "%s: linear solver stopped after %d iterations without "
                    "reaching its tolerance", self.monitor.name, perf.n_iterations,
                )
            unrelaxed = np.asarray(perf.field, dtype=float).reshape(shape)
            relaxed = self.relaxation.relax(unrelaxed, field, i_corr)
            norm = relative_residual(relaxed, field, old_time_field, self.comm)
            field = relaxed
            residuals.append(norm)

            status = self.monitor.check_converged(
                i_corr, perf.initial_residual, perf.n_iterations, norm,
            )
            if status.stop:
                break

        return CorrectorResult(field, i_corr + 1, status, residuals)
