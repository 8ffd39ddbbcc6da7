"""Convergence decisions for corrector and coupling loops.

Classes
-------
ConvergenceStatus
    Outcome of one convergence check.
ConvergenceCounters
    "Maximum iterations reached" statistics.
ConvergenceMonitor
    Applies the tolerance / iteration-bound policy and records residuals.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from solidcoupling.config import CorrectorSettings
from solidcoupling.convergence.residual_log import ResidualLog, ResidualRecord
from solidcoupling.parallel import Communicator, SerialCommunicator

logger = logging.getLogger(__name__)


class ConvergenceStatus(enum.Enum):
    """Result of :meth:`ConvergenceMonitor.check_converged`."""

    CONTINUE = "continue"
    STANDARD_CONVERGED = "standardConverged"
    ALTERNATIVE_CONVERGED = "alternativeConverged"
    MAX_ITERATIONS = "maxIterExceeded"

    @property
    def converged(self) -> bool:
        """True if the result meets one of the tolerances."""
        return self in (
            ConvergenceStatus.STANDARD_CONVERGED,
            ConvergenceStatus.ALTERNATIVE_CONVERGED,
        )

    @property
    def stop(self) -> bool:
        """True if the loop must end."""
        return self is not ConvergenceStatus.CONTINUE


@dataclass
class ConvergenceCounters:
    """How often a loop exhausted its iteration budget.

    Attributes:
        current: Count in the current time step (reset every step).
        total: Count over the whole run.
        time_steps_affected: Number of time steps with ``current > 0``.
    """

    current: int = 0
    total: int = 0
    time_steps_affected: int = 0

    def begin_time_step(self) -> None:
        self.current = 0

    def increment(self) -> None:
        if self.current == 0:
            self.time_steps_affected += 1
        self.current += 1
        self.total += 1


class ConvergenceMonitor:
    """Tolerance and iteration-bound policy of one loop.

    A check converges in the standard sense when at least ``min_corr``
    iterations are done and both the field residual and the linear
    solver's initial residual are below ``solution_tolerance``.  When
    ``n_corr`` iterations are done without that, the counters are
    incremented and the loop stops; the result is still accepted as
    ``ALTERNATIVE_CONVERGED`` if it meets ``alternative_tolerance``.

    Residual norms are max-reduced over all processes before any
    decision, so every rank takes the same branch.

    Records are numbered by a counter that runs over the whole time
    step.  A solid monitor is checked by one corrector loop per coupling
    iteration, so its record numbers keep growing across those loops
    while the convergence policy still sees the corrector index.

    Args:
        settings: Tolerances, bounds, log cadence and file.
        name: Label used in log messages.
        comm: Communicator of the decomposition.
        log: Residual log to mirror records to.  By default one is
            created from ``settings.residual_file`` on the master rank.
    """

    def __init__(
        self,
        settings: CorrectorSettings,
        name: str = "solid",
        comm: Communicator | None = None,
        log: ResidualLog | None = None,
    ) -> None:
        self.settings = settings
        self.name = name
        self.comm = comm or SerialCommunicator()
        if log is None and settings.residual_file and self.comm.is_master:
            log = ResidualLog(settings.residual_file)
        self.log = log
        self.counters = ConvergenceCounters()
        self.records: list[ResidualRecord] = []
        self.time = 0.0
        self.n_checks = 0
        self.last_status: ConvergenceStatus | None = None

    def begin_time_step(self, time: float) -> None:
        """Start a new time step at simulation time *time*."""
        self.time = float(time)
        self.n_checks = 0
        self.counters.begin_time_step()
        self.last_status = None

    def check_converged(
        self,
        iteration: int,
        initial_residual: float,
        n_solver_iterations: int,
        residual_norm: float,
    ) -> ConvergenceStatus:
        """Decide whether the loop continues.

        Args:
            iteration: Zero-based iteration index within the time step.
            initial_residual: Initial residual reported by the linear
                solver (0 where there is none).
            n_solver_iterations: Linear solver iterations (for the log).
            residual_norm: Local field residual norm.

        Returns:
            The convergence status, identical on every process.
        """
        s = self.settings
        norm = self.comm.allreduce(float(residual_norm), "max")
        init_res = self.comm.allreduce(float(initial_residual), "max")
        worst = max(norm, init_res)
        completed = iteration + 1

        if completed >= s.min_corr and worst < s.solution_tolerance:
            status = ConvergenceStatus.STANDARD_CONVERGED
        elif completed >= s.n_corr:
            self.counters.increment()
            if s.use_alternative_tolerance and worst < s.alternative_tolerance:
                status = ConvergenceStatus.ALTERNATIVE_CONVERGED
                logger.info(
                    "%s: accepted at the alternative tolerance %g after %d "
                    "iterations (residual %.4e)",
                    self.name, s.alternative_tolerance, completed, worst,
                )
            else:
                status = ConvergenceStatus.MAX_ITERATIONS
                logger.warning(
                    "%s: maximum number of iterations (%d) reached at time %g "
                    "without convergence (residual %.4e)",
                    self.name, s.n_corr, self.time, worst,
                )
        else:
            status = ConvergenceStatus.CONTINUE

        self.n_checks += 1
        record = ResidualRecord(self.time, self.n_checks, norm)
        self.records.append(record)

        if iteration == 0:
            logger.info(
                "%s: iteration, residual, initial residual, solver iterations",
                self.name,
            )
        if completed % s.info_frequency == 0 or status.stop:
            logger.info(
                "%s: %4d, %.4e, %.4e, %d",
                self.name, completed, norm, init_res, n_solver_iterations,
            )
            if self.log is not None:
                self.log.write(record.time, record.iteration, record.norm)
        if status.converged:
            logger.debug("%s: %s after %d iterations", self.name, status.value, completed)

        self.last_status = status
        return status

    def step_records(self) -> list[ResidualRecord]:
        """Records of the current time step."""
        return [r for r in self.records if r.time == self.time]

    def close(self) -> None:
        """Close the residual log, if any."""
        if self.log is not None:
            self.log.close()

    def __repr__(self) -> str:
        return (
            f"ConvergenceMonitor(name={self.name!r}, "
            f"tol={self.settings.solution_tolerance}, "
            f"n_corr={self.settings.n_corr})"
        )
