"""Interface Quasi-Newton acceleration (least-squares vector extrapolation).

Each iteration ``k`` with unrelaxed value ``x~_k`` and residual
``r_k = x~_k - x_k`` adds the pair::

    W_i = x~_k - x~_{k-1}        V_i = r_k - r_{k-1}

to the history, solves ``min |V c + r_k|`` and returns
``x_{k+1} = x~_k + W c``.  Pairs from earlier time steps are reused
until the history restarts.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import linalg

from solidcoupling.convergence.norms import global_dot
from solidcoupling.errors import NumericDegeneracy
from solidcoupling.relaxation.aitken import AitkenRelaxation
from solidcoupling.relaxation.base import RelaxationStrategy, register_relaxation
from solidcoupling.relaxation.history import ResidualHistory

logger = logging.getLogger(__name__)


@register_relaxation("QuasiNewton")
class QuasiNewtonRelaxation(RelaxationStrategy):
    """Multi-history Quasi-Newton relaxation.

    The least-squares problem is solved through its normal equations
    ``(V^T V) c = -V^T r``; the Gram matrix and right-hand side are
    sum-reduced over processes.  While the Gram matrix condition number
    exceeds ``condition_limit`` the oldest pair is discarded.  If no pair
    survives, the iterate is taken from an Aitken update that runs in
    lock-step with this strategy.  With an empty history (first
    iteration after a restart) the fixed factor is used.

    Attributes:
        history: The stored increment pairs.
        n_fallbacks: Iterations that used the Aitken fallback.
    """

    def __init__(self, settings=None, comm=None) -> None:
        super().__init__(settings, comm)
        self.history = ResidualHistory(
            capacity=self.settings.max_history,
            restart_frequency=self.settings.restart_frequency,
        )
        self._aitken = AitkenRelaxation(self.settings, self.comm)
        self._prev_value: np.ndarray | None = None
        self._prev_residual: np.ndarray | None = None
        self.n_fallbacks = 0

    def begin_time_step(self, time_index: int) -> None:
        super().begin_time_step(time_index)
        if self.history.begin_time_step(time_index):
            logger.debug("Quasi-Newton history restarted at time index %d", time_index)
        self._aitken.begin_time_step(time_index)
        self._prev_value = None
        self._prev_residual = None

    def relax(
        self,
        x_new: np.ndarray,
        x_old: np.ndarray,
        iteration: int,
    ) -> np.ndarray:
        x_new = np.asarray(x_new, dtype=float)
        x_old = np.asarray(x_old, dtype=float)
        residual = x_new - x_old

        if global_dot(residual, residual, self.comm) == 0.0:
            return x_new.copy()

        aitken_value = self._aitken.relax(x_new, x_old, iteration)

        if (
            iteration > 0
            and self._prev_residual is not None
            and self._prev_residual.shape == residual.shape
        ):
            self.history.append(
                x_new - self._prev_value,
                residual - self._prev_residual,
                self.time_index,
            )
        self._prev_value = x_new.copy()
        self._prev_residual = residual.copy()

        if len(self.history) == 0:
            return x_old + self.factor * residual

        try:
            coeffs = self._coefficients(residual)
        except NumericDegeneracy as exc:
            self.n_fallbacks += 1
            logger.debug("%s; using Aitken relaxation for this iteration", exc)
            return aitken_value

        _, W = self.history.matrices()
        return x_new + (W @ coeffs).reshape(x_new.shape)

    def _coefficients(self, residual: np.ndarray) -> np.ndarray:
        r = residual.ravel()
        while len(self.history) > 0:
            V, _ = self.history.matrices()
            gram = self.comm.allreduce(V.T @ V, "sum")
            rhs = self.comm.allreduce(V.T @ r, "sum")
            gram = np.atleast_2d(gram)
            rhs = np.atleast_1d(rhs)
            with np.errstate(divide="ignore", invalid="ignore"):
                cond = np.linalg.cond(gram)
            if np.isfinite(cond) and cond <= self.settings.condition_limit:
                try:
                    return linalg.solve(gram, -rhs, assume_a="sym")
                except linalg.LinAlgError:
                    pass
            logger.debug(
                "Quasi-Newton Gram matrix ill-conditioned (cond = %.3e, %d pairs); "
                "dropping oldest pair", cond, len(self.history),
            )
            self.history.drop_oldest()
        raise NumericDegeneracy("Quasi-Newton history emptied by conditioning filter")

    def reset(self) -> None:
        self.history.clear()
        self._aitken.reset()
        self._prev_value = None
        self._prev_residual = None

    def __repr__(self) -> str:
        return (
            f"QuasiNewtonRelaxation(factor={self.factor}, "
            f"history={len(self.history)}/{self.history.capacity}, "
            f"restart_frequency={self.history.restart_frequency})"
        )

