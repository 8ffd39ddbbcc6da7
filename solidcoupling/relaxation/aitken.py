"""Aitken dynamic relaxation."""

from __future__ import annotations

import logging

import numpy as np

from solidcoupling.convergence.norms import VSMALL, global_dot
from solidcoupling.errors import NumericDegeneracy
from solidcoupling.relaxation.base import RelaxationStrategy, register_relaxation

logger = logging.getLogger(__name__)

# smallest accepted |dr|^2 relative to |r|^2
_DEGENERATE_RATIO = 1e-20


@register_relaxation("Aitken")
class AitkenRelaxation(RelaxationStrategy):
    """Adaptive scalar relaxation from successive residuals.

    With ``r_k = x_new - x_old`` the factor is updated as::

        alpha_k = -alpha_{k-1} * r_{k-1} . (r_k - r_{k-1}) / |r_k - r_{k-1}|^2

    and clipped to ``[aitken_min, aitken_max]``.  The first iteration of
    every time step uses ``min(factor, 1)``.  When the denominator
    vanishes the previous factor is kept for that iteration.

    Attributes:
        alpha: Factor used by the last :meth:`relax` call.
        n_degenerate: Number of iterations that kept the previous factor.
    """

    def __init__(self, settings=None, comm=None) -> None:
        super().__init__(settings, comm)
        self.alpha = min(self.factor, 1.0)
        self.n_degenerate = 0
        self._residual: np.ndarray | None = None

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

        if (
            iteration == 0
            or self._residual is None
            or self._residual.shape != residual.shape
        ):
            self.alpha = min(self.factor, 1.0)
        else:
            try:
                self.alpha = self._updated_factor(residual)
            except NumericDegeneracy as exc:
                self.n_degenerate += 1
                logger.debug("%s; keeping alpha = %g", exc, self.alpha)

        self._residual = residual.copy()
        return x_old + self.alpha * residual

    def _updated_factor(self, residual: np.ndarray) -> float:
        delta = residual - self._residual
        denom = global_dot(delta, delta, self.comm)
        scale = max(
            global_dot(residual, residual, self.comm),
            global_dot(self._residual, self._residual, self.comm),
        )
        if denom < VSMALL or denom <= _DEGENERATE_RATIO * scale:
            raise NumericDegeneracy(
                f"Aitken denominator {denom:.3e} vanishes"
            )
        alpha = -self.alpha * global_dot(self._residual, delta, self.comm) / denom
        return float(np.clip(alpha, self.settings.aitken_min, self.settings.aitken_max))

    def reset(self) -> None:
        self.alpha = min(self.factor, 1.0)
        self._residual = None

    def __repr__(self) -> str:
        return f"AitkenRelaxation(factor={self.factor}, alpha={self.alpha:.4g})"
