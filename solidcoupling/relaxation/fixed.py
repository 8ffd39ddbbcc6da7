"""Fixed under-relaxation."""

from __future__ import annotations

import numpy as np

from solidcoupling.relaxation.base import RelaxationStrategy, register_relaxation


@register_relaxation("fixed")
class FixedRelaxation(RelaxationStrategy):
    """Constant-factor under-relaxation.

    ``x_relaxed = x_old + f (x_new - x_old)`` with ``0 < f <= 1``; the
    result always lies between ``x_old`` and ``x_new``.  Stateless.
    """

    def relax(
        self,
        x_new: np.ndarray,
        x_old: np.ndarray,
        iteration: int,
    ) -> np.ndarray:
        x_new = np.asarray(x_new, dtype=float)
        x_old = np.asarray(x_old, dtype=float)
        if self.factor == 1.0:
            return x_new.copy()
        return x_old + self.factor * (x_new - x_old)
