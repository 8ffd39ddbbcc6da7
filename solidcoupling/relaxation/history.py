"""Bounded history of Quasi-Newton increment pairs.

Classes
-------
ResidualHistory
    Fixed-capacity, time-tagged store of ``(input, output)`` increments.
"""

from __future__ import annotations

import numpy as np


class ResidualHistory:
    """Paired input/output increments used by Quasi-Newton relaxation.

    ``inputs[i]`` holds the change of the unrelaxed field value between
    two iterations (the ``W`` columns), ``outputs[i]`` the matching change
    of the residual (the ``V`` columns).  Both sequences always have the
    same length; when full, the oldest pair is evicted as a whole.

    The history survives time steps (re-using curvature information from
    earlier steps) and is cleared every *restart_frequency* time steps.

    Args:
        capacity: Maximum number of stored pairs.
        restart_frequency: Time steps between restarts.
    """

    def __init__(self, capacity: int, restart_frequency: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}.")
        if restart_frequency < 1:
            raise ValueError(
                f"restart_frequency must be positive, got {restart_frequency}."
            )
        self.capacity = capacity
        self.restart_frequency = restart_frequency
        self.inputs: list[np.ndarray] = []
        self.outputs: list[np.ndarray] = []
        self.time_indices: list[int] = []
        self.n_restarts = 0
        self._restart_index: int | None = None
        self._time_index: int | None = None

    def __len__(self) -> int:
        return len(self.inputs)

    def begin_time_step(self, time_index: int) -> bool:
        """Register a new time step; clear at restart boundaries.

        Returns:
            True if the history was cleared.
        """
        if time_index == self._time_index:
            return False
        self._time_index = time_index
        if self._restart_index is None:
            self._restart_index = time_index
            return False
        if time_index - self._restart_index >= self.restart_frequency:
            self.clear()
            self.n_restarts += 1
            self._restart_index = time_index
            return True
        return False

    def append(
        self,
        delta_value: np.ndarray,
        delta_residual: np.ndarray,
        time_index: int | None = None,
    ) -> None:
        """Store one increment pair, evicting the oldest if full."""
        if len(self) >= self.capacity:
            self.drop_oldest()
        self.inputs.append(np.array(delta_value, dtype=float))
        self.outputs.append(np.array(delta_residual, dtype=float))
        tag = self._time_index if time_index is None else time_index
        self.time_indices.append(-1 if tag is None else int(tag))

    def drop_oldest(self) -> None:
        """Remove the oldest pair."""
        if self.inputs:
            del self.inputs[0]
            del self.outputs[0]
            del self.time_indices[0]

    def clear(self) -> None:
        """Remove all pairs."""
        self.inputs.clear()
        self.outputs.clear()
        self.time_indices.clear()

    def matrices(self) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(V, W)`` with one flattened pair per column."""
        V = np.column_stack([o.ravel() for o in self.outputs])
        W = np.column_stack([i.ravel() for i in self.inputs])
        return V, W

    def __repr__(self) -> str:
        return (
            f"ResidualHistory(len={len(self)}, capacity={self.capacity}, "
            f"restart_frequency={self.restart_frequency})"
        )
