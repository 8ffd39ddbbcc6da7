"""Coupled interface fields.

Classes
-------
CoupledField
    A named quantity exchanged at an interface, with its previous
    coupling iterate and two old-time levels for prediction.
"""

from __future__ import annotations

import numpy as np


class CoupledField:
    """Interface field with iteration and time history.

    The old-time and old-old-time slots are shifted by
    :meth:`begin_time_step`, once per time index.  Calling it again for
    the same index is a no-op, so the predictor never drifts when a
    step needs several coupling iterations.

    Args:
        name: Field name, e.g. ``"temperature"`` or ``"traction"``.
        initial: Initial values, shape ``(n_faces,)`` or ``(n_faces, 3)``.

    Attributes:
        value: Current iterate.
        prev_iter: Iterate before the last :meth:`update`.
        old_time: Converged value of the previous time step.
        old_old_time: Converged value two time steps back.
    """

    def __init__(self, name: str, initial: np.ndarray) -> None:
        self.name = name
        self.value = np.array(initial, dtype=float)
        self.prev_iter = self.value.copy()
        self.old_time: np.ndarray | None = None
        self.old_old_time: np.ndarray | None = None
        self._time_index: int | None = None

    @property
    def time_index(self) -> int | None:
        """Index of the time step the field currently belongs to."""
        return self._time_index

    def begin_time_step(self, time_index: int) -> None:
        """Shift the old-time levels for a new time step."""
        if self._time_index is not None:
            if time_index == self._time_index:
                return
            if time_index < self._time_index:
                raise ValueError(
                    f"Field {self.name!r}: time index went back from "
                    f"{self._time_index} to {time_index}."
                )
        if self.old_time is not None:
            self.old_old_time = self.old_time
        self.old_time = self.value.copy()
        self.prev_iter = self.value.copy()
        self._time_index = time_index

    def update(self, new_value: np.ndarray) -> None:
        """Make *new_value* the current iterate."""
        new_value = np.asarray(new_value, dtype=float)
        if new_value.shape != self.value.shape:
            raise ValueError(
                f"Field {self.name!r}: shape {new_value.shape} does not match "
                f"{self.value.shape}."
            )
        self.prev_iter = self.value
        self.value = new_value.copy()

    def seed(self, value: np.ndarray) -> None:
        """Overwrite the current iterate without recording an increment."""
        self.value = np.array(value, dtype=float)
        self.prev_iter = self.value.copy()

    @property
    def increment(self) -> np.ndarray:
        """Change produced by the last :meth:`update`."""
        return self.value - self.prev_iter

    @property
    def can_predict(self) -> bool:
        """True once two old-time levels are available."""
        return self.old_time is not None and self.old_old_time is not None

    def predict(self) -> np.ndarray:
        """Linear extrapolation ``2 x_old - x_oldOld`` to the new time.

        Falls back to the old-time value while only one level exists.
        """
        if self.old_time is None:
            return self.value.copy()
        if self.old_old_time is None:
            return self.old_time.copy()
        return 2.0 * self.old_time - self.old_old_time

    def __repr__(self) -> str:
        return (
            f"CoupledField(name={self.name!r}, shape={self.value.shape}, "
            f"time_index={self._time_index})"
        )
