"""Time stepping utilities.

Classes
-------
TimeStep
    Index, end time and size of one step.
Stepper
    Fixed-size time stepping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple

import numpy as np


class TimeStep(NamedTuple):
    """One time step.

    Attributes:
        index: One-based step index; old-time levels shift when it changes.
        time: Simulation time at the end of the step (s).
        delta_t: Step size (s).
    """

    index: int
    time: float
    delta_t: float


@dataclass
class Stepper:
    """Fixed time stepper.

    Args:
        t_end: End time (s).
        dt: Time-step size (s).
        t_start: Start time (s).  Defaults to 0.

    Example::

        stepper = Stepper(t_end=1.0, dt=0.25)
        for step in stepper:
            print(step.index, step.time, step.delta_t)
    """

    t_end: float
    dt: float
    t_start: float = 0.0

    def __post_init__(self) -> None:
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}.")

    @property
    def n_steps(self) -> int:
        """Number of time steps."""
        return int(np.ceil((self.t_end - self.t_start) / self.dt - 1e-12))

    def __iter__(self) -> Iterator[TimeStep]:
        """Yield :class:`TimeStep` tuples."""
        t = self.t_start
        index = 0
        while t < self.t_end - 1e-12:
            step_dt = min(self.dt, self.t_end - t)
            t += step_dt
            index += 1
            yield TimeStep(index, t, step_dt)

    def __repr__(self) -> str:
        return f"Stepper(t_end={self.t_end}, dt={self.dt}, t_start={self.t_start})"
