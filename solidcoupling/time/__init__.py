"""Time: time-step sequencing for the outer loop."""

from solidcoupling.time.stepper import Stepper, TimeStep

__all__ = [
    "Stepper",
    "TimeStep",
]
