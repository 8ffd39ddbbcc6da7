"""Relaxation strategy interface and run-time selection.

Classes
-------
RelaxationStrategy
    Abstract relaxation of a fixed-point iterate.

Functions
---------
register_relaxation
    Class decorator adding a strategy to the selection table.
make_relaxation
    Build the strategy named in a :class:`RelaxationSettings`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np

from solidcoupling.config import RelaxationSettings
from solidcoupling.errors import ConfigurationError
from solidcoupling.parallel import Communicator, SerialCommunicator

_REGISTRY: dict[str, type["RelaxationStrategy"]] = {}


class RelaxationStrategy(ABC):
    """Compute the next iterate of a coupled or solution field.

    Given the unrelaxed candidate ``x_new`` produced by a solve and the
    previous (relaxed) iterate ``x_old``, :meth:`relax` returns the value
    that becomes the next iterate and updates any internal state.

    A strategy instance belongs to exactly one field of one interface
    or solid model.

    Args:
        settings: Relaxation parameters.
        comm: Communicator used for inner products of distributed
            fields.  Fields that are already global on every process
            (face-zone fields) use the default serial communicator.

    Attributes:
        method: Canonical method name used in case files.
    """

    method: str

    def __init__(
        self,
        settings: RelaxationSettings | None = None,
        comm: Communicator | None = None,
    ) -> None:
        self.settings = settings or RelaxationSettings(method=self.method)
        self.comm = comm or SerialCommunicator()
        self.factor = self.settings.factor
        self.time_index: int | None = None

    def begin_time_step(self, time_index: int) -> None:
        """Notify the strategy that a new time step has started."""
        self.time_index = time_index

    @abstractmethod
    def relax(
        self,
        x_new: np.ndarray,
        x_old: np.ndarray,
        iteration: int,
    ) -> np.ndarray:
        """Return the relaxed iterate.

        Args:
            x_new: Unrelaxed new value.
            x_old: Previous relaxed value.
            iteration: Zero-based iteration index within the time step.

        Returns:
            The relaxed value (a new array).
        """

    def reset(self) -> None:
        """Forget all adaptive state."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(factor={self.factor})"


def register_relaxation(
    name: str,
) -> Callable[[type[RelaxationStrategy]], type[RelaxationStrategy]]:
    """Register a strategy class under the configuration keyword *name*."""

    def decorator(cls: type[RelaxationStrategy]) -> type[RelaxationStrategy]:
        cls.method = name
        _REGISTRY[name.lower()] = cls
        return cls

    return decorator


def available_methods() -> list[str]:
    """Names of all registered relaxation methods."""
    return sorted(cls.method for cls in _REGISTRY.values())


def make_relaxation(
    settings: RelaxationSettings,
    comm: Communicator | None = None,
) -> RelaxationStrategy:
    """Select and construct the strategy named by ``settings.method``.

    Raises:
        ConfigurationError: If the method is not registered.
    """
    try:
        cls = _REGISTRY[str(settings.method).lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown relaxationMethod {settings.method!r}; valid methods "
            f"are: {', '.join(available_methods())}."
        ) from None
    return cls(settings, comm)
