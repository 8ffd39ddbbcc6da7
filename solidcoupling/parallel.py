"""Process-level reductions for domain-decomposed runs.

Every decision that ends a loop (converged, iteration limit reached)
must be identical on all processes.  Each process computes its local
value and combines it with an associative, commutative reduction before
acting on it.

Classes
-------
Communicator
    Abstract reduction interface.
SerialCommunicator
    Single-process run; reductions are identities.
MPICommunicator
    Wrapper around an ``mpi4py`` communicator.
SimulatedWorld
    Several ranks simulated by threads inside one interpreter, used to
    check that collective decisions agree.

Functions
---------
combine
    Reduce a sequence of local values with a named operation.
"""

from __future__ import annotations

import functools
import operator
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence

import numpy as np

REDUCE_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "sum": operator.add,
    "max": np.maximum,
    "min": np.minimum,
    "or": operator.or_,
    "and": operator.and_,
}


def combine(values: Sequence[Any], op: str) -> Any:
    """Reduce *values* with the operation named *op*.

    Args:
        values: Local contributions, one per process.
        op: One of ``"sum"``, ``"max"``, ``"min"``, ``"or"``, ``"and"``.

    Returns:
        The combined value.  Booleans stay booleans; scalars are
        returned as Python floats.
    """
    try:
        func = REDUCE_OPS[op]
    except KeyError:
        raise ValueError(
            f"Unknown reduction {op!r}; valid reductions are: "
            f"{', '.join(REDUCE_OPS)}."
        ) from None
    if op in ("or", "and"):
        return bool(functools.reduce(func, (bool(v) for v in values)))
    result = functools.reduce(func, values)
    if np.ndim(result) == 0:
        return float(result)
    return result


class Communicator(ABC):
    """Reduction and synchronisation primitives of one process."""

    @property
    @abstractmethod
    def rank(self) -> int:
        """Index of this process."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of processes."""

    @property
    def is_master(self) -> bool:
        """True on rank 0, which owns shared output such as log files."""
        return self.rank == 0

    @abstractmethod
    def allreduce(self, value: Any, op: str = "sum") -> Any:
        """Combine *value* over all processes; every rank gets the result."""

    @abstractmethod
    def barrier(self) -> None:
        """Block until every process has reached this point."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rank={self.rank}, size={self.size})"


class SerialCommunicator(Communicator):
    """Communicator of a single-process run."""

    @property
    def rank(self) -> int:
        return 0

    @property
    def size(self) -> int:
        return 1

    def allreduce(self, value: Any, op: str = "sum") -> Any:
        return combine([value], op)

    def barrier(self) -> None:
        return None


class MPICommunicator(Communicator):
    """Communicator backed by ``mpi4py``.

    Requires *mpi4py* (``pip install solidcoupling[mpi]``).

    Args:
        comm: An ``mpi4py.MPI.Comm``.  Defaults to ``COMM_WORLD``.
    """

    def __init__(self, comm: Any = None) -> None:
        try:
            from mpi4py import MPI
        except ImportError as exc:
            raise ImportError(
                "mpi4py is required for MPICommunicator.  "
                "Install with: pip install mpi4py"
            ) from exc

        self._mpi = MPI
        self._comm = comm if comm is not None else MPI.COMM_WORLD
        self._ops = {
            "sum": MPI.SUM,
            "max": MPI.MAX,
            "min": MPI.MIN,
            "or": MPI.LOR,
            "and": MPI.LAND,
        }

    @property
    def rank(self) -> int:
        return self._comm.Get_rank()

    @property
    def size(self) -> int:
        return self._comm.Get_size()

    def allreduce(self, value: Any, op: str = "sum") -> Any:
        if op not in self._ops:
            raise ValueError(f"Unknown reduction {op!r}.")
        if isinstance(value, np.ndarray):
            result = np.empty_like(value)
            self._comm.Allreduce(np.ascontiguousarray(value), result, op=self._ops[op])
            return result
        result = self._comm.allreduce(value, op=self._ops[op])
        if op in ("or", "and"):
            return bool(result)
        return float(result)

    def barrier(self) -> None:
        self._comm.Barrier()


class _SimulatedCommunicator(Communicator):
    """One rank of a :class:`SimulatedWorld`."""

    def __init__(self, world: "SimulatedWorld", rank: int) -> None:
        self._world = world
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._world.size

    def allreduce(self, value: Any, op: str = "sum") -> Any:
        world = self._world
        world._slots[self._rank] = value
        world._barrier.wait()
        result = combine(list(world._slots), op)
        # second wait: nobody overwrites a slot before all ranks have read
        world._barrier.wait()
        if isinstance(result, np.ndarray):
            return result.copy()
        return result

    def barrier(self) -> None:
        self._world._barrier.wait()


class SimulatedWorld:
    """Simulate *size* processes with one thread each.

    Every rank runs the same function with its own communicator; the
    reductions are synchronised with a barrier, so any divergence in
    the number of collective calls surfaces as a broken barrier instead
    of a silent hang.

    Args:
        size: Number of simulated processes.
        timeout: Seconds a rank may wait at a barrier.

    Example::

        world = SimulatedWorld(3)
        results = world.run(lambda comm: comm.allreduce(comm.rank, "max"))
        # results == [2.0, 2.0, 2.0]
    """

    def __init__(self, size: int, timeout: float = 30.0) -> None:
        if size < 1:
            raise ValueError(f"size must be positive, got {size}.")
        self.size = size
        self._slots: list[Any] = [None] * size
        self._barrier = threading.Barrier(size, timeout=timeout)
        self.communicators = [_SimulatedCommunicator(self, r) for r in range(size)]

    def run(self, func: Callable[[Communicator], Any]) -> list[Any]:
        """Run ``func(comm)`` on every rank and return the per-rank results.

        Exceptions raised on any rank are re-raised here.
        """
        with ThreadPoolExecutor(max_workers=self.size) as pool:
            futures = [pool.submit(self._guarded, func, c) for c in self.communicators]
            errors = [f.exception() for f in futures]

        failures = [e for e in errors if e is not None]
        if failures:
            # ranks released by abort() report BrokenBarrierError; show the cause
            root = [e for e in failures if not isinstance(e, threading.BrokenBarrierError)]
            raise (root or failures)[0]
        return [f.result() for f in futures]

    def _guarded(self, func: Callable[[Communicator], Any], comm: Communicator) -> Any:
        try:
            return func(comm)
        except BaseException:
            # release the other ranks instead of leaving them at the barrier
            self._barrier.abort()
            raise

    def __repr__(self) -> str:
        return f"SimulatedWorld(size={self.size})"
