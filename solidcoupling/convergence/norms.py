"""Globally reduced norms of distributed fields.

All functions reduce over the processes of *comm*, so each rank
returns the same number for a field that is split across ranks.
Fields may be scalar per entry, shape ``(n,)``, or vector per entry,
shape ``(n, k)``.
"""

from __future__ import annotations

import numpy as np

from solidcoupling.parallel import Communicator, SerialCommunicator

SMALL = 1e-15
VSMALL = 1e-300


def _comm(comm: Communicator | None) -> Communicator:
    return comm if comm is not None else SerialCommunicator()


def magnitude(values: np.ndarray) -> np.ndarray:
    """Entry-wise magnitude: ``|x|`` for scalars, Euclidean norm for vectors."""
    values = np.asarray(values, dtype=float)
    if values.ndim <= 1:
        return np.abs(values)
    return np.linalg.norm(values.reshape(len(values), -1), axis=1)


def global_dot(a: np.ndarray, b: np.ndarray, comm: Communicator | None = None) -> float:
    """Inner product of two distributed fields."""
    local = float(np.vdot(np.ravel(a), np.ravel(b)))
    return _comm(comm).allreduce(local, "sum")


def global_norm(values: np.ndarray, comm: Communicator | None = None) -> float:
    """L2 norm of a distributed field."""
    return float(np.sqrt(max(global_dot(values, values, comm), 0.0)))


def global_max_magnitude(values: np.ndarray, comm: Communicator | None = None) -> float:
    """Largest entry magnitude of a distributed field (0 if empty everywhere)."""
    mag = magnitude(values)
    local = float(mag.max()) if mag.size else 0.0
    return _comm(comm).allreduce(local, "max")


def relative_residual(
    new: np.ndarray,
    prev_iter: np.ndarray,
    old_time: np.ndarray,
    comm: Communicator | None = None,
) -> float:
    """Change between corrector iterations relative to the step increment.

    ``max|x - x_prevIter| / max|x - x_oldTime|``, where the denominator
    falls back to ``max|x|`` when the field has not moved in this time
    step.
    """
    denom = global_max_magnitude(new - old_time, comm)
    if denom < SMALL:
        denom = max(global_max_magnitude(new, comm), SMALL)
    return global_max_magnitude(new - prev_iter, comm) / denom
