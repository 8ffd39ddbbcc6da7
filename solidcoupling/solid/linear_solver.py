"""Linear solve primitive used by the solid corrector loop.

Functions
---------
solve_linear_system
    Solve ``A x = b`` from an initial guess and report the solver
    performance.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from scipy import sparse

from solidcoupling.errors import ConfigurationError

SMALL = 1e-15


class SolverPerformance(NamedTuple):
    """Outcome of one linear solve.

    Attributes:
        initial_residual: Normalised residual of the initial guess.
        n_iterations: Solver iterations (1 for the direct solver).
        field: The solution.
        converged: False if an iterative solver stopped early.
    """

    initial_residual: float
    n_iterations: int
    field: np.ndarray
    converged: bool = True


def normalised_residual(
    A: sparse.spmatrix,
    b: np.ndarray,
    x: np.ndarray,
) -> float:
    """``|b - A x| / max(|b|, |A x|)``, the scale-free residual of *x*."""
    Ax = A @ x
    scale = max(np.linalg.norm(b), np.linalg.norm(Ax), SMALL)
    return float(np.linalg.norm(b - Ax) / scale)


def solve_linear_system(
    A: sparse.spmatrix,
    b: np.ndarray,
    x0: np.ndarray,
    method: str = "direct",
    rtol: float = 1e-10,
    maxiter: int = 1000,
) -> SolverPerformance:
    """Solve a sparse linear system.

    Args:
        A: System matrix, shape ``(n, n)``.
        b: Right-hand side, shape ``(n,)``.
        x0: Initial guess (the previous iterate), shape ``(n,)``.
        method: ``"direct"`` (sparse LU), ``"cg"`` or ``"bicgstab"``.
        rtol: Relative tolerance of the iterative solvers.
        maxiter: Iteration limit of the iterative solvers.

    Returns:
        A :class:`SolverPerformance`.
    """
    from scipy.sparse.linalg import bicgstab, cg, spsolve

    A = sparse.csr_matrix(A)
    b = np.asarray(b, dtype=float)
    x0 = np.asarray(x0, dtype=float).reshape(-1)
    init_res = normalised_residual(A, b, x0)

    if method == "direct":
        x = spsolve(A.tocsc(), b)
        return SolverPerformance(init_res, 1, np.asarray(x, dtype=float))

    solvers = {"cg": cg, "bicgstab": bicgstab}
    if method not in solvers:
        raise ConfigurationError(
            f"Unknown linear solver {method!r}; valid solvers are: "
            "direct, cg, bicgstab."
        )

    count = [0]

    def callback(xk: np.ndarray) -> None:
        count[0] += 1

    x, info = solvers[method](
        A, b, x0=x0, rtol=rtol, maxiter=maxiter, callback=callback,
    )
    return SolverPerformance(init_res, count[0], np.asarray(x, dtype=float), info == 0)
