"""One-dimensional finite-volume columns behind interface faces.

Each interface face owns a column of ``n_cells`` cells running from a
far boundary (``x = 0``, fixed value) to the interface (``x = L``).
The diffusion-type equation::

    c dx/dt - d/dx(k dx/dx) = 0

is discretised with two-point fluxes; all columns are assembled into
one block-diagonal sparse system.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import sparse


@dataclass
class ColumnMesh:
    """Uniform columns, one per local interface face.

    Args:
        n_columns: Number of columns (local interface faces).
        n_cells: Cells per column.
        length: Column length (m).
    """

    n_columns: int
    n_cells: int
    length: float

    def __post_init__(self) -> None:
        if self.n_cells < 1:
            raise ValueError(f"n_cells must be positive, got {self.n_cells}.")
        if self.length <= 0.0:
            raise ValueError(f"length must be positive, got {self.length}.")

    @property
    def dx(self) -> float:
        """Cell size (m)."""
        return self.length / self.n_cells

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_columns, self.n_cells)

    @property
    def cell_centres(self) -> np.ndarray:
        """Distance of each cell centre from the far boundary."""
        return (np.arange(self.n_cells) + 0.5) * self.dx


def assemble_columns(
    mesh: ColumnMesh,
    coeff: np.ndarray,
    far_value: np.ndarray,
    end_diag: np.ndarray,
    end_source: np.ndarray,
    capacity: np.ndarray | float | None = None,
    dt: float | None = None,
    old: np.ndarray | None = None,
) -> tuple[sparse.csr_matrix, np.ndarray]:
    """Assemble the block-diagonal column system.

    Interior faces use the harmonic mean of the neighbouring cell
    coefficients.  At the interface end the boundary flux leaving the
    last cell is written as ``end_diag * x_last - end_source``.

    Args:
        mesh: Column mesh.
        coeff: Cell diffusion coefficient, shape ``(n_columns, n_cells)``.
        far_value: Fixed value at the far boundary, shape ``(n_columns,)``.
        end_diag: Implicit part of the interface flux, ``(n_columns,)``.
        end_source: Explicit part of the interface flux, ``(n_columns,)``.
        capacity: Storage coefficient (``None`` for a steady problem).
        dt: Time-step size.
        old: Old-time cell values for the transient term.

    Returns:
        Tuple ``(A, b)`` with ``n_columns * n_cells`` unknowns ordered
        column by column.
    """
    n, m = mesh.shape
    dx = mesh.dx
    k = np.asarray(coeff, dtype=float).reshape(n, m)
    idx = np.arange(n * m).reshape(n, m)

    diag = np.zeros((n, m))
    rhs = np.zeros((n, m))
    rows: list[np.ndarray] = []
    cols: list[np.ndarray] = []
    vals: list[np.ndarray] = []

    # far boundary: half-cell distance to the fixed value
    c_far = 2.0 * k[:, 0] / dx
    diag[:, 0] += c_far
    rhs[:, 0] += c_far * np.broadcast_to(far_value, (n,))

    if m > 1:
        k_face = 2.0 * k[:, :-1] * k[:, 1:] / (k[:, :-1] + k[:, 1:])
        c = k_face / dx
        diag[:, :-1] += c
        diag[:, 1:] += c
        rows += [idx[:, :-1].ravel(), idx[:, 1:].ravel()]
        cols += [idx[:, 1:].ravel(), idx[:, :-1].ravel()]
        vals += [-c.ravel(), -c.ravel()]

    diag[:, -1] += np.broadcast_to(end_diag, (n,))
    rhs[:, -1] += np.broadcast_to(end_source, (n,))

    if capacity is not None and dt:
        storage = np.broadcast_to(capacity, (n, m)) * dx / dt
        diag += storage
        if old is not None:
            rhs += storage * np.asarray(old, dtype=float).reshape(n, m)

    rows.append(idx.ravel())
    cols.append(idx.ravel())
    vals.append(diag.ravel())

    A = sparse.csr_matrix(
        (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
        shape=(n * m, n * m),
    )
    return A, rhs.ravel()
