"""Axially loaded elastic bars behind the coupling interface.

Classes
-------
ElasticBar
    Small-strain bar per interface face, optionally strain-stiffening.
"""

from __future__ import annotations

import numpy as np

from solidcoupling.config import CorrectorSettings
from solidcoupling.parallel import Communicator
from solidcoupling.solid.base import SolidModel
from solidcoupling.solid.columns import ColumnMesh, assemble_columns
from solidcoupling.solid.linear_solver import SolverPerformance, solve_linear_system
from solidcoupling.zones import FaceZone


class ElasticBar(SolidModel):
    """Bar clamped at the far end and loaded by the interface traction.

    The bar runs along the outward normal of its face, so a positive
    axial displacement moves the interface outward.  Only the normal
    component ``t . n`` of the traction loads the bar.  With
    ``stiffening > 0`` the modulus grows with strain,
    ``E = E0 (1 + stiffening * strain)``, and each solve is a Picard
    step.

    Args:
        zone: Local interface faces.
        length: Bar length (m).
        youngs_modulus: ``E0`` (Pa).
        n_cells: Cells per bar.
        stiffening: Strain-stiffening coefficient.
        settings: Corrector settings.
        comm: Communicator of the decomposition.
        patch_id: Interface patch index.
    """

    name = "elasticBar"

    def __init__(
        self,
        zone: FaceZone,
        length: float,
        youngs_modulus: float,
        n_cells: int = 10,
        stiffening: float = 0.0,
        settings: CorrectorSettings | None = None,
        comm: Communicator | None = None,
        patch_id: int = 0,
    ) -> None:
        super().__init__(zone, settings, comm, patch_id)
        if youngs_modulus <= 0.0:
            raise ValueError(f"youngs_modulus must be positive, got {youngs_modulus}.")
        self.mesh = ColumnMesh(zone.n_faces, n_cells, length)
        self.youngs_modulus = float(youngs_modulus)
        self.stiffening = float(stiffening)
        self.solution = np.zeros(self.mesh.shape)
        self.traction = np.zeros((zone.n_faces, 3))

    @property
    def normal_traction(self) -> np.ndarray:
        """``t . n`` on every face."""
        return np.einsum("ij,ij->i", self.traction, self.zone.normals)

    def strain(self, displacement: np.ndarray) -> np.ndarray:
        """Cell axial strain, including the clamped far end."""
        n, m = self.mesh.shape
        x = np.concatenate([[0.0], self.mesh.cell_centres])
        u = np.hstack([np.zeros((n, 1)), displacement.reshape(n, m)])
        if m == 1:
            return u[:, 1:] / x[1]
        return np.gradient(u, x, axis=1)[:, 1:]

    def modulus_field(self, displacement: np.ndarray) -> np.ndarray:
        E = self.youngs_modulus * (1.0 + self.stiffening * self.strain(displacement))
        if np.any(E <= 0.0):
            raise ValueError(
                f"{self.name}: modulus became non-positive; the strain is too "
                "large for the stiffening law."
            )
        return E

    def solve_step(self, field: np.ndarray) -> SolverPerformance:
        E = self.modulus_field(field)
        n = self.zone.n_faces
        A, b = assemble_columns(
            self.mesh, E, np.zeros(n), np.zeros(n), self.normal_traction,
        )
        return solve_linear_system(A, b, field.ravel(), self.settings.linear_solver)

    def face_zone_displacement(self, interface_id: int = 0) -> np.ndarray:
        E_last = self.modulus_field(self.solution)[:, -1]
        u_face = self.solution[:, -1] + self.normal_traction * self.mesh.dx / (2.0 * E_last)
        return u_face[:, np.newaxis] * self.zone.normals

    def set_traction(self, patch_id: int, traction: np.ndarray) -> None:
        self.check_patch(patch_id)
        self.traction = np.asarray(traction, dtype=float).reshape(self.zone.n_faces, 3).copy()
