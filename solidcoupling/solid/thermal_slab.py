"""Heat conduction through a slab behind the coupling interface.

Classes
-------
ThermalSlab
    Transient or steady conduction with optional ``lambda(T)``.

Functions
---------
series_interface_temperature
    Steady interface temperature of two slabs in series.
"""

from __future__ import annotations

import logging

import numpy as np

from solidcoupling.config import CorrectorSettings
from solidcoupling.parallel import Communicator
from solidcoupling.solid.base import SolidModel
from solidcoupling.solid.columns import ColumnMesh, assemble_columns
from solidcoupling.solid.linear_solver import SolverPerformance, solve_linear_system
from solidcoupling.zones import FaceZone

logger = logging.getLogger(__name__)


def series_interface_temperature(
    hot_temperature: float,
    solid_conductance: float,
    cold_temperature: float,
    partner_conductance: float,
) -> float:
    """Steady interface temperature between two conducting layers.

    Args:
        hot_temperature: Far-side temperature of the solid (K).
        solid_conductance: ``lambda / L`` of the solid (W/m²K).
        cold_temperature: Far-side temperature of the partner (K).
        partner_conductance: ``lambda / L`` of the partner (W/m²K).

    Returns:
        ``(a_s T_hot + a_p T_cold) / (a_s + a_p)``.
    """
    a_s = solid_conductance
    a_p = partner_conductance
    return (a_s * hot_temperature + a_p * cold_temperature) / (a_s + a_p)


class ThermalSlab(SolidModel):
    """Slab of thickness *length* between a fixed temperature and the interface.

    Each interface face is backed by a column of ``n_cells`` cells.  The
    interface boundary is a Neumann condition on the heat flux leaving
    the slab.  Once the partner has sent its equivalent coefficient
    ``delta / lambda`` the condition becomes a Robin condition built from
    the partner's temperature, flux and coefficient.

    The conductivity may depend on temperature,
    ``lambda = lambda0 (1 + beta (T - T_ref))``, which makes each solve
    a Picard step and the corrector loop genuinely iterative.

    Args:
        zone: Local interface faces.
        length: Slab thickness (m).
        conductivity: Conductivity ``lambda0`` (W/mK).
        far_temperature: Temperature of the far boundary (K).
        n_cells: Cells per column.
        initial_temperature: Initial temperature.  Defaults to the far
            temperature.
        heat_capacity: Volumetric heat capacity ``rho c`` (J/m³K).
            ``None`` gives a steady problem.
        conductivity_slope: ``beta`` (1/K).
        reference_temperature: ``T_ref`` (K).
        settings: Corrector settings.
        comm: Communicator of the decomposition.
        patch_id: Interface patch index.

    Example::

        zone = FaceZone.uniform("interface", n_faces=4)
        slab = ThermalSlab(zone, length=0.1, conductivity=50.0,
                           far_temperature=400.0)
    """

    name = "thermalSlab"

    def __init__(
        self,
        zone: FaceZone,
        length: float,
        conductivity: float,
        far_temperature: float | np.ndarray,
        n_cells: int = 10,
        initial_temperature: float | None = None,
        heat_capacity: float | None = None,
        conductivity_slope: float = 0.0,
        reference_temperature: float = 0.0,
        settings: CorrectorSettings | None = None,
        comm: Communicator | None = None,
        patch_id: int = 0,
    ) -> None:
        super().__init__(zone, settings, comm, patch_id)
        if conductivity <= 0.0:
            raise ValueError(f"conductivity must be positive, got {conductivity}.")
        self.mesh = ColumnMesh(zone.n_faces, n_cells, length)
        self.conductivity = float(conductivity)
        self.conductivity_slope = float(conductivity_slope)
        self.reference_temperature = float(reference_temperature)
        self.heat_capacity = heat_capacity
        self.far_temperature = np.broadcast_to(
            np.asarray(far_temperature, dtype=float), (zone.n_faces,),
        ).copy()
        if initial_temperature is None:
            self.solution = np.repeat(self.far_temperature[:, np.newaxis], n_cells, axis=1)
        else:
            self.solution = np.full(self.mesh.shape, float(initial_temperature))

        self.heat_flux = np.zeros(zone.n_faces)
        self.partner_temperature: np.ndarray | None = None
        self.partner_coeff: np.ndarray | None = None

    def conductivity_field(self, temperature: np.ndarray) -> np.ndarray:
        """Cell conductivity for the given temperature field."""
        k = self.conductivity * (
            1.0 + self.conductivity_slope * (temperature - self.reference_temperature)
        )
        if np.any(k <= 0.0):
            raise ValueError(
                f"{self.name}: conductivity became non-positive "
                f"(min {k.min():.4g} W/mK); check conductivity_slope."
            )
        return k

    def _interface_terms(self, k_last: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Implicit and explicit parts of the interface outflow."""
        if self.partner_coeff is None or self.partner_temperature is None:
            return np.zeros_like(k_last), -self.heat_flux
        a = 2.0 * k_last / self.mesh.dx
        g = 1.0 / self.partner_coeff
        diag = a * g / (a + g)
        source = -a * (self.heat_flux - g * self.partner_temperature) / (a + g)
        return diag, source

    def solve_step(self, field: np.ndarray) -> SolverPerformance:
        k = self.conductivity_field(field)
        end_diag, end_source = self._interface_terms(k[:, -1])
        dt = self.step.delta_t if self.step is not None else None
        A, b = assemble_columns(
            self.mesh, k, self.far_temperature, end_diag, end_source,
            capacity=self.heat_capacity, dt=dt, old=self.old_solution,
        )
        return solve_linear_system(A, b, field.ravel(), self.settings.linear_solver)

    def _outflow(self) -> tuple[np.ndarray, np.ndarray]:
        k_last = self.conductivity_field(self.solution[:, -1])
        end_diag, end_source = self._interface_terms(k_last)
        return end_diag * self.solution[:, -1] - end_source, k_last

    # interface quantities --------------------------------------------------

    def face_zone_temperature(self, interface_id: int = 0) -> np.ndarray:
        q, k_last = self._outflow()
        return self.solution[:, -1] - q * self.mesh.dx / (2.0 * k_last)

    def face_zone_heat_flux(self, interface_id: int = 0) -> np.ndarray:
        return self._outflow()[0]

    def face_zone_heat_transfer_coeff(self, interface_id: int = 0) -> np.ndarray:
        k_last = self.conductivity_field(self.solution[:, -1])
        return 0.5 * self.mesh.dx / k_last

    def set_temperature_and_heat_flux(
        self,
        interface_id: int,
        patch_id: int,
        temperature: np.ndarray,
        heat_flux: np.ndarray,
    ) -> None:
        self.check_patch(patch_id)
        n = self.zone.n_faces
        self.partner_temperature = np.asarray(temperature, dtype=float).reshape(n).copy()
        self.heat_flux = np.asarray(heat_flux, dtype=float).reshape(n).copy()

    def set_equivalent_heat_transfer_coefficient(
        self,
        interface_id: int,
        patch_id: int,
        coeff: np.ndarray,
    ) -> None:
        self.check_patch(patch_id)
        coeff = np.asarray(coeff, dtype=float).reshape(self.zone.n_faces)
        if np.any(coeff <= 0.0):
            raise ValueError(
                f"{self.name}: equivalent heat transfer coefficient must be "
                "positive on every face."
            )
        self.partner_coeff = coeff.copy()
        logger.debug("%s: switched interface %d to a Robin condition", self.name, interface_id)
