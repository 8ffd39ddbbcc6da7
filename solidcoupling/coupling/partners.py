"""Partner domains on the other side of a coupling interface.

The partner (a fluid or a second solid) sees interface fields in the
global face-zone ordering.  Every process holds the whole interface, so
a partner computes the same result on every rank.

Classes
-------
PartnerDomain
    Abstract partner solver.
ConductingSlabPartner
    Conducting layer with a fixed far-side temperature.
LinearPressurePartner
    Pressure load that grows linearly with the normal displacement.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from solidcoupling.errors import UnimplementedCapability
from solidcoupling.time.stepper import TimeStep

logger = logging.getLogger(__name__)


class PartnerDomain(ABC):
    """Abstract partner solver.

    Args:
        n_faces: Number of faces of the whole interface.

    Attributes:
        name: Identifier used in messages.
        step: Current time step.
        n_evolves: Number of partner solves so far.
    """

    name: str = "partner"
    #: Fields the partner accepts through :meth:`set_interface_field`.
    accepts: tuple[str, ...] = ()
    #: Fields the partner provides through :meth:`interface_field`.
    provides: tuple[str, ...] = ()

    def __init__(self, n_faces: int) -> None:
        self.n_faces = int(n_faces)
        self.step: TimeStep | None = None
        self.n_evolves = 0
        self._fields: dict[str, np.ndarray] = {}

    def begin_time_step(self, step: TimeStep) -> None:
        self.step = step

    def set_interface_field(self, name: str, values: np.ndarray) -> None:
        """Receive an interface field from the solid side."""
        if name not in self.accepts:
            raise UnimplementedCapability(self.name, f"accepting field {name!r}")
        values = np.asarray(values, dtype=float)
        if len(values) != self.n_faces:
            raise ValueError(
                f"{self.name}: field {name!r} has {len(values)} faces, "
                f"expected {self.n_faces}."
            )
        self._fields[name] = values.copy()

    def received(self, name: str) -> np.ndarray:
        """Last value received for *name*."""
        try:
            return self._fields[name]
        except KeyError:
            raise RuntimeError(
                f"{self.name}: field {name!r} has not been received yet."
            ) from None

    @abstractmethod
    def interface_field(self, name: str) -> np.ndarray:
        """Return an interface field computed by the last :meth:`evolve`."""

    @abstractmethod
    def evolve(self) -> None:
        """Solve the partner problem for the received interface fields."""

    def set_equivalent_heat_transfer_coefficient(self, coeff: np.ndarray) -> None:
        raise UnimplementedCapability(
            self.name, "set_equivalent_heat_transfer_coefficient",
        )

    def equivalent_heat_transfer_coefficient(self) -> np.ndarray:
        """Partner-side ``delta / lambda`` on every face."""
        raise UnimplementedCapability(
            self.name, "equivalent_heat_transfer_coefficient",
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_faces={self.n_faces})"


class ConductingSlabPartner(PartnerDomain):
    """Steady conducting layer between the interface and a fixed temperature.

    Given the interface temperature ``T``, the heat flux entering the
    layer (leaving the solid) is ``q = lambda (T - T_far) / L``.

    Args:
        n_faces: Number of interface faces.
        length: Layer thickness ``L`` (m).
        conductivity: ``lambda`` (W/mK).
        far_temperature: ``T_far`` (K).
    """

    name = "conductingSlab"
    accepts = ("temperature",)
    provides = ("temperature", "heatFlux")

    def __init__(
        self,
        n_faces: int,
        length: float,
        conductivity: float,
        far_temperature: float,
    ) -> None:
        super().__init__(n_faces)
        if length <= 0.0 or conductivity <= 0.0:
            raise ValueError("length and conductivity must be positive.")
        self.length = float(length)
        self.conductivity = float(conductivity)
        self.far_temperature = float(far_temperature)
        self.heat_flux = np.zeros(self.n_faces)
        self.solid_coeff: np.ndarray | None = None

    @property
    def conductance(self) -> float:
        """``lambda / L`` (W/m²K)."""
        return self.conductivity / self.length

    def evolve(self) -> None:
        T = self.received("temperature")
        self.heat_flux = self.conductance * (T - self.far_temperature)
        self.n_evolves += 1

    def interface_field(self, name: str) -> np.ndarray:
        if name == "heatFlux":
            return self.heat_flux.copy()
        if name == "temperature":
            return self.received("temperature").copy()
        raise UnimplementedCapability(self.name, f"providing field {name!r}")

    def set_equivalent_heat_transfer_coefficient(self, coeff: np.ndarray) -> None:
        # the layer is linear; the solid coefficient is only recorded
        self.solid_coeff = np.asarray(coeff, dtype=float).copy()

    def equivalent_heat_transfer_coefficient(self) -> np.ndarray:
        return np.full(self.n_faces, self.length / self.conductivity)


class LinearPressurePartner(PartnerDomain):
    """Pressure load ``p = p0 + k (u . n)`` acting on the interface.

    The traction on the solid is ``t = -p n``.  A positive stiffness
    ``k`` pushes back harder the further the interface moves outward,
    like an enclosed fluid being compressed.

    Args:
        normals: Outward unit normals of the solid on the whole
            interface, shape ``(n_faces, 3)``.
        reference_pressure: ``p0`` (Pa).
        stiffness: ``k`` (Pa/m).
    """

    name = "linearPressure"
    accepts = ("displacement",)
    provides = ("traction", "pressure")

    def __init__(
        self,
        normals: np.ndarray,
        reference_pressure: float,
        stiffness: float,
    ) -> None:
        normals = np.asarray(normals, dtype=float).reshape(-1, 3)
        super().__init__(len(normals))
        self.normals = normals / np.linalg.norm(normals, axis=1)[:, np.newaxis]
        self.reference_pressure = float(reference_pressure)
        self.stiffness = float(stiffness)
        self.pressure = np.full(self.n_faces, self.reference_pressure)

    def evolve(self) -> None:
        u = self.received("displacement").reshape(self.n_faces, 3)
        u_n = np.einsum("ij,ij->i", u, self.normals)
        self.pressure = self.reference_pressure + self.stiffness * u_n
        self.n_evolves += 1

    def interface_field(self, name: str) -> np.ndarray:
        if name == "traction":
            return -self.pressure[:, np.newaxis] * self.normals
        if name == "pressure":
            return self.pressure.copy()
        raise UnimplementedCapability(self.name, f"providing field {name!r}")
