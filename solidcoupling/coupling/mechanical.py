"""Mechanical (fluid-solid interaction) coupling."""

from __future__ import annotations

import logging

import numpy as np

from solidcoupling.coupling.base import CouplingInterface
from solidcoupling.zones import total_force

logger = logging.getLogger(__name__)


class MechanicalCouplingInterface(CouplingInterface):
    """Dirichlet-Neumann FSI coupling.

    The solid exports its interface displacement (relaxed) and is loaded
    by the traction computed by the partner.

    Attributes:
        forces: Net interface force after every iteration.
    """

    coupling_type = "mechanical"
    primary_field = "displacement"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.forces: list[np.ndarray] = []

    def compute_interface_quantities(self) -> dict[str, np.ndarray]:
        u = self.solid.face_zone_displacement(self.interface_id)
        return {"displacement": self.zone.to_global(u, self.comm)}

    def send_to_partner(self) -> None:
        self.partner.set_interface_field("displacement", self.fields["displacement"].value)

    def partner_quantities(self) -> dict[str, np.ndarray]:
        return {"traction": self.partner.interface_field("traction")}

    def apply_imported(self) -> None:
        traction = self.zone.to_local(self.imported["traction"].value)
        self.solid.set_traction(self.patch_id, traction)

    def log_iteration(self) -> None:
        traction = self.zone.to_local(self.partner.interface_field("traction"))
        force = total_force(self.zone, traction, self.comm)
        self.forces.append(force)
        logger.info(
            "%s: total force on %s (%.6e %.6e %.6e) N",
            self.name, self.zone.name, *force,
        )
