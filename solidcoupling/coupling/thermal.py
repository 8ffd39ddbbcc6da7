"""Thermal coupling: conjugate heat transfer across a solid interface."""

from __future__ import annotations

import logging

import numpy as np

from solidcoupling.config import CouplingSettings
from solidcoupling.coupling.base import CouplingInterface
from solidcoupling.coupling.partners import PartnerDomain
from solidcoupling.parallel import Communicator
from solidcoupling.solid.base import SolidModel
from solidcoupling.zones import FaceZone, heat_flow_rate

logger = logging.getLogger(__name__)


class ThermalCouplingInterface(CouplingInterface):
    """Dirichlet-Neumann thermal coupling.

    The solid exports its interface temperature (relaxed) and receives
    the heat flux and temperature computed by the partner.  With the
    predictor on, the received heat flux and temperature are also
    extrapolated in time at the first iteration of a step.  With
    ``exchange_heat_transfer_coeff`` the two sides also swap their
    equivalent coefficients ``delta / lambda``; the solid then applies a
    Robin condition built from the partner's temperature and flux.

    Args:
        solid: Solid model providing temperatures.
        partner: Partner domain providing heat fluxes.
        exchange_heat_transfer_coeff: Swap ``delta / lambda`` every
            iteration.
        **kwargs: Forwarded to :class:`CouplingInterface`.
    """

    coupling_type = "thermal"
    primary_field = "temperature"

    def __init__(
        self,
        solid: SolidModel,
        partner: PartnerDomain,
        zone: FaceZone | None = None,
        settings: CouplingSettings | None = None,
        interface_id: int = 0,
        patch_id: int | None = None,
        comm: Communicator | None = None,
        name: str | None = None,
        exchange_heat_transfer_coeff: bool = False,
    ) -> None:
        super().__init__(
            solid, partner, zone, settings, interface_id, patch_id, comm, name,
        )
        self.exchange_heat_transfer_coeff = exchange_heat_transfer_coeff
        self.heat_flow_rates: list[tuple[float, float]] = []

    def compute_interface_quantities(self) -> dict[str, np.ndarray]:
        T = self.solid.face_zone_temperature(self.interface_id)
        quantities = {"temperature": self.zone.to_global(T, self.comm)}
        if self.exchange_heat_transfer_coeff:
            coeff = self.solid.face_zone_heat_transfer_coeff(self.interface_id)
            quantities["heatTransferCoeff"] = self.zone.to_global(coeff, self.comm)
        return quantities

    def send_to_partner(self) -> None:
        self.partner.set_interface_field("temperature", self.fields["temperature"].value)
        if self.exchange_heat_transfer_coeff:
            self.partner.set_equivalent_heat_transfer_coefficient(
                self.fields["heatTransferCoeff"].value,
            )

    def partner_quantities(self) -> dict[str, np.ndarray]:
        quantities = {
            "heatFlux": self.partner.interface_field("heatFlux"),
            "partnerTemperature": self.partner.interface_field("temperature"),
        }
        if self.exchange_heat_transfer_coeff:
            quantities["partnerHeatTransferCoeff"] = (
                self.partner.equivalent_heat_transfer_coefficient()
            )
        return quantities

    def apply_imported(self) -> None:
        zone = self.zone
        q = zone.to_local(self.imported["heatFlux"].value)
        T = zone.to_local(self.imported["partnerTemperature"].value)
        self.solid.set_temperature_and_heat_flux(self.interface_id, self.patch_id, T, q)
        if self.exchange_heat_transfer_coeff:
            coeff = zone.to_local(self.imported["partnerHeatTransferCoeff"].value)
            self.solid.set_equivalent_heat_transfer_coefficient(
                self.interface_id, self.patch_id, coeff,
            )

    def log_iteration(self) -> None:
        solid_q = self.solid.face_zone_heat_flux(self.interface_id)
        partner_q = self.zone.to_local(self.partner.interface_field("heatFlux"))
        solid_rate = heat_flow_rate(self.zone, solid_q, self.comm)
        partner_rate = heat_flow_rate(self.zone, partner_q, self.comm)
        self.heat_flow_rates.append((solid_rate, partner_rate))
        logger.info(
            "%s: heat flow rate, solid %.6e W, %s %.6e W",
            self.name, solid_rate, self.partner.name, partner_rate,
        )
