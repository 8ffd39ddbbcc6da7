"""Exception types.

Classes
-------
SolidCouplingError
    Root of all package errors.
ConfigurationError
    Invalid or inconsistent settings, detected at setup.
NumericDegeneracy
    Near-singular relaxation update.  Always recovered locally.
UnimplementedCapability
    A solid model or partner asked for a quantity it does not provide.
"""

from __future__ import annotations


class SolidCouplingError(Exception):
    """Base class for errors raised by :mod:`solidcoupling`."""


class ConfigurationError(SolidCouplingError, ValueError):
    """Unknown relaxation method, inconsistent tolerances or bounds."""


class NumericDegeneracy(SolidCouplingError, ArithmeticError):
    """Vanishing Aitken denominator or singular Quasi-Newton system.

    Raised inside the relaxation strategies and caught there; the
    iteration falls back to a simpler update.
    """


class UnimplementedCapability(SolidCouplingError, NotImplementedError):
    """A model does not support the requested interface quantity.

    Args:
        model: Name of the model (or its type name).
        capability: The missing capability, e.g. ``"face_zone_temperature"``.
        interface_id: Interface index the request was made for.
    """

    def __init__(
        self,
        model: str,
        capability: str,
        interface_id: int | None = None,
    ) -> None:
        self.model = model
        self.capability = capability
        self.interface_id = interface_id
        where = "" if interface_id is None else f" on interface {interface_id}"
        super().__init__(
            f"{model} does not implement {capability}{where}.  "
            "Check that the coupling type matches the physics of the model."
        )
