"""Abstract solid model.

Classes
-------
SolidModel
    Solid-side physics driven by a coupling interface.

A solid model owns its primary field, one relaxation strategy, one
convergence monitor and one corrector loop.  These are built on the
first call to :meth:`SolidModel.ensure_initialized`; later calls are
no-ops.  Interface quantities a model cannot provide raise
:class:`~solidcoupling.errors.UnimplementedCapability`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from solidcoupling.config import CorrectorSettings
from solidcoupling.convergence.monitor import ConvergenceCounters, ConvergenceMonitor
from solidcoupling.errors import UnimplementedCapability
from solidcoupling.parallel import Communicator, SerialCommunicator
from solidcoupling.relaxation.base import RelaxationStrategy, make_relaxation
from solidcoupling.solid.corrector import CorrectorResult, SolidEquationCorrectorLoop
from solidcoupling.solid.linear_solver import SolverPerformance
from solidcoupling.time.stepper import TimeStep
from solidcoupling.zones import FaceZone

logger = logging.getLogger(__name__)


class SolidModel(ABC):
    """Abstract solid model.

    Args:
        zone: Local part of the coupling interface.
        settings: Corrector loop settings (tolerances, relaxation).
        comm: Communicator of the decomposition.
        patch_id: Boundary patch carrying the interface.

    Attributes:
        name: Model identifier used in messages.
        solution: Primary field, e.g. displacement or temperature.
        old_solution: Converged primary field of the previous time step.
        step: Current time step.
        last_result: Outcome of the last corrector loop.
    """

    name: str = "solid"

    def __init__(
        self,
        zone: FaceZone,
        settings: CorrectorSettings | None = None,
        comm: Communicator | None = None,
        patch_id: int = 0,
    ) -> None:
        self.zone = zone
        self.settings = settings or CorrectorSettings()
        self.comm = comm or SerialCommunicator()
        self.patch_id = patch_id
        self.solution: np.ndarray = np.zeros(0)
        self.old_solution: np.ndarray | None = None
        self.step: TimeStep | None = None
        self.last_result: CorrectorResult | None = None
        self._relaxation: RelaxationStrategy | None = None
        self._monitor: ConvergenceMonitor | None = None
        self._corrector: SolidEquationCorrectorLoop | None = None

    # lazily built members --------------------------------------------------

    def ensure_initialized(self) -> None:
        """Build relaxation, monitor and corrector loop once."""
        if self._corrector is not None:
            return
        self._relaxation = make_relaxation(self.settings.relaxation, self.comm)
        self._monitor = ConvergenceMonitor(self.settings, name=self.name, comm=self.comm)
        self._corrector = SolidEquationCorrectorLoop(
            self.settings, self._relaxation, self._monitor, self.comm,
        )

    @property
    def relaxation(self) -> RelaxationStrategy:
        self.ensure_initialized()
        return self._relaxation

    @property
    def monitor(self) -> ConvergenceMonitor:
        self.ensure_initialized()
        return self._monitor

    @property
    def corrector(self) -> SolidEquationCorrectorLoop:
        self.ensure_initialized()
        return self._corrector

    @property
    def counters(self) -> ConvergenceCounters:
        """"Maximum correctors reached" statistics."""
        return self.monitor.counters

    # time stepping ---------------------------------------------------------

    def begin_time_step(self, step: TimeStep) -> None:
        """Store the old-time field and reset per-step state.

        Repeated calls for the same step index are no-ops.
        """
        self.ensure_initialized()
        if self.step is not None and step.index == self.step.index:
            return
        self.old_solution = self.solution.copy()
        self._relaxation.begin_time_step(step.index)
        self._monitor.begin_time_step(step.time)
        self.step = step

    @abstractmethod
    def solve_step(self, field: np.ndarray) -> SolverPerformance:
        """Assemble the equation about *field* and solve it once."""

    def evolve(self) -> bool:
        """Run the corrector loop for the current boundary conditions.

        Returns:
            True.  Non-convergence is reported through the counters and
            the log, not through the return value.
        """
        if self.step is None:
            raise RuntimeError(
                f"{self.name}: begin_time_step() must be called before evolve()."
            )
        result = self.corrector.run(self.solve_step, self.solution, self.old_solution)
        self.solution = result.field
        self.last_result = result
        return True

    def end(self) -> None:
        """Report run statistics and close the residual log."""
        self.ensure_initialized()
        counters = self._monitor.counters
        if counters.total > 0:
            logger.warning(
                "%s: the maximum number of correctors was reached in %d time "
                "step(s), %d time(s) in total", self.name,
                counters.time_steps_affected, counters.total,
            )
        self._monitor.close()

    def check_patch(self, patch_id: int) -> None:
        if patch_id != self.patch_id:
            raise ValueError(
                f"{self.name}: patch {patch_id} is not the interface patch "
                f"({self.patch_id})."
            )

    # interface quantities --------------------------------------------------

    def face_zone_temperature(self, interface_id: int = 0) -> np.ndarray:
        """Temperature on the local interface faces."""
        raise UnimplementedCapability(self.name, "face_zone_temperature", interface_id)

    def face_zone_heat_flux(self, interface_id: int = 0) -> np.ndarray:
        """Normal heat flux leaving the solid through the interface faces."""
        raise UnimplementedCapability(self.name, "face_zone_heat_flux", interface_id)

    def face_zone_heat_transfer_coeff(self, interface_id: int = 0) -> np.ndarray:
        """Boundary distance over conductivity, ``delta / lambda``."""
        raise UnimplementedCapability(
            self.name, "face_zone_heat_transfer_coeff", interface_id,
        )

    def face_zone_displacement(self, interface_id: int = 0) -> np.ndarray:
        """Displacement vectors of the interface faces, ``(n_faces, 3)``."""
        raise UnimplementedCapability(self.name, "face_zone_displacement", interface_id)

    def set_traction(self, patch_id: int, traction: np.ndarray) -> None:
        """Prescribe the traction on the interface patch."""
        raise UnimplementedCapability(self.name, "set_traction")

    def set_temperature_and_heat_flux(
        self,
        interface_id: int,
        patch_id: int,
        temperature: np.ndarray,
        heat_flux: np.ndarray,
    ) -> None:
        """Prescribe the partner's interface temperature and heat flux."""
        raise UnimplementedCapability(
            self.name, "set_temperature_and_heat_flux", interface_id,
        )

    def set_equivalent_heat_transfer_coefficient(
        self,
        interface_id: int,
        patch_id: int,
        coeff: np.ndarray,
    ) -> None:
        """Prescribe the partner's equivalent coefficient ``delta / lambda``."""
        raise UnimplementedCapability(
            self.name, "set_equivalent_heat_transfer_coefficient", interface_id,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, zone={self.zone.name!r})"
