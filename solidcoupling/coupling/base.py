"""Partitioned Dirichlet-Neumann coupling interface.

Classes
-------
CouplingInterface
    Abstract coupling between a solid model and a partner domain.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from solidcoupling.config import CouplingSettings
from solidcoupling.convergence.monitor import ConvergenceMonitor, ConvergenceStatus
from solidcoupling.convergence.norms import SMALL
from solidcoupling.coupling.partners import PartnerDomain
from solidcoupling.fields import CoupledField
from solidcoupling.parallel import Communicator, SerialCommunicator
from solidcoupling.relaxation.base import RelaxationStrategy, make_relaxation
from solidcoupling.solid.base import SolidModel
from solidcoupling.time.stepper import Stepper, TimeStep
from solidcoupling.zones import FaceZone

logger = logging.getLogger(__name__)


class CouplingInterface(ABC):
    """Abstract Dirichlet-Neumann coupling interface.

    One call to :meth:`evolve` performs one coupling iteration:

    1. *exchange*: hand the partner's interface quantities to the solid
       (at the first iteration of a step the partner is first solved
       with the current exported fields, or its quantities are
       predicted in time);
    2. *correct solid*: run the solid corrector loop;
    3. *compute*: collect the solid's interface quantities in global
       face-zone order;
    4. *relax*: relax every exported field with its own strategy;
    5. *partner solve*: send the relaxed fields to the partner and
       solve it;
    6. *check*: normalised residual and convergence decision.

    Exported and imported fields live in global face-zone ordering and
    are identical on every process, so their relaxation uses a serial
    communicator.  The convergence monitor still uses the real
    communicator, which keeps the log on the master rank.

    Args:
        solid: Solid model.
        partner: Partner domain.
        zone: Local interface faces.  Defaults to ``solid.zone``.
        settings: Outer-loop settings (tolerance, iteration bounds,
            relaxation, predictor).
        interface_id: Index of the interface in the solid model.
        patch_id: Interface patch.  Defaults to ``solid.patch_id``.
        comm: Communicator.  Defaults to ``solid.comm``.
        name: Label used in log messages.

    Attributes:
        coupling_type: Physics of the interface.
        primary_field: Name of the main exported field.
        fields: Exported fields by name.
        imported: Fields received from the partner, by name.
        relaxations: Relaxation strategy of each exported field.
        iteration: Coupling iterations done in the current step.
        last_status: Status of the last convergence check.
    """

    coupling_type: str
    primary_field: str

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
    ) -> None:
        self.solid = solid
        self.partner = partner
        self.zone = zone if zone is not None else solid.zone
        self.settings = settings or CouplingSettings()
        self.interface_id = interface_id
        self.patch_id = solid.patch_id if patch_id is None else patch_id
        self.comm = comm or solid.comm
        self.name = name or f"{self.coupling_type}Interface{interface_id}"
        if partner.n_faces != self.zone.n_global:
            raise ValueError(
                f"{self.name}: partner has {partner.n_faces} faces but zone "
                f"{self.zone.name!r} has {self.zone.n_global}."
            )

        self.fields: dict[str, CoupledField] = {}
        self.imported: dict[str, CoupledField] = {}
        self.relaxations: dict[str, RelaxationStrategy] = {}
        self.monitor: ConvergenceMonitor | None = None
        self.step: TimeStep | None = None
        self.iteration = 0
        self.last_status: ConvergenceStatus | None = None
        self._max_norms: dict[str, float] = {}

    @property
    def relaxation(self) -> RelaxationStrategy | None:
        """Relaxation strategy of the primary field."""
        return self.relaxations.get(self.primary_field)

    # setup -----------------------------------------------------------------

    def ensure_initialized(self) -> None:
        """Build relaxation, monitor and exported fields once."""
        if self.monitor is not None:
            return
        self.solid.ensure_initialized()
        for name, values in self.compute_interface_quantities().items():
            self.fields[name] = CoupledField(name, values)
            self.relaxations[name] = make_relaxation(
                self.settings.relaxation, SerialCommunicator(),
            )
        self.monitor = ConvergenceMonitor(self.settings, name=self.name, comm=self.comm)
        logger.info(
            "%s: %s coupling of %s with %s, %s relaxation of %s",
            self.name, self.coupling_type, self.solid.name, self.partner.name,
            self.relaxation.method, ", ".join(self.fields),
        )

    def begin_time_step(self, step: TimeStep) -> None:
        """Start a new time step; repeated calls for one index are no-ops."""
        self.ensure_initialized()
        if self.step is not None and step.index == self.step.index:
            return
        self.solid.begin_time_step(step)
        self.partner.begin_time_step(step)
        for f in self.fields.values():
            f.begin_time_step(step.index)
        for f in self.imported.values():
            f.begin_time_step(step.index)
        for relaxation in self.relaxations.values():
            relaxation.begin_time_step(step.index)
        self.monitor.begin_time_step(step.time)
        self.iteration = 0
        self.last_status = None
        self._max_norms = {}
        self.step = step

    # physics hooks ---------------------------------------------------------

    @abstractmethod
    def compute_interface_quantities(self) -> dict[str, np.ndarray]:
        """Solid-side exported quantities in global face-zone order."""

    @abstractmethod
    def send_to_partner(self) -> None:
        """Hand the current exported fields to the partner."""

    @abstractmethod
    def partner_quantities(self) -> dict[str, np.ndarray]:
        """Partner-side imported quantities in global face-zone order."""

    @abstractmethod
    def apply_imported(self) -> None:
        """Hand the current imported fields to the solid."""

    def log_iteration(self) -> None:
        """Report interface integrals after an iteration."""

    # iteration -------------------------------------------------------------

    def _can_predict_imported(self) -> bool:
        return bool(self.imported) and all(
            f.old_time is not None for f in self.imported.values()
        )

    def exchange(self, predicted: bool = False) -> None:
        """Receive the partner's quantities and hand them to the solid.

        Args:
            predicted: Seed the imported fields with their prediction in
                time instead of reading them from the partner.
        """
        if predicted:
            for f in self.imported.values():
                f.seed(f.predict())
        else:
            for name, values in self.partner_quantities().items():
                if name in self.imported:
                    self.imported[name].update(values)
                else:
                    self.imported[name] = CoupledField(name, values)
        self.apply_imported()

    def evolve(self) -> bool:
        """Perform one coupling iteration.

        Returns:
            True while another coupling iteration is required.
        """
        if self.step is None:
            raise RuntimeError(
                f"{self.name}: begin_time_step() must be called before evolve()."
            )
        it = self.iteration

        predicted = False
        if it == 0:
            if self.settings.predict:
                for f in self.fields.values():
                    f.seed(f.predict())
                predicted = self._can_predict_imported()
                logger.debug("%s: interface fields predicted in time", self.name)
            if not predicted:
                self.send_to_partner()
                self.partner.evolve()

        self.exchange(predicted)
        # every rank holds its boundary data before any solid solve starts
        self.comm.barrier()
        self.solid.evolve()

        for name, values in self.compute_interface_quantities().items():
            f = self.fields[name]
            f.update(self.relaxations[name].relax(values, f.value, it))

        self.send_to_partner()
        self.partner.evolve()

        residual = self.residual()
        self.log_iteration()
        solid_iters = self.solid.last_result.iterations if self.solid.last_result else 0
        status = self.monitor.check_converged(it, 0.0, solid_iters, residual)

        self.iteration += 1
        self.last_status = status
        return not status.stop

    def residual(self) -> float:
        """Normalised change of the exported fields in the last iteration.

        For each field the L2 norm of the change is divided by the largest
        such norm seen in the current time step; the result is the maximum
        over fields.
        """
        worst = 0.0
        for name, f in self.fields.items():
            norm = float(np.linalg.norm(f.increment))
            largest = max(self._max_norms.get(name, 0.0), norm)
            self._max_norms[name] = largest
            if largest > SMALL:
                worst = max(worst, norm / largest)
        return worst

    def solve_time_step(self) -> ConvergenceStatus:
        """Iterate the current time step until the monitor stops it."""
        while self.evolve():
            pass
        return self.last_status

    def run(self, stepper: Stepper) -> list[ConvergenceStatus]:
        """Solve every step of *stepper*, then call :meth:`end`.

        Returns:
            The final status of each time step.
        """
        statuses = []
        n_steps = stepper.n_steps
        try:
            for step in stepper:
                self.begin_time_step(step)
                status = self.solve_time_step()
                statuses.append(status)
                logger.info(
                    "%s: time step %d of %d (t = %g), %s after %d iterations",
                    self.name, step.index, n_steps, step.time, status.value,
                    self.iteration,
                )
        finally:
            self.end()
        return statuses

    def end(self) -> None:
        """Report run statistics and close the residual logs."""
        self.ensure_initialized()
        counters = self.monitor.counters
        if counters.total > 0:
            logger.warning(
                "%s: the maximum number of coupling iterations was reached in "
                "%d time step(s)", self.name, counters.time_steps_affected,
            )
        self.monitor.close()
        self.solid.end()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(solid={self.solid.name!r}, "
            f"partner={self.partner.name!r}, zone={self.zone.name!r})"
        )
