"""Settings for relaxation, corrector loops and coupling interfaces.

Classes
-------
RelaxationSettings
    Choice and parameters of the relaxation method.
CorrectorSettings
    Tolerances and iteration bounds of an inner (solid) corrector loop.
CouplingSettings
    Tolerances, iteration bounds and predictor switch of a coupling
    interface.

Settings are plain dataclasses validated on construction.  Each class
also has a ``from_dict`` constructor that understands the dictionary
keywords used in case files (``relaxationMethod``, ``nCorr``, ...);
keys that belong to other parts of the case are ignored.

Example::

    settings = CouplingSettings.from_dict({
        "relaxationMethod": "Aitken",
        "relaxationFactor": 0.3,
        "nOuterCorr": 30,
        "solutionTolerance": 1e-6,
    })
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from solidcoupling.errors import ConfigurationError

#: Canonical spelling of each relaxation method, keyed by lower case.
RELAXATION_METHODS = {
    "fixed": "fixed",
    "aitken": "Aitken",
    "quasinewton": "QuasiNewton",
}

LINEAR_SOLVERS = ("direct", "cg", "bicgstab")


def canonical_method(name: str) -> str:
    """Return the canonical spelling of a relaxation method name.

    Raises:
        ConfigurationError: If *name* is not a known method.
    """
    key = str(name).replace("-", "").replace("_", "").lower()
    try:
        return RELAXATION_METHODS[key]
    except KeyError:
        valid = ", ".join(RELAXATION_METHODS.values())
        raise ConfigurationError(
            f"Unknown relaxationMethod {name!r}; valid methods are: {valid}."
        ) from None


def _translate(
    data: Mapping[str, Any],
    keywords: Mapping[str, str],
    cls: type,
) -> dict[str, Any]:
    """Map case-file keywords and attribute names onto dataclass fields."""
    names = {f.name for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key in keywords:
            kwargs[keywords[key]] = value
        elif key in names:
            kwargs[key] = value
    return kwargs


@dataclass
class RelaxationSettings:
    """Relaxation method and its parameters.

    Args:
        method: ``"fixed"``, ``"Aitken"`` or ``"QuasiNewton"``.
        factor: Fixed relaxation factor, 0 < factor <= 1.  Also the
            starting factor of Aitken and the first step of Quasi-Newton.
        restart_frequency: Number of time steps after which the
            Quasi-Newton history is cleared.  Required for Quasi-Newton.
        max_history: Maximum number of stored Quasi-Newton pairs.
        aitken_min: Lower clip of the Aitken factor.
        aitken_max: Upper clip of the Aitken factor.
        condition_limit: Largest accepted condition number of the
            Quasi-Newton Gram matrix.
    """

    method: str = "fixed"
    factor: float = 1.0
    restart_frequency: int | None = None
    max_history: int = 20
    aitken_min: float = 1e-3
    aitken_max: float = 2.0
    condition_limit: float = 1e12

    keywords = {
        "relaxationMethod": "method",
        "relaxationFactor": "factor",
        "QuasiNewtonRestartFrequency": "restart_frequency",
        "QuasiNewtonMaxHistory": "max_history",
        "aitkenMinFactor": "aitken_min",
        "aitkenMaxFactor": "aitken_max",
    }

    def __post_init__(self) -> None:
        self.method = canonical_method(self.method)
        self.factor = float(self.factor)
        if not 0.0 < self.factor <= 1.0:
            raise ConfigurationError(
                f"relaxationFactor must lie in (0, 1], got {self.factor}."
            )
        if not 0.0 < self.aitken_min < self.aitken_max:
            raise ConfigurationError(
                f"Aitken factor bounds must satisfy 0 < min < max, got "
                f"[{self.aitken_min}, {self.aitken_max}]."
            )
        if int(self.max_history) < 1:
            raise ConfigurationError(
                f"QuasiNewtonMaxHistory must be positive, got {self.max_history}."
            )
        self.max_history = int(self.max_history)
        if self.method == "QuasiNewton":
            if self.restart_frequency is None:
                raise ConfigurationError(
                    "QuasiNewtonRestartFrequency is required for the "
                    "QuasiNewton relaxation method."
                )
            if int(self.restart_frequency) < 1:
                raise ConfigurationError(
                    "QuasiNewtonRestartFrequency must be a positive integer, "
                    f"got {self.restart_frequency}."
                )
            self.restart_frequency = int(self.restart_frequency)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RelaxationSettings":
        """Build settings from a case dictionary."""
        return cls(**_translate(data, cls.keywords, cls))


@dataclass
class CorrectorSettings:
    """Convergence control of an inner corrector loop.

    Args:
        solution_tolerance: Standard tolerance on the relative residual.
        alternative_tolerance: Looser tolerance accepted when the
            iteration budget is exhausted (>= *solution_tolerance*).
        min_corr: Minimum number of correctors, 0 < min_corr <= n_corr.
        n_corr: Maximum number of correctors.
        info_frequency: Iterations between residual log lines.
        use_alternative_tolerance: Accept results meeting the
            alternative tolerance at the iteration limit.
        residual_file: Path of the residual log, or ``None``.
        linear_solver: ``"direct"``, ``"cg"`` or ``"bicgstab"``.
        relaxation: Relaxation of the primary field.
    """

    solution_tolerance: float = 1e-6
    alternative_tolerance: float = 1e-4
    min_corr: int = 1
    n_corr: int = 100
    info_frequency: int = 100
    use_alternative_tolerance: bool = True
    residual_file: str | None = None
    linear_solver: str = "direct"
    relaxation: RelaxationSettings = field(default_factory=RelaxationSettings)

    keywords = {
        "solutionTolerance": "solution_tolerance",
        "alternativeTolerance": "alternative_tolerance",
        "minCorr": "min_corr",
        "nCorr": "n_corr",
        "infoFrequency": "info_frequency",
        "useAlternativeTolerance": "use_alternative_tolerance",
        "residualFile": "residual_file",
        "linearSolver": "linear_solver",
    }

    def __post_init__(self) -> None:
        if isinstance(self.relaxation, Mapping):
            self.relaxation = RelaxationSettings.from_dict(self.relaxation)
        self.solution_tolerance = float(self.solution_tolerance)
        self.alternative_tolerance = float(self.alternative_tolerance)
        if self.solution_tolerance <= 0.0 or self.alternative_tolerance <= 0.0:
            raise ConfigurationError(
                "solutionTolerance and alternativeTolerance must be positive."
            )
        if self.alternative_tolerance < self.solution_tolerance:
            raise ConfigurationError(
                f"alternativeTolerance ({self.alternative_tolerance}) must not "
                f"be tighter than solutionTolerance ({self.solution_tolerance})."
            )
        self.min_corr = int(self.min_corr)
        self.n_corr = int(self.n_corr)
        if not 0 < self.min_corr <= self.n_corr:
            raise ConfigurationError(
                f"Corrector bounds must satisfy 0 < minCorr <= nCorr, got "
                f"minCorr={self.min_corr}, nCorr={self.n_corr}."
            )
        self.info_frequency = int(self.info_frequency)
        if self.info_frequency < 1:
            raise ConfigurationError(
                f"infoFrequency must be a positive integer, got "
                f"{self.info_frequency}."
            )
        if self.linear_solver not in LINEAR_SOLVERS:
            raise ConfigurationError(
                f"Unknown linearSolver {self.linear_solver!r}; valid solvers "
                f"are: {', '.join(LINEAR_SOLVERS)}."
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CorrectorSettings":
        """Build settings from a flat case dictionary.

        Relaxation keywords may appear at the same level as the corrector
        keywords or in a nested ``relaxation`` dictionary.
        """
        kwargs = _translate(data, cls.keywords, cls)
        relaxation = data.get("relaxation")
        if relaxation is None:
            relaxation = RelaxationSettings.from_dict(data)
        kwargs["relaxation"] = relaxation
        return cls(**kwargs)


@dataclass
class CouplingSettings(CorrectorSettings):
    """Convergence control of a coupling interface.

    Adds the temporal predictor switch to :class:`CorrectorSettings` and
    uses outer-loop defaults (fewer iterations, every iteration logged).

    Args:
        predict: Seed the first coupling iteration of each time step
            with a linear extrapolation in time.
    """

    n_corr: int = 30
    info_frequency: int = 1
    predict: bool = False

    keywords = {
        **CorrectorSettings.keywords,
        "nOuterCorr": "n_corr",
        "outerCorrTolerance": "solution_tolerance",
        "predictTemperatureAndHeatFlux": "predict",
        "predictSolid": "predict",
    }
