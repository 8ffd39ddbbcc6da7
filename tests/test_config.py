"""Tests for the settings dataclasses."""

import pytest

from solidcoupling.config import (
    CorrectorSettings,
    CouplingSettings,
    RelaxationSettings,
    canonical_method,
)
from solidcoupling.errors import ConfigurationError


class TestRelaxationSettings:
    def test_defaults(self):
        s = RelaxationSettings()
        assert s.method == "fixed"
        assert s.factor == 1.0
        assert s.restart_frequency is None

    def test_method_case_insensitive(self):
        assert RelaxationSettings(method="aitken").method == "Aitken"
        assert RelaxationSettings(
            method="quasi_newton", restart_frequency=5,
        ).method == "QuasiNewton"

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError, match="relaxationMethod"):
            RelaxationSettings(method="Broyden")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            canonical_method("secant")

    @pytest.mark.parametrize("factor", [0.0, -0.5, 1.5])
    def test_factor_out_of_range(self, factor):
        with pytest.raises(ConfigurationError):
            RelaxationSettings(factor=factor)

    def test_quasi_newton_requires_restart_frequency(self):
        with pytest.raises(ConfigurationError, match="RestartFrequency"):
            RelaxationSettings(method="QuasiNewton")

    def test_quasi_newton_rejects_zero_restart_frequency(self):
        with pytest.raises(ConfigurationError):
            RelaxationSettings(method="QuasiNewton", restart_frequency=0)

    def test_aitken_bounds(self):
        with pytest.raises(ConfigurationError):
            RelaxationSettings(aitken_min=1.0, aitken_max=0.5)

    def test_from_dict_keywords(self):
        s = RelaxationSettings.from_dict({
            "relaxationMethod": "QuasiNewton",
            "relaxationFactor": 0.3,
            "QuasiNewtonRestartFrequency": 10,
            "QuasiNewtonMaxHistory": 4,
            "unrelated": "ignored",
        })
        assert s.method == "QuasiNewton"
        assert s.factor == pytest.approx(0.3)
        assert s.restart_frequency == 10
        assert s.max_history == 4


class TestCorrectorSettings:
    def test_defaults(self):
        s = CorrectorSettings()
        assert s.solution_tolerance == 1e-6
        assert s.alternative_tolerance == 1e-4
        assert s.n_corr == 100
        assert s.relaxation.method == "fixed"

    def test_alternative_must_not_be_tighter(self):
        with pytest.raises(ConfigurationError, match="alternativeTolerance"):
            CorrectorSettings(solution_tolerance=1e-4, alternative_tolerance=1e-6)

    def test_corrector_bounds(self):
        with pytest.raises(ConfigurationError):
            CorrectorSettings(min_corr=5, n_corr=3)
        with pytest.raises(ConfigurationError):
            CorrectorSettings(min_corr=0)

    def test_unknown_linear_solver(self):
        with pytest.raises(ConfigurationError, match="linearSolver"):
            CorrectorSettings(linear_solver="gmres")

    def test_from_dict_flat_relaxation(self):
        s = CorrectorSettings.from_dict({
            "solutionTolerance": 1e-8,
            "alternativeTolerance": 1e-5,
            "nCorr": 50,
            "relaxationMethod": "Aitken",
            "relaxationFactor": 0.5,
        })
        assert s.solution_tolerance == 1e-8
        assert s.n_corr == 50
        assert s.relaxation.method == "Aitken"
        assert s.relaxation.factor == 0.5

    def test_nested_relaxation_dict(self):
        s = CorrectorSettings(relaxation={"relaxationMethod": "Aitken"})
        assert isinstance(s.relaxation, RelaxationSettings)
        assert s.relaxation.method == "Aitken"


class TestCouplingSettings:
    def test_defaults(self):
        s = CouplingSettings()
        assert s.n_corr == 30
        assert s.info_frequency == 1
        assert s.predict is False

    def test_outer_keywords(self):
        s = CouplingSettings.from_dict({
            "nOuterCorr": 12,
            "outerCorrTolerance": 1e-5,
            "predictTemperatureAndHeatFlux": True,
        })
        assert s.n_corr == 12
        assert s.solution_tolerance == 1e-5
        assert s.predict is True
