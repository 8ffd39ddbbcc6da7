"""Tests for the solid models."""

import logging

import numpy as np
import pytest
from scipy.sparse.linalg import spsolve

from solidcoupling.config import CorrectorSettings
from solidcoupling.errors import UnimplementedCapability
from solidcoupling.solid import (
    ColumnMesh,
    ElasticBar,
    ThermalSlab,
    assemble_columns,
    series_interface_temperature,
)
from solidcoupling.time.stepper import TimeStep
from solidcoupling.zones import FaceZone

STEP = TimeStep(1, 1.0, 1.0)


def _slab(n_faces=3, **kwargs):
    zone = FaceZone.uniform("interface", n_faces=n_faces)
    kwargs.setdefault("length", 0.1)
    kwargs.setdefault("conductivity", 50.0)
    kwargs.setdefault("far_temperature", 400.0)
    return ThermalSlab(zone, **kwargs)


def _bar(**kwargs):
    zone = FaceZone.uniform("interface", n_faces=2, normal=(1.0, 0.0, 0.0))
    kwargs.setdefault("length", 1.0)
    kwargs.setdefault("youngs_modulus", 1e9)
    return ElasticBar(zone, **kwargs)


class TestColumns:
    def test_mesh_validation(self):
        with pytest.raises(ValueError):
            ColumnMesh(1, 0, 1.0)
        with pytest.raises(ValueError):
            ColumnMesh(1, 3, -1.0)

    def test_block_diagonal_symmetric(self):
        mesh = ColumnMesh(2, 3, 3.0)
        A, b = assemble_columns(mesh, np.ones(mesh.shape), np.zeros(2), np.zeros(2), np.ones(2))
        assert A.shape == (6, 6)
        np.testing.assert_allclose(A.toarray(), A.toarray().T)
        assert A[2, 3] == 0.0

    def test_linear_profile(self):
        mesh = ColumnMesh(1, 3, 3.0)
        A, b = assemble_columns(mesh, np.ones(mesh.shape), np.zeros(1), np.zeros(1), np.ones(1))
        np.testing.assert_allclose(spsolve(A.tocsc(), b), mesh.cell_centres)


class TestThermalSlab:
    def test_neumann_interface(self):
        slab = _slab()
        slab.begin_time_step(STEP)
        slab.set_temperature_and_heat_flux(0, 0, np.full(3, 350.0), np.full(3, 1000.0))
        slab.evolve()
        assert slab.last_result.status.converged
        np.testing.assert_allclose(slab.face_zone_temperature(0), 398.0, atol=1e-8)
        np.testing.assert_allclose(slab.face_zone_heat_flux(0), 1000.0)

    def test_heat_transfer_coeff(self):
        slab = _slab(n_cells=10)
        np.testing.assert_allclose(slab.face_zone_heat_transfer_coeff(0), 1e-4)

    def test_robin_interface(self):
        # partner: lambda / L = 500 W/m2K towards 300 K
        slab = _slab()
        slab.begin_time_step(STEP)
        T_p = np.full(3, 320.0)
        slab.set_temperature_and_heat_flux(0, 0, T_p, 500.0 * (T_p - 300.0))
        slab.set_equivalent_heat_transfer_coefficient(0, 0, np.full(3, 0.002))
        slab.evolve()
        expected = series_interface_temperature(400.0, 500.0, 300.0, 500.0)
        assert expected == pytest.approx(350.0)
        np.testing.assert_allclose(slab.face_zone_temperature(0), expected, atol=1e-8)

    def test_invalid_heat_transfer_coeff(self):
        slab = _slab()
        with pytest.raises(ValueError):
            slab.set_equivalent_heat_transfer_coefficient(0, 0, np.zeros(3))

    def test_temperature_dependent_conductivity(self):
        slab = _slab(conductivity_slope=2e-3, reference_temperature=400.0)
        slab.begin_time_step(STEP)
        slab.set_temperature_and_heat_flux(0, 0, np.full(3, 350.0), np.full(3, 2e4))
        slab.evolve()
        assert slab.last_result.status.converged
        assert slab.last_result.iterations > 2
        assert np.all(slab.face_zone_temperature(0) < 400.0)
        np.testing.assert_allclose(slab.face_zone_heat_flux(0), 2e4)

    def test_transient_step_bounded(self):
        slab = _slab(initial_temperature=300.0, heat_capacity=1e6)
        slab.begin_time_step(TimeStep(1, 100.0, 100.0))
        slab.evolve()
        T = slab.solution
        assert np.all((T >= 300.0) & (T <= 400.0))
        assert np.all(np.diff(T, axis=1) <= 0.0)

    def test_begin_time_step_idempotent(self):
        slab = _slab()
        slab.begin_time_step(STEP)
        slab.solution = slab.solution + 1.0
        slab.begin_time_step(STEP)
        np.testing.assert_allclose(slab.old_solution, 400.0)

    def test_evolve_requires_time_step(self):
        with pytest.raises(RuntimeError, match="begin_time_step"):
            _slab().evolve()

    def test_ensure_initialized_once(self):
        slab = _slab()
        slab.ensure_initialized()
        relaxation = slab.relaxation
        slab.ensure_initialized()
        assert slab.relaxation is relaxation

    def test_wrong_patch(self):
        with pytest.raises(ValueError, match="patch"):
            _slab().set_temperature_and_heat_flux(0, 1, np.zeros(3), np.zeros(3))

    def test_end_reports_max_iterations(self, caplog):
        slab = _slab(settings=CorrectorSettings(n_corr=1))
        slab.begin_time_step(STEP)
        slab.set_temperature_and_heat_flux(0, 0, np.zeros(3), np.full(3, 1000.0))
        slab.evolve()
        assert slab.counters.total == 1
        with caplog.at_level(logging.WARNING, logger="solidcoupling"):
            slab.end()
        assert "maximum number of correctors" in caplog.text


class TestElasticBar:
    def test_linear_bar(self):
        bar = _bar()
        bar.begin_time_step(STEP)
        bar.set_traction(0, np.tile([-1e6, 0.0, 0.0], (2, 1)))
        bar.evolve()
        u = bar.face_zone_displacement(0)
        assert u.shape == (2, 3)
        np.testing.assert_allclose(u[:, 0], -1e-3, rtol=1e-10)
        np.testing.assert_allclose(u[:, 1:], 0.0)

    def test_tangential_traction_ignored(self):
        bar = _bar()
        bar.begin_time_step(STEP)
        bar.set_traction(0, np.tile([0.0, 5e5, 0.0], (2, 1)))
        bar.evolve()
        np.testing.assert_allclose(bar.face_zone_displacement(0), 0.0, atol=1e-15)

    def test_strain_softening_under_compression(self):
        bar = _bar(stiffening=50.0)
        bar.begin_time_step(STEP)
        bar.set_traction(0, np.tile([-1e6, 0.0, 0.0], (2, 1)))
        bar.evolve()
        assert bar.last_result.status.converged
        assert np.all(np.abs(bar.face_zone_displacement(0)[:, 0]) > 1e-3)


class TestCapabilities:
    def test_bar_has_no_temperature(self):
        with pytest.raises(UnimplementedCapability, match="elasticBar.*interface 0"):
            _bar().face_zone_temperature(0)

    def test_slab_has_no_traction(self):
        with pytest.raises(NotImplementedError):
            _slab().set_traction(0, np.zeros((3, 3)))

    def test_error_attributes(self):
        with pytest.raises(UnimplementedCapability) as info:
            _slab().face_zone_displacement(2)
        assert info.value.model == "thermalSlab"
        assert info.value.interface_id == 2
