"""Tests for residual norms and the convergence monitor."""

import logging

import numpy as np
import pytest

from solidcoupling.config import CorrectorSettings
from solidcoupling.convergence.monitor import (
    ConvergenceCounters,
    ConvergenceMonitor,
    ConvergenceStatus,
)
from solidcoupling.convergence.norms import (
    global_dot,
    global_max_magnitude,
    global_norm,
    magnitude,
    relative_residual,
)
from solidcoupling.convergence.residual_log import read_residual_log
from solidcoupling.parallel import SimulatedWorld


class TestNorms:
    def test_magnitude_vectors(self):
        np.testing.assert_allclose(magnitude(np.array([[3.0, 4.0, 0.0]])), [5.0])
        np.testing.assert_allclose(magnitude(np.array([-2.0, 1.0])), [2.0, 1.0])

    def test_dot_and_norm(self):
        a = np.array([1.0, 2.0, 2.0])
        assert global_dot(a, a) == pytest.approx(9.0)
        assert global_norm(a) == pytest.approx(3.0)

    def test_max_magnitude_empty(self):
        assert global_max_magnitude(np.zeros(0)) == 0.0

    def test_relative_residual(self):
        r = relative_residual(np.array([2.0]), np.array([1.5]), np.array([1.0]))
        assert r == pytest.approx(0.5)

    def test_relative_residual_fallback(self):
        # field back at its old-time value: normalise by the field itself
        r = relative_residual(np.array([2.0]), np.array([1.0]), np.array([2.0]))
        assert r == pytest.approx(0.5)

    def test_decomposed_norm(self):
        world = SimulatedWorld(2)
        results = world.run(lambda comm: global_norm(np.array([3.0 + comm.rank]), comm))
        assert results == pytest.approx([5.0, 5.0])


class TestConvergenceStatus:
    def test_flags(self):
        assert ConvergenceStatus.STANDARD_CONVERGED.converged
        assert ConvergenceStatus.ALTERNATIVE_CONVERGED.converged
        assert not ConvergenceStatus.MAX_ITERATIONS.converged
        assert ConvergenceStatus.MAX_ITERATIONS.stop
        assert not ConvergenceStatus.CONTINUE.stop


class TestConvergenceCounters:
    def test_time_steps_affected(self):
        c = ConvergenceCounters()
        c.increment()
        c.increment()
        c.begin_time_step()
        c.increment()
        assert c.total == 3
        assert c.current == 1
        assert c.time_steps_affected == 2


class TestConvergenceMonitor:
    def test_standard_convergence(self):
        monitor = ConvergenceMonitor(CorrectorSettings(solution_tolerance=1e-6))
        assert monitor.check_converged(0, 0.0, 1, 0.5) is ConvergenceStatus.CONTINUE
        assert monitor.check_converged(1, 0.0, 1, 1e-8) is ConvergenceStatus.STANDARD_CONVERGED

    def test_min_corr(self):
        monitor = ConvergenceMonitor(CorrectorSettings(min_corr=3, n_corr=10))
        assert monitor.check_converged(0, 0.0, 1, 0.0) is ConvergenceStatus.CONTINUE
        assert monitor.check_converged(1, 0.0, 1, 0.0) is ConvergenceStatus.CONTINUE
        assert monitor.check_converged(2, 0.0, 1, 0.0) is ConvergenceStatus.STANDARD_CONVERGED

    def test_initial_residual_blocks_convergence(self):
        monitor = ConvergenceMonitor(CorrectorSettings(n_corr=10))
        status = monitor.check_converged(3, 1e-2, 5, 1e-9)
        assert status is ConvergenceStatus.CONTINUE

    def test_alternative_tolerance(self):
        monitor = ConvergenceMonitor(CorrectorSettings(n_corr=3))
        monitor.begin_time_step(1.0)
        for it in range(2):
            monitor.check_converged(it, 0.0, 1, 1e-5)
        status = monitor.check_converged(2, 0.0, 1, 1e-5)
        assert status is ConvergenceStatus.ALTERNATIVE_CONVERGED
        assert monitor.counters.total == 1

    def test_max_iterations(self, caplog):
        monitor = ConvergenceMonitor(CorrectorSettings(n_corr=2), name="bar")
        monitor.check_converged(0, 0.0, 1, 0.1)
        with caplog.at_level(logging.WARNING, logger="solidcoupling"):
            status = monitor.check_converged(1, 0.0, 1, 0.1)
        assert status is ConvergenceStatus.MAX_ITERATIONS
        assert monitor.counters.current == 1
        assert "maximum number of iterations" in caplog.text

    def test_alternative_tolerance_disabled(self):
        settings = CorrectorSettings(n_corr=1, use_alternative_tolerance=False)
        monitor = ConvergenceMonitor(settings)
        assert monitor.check_converged(0, 0.0, 1, 1e-5) is ConvergenceStatus.MAX_ITERATIONS

    def test_counters_reset_per_time_step(self):
        monitor = ConvergenceMonitor(CorrectorSettings(n_corr=1))
        monitor.begin_time_step(1.0)
        monitor.check_converged(0, 0.0, 1, 1.0)
        monitor.begin_time_step(2.0)
        assert monitor.counters.current == 0
        monitor.check_converged(0, 0.0, 1, 1.0)
        assert monitor.counters.total == 2
        assert monitor.counters.time_steps_affected == 2

    def test_records(self):
        monitor = ConvergenceMonitor(CorrectorSettings())
        monitor.begin_time_step(0.5)
        monitor.check_converged(0, 0.0, 1, 1.0)
        monitor.check_converged(1, 0.0, 1, 0.1)
        monitor.begin_time_step(1.0)
        monitor.check_converged(0, 0.0, 1, 1.0)
        assert len(monitor.records) == 3
        assert [r.key for r in monitor.step_records()] == [(1.0, 1)]

    def test_log_cadence(self, tmp_path):
        path = tmp_path / "solid.dat"
        settings = CorrectorSettings(info_frequency=2, n_corr=5, residual_file=str(path))
        monitor = ConvergenceMonitor(settings)
        monitor.begin_time_step(1.0)
        for it, norm in enumerate([1.0, 0.5, 0.1, 0.05, 1e-9]):
            monitor.check_converged(it, 0.0, 1, norm)
        monitor.close()
        assert [r.iteration for r in read_residual_log(path)] == [2, 4, 5]

    def test_log_on_master_only(self, tmp_path):
        path = tmp_path / "solid.dat"
        settings = CorrectorSettings(info_frequency=1, residual_file=str(path))
        world = SimulatedWorld(2)

        def task(comm):
            monitor = ConvergenceMonitor(settings, comm=comm)
            monitor.begin_time_step(1.0)
            monitor.check_converged(0, 0.0, 1, 1.0)
            monitor.check_converged(1, 0.0, 1, 0.0)
            monitor.close()
            return monitor.log is None

        assert world.run(task) == [False, True]
        assert len(read_residual_log(path)) == 2

    def test_records_keep_increasing_across_loops(self, tmp_path):
        path = tmp_path / "solid.dat"
        settings = CorrectorSettings(info_frequency=1, n_corr=5, residual_file=str(path))
        monitor = ConvergenceMonitor(settings)
        monitor.begin_time_step(1.0)
        for _ in range(2):
            monitor.check_converged(0, 0.0, 1, 1.0)
            monitor.check_converged(1, 0.0, 1, 0.0)
        monitor.begin_time_step(2.0)
        monitor.check_converged(0, 0.0, 1, 0.0)
        monitor.close()
        keys = [r.key for r in monitor.records]
        assert keys == [(1.0, 1), (1.0, 2), (1.0, 3), (1.0, 4), (2.0, 1)]
        assert [r.key for r in read_residual_log(path)] == keys
