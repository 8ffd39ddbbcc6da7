"""Tests for the time module."""

import pytest

from solidcoupling.time.stepper import Stepper, TimeStep


class TestStepper:
    def test_n_steps(self):
        s = Stepper(t_end=100, dt=10)
        assert s.n_steps == 10

    def test_iteration(self):
        s = Stepper(t_end=100, dt=25)
        steps = list(s)
        assert len(steps) == 4
        assert steps[0] == TimeStep(1, 25.0, 25.0)
        assert steps[-1].index == 4
        assert steps[-1].time == pytest.approx(100.0)

    def test_last_step_truncated(self):
        steps = list(Stepper(t_end=1.0, dt=0.4))
        assert len(steps) == 3
        assert steps[-1].delta_t == pytest.approx(0.2)
        assert steps[-1].time == pytest.approx(1.0)

    def test_n_steps_counts_truncated_step(self):
        s = Stepper(t_end=1.0, dt=0.3, t_start=0.5)
        assert s.n_steps == len(list(s)) == 2

    def test_invalid_dt(self):
        with pytest.raises(ValueError):
            Stepper(t_end=1.0, dt=0.0)
