"""Tests for the Quasi-Newton increment history."""

import numpy as np
import pytest

from solidcoupling.relaxation.history import ResidualHistory


class TestResidualHistory:
    def test_capacity_evicts_oldest_pair(self):
        h = ResidualHistory(capacity=3, restart_frequency=10)
        for i in range(5):
            h.append(np.full(2, float(i)), np.full(2, 10.0 + i))
            assert len(h.inputs) == len(h.outputs) == len(h.time_indices)
        assert len(h) == 3
        assert h.inputs[0][0] == 2.0
        assert h.outputs[0][0] == 12.0

    def test_restart(self):
        h = ResidualHistory(capacity=5, restart_frequency=2)
        assert h.begin_time_step(1) is False
        h.append(np.ones(2), np.ones(2))
        assert h.begin_time_step(2) is False
        assert len(h) == 1
        assert h.begin_time_step(3) is True
        assert len(h) == 0
        assert h.n_restarts == 1

    def test_repeated_time_index(self):
        h = ResidualHistory(capacity=5, restart_frequency=1)
        h.begin_time_step(1)
        h.append(np.ones(2), np.ones(2))
        assert h.begin_time_step(1) is False
        assert len(h) == 1

    def test_time_tags(self):
        h = ResidualHistory(capacity=5, restart_frequency=10)
        h.begin_time_step(4)
        h.append(np.ones(1), np.ones(1))
        h.append(np.ones(1), np.ones(1), time_index=7)
        assert h.time_indices == [4, 7]

    def test_matrices_flatten_vectors(self):
        h = ResidualHistory(capacity=5, restart_frequency=10)
        h.append(np.ones((2, 3)), 2 * np.ones((2, 3)))
        h.append(np.zeros((2, 3)), np.ones((2, 3)))
        V, W = h.matrices()
        assert V.shape == (6, 2)
        assert W.shape == (6, 2)
        np.testing.assert_allclose(V[:, 0], 2.0)

    def test_drop_oldest_and_clear(self):
        h = ResidualHistory(capacity=5, restart_frequency=10)
        h.append(np.ones(1), np.ones(1))
        h.append(np.zeros(1), np.zeros(1))
        h.drop_oldest()
        assert len(h) == 1
        assert h.inputs[0][0] == 0.0
        h.clear()
        assert len(h) == 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            ResidualHistory(capacity=0, restart_frequency=1)
        with pytest.raises(ValueError):
            ResidualHistory(capacity=1, restart_frequency=0)
