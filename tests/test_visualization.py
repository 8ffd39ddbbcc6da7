"""Tests for residual plots."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from solidcoupling.convergence.residual_log import ResidualLog, ResidualRecord  # noqa: E402
from solidcoupling.visualization import plot_residual_history  # noqa: E402


def _records():
    return [
        ResidualRecord(0.1, 1, 1.0),
        ResidualRecord(0.1, 2, 1e-3),
        ResidualRecord(0.2, 1, 1.0),
        ResidualRecord(0.2, 2, 0.0),
    ]


class TestPlotResidualHistory:
    def test_one_line_per_time_step(self):
        ax = plot_residual_history(_records())
        assert len(ax.get_lines()) == 2
        assert ax.get_yscale() == "log"
        plt.close("all")

    def test_tolerance_line(self):
        fig, ax = plt.subplots()
        out = plot_residual_history(_records(), ax=ax, tolerance=1e-6)
        assert out is ax
        assert len(ax.get_lines()) == 3
        plt.close(fig)

    def test_from_file(self, tmp_path):
        path = tmp_path / "residuals.dat"
        with ResidualLog(path) as log:
            for r in _records():
                log.write(r.time, r.iteration, r.norm)
        ax = plot_residual_history(path)
        assert len(ax.get_lines()) == 2
        plt.close("all")
