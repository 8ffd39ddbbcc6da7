"""Visualization: residual history plots."""

from solidcoupling.visualization.residuals import plot_residual_history

__all__ = ["plot_residual_history"]
