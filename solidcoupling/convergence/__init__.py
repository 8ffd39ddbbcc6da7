"""Convergence: residual norms, convergence decisions and residual logs."""

from solidcoupling.convergence.monitor import (
    ConvergenceCounters,
    ConvergenceMonitor,
    ConvergenceStatus,
)
from solidcoupling.convergence.norms import (
    global_dot,
    global_max_magnitude,
    global_norm,
    relative_residual,
)
from solidcoupling.convergence.residual_log import (
    ResidualLog,
    ResidualRecord,
    read_residual_log,
)

__all__ = [
    "ConvergenceCounters",
    "ConvergenceMonitor",
    "ConvergenceStatus",
    "global_dot",
    "global_max_magnitude",
    "global_norm",
    "relative_residual",
    "ResidualLog",
    "ResidualRecord",
    "read_residual_log",
]
