"""Persisted residual log.

The log is a plain columnar text file with one line per logged
iteration::

    # time outerIteration residualNorm
    0.1 1 1.000000e+00
    0.1 2 3.981072e-01

The file is created on the first write and only ever appended to, so a
restarted run continues the same file.  Within one session keys
``(time, iteration)`` are strictly increasing; a restart may go back in
time and append from there.

Classes
-------
ResidualRecord
    One ``(time, iteration, norm)`` entry.
ResidualLog
    Append-only writer.

Functions
---------
read_residual_log
    Parse a log file back into records.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, NamedTuple

logger = logging.getLogger(__name__)

HEADER = "# time outerIteration residualNorm\n"


class ResidualRecord(NamedTuple):
    """Residual norm of one completed iteration."""

    time: float
    iteration: int
    norm: float

    @property
    def key(self) -> tuple[float, int]:
        return (self.time, self.iteration)


def _parse_line(line: str) -> ResidualRecord | None:
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    time, iteration, norm = line.split()[:3]
    return ResidualRecord(float(time), int(iteration), float(norm))


def read_residual_log(path: str | Path) -> list[ResidualRecord]:
    """Read every record of a residual log file.

    Args:
        path: Log file path.

    Returns:
        Records in file order.
    """
    records = []
    with open(path) as f:
        for line in f:
            rec = _parse_line(line)
            if rec is not None:
                records.append(rec)
    return records


class ResidualLog:
    """Append-only residual log owned by one interface or solid model.

    Within one session, records must arrive with strictly increasing
    ``(time, iteration)`` keys; a record that does not is skipped with a
    warning.  When an existing file is reopened, its last key is kept as
    :attr:`resumed_key` but does not constrain the new session, so a run
    restarted from an earlier time appends to the same file.

    Args:
        path: Output file path.  Parent directories are created on the
            first write.

    Example::

        with ResidualLog("residuals.dat") as log:
            log.write(0.1, 1, 1.0)
            log.write(0.1, 2, 0.25)
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: IO[str] | None = None
        self._last_key: tuple[float, int] | None = None
        self._resumed_key: tuple[float, int] | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    @property
    def last_key(self) -> tuple[float, int] | None:
        """Key of the last record written in this session."""
        return self._last_key

    @property
    def resumed_key(self) -> tuple[float, int] | None:
        """Last key found in the file when it was reopened."""
        return self._resumed_key

    def _open(self) -> IO[str]:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            is_new = not self.path.exists() or self.path.stat().st_size == 0
            if not is_new and self._last_key is None:
                existing = read_residual_log(self.path)
                if existing:
                    self._resumed_key = existing[-1].key
            self._file = open(self.path, "a")
            if is_new:
                self._file.write(HEADER)
        return self._file

    def write(self, time: float, iteration: int, norm: float) -> ResidualRecord | None:
        """Append one record.

        Returns:
            The record written, or ``None`` if its key does not follow the
            previous key of this session.
        """
        record = ResidualRecord(float(time), int(iteration), float(norm))
        f = self._open()
        if self._last_key is not None and record.key <= self._last_key:
            logger.warning(
                "Residual log %s: key %s does not follow %s, record skipped",
                self.path, record.key, self._last_key,
            )
            return None
        if (
            self._last_key is None
            and self._resumed_key is not None
            and record.key <= self._resumed_key
        ):
            logger.info(
                "Residual log %s: restarting at time %g, the file ends at %s",
                self.path, record.time, self._resumed_key,
            )
        f.write(f"{record.time:.12g} {record.iteration:d} {record.norm:.6e}\n")
        f.flush()
        self._last_key = record.key
        return record

    def close(self) -> None:
        """Close the file; a later write reopens it in append mode."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "ResidualLog":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ResidualLog(path={str(self.path)!r}, open={self.is_open})"
