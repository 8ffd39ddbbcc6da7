"""Tests for the residual log file."""

import logging

import pytest

from solidcoupling.convergence.residual_log import (
    HEADER,
    ResidualLog,
    ResidualRecord,
    read_residual_log,
)


class TestResidualLog:
    def test_lazy_creation(self, tmp_path):
        path = tmp_path / "residuals.dat"
        log = ResidualLog(path)
        assert not path.exists()
        assert not log.is_open
        log.write(0.1, 1, 1.0)
        assert path.exists()
        log.close()

    def test_write_and_read(self, tmp_path):
        path = tmp_path / "residuals.dat"
        with ResidualLog(path) as log:
            log.write(0.1, 1, 1.0)
            log.write(0.1, 2, 0.25)
            log.write(0.2, 1, 1.0)
        assert path.read_text().startswith(HEADER)
        records = read_residual_log(path)
        assert [r.key for r in records] == [(0.1, 1), (0.1, 2), (0.2, 1)]
        assert records[1].norm == pytest.approx(0.25)

    def test_keys_strictly_increasing(self, tmp_path, caplog):
        path = tmp_path / "residuals.dat"
        with ResidualLog(path) as log:
            log.write(0.1, 2, 0.5)
            with caplog.at_level(logging.WARNING):
                assert log.write(0.1, 2, 0.4) is None
                assert log.write(0.1, 1, 0.4) is None
                assert log.write(0.05, 5, 0.4) is None
            assert log.last_key == (0.1, 2)
        assert "does not follow" in caplog.text
        assert [r.key for r in read_residual_log(path)] == [(0.1, 2)]

    def test_reopen_appends(self, tmp_path):
        path = tmp_path / "residuals.dat"
        with ResidualLog(path) as log:
            log.write(0.1, 1, 1.0)
        with ResidualLog(path) as log:
            log.write(0.1, 2, 0.5)
            assert log.resumed_key == (0.1, 1)
            assert log.last_key == (0.1, 2)
        assert path.read_text().count("#") == 1
        assert len(read_residual_log(path)) == 2

    def test_restart_from_earlier_time(self, tmp_path):
        path = tmp_path / "residuals.dat"
        with ResidualLog(path) as log:
            log.write(1.0, 1, 1.0)
            log.write(2.0, 1, 1.0)
        with ResidualLog(path) as log:
            assert log.write(2.0, 1, 0.5) is not None
            assert log.write(2.0, 2, 0.1) is not None
        keys = [r.key for r in read_residual_log(path)]
        assert keys == [(1.0, 1), (2.0, 1), (2.0, 1), (2.0, 2)]

    def test_close_keeps_session_order(self, tmp_path):
        path = tmp_path / "residuals.dat"
        log = ResidualLog(path)
        log.write(1.0, 3, 1.0)
        log.close()
        assert log.write(1.0, 2, 0.5) is None
        log.close()
        assert len(read_residual_log(path)) == 1

    def test_parent_directories_created(self, tmp_path):
        path = tmp_path / "case" / "logs" / "residuals.dat"
        with ResidualLog(path) as log:
            log.write(1.0, 1, 1e-3)
        assert path.exists()

    def test_write_returns_record(self, tmp_path):
        with ResidualLog(tmp_path / "r.dat") as log:
            rec = log.write(1, 3, 2e-4)
        assert rec == ResidualRecord(1.0, 3, 2e-4)
