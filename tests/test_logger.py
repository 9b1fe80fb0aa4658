"""
Tests for logger functionality.
"""

import pytest

from dkronjob.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["api_calls"] == 0

    def test_log_with_context(self, tmp_path):
        """Context kwargs are appended as JSON."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )

        logger.info("Job saved", job="ping", attempt=1)

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert 'Job saved | Context: {"job": "ping", "attempt": 1}' in log_content

    def test_metrics_tracking(self):
        logger = StructuredLogger(name="test", enable_console=False)

        logger.record_api_call()
        logger.record_api_call()
        assert logger.metrics["api_calls"] == 2

        logger.record_operation_attempt("create_or_update")
        logger.record_operation_success("create_or_update")

        logger.record_operation_attempt("delete")
        logger.record_operation_failure("delete", "HTTPError_500")

        metrics = logger.get_metrics()

        assert metrics["operations_attempted"] == 2
        assert metrics["operations_successful"] == 1
        assert metrics["operations_failed"] == 1
        assert metrics["errors_by_type"]["HTTPError_500"] == 1
        assert metrics["operation_success_rate"]["create_or_update"]["success_rate"] == 1.0
        assert metrics["operation_success_rate"]["delete"]["success_rate"] == 0.0

    def test_success_rate_calculation(self):
        logger = StructuredLogger(name="test", enable_console=False)

        for _ in range(3):
            logger.record_operation_attempt("read")
        logger.record_operation_success("read")
        logger.record_operation_success("read")

        success_rate = logger.get_metrics()["operation_success_rate"]["read"]["success_rate"]
        assert success_rate == pytest.approx(0.667, rel=0.01)

    def test_no_file_by_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logger = StructuredLogger(name="test", enable_console=False)
        logger.info("Test message")
        assert not (tmp_path / "logs").exists()

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(
            name="test-summary",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )
        logger.record_operation_attempt("read")
        logger.record_operation_failure("read", "Timeout")
        logger.log_metrics_summary()

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert "Operations: 0/1 (0.0% success)" in log_content
        assert "Timeout: 1" in log_content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self):
        reset_logger()

        logger1 = get_logger(enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self):
        reset_logger()
        logger1 = get_logger(enable_console=False)
        logger1.record_api_call()

        reset_logger()
        logger2 = get_logger(enable_console=False)

        assert logger2.metrics["api_calls"] == 0

    def test_log_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DKRON_LOG_DIR", str(tmp_path))
        reset_logger()
        get_logger(enable_console=False).info("to file")
        assert len(list(tmp_path.glob("dkronjob_*.log"))) == 1

    def test_get_metrics_does_not_touch_live_counters(self):
        logger = StructuredLogger(name="test", enable_console=False)
        logger.record_operation_attempt("read")
        logger.get_metrics()
        assert "success_rate" not in logger.metrics["operation_success_rate"]["read"]
