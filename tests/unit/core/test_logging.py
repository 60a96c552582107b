"""Unit tests for logging functionality."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import structlog
from pydantic import ValidationError

from rbmkit.core.logging import (
    LogConfig,
    LoggerMixin,
    MetricProcessor,
    log_context,
    log_duration,
    setup_logging,
)


class TestLogConfig:
    """Test LogConfig class."""

    def test_default_config(self) -> None:
        """Test default log configuration."""
        config = LogConfig()

        assert config.level == logging.INFO
        assert config.console is True
        assert config.file is None
        assert config.structured is False
        assert config.metrics is True

    def test_level_conversion(self) -> None:
        """Test string to int level conversion."""
        assert LogConfig(level="DEBUG").level == logging.DEBUG
        assert LogConfig(level="warning").level == logging.WARNING
        assert LogConfig(level=40).level == 40

    def test_unknown_level(self) -> None:
        """Unknown level names are rejected."""
        with pytest.raises(ValidationError):
            LogConfig(level="chatty")

    def test_file_path_conversion(self) -> None:
        """Test file path handling."""
        config = LogConfig(file="logs/test.log")
        assert config.file == Path("logs/test.log")

    @patch("structlog.configure")
    def test_setup(self, mock_configure) -> None:
        """Test logger setup."""
        config = LogConfig(level="INFO", console=True, structured=False)

        logger = config.setup()

        mock_configure.assert_called_once()
        assert logger is not None


class TestProcessors:
    """Test structlog processors."""

    def test_processor_chain(self) -> None:
        """The renderer comes last and metric grouping is optional."""
        chain = LogConfig(structured=True).processors()
        assert isinstance(chain[-1], structlog.processors.JSONRenderer)
        assert any(isinstance(p, MetricProcessor) for p in chain)

        chain = LogConfig(structured=False, metrics=False).processors()
        assert isinstance(chain[-1], structlog.dev.ConsoleRenderer)
        assert not any(isinstance(p, MetricProcessor) for p in chain)

    def test_custom_metric_suffixes(self) -> None:
        """Only the configured suffixes are grouped."""
        processor = MetricProcessor(suffixes=("_rate",), keys=())
        event = processor(None, "info", {"learning_rate": 0.1, "train_loss": 1.0})

        assert event["metrics"] == {"learning_rate": 0.1}
        assert event["train_loss"] == 1.0

    def test_metric_processor(self) -> None:
        """Metric-like fields are gathered under 'metrics'."""
        processor = MetricProcessor()
        event = processor(
            None,
            "info",
            {
                "event": "CD step finished",
                "reconstruction_loss": 0.3,
                "weight_grad_norm": 1.5,
                "iteration": 4,
                "phase": "train",
            },
        )

        assert event["metrics"] == {
            "reconstruction_loss": 0.3,
            "weight_grad_norm": 1.5,
            "iteration": 4,
        }
        assert "reconstruction_loss" not in event
        assert event["iteration"] == 4
        assert event["phase"] == "train"

    def test_metric_processor_without_metrics(self) -> None:
        """Events without metric fields are untouched."""
        event = MetricProcessor()(None, "info", {"event": "hello"})
        assert "metrics" not in event


class TestLoggerMixin:
    """Test LoggerMixin functionality."""

    def test_logger_property(self) -> None:
        """The logger is created lazily and cached."""

        class Component(LoggerMixin):
            pass

        component = Component()
        assert component.logger is component.logger

    def test_log_methods(self) -> None:
        """Each level delegates to the logger."""

        class Component(LoggerMixin):
            pass

        component = Component()
        with patch.object(Component, "logger") as mock_logger:
            component.log_debug("d", a=1)
            component.log_info("i")
            component.log_warning("w")
            component.log_error("e")

        mock_logger.debug.assert_called_once_with("d", a=1)
        mock_logger.info.assert_called_once_with("i")
        mock_logger.warning.assert_called_once_with("w")
        mock_logger.error.assert_called_once_with("e")


class TestContextHelpers:
    """Test context managers."""

    def test_log_context_binds_and_unbinds(self) -> None:
        """Context variables exist only inside the block."""
        with log_context(run="cd-1"):
            assert structlog.contextvars.get_contextvars()["run"] == "cd-1"
        assert "run" not in structlog.contextvars.get_contextvars()

    def test_log_duration(self) -> None:
        """The duration is logged on exit."""
        mock_logger = MagicMock()
        with log_duration(mock_logger, "done", step=1):
            pass

        _, kwargs = mock_logger.info.call_args
        assert kwargs["step"] == 1
        assert kwargs["duration"] >= 0

    def test_log_duration_level(self) -> None:
        """The level can be chosen."""
        mock_logger = MagicMock()
        with log_duration(mock_logger, "done", level="debug"):
            pass

        mock_logger.debug.assert_called_once()
        mock_logger.info.assert_not_called()


def test_setup_logging_to_file(tmp_path: Path) -> None:
    """Structured logs are written to the configured file."""
    log_file = tmp_path / "logs" / "train.log"
    setup_logging(level="INFO", console=False, file=log_file, structured=True)

    structlog.get_logger("file-test").info("hello", train_loss=0.5)

    assert log_file.exists()
    content = log_file.read_text()
    assert "hello" in content
    assert "train_loss" in content
