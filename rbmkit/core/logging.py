"""Structured logging for rbmkit, built on structlog.

Library code never configures logging itself; it only emits events through
``logger`` or ``LoggerMixin``. Applications call ``setup_logging`` once.
Per-update events (CD step finished, optimizer state reset) are DEBUG;
lifecycle events (model initialised, training started) are INFO.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from functools import partialmethod
from pathlib import Path
from typing import Any

import structlog
from pydantic import Field, field_validator
from structlog.types import EventDict, Processor, WrappedLogger

from .config import BaseConfig

# Try to import rich for pretty console output
try:
    from rich.console import Console
    from rich.logging import RichHandler

    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

LIBRARY_LOGGER = "rbmkit"
METRIC_SUFFIXES = ("_loss", "_error", "_energy", "_norm")
METRIC_KEYS = ("iteration", "k")


class MetricProcessor:
    """Collect numeric training quantities into a nested ``metrics`` dict.

    Numeric fields whose names end in one of ``suffixes`` are moved under
    ``metrics``. Fields named in ``keys`` are copied there and stay at the
    top level, so events remain searchable by iteration.
    """

    def __init__(
        self,
        suffixes: Iterable[str] = METRIC_SUFFIXES,
        keys: Iterable[str] = METRIC_KEYS,
    ):
        self.suffixes = tuple(suffixes)
        self.keys = frozenset(keys)

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        moved = [
            key
            for key, value in event_dict.items()
            if key.endswith(self.suffixes) and isinstance(value, int | float)
        ]
        metrics = {key: event_dict.pop(key) for key in moved}
        metrics.update({k: v for k, v in event_dict.items() if k in self.keys})

        if metrics:
            event_dict["metrics"] = metrics
        return event_dict


class LogConfig(BaseConfig):
    """Validated logging options."""

    level: int = Field(logging.INFO, description="Threshold of the root logger")
    console: bool = Field(True, description="Log to stderr")
    file: Path | None = Field(None, description="Optional log file")
    structured: bool = Field(False, description="Render events as JSON")
    colors: bool = Field(True, description="Colored console output (rich)")
    metrics: bool = Field(True, description="Group metric fields")

    @field_validator("level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> int:
        """Accept level names in any case as well as numeric levels."""
        if isinstance(v, str):
            level = logging.getLevelName(v.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {v}")
            return level
        return v

    @property
    def use_rich(self) -> bool:
        return self.colors and RICH_AVAILABLE

    def processors(self) -> list[Processor]:
        """Processor chain, ending in the JSON or console renderer."""
        chain: list[Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        if self.metrics:
            chain.append(MetricProcessor())

        if self.structured:
            chain.append(structlog.processors.JSONRenderer())
        else:
            chain.append(structlog.dev.ConsoleRenderer(colors=self.use_rich))
        return chain

    def handlers(self) -> list[logging.Handler]:
        """Standard-library handlers for the configured sinks."""
        handlers: list[logging.Handler] = []
        if self.console:
            if self.use_rich:
                handlers.append(
                    RichHandler(
                        console=Console(stderr=True),
                        show_time=False,
                        show_level=False,
                    )
                )
            else:
                handlers.append(logging.StreamHandler(sys.stderr))

        if self.file is not None:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))
        return handlers

    def setup(self) -> structlog.stdlib.BoundLogger:
        """Install this configuration and return the library logger."""
        structlog.configure(
            processors=self.processors(),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            level=self.level,
            handlers=self.handlers(),
            format="%(message)s",
            force=True,
        )
        return structlog.get_logger(LIBRARY_LOGGER)


class LoggerMixin:
    """Give a class a lazily created logger tagged with its class name."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if getattr(self, "_logger", None) is None:
            self._logger = structlog.get_logger(
                LIBRARY_LOGGER, component=type(self).__name__
            )
        return self._logger

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        getattr(self.logger, level)(message, **kwargs)

    log_debug = partialmethod(_log, "debug")
    log_info = partialmethod(_log, "info")
    log_warning = partialmethod(_log, "warning")
    log_error = partialmethod(_log, "error")


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind key-value pairs to every event logged inside the block.

    Example:
        with log_context(model="RBM", k=1):
            logger.info("Starting training")
    """
    structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*kwargs)


@contextmanager
def log_duration(
    logger: Any, message: str, level: str = "info", **kwargs: Any
) -> Iterator[None]:
    """Log ``message`` with the block's wall-clock ``duration`` in seconds."""
    start = time.perf_counter()
    try:
        yield
    finally:
        getattr(logger, level)(
            message, duration=time.perf_counter() - start, **kwargs
        )


def setup_logging(
    level: str | int = "INFO",
    console: bool = True,
    file: str | Path | None = None,
    structured: bool = False,
    colors: bool = True,
    metrics: bool = True,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog and the standard-library root logger.

    Args:
        level: Logging level name or number
        console: Whether to log to stderr
        file: File path for logging (if any)
        structured: Whether to render JSON instead of console output
        colors: Whether to use colored output (requires rich)
        metrics: Whether to group metric fields under ``metrics``

    Returns
    -------
        The library logger
    """
    config = LogConfig(
        level=level,
        console=console,
        file=file,
        structured=structured,
        colors=colors,
        metrics=metrics,
    )
    return config.setup()


# Default library logger
logger = structlog.get_logger(LIBRARY_LOGGER)
