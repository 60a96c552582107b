"""Core functionality for the rbmkit library."""

from .config import BaseConfig, RBMConfig
from .exceptions import ConfigurationError, RBMError, ShapeMismatchError
from .logging import (
    LogConfig,
    LoggerMixin,
    MetricProcessor,
    log_context,
    log_duration,
    logger,
    setup_logging,
)
from .registry import (
    Registry,
    hidden_units,
    register_hidden_unit,
    register_visible_unit,
    visible_units,
)
from .types import (
    Device,
    DType,
    GradientUpdaterProtocol,
    HiddenUnit,
    Plotter,
    SamplePair,
    Shape,
    TensorLike,
    UnitPolicy,
    VisibleUnit,
)

__all__ = [
    # Config
    "BaseConfig", "RBMConfig",

    # Errors
    "RBMError", "ConfigurationError", "ShapeMismatchError",

    # Logging
    "LogConfig", "LoggerMixin", "MetricProcessor",
    "setup_logging", "logger", "log_context", "log_duration",

    # Registry
    "Registry", "visible_units", "hidden_units",
    "register_visible_unit", "register_hidden_unit",

    # Types
    "TensorLike", "Device", "DType", "Shape",
    "VisibleUnit", "HiddenUnit", "SamplePair",
    "UnitPolicy", "GradientUpdaterProtocol", "Plotter",
]
