"""Training utilities for RBMs."""

from .callbacks import (
    Callback,
    CallbackList,
    EarlyStoppingCallback,
    LoggingCallback,
    PlottingCallback,
)
from .metrics import (
    LOSS_FUNCTIONS,
    MetricsTracker,
    mean_squared_error,
    reconstruction_cross_entropy,
    squared_loss,
)
from .optimizer import GradientUpdater
from .trainer import Trainer

__all__ = [
    # Trainer
    "Trainer",
    "GradientUpdater",

    # Callbacks
    "Callback",
    "CallbackList",
    "LoggingCallback",
    "PlottingCallback",
    "EarlyStoppingCallback",

    # Metrics
    "MetricsTracker",
    "LOSS_FUNCTIONS",
    "reconstruction_cross_entropy",
    "squared_loss",
    "mean_squared_error",
]
