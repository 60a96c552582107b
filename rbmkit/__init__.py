"""rbmkit: Restricted Boltzmann Machines trained with contrastive divergence.

A PyTorch library for RBMs with binary, gaussian, softmax, linear and
rectified units, block Gibbs sampling and CD-k training.
"""

__version__ = "0.1.0"
__author__ = "rbmkit Contributors"
__license__ = "MIT"

from . import core, models, sampling, training, utils

# Import key classes for convenience
from .core.config import RBMConfig
from .core.exceptions import ConfigurationError, RBMError, ShapeMismatchError
from .core.logging import logger, setup_logging
from .core.registry import hidden_units, visible_units
from .core.types import HiddenUnit, SamplePair, VisibleUnit

# Models
from .models.base import LatentVariableModel
from .models.rbm import RBM

# Sampling
from .sampling.base import GibbsSampler
from .sampling.gradient import ContrastiveDivergence, GradientBundle

# Training
from .training.callbacks import (
    Callback,
    CallbackList,
    EarlyStoppingCallback,
    LoggingCallback,
    PlottingCallback,
)
from .training.metrics import MetricsTracker
from .training.optimizer import GradientUpdater
from .training.trainer import Trainer

# Utilities
from .utils.random import RandomSource
from .utils.visualization import NetworkPlotter, visualize_filters


def create_rbm(
    visible_units: int, hidden_units: int, **config_kwargs: object
) -> RBM:
    """Build an RBM from layer sizes and configuration overrides.

    Example:
        >>> model = create_rbm(784, 500, visible_unit="gaussian", k=2)
    """
    config = RBMConfig(
        visible_units=visible_units, hidden_units=hidden_units, **config_kwargs
    )
    return RBM(config)


__all__ = [
    # Version
    "__version__",

    # Modules
    "core", "models", "sampling", "training", "utils",

    # Config and errors
    "RBMConfig", "RBMError", "ConfigurationError", "ShapeMismatchError",

    # Logging
    "logger", "setup_logging",

    # Units
    "VisibleUnit", "HiddenUnit", "SamplePair", "visible_units", "hidden_units",

    # Models
    "LatentVariableModel", "RBM", "create_rbm",

    # Sampling
    "GibbsSampler", "ContrastiveDivergence", "GradientBundle",

    # Training
    "Trainer", "GradientUpdater", "MetricsTracker",
    "Callback", "CallbackList", "LoggingCallback", "PlottingCallback",
    "EarlyStoppingCallback",

    # Utilities
    "RandomSource", "NetworkPlotter", "visualize_filters",
]
