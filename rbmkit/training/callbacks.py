"""Callback system for RBM training.

Callbacks hook into the iteration loop of ``Trainer`` for logging, weight
rendering and early stopping.
"""

from __future__ import annotations

import time
from abc import ABC
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from ..core.logging import logger
from ..core.types import Plotter

if TYPE_CHECKING:
    from ..models.rbm.model import RBM
    from .trainer import Trainer


class Callback(ABC):
    """Abstract base class for training callbacks."""

    def on_train_begin(self, trainer: Trainer) -> None:
        """Called at the beginning of training."""

    def on_train_end(self, trainer: Trainer) -> None:
        """Called at the end of training."""

    def on_iteration_start(self, trainer: Trainer, model: RBM) -> None:
        """Called before each CD update."""

    def on_iteration_end(
        self, trainer: Trainer, model: RBM, metrics: dict[str, float]
    ) -> None:
        """Called after each CD update with that iteration's metrics."""


class CallbackList:
    """Container for multiple callbacks."""

    def __init__(self, callbacks: list[Callback]):
        """Initialize callback list.

        Args:
            callbacks: List of callback instances
        """
        self.callbacks = callbacks
        self._should_stop = False

    @property
    def should_stop(self) -> bool:
        """Check if any callback requested stopping."""
        return self._should_stop

    def stop_training(self) -> None:
        """Signal that training should stop."""
        self._should_stop = True

    def append(self, callback: Callback) -> None:
        """Add a callback to the end of the list."""
        self.callbacks.append(callback)

    def __getattr__(self, name: str) -> Callable[..., None]:
        """Delegate hook calls to all callbacks."""

        def method(*args: Any, **kwargs: Any) -> None:
            for callback in self.callbacks:
                if hasattr(callback, name):
                    getattr(callback, name)(*args, **kwargs)

        return method

    def __len__(self) -> int:
        return len(self.callbacks)


class LoggingCallback(Callback):
    """Callback for logging training progress."""

    def __init__(self, log_every: int = 100, log_weights: bool = False):
        """Initialize logging callback.

        Args:
            log_every: Frequency of logging (in iterations)
            log_weights: Whether to log weight statistics
        """
        self.log_every = log_every
        self.log_weights = log_weights
        self.train_start_time: float | None = None

    def on_train_begin(self, trainer: Trainer) -> None:
        """Remember the start time."""
        self.train_start_time = time.time()

    def on_iteration_end(
        self, trainer: Trainer, model: RBM, metrics: dict[str, float]
    ) -> None:
        """Log iteration statistics."""
        if (trainer.iteration + 1) % self.log_every != 0:
            return

        log_dict = {"iteration": trainer.iteration, **metrics}
        if self.log_weights:
            log_dict["weight_norm"] = float(model.W.detach().norm())
            log_dict["weight_mean"] = float(np.mean(model.W.detach().cpu().numpy()))

        logger.debug("Training step", **log_dict)

    def on_train_end(self, trainer: Trainer) -> None:
        """Log total wall-clock time."""
        if self.train_start_time is not None:
            elapsed = time.time() - self.train_start_time
            logger.info("Training time", train_time=f"{elapsed:.1f}s")


class PlottingCallback(Callback):
    """Render weights and gradients on a fixed iteration cadence.

    Rendering is diagnostic only. Any failure inside the plotter is logged
    and training carries on.
    """

    def __init__(self, plotter: Plotter, render_every: int):
        """Initialize plotting callback.

        Args:
            plotter: Object with ``plot_network_gradient(model, gradient,
                batch_size)``
            render_every: Cadence in iterations; values below 1 disable it
        """
        self.plotter = plotter
        self.render_every = render_every
        self.num_renders = 0
        self.num_failures = 0

    def on_iteration_end(
        self, trainer: Trainer, model: RBM, metrics: dict[str, float]
    ) -> None:
        """Render if this iteration falls on the cadence."""
        if self.render_every < 1 or trainer.iteration % self.render_every != 0:
            return

        data = trainer.data
        try:
            gradient = model.get_gradient(data)
            self.plotter.plot_network_gradient(model, gradient, data.shape[0])
            self.num_renders += 1
        except Exception as exc:  # noqa: BLE001
            self.num_failures += 1
            logger.warning(
                "Weight rendering failed",
                iteration=trainer.iteration,
                error=str(exc),
            )


class EarlyStoppingCallback(Callback):
    """Stop when a monitored metric stops improving."""

    def __init__(
        self,
        patience: int = 10,
        min_delta: float = 1e-4,
        monitor: str = "reconstruction_loss",
        mode: str = "min",
    ):
        """Initialize early stopping callback.

        Args:
            patience: Number of iterations to wait for improvement
            min_delta: Minimum change to qualify as improvement
            monitor: Metric to monitor
            mode: 'min' or 'max' for monitored metric
        """
        self.patience = patience
        self.min_delta = min_delta
        self.monitor = monitor
        self.mode = mode

        self.best_value = float("inf") if mode == "min" else float("-inf")
        self.patience_counter = 0

    def on_iteration_end(
        self, trainer: Trainer, model: RBM, metrics: dict[str, float]
    ) -> None:
        """Check for improvement."""
        if self.monitor not in metrics:
            return

        current_value = metrics[self.monitor]

        if self.mode == "min":
            improved = current_value < (self.best_value - self.min_delta)
        else:
            improved = current_value > (self.best_value + self.min_delta)

        if improved:
            self.best_value = current_value
            self.patience_counter = 0
        else:
            self.patience_counter += 1

        if self.patience_counter >= self.patience:
            logger.info(
                "Early stopping triggered",
                monitor=self.monitor,
                patience=self.patience,
                best_value=self.best_value,
            )
            trainer.callbacks.stop_training()
