"""Training orchestration for RBMs.

The trainer runs repeated CD-k updates on a single batch, tracks metrics
and fires callbacks. It is single-threaded; one model must not be trained
from two threads at once.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from torch import Tensor
from tqdm.auto import tqdm

from ..core.logging import LoggerMixin, log_context
from ..core.types import Plotter
from .callbacks import Callback, CallbackList, LoggingCallback, PlottingCallback
from .metrics import MetricsTracker

if TYPE_CHECKING:
    from ..models.rbm.model import RBM


class Trainer(LoggerMixin):
    """Trainer for Restricted Boltzmann Machines.

    This class orchestrates the training process, handling:
    - The CD-k update loop
    - Metrics tracking and logging
    - Periodic weight rendering and early stopping through callbacks
    """

    def __init__(
        self,
        model: RBM,
        callbacks: list[Callback] | None = None,
        plotter: Plotter | None = None,
        show_progress: bool = True,
        log_every: int = 100,
    ):
        """Initialize trainer.

        Args:
            model: Model to train
            callbacks: Optional list of callbacks
            plotter: Optional plotting collaborator, invoked every
                ``render_weights_every`` iterations
            show_progress: Whether to display a progress bar
            log_every: Logging frequency in iterations
        """
        super().__init__()
        self.model = model
        self.show_progress = show_progress
        self.metrics = MetricsTracker()
        self.callbacks = self._setup_callbacks(callbacks, plotter, log_every)

        # Training state
        self.iteration = 0
        self.data: Tensor | None = None

    def _setup_callbacks(
        self,
        callbacks: list[Callback] | None,
        plotter: Plotter | None,
        log_every: int,
    ) -> CallbackList:
        """Setup default and user callbacks."""
        default_callbacks: list[Callback] = [LoggingCallback(log_every=log_every)]

        render_every = self.model.config.render_weights_every
        if plotter is not None and render_every > 0:
            default_callbacks.append(PlottingCallback(plotter, render_every))

        return CallbackList(default_callbacks + (callbacks or []))

    def fit(self, data: Tensor, num_iterations: int = 100) -> dict[str, Any]:
        """Train the model on a batch.

        Args:
            data: Training batch of shape (batch_size, visible_units)
            num_iterations: Number of CD updates to run

        Returns
        -------
            Training history and final metrics
        """
        self.data = self.model.prepare_input(data)
        config = self.model.config

        history: list[dict[str, float]] = []
        self.metrics.reset()

        with log_context(model=self.model.__class__.__name__, k=config.k):
            self.log_info(
                "Starting training",
                iterations=num_iterations,
                batch_size=self.data.shape[0],
                optimizer=config.optimization_algo,
            )
            self.callbacks.on_train_begin(self)
            start = time.time()

            pbar = tqdm(
                range(num_iterations),
                desc="CD training",
                disable=not self.show_progress,
            )
            for iteration in pbar:
                self.iteration = iteration
                self.callbacks.on_iteration_start(self, self.model)

                step_metrics = self._training_step(iteration)
                self.metrics.update(step_metrics)
                history.append(step_metrics)
                pbar.set_postfix(
                    loss=f"{step_metrics['reconstruction_loss']:.4f}"
                )

                self.callbacks.on_iteration_end(self, self.model, step_metrics)

                if self.callbacks.should_stop:
                    self.log_info(f"Early stopping at iteration {iteration}")
                    break

            self.callbacks.on_train_end(self)
            self.log_info(
                "Training completed",
                final_iteration=self.iteration,
                train_time=time.time() - start,
            )

        return {
            "history": history,
            "final_metrics": history[-1] if history else {},
            "average_metrics": self.metrics.compute(),
        }

    def _training_step(self, iteration: int) -> dict[str, float]:
        """Single CD update plus metrics."""
        gradient = self.model.contrastive_divergence_step(self.data, iteration)

        metrics = gradient.norms()
        metrics["reconstruction_loss"] = self.model.reconstruction_loss(self.data)
        metrics["free_energy"] = self.model.free_energy(self.data) / self.data.shape[0]
        return metrics
