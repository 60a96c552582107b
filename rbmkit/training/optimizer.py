"""Gradient updater applying CD gradient bundles through ``torch.optim``.

The CD estimator produces an ascent direction. The updater hands its
negation to a standard PyTorch optimizer as ``param.grad`` and steps, so
the adaptive step size, momentum and L2 penalty all come from the chosen
optimizer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import torch
from torch import nn
from torch.optim import Optimizer

from rbmkit.core.config import RBMConfig
from rbmkit.core.logging import LoggerMixin

if TYPE_CHECKING:
    from rbmkit.models.rbm.model import RBM
    from rbmkit.sampling.gradient import GradientBundle

OPTIMIZERS: dict[str, type[Optimizer]] = {
    "adagrad": torch.optim.Adagrad,
    "sgd": torch.optim.SGD,
    "adam": torch.optim.Adam,
    "rmsprop": torch.optim.RMSprop,
}


class GradientUpdater(LoggerMixin):
    """Apply gradient bundles to an RBM's parameters in place."""

    def __init__(self, model: RBM, config: RBMConfig | None = None):
        """Initialize the updater.

        Args:
            model: Model whose ``W``, ``hbias`` and ``vbias`` are updated
            config: Hyperparameters; defaults to the model's configuration
        """
        super().__init__()
        self.model = model
        self.config = config or model.config
        self.optimizer = self._create_optimizer()
        self.num_updates = 0

    def _parameters(self) -> dict[str, nn.Parameter]:
        return {"W": self.model.W, "hbias": self.model.hbias, "vbias": self.model.vbias}

    def _create_optimizer(self) -> Optimizer:
        """Create optimizer from configuration."""
        config = self.config
        opt_class = OPTIMIZERS[config.optimization_algo]

        opt_args = {
            "lr": config.learning_rate,
            "weight_decay": config.l2 if config.use_regularization else 0.0,
        }
        if config.optimization_algo in ("sgd", "rmsprop"):
            opt_args["momentum"] = config.momentum

        return opt_class(list(self._parameters().values()), **opt_args)

    def reset_state(self) -> None:
        """Discard all adaptive per-parameter state."""
        lr = self.optimizer.param_groups[0]["lr"]
        self.optimizer = self._create_optimizer()
        for group in self.optimizer.param_groups:
            group["lr"] = lr
        self.log_debug("Reset adaptive optimizer state", updates=self.num_updates)

    def _should_reset(self, iteration: int | None) -> bool:
        every = self.config.reset_adagrad_iterations
        return (
            iteration is not None
            and every > 0
            and iteration > 0
            and iteration % every == 0
        )

    def _apply_schedule(self, iteration: int | None, learning_rate: float) -> None:
        momentum = self.config.momentum_at(iteration)
        for group in self.optimizer.param_groups:
            group["lr"] = learning_rate
            if "momentum" in group:
                group["momentum"] = momentum

    def update(
        self,
        gradient: GradientBundle,
        iteration: int | None,
        learning_rate: float,
    ) -> None:
        """Rescale a gradient bundle and add it to the model parameters.

        Args:
            gradient: Ascent direction for ``W``, ``hbias`` and ``vbias``
            iteration: Current iteration index, or None when the caller has
                no explicit index (no state reset, base momentum)
            learning_rate: Step size for this update
        """
        if self._should_reset(iteration):
            self.reset_state()
        self._apply_schedule(iteration, learning_rate)

        params = self._parameters()
        for name, grad in gradient.as_dict().items():
            param = params[name]
            # Optimizers minimize; the CD gradient is an ascent direction
            param.grad = -grad.detach().to(dtype=param.dtype, device=param.device)
            if self.config.constrain_gradient_to_unit_norm:
                nn.utils.clip_grad_norm_(param, max_norm=1.0)

        self.optimizer.step()
        self.optimizer.zero_grad(set_to_none=True)
        self.num_updates += 1
