"""Contrastive Divergence (CD-k) gradient estimation.

One call runs the positive phase on the data batch, k block Gibbs steps
seeded from the positive hidden sample, and assembles the three gradients
from the positive statistics and the final step of the chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import torch
from torch import Tensor, nn

from rbmkit.core.exceptions import ConfigurationError
from rbmkit.core.logging import LoggerMixin

from .base import GibbsSampler

if TYPE_CHECKING:
    from rbmkit.models.rbm.model import RBM


@dataclass
class GradientBundle:
    """Weight, hidden-bias and visible-bias gradients from one CD call.

    The weight gradient is summed over the batch while both bias gradients
    are averaged over it.
    """

    weight: Tensor
    hidden_bias: Tensor
    visible_bias: Tensor

    def as_dict(self) -> dict[str, Tensor]:
        """Map model parameter names to their gradients."""
        return {
            "W": self.weight,
            "hbias": self.hidden_bias,
            "vbias": self.visible_bias,
        }

    def norms(self) -> dict[str, float]:
        """L2 norm of each gradient, keyed for log extraction."""
        return {
            "weight_grad_norm": float(self.weight.norm()),
            "hbias_grad_norm": float(self.hidden_bias.norm()),
            "vbias_grad_norm": float(self.visible_bias.norm()),
        }


class ContrastiveDivergence(nn.Module, LoggerMixin):
    """Contrastive Divergence (CD-k) gradient estimator.

    CD approximates the model distribution by running k steps of Gibbs
    sampling starting from the hidden sample of the data.
    """

    def __init__(self, k: int = 1, sampler: GibbsSampler | None = None):
        """Initialize the estimator.

        Args:
            k: Default number of Gibbs steps
            sampler: Gibbs sampler for the negative phase
        """
        super().__init__()
        self.k = k
        self.sampler = sampler or GibbsSampler(name=f"CD-{k}")
        self.last_negative_samples: Tensor | None = None

    @torch.no_grad()
    def estimate_gradient(
        self, model: RBM, data: Tensor, k: int | None = None
    ) -> GradientBundle:
        """Estimate the log-likelihood gradient of a data batch.

        Args:
            model: RBM to estimate the gradient for
            data: Batch of shape (batch_size, visible_units)
            k: Chain length for this call; defaults to the estimator's k

        Returns
        -------
            Fresh gradient bundle

        Raises
        ------
            ConfigurationError: If ``k`` is below 1
            ShapeMismatchError: If ``data`` does not match the model width
        """
        k = self.k if k is None else k
        if k < 1:
            raise ConfigurationError(f"CD chain length k must be >= 1, got {k}")

        data = model.prepare_input(data)
        sparsity = model.config.sparsity

        # Positive phase
        positive = model.propagate_up(data)
        self.log_debug("Positive phase done", batch_size=data.shape[0])

        # Negative phase: only the final Gibbs step is kept
        visible, hidden = self.sampler.sample(model, positive.sample, num_steps=k)
        self.log_debug("Negative phase done", k=k)

        weight = data.t() @ positive.mean - visible.sample.t() @ hidden.mean
        if sparsity != 0:
            hidden_bias = (sparsity - positive.mean).mean(dim=0)
        else:
            hidden_bias = (positive.mean - hidden.mean).mean(dim=0)
        visible_bias = (data - visible.sample).mean(dim=0)

        self.last_negative_samples = visible.sample.detach()

        return GradientBundle(
            weight=weight, hidden_bias=hidden_bias, visible_bias=visible_bias
        )

    @torch.no_grad()
    def compute_metrics(
        self, model: RBM, data: Tensor, samples: Tensor | None = None
    ) -> dict[str, float]:
        """Compute training metrics.

        Args:
            model: Trained model
            data: Data batch
            samples: Negative samples; defaults to those of the last call

        Returns
        -------
            Dictionary of metrics
        """
        data = model.prepare_input(data)
        if samples is None:
            samples = self.last_negative_samples
        if samples is None:
            samples = model.reconstruct(data)

        batch_size = data.shape[0]
        data_energy = model.free_energy(data) / batch_size
        sample_energy = model.free_energy(samples) / samples.shape[0]
        recon_error = (data - model.reconstruct(data)).pow(2).mean()

        return {
            "data_energy": data_energy,
            "sample_energy": sample_energy,
            "energy_gap": sample_energy - data_energy,
            "reconstruction_error": float(recon_error),
        }
