"""Restricted Boltzmann Machine with pluggable unit kinds.

The model owns the weight matrix ``W`` (visible x hidden) and the two bias
vectors. Propagation between the layers dispatches on the configured
visible and hidden unit kinds; training runs CD-k through
``ContrastiveDivergence`` and hands the resulting gradient bundle to a
``GradientUpdater``.
"""

from __future__ import annotations

from typing import Any

import torch
import torch.nn.functional as F  # noqa: N812
from torch import Tensor, nn

from rbmkit.core.config import RBMConfig
from rbmkit.core.exceptions import ShapeMismatchError
from rbmkit.core.types import GradientUpdaterProtocol, Plotter, SamplePair
from rbmkit.models.base import LatentVariableModel
from rbmkit.sampling.base import GibbsResult
from rbmkit.sampling.gradient import ContrastiveDivergence, GradientBundle
from rbmkit.training.callbacks import Callback
from rbmkit.training.metrics import LOSS_FUNCTIONS
from rbmkit.training.optimizer import GradientUpdater
from rbmkit.training.trainer import Trainer
from rbmkit.utils.initialization import Initializer
from rbmkit.utils.random import RandomSource
from rbmkit.utils.tensor import append_ones_column, augment_with_bias, row_variance

from .units import (
    get_hidden_policy,
    get_visible_policy,
    inverse_hidden,
    inverse_visible,
)


class RBM(LatentVariableModel):
    """Restricted Boltzmann Machine trained with contrastive divergence.

    Energy with binary units: E(v, h) = -v^T W h - a^T v - b^T h, where
    ``a`` is ``vbias`` and ``b`` is ``hbias``. Other unit kinds change only
    the conditional distributions used for sampling.

    Attributes
    ----------
        W: Weights of shape (visible_units, hidden_units)
        vbias: Visible bias of shape (visible_units,)
        hbias: Hidden bias of shape (hidden_units,)
        sigma: Visible noise scale recorded by the last upward pass over
            gaussian visible units, or None
        hidden_sigma: Row variance of the last hidden pre-activation for
            gaussian hidden units, or None
    """

    def __init__(
        self,
        config: RBMConfig,
        W: Tensor | None = None,  # noqa: N803
        vbias: Tensor | None = None,
        hbias: Tensor | None = None,
        random: RandomSource | None = None,
        updater: GradientUpdaterProtocol | None = None,
    ):
        """Initialize the RBM.

        Args:
            config: RBM configuration
            W: Optional weight matrix. It is used as-is (storage shared),
                not copied.
            vbias: Optional visible bias, used as-is
            hbias: Optional hidden bias, used as-is
            random: Random source; defaults to one seeded from the config
            updater: Gradient updater; a ``GradientUpdater`` is built on
                first use when omitted

        Raises
        ------
            ConfigurationError: If a unit kind is not recognised
        """
        super().__init__(config, random)
        self.num_visible = config.visible_units
        self.num_hidden = config.hidden_units

        self.visible_policy = get_visible_policy(config.visible_unit)
        self.hidden_policy = get_hidden_policy(config.hidden_unit)

        self._build_model(W, vbias, hbias)

        self.sigma: Tensor | None = None
        self.hidden_sigma: Tensor | None = None

        self.estimator = ContrastiveDivergence(k=config.k)
        self._updater = updater

        self.log_info(
            "Initialized model",
            model_type=self.__class__.__name__,
            visible=f"{self.num_visible}:{self.visible_policy.name}",
            hidden=f"{self.num_hidden}:{self.hidden_policy.name}",
            device=str(self.device),
            dtype=str(self.dtype),
        )

    def _build_model(
        self, W: Tensor | None, vbias: Tensor | None, hbias: Tensor | None  # noqa: N803
    ) -> None:
        """Build RBM parameters, initializing whichever were not given."""
        factory = {"device": self.device, "dtype": self.dtype}
        generator = self.random.generator

        if W is None:
            self.W = nn.Parameter(torch.empty(self.num_visible, self.num_hidden, **factory))
            Initializer(self.config.weight_init, generator=generator)(self.W)
        else:
            self._check_shape("W", W, (self.num_visible, self.num_hidden))
            self.W = nn.Parameter(W.detach().to(**factory))

        bias_init = Initializer(self.config.bias_init, generator=generator)
        for name, given, size in (
            ("vbias", vbias, self.num_visible),
            ("hbias", hbias, self.num_hidden),
        ):
            if given is None:
                param = nn.Parameter(torch.empty(size, **factory))
                bias_init(param)
            else:
                self._check_shape(name, given, (size,))
                param = nn.Parameter(given.detach().to(**factory))
            setattr(self, name, param)

    @staticmethod
    def _check_shape(name: str, tensor: Tensor, expected: tuple[int, ...]) -> None:
        if tuple(tensor.shape) != expected:
            raise ValueError(
                f"{name} has shape {tuple(tensor.shape)}, expected {expected}"
            )

    @staticmethod
    def _check_width(layer: str, x: Tensor, expected: int) -> None:
        if x.shape[-1] != expected:
            raise ShapeMismatchError(layer, expected, x.shape[-1])

    @property
    def visible_unit(self) -> str:
        """Configured visible unit kind."""
        return self.visible_policy.name

    @visible_unit.setter
    def visible_unit(self, kind: str) -> None:
        self.visible_policy = get_visible_policy(kind)
        self.config = self.config.with_updates(visible_unit=self.visible_policy.name)

    @property
    def hidden_unit(self) -> str:
        """Configured hidden unit kind."""
        return self.hidden_policy.name

    @hidden_unit.setter
    def hidden_unit(self, kind: str) -> None:
        self.hidden_policy = get_hidden_policy(kind)
        self.config = self.config.with_updates(hidden_unit=self.hidden_policy.name)

    @property
    def updater(self) -> GradientUpdaterProtocol:
        """Gradient updater applying CD gradients to the parameters."""
        if self._updater is None:
            self._updater = GradientUpdater(self)
        return self._updater

    @updater.setter
    def updater(self, updater: GradientUpdaterProtocol) -> None:
        self._updater = updater

    def pre_activation_up(self, visible: Tensor) -> Tensor:
        """Hidden pre-activation ``v W + hbias`` of shape (batch, hidden)."""
        if self.config.concat_biases:
            return append_ones_column(visible) @ augment_with_bias(self.W, self.hbias)
        return visible @ self.W + self.hbias

    def pre_activation_down(self, hidden: Tensor) -> Tensor:
        """Visible pre-activation ``h W^T + vbias`` of shape (batch, visible)."""
        if self.config.concat_biases:
            return append_ones_column(hidden) @ augment_with_bias(
                self.W.t(), self.vbias
            )
        return hidden @ self.W.t() + self.vbias

    @torch.no_grad()
    def propagate_up(self, visible: Tensor) -> SamplePair:
        """Sample the hidden layer given visible values.

        With gaussian visible units the visible noise scale ``sigma`` is
        refreshed from this batch; with gaussian hidden units
        ``hidden_sigma`` records the pre-activation row variance. Dropout,
        when configured, zeroes hidden sample entries unless the hidden
        policy is deterministic.

        Args:
            visible: Visible values of shape (batch_size, visible_units)

        Returns
        -------
            Hidden (mean, sample), each of shape (batch_size, hidden_units)

        Raises
        ------
            ShapeMismatchError: If the input width is not ``visible_units``
        """
        visible = self.prepare_input(visible)
        self._check_width("visible", visible, self.num_visible)

        if self.visible_policy.name == "gaussian":
            self.sigma = row_variance(visible) / visible.shape[0]

        pre_h = self.pre_activation_up(visible)
        if self.hidden_policy.name == "gaussian":
            self.hidden_sigma = row_variance(pre_h)

        mean, sample = self.hidden_policy.sample(pre_h, self.random)

        dropout = self.config.dropout
        if dropout > 0 and not self.hidden_policy.deterministic:
            sample = sample * self.random.dropout_mask(sample, dropout)

        return SamplePair(mean, sample)

    @torch.no_grad()
    def propagate_down(self, hidden: Tensor) -> SamplePair:
        """Sample the visible layer given hidden values.

        Args:
            hidden: Hidden values of shape (batch_size, hidden_units)

        Returns
        -------
            Visible (mean, sample), each of shape (batch_size, visible_units)

        Raises
        ------
            ShapeMismatchError: If the input width is not ``hidden_units``
        """
        hidden = self.prepare_input(hidden)
        self._check_width("hidden", hidden, self.num_hidden)

        pre_v = self.pre_activation_down(hidden)
        return self.visible_policy.sample(pre_v, self.random)

    def sample_hidden(self, visible: Tensor) -> SamplePair:
        """Alias of ``propagate_up``."""
        return self.propagate_up(visible)

    def sample_visible(self, hidden: Tensor) -> SamplePair:
        """Alias of ``propagate_down``."""
        return self.propagate_down(hidden)

    def gibbs_step(self, hidden_sample: Tensor) -> GibbsResult:
        """One hidden -> visible -> hidden Gibbs step."""
        return self.estimator.sampler.gibbs_step(self, hidden_sample)

    @torch.no_grad()
    def free_energy_per_sample(self, visible: Tensor) -> Tensor:
        """Free energy of each row: -a^T v - sum_j softplus(v W_j + b_j)."""
        visible = self.prepare_input(visible)
        self._check_width("visible", visible, self.num_visible)

        pre_h = visible @ self.W + self.hbias
        hidden_term = F.softplus(pre_h).sum(dim=-1)
        visible_term = visible @ self.vbias
        return -hidden_term - visible_term

    def free_energy(self, visible: Tensor) -> float:
        """Free energy of a batch, summed over its rows."""
        return float(self.free_energy_per_sample(visible).sum())

    @torch.no_grad()
    def reconstruct(self, visible: Tensor) -> Tensor:
        """Mean-field reconstruction: up to hidden means, then down to means."""
        hidden_mean = self.propagate_up(visible).mean
        return self.propagate_down(hidden_mean).mean

    def reconstruction_loss(self, data: Tensor) -> float:
        """Reconstruction loss selected by ``config.loss_function``."""
        data = self.prepare_input(data)
        loss_fn = LOSS_FUNCTIONS[self.config.loss_function]
        return loss_fn(data, self.reconstruct(data))

    def get_gradient(self, data: Tensor, k: int | None = None) -> GradientBundle:
        """Raw CD-k gradient for a batch without updating parameters."""
        return self.estimator.estimate_gradient(self, data, k=k)

    def contrastive_divergence(
        self,
        data: Tensor,
        k: int | None = None,
        learning_rate: float | None = None,
    ) -> GradientBundle:
        """Run one CD-k update without an explicit iteration index.

        Args:
            data: Batch of shape (batch_size, visible_units)
            k: Chain length; defaults to ``config.k``
            learning_rate: Step size; defaults to ``config.learning_rate``

        Returns
        -------
            The gradient bundle handed to the updater
        """
        return self._update(data, None, k, learning_rate)

    def contrastive_divergence_step(
        self,
        data: Tensor,
        iteration: int,
        k: int | None = None,
        learning_rate: float | None = None,
    ) -> GradientBundle:
        """Run one CD-k update at a known iteration index.

        The index drives the momentum schedule and the periodic reset of
        adaptive optimizer state.
        """
        return self._update(data, iteration, k, learning_rate)

    def _update(
        self,
        data: Tensor,
        iteration: int | None,
        k: int | None,
        learning_rate: float | None,
    ) -> GradientBundle:
        gradient = self.get_gradient(data, k=k)
        if learning_rate is None:
            learning_rate = self.config.learning_rate
        self.updater.update(gradient, iteration, learning_rate)
        self.log_debug(
            "CD step finished",
            iteration=iteration,
            k=self.config.k if k is None else k,
            **gradient.norms(),
        )
        return gradient

    def fit(
        self,
        data: Tensor,
        num_iterations: int = 100,
        callbacks: list[Callback] | None = None,
        plotter: Plotter | None = None,
        show_progress: bool = True,
    ) -> dict[str, Any]:
        """Train on a single batch for a fixed number of CD updates.

        Returns
        -------
            Training history from ``Trainer.fit``
        """
        trainer = Trainer(
            self, callbacks=callbacks, plotter=plotter, show_progress=show_progress
        )
        return trainer.fit(data, num_iterations=num_iterations)

    def transpose(self) -> RBM:
        """Mirror the model so its hidden layer becomes the visible one.

        The mirror shares ``W`` storage (as ``W^T``) and the random source,
        swaps copies of the biases and maps each unit kind to its inverse,
        keeping the original kind where no inverse exists.
        """
        visible_kind = inverse_hidden(self.hidden_unit) or self.hidden_unit
        hidden_kind = inverse_visible(self.visible_unit) or self.visible_unit
        config = self.config.with_updates(
            visible_units=self.num_hidden,
            hidden_units=self.num_visible,
            visible_unit=visible_kind,
            hidden_unit=hidden_kind,
        )

        mirror = RBM(
            config,
            W=self.W.detach().t(),
            vbias=self.hbias.detach().clone(),
            hbias=self.vbias.detach().clone(),
            random=self.random,
        )
        mirror.sigma = None if self.sigma is None else self.sigma.clone()
        mirror.hidden_sigma = (
            None if self.hidden_sigma is None else self.hidden_sigma.clone()
        )
        return mirror

    def clone(self) -> RBM:
        """Independent copy with the same parameters, kinds and noise scales."""
        random = RandomSource(self.random.seed, self.random.device)
        random.generator.set_state(self.random.generator.get_state())

        other = RBM(
            self.config,
            W=self.W.detach().clone(),
            vbias=self.vbias.detach().clone(),
            hbias=self.hbias.detach().clone(),
            random=random,
        )
        other.sigma = None if self.sigma is None else self.sigma.clone()
        other.hidden_sigma = (
            None if self.hidden_sigma is None else self.hidden_sigma.clone()
        )
        return other
