"""Unit activation policies for RBM layers.

Each policy turns a pre-activation matrix into a ``SamplePair``: the
expected activation and one stochastic draw. Visible and hidden kinds are
closed sets registered in ``rbmkit.core.registry``; the propagation engine
looks them up by name and never branches on the kind itself.

Visible kinds: binary, gaussian, softmax, linear.
Hidden kinds: binary, gaussian, softmax, rectified.
"""

from __future__ import annotations

import torch
from torch import Tensor

from rbmkit.core.registry import (
    hidden_units,
    register_hidden_unit,
    register_visible_unit,
    visible_units,
)
from rbmkit.core.types import HiddenUnit, SamplePair, UnitPolicy, VisibleUnit
from rbmkit.utils.random import RandomSource
from rbmkit.utils.tensor import row_variance, softmax_rows


class BaseUnit:
    """Shared behaviour for unit policies."""

    name = "base"
    deterministic = False

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        """Turn a pre-activation matrix into a (mean, sample) pair."""
        raise NotImplementedError

    def __repr__(self) -> str:
        """Return representation with the unit kind."""
        return f"{self.__class__.__name__}()"


@register_visible_unit(VisibleUnit.BINARY.value)
@register_hidden_unit(HiddenUnit.BINARY.value, aliases=["bernoulli"])
class BinaryUnit(BaseUnit):
    """Logistic units with one Bernoulli draw per entry."""

    name = "binary"

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        mean = torch.sigmoid(pre_activation)
        return SamplePair(mean, random.bernoulli(mean))


@register_visible_unit(VisibleUnit.GAUSSIAN.value)
@register_hidden_unit(HiddenUnit.GAUSSIAN.value)
class GaussianUnit(BaseUnit):
    """Identity mean plus Gaussian noise scaled by the batch's row variance.

    The noise variance is re-estimated from the pre-activation on every
    call, so it tracks the current mini-batch rather than a fixed
    hyperparameter.
    """

    name = "gaussian"

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        mean = pre_activation
        std = torch.sqrt(row_variance(pre_activation))
        return SamplePair(mean, random.normal(mean, mean=mean, std=std))


@register_visible_unit(VisibleUnit.SOFTMAX.value)
@register_hidden_unit(HiddenUnit.SOFTMAX.value)
class SoftmaxUnit(BaseUnit):
    """Row-wise softmax; the sample is the mean itself.

    This is not categorical sampling. The CD gradient formulas rely on the
    sample equalling the mean, so it is kept deterministic.
    """

    name = "softmax"
    deterministic = True

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        mean = softmax_rows(pre_activation)
        return SamplePair(mean, mean)


@register_visible_unit(VisibleUnit.LINEAR.value)
class LinearUnit(BaseUnit):
    """Identity mean plus unit-variance Gaussian noise (visible only)."""

    name = "linear"

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        mean = pre_activation
        return SamplePair(mean, random.normal(mean, mean=mean, std=1.0))


@register_hidden_unit(HiddenUnit.RECTIFIED.value, aliases=["relu"])
class RectifiedUnit(BaseUnit):
    """Approximate rectified-Gaussian hidden units.

    mean = sigmoid(x); sample = max(0, mean + N(0, 1) * sqrt(mean)).
    """

    name = "rectified"

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        mean = torch.sigmoid(pre_activation)
        noisy = random.normal(mean, mean=mean, std=torch.sqrt(mean))
        return SamplePair(mean, torch.clamp(noisy, min=0.0))


# Visible kind -> hidden kind used when mirroring a model, and back.
VISIBLE_TO_HIDDEN: dict[str, str] = {
    VisibleUnit.BINARY.value: HiddenUnit.BINARY.value,
    VisibleUnit.GAUSSIAN.value: HiddenUnit.GAUSSIAN.value,
    VisibleUnit.SOFTMAX.value: HiddenUnit.SOFTMAX.value,
    VisibleUnit.LINEAR.value: HiddenUnit.RECTIFIED.value,
}
HIDDEN_TO_VISIBLE: dict[str, str] = {v: k for k, v in VISIBLE_TO_HIDDEN.items()}


def get_visible_policy(kind: str) -> UnitPolicy:
    """Policy instance for a visible unit kind.

    Raises
    ------
        ConfigurationError: If the kind is not a registered visible unit
    """
    return visible_units.create(kind)


def get_hidden_policy(kind: str) -> UnitPolicy:
    """Policy instance for a hidden unit kind.

    Raises
    ------
        ConfigurationError: If the kind is not a registered hidden unit
    """
    return hidden_units.create(kind)


def inverse_visible(kind: str) -> str | None:
    """Hidden kind that mirrors a visible kind, or None if undefined."""
    return VISIBLE_TO_HIDDEN.get(visible_units.resolve(kind))


def inverse_hidden(kind: str) -> str | None:
    """Visible kind that mirrors a hidden kind, or None if undefined."""
    return HIDDEN_TO_VISIBLE.get(hidden_units.resolve(kind))
