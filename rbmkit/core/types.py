"""Core type definitions and protocols for the rbmkit library.

This module defines the unit-kind enumerations, the (mean, sample) pair
returned by every conditional-sampling operation, and the narrow protocols
through which the model talks to its collaborators (unit policies, the
gradient updater and the plotting collaborator).
"""

from __future__ import annotations

from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    NamedTuple,
    Protocol,
    TypeAlias,
    runtime_checkable,
)

import torch
from torch import Tensor

if TYPE_CHECKING:
    from rbmkit.utils.random import RandomSource

# Type aliases for common patterns
TensorLike: TypeAlias = Tensor | list[float] | float
Device: TypeAlias = torch.device | str | None
DType: TypeAlias = torch.dtype | None
Shape: TypeAlias = torch.Size | tuple[int, ...] | list[int]


class VisibleUnit(str, Enum):
    """Supported visible unit kinds."""

    BINARY = "binary"
    GAUSSIAN = "gaussian"
    SOFTMAX = "softmax"
    LINEAR = "linear"


class HiddenUnit(str, Enum):
    """Supported hidden unit kinds."""

    RECTIFIED = "rectified"
    BINARY = "binary"
    GAUSSIAN = "gaussian"
    SOFTMAX = "softmax"


class SamplePair(NamedTuple):
    """Expected activation and one stochastic draw for a layer.

    Both tensors have shape (batch_size, layer_width).
    """

    mean: Tensor
    sample: Tensor


@runtime_checkable
class UnitPolicy(Protocol):
    """Protocol for per-unit-kind activation policies."""

    name: str
    deterministic: bool

    def sample(self, pre_activation: Tensor, random: RandomSource) -> SamplePair:
        """Turn a pre-activation matrix into a (mean, sample) pair.

        Args:
            pre_activation: Pre-activation values of shape (batch, width)
            random: Shared random source used for the stochastic draw

        Returns:
            Mean and sample, both shaped like ``pre_activation``
        """
        ...


@runtime_checkable
class GradientUpdaterProtocol(Protocol):
    """Protocol for the optimizer that applies a gradient bundle."""

    def update(
        self, gradient: Any, iteration: int | None, learning_rate: float
    ) -> None:
        """Rescale the gradient and apply it to the model in place."""
        ...


@runtime_checkable
class Plotter(Protocol):
    """Protocol for the optional diagnostic plotting collaborator."""

    def plot_network_gradient(
        self, model: Any, gradient: Any, batch_size: int
    ) -> Any:
        """Render weights and gradients for inspection."""
        ...
