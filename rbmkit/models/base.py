"""Base classes for latent-variable models.

This module provides the abstract base class shared by models with a
visible and a hidden layer: device and dtype handling, the seeded random
source, input preparation and logging.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import torch
from torch import Tensor, nn

from rbmkit.core.config import RBMConfig
from rbmkit.core.logging import LoggerMixin
from rbmkit.core.types import SamplePair
from rbmkit.utils.random import RandomSource
from rbmkit.utils.tensor import ensure_tensor


class LatentVariableModel(nn.Module, LoggerMixin, ABC):
    """Abstract base class for models with explicit hidden variables.

    Subclasses implement the two conditional propagations and the free
    energy; everything else (placement, randomness, logging) lives here.
    """

    def __init__(self, config: RBMConfig, random: RandomSource | None = None):
        """Initialize the model.

        Args:
            config: Model configuration
            random: Random source to draw from. A fresh one seeded from
                ``config.seed`` is created when omitted.
        """
        super().__init__()
        LoggerMixin.__init__(self)
        self.config = config
        self.random = random or RandomSource(config.seed, config.torch_device)

    def __setattr__(self, name: str, value: object) -> None:
        """Allow assigning tensors to parameter attributes."""
        if (
            isinstance(value, torch.Tensor)
            and not isinstance(value, nn.Parameter)
            and isinstance(getattr(self, name, None), nn.Parameter)
        ):
            value = nn.Parameter(value)
        super().__setattr__(name, value)

    @property
    def device(self) -> torch.device:
        """Get model device."""
        return self.config.torch_device

    @property
    def dtype(self) -> torch.dtype:
        """Get model dtype."""
        return self.config.torch_dtype

    @abstractmethod
    def propagate_up(self, visible: Tensor) -> SamplePair:
        """Sample the hidden layer given visible values."""

    @abstractmethod
    def propagate_down(self, hidden: Tensor) -> SamplePair:
        """Sample the visible layer given hidden values."""

    @abstractmethod
    def free_energy(self, visible: Tensor) -> float:
        """Free energy of a batch of visible configurations."""

    def to_device(self, x: Tensor) -> Tensor:
        """Move tensor to model device with correct dtype."""
        return x.to(device=self.device, dtype=self.dtype)

    def prepare_input(self, x: Tensor) -> Tensor:
        """Prepare input tensor (ensure 2-D, correct device/dtype)."""
        x = self.to_device(ensure_tensor(x))
        if x.dim() == 1:
            x = x.unsqueeze(0)
        return x

    def parameter_summary(self) -> dict[str, Any]:
        """Get summary of model parameters."""
        total_params = sum(p.numel() for p in self.parameters())
        trainable_params = sum(
            p.numel() for p in self.parameters() if p.requires_grad
        )
        element_size = torch.empty((), dtype=self.dtype).element_size()

        return {
            "total_parameters": total_params,
            "trainable_parameters": trainable_params,
            "non_trainable_parameters": total_params - trainable_params,
            "model_size_mb": total_params * element_size / (1024 * 1024),
        }

    def __repr__(self) -> str:
        """Return representation with layer sizes and unit kinds."""
        config = self.config
        return (
            f"{self.__class__.__name__}("
            f"visible={config.visible_units}:{config.visible_unit}, "
            f"hidden={config.hidden_units}:{config.hidden_unit}, "
            f"k={config.k})"
        )
