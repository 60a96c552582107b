"""Seeded random primitives shared by every sampling call.

A single ``RandomSource`` is owned by each model and accessed strictly
sequentially; two threads must not draw from the same source.
"""

from __future__ import annotations

import torch
from torch import Tensor

from rbmkit.core.types import Device


class RandomSource:
    """Uniform, Gaussian and Bernoulli draws from one ``torch.Generator``."""

    def __init__(self, seed: int | None = None, device: Device = None):
        """Initialize the random source.

        Args:
            seed: Seed for reproducibility. ``None`` seeds non-deterministically.
            device: Device the generator lives on
        """
        self.device = torch.device(device or "cpu")
        self.generator = torch.Generator(device=self.device)
        self.seed = seed
        if seed is None:
            self.seed = self.generator.seed()
        else:
            self.generator.manual_seed(seed)

    def manual_seed(self, seed: int) -> None:
        """Re-seed the underlying generator."""
        self.seed = seed
        self.generator.manual_seed(seed)

    def uniform(self, like: Tensor) -> Tensor:
        """Uniform draws on [0, 1) shaped like ``like``."""
        return torch.rand(
            like.shape,
            generator=self.generator,
            device=like.device,
            dtype=like.dtype,
        )

    def normal(
        self, like: Tensor, mean: Tensor | float = 0.0, std: Tensor | float = 1.0
    ) -> Tensor:
        """Gaussian draws shaped like ``like`` with the given mean and std."""
        noise = torch.randn(
            like.shape,
            generator=self.generator,
            device=like.device,
            dtype=like.dtype,
        )
        return mean + std * noise

    def bernoulli(self, prob: Tensor) -> Tensor:
        """One Bernoulli draw per entry of ``prob``; values are 0 or 1."""
        return torch.bernoulli(prob, generator=self.generator)

    def dropout_mask(self, like: Tensor, p: float) -> Tensor:
        """Mask that keeps each entry with probability ``1 - p``."""
        return (self.uniform(like) >= p).to(like.dtype)

    def __repr__(self) -> str:
        """Return representation with seed and device."""
        return f"{self.__class__.__name__}(seed={self.seed}, device='{self.device}')"
